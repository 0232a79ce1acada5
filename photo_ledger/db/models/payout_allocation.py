from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_ledger.core.clock import utcnow
from photo_ledger.db.base import Base, BigIntId


class PayoutAllocation(Base):
    """Share of a line item consumed by a completed withdrawal."""

    __tablename__ = "payout_allocations"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    withdrawal_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("withdrawals.id", ondelete="RESTRICT"),
        nullable=False,
    )
    line_item_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("sale_line_items.id", ondelete="RESTRICT"),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    withdrawal = relationship("Withdrawal", back_populates="allocations")

    __table_args__ = (
        CheckConstraint("amount > 0", name="positive_allocation_amount"),
        UniqueConstraint(
            "withdrawal_id", "line_item_id", name="uq_allocation_withdrawal_item"
        ),
        Index("idx_allocations_line_item", "line_item_id"),
    )
