from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_ledger.core.clock import utcnow
from photo_ledger.core.enums import LicenseType
from photo_ledger.db.base import Base, BigIntId


class SaleLineItem(Base):
    """One licensed photo sold within an order.

    The commission split is written once, when the order completes, and
    never recomputed. Append-only: rows are never deleted.
    """

    __tablename__ = "sale_line_items"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False
    )
    photo_id: Mapped[str] = mapped_column(String(50), nullable=False)
    photographer_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("photographers.id", ondelete="RESTRICT"),
        nullable=False,
    )
    license_type: Mapped[LicenseType] = mapped_column(String(20), nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), server_default=text("'XOF'"), nullable=False
    )
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    photographer_amount: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )
    platform_commission: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )
    commission_bps: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    available_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    paid: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), default=False, nullable=False
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    payout_withdrawal_id: Mapped[Optional[int]] = mapped_column(
        BigIntId, ForeignKey("withdrawals.id", ondelete="RESTRICT"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("price > 0", name="positive_price"),
        CheckConstraint(
            "license_type IN ('standard', 'extended')", name="valid_license_type"
        ),
        CheckConstraint(
            "(photographer_amount IS NULL AND platform_commission IS NULL)"
            " OR (photographer_amount + platform_commission = price)",
            name="split_sums_to_price",
        ),
        CheckConstraint(
            "(paid AND paid_at IS NOT NULL) OR (NOT paid AND paid_at IS NULL)",
            name="paid_at_consistency",
        ),
        Index("idx_line_items_photographer", "photographer_id", "currency"),
        Index("idx_line_items_order", "order_id"),
        Index(
            "idx_line_items_unpaid",
            "photographer_id",
            "available_at",
            postgresql_where="NOT paid",
        ),
    )
