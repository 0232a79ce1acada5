from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_ledger.core.clock import utcnow
from photo_ledger.core.enums import PaymentMethod, WithdrawalStatus
from photo_ledger.db.base import Base, BigIntId, JSONPayload


class Withdrawal(Base):
    """Photographer payout request.

    Status lifecycle: pending → approved/rejected/cancelled, approved → completed.
    """

    __tablename__ = "withdrawals"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    photographer_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("photographers.id", ondelete="RESTRICT"),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), server_default=text("'XOF'"), nullable=False
    )
    status: Mapped[WithdrawalStatus] = mapped_column(
        String(50), server_default=text("'pending'"), nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(String(50), nullable=False)
    payment_details: Mapped[dict] = mapped_column(JSONPayload, nullable=False)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transaction_reference: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    processed_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    allocations = relationship(
        "PayoutAllocation",
        back_populates="withdrawal",
        order_by="PayoutAllocation.id",
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="positive_withdrawal_amount"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'completed', 'cancelled')",
            name="valid_withdrawal_status",
        ),
        CheckConstraint(
            "payment_method IN ('mobile_money', 'bank_transfer')",
            name="valid_payment_method",
        ),
        CheckConstraint(
            "(status = 'completed' AND completed_at IS NOT NULL"
            " AND transaction_reference IS NOT NULL)"
            " OR (status != 'completed' AND completed_at IS NULL)",
            name="completed_at_consistency",
        ),
        CheckConstraint(
            "status != 'rejected' OR rejection_reason IS NOT NULL",
            name="rejection_reason_required",
        ),
        Index(
            "idx_withdrawals_in_flight",
            "photographer_id",
            "status",
            postgresql_where="status IN ('pending', 'approved')",
        ),
        Index("idx_withdrawals_created_at", "created_at"),
    )
