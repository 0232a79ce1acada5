from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from photo_ledger.core.clock import utcnow
from photo_ledger.core.enums import NotificationStatus
from photo_ledger.db.base import Base, BigIntId, JSONPayload


class PaymentNotification(Base):
    """Payment webhook log. Idempotency guaranteed by unique notification_id."""

    __tablename__ = "payment_notifications"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    notification_id: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False
    )
    order_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False
    )
    status: Mapped[NotificationStatus] = mapped_column(String(50), nullable=False)
    provider_reference: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    payload: Mapped[Optional[dict]] = mapped_column(JSONPayload, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('completed', 'failed', 'refunded')",
            name="valid_notification_status",
        ),
        Index("idx_payment_notifications_order", "order_id"),
    )
