from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    String,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_ledger.core.clock import utcnow
from photo_ledger.core.enums import OrderPaymentStatus
from photo_ledger.db.base import Base, JSONPayload


class Order(Base):
    """Payment aggregate. Status lifecycle: pending → completed/failed, completed → refunded."""

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    buyer_id: Mapped[str] = mapped_column(String(50), nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), server_default=text("'XOF'"), nullable=False
    )
    subtotal: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tax: Mapped[int] = mapped_column(
        BigInteger, server_default=text("0"), nullable=False
    )
    discount: Mapped[int] = mapped_column(
        BigInteger, server_default=text("0"), nullable=False
    )
    total: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_status: Mapped[OrderPaymentStatus] = mapped_column(
        String(50), server_default=text("'pending'"), nullable=False
    )
    payment_reference: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    metadata_: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONPayload, nullable=True
    )

    items = relationship(
        "SaleLineItem",
        back_populates="order",
        order_by="SaleLineItem.id",
    )

    __table_args__ = (
        CheckConstraint("id LIKE 'ord_%'", name="order_id_format"),
        CheckConstraint("subtotal > 0", name="positive_subtotal"),
        CheckConstraint(
            "payment_status IN ('pending', 'completed', 'failed', 'refunded')",
            name="valid_payment_status",
        ),
        CheckConstraint(
            "(payment_status IN ('completed', 'refunded') AND completed_at IS NOT NULL)"
            " OR (payment_status IN ('pending', 'failed') AND completed_at IS NULL)",
            name="completed_at_consistency",
        ),
        Index("idx_orders_payment_status", "payment_status"),
    )
