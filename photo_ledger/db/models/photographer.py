from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from photo_ledger.core.clock import utcnow
from photo_ledger.db.base import Base, JSONPayload


class Photographer(Base):
    """Photographer ledger owner. ID must start with 'pht_'.

    ledger_version is bumped on every ledger write so a writer holding a
    stale copy fails its flush instead of over-withdrawing.
    """

    __tablename__ = "photographers"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    commission_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    total_sales: Mapped[int] = mapped_column(
        BigInteger, server_default=text("0"), default=0, nullable=False
    )
    total_revenue: Mapped[int] = mapped_column(
        BigInteger, server_default=text("0"), default=0, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, server_default=text("true"), default=True, nullable=False
    )
    last_ledger_activity_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    ledger_version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    metadata_: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONPayload, nullable=True
    )

    __mapper_args__ = {"version_id_col": ledger_version}

    __table_args__ = (
        CheckConstraint("id LIKE 'pht_%'", name="photographer_id_format"),
        CheckConstraint(
            "commission_bps >= 0 AND commission_bps <= 10000",
            name="valid_commission_bps",
        ),
    )
