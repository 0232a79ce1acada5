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
from sqlalchemy.orm import Mapped, mapped_column

from photo_ledger.core.clock import utcnow
from photo_ledger.core.enums import EntryType
from photo_ledger.db.base import Base, BigIntId


class LedgerEntry(Base):
    """Immutable reservation entry. Reserved funds are -SUM(amount), never stored."""

    __tablename__ = "ledger_entries"

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
    entry_type: Mapped[EntryType] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    related_withdrawal_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("withdrawals.id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('withdrawal_reserve', 'withdrawal_release', 'withdrawal_settle')",
            name="valid_entry_type",
        ),
        CheckConstraint(
            "(entry_type = 'withdrawal_reserve' AND amount < 0)"
            " OR (entry_type != 'withdrawal_reserve' AND amount > 0)",
            name="entry_sign_matches_type",
        ),
        Index("idx_ledger_photographer_currency", "photographer_id", "currency"),
        Index("idx_ledger_withdrawal", "related_withdrawal_id"),
    )
