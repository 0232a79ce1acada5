from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.clock import ensure_utc, utcnow
from photo_ledger.core.config import settings
from photo_ledger.db.repositories import BalanceSummary, LedgerRepository
from photo_ledger.schemas.balance import PhotographerBalance


def balance_from_summary(
    photographer_id: str, currency: str, as_of: datetime, summary: BalanceSummary
) -> PhotographerBalance:
    # Reserved funds sit inside the matured residual until the withdrawal settles.
    return PhotographerBalance(
        photographer_id=photographer_id,
        currency=currency,
        available=summary.matured_unpaid - summary.reserved,
        pending=summary.pending,
        reserved=summary.reserved,
        paid=summary.paid,
        lifetime_total=summary.lifetime,
        as_of=as_of,
        hold_period_days=settings.hold_period_days,
        last_sale_at=ensure_utc(summary.last_sale_at),
    )


class BalanceCalculator:
    def __init__(self, session: AsyncSession) -> None:
        self.ledger_repo = LedgerRepository(session)

    async def get_balance(
        self,
        photographer_id: str,
        currency: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> PhotographerBalance:
        currency = currency or settings.default_currency
        as_of = ensure_utc(as_of) if as_of else utcnow()

        summary = await self.ledger_repo.get_balance_summary(
            photographer_id, currency, as_of
        )
        return balance_from_summary(photographer_id, currency, as_of, summary)
