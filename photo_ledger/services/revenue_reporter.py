from collections import OrderedDict
from datetime import date, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.authorization import Actor, ensure_authorized
from photo_ledger.core.clock import ensure_utc, utcnow
from photo_ledger.core.config import settings
from photo_ledger.core.enums import Action, RevenueItemState
from photo_ledger.db.repositories import (
    LedgerRepository,
    OrderRepository,
    PhotographerRepository,
    WithdrawalRepository,
)
from photo_ledger.exceptions import PhotographerNotFoundException
from photo_ledger.schemas.revenue import (
    MonthlyRevenue,
    MonthlyRevenueList,
    RevenueItem,
    RevenueItemList,
    RevenueStatistics,
)
from photo_ledger.services.balance_calculator import balance_from_summary


class RevenueReporter:
    """Read-only revenue views for a photographer."""

    def __init__(self, session: AsyncSession) -> None:
        self.ledger_repo = LedgerRepository(session)
        self.order_repo = OrderRepository(session)
        self.photographer_repo = PhotographerRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)

    async def get_statistics(
        self,
        actor: Actor,
        photographer_id: str,
        currency: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> RevenueStatistics:
        await self._authorize(actor, photographer_id)
        currency = currency or settings.default_currency
        as_of = ensure_utc(as_of) if as_of else utcnow()

        summary = await self.ledger_repo.get_balance_summary(
            photographer_id, currency, as_of
        )
        average = summary.lifetime / summary.sales_count if summary.sales_count else 0
        last_payout_at = await self.withdrawal_repo.get_last_completed_at(
            photographer_id
        )

        return RevenueStatistics(
            photographer_id=photographer_id,
            breakdown=balance_from_summary(photographer_id, currency, as_of, summary),
            total_sales=summary.sales_count,
            average_per_sale=round(average, 2),
            last_payout_at=ensure_utc(last_payout_at),
        )

    async def list_items(
        self,
        actor: Actor,
        photographer_id: str,
        state: Optional[RevenueItemState] = None,
        currency: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> RevenueItemList:
        await self._authorize(actor, photographer_id)
        currency = currency or settings.default_currency
        as_of = ensure_utc(as_of) if as_of else utcnow()

        rows = await self.order_repo.list_revenue_items(
            photographer_id, currency, as_of, state
        )
        items = []
        for item, allocated in rows:
            available_at = ensure_utc(item.available_at)
            items.append(
                RevenueItem(
                    id=item.id,
                    order_id=item.order_id,
                    photo_id=item.photo_id,
                    license_type=item.license_type,
                    price=item.price,
                    photographer_amount=item.photographer_amount,
                    platform_commission=item.platform_commission,
                    commission_bps=item.commission_bps,
                    allocated=allocated,
                    available_at=available_at,
                    days_until_available=max((available_at - as_of).days, 0),
                    paid=item.paid,
                    paid_at=ensure_utc(item.paid_at),
                    payout_withdrawal_id=item.payout_withdrawal_id,
                )
            )

        return RevenueItemList(
            photographer_id=photographer_id,
            state=state.value if state else None,
            items=items,
        )

    async def get_monthly_history(
        self, actor: Actor, photographer_id: str, currency: Optional[str] = None
    ) -> MonthlyRevenueList:
        """Completed sales grouped by calendar month of completion (UTC)."""
        await self._authorize(actor, photographer_id)
        currency = currency or settings.default_currency

        months: "OrderedDict[date, dict]" = OrderedDict()
        for item, completed_at in await self.order_repo.list_completed_sales(
            photographer_id, currency
        ):
            completed_at = ensure_utc(completed_at)
            month = date(completed_at.year, completed_at.month, 1)
            bucket = months.setdefault(
                month,
                {"sales": 0, "photos": set(), "gross": 0, "commission": 0, "net": 0},
            )
            bucket["sales"] += 1
            bucket["photos"].add(item.photo_id)
            bucket["gross"] += item.price
            bucket["commission"] += item.platform_commission
            bucket["net"] += item.photographer_amount

        return MonthlyRevenueList(
            photographer_id=photographer_id,
            currency=currency,
            months=[
                MonthlyRevenue(
                    month=month,
                    sales_count=bucket["sales"],
                    photos_sold=len(bucket["photos"]),
                    gross=bucket["gross"],
                    commission=bucket["commission"],
                    net=bucket["net"],
                )
                for month, bucket in months.items()
            ],
        )

    async def _authorize(self, actor: Actor, photographer_id: str) -> None:
        ensure_authorized(actor, Action.VIEW_REVENUE, photographer_id)
        if await self.photographer_repo.get_by_id(photographer_id) is None:
            raise PhotographerNotFoundException(photographer_id)
