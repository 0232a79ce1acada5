from datetime import datetime
from typing import NamedTuple, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.enums import EntryType, OrderPaymentStatus
from photo_ledger.db.models import LedgerEntry, Order, SaleLineItem
from photo_ledger.db.repositories.order_repository import allocated_per_item


class BalanceSummary(NamedTuple):
    matured_unpaid: int
    pending: int
    paid: int
    lifetime: int
    reserved: int
    sales_count: int
    last_sale_at: Optional[datetime]


class LedgerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_entry(
        self,
        photographer_id: str,
        amount: int,
        currency: str,
        entry_type: EntryType,
        related_withdrawal_id: int,
        description: Optional[str] = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            photographer_id=photographer_id,
            amount=amount,
            currency=currency,
            entry_type=entry_type,
            related_withdrawal_id=related_withdrawal_id,
            description=description,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_total_reserved(self) -> int:
        stmt = select(func.coalesce(func.sum(LedgerEntry.amount), 0))
        result = await self.session.execute(stmt)
        return -int(result.scalar() or 0)

    async def get_balance_summary(
        self, photographer_id: str, currency: str, as_of: datetime
    ) -> BalanceSummary:
        """
        Aggregate the photographer's realized revenue in a single query.

        Only line items of completed orders count. Residual is the share of
        an item not yet consumed by a completed withdrawal. Reserved funds
        come from the same statement so every figure shares one snapshot.
        """
        allocated = allocated_per_item()
        allocated_amount = func.coalesce(allocated.c.allocated, 0)
        matured = SaleLineItem.available_at <= as_of
        reserved = (
            select(func.coalesce(func.sum(LedgerEntry.amount), 0))
            .where(LedgerEntry.photographer_id == photographer_id)
            .where(LedgerEntry.currency == currency)
            .scalar_subquery()
        )

        stmt = (
            select(
                func.coalesce(
                    func.sum(
                        case(
                            (
                                matured & SaleLineItem.paid.is_(False),
                                SaleLineItem.photographer_amount - allocated_amount,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ).label("matured_unpaid"),
                func.coalesce(
                    func.sum(
                        case(
                            (
                                SaleLineItem.available_at > as_of,
                                SaleLineItem.photographer_amount - allocated_amount,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ).label("pending"),
                func.coalesce(func.sum(allocated_amount), 0).label("paid"),
                func.coalesce(func.sum(SaleLineItem.photographer_amount), 0).label(
                    "lifetime"
                ),
                func.count(SaleLineItem.id).label("sales_count"),
                func.max(Order.completed_at).label("last_sale_at"),
                reserved.label("reserved_sum"),
            )
            .select_from(SaleLineItem)
            .join(Order, Order.id == SaleLineItem.order_id)
            .outerjoin(allocated, allocated.c.line_item_id == SaleLineItem.id)
            .where(SaleLineItem.photographer_id == photographer_id)
            .where(SaleLineItem.currency == currency)
            .where(Order.payment_status == OrderPaymentStatus.COMPLETED)
        )

        result = await self.session.execute(stmt)
        row = result.one()
        return BalanceSummary(
            matured_unpaid=int(row.matured_unpaid),
            pending=int(row.pending),
            paid=int(row.paid),
            lifetime=int(row.lifetime),
            reserved=-int(row.reserved_sum),
            sales_count=int(row.sales_count),
            last_sale_at=row.last_sale_at,
        )

    async def get_allocatable_items(
        self, photographer_id: str, currency: str, as_of: datetime
    ) -> list[tuple[SaleLineItem, int]]:
        """Matured unpaid items with their residual, oldest funds first."""
        allocated = allocated_per_item()
        residual = SaleLineItem.photographer_amount - func.coalesce(
            allocated.c.allocated, 0
        )
        stmt = (
            select(SaleLineItem, residual.label("residual"))
            .join(Order, Order.id == SaleLineItem.order_id)
            .outerjoin(allocated, allocated.c.line_item_id == SaleLineItem.id)
            .where(SaleLineItem.photographer_id == photographer_id)
            .where(SaleLineItem.currency == currency)
            .where(Order.payment_status == OrderPaymentStatus.COMPLETED)
            .where(SaleLineItem.paid.is_(False))
            .where(SaleLineItem.available_at <= as_of)
            .order_by(SaleLineItem.available_at, SaleLineItem.id)
        )
        result = await self.session.execute(stmt)
        return [(item, int(amount)) for item, amount in result.all() if amount > 0]
