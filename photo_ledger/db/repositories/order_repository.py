from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photo_ledger.core.enums import OrderPaymentStatus, RevenueItemState
from photo_ledger.db.models import Order, PayoutAllocation, SaleLineItem


def allocated_per_item():
    """Subquery: amount already paid out per line item."""
    return (
        select(
            PayoutAllocation.line_item_id.label("line_item_id"),
            func.sum(PayoutAllocation.amount).label("allocated"),
        )
        .group_by(PayoutAllocation.line_item_id)
        .subquery()
    )


class OrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_order(
        self,
        order_id: str,
        buyer_id: str,
        currency: str,
        subtotal: int,
        tax: int,
        discount: int,
        total: int,
        items: list[dict[str, Any]],
        metadata_: Optional[dict] = None,
    ) -> Order:
        order = Order(
            id=order_id,
            buyer_id=buyer_id,
            currency=currency,
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total=total,
            payment_status=OrderPaymentStatus.PENDING,
            metadata_=metadata_,
            items=[
                SaleLineItem(
                    photo_id=item["photo_id"],
                    photographer_id=item["photographer_id"],
                    license_type=item["license_type"],
                    currency=currency,
                    price=item["price"],
                )
                for item in items
            ],
        )
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        stmt = (
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, order_id: str) -> Optional[Order]:
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def has_allocations(self, order_id: str) -> bool:
        stmt = (
            select(PayoutAllocation.id)
            .join(SaleLineItem, SaleLineItem.id == PayoutAllocation.line_item_id)
            .where(SaleLineItem.order_id == order_id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_revenue_items(
        self,
        photographer_id: str,
        currency: str,
        as_of: datetime,
        state: Optional[RevenueItemState] = None,
    ) -> list[tuple[SaleLineItem, int]]:
        """Realized line items of a photographer with the amount already paid out."""
        allocated = allocated_per_item()
        stmt = (
            select(SaleLineItem, func.coalesce(allocated.c.allocated, 0))
            .join(Order, Order.id == SaleLineItem.order_id)
            .outerjoin(allocated, allocated.c.line_item_id == SaleLineItem.id)
            .where(SaleLineItem.photographer_id == photographer_id)
            .where(SaleLineItem.currency == currency)
            .where(Order.payment_status == OrderPaymentStatus.COMPLETED)
            .order_by(SaleLineItem.available_at, SaleLineItem.id)
        )
        if state == RevenueItemState.AVAILABLE:
            stmt = stmt.where(SaleLineItem.paid.is_(False)).where(
                SaleLineItem.available_at <= as_of
            )
        elif state == RevenueItemState.PENDING:
            stmt = stmt.where(SaleLineItem.available_at > as_of)
        elif state == RevenueItemState.PAID:
            stmt = stmt.where(SaleLineItem.paid.is_(True))

        result = await self.session.execute(stmt)
        return [(item, int(amount)) for item, amount in result.all()]

    async def list_completed_sales(
        self, photographer_id: str, currency: str
    ) -> list[tuple[SaleLineItem, datetime]]:
        stmt = (
            select(SaleLineItem, Order.completed_at)
            .join(Order, Order.id == SaleLineItem.order_id)
            .where(SaleLineItem.photographer_id == photographer_id)
            .where(SaleLineItem.currency == currency)
            .where(Order.payment_status == OrderPaymentStatus.COMPLETED)
            .order_by(Order.completed_at)
        )
        result = await self.session.execute(stmt)
        return [(item, completed_at) for item, completed_at in result.all()]
