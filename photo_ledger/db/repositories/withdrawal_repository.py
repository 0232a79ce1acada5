from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photo_ledger.core.enums import PaymentMethod, WithdrawalStatus
from photo_ledger.db.models import PayoutAllocation, Withdrawal
from photo_ledger.metrics import withdrawals_total


class WithdrawalRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_withdrawal(
        self,
        photographer_id: str,
        amount: int,
        currency: str,
        payment_method: PaymentMethod,
        payment_details: dict,
    ) -> Withdrawal:
        withdrawal = Withdrawal(
            photographer_id=photographer_id,
            amount=amount,
            currency=currency,
            status=WithdrawalStatus.PENDING,
            payment_method=payment_method,
            payment_details=payment_details,
            allocations=[],
        )
        self.session.add(withdrawal)
        await self.session.flush()
        withdrawals_total.labels(status=WithdrawalStatus.PENDING.value).inc()
        return withdrawal

    async def get_by_id(self, id: int) -> Optional[Withdrawal]:
        stmt = (
            select(Withdrawal)
            .options(selectinload(Withdrawal.allocations))
            .where(Withdrawal.id == id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, id: int) -> Optional[Withdrawal]:
        stmt = (
            select(Withdrawal)
            .options(selectinload(Withdrawal.allocations))
            .where(Withdrawal.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_withdrawals(
        self,
        status: Optional[WithdrawalStatus] = None,
        photographer_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
        oldest_first: bool = False,
    ) -> tuple[list[Withdrawal], int]:
        filters = []
        if status is not None:
            filters.append(Withdrawal.status == status)
        if photographer_id is not None:
            filters.append(Withdrawal.photographer_id == photographer_id)

        count_stmt = select(func.count(Withdrawal.id))
        for condition in filters:
            count_stmt = count_stmt.where(condition)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        ordering = (
            (Withdrawal.created_at.asc(), Withdrawal.id.asc())
            if oldest_first
            else (Withdrawal.created_at.desc(), Withdrawal.id.desc())
        )
        stmt = (
            select(Withdrawal)
            .options(selectinload(Withdrawal.allocations))
            .order_by(*ordering)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        for condition in filters:
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), int(total)

    async def add_allocations(
        self, withdrawal: Withdrawal, allocations: list[tuple[int, int]]
    ) -> None:
        for line_item_id, amount in allocations:
            withdrawal.allocations.append(
                PayoutAllocation(line_item_id=line_item_id, amount=amount)
            )
        await self.session.flush()

    async def get_last_completed_at(self, photographer_id: str) -> Optional[datetime]:
        stmt = select(func.max(Withdrawal.completed_at)).where(
            Withdrawal.photographer_id == photographer_id,
            Withdrawal.status == WithdrawalStatus.COMPLETED,
        )
        result = await self.session.execute(stmt)
        return result.scalar()

    async def update_status(
        self,
        withdrawal: Withdrawal,
        status: WithdrawalStatus,
        **fields,
    ) -> Withdrawal:
        withdrawal.status = status
        for name, value in fields.items():
            setattr(withdrawal, name, value)
        await self.session.flush()
        withdrawals_total.labels(status=status.value).inc()
        return withdrawal
