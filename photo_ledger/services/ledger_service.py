import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.clock import utcnow
from photo_ledger.core.config import settings
from photo_ledger.core.enums import EntryType
from photo_ledger.db.models import SaleLineItem, Withdrawal
from photo_ledger.db.repositories import LedgerRepository, WithdrawalRepository
from photo_ledger.exceptions import InsufficientBalanceException
from photo_ledger.metrics import ledger_entries_total, line_items_realized_total
from photo_ledger.services.commission import compute_split

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, session: AsyncSession) -> None:
        self.ledger_repo = LedgerRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)

    def realize_line_item(
        self, item: SaleLineItem, commission_bps: int, completed_at: datetime
    ) -> None:
        """Write the commission split and hold period onto a sold item."""
        split = compute_split(item.price, commission_bps)
        item.platform_commission = split.platform_commission
        item.photographer_amount = split.photographer_amount
        item.commission_bps = split.commission_bps
        item.available_at = completed_at + timedelta(days=settings.hold_period_days)
        line_items_realized_total.inc()

    async def create_reserve_entry(self, withdrawal: Withdrawal) -> None:
        await self._create_entry(
            withdrawal, -withdrawal.amount, EntryType.WITHDRAWAL_RESERVE
        )

    async def create_release_entry(self, withdrawal: Withdrawal) -> None:
        await self._create_entry(
            withdrawal, withdrawal.amount, EntryType.WITHDRAWAL_RELEASE
        )

    async def create_settle_entry(self, withdrawal: Withdrawal) -> None:
        await self._create_entry(
            withdrawal, withdrawal.amount, EntryType.WITHDRAWAL_SETTLE
        )

    async def _create_entry(
        self, withdrawal: Withdrawal, amount: int, entry_type: EntryType
    ) -> None:
        await self.ledger_repo.create_entry(
            photographer_id=withdrawal.photographer_id,
            amount=amount,
            currency=withdrawal.currency,
            entry_type=entry_type,
            related_withdrawal_id=withdrawal.id,
            description=f"{entry_type.value} for withdrawal {withdrawal.id}",
        )
        ledger_entries_total.labels(entry_type=entry_type.value).inc()

    async def allocate_payout(self, withdrawal: Withdrawal, as_of: datetime) -> int:
        """Consume matured revenue for a completed withdrawal, oldest first.

        Each item gives at most its residual; items drained to zero are
        marked paid. Raises before touching anything when the matured
        residual cannot cover the amount. Returns the number of items
        fully paid.
        """
        candidates = await self.ledger_repo.get_allocatable_items(
            withdrawal.photographer_id, withdrawal.currency, as_of
        )

        remaining = withdrawal.amount
        plan: list[tuple[SaleLineItem, int, bool]] = []
        for item, residual in candidates:
            if remaining == 0:
                break
            take = min(residual, remaining)
            plan.append((item, take, take == residual))
            remaining -= take

        if remaining > 0:
            logger.warning(
                "Matured revenue cannot cover withdrawal withdrawal_id=%s photographer_id=%s missing=%s",
                withdrawal.id,
                withdrawal.photographer_id,
                remaining,
                extra={
                    "withdrawal_id": withdrawal.id,
                    "photographer_id": withdrawal.photographer_id,
                    "missing": remaining,
                },
            )
            raise InsufficientBalanceException(
                withdrawal.photographer_id,
                withdrawal.amount - remaining,
                withdrawal.amount,
            )

        paid_at = utcnow()
        items_paid = 0
        for item, _, drained in plan:
            if drained:
                item.paid = True
                item.paid_at = paid_at
                item.payout_withdrawal_id = withdrawal.id
                items_paid += 1

        await self.withdrawal_repo.add_allocations(
            withdrawal, [(item.id, take) for item, take, _ in plan]
        )
        return items_paid
