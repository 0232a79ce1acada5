import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from photo_ledger.core.authorization import Actor, ensure_authorized
from photo_ledger.core.clock import utcnow
from photo_ledger.core.config import settings
from photo_ledger.core.enums import Action, Role, WithdrawalStatus
from photo_ledger.db.models import Photographer, Withdrawal
from photo_ledger.db.repositories import (
    LedgerRepository,
    PhotographerRepository,
    WithdrawalRepository,
)
from photo_ledger.exceptions import (
    ConcurrencyConflictException,
    InsufficientBalanceException,
    InvalidAmountException,
    InvalidWithdrawalTransitionException,
    MissingFieldException,
    PhotographerNotFoundException,
    WithdrawalBelowMinimumException,
    WithdrawalNotFoundException,
)
from photo_ledger.metrics import reserved_funds_total
from photo_ledger.schemas.withdrawals import (
    WithdrawalApprove,
    WithdrawalComplete,
    WithdrawalCreate,
    WithdrawalReject,
)
from photo_ledger.services.balance_calculator import BalanceCalculator
from photo_ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

# action -> (required current status, resulting status)
TRANSITIONS: dict[str, tuple[WithdrawalStatus, WithdrawalStatus]] = {
    "approve": (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED),
    "reject": (WithdrawalStatus.PENDING, WithdrawalStatus.REJECTED),
    "complete": (WithdrawalStatus.APPROVED, WithdrawalStatus.COMPLETED),
    "cancel": (WithdrawalStatus.PENDING, WithdrawalStatus.CANCELLED),
}


class WithdrawalService:
    """Withdrawal lifecycle. Mutations must run inside a transaction.

    Every mutation locks the photographer row and bumps its ledger
    version before writing, so writers of the same ledger are serialized
    and a writer working from a stale snapshot fails with a retryable
    conflict instead of over-withdrawing.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.withdrawal_repo = WithdrawalRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.photographer_repo = PhotographerRepository(session)
        self.ledger_service = LedgerService(session)
        self.balance_calculator = BalanceCalculator(session)

    async def create_withdrawal(
        self, actor: Actor, withdrawal_data: WithdrawalCreate
    ) -> Withdrawal:
        ensure_authorized(actor, Action.CREATE_WITHDRAWAL, actor.id)
        photographer_id = actor.id
        amount = withdrawal_data.amount
        currency = withdrawal_data.currency or settings.default_currency

        if amount <= 0:
            raise InvalidAmountException("amount", amount)
        if amount < settings.withdrawal_min_amount:
            raise WithdrawalBelowMinimumException(
                amount, settings.withdrawal_min_amount
            )

        logger.info(
            "Starting withdrawal request photographer_id=%s amount=%s currency=%s",
            photographer_id,
            amount,
            currency,
            extra={
                "photographer_id": photographer_id,
                "amount": amount,
                "currency": currency,
            },
        )

        photographer = await self._lock_photographer(photographer_id)
        balance = await self.balance_calculator.get_balance(photographer_id, currency)

        if amount > balance.available:
            logger.warning(
                "Insufficient balance for withdrawal photographer_id=%s available=%s amount=%s",
                photographer_id,
                balance.available,
                amount,
                extra={
                    "photographer_id": photographer_id,
                    "available": balance.available,
                    "amount": amount,
                },
            )
            raise InsufficientBalanceException(
                photographer_id, balance.available, amount
            )

        await self._touch_ledger(photographer, "create")

        withdrawal = await self.withdrawal_repo.create_withdrawal(
            photographer_id=photographer_id,
            amount=amount,
            currency=currency,
            payment_method=withdrawal_data.payment_method,
            payment_details=withdrawal_data.payment_details,
        )
        await self.ledger_service.create_reserve_entry(withdrawal)
        await self._refresh_reserved_gauge()

        logger.info(
            "Withdrawal created withdrawal_id=%s photographer_id=%s amount=%s",
            withdrawal.id,
            photographer_id,
            amount,
            extra={
                "withdrawal_id": withdrawal.id,
                "photographer_id": photographer_id,
                "amount": amount,
            },
        )
        return withdrawal

    async def approve_withdrawal(
        self, actor: Actor, withdrawal_id: int, approve_data: WithdrawalApprove
    ) -> Withdrawal:
        withdrawal = await self._load_for_transition(
            actor, withdrawal_id, Action.APPROVE_WITHDRAWAL, "approve"
        )
        await self._ensure_still_funded(withdrawal)

        withdrawal = await self._apply_transition(
            withdrawal,
            "approve",
            processed_by=actor.id,
            processed_at=utcnow(),
            transaction_reference=approve_data.transaction_reference,
            admin_notes=approve_data.admin_notes,
        )
        return withdrawal

    async def reject_withdrawal(
        self, actor: Actor, withdrawal_id: int, reject_data: WithdrawalReject
    ) -> Withdrawal:
        reason = (reject_data.rejection_reason or "").strip()
        if not reason:
            raise MissingFieldException("rejection_reason")

        withdrawal = await self._load_for_transition(
            actor, withdrawal_id, Action.REJECT_WITHDRAWAL, "reject"
        )
        await self.ledger_service.create_release_entry(withdrawal)

        return await self._apply_transition(
            withdrawal,
            "reject",
            rejection_reason=reason,
            processed_by=actor.id,
            processed_at=utcnow(),
        )

    async def complete_withdrawal(
        self, actor: Actor, withdrawal_id: int, complete_data: WithdrawalComplete
    ) -> Withdrawal:
        reference = (complete_data.transaction_reference or "").strip()
        if not reference:
            raise MissingFieldException("transaction_reference")

        withdrawal = await self._load_for_transition(
            actor, withdrawal_id, Action.COMPLETE_WITHDRAWAL, "complete"
        )
        now = utcnow()
        items_paid = await self.ledger_service.allocate_payout(withdrawal, now)
        await self.ledger_service.create_settle_entry(withdrawal)

        withdrawal = await self._apply_transition(
            withdrawal,
            "complete",
            transaction_reference=reference,
            processed_by=actor.id,
            completed_at=now,
        )
        logger.info(
            "Withdrawal paid out withdrawal_id=%s allocations=%s items_paid=%s",
            withdrawal.id,
            len(withdrawal.allocations),
            items_paid,
            extra={"withdrawal_id": withdrawal.id, "items_paid": items_paid},
        )
        return withdrawal

    async def cancel_withdrawal(self, actor: Actor, withdrawal_id: int) -> Withdrawal:
        withdrawal = await self._load_for_transition(
            actor, withdrawal_id, Action.CANCEL_WITHDRAWAL, "cancel"
        )
        await self.ledger_service.create_release_entry(withdrawal)

        return await self._apply_transition(
            withdrawal, "cancel", cancelled_at=utcnow()
        )

    async def get_withdrawal(self, actor: Actor, withdrawal_id: int) -> Withdrawal:
        withdrawal = await self.withdrawal_repo.get_by_id(withdrawal_id)
        if withdrawal is None:
            raise WithdrawalNotFoundException(withdrawal_id)
        ensure_authorized(actor, Action.VIEW_WITHDRAWAL, withdrawal)
        return withdrawal

    async def list_withdrawals(
        self,
        actor: Actor,
        status: Optional[WithdrawalStatus] = None,
        photographer_id: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> tuple[list[Withdrawal], int]:
        if actor.role == Role.PHOTOGRAPHER and photographer_id is None:
            photographer_id = actor.id
        ensure_authorized(actor, Action.LIST_WITHDRAWALS, photographer_id)

        return await self.withdrawal_repo.list_withdrawals(
            status=status,
            photographer_id=photographer_id,
            page=page,
            per_page=per_page or settings.withdrawal_page_size,
        )

    async def list_pending(
        self, actor: Actor, page: int = 1, per_page: Optional[int] = None
    ) -> tuple[list[Withdrawal], int]:
        """Admin review queue, oldest request first."""
        ensure_authorized(actor, Action.APPROVE_WITHDRAWAL)
        return await self.withdrawal_repo.list_withdrawals(
            status=WithdrawalStatus.PENDING,
            page=page,
            per_page=per_page or settings.withdrawal_page_size,
            oldest_first=True,
        )

    async def _load_for_transition(
        self, actor: Actor, withdrawal_id: int, action: Action, transition: str
    ) -> Withdrawal:
        withdrawal = await self.withdrawal_repo.get_for_update(withdrawal_id)
        if withdrawal is None:
            raise WithdrawalNotFoundException(withdrawal_id)
        ensure_authorized(actor, action, withdrawal)

        required, _ = TRANSITIONS[transition]
        if withdrawal.status != required:
            current = WithdrawalStatus(withdrawal.status).value
            logger.warning(
                "Invalid withdrawal transition withdrawal_id=%s action=%s status=%s",
                withdrawal.id,
                transition,
                current,
                extra={
                    "withdrawal_id": withdrawal.id,
                    "action": transition,
                    "status": current,
                },
            )
            raise InvalidWithdrawalTransitionException(
                withdrawal.id, current, transition
            )

        photographer = await self._lock_photographer(withdrawal.photographer_id)
        await self._touch_ledger(photographer, transition)
        return withdrawal

    async def _apply_transition(
        self, withdrawal: Withdrawal, transition: str, **fields
    ) -> Withdrawal:
        _, target = TRANSITIONS[transition]
        withdrawal = await self.withdrawal_repo.update_status(
            withdrawal, target, **fields
        )
        await self._refresh_reserved_gauge()
        logger.info(
            "Withdrawal %s withdrawal_id=%s photographer_id=%s amount=%s",
            target.value,
            withdrawal.id,
            withdrawal.photographer_id,
            withdrawal.amount,
            extra={
                "withdrawal_id": withdrawal.id,
                "photographer_id": withdrawal.photographer_id,
                "status": target.value,
            },
        )
        return withdrawal

    async def _ensure_still_funded(self, withdrawal: Withdrawal) -> None:
        """A refund can shrink revenue under a pending request.

        Available is already net of this request's own reservation, so the
        request may claim available plus its own amount.
        """
        balance = await self.balance_calculator.get_balance(
            withdrawal.photographer_id, withdrawal.currency
        )
        claimable = balance.available + withdrawal.amount
        if claimable < withdrawal.amount:
            logger.warning(
                "Withdrawal no longer funded withdrawal_id=%s photographer_id=%s claimable=%s amount=%s",
                withdrawal.id,
                withdrawal.photographer_id,
                claimable,
                withdrawal.amount,
                extra={
                    "withdrawal_id": withdrawal.id,
                    "photographer_id": withdrawal.photographer_id,
                    "claimable": claimable,
                    "amount": withdrawal.amount,
                },
            )
            raise InsufficientBalanceException(
                withdrawal.photographer_id, max(claimable, 0), withdrawal.amount
            )

    async def _lock_photographer(self, photographer_id: str) -> Photographer:
        photographer = await self.photographer_repo.get_for_update(photographer_id)
        if photographer is None:
            raise PhotographerNotFoundException(photographer_id)
        return photographer

    async def _touch_ledger(self, photographer: Photographer, operation: str) -> None:
        try:
            await self.photographer_repo.touch_ledger(photographer)
        except StaleDataError as exc:
            logger.warning(
                "Concurrent ledger update detected photographer_id=%s operation=%s",
                photographer.id,
                operation,
                extra={"photographer_id": photographer.id, "operation": operation},
            )
            raise ConcurrencyConflictException(photographer.id, operation) from exc

    async def _refresh_reserved_gauge(self) -> None:
        reserved_funds_total.set(await self.ledger_repo.get_total_reserved())
