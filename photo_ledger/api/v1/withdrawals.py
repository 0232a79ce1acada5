from typing import Optional

from fastapi import APIRouter, Query, status

from photo_ledger.api.dependencies import ActorDep, SessionDep
from photo_ledger.core.config import settings
from photo_ledger.core.enums import WithdrawalStatus
from photo_ledger.db.models import Withdrawal
from photo_ledger.schemas.withdrawals import (
    WithdrawalApprove,
    WithdrawalComplete,
    WithdrawalCreate,
    WithdrawalList,
    WithdrawalReject,
    WithdrawalResponse,
)
from photo_ledger.services.withdrawal_service import WithdrawalService

router = APIRouter()


@router.post("", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    withdrawal_data: WithdrawalCreate, session: SessionDep, actor: ActorDep
) -> WithdrawalResponse:
    async with session.begin():
        service = WithdrawalService(session)
        withdrawal = await service.create_withdrawal(actor, withdrawal_data)
        return WithdrawalResponse.model_validate(withdrawal)


@router.get("", response_model=WithdrawalList)
async def list_withdrawals(
    session: SessionDep,
    actor: ActorDep,
    withdrawal_status: Optional[WithdrawalStatus] = Query(default=None, alias="status"),
    photographer_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1, le=100),
) -> WithdrawalList:
    service = WithdrawalService(session)
    withdrawals, total = await service.list_withdrawals(
        actor, withdrawal_status, photographer_id, page, per_page
    )
    return _withdrawal_page(withdrawals, total, page, per_page)


@router.get("/pending", response_model=WithdrawalList)
async def list_pending_withdrawals(
    session: SessionDep,
    actor: ActorDep,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1, le=100),
) -> WithdrawalList:
    service = WithdrawalService(session)
    withdrawals, total = await service.list_pending(actor, page, per_page)
    return _withdrawal_page(withdrawals, total, page, per_page)


@router.get("/{withdrawal_id}", response_model=WithdrawalResponse)
async def get_withdrawal(
    withdrawal_id: int, session: SessionDep, actor: ActorDep
) -> WithdrawalResponse:
    withdrawal = await WithdrawalService(session).get_withdrawal(actor, withdrawal_id)
    return WithdrawalResponse.model_validate(withdrawal)


@router.post("/{withdrawal_id}/approve", response_model=WithdrawalResponse)
async def approve_withdrawal(
    withdrawal_id: int,
    approve_data: WithdrawalApprove,
    session: SessionDep,
    actor: ActorDep,
) -> WithdrawalResponse:
    async with session.begin():
        service = WithdrawalService(session)
        withdrawal = await service.approve_withdrawal(
            actor, withdrawal_id, approve_data
        )
        return WithdrawalResponse.model_validate(withdrawal)


@router.post("/{withdrawal_id}/reject", response_model=WithdrawalResponse)
async def reject_withdrawal(
    withdrawal_id: int,
    reject_data: WithdrawalReject,
    session: SessionDep,
    actor: ActorDep,
) -> WithdrawalResponse:
    async with session.begin():
        service = WithdrawalService(session)
        withdrawal = await service.reject_withdrawal(actor, withdrawal_id, reject_data)
        return WithdrawalResponse.model_validate(withdrawal)


@router.post("/{withdrawal_id}/complete", response_model=WithdrawalResponse)
async def complete_withdrawal(
    withdrawal_id: int,
    complete_data: WithdrawalComplete,
    session: SessionDep,
    actor: ActorDep,
) -> WithdrawalResponse:
    async with session.begin():
        service = WithdrawalService(session)
        withdrawal = await service.complete_withdrawal(
            actor, withdrawal_id, complete_data
        )
        return WithdrawalResponse.model_validate(withdrawal)


@router.delete("/{withdrawal_id}", response_model=WithdrawalResponse)
async def cancel_withdrawal(
    withdrawal_id: int, session: SessionDep, actor: ActorDep
) -> WithdrawalResponse:
    async with session.begin():
        service = WithdrawalService(session)
        withdrawal = await service.cancel_withdrawal(actor, withdrawal_id)
        return WithdrawalResponse.model_validate(withdrawal)


def _withdrawal_page(
    withdrawals: list[Withdrawal], total: int, page: int, per_page: Optional[int]
) -> WithdrawalList:
    return WithdrawalList(
        items=[WithdrawalResponse.model_validate(w) for w in withdrawals],
        total=total,
        page=page,
        per_page=per_page or settings.withdrawal_page_size,
    )
