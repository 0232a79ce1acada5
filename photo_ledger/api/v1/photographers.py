from datetime import datetime
from typing import Optional

from fastapi import APIRouter, status

from photo_ledger.api.dependencies import ActorDep, SessionDep
from photo_ledger.core.enums import RevenueItemState
from photo_ledger.schemas.balance import PhotographerBalance
from photo_ledger.schemas.photographers import (
    CommissionUpdate,
    PhotographerCreate,
    PhotographerResponse,
)
from photo_ledger.schemas.revenue import (
    MonthlyRevenueList,
    RevenueItemList,
    RevenueStatistics,
)
from photo_ledger.services.photographer_service import PhotographerService
from photo_ledger.services.revenue_reporter import RevenueReporter

router = APIRouter()


@router.post(
    "", response_model=PhotographerResponse, status_code=status.HTTP_201_CREATED
)
async def register_photographer(
    photographer_data: PhotographerCreate, session: SessionDep, actor: ActorDep
) -> PhotographerResponse:
    async with session.begin():
        service = PhotographerService(session)
        photographer = await service.register(actor, photographer_data)
        return PhotographerResponse.model_validate(photographer)


@router.get("/{photographer_id}", response_model=PhotographerResponse)
async def get_photographer(
    photographer_id: str, session: SessionDep, actor: ActorDep
) -> PhotographerResponse:
    photographer = await PhotographerService(session).get(actor, photographer_id)
    return PhotographerResponse.model_validate(photographer)


@router.put("/{photographer_id}/commission", response_model=PhotographerResponse)
async def update_commission(
    photographer_id: str,
    commission_data: CommissionUpdate,
    session: SessionDep,
    actor: ActorDep,
) -> PhotographerResponse:
    async with session.begin():
        service = PhotographerService(session)
        photographer = await service.update_commission(
            actor, photographer_id, commission_data
        )
        return PhotographerResponse.model_validate(photographer)


@router.get("/{photographer_id}/balance", response_model=PhotographerBalance)
async def get_photographer_balance(
    photographer_id: str,
    session: SessionDep,
    actor: ActorDep,
    currency: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> PhotographerBalance:
    service = PhotographerService(session)
    return await service.get_balance(actor, photographer_id, currency, as_of)


@router.get(
    "/{photographer_id}/revenue/statistics", response_model=RevenueStatistics
)
async def get_revenue_statistics(
    photographer_id: str,
    session: SessionDep,
    actor: ActorDep,
    currency: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> RevenueStatistics:
    reporter = RevenueReporter(session)
    return await reporter.get_statistics(actor, photographer_id, currency, as_of)


@router.get("/{photographer_id}/revenue/items", response_model=RevenueItemList)
async def list_revenue_items(
    photographer_id: str,
    session: SessionDep,
    actor: ActorDep,
    state: Optional[RevenueItemState] = None,
    currency: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> RevenueItemList:
    reporter = RevenueReporter(session)
    return await reporter.list_items(actor, photographer_id, state, currency, as_of)


@router.get("/{photographer_id}/revenue/monthly", response_model=MonthlyRevenueList)
async def get_monthly_revenue(
    photographer_id: str,
    session: SessionDep,
    actor: ActorDep,
    currency: Optional[str] = None,
) -> MonthlyRevenueList:
    reporter = RevenueReporter(session)
    return await reporter.get_monthly_history(actor, photographer_id, currency)
