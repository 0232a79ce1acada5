from fastapi import APIRouter, status

from photo_ledger.api.dependencies import SessionDep
from photo_ledger.schemas.orders import OrderCreate, OrderResponse
from photo_ledger.services.order_processor import OrderProcessor

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def register_order(order_data: OrderCreate, session: SessionDep) -> OrderResponse:
    async with session.begin():
        order = await OrderProcessor(session).register_order(order_data)
        return OrderResponse.model_validate(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, session: SessionDep) -> OrderResponse:
    order = await OrderProcessor(session).get_order(order_id)
    return OrderResponse.model_validate(order)
