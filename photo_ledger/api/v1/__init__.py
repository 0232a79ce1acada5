from fastapi import APIRouter

from photo_ledger.api.v1 import orders, payments, photographers, withdrawals

api_router = APIRouter()

api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(
    photographers.router, prefix="/photographers", tags=["photographers"]
)
api_router.include_router(
    withdrawals.router, prefix="/withdrawals", tags=["withdrawals"]
)
