from photo_ledger.schemas.balance import PhotographerBalance
from photo_ledger.schemas.common import ErrorDetail, ErrorResponse
from photo_ledger.schemas.orders import (
    LineItemResponse,
    OrderCreate,
    OrderItemCreate,
    OrderResponse,
    PaymentNotificationCreate,
    PaymentNotificationResponse,
)
from photo_ledger.schemas.photographers import (
    CommissionUpdate,
    PhotographerCreate,
    PhotographerResponse,
)
from photo_ledger.schemas.revenue import (
    MonthlyRevenue,
    MonthlyRevenueList,
    RevenueItem,
    RevenueItemList,
    RevenueStatistics,
)
from photo_ledger.schemas.withdrawals import (
    WithdrawalApprove,
    WithdrawalComplete,
    WithdrawalCreate,
    WithdrawalList,
    WithdrawalReject,
    WithdrawalResponse,
)

__all__ = [
    "PhotographerBalance",
    "ErrorDetail",
    "ErrorResponse",
    "LineItemResponse",
    "OrderCreate",
    "OrderItemCreate",
    "OrderResponse",
    "PaymentNotificationCreate",
    "PaymentNotificationResponse",
    "CommissionUpdate",
    "PhotographerCreate",
    "PhotographerResponse",
    "MonthlyRevenue",
    "MonthlyRevenueList",
    "RevenueItem",
    "RevenueItemList",
    "RevenueStatistics",
    "WithdrawalApprove",
    "WithdrawalComplete",
    "WithdrawalCreate",
    "WithdrawalList",
    "WithdrawalReject",
    "WithdrawalResponse",
]
