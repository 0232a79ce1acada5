from tests.utils.factories import (
    NotificationFactory,
    OrderFactory,
    PhotographerFactory,
    WithdrawalFactory,
)
from tests.utils.helpers import (
    ADMIN_HEADERS,
    assert_balance_conserved,
    create_completed_order,
    create_withdrawals_concurrent,
    get_balance,
    photographer_headers,
    register_photographer,
)

__all__ = [
    "NotificationFactory",
    "OrderFactory",
    "PhotographerFactory",
    "WithdrawalFactory",
    "ADMIN_HEADERS",
    "assert_balance_conserved",
    "create_completed_order",
    "create_withdrawals_concurrent",
    "get_balance",
    "photographer_headers",
    "register_photographer",
]
