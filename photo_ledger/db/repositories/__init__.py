from photo_ledger.db.repositories.ledger_repository import (
    BalanceSummary,
    LedgerRepository,
)
from photo_ledger.db.repositories.notification_repository import (
    NotificationRepository,
)
from photo_ledger.db.repositories.order_repository import OrderRepository
from photo_ledger.db.repositories.photographer_repository import (
    PhotographerRepository,
)
from photo_ledger.db.repositories.withdrawal_repository import WithdrawalRepository

__all__ = [
    "BalanceSummary",
    "LedgerRepository",
    "NotificationRepository",
    "OrderRepository",
    "PhotographerRepository",
    "WithdrawalRepository",
]
