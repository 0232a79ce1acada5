from photo_ledger.services.balance_calculator import BalanceCalculator
from photo_ledger.services.commission import CommissionSplit, compute_split
from photo_ledger.services.ledger_service import LedgerService
from photo_ledger.services.order_processor import OrderProcessor
from photo_ledger.services.photographer_service import PhotographerService
from photo_ledger.services.revenue_reporter import RevenueReporter
from photo_ledger.services.withdrawal_service import WithdrawalService

__all__ = [
    "BalanceCalculator",
    "CommissionSplit",
    "compute_split",
    "LedgerService",
    "OrderProcessor",
    "PhotographerService",
    "RevenueReporter",
    "WithdrawalService",
]
