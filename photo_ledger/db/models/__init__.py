from photo_ledger.db.models.ledger_entry import LedgerEntry
from photo_ledger.db.models.order import Order
from photo_ledger.db.models.payment_notification import PaymentNotification
from photo_ledger.db.models.payout_allocation import PayoutAllocation
from photo_ledger.db.models.photographer import Photographer
from photo_ledger.db.models.sale_line_item import SaleLineItem
from photo_ledger.db.models.withdrawal import Withdrawal

__all__ = [
    "LedgerEntry",
    "Order",
    "PaymentNotification",
    "PayoutAllocation",
    "Photographer",
    "SaleLineItem",
    "Withdrawal",
]
