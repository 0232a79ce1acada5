from enum import Enum


class OrderPaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class NotificationStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class LicenseType(str, Enum):
    STANDARD = "standard"
    EXTENDED = "extended"


class EntryType(str, Enum):
    WITHDRAWAL_RESERVE = "withdrawal_reserve"
    WITHDRAWAL_RELEASE = "withdrawal_release"
    WITHDRAWAL_SETTLE = "withdrawal_settle"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"


class RevenueItemState(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    PAID = "paid"


class Role(str, Enum):
    ADMIN = "admin"
    PHOTOGRAPHER = "photographer"
    BUYER = "buyer"


class Action(str, Enum):
    VIEW_BALANCE = "view_balance"
    VIEW_REVENUE = "view_revenue"
    LIST_WITHDRAWALS = "list_withdrawals"
    VIEW_WITHDRAWAL = "view_withdrawal"
    CREATE_WITHDRAWAL = "create_withdrawal"
    CANCEL_WITHDRAWAL = "cancel_withdrawal"
    APPROVE_WITHDRAWAL = "approve_withdrawal"
    REJECT_WITHDRAWAL = "reject_withdrawal"
    COMPLETE_WITHDRAWAL = "complete_withdrawal"
    MANAGE_PHOTOGRAPHER = "manage_photographer"
    SET_COMMISSION = "set_commission"
