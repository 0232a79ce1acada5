from typing import Any, Optional


class BaseAPIException(Exception):
    """
    Base exception for all API errors.

    Provides consistent structure with status_code, error_code, and details.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}


class ValidationException(BaseAPIException):
    """Invalid input data (HTTP 422)."""

    status_code = 422
    error_code = "VALIDATION_ERROR"


class BusinessException(BaseAPIException):
    """Business rule violation (HTTP 409)."""

    status_code = 409
    error_code = "BUSINESS_RULE_VIOLATION"


class PreconditionFailedException(BusinessException):
    """Operation not allowed in the current state of the resource."""

    error_code = "PRECONDITION_FAILED"


class ConcurrencyConflictException(BusinessException):
    """Another transaction changed the same ledger first. Safe to retry."""

    error_code = "CONCURRENT_LEDGER_UPDATE"

    def __init__(self, photographer_id: str, operation: str):
        super().__init__(
            message="Ledger was modified concurrently, retry the request",
            details={
                "photographer_id": photographer_id,
                "operation": operation,
                "retryable": True,
            },
        )


class NotFoundException(BaseAPIException):
    """Resource not found (HTTP 404)."""

    status_code = 404
    error_code = "RESOURCE_NOT_FOUND"


class ForbiddenException(BaseAPIException):
    """Actor lacks the capability for the action (HTTP 403)."""

    status_code = 403
    error_code = "FORBIDDEN"


# Domain-specific exceptions
class InvalidAmountException(ValidationException):
    """Amount must be a positive integer."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, field: str, value: int):
        super().__init__(
            message=f"{field} must be greater than zero",
            details={"field": field, "value": value},
        )


class InvalidCommissionRateException(ValidationException):
    error_code = "INVALID_COMMISSION_RATE"

    def __init__(self, commission_bps: int):
        super().__init__(
            message="Commission rate must be between 0 and 10000 basis points",
            details={"commission_bps": commission_bps},
        )


class WithdrawalBelowMinimumException(ValidationException):
    """Requested amount is lower than the canonical minimum."""

    error_code = "WITHDRAWAL_BELOW_MINIMUM"

    def __init__(self, amount: int, minimum: int):
        super().__init__(
            message=f"Withdrawal amount must be at least {minimum}",
            details={"amount": amount, "minimum": minimum},
        )


class MissingFieldException(ValidationException):
    error_code = "MISSING_REQUIRED_FIELD"

    def __init__(self, field: str):
        super().__init__(
            message=f"Field is required: {field}",
            details={"field": field},
        )


class OrderTotalsMismatchException(ValidationException):
    error_code = "ORDER_TOTALS_MISMATCH"

    def __init__(self, message: str, details: dict[str, Any]):
        super().__init__(message=message, details=details)


class InsufficientBalanceException(PreconditionFailedException):
    """Withdrawal amount exceeds available balance."""

    error_code = "WITHDRAWAL_INSUFFICIENT_BALANCE"

    def __init__(self, photographer_id: str, available: int, required: int):
        super().__init__(
            message="Insufficient available balance for withdrawal",
            details={
                "photographer_id": photographer_id,
                "available": available,
                "required": required,
            },
        )


class InvalidWithdrawalTransitionException(PreconditionFailedException):
    error_code = "WITHDRAWAL_INVALID_TRANSITION"

    def __init__(self, withdrawal_id: int, current_status: str, action: str):
        super().__init__(
            message=f"Cannot {action} a withdrawal with status {current_status}",
            details={
                "withdrawal_id": withdrawal_id,
                "current_status": current_status,
                "action": action,
            },
        )


class InvalidOrderTransitionException(PreconditionFailedException):
    error_code = "ORDER_INVALID_TRANSITION"

    def __init__(self, order_id: str, current_status: str, target_status: str):
        super().__init__(
            message=f"Cannot move order from {current_status} to {target_status}",
            details={
                "order_id": order_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class OrderAlreadyPaidOutException(PreconditionFailedException):
    """Refund refused: the order's revenue already funded a payout."""

    error_code = "ORDER_ALREADY_PAID_OUT"

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Order revenue already paid out: {order_id}",
            details={"order_id": order_id, "current_status": "completed"},
        )


class PhotographerNotFoundException(NotFoundException):
    """Photographer ID not found in database."""

    error_code = "PHOTOGRAPHER_NOT_FOUND"

    def __init__(self, photographer_id: str):
        super().__init__(
            message=f"Photographer not found: {photographer_id}",
            details={"photographer_id": photographer_id},
        )


class OrderNotFoundException(NotFoundException):
    error_code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        super().__init__(
            message=f"Order not found: {order_id}",
            details={"order_id": order_id},
        )


class WithdrawalNotFoundException(NotFoundException):
    error_code = "WITHDRAWAL_NOT_FOUND"

    def __init__(self, withdrawal_id: int):
        super().__init__(
            message=f"Withdrawal not found: {withdrawal_id}",
            details={"withdrawal_id": withdrawal_id},
        )


class DuplicatePhotographerException(BusinessException):
    error_code = "PHOTOGRAPHER_ALREADY_EXISTS"

    def __init__(self, photographer_id: str):
        super().__init__(
            message=f"Photographer already exists: {photographer_id}",
            details={"photographer_id": photographer_id},
        )


class ActionNotAllowedException(ForbiddenException):
    error_code = "ACTION_NOT_ALLOWED"

    def __init__(self, actor_id: str, action: str, reason: str):
        super().__init__(
            message=f"Not allowed to {action}: {reason}",
            details={"actor_id": actor_id, "action": action},
        )
