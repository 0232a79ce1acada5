from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from photo_ledger.core.enums import LicenseType, NotificationStatus, OrderPaymentStatus
from photo_ledger.schemas.common import response_meta


class OrderItemCreate(BaseModel):
    photo_id: str = Field(..., min_length=1, max_length=50)
    photographer_id: str = Field(..., pattern=r"^pht_", max_length=50)
    license_type: LicenseType
    price: int = Field(..., gt=0)


class OrderCreate(BaseModel):
    buyer_id: str = Field(..., min_length=1, max_length=50)
    currency: Optional[str] = Field(default=None, pattern=r"^[A-Z]{3}$")
    subtotal: int = Field(..., gt=0)
    tax: int = Field(default=0, ge=0)
    discount: int = Field(default=0, ge=0)
    total: int = Field(..., ge=0)
    items: list[OrderItemCreate] = Field(..., min_length=1)
    metadata: Optional[dict] = None


class LineItemResponse(BaseModel):
    id: int
    order_id: str
    photo_id: str
    photographer_id: str
    license_type: LicenseType
    currency: str
    price: int
    photographer_amount: Optional[int] = None
    platform_commission: Optional[int] = None
    commission_bps: Optional[int] = None
    available_at: Optional[datetime] = None
    paid: bool
    paid_at: Optional[datetime] = None
    payout_withdrawal_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    currency: str
    subtotal: int
    tax: int
    discount: int
    total: int
    payment_status: OrderPaymentStatus
    payment_reference: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    items: list[LineItemResponse] = Field(default_factory=list)
    meta: dict = Field(default_factory=response_meta)

    model_config = ConfigDict(from_attributes=True)


class PaymentNotificationCreate(BaseModel):
    notification_id: str = Field(..., min_length=1, max_length=100)
    order_id: str = Field(..., pattern=r"^ord_", max_length=50)
    status: NotificationStatus
    occurred_at: datetime
    provider_reference: Optional[str] = Field(default=None, max_length=100)
    payload: Optional[dict] = None


class PaymentNotificationResponse(BaseModel):
    id: int
    notification_id: str
    order_id: str
    status: NotificationStatus
    provider_reference: Optional[str] = None
    occurred_at: datetime
    created_at: datetime
    order_payment_status: OrderPaymentStatus
    idempotent: bool = False
    meta: dict = Field(default_factory=response_meta)
