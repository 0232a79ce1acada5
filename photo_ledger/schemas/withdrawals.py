from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from photo_ledger.core.enums import PaymentMethod, WithdrawalStatus
from photo_ledger.schemas.common import response_meta


class WithdrawalCreate(BaseModel):
    amount: int
    currency: Optional[str] = Field(default=None, pattern=r"^[A-Z]{3}$")
    payment_method: PaymentMethod
    payment_details: dict = Field(..., min_length=1)


class WithdrawalApprove(BaseModel):
    transaction_reference: Optional[str] = Field(default=None, max_length=255)
    admin_notes: Optional[str] = Field(default=None, max_length=500)


class WithdrawalReject(BaseModel):
    rejection_reason: Optional[str] = Field(default=None, max_length=500)


class WithdrawalComplete(BaseModel):
    transaction_reference: Optional[str] = Field(default=None, max_length=255)


class WithdrawalResponse(BaseModel):
    class Allocation(BaseModel):
        line_item_id: int
        amount: int

        model_config = ConfigDict(from_attributes=True)

    id: int
    photographer_id: str
    amount: int
    currency: str
    status: WithdrawalStatus
    payment_method: PaymentMethod
    payment_details: dict
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    transaction_reference: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    allocations: list[Allocation] = Field(default_factory=list)
    meta: dict = Field(default_factory=response_meta)

    model_config = ConfigDict(from_attributes=True)


class WithdrawalList(BaseModel):
    items: list[WithdrawalResponse]
    total: int
    page: int
    per_page: int
    meta: dict = Field(default_factory=response_meta)
