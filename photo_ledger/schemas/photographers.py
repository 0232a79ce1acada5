from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from photo_ledger.schemas.common import response_meta


class PhotographerCreate(BaseModel):
    id: str = Field(..., pattern=r"^pht_", max_length=50)
    display_name: str = Field(..., min_length=1, max_length=255)
    commission_bps: Optional[int] = Field(default=None, ge=0, le=10000)
    metadata: Optional[dict] = None


class CommissionUpdate(BaseModel):
    commission_bps: int = Field(..., ge=0, le=10000)


class PhotographerResponse(BaseModel):
    id: str
    display_name: str
    commission_bps: int
    total_sales: int
    total_revenue: int
    is_active: bool
    created_at: datetime
    meta: dict = Field(default_factory=response_meta)

    model_config = ConfigDict(from_attributes=True)
