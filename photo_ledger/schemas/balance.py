from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from photo_ledger.schemas.common import response_meta


class PhotographerBalance(BaseModel):
    photographer_id: str
    currency: str
    available: int
    pending: int
    reserved: int
    paid: int
    lifetime_total: int
    as_of: datetime
    hold_period_days: int
    last_sale_at: Optional[datetime] = None
    meta: dict = Field(default_factory=response_meta)
