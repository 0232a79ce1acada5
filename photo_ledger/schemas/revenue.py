from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from photo_ledger.core.enums import LicenseType
from photo_ledger.schemas.balance import PhotographerBalance
from photo_ledger.schemas.common import response_meta


class RevenueStatistics(BaseModel):
    photographer_id: str
    breakdown: PhotographerBalance
    total_sales: int
    average_per_sale: float
    last_payout_at: Optional[datetime] = None
    meta: dict = Field(default_factory=response_meta)


class RevenueItem(BaseModel):
    id: int
    order_id: str
    photo_id: str
    license_type: LicenseType
    price: int
    photographer_amount: int
    platform_commission: int
    commission_bps: int
    allocated: int
    available_at: datetime
    days_until_available: int
    paid: bool
    paid_at: Optional[datetime] = None
    payout_withdrawal_id: Optional[int] = None


class RevenueItemList(BaseModel):
    photographer_id: str
    state: Optional[str] = None
    items: list[RevenueItem]
    meta: dict = Field(default_factory=response_meta)


class MonthlyRevenue(BaseModel):
    month: date
    sales_count: int
    photos_sold: int
    gross: int
    commission: int
    net: int


class MonthlyRevenueList(BaseModel):
    photographer_id: str
    currency: str
    months: list[MonthlyRevenue]
    meta: dict = Field(default_factory=response_meta)
