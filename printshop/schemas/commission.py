from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from printshop.models.commission import CommissionSummary, SellerCommission


class CommissionReport(BaseModel):
    period: str
    period_start: datetime
    period_end: datetime
    commissions: List[SellerCommission]
    summary: CommissionSummary


class CommissionPayRequest(BaseModel):
    """Pay one seller's commission for a month."""
    seller_id: str
    year: int
    month: int = Field(ge=1, le=12)
    rate: Optional[Decimal] = None
