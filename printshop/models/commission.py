from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class SellerCommission(BaseModel):
    """Commission owed to one seller over a period. Derived, never stored."""
    seller_id: str
    seller_name: Optional[str] = None
    total_sales_cents: int
    commission_cents: int
    orders_count: int
    order_ids: List[str] = []


class CommissionSummary(BaseModel):
    total_sales_cents: int = 0
    total_commission_cents: int = 0
    orders_count: int = 0
    rate: Decimal = Decimal("0")


class Seller(BaseModel):
    seller_id: str
    seller_name: Optional[str] = None
