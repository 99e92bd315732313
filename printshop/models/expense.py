from typing import Optional
from datetime import datetime, timezone

from pydantic import Field

from printshop.models.base import StoredModel

COMMISSION_CATEGORY = "Comissão"


class Expense(StoredModel):
    """Money out of the cash flow (supplier bills, commission payouts)."""
    supplier_id: Optional[str] = None
    supplier_name: str = ""
    description: str
    amount_cents: int
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    category: str = "Outros"


class FixedExpense(StoredModel):
    """Recurring monthly bill template. Not an installment."""
    name: str
    amount_cents: int
    due_day: int  # 1..31
    category: str = "Geral"
    active: bool = True
