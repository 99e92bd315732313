from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict


class ExpenseCreate(BaseModel):
    description: str
    amount: Decimal
    supplier_id: Optional[str] = None
    supplier_name: str = ""
    category: Optional[str] = None
    date: Optional[datetime] = None


class ExpenseResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    supplier_id: Optional[str] = None
    supplier_name: str
    description: str
    amount_cents: int
    date: datetime
    category: str

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class FixedExpenseCreate(BaseModel):
    name: str
    amount: Decimal
    due_day: int
    category: Optional[str] = None
    active: bool = True


class FixedExpenseUpdate(BaseModel):
    name: Optional[str] = None
    amount: Optional[Decimal] = None
    due_day: Optional[int] = None
    category: Optional[str] = None
    active: Optional[bool] = None


class FixedExpenseResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    amount_cents: int
    due_day: int
    category: str
    active: bool

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ExpenseTotals(BaseModel):
    total_expenses_cents: int
    total_fixed_cents: int
    supplier_balances: Dict[str, int]
