from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict


class PurchaseCreate(BaseModel):
    """A payable debt to split into monthly installments."""
    total_amount: Decimal
    installment_count: int
    first_due_date: date
    supplier_id: Optional[str] = None
    supplier_name: str
    description: str
    category: Optional[str] = None
    notes: Optional[str] = None
    expense_id: Optional[str] = None
    due_dates: Optional[List[Optional[date]]] = None


class InstallmentUpdate(BaseModel):
    description: Optional[str] = None
    supplier_name: Optional[str] = None
    amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    category: Optional[str] = None
    notes: Optional[str] = None


class PurchaseEdits(BaseModel):
    """Fields shared by every installment of a purchase."""
    supplier_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None


class InstallmentOverride(BaseModel):
    amount: Optional[Decimal] = None
    due_date: Optional[date] = None


class PurchaseReplan(BaseModel):
    installment_ids: List[str]
    new_total_amount: Optional[Decimal] = None
    new_installment_count: Optional[int] = None
    new_dates: Optional[List[Optional[date]]] = None
    common_edits: Optional[PurchaseEdits] = None
    installment_updates: Dict[str, InstallmentOverride] = {}


class PurchaseDelete(BaseModel):
    installment_ids: List[str]


class InstallmentResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    purchase_id: str
    expense_id: Optional[str] = None
    supplier_id: Optional[str] = None
    supplier_name: str
    description: str
    category: Optional[str] = None
    notes: Optional[str] = None
    installment_number: int
    total_installments: int
    amount_cents: int
    total_amount_cents: int
    due_date: date
    paid: bool
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class PendingTotalResponse(BaseModel):
    count: int
    total_cents: int
