"""
Purchase and installment models - a payable debt split into dated slices.

A Purchase owns its PendingInstallment rows through purchase_id.
At creation sum(amount_cents) over a purchase == total_amount_cents.
Later per-row edits are allowed to break that sum.
"""

from typing import Optional
from datetime import date, datetime

from printshop.models.base import StoredModel


class Purchase(StoredModel):
    supplier_id: Optional[str] = None
    supplier_name: str
    description: str
    category: Optional[str] = None
    notes: Optional[str] = None
    expense_id: Optional[str] = None
    total_amount_cents: int
    total_installments: int


class PendingInstallment(StoredModel):
    purchase_id: str
    expense_id: Optional[str] = None
    supplier_id: Optional[str] = None
    supplier_name: str
    description: str
    category: Optional[str] = None
    notes: Optional[str] = None

    installment_number: int  # 1-based
    total_installments: int
    amount_cents: int
    total_amount_cents: int  # copied from the purchase for display
    due_date: date

    paid: bool = False
    paid_at: Optional[datetime] = None
