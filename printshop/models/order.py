"""
Service order model - a sale with a running payment balance.

Design principles:
- All amounts in integer cents
- total_cents is always the sum of item totals
- remaining_cents = max(0, total_cents - amount_paid_cents)
- payment_status is derived from total and amount paid, never set directly
- payments is append-only
- fulfillment_status is independent of payment state
"""

from typing import Annotated, List, Literal, Optional, Union
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from printshop.models.base import StoredModel, new_id

GUEST_CUSTOMER = "guest"
DEFAULT_CUSTOMER_NAME = "Consumidor Final"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class FulfillmentStatus(str, Enum):
    PENDING = "pending"
    PRODUCTION = "production"
    FINISHED = "finished"
    DELIVERED = "delivered"


class PaymentMethod(str, Enum):
    CASH = "cash"
    PIX = "pix"
    CARD = "card"


class OrderItem(BaseModel):
    item_id: str = Field(default_factory=new_id)
    product_id: Optional[str] = None
    name: str
    quantity: float  # meter-priced items use fractional quantities
    unit_price_cents: int
    total_cents: int
    variation_name: Optional[str] = None
    finishing: Optional[str] = None
    dimensions: Optional[str] = None
    custom_description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None


class CashPayment(BaseModel):
    """Money actually received."""
    kind: Literal["payment"] = "payment"
    id: str = Field(default_factory=new_id)
    amount_cents: int
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    method: PaymentMethod


class InstallmentRecord(BaseModel):
    """A receivable slice scheduled at sale time. Not money received."""
    kind: Literal["installment"] = "installment"
    id: str = Field(default_factory=new_id)
    number: int
    amount_cents: int
    due_date: Optional[date] = None


PaymentEvent = Annotated[
    Union[CashPayment, InstallmentRecord],
    Field(discriminator="kind")
]


def remaining_cents_for(total_cents: int, amount_paid_cents: int) -> int:
    return max(0, total_cents - amount_paid_cents)


def derive_payment_status(total_cents: int, amount_paid_cents: int) -> PaymentStatus:
    """Payment status as a pure function of total and amount paid.

    Nothing paid is always pending, even on a zero-total order.
    """
    if amount_paid_cents > 0 and remaining_cents_for(total_cents, amount_paid_cents) == 0:
        return PaymentStatus.PAID
    if amount_paid_cents > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


class ServiceOrder(StoredModel):
    """
    A sale.

    Invariants:
    - total_cents == sum(item.total_cents)
    - remaining_cents == max(0, total_cents - amount_paid_cents)
    - payment_status == derive_payment_status(total_cents, amount_paid_cents)
    - amount_paid_cents == sum of CashPayment amounts
    """
    customer_id: Optional[str] = None
    customer_name: str = DEFAULT_CUSTOMER_NAME

    items: List[OrderItem] = []
    total_cents: int = 0

    amount_paid_cents: int = 0
    remaining_cents: int = 0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    payments: List[PaymentEvent] = []

    fulfillment_status: FulfillmentStatus = FulfillmentStatus.PENDING

    # Commission attribution, fixed at creation
    seller_id: Optional[str] = None
    seller_name: Optional[str] = None

    deadline: Optional[date] = None
    description: Optional[str] = None
    measurements: Optional[str] = None

    version: int = 1

    def cash_payments(self) -> List[CashPayment]:
        return [p for p in self.payments if isinstance(p, CashPayment)]

    def installment_records(self) -> List[InstallmentRecord]:
        return [p for p in self.payments if isinstance(p, InstallmentRecord)]
