from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict

from printshop.models.order import (
    FulfillmentStatus,
    OrderItem,
    PaymentEvent,
    PaymentMethod,
    PaymentStatus,
)


class OrderItemCreate(BaseModel):
    product_id: Optional[str] = None
    name: str
    quantity: float
    unit_price: Decimal
    variation_name: Optional[str] = None
    finishing: Optional[str] = None
    dimensions: Optional[str] = None
    custom_description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None

    model_config = {"from_attributes": True}


class OrderCreate(BaseModel):
    """New sale. The total is always computed from the items."""
    items: List[OrderItemCreate]
    customer_id: Optional[str] = None  # "guest" means no customer
    customer_name: Optional[str] = None
    seller_id: Optional[str] = None
    seller_name: Optional[str] = None
    deadline: Optional[date] = None
    description: Optional[str] = None
    measurements: Optional[str] = None

    # Payment at the counter
    initial_payment: Optional[Decimal] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    installments: Optional[int] = None
    first_due_date: Optional[date] = None


class PaymentCreate(BaseModel):
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH


class FulfillmentUpdate(BaseModel):
    status: FulfillmentStatus


class OrderItemsUpdate(BaseModel):
    items: List[OrderItemCreate]


class OrderDetailsUpdate(BaseModel):
    """Informational fields. Seller fields are accepted only to be rejected."""
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    deadline: Optional[date] = None
    description: Optional[str] = None
    measurements: Optional[str] = None
    seller_id: Optional[str] = None
    seller_name: Optional[str] = None


class OrderResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    customer_id: Optional[str] = None
    customer_name: str
    items: List[OrderItem]
    total_cents: int
    amount_paid_cents: int
    remaining_cents: int
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    payments: List[PaymentEvent]
    fulfillment_status: FulfillmentStatus
    seller_id: Optional[str] = None
    seller_name: Optional[str] = None
    deadline: Optional[date] = None
    description: Optional[str] = None
    measurements: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class CustomerReceivable(BaseModel):
    customer_id: Optional[str] = None
    customer_name: str
    orders_count: int
    pending_cents: int
    order_ids: List[str]


class ReceivablesResponse(BaseModel):
    total_cents: int
    orders: List[OrderResponse]
    customers: List[CustomerReceivable]
