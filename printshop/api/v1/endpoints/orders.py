from typing import List, Optional
from fastapi import APIRouter, Depends, status

from printshop.api.deps import get_order_ledger, get_seller_scope
from printshop.models.order import FulfillmentStatus, PaymentStatus
from printshop.schemas.order import (
    FulfillmentUpdate,
    OrderCreate,
    OrderDetailsUpdate,
    OrderItemsUpdate,
    OrderResponse,
    PaymentCreate,
    ReceivablesResponse,
)
from printshop.services.order_ledger import OrderLedger, group_by_customer

router = APIRouter()


@router.get("/", response_model=List[OrderResponse])
async def list_orders(
    payment_status: Optional[PaymentStatus] = None,
    fulfillment_status: Optional[FulfillmentStatus] = None,
    seller_ids: Optional[List[str]] = Depends(get_seller_scope),
    ledger: OrderLedger = Depends(get_order_ledger)
):
    """List orders, newest first"""
    return await ledger.list_orders(seller_ids, payment_status, fulfillment_status)


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_in: OrderCreate,
    ledger: OrderLedger = Depends(get_order_ledger)
):
    """Create a sale"""
    return await ledger.create_order(**order_in.model_dump(exclude={"items"}), items=order_in.items)


@router.get("/receivables", response_model=ReceivablesResponse)
async def get_receivables(
    seller_ids: Optional[List[str]] = Depends(get_seller_scope),
    ledger: OrderLedger = Depends(get_order_ledger)
):
    """Orders with an open balance, and the same balance grouped per customer"""
    orders = await ledger.list_receivables(seller_ids)
    return ReceivablesResponse(
        total_cents=sum(o.remaining_cents for o in orders),
        orders=[o.model_dump(by_alias=True) for o in orders],
        customers=group_by_customer(orders)
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, ledger: OrderLedger = Depends(get_order_ledger)):
    return await ledger.get_order(order_id)


@router.post("/{order_id}/payments", response_model=OrderResponse)
async def record_payment(
    order_id: str,
    payment_in: PaymentCreate,
    ledger: OrderLedger = Depends(get_order_ledger)
):
    """Apply a payment to the order balance"""
    return await ledger.record_payment(order_id, payment_in.amount, payment_in.method)


@router.post("/{order_id}/pay-off", response_model=OrderResponse)
async def pay_off(order_id: str, ledger: OrderLedger = Depends(get_order_ledger)):
    """Receive the whole remaining balance in cash"""
    return await ledger.mark_fully_paid(order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def set_status(
    order_id: str,
    status_in: FulfillmentUpdate,
    ledger: OrderLedger = Depends(get_order_ledger)
):
    return await ledger.set_fulfillment_status(order_id, status_in.status)


@router.put("/{order_id}/items", response_model=OrderResponse)
async def update_items(
    order_id: str,
    items_in: OrderItemsUpdate,
    ledger: OrderLedger = Depends(get_order_ledger)
):
    """Replace the items; the payments already made are kept"""
    return await ledger.update_items(order_id, items_in.items)


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_details(
    order_id: str,
    details_in: OrderDetailsUpdate,
    ledger: OrderLedger = Depends(get_order_ledger)
):
    return await ledger.update_details(order_id, **details_in.model_dump(exclude_unset=True))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: str, ledger: OrderLedger = Depends(get_order_ledger)):
    await ledger.delete_order(order_id)
