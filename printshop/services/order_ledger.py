"""
OrderLedger - the payment lifecycle of a sale.

Money moves only through record_payment: it appends a CashPayment,
raises amount_paid and re-derives remaining and payment_status.
Fulfillment status is a separate free state machine.

Every write carries the version the order was read at; a concurrent
writer makes the second write fail with ConcurrencyConflict.
"""

from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Union

from printshop.core.errors import NotFoundError, ValidationError
from printshop.core.logging import get_logger
from printshop.db.store import RecordStore
from printshop.models.order import (
    DEFAULT_CUSTOMER_NAME,
    GUEST_CUSTOMER,
    CashPayment,
    FulfillmentStatus,
    InstallmentRecord,
    PaymentMethod,
    PaymentStatus,
    ServiceOrder,
    derive_payment_status,
    remaining_cents_for,
)
from printshop.repositories.order_repo import OrderRepository
from printshop.schemas.order import CustomerReceivable, OrderItemCreate
from printshop.services.notification_service import NotificationService
from printshop.utils.dates import add_months, utcnow
from printshop.utils.money import Amount, split_cents, to_cents
from printshop.utils.order_validation import calculate_total, price_items

logger = get_logger(__name__)

PAYMENT_FIELDS = ("amount_paid_cents", "remaining_cents", "payment_status", "payment_method", "payments")
DETAIL_FIELDS = {"customer_id", "customer_name", "deadline", "description", "measurements"}
SELLER_FIELDS = {"seller_id", "seller_name"}


def _customer_id(customer_id: Optional[str]) -> Optional[str]:
    if customer_id == GUEST_CUSTOMER:
        return None
    return customer_id


def apply_payment(
    order: ServiceOrder,
    amount_cents: int,
    method: PaymentMethod,
    when: datetime
) -> ServiceOrder:
    """Return ``order`` with one more cash payment. Overpayment is accepted."""
    amount_paid = order.amount_paid_cents + amount_cents
    return order.model_copy(update={
        "amount_paid_cents": amount_paid,
        "remaining_cents": remaining_cents_for(order.total_cents, amount_paid),
        "payment_status": derive_payment_status(order.total_cents, amount_paid),
        "payment_method": method,
        "payments": [*order.payments, CashPayment(amount_cents=amount_cents, date=when, method=method)],
        "updated_at": when
    })


class OrderLedger:
    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repo = OrderRepository(store)
        self.notifier = notifier
        self.clock = clock

    async def create_order(
        self,
        items: List[OrderItemCreate],
        customer_id: Optional[str] = None,
        customer_name: Optional[str] = None,
        seller_id: Optional[str] = None,
        seller_name: Optional[str] = None,
        deadline: Optional[date] = None,
        description: Optional[str] = None,
        measurements: Optional[str] = None,
        initial_payment: Optional[Amount] = None,
        payment_method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        installments: Optional[int] = None,
        first_due_date: Optional[date] = None
    ) -> ServiceOrder:
        """
        Create a sale from its items.

        The total is the sum of the priced lines. An initial payment goes
        through the same transition as record_payment. ``installments``
        schedules the balance left after it as monthly receivables.
        """
        priced = price_items(items)
        total = calculate_total(priced)
        method = PaymentMethod(payment_method)
        initial_cents = self._payment_cents(initial_payment) if initial_payment else 0
        if installments is not None and installments < 2:
            raise ValidationError(f"Installment count must be at least 2, got {installments}")

        now = self.clock()
        order = ServiceOrder(
            customer_id=_customer_id(customer_id),
            customer_name=customer_name or DEFAULT_CUSTOMER_NAME,
            items=priced,
            total_cents=total,
            amount_paid_cents=0,
            remaining_cents=total,
            payment_status=derive_payment_status(total, 0),
            seller_id=seller_id,
            seller_name=seller_name,
            deadline=deadline,
            description=description,
            measurements=measurements,
            created_at=now,
            updated_at=now
        )

        if initial_cents:
            order = apply_payment(order, initial_cents, method, now)

        if installments:
            if order.remaining_cents == 0:
                raise ValidationError("Nothing left to split into installments")
            start = first_due_date or add_months(now.date(), 1)
            records = [
                InstallmentRecord(number=number, amount_cents=amount, due_date=add_months(start, number - 1))
                for number, amount in enumerate(split_cents(order.remaining_cents, installments), start=1)
            ]
            order = order.model_copy(update={
                "payments": [*order.payments, *records],
                "payment_method": method
            })

        await self.repo.insert_order(order)
        logger.info(
            "Created order %s total=%d seller=%s", order.id, order.total_cents, order.seller_id,
            extra={"context": {"order_id": order.id, "total_cents": order.total_cents, "seller_id": order.seller_id}}
        )

        if self.notifier:
            self.notifier.notify_new_sale(order)
            if order.remaining_cents > 0:
                self.notifier.notify_pending_payment(order)
        return order

    async def get_order(self, order_id: str) -> ServiceOrder:
        order = await self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def list_orders(
        self,
        seller_ids: Optional[List[str]] = None,
        payment_status: Optional[PaymentStatus] = None,
        fulfillment_status: Optional[FulfillmentStatus] = None
    ) -> List[ServiceOrder]:
        """List orders, newest first. ``seller_ids`` restricts to those sellers."""
        filter: Dict = {}
        if seller_ids is not None:
            filter["seller_id"] = list(seller_ids)
        if payment_status is not None:
            filter["payment_status"] = PaymentStatus(payment_status).value
        if fulfillment_status is not None:
            filter["fulfillment_status"] = FulfillmentStatus(fulfillment_status).value
        return await self.repo.list_orders(**filter)

    async def record_payment(
        self,
        order_id: str,
        amount: Amount,
        method: Union[PaymentMethod, str] = PaymentMethod.CASH
    ) -> ServiceOrder:
        """Apply a payment to an order's running balance."""
        amount_cents = self._payment_cents(amount)
        method = PaymentMethod(method)
        return await self._record_payment_cents(order_id, amount_cents, method)

    async def mark_fully_paid(self, order_id: str) -> ServiceOrder:
        """Pay off the remaining balance in cash. No-op when nothing is owed."""
        order = await self.get_order(order_id)
        if order.remaining_cents <= 0:
            return order
        return await self._record_payment_cents(order_id, order.remaining_cents, PaymentMethod.CASH, order)

    async def _record_payment_cents(
        self,
        order_id: str,
        amount_cents: int,
        method: PaymentMethod,
        order: Optional[ServiceOrder] = None
    ) -> ServiceOrder:
        if order is None:
            order = await self.get_order(order_id)

        saved = await self.repo.save_order(
            apply_payment(order, amount_cents, method, self.clock()),
            PAYMENT_FIELDS
        )
        logger.info(
            "Payment of %d on order %s (%s -> %s)",
            amount_cents, order_id, order.payment_status.value, saved.payment_status.value,
            extra={"context": {
                "order_id": order_id,
                "amount_cents": amount_cents,
                "payment_status": saved.payment_status.value,
                "version": saved.version
            }}
        )

        if (
            self.notifier
            and order.payment_status != PaymentStatus.PAID
            and saved.payment_status == PaymentStatus.PAID
        ):
            self.notifier.notify_payment_received(saved)
        return saved

    async def set_fulfillment_status(
        self,
        order_id: str,
        new_status: Union[FulfillmentStatus, str]
    ) -> ServiceOrder:
        """Move an order to any fulfillment status. Payment state is untouched."""
        new_status = FulfillmentStatus(new_status)
        order = await self.get_order(order_id)
        old_status = order.fulfillment_status

        saved = await self.repo.save_order(
            order.model_copy(update={"fulfillment_status": new_status, "updated_at": self.clock()}),
            ["fulfillment_status"]
        )

        if self.notifier and old_status != new_status:
            self.notifier.notify_order_status_change(saved, old_status, new_status)
        return saved

    async def update_items(self, order_id: str, items: List[OrderItemCreate]) -> ServiceOrder:
        """
        Replace the items of an order and recompute its total.

        Payments and amount_paid are kept as they are; remaining and
        payment_status are re-derived from the new total.
        """
        priced = price_items(items)
        total = calculate_total(priced)
        order = await self.get_order(order_id)

        updated = order.model_copy(update={
            "items": priced,
            "total_cents": total,
            "remaining_cents": remaining_cents_for(total, order.amount_paid_cents),
            "payment_status": derive_payment_status(total, order.amount_paid_cents),
            "updated_at": self.clock()
        })
        return await self.repo.save_order(
            updated,
            ["items", "total_cents", "remaining_cents", "payment_status"]
        )

    async def update_details(self, order_id: str, **fields) -> ServiceOrder:
        """Edit customer, deadline, description or measurements."""
        if SELLER_FIELDS & fields.keys():
            raise ValidationError("Seller is fixed when the order is created")
        unknown = fields.keys() - DETAIL_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        if "customer_id" in fields:
            fields["customer_id"] = _customer_id(fields["customer_id"])
        if "customer_name" in fields and not fields["customer_name"]:
            fields["customer_name"] = DEFAULT_CUSTOMER_NAME

        order = await self.get_order(order_id)
        updated = order.model_copy(update={**fields, "updated_at": self.clock()})
        return await self.repo.save_order(updated, fields.keys())

    async def delete_order(self, order_id: str) -> None:
        if not await self.repo.delete_order(order_id):
            raise NotFoundError(f"Order {order_id} not found")
        logger.info("Deleted order %s", order_id)

    # Receivables

    async def list_receivables(self, seller_ids: Optional[List[str]] = None) -> List[ServiceOrder]:
        """Orders that still owe money."""
        orders = await self.list_orders(seller_ids=seller_ids)
        return [
            o for o in orders
            if o.payment_status != PaymentStatus.PAID and o.remaining_cents > 0
        ]

    async def receivables_by_customer(
        self,
        seller_ids: Optional[List[str]] = None
    ) -> List[CustomerReceivable]:
        """Pending balance per customer, largest first."""
        return group_by_customer(await self.list_receivables(seller_ids))

    async def total_receivable(self, seller_ids: Optional[List[str]] = None) -> int:
        return sum(o.remaining_cents for o in await self.list_receivables(seller_ids))

    @staticmethod
    def _payment_cents(amount: Amount) -> int:
        cents = to_cents(amount)
        if cents <= 0:
            raise ValidationError(f"Payment amount must be positive, got {amount}")
        return cents


def group_by_customer(orders: List[ServiceOrder]) -> List[CustomerReceivable]:
    groups: Dict[str, CustomerReceivable] = {}
    for order in orders:
        key = order.customer_id or f"name:{order.customer_name}"
        group = groups.get(key)
        if group is None:
            group = groups[key] = CustomerReceivable(
                customer_id=order.customer_id,
                customer_name=order.customer_name,
                orders_count=0,
                pending_cents=0,
                order_ids=[]
            )
        group.orders_count += 1
        group.pending_cents += order.remaining_cents
        group.order_ids.append(order.id)
    return sorted(groups.values(), key=lambda g: (-g.pending_cents, g.customer_name))
