import logging
import pytest
from datetime import date
from decimal import Decimal

from printshop.core.errors import ConcurrencyConflict, NotFoundError, ValidationError
from printshop.models.notification import NotificationType
from printshop.models.order import (
    CashPayment,
    FulfillmentStatus,
    InstallmentRecord,
    PaymentMethod,
    PaymentStatus,
)
from printshop.repositories.notification_repo import NotificationRepository
from printshop.services.order_ledger import OrderLedger
from tests.factories import FIXED_NOW, delivered_notifications, make_item


def assert_balanced(order):
    assert order.remaining_cents == max(0, order.total_cents - order.amount_paid_cents)
    assert order.amount_paid_cents == sum(p.amount_cents for p in order.cash_payments())
    if order.amount_paid_cents == 0:
        assert order.payment_status == PaymentStatus.PENDING
    if order.payment_status == PaymentStatus.PAID:
        assert order.remaining_cents == 0 and order.amount_paid_cents > 0


async def notification_types(store, notifier):
    return [n.type for n in await delivered_notifications(store, notifier)]


@pytest.mark.asyncio
class TestCreateOrder:
    async def test_total_is_computed_from_items(self, ledger):
        order = await ledger.create_order(
            [make_item("Banner", "100.00", 1), make_item("Lona", "12.35", 2.5)],
            customer_name="Maria",
            seller_id="s1",
            seller_name="Ana"
        )

        assert order.total_cents == 10000 + 3088
        assert [i.total_cents for i in order.items] == [10000, 3088]
        assert order.amount_paid_cents == 0
        assert order.remaining_cents == order.total_cents
        assert order.payment_status == PaymentStatus.PENDING
        assert order.fulfillment_status == FulfillmentStatus.PENDING
        assert order.payments == []
        assert order.created_at == FIXED_NOW
        assert order.version == 1

    async def test_persisted(self, ledger):
        order = await ledger.create_order([make_item()])

        stored = await ledger.get_order(order.id)
        assert stored.total_cents == 15000
        assert stored.customer_name == "Consumidor Final"

    async def test_guest_customer_has_no_id(self, ledger):
        order = await ledger.create_order([make_item()], customer_id="guest")
        assert order.customer_id is None

    async def test_empty_items_rejected(self, ledger, store):
        with pytest.raises(ValidationError):
            await ledger.create_order([])
        assert await store.get("service_orders") == []

    async def test_non_positive_quantity_rejected(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.create_order([make_item(quantity=0)])
        with pytest.raises(ValidationError):
            await ledger.create_order([make_item(quantity=-1)])

    async def test_negative_price_rejected(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.create_order([make_item(unit_price="-1.00")])

    async def test_initial_payment(self, ledger):
        order = await ledger.create_order(
            [make_item(unit_price="150.00")],
            initial_payment=Decimal("50.00"),
            payment_method="pix"
        )

        assert order.amount_paid_cents == 5000
        assert order.remaining_cents == 10000
        assert order.payment_status == PaymentStatus.PARTIAL
        assert order.payment_method == PaymentMethod.PIX
        assert len(order.cash_payments()) == 1
        assert_balanced(order)

    async def test_installments_split_remaining_balance(self, ledger):
        order = await ledger.create_order(
            [make_item(unit_price="100.00")],
            installments=3,
            first_due_date=date(2024, 2, 10)
        )

        records = order.installment_records()
        assert [r.amount_cents for r in records] == [3333, 3333, 3334]
        assert [r.due_date for r in records] == [date(2024, 2, 10), date(2024, 3, 10), date(2024, 4, 10)]
        assert order.amount_paid_cents == 0
        assert order.payment_status == PaymentStatus.PENDING

    async def test_installments_need_two(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.create_order([make_item()], installments=1)

    async def test_sale_notifications(self, ledger, store, notifier):
        await ledger.create_order([make_item()], seller_name="Ana")

        types = await notification_types(store, notifier)
        assert sorted(types) == sorted([NotificationType.NEW_SALE, NotificationType.PENDING_PAYMENT])

    async def test_paid_sale_has_no_pending_notification(self, ledger, store, notifier):
        await ledger.create_order([make_item(unit_price="10.00")], initial_payment=10)

        types = await notification_types(store, notifier)
        assert NotificationType.PENDING_PAYMENT not in types


@pytest.mark.asyncio
class TestRecordPayment:
    async def test_payment_log_carries_context(self, ledger, caplog):
        order = await ledger.create_order([make_item(unit_price="150.00")])

        with caplog.at_level(logging.INFO, logger="printshop.services.order_ledger"):
            await ledger.record_payment(order.id, Decimal("100.00"))

        record = [r for r in caplog.records if r.getMessage().startswith("Payment of")][0]
        assert record.context == {
            "order_id": order.id, "amount_cents": 10000, "payment_status": "partial", "version": 2
        }

    async def test_partial_then_paid(self, ledger):
        # Scenario A
        order = await ledger.create_order([make_item(unit_price="150.00")])

        order = await ledger.record_payment(order.id, Decimal("100.00"), "pix")
        assert order.amount_paid_cents == 10000
        assert order.remaining_cents == 5000
        assert order.payment_status == PaymentStatus.PARTIAL

        order = await ledger.record_payment(order.id, Decimal("50.00"), "cash")
        assert order.remaining_cents == 0
        assert order.payment_status == PaymentStatus.PAID
        assert len(order.payments) == 2
        assert_balanced(order)

    async def test_overpayment_floors_remaining(self, ledger):
        # Scenario C
        order = await ledger.create_order([make_item(unit_price="50.00")])

        order = await ledger.record_payment(order.id, Decimal("70.00"), "card")

        assert order.remaining_cents == 0
        assert order.amount_paid_cents == 7000
        assert order.payment_status == PaymentStatus.PAID
        assert_balanced(order)

    async def test_payments_only_grow(self, ledger):
        order = await ledger.create_order([make_item(unit_price="90.00")], installments=2)
        seen = list(order.payments)

        for amount in ("10.00", "20.00", "30.00"):
            order = await ledger.record_payment(order.id, Decimal(amount))
            assert order.payments[:len(seen)] == seen
            assert len(order.payments) == len(seen) + 1
            seen = list(order.payments)
            assert_balanced(order)

        stored = await ledger.get_order(order.id)
        assert stored.payments == order.payments
        assert isinstance(stored.payments[0], InstallmentRecord)
        assert isinstance(stored.payments[-1], CashPayment)

    async def test_non_positive_amount_rejected(self, ledger):
        order = await ledger.create_order([make_item()])

        for amount in (0, Decimal("-5.00"), Decimal("0.001")):
            with pytest.raises(ValidationError):
                await ledger.record_payment(order.id, amount)

        assert (await ledger.get_order(order.id)).payments == []

    async def test_unknown_order(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.record_payment("missing", 10)

    async def test_version_bumps_on_each_write(self, ledger):
        order = await ledger.create_order([make_item()])
        order = await ledger.record_payment(order.id, 10)
        order = await ledger.set_fulfillment_status(order.id, "production")

        assert order.version == 3
        assert (await ledger.get_order(order.id)).version == 3

    async def test_stale_write_is_conflict(self, ledger, store):
        order = await ledger.create_order([make_item()])
        await ledger.record_payment(order.id, 10)

        stale_ledger = OrderLedger(store)
        with pytest.raises(ConcurrencyConflict):
            await stale_ledger.repo.save_order(order, ["amount_paid_cents"])

    async def test_payment_received_notification_on_paid(self, ledger, store, notifier):
        order = await ledger.create_order([make_item(unit_price="20.00")], seller_id="s1")
        await ledger.record_payment(order.id, 10)
        await ledger.record_payment(order.id, 10)
        await ledger.record_payment(order.id, 5)

        types = await notification_types(store, notifier)
        assert types.count(NotificationType.PAYMENT_RECEIVED) == 1


@pytest.mark.asyncio
class TestMarkFullyPaid:
    async def test_pays_remaining_in_cash(self, ledger):
        order = await ledger.create_order([make_item(unit_price="150.00")])
        await ledger.record_payment(order.id, 100, "pix")

        order = await ledger.mark_fully_paid(order.id)

        assert order.payment_status == PaymentStatus.PAID
        last = order.payments[-1]
        assert last.amount_cents == 5000
        assert last.method == PaymentMethod.CASH
        assert last.date == FIXED_NOW

    async def test_noop_when_nothing_owed(self, ledger):
        order = await ledger.create_order([make_item(unit_price="10.00")], initial_payment=10)

        again = await ledger.mark_fully_paid(order.id)

        assert again.version == order.version
        assert len(again.payments) == 1


@pytest.mark.asyncio
class TestFulfillment:
    async def test_any_transition_allowed(self, ledger):
        order = await ledger.create_order([make_item()])

        order = await ledger.set_fulfillment_status(order.id, FulfillmentStatus.DELIVERED)
        order = await ledger.set_fulfillment_status(order.id, FulfillmentStatus.PENDING)

        assert order.fulfillment_status == FulfillmentStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.amount_paid_cents == 0

    async def test_status_notification_targets_seller(self, ledger, store, notifier):
        order = await ledger.create_order([make_item()], customer_name="Maria", seller_id="s1")
        await notifier.drain()

        await ledger.set_fulfillment_status(order.id, "production")
        await notifier.drain()

        notifications = await NotificationRepository(store).list_notifications("s1")
        status_changes = [n for n in notifications if n.type == NotificationType.ORDER_STATUS]
        assert len(status_changes) == 1
        change = status_changes[0]
        assert change.user_id == "s1"
        assert change.data == {
            "order_id": order.id,
            "customer_name": "Maria",
            "old_status": "pending",
            "new_status": "production",
            "seller_id": "s1"
        }
        assert "Aguardando → Em Produção" in change.message


@pytest.mark.asyncio
class TestEdits:
    async def test_update_items_keeps_payments(self, ledger):
        order = await ledger.create_order([make_item(unit_price="100.00")])
        order = await ledger.record_payment(order.id, 60)

        order = await ledger.update_items(order.id, [make_item(unit_price="50.00")])

        assert order.total_cents == 5000
        assert order.amount_paid_cents == 6000
        assert len(order.payments) == 1
        assert order.payment_status == PaymentStatus.PAID
        assert_balanced(order)

    async def test_update_details(self, ledger):
        order = await ledger.create_order([make_item()], customer_name="Maria")

        order = await ledger.update_details(order.id, description="Fachada", deadline=date(2024, 2, 1))

        assert order.description == "Fachada"
        assert (await ledger.get_order(order.id)).deadline == date(2024, 2, 1)

    async def test_seller_is_immutable(self, ledger):
        order = await ledger.create_order([make_item()], seller_id="s1")

        with pytest.raises(ValidationError):
            await ledger.update_details(order.id, seller_id="s2")

    async def test_delete_order(self, ledger):
        order = await ledger.create_order([make_item()])

        await ledger.delete_order(order.id)

        with pytest.raises(NotFoundError):
            await ledger.get_order(order.id)
        with pytest.raises(NotFoundError):
            await ledger.delete_order(order.id)


@pytest.mark.asyncio
class TestReceivables:
    async def test_open_balances_grouped_by_customer(self, ledger):
        a = await ledger.create_order([make_item(unit_price="100.00")], customer_id="c1", customer_name="Maria")
        a2 = await ledger.create_order([make_item(unit_price="30.00")], customer_id="c1", customer_name="Maria")
        b = await ledger.create_order([make_item(unit_price="200.00")], customer_id="c2", customer_name="João")
        paid = await ledger.create_order([make_item(unit_price="10.00")], customer_id="c3")
        await ledger.record_payment(a.id, 40)
        await ledger.mark_fully_paid(paid.id)

        receivables = await ledger.list_receivables()
        assert {o.id for o in receivables} == {a.id, a2.id, b.id}

        groups = await ledger.receivables_by_customer()
        assert [(g.customer_id, g.pending_cents, g.orders_count) for g in groups] == [
            ("c2", 20000, 1),
            ("c1", 9000, 2),
        ]
        assert await ledger.total_receivable() == 29000

    async def test_seller_scope(self, ledger):
        await ledger.create_order([make_item()], seller_id="s1")
        await ledger.create_order([make_item()], seller_id="s2")

        receivables = await ledger.list_receivables(seller_ids=["s2"])
        assert [o.seller_id for o in receivables] == ["s2"]
