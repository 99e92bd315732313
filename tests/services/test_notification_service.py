import logging
import pytest
from unittest.mock import AsyncMock

from printshop.core.config import Settings
from printshop.core.errors import NotFoundError, StoreError
from printshop.db.store import InMemoryRecordStore
from printshop.models.notification import NotificationType
from printshop.repositories.notification_repo import NotificationRepository
from printshop.services.notification_service import NotificationService
from printshop.services.order_ledger import OrderLedger
from tests.factories import delivered_notifications, make_item


@pytest.mark.asyncio
class TestNotificationService:
    async def test_notify_writes_in_background(self, store, notifier):
        notifier.notify(NotificationType.NEW_SALE, "Nova Venda", "Pedido #1", {"order_id": "1"})

        notifications = await delivered_notifications(store, notifier)

        assert len(notifications) == 1
        assert notifications[0].title == "Nova Venda"
        assert notifications[0].data == {"order_id": "1"}
        assert notifications[0].user_id is None
        assert notifications[0].read is False

    async def test_failures_are_logged_not_raised(self, store, caplog):
        notifier = NotificationService(store, Settings(_env_file=None))
        notifier.repo.insert_notification = AsyncMock(side_effect=StoreError("down"))

        with caplog.at_level(logging.ERROR, logger="printshop.services.notification_service"):
            notifier.notify(NotificationType.ORDER_STATUS, "Status Alterado", "x")
            await notifier.drain()

        assert "Failed to deliver order_status notification" in caplog.text

    async def test_failed_delivery_does_not_fail_the_operation(self):
        store = InMemoryRecordStore()
        notifier = NotificationService(store, Settings(_env_file=None))
        notifier.repo.insert_notification = AsyncMock(side_effect=StoreError("down"))
        ledger = OrderLedger(store, notifier)

        order = await ledger.create_order([make_item()])
        await notifier.drain()

        assert (await ledger.get_order(order.id)).total_cents == 15000

    async def test_toggles_disable_sale_notifications(self, store):
        config = Settings(_env_file=None, NOTIFY_NEW_SALES=False, NOTIFY_PENDING_PAYMENTS=False)
        notifier = NotificationService(store, config)
        ledger = OrderLedger(store, notifier)

        await ledger.create_order([make_item()])

        assert await delivered_notifications(store, notifier) == []

    async def test_toggle_disables_status_notifications(self, store):
        notifier = NotificationService(store, Settings(_env_file=None, NOTIFY_ORDER_STATUS=False))
        ledger = OrderLedger(store, notifier)
        order = await ledger.create_order([make_item()])

        await ledger.set_fulfillment_status(order.id, "finished")

        types = [n.type for n in await delivered_notifications(store, notifier)]
        assert NotificationType.ORDER_STATUS not in types

    async def test_list_for_user_includes_broadcasts(self, store, notifier):
        notifier.notify(NotificationType.NEW_SALE, "Nova Venda", "a")
        notifier.notify(NotificationType.ORDER_STATUS, "Status Alterado", "b", target_user_id="s1")
        notifier.notify(NotificationType.ORDER_STATUS, "Status Alterado", "c", target_user_id="s2")
        await notifier.drain()

        messages = {n.message for n in await NotificationRepository(store).list_notifications("s1")}

        assert messages == {"a", "b"}

    async def test_sale_message_format(self, store, notifier):
        ledger = OrderLedger(store, notifier)
        order = await ledger.create_order(
            [make_item(unit_price="1234.50")], customer_name="Maria", seller_name="Ana"
        )

        sale = [n for n in await delivered_notifications(store, notifier) if n.type == NotificationType.NEW_SALE][0]

        assert sale.message == f"Pedido #{order.id} - Maria - R$ 1234,50 (Ana)"


@pytest.mark.asyncio
class TestNotificationCenter:
    async def seed(self, notifier):
        notifier.notify(NotificationType.NEW_SALE, "Nova Venda", "a")
        notifier.notify(NotificationType.ORDER_STATUS, "Status Alterado", "b", target_user_id="s1")
        notifier.notify(NotificationType.ORDER_STATUS, "Status Alterado", "c", target_user_id="s2")
        await notifier.drain()

    async def test_list_for_user(self, notifier):
        await self.seed(notifier)

        mine = await notifier.list_for_user("s1")

        assert {n.message for n in mine} == {"a", "b"}
        assert {n.message for n in await notifier.list_for_user()} == {"a"}
        assert len(await notifier.list_for_user("s1", limit=1)) == 1

    async def test_mark_read(self, notifier):
        await self.seed(notifier)
        target = [n for n in await notifier.list_for_user("s1") if n.message == "b"][0]

        marked = await notifier.mark_read(target.id)

        assert marked.read is True
        assert await notifier.unread_count("s1") == 1
        assert [n.message for n in await notifier.list_for_user("s1", unread_only=True)] == ["a"]
        assert (await notifier.mark_read(target.id)).read is True

    async def test_mark_read_unknown(self, notifier):
        with pytest.raises(NotFoundError):
            await notifier.mark_read("missing")

    async def test_mark_all_read_only_touches_visible(self, notifier):
        await self.seed(notifier)

        assert await notifier.mark_all_read("s1") == 2

        assert await notifier.unread_count("s1") == 0
        assert [n.message for n in await notifier.list_for_user("s2", unread_only=True)] == ["c"]

    async def test_delete(self, notifier):
        await self.seed(notifier)
        target = (await notifier.list_for_user("s2"))[0]

        await notifier.delete_notification(target.id)

        assert target.id not in {n.id for n in await notifier.list_for_user("s2")}
        with pytest.raises(NotFoundError):
            await notifier.delete_notification(target.id)
