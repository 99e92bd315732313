"""
Fire-and-forget notifications.

notify() schedules the insert on the running loop and returns at once.
A failed delivery is logged and dropped; it never reaches the caller.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from printshop.core.config import Settings, settings
from printshop.core.errors import NotFoundError
from printshop.core.logging import get_logger
from printshop.db.store import RecordStore
from printshop.models.notification import Notification, NotificationType
from printshop.models.order import FulfillmentStatus, ServiceOrder
from printshop.repositories.notification_repo import NotificationRepository
from printshop.utils.dates import utcnow
from printshop.utils.money import format_brl, from_cents

logger = get_logger(__name__)

NOTIFICATION_LIMIT = 50

STATUS_LABELS = {
    FulfillmentStatus.PENDING: "Aguardando",
    FulfillmentStatus.PRODUCTION: "Em Produção",
    FulfillmentStatus.FINISHED: "Finalizado",
    FulfillmentStatus.DELIVERED: "Entregue",
}


class NotificationService:
    def __init__(
        self,
        store: RecordStore,
        config: Settings = settings,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repo = NotificationRepository(store)
        self.config = config
        self.clock = clock
        self._pending: Set[asyncio.Task] = set()

    def notify(
        self,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        target_user_id: Optional[str] = None
    ) -> None:
        notification = Notification(
            type=type,
            title=title,
            message=message,
            data=data or {},
            user_id=target_user_id
        )
        task = asyncio.create_task(self._deliver(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, notification: Notification) -> None:
        try:
            await self.repo.insert_notification(notification)
        except Exception:
            logger.exception("Failed to deliver %s notification", notification.type.value)

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # Notification center

    async def list_for_user(
        self,
        user_id: Optional[str] = None,
        unread_only: bool = False,
        limit: int = NOTIFICATION_LIMIT
    ) -> List[Notification]:
        """The user's own and broadcast notifications, newest first."""
        if unread_only:
            notifications = await self.repo.list_notifications(user_id, read=False)
        else:
            notifications = await self.repo.list_notifications(user_id)
        return notifications[:limit]

    async def unread_count(self, user_id: Optional[str] = None) -> int:
        return len(await self.repo.list_notifications(user_id, read=False))

    async def mark_read(self, notification_id: str) -> Notification:
        notification = await self.repo.get_notification(notification_id)
        if not notification:
            raise NotFoundError(f"Notification {notification_id} not found")
        if notification.read:
            return notification

        now = self.clock()
        await self.repo.mark_read(notification_id, now)
        return notification.model_copy(update={"read": True, "updated_at": now})

    async def mark_all_read(self, user_id: Optional[str] = None) -> int:
        """Mark every unread notification the user can see. Returns how many changed."""
        unread = await self.repo.list_notifications(user_id, read=False)
        now = self.clock()
        for notification in unread:
            await self.repo.mark_read(notification.id, now)
        return len(unread)

    async def delete_notification(self, notification_id: str) -> None:
        if not await self.repo.delete_notification(notification_id):
            raise NotFoundError(f"Notification {notification_id} not found")

    # Domain events

    def notify_new_sale(self, order: ServiceOrder) -> None:
        if not self.config.NOTIFY_NEW_SALES:
            return
        seller = f" ({order.seller_name})" if order.seller_name else ""
        self.notify(
            NotificationType.NEW_SALE,
            "Nova Venda",
            f"Pedido #{order.id} - {order.customer_name} - {format_brl(order.total_cents)}{seller}",
            {
                "order_id": order.id,
                "customer_name": order.customer_name,
                "total": str(from_cents(order.total_cents)),
                "seller_name": order.seller_name
            }
        )

    def notify_pending_payment(self, order: ServiceOrder) -> None:
        if not self.config.NOTIFY_PENDING_PAYMENTS:
            return
        self.notify(
            NotificationType.PENDING_PAYMENT,
            "Pagamento Pendente",
            f"Pedido #{order.id} - {order.customer_name} tem {format_brl(order.remaining_cents)} pendente",
            {
                "order_id": order.id,
                "customer_name": order.customer_name,
                "remaining_amount": str(from_cents(order.remaining_cents))
            }
        )

    def notify_order_status_change(
        self,
        order: ServiceOrder,
        old_status: FulfillmentStatus,
        new_status: FulfillmentStatus
    ) -> None:
        if not self.config.NOTIFY_ORDER_STATUS:
            return
        self.notify(
            NotificationType.ORDER_STATUS,
            "Status Alterado",
            f"Pedido #{order.id} ({order.customer_name}): "
            f"{STATUS_LABELS[old_status]} → {STATUS_LABELS[new_status]}",
            {
                "order_id": order.id,
                "customer_name": order.customer_name,
                "old_status": old_status.value,
                "new_status": new_status.value,
                "seller_id": order.seller_id
            },
            target_user_id=order.seller_id
        )

    def notify_payment_received(self, order: ServiceOrder) -> None:
        self.notify(
            NotificationType.PAYMENT_RECEIVED,
            "Pagamento Recebido",
            f"Pedido #{order.id} - {order.customer_name} quitado ({format_brl(order.amount_paid_cents)})",
            {
                "order_id": order.id,
                "customer_name": order.customer_name,
                "amount_paid": str(from_cents(order.amount_paid_cents))
            },
            target_user_id=order.seller_id
        )

    def notify_commission_paid(
        self,
        seller_id: str,
        seller_name: str,
        commission_cents: int,
        period: str
    ) -> None:
        self.notify(
            NotificationType.COMMISSION_PAID,
            "Comissão Paga",
            f"Comissão de {seller_name} - {period}: {format_brl(commission_cents)}",
            {
                "seller_id": seller_id,
                "seller_name": seller_name,
                "commission": str(from_cents(commission_cents)),
                "period": period
            },
            target_user_id=seller_id
        )
