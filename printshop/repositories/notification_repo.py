from datetime import datetime
from typing import List, Optional

from printshop.db.store import RecordStore
from printshop.models.notification import Notification


class NotificationRepository:
    COLLECTION = "notifications"

    def __init__(self, store: RecordStore):
        self.store = store

    async def insert_notification(self, notification: Notification) -> Notification:
        await self.store.insert(self.COLLECTION, notification.to_record())
        return notification

    async def get_notification(self, notification_id: str) -> Optional[Notification]:
        doc = await self.store.get_one(self.COLLECTION, notification_id)
        if doc:
            return Notification(**doc)
        return None

    async def list_notifications(self, user_id: Optional[str] = None, **filter) -> List[Notification]:
        """Notifications for a user plus the broadcast ones (user_id None), newest first."""
        docs = await self.store.get(self.COLLECTION, {"user_id": [user_id, None], **filter})
        notifications = [Notification(**doc) for doc in docs]
        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications

    async def mark_read(self, notification_id: str, when: datetime) -> None:
        await self.store.update(
            self.COLLECTION,
            notification_id,
            {"read": True, "updated_at": when.isoformat()}
        )

    async def delete_notification(self, notification_id: str) -> bool:
        return await self.store.delete(self.COLLECTION, notification_id) > 0
