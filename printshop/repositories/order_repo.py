from typing import Iterable, List, Optional

from printshop.db.store import RecordStore
from printshop.models.order import ServiceOrder


class OrderRepository:
    """Service order persistence."""

    COLLECTION = "service_orders"

    def __init__(self, store: RecordStore):
        self.store = store

    async def insert_order(self, order: ServiceOrder) -> ServiceOrder:
        await self.store.insert(self.COLLECTION, order.to_record())
        return order

    async def get_order(self, order_id: str) -> Optional[ServiceOrder]:
        doc = await self.store.get_one(self.COLLECTION, order_id)
        if doc:
            return ServiceOrder(**doc)
        return None

    async def list_orders(self, **filter) -> List[ServiceOrder]:
        """List orders, newest first."""
        docs = await self.store.get(self.COLLECTION, filter)
        orders = [ServiceOrder(**doc) for doc in docs]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders

    async def save_order(self, order: ServiceOrder, fields: Iterable[str]) -> ServiceOrder:
        """
        Write the named fields of ``order`` guarded by its current version.

        Returns the order as stored, with version + 1. Callers set updated_at.
        Raises ConcurrencyConflict when another writer got there first.
        """
        saved = order.model_copy(update={"version": order.version + 1})
        include = set(fields) | {"version", "updated_at"}
        updates = saved.model_dump(mode="json", include=include)
        await self.store.update(self.COLLECTION, order.id, updates, expected_version=order.version)
        return saved

    async def delete_order(self, order_id: str) -> bool:
        return await self.store.delete(self.COLLECTION, order_id) > 0
