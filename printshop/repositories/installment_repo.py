from typing import Iterable, List, Optional

from printshop.db.store import RecordStore
from printshop.models.installment import PendingInstallment, Purchase


class PurchaseRepository:
    """Purchase aggregates (the owner of a set of installments)."""

    COLLECTION = "purchases"

    def __init__(self, store: RecordStore):
        self.store = store

    async def insert_purchase(self, purchase: Purchase) -> Purchase:
        await self.store.insert(self.COLLECTION, purchase.to_record())
        return purchase

    async def get_purchase(self, purchase_id: str) -> Optional[Purchase]:
        doc = await self.store.get_one(self.COLLECTION, purchase_id)
        if doc:
            return Purchase(**doc)
        return None

    async def save_purchase(self, purchase: Purchase, fields: Iterable[str]) -> Purchase:
        updates = purchase.model_dump(mode="json", include=set(fields) | {"updated_at"})
        await self.store.update(self.COLLECTION, purchase.id, updates)
        return purchase

    async def delete_purchases(self, purchase_ids: List[str]) -> int:
        if not purchase_ids:
            return 0
        return await self.store.delete(self.COLLECTION, purchase_ids)


class InstallmentRepository:
    """Pending installment rows, one per slice of a purchase."""

    COLLECTION = "pending_installments"

    def __init__(self, store: RecordStore):
        self.store = store

    async def insert_installments(self, installments: List[PendingInstallment]) -> List[PendingInstallment]:
        await self.store.insert_many(self.COLLECTION, [i.to_record() for i in installments])
        return installments

    async def get_installment(self, installment_id: str) -> Optional[PendingInstallment]:
        doc = await self.store.get_one(self.COLLECTION, installment_id)
        if doc:
            return PendingInstallment(**doc)
        return None

    async def list_installments(self, **filter) -> List[PendingInstallment]:
        """List installments by due date, then installment number."""
        docs = await self.store.get(self.COLLECTION, filter)
        rows = [PendingInstallment(**doc) for doc in docs]
        rows.sort(key=lambda i: (i.due_date, i.installment_number))
        return rows

    async def get_many(self, installment_ids: List[str]) -> List[PendingInstallment]:
        """Fetch the named rows ordered by installment number."""
        docs = await self.store.get(self.COLLECTION, {"_id": list(installment_ids)})
        rows = [PendingInstallment(**doc) for doc in docs]
        rows.sort(key=lambda i: i.installment_number)
        return rows

    async def save_installment(self, installment: PendingInstallment, fields: Iterable[str]) -> PendingInstallment:
        """Write the named fields of ``installment`` (and updated_at)."""
        updates = installment.model_dump(mode="json", include=set(fields) | {"updated_at"})
        await self.store.update(self.COLLECTION, installment.id, updates)
        return installment

    async def delete_installments(self, installment_ids: List[str]) -> int:
        if not installment_ids:
            return 0
        return await self.store.delete(self.COLLECTION, list(installment_ids))
