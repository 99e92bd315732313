"""
InstallmentPlanner - splits a payable purchase into monthly installments.

Split rule: every row gets floor(total / n) cents and the last row takes
whatever is left, so the rows always add back to the total exactly.

Two accepted paths leave a purchase inconsistent and are logged as
PreconditionDrift: editing one row's amount, and replanning a purchase
that already had paid rows (the regenerated rows start unpaid).
"""

from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence

from printshop.core.errors import NotFoundError, PreconditionDrift, StoreError, ValidationError
from printshop.core.logging import get_logger
from printshop.db.store import RecordStore
from printshop.models.installment import PendingInstallment, Purchase
from printshop.repositories.installment_repo import InstallmentRepository, PurchaseRepository
from printshop.utils.dates import add_months, utcnow
from printshop.utils.money import Amount, split_cents, to_cents

logger = get_logger(__name__)

EDITABLE_FIELDS = {"description", "supplier_name", "amount", "due_date", "category", "notes"}
SHARED_FIELDS = {"supplier_name", "description", "category", "notes"}
OVERRIDE_FIELDS = {"amount", "due_date"}


def _drift(message: str, *args) -> None:
    logger.warning(f"{PreconditionDrift.__name__}: {message}", *args)


def _positive_cents(amount: Amount) -> int:
    cents = to_cents(amount)
    if cents <= 0:
        raise ValidationError(f"Installment amount must be positive, got {amount}")
    return cents


def _check_names(fields: Dict) -> None:
    for key in ("supplier_name", "description"):
        if key in fields and not (fields[key] or "").strip():
            raise ValidationError(f"{key} cannot be empty")


def plan_due_dates(
    first_due_date: date,
    count: int,
    due_dates: Optional[Sequence[Optional[date]]] = None
) -> List[date]:
    """Explicit dates where given, else ``first_due_date`` plus i months."""
    dates = []
    for i in range(count):
        explicit = due_dates[i] if due_dates and i < len(due_dates) else None
        dates.append(explicit or add_months(first_due_date, i))
    return dates


class InstallmentPlanner:
    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = utcnow):
        self.purchases = PurchaseRepository(store)
        self.installments = InstallmentRepository(store)
        self.clock = clock

    async def split_purchase(
        self,
        total_amount: Amount,
        installment_count: int,
        first_due_date: date,
        supplier_name: str,
        description: str,
        category: Optional[str] = None,
        due_dates: Optional[Sequence[Optional[date]]] = None,
        notes: Optional[str] = None,
        expense_id: Optional[str] = None,
        supplier_id: Optional[str] = None
    ) -> List[PendingInstallment]:
        """
        Create a purchase and its installment rows.

        Rows are written in one batch. When the batch fails the rows and
        the purchase are deleted again before the StoreError propagates.
        """
        total_cents = to_cents(total_amount)
        self._validate_plan(total_cents, installment_count)
        if not supplier_name or not supplier_name.strip():
            raise ValidationError("Supplier name is required")
        if not description or not description.strip():
            raise ValidationError("Description is required")

        now = self.clock()
        purchase = Purchase(
            supplier_id=supplier_id,
            supplier_name=supplier_name,
            description=description,
            category=category,
            notes=notes,
            expense_id=expense_id,
            total_amount_cents=total_cents,
            total_installments=installment_count,
            created_at=now,
            updated_at=now
        )
        rows = self._build_rows(purchase, plan_due_dates(first_due_date, installment_count, due_dates))

        await self.purchases.insert_purchase(purchase)
        await self._insert_rows(rows, purchase_id=purchase.id, drop_purchase=True)
        logger.info(
            "Split purchase %s: %d cents in %d installments",
            purchase.id, total_cents, installment_count,
            extra={"context": {"purchase_id": purchase.id, "total_cents": total_cents}}
        )
        return rows

    async def pay_installment(self, installment_id: str) -> PendingInstallment:
        """Mark an installment paid. Paying it again changes nothing."""
        row = await self._get_or_raise(installment_id)
        if row.paid:
            return row

        now = self.clock()
        row = row.model_copy(update={"paid": True, "paid_at": now, "updated_at": now})
        return await self.installments.save_installment(row, ["paid", "paid_at"])

    async def edit_installment(self, installment_id: str, **fields) -> PendingInstallment:
        """Edit one row in place. Sibling rows are not rebalanced."""
        unknown = fields.keys() - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

        updates = dict(fields)
        if "amount" in updates:
            updates["amount_cents"] = _positive_cents(updates.pop("amount"))
        _check_names(updates)

        row = await self._get_or_raise(installment_id)
        row = row.model_copy(update={**updates, "updated_at": self.clock()})
        saved = await self.installments.save_installment(row, updates.keys())

        if "amount_cents" in updates:
            await self._check_purchase_sum(saved.purchase_id, saved.total_amount_cents)
        return saved

    async def replan_purchase(
        self,
        installment_ids: List[str],
        new_total_amount: Optional[Amount] = None,
        new_installment_count: Optional[int] = None,
        new_dates: Optional[Sequence[Optional[date]]] = None,
        common_edits: Optional[Dict] = None,
        installment_updates: Optional[Dict[str, Dict]] = None
    ) -> List[PendingInstallment]:
        """
        Rework the installments of one purchase.

        With a new total or count the named rows are deleted and split
        again under the same purchase; paid flags do not survive.
        Otherwise common edits go to every row and per-row amount/due_date
        overrides are applied. Every edit is validated before the first write.
        """
        common_edits = {k: v for k, v in (common_edits or {}).items() if v is not None}
        unknown = common_edits.keys() - SHARED_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit fields: {', '.join(sorted(unknown))}")
        _check_names(common_edits)

        rows = await self.installments.get_many(installment_ids)
        if not rows:
            raise NotFoundError("None of the installments exist")

        if new_total_amount is not None or new_installment_count is not None:
            return await self._regenerate(rows, new_total_amount, new_installment_count, new_dates, common_edits)
        return await self._apply_edits(rows, common_edits, installment_updates or {})

    async def _regenerate(
        self,
        rows: List[PendingInstallment],
        new_total_amount: Optional[Amount],
        new_installment_count: Optional[int],
        new_dates: Optional[Sequence[Optional[date]]],
        common_edits: Dict
    ) -> List[PendingInstallment]:
        first = rows[0]
        total_cents = to_cents(new_total_amount) if new_total_amount is not None else first.total_amount_cents
        count = new_installment_count if new_installment_count is not None else first.total_installments
        self._validate_plan(total_cents, count)

        paid = [r for r in rows if r.paid]
        if paid:
            _drift(
                "replanning purchase %s discards paid flags of installments %s",
                first.purchase_id, [r.installment_number for r in paid]
            )

        now = self.clock()
        purchase = await self.purchases.get_purchase(first.purchase_id)
        if purchase is None:
            purchase = Purchase(
                id=first.purchase_id,
                supplier_id=first.supplier_id,
                supplier_name=first.supplier_name,
                description=first.description,
                category=first.category,
                notes=first.notes,
                expense_id=first.expense_id,
                total_amount_cents=total_cents,
                total_installments=count,
                created_at=now
            )
            await self.purchases.insert_purchase(purchase)
        purchase = purchase.model_copy(update={
            **common_edits,
            "total_amount_cents": total_cents,
            "total_installments": count,
            "updated_at": now
        })

        start = (new_dates[0] if new_dates else None) or first.due_date
        new_rows = self._build_rows(purchase, plan_due_dates(start, count, new_dates))

        await self.installments.delete_installments([r.id for r in rows])
        await self._insert_rows(new_rows, purchase_id=purchase.id)
        await self.purchases.save_purchase(
            purchase,
            {"total_amount_cents", "total_installments"} | common_edits.keys()
        )
        logger.info(
            "Replanned purchase %s: %d rows -> %d rows, %d cents",
            purchase.id, len(rows), count, total_cents
        )
        return new_rows

    async def _apply_edits(
        self,
        rows: List[PendingInstallment],
        common_edits: Dict,
        installment_updates: Dict[str, Dict]
    ) -> List[PendingInstallment]:
        overrides = {}
        for row in rows:
            override = {k: v for k, v in installment_updates.get(row.id, {}).items() if v is not None}
            unknown = override.keys() - OVERRIDE_FIELDS
            if unknown:
                raise ValidationError(f"Cannot override fields: {', '.join(sorted(unknown))}")
            if "amount" in override:
                override["amount_cents"] = _positive_cents(override.pop("amount"))
            overrides[row.id] = override

        now = self.clock()
        saved = []
        for row in rows:
            updates = dict(common_edits)
            updates.update(overrides[row.id])
            if not updates:
                saved.append(row)
                continue
            row = row.model_copy(update={**updates, "updated_at": now})
            saved.append(await self.installments.save_installment(row, updates.keys()))

        if common_edits:
            purchase = await self.purchases.get_purchase(rows[0].purchase_id)
            if purchase is not None:
                purchase = purchase.model_copy(update={**common_edits, "updated_at": now})
                await self.purchases.save_purchase(purchase, common_edits.keys())
        return saved

    async def delete_installment(self, installment_id: str) -> None:
        row = await self._get_or_raise(installment_id)
        await self.installments.delete_installments([row.id])
        await self._drop_empty_purchases([row.purchase_id])

    async def delete_purchase(self, installment_ids: List[str]) -> int:
        """Delete the named installments. Expenses they came from are kept."""
        rows = await self.installments.get_many(installment_ids)
        if not rows:
            raise NotFoundError("None of the installments exist")
        deleted = await self.installments.delete_installments([r.id for r in rows])
        await self._drop_empty_purchases({r.purchase_id for r in rows})
        logger.info("Deleted %d installments", deleted)
        return deleted

    async def list_installments(self, paid: Optional[bool] = None) -> List[PendingInstallment]:
        if paid is None:
            return await self.installments.list_installments()
        return await self.installments.list_installments(paid=paid)

    async def list_pending(self) -> List[PendingInstallment]:
        return await self.list_installments(paid=False)

    async def total_pending_amount(self) -> int:
        return sum(r.amount_cents for r in await self.list_pending())

    async def get_purchase_installments(self, purchase_id: str) -> List[PendingInstallment]:
        rows = await self.installments.list_installments(purchase_id=purchase_id)
        return sorted(rows, key=lambda r: r.installment_number)

    # Helpers

    @staticmethod
    def _validate_plan(total_cents: int, count: int) -> None:
        if total_cents <= 0:
            raise ValidationError("Total amount must be positive")
        if count < 1:
            raise ValidationError(f"Installment count must be at least 1, got {count}")

    def _build_rows(self, purchase: Purchase, due_dates: List[date]) -> List[PendingInstallment]:
        now = self.clock()
        count = len(due_dates)
        return [
            PendingInstallment(
                purchase_id=purchase.id,
                expense_id=purchase.expense_id,
                supplier_id=purchase.supplier_id,
                supplier_name=purchase.supplier_name,
                description=purchase.description,
                category=purchase.category,
                notes=purchase.notes,
                installment_number=number,
                total_installments=count,
                amount_cents=amount,
                total_amount_cents=purchase.total_amount_cents,
                due_date=due_date,
                created_at=now,
                updated_at=now
            )
            for number, (amount, due_date) in enumerate(
                zip(split_cents(purchase.total_amount_cents, count), due_dates), start=1
            )
        ]

    async def _insert_rows(
        self,
        rows: List[PendingInstallment],
        purchase_id: str,
        drop_purchase: bool = False
    ) -> None:
        try:
            await self.installments.insert_installments(rows)
        except StoreError:
            logger.error("Installment batch for purchase %s failed, rolling back", purchase_id)
            try:
                await self.installments.delete_installments([r.id for r in rows])
                if drop_purchase:
                    await self.purchases.delete_purchases([purchase_id])
            except StoreError:
                logger.exception("Rollback of purchase %s failed", purchase_id)
            raise

    async def _check_purchase_sum(self, purchase_id: str, expected_cents: int) -> None:
        rows = await self.installments.list_installments(purchase_id=purchase_id)
        actual = sum(r.amount_cents for r in rows)
        if actual != expected_cents:
            _drift(
                "installments of purchase %s add up to %d cents, purchase total is %d",
                purchase_id, actual, expected_cents
            )

    async def _drop_empty_purchases(self, purchase_ids) -> None:
        empty = []
        for purchase_id in purchase_ids:
            if not await self.installments.list_installments(purchase_id=purchase_id):
                empty.append(purchase_id)
        await self.purchases.delete_purchases(empty)

    async def _get_or_raise(self, installment_id: str) -> PendingInstallment:
        row = await self.installments.get_installment(installment_id)
        if not row:
            raise NotFoundError(f"Installment {installment_id} not found")
        return row
