from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from printshop.core.errors import NotFoundError, ValidationError
from printshop.core.logging import get_logger
from printshop.db.store import RecordStore
from printshop.models.expense import Expense, FixedExpense
from printshop.repositories.expense_repo import ExpenseRepository, FixedExpenseRepository
from printshop.utils.dates import as_aware, utcnow
from printshop.utils.money import Amount, to_cents

logger = get_logger(__name__)

FIXED_EXPENSE_FIELDS = {"name", "amount", "due_day", "category", "active"}


def _positive_cents(amount: Amount) -> int:
    cents = to_cents(amount)
    if cents <= 0:
        raise ValidationError(f"Amount must be positive, got {amount}")
    return cents


def _check_due_day(due_day: int) -> None:
    if not 1 <= due_day <= 31:
        raise ValidationError(f"Due day must be between 1 and 31, got {due_day}")


class ExpenseBook:
    """Cash-flow expenses and the monthly fixed-expense templates."""

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = utcnow):
        self.expenses = ExpenseRepository(store)
        self.fixed = FixedExpenseRepository(store)
        self.clock = clock

    async def add_expense(
        self,
        description: str,
        amount: Amount,
        supplier_name: str = "",
        supplier_id: Optional[str] = None,
        category: Optional[str] = None,
        date: Optional[datetime] = None
    ) -> Expense:
        amount_cents = _positive_cents(amount)
        if not description or not description.strip():
            raise ValidationError("Description is required")

        now = self.clock()
        expense = Expense(
            supplier_id=supplier_id,
            supplier_name=supplier_name,
            description=description,
            amount_cents=amount_cents,
            date=as_aware(date) if date else now,
            category=category or "Outros",
            created_at=now,
            updated_at=now
        )
        return await self.expenses.insert_expense(expense)

    async def list_expenses(self, category: Optional[str] = None) -> List[Expense]:
        if category is None:
            return await self.expenses.list_expenses()
        return await self.expenses.list_expenses(category=category)

    async def delete_expense(self, expense_id: str) -> None:
        if not await self.expenses.delete_expense(expense_id):
            raise NotFoundError(f"Expense {expense_id} not found")

    async def total_expenses(self) -> int:
        return sum(e.amount_cents for e in await self.expenses.list_expenses())

    async def supplier_balances(self) -> Dict[str, int]:
        """Total spent per supplier id. Expenses without a supplier are left out."""
        balances: Dict[str, int] = {}
        for expense in await self.expenses.list_expenses():
            if expense.supplier_id:
                balances[expense.supplier_id] = balances.get(expense.supplier_id, 0) + expense.amount_cents
        return balances

    # Fixed expenses

    async def add_fixed_expense(
        self,
        name: str,
        amount: Amount,
        due_day: int,
        category: Optional[str] = None,
        active: bool = True
    ) -> FixedExpense:
        amount_cents = _positive_cents(amount)
        _check_due_day(due_day)
        if not name or not name.strip():
            raise ValidationError("Name is required")

        now = self.clock()
        expense = FixedExpense(
            name=name,
            amount_cents=amount_cents,
            due_day=due_day,
            category=category or "Geral",
            active=active,
            created_at=now,
            updated_at=now
        )
        return await self.fixed.insert_fixed_expense(expense)

    async def update_fixed_expense(self, expense_id: str, **fields) -> FixedExpense:
        unknown = fields.keys() - FIXED_EXPENSE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        updates = dict(fields)
        if "amount" in updates:
            updates["amount_cents"] = _positive_cents(updates.pop("amount"))
        if "due_day" in updates:
            _check_due_day(updates["due_day"])

        expense = await self.fixed.get_fixed_expense(expense_id)
        if not expense:
            raise NotFoundError(f"Fixed expense {expense_id} not found")

        expense = expense.model_copy(update={**updates, "updated_at": self.clock()})
        await self.fixed.update_fixed_expense(
            expense_id,
            expense.model_dump(mode="json", include=set(updates) | {"updated_at"})
        )
        return expense

    async def delete_fixed_expense(self, expense_id: str) -> None:
        if not await self.fixed.delete_fixed_expense(expense_id):
            raise NotFoundError(f"Fixed expense {expense_id} not found")

    async def list_fixed_expenses(self) -> List[FixedExpense]:
        return await self.fixed.list_fixed_expenses()

    async def total_fixed_expenses(self) -> int:
        """Monthly total of the active templates."""
        return sum(e.amount_cents for e in await self.fixed.list_fixed_expenses() if e.active)

    async def due_this_month(self, today: Optional[date] = None) -> List[FixedExpense]:
        """Active templates still to be paid this month."""
        today = today or self.clock().date()
        return [
            e for e in await self.fixed.list_fixed_expenses()
            if e.active and e.due_day >= today.day
        ]
