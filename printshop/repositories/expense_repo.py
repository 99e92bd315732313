from typing import Dict, List, Optional

from printshop.db.store import RecordStore
from printshop.models.expense import Expense, FixedExpense
from printshop.utils.dates import as_aware


class ExpenseRepository:
    """Cash-flow expenses."""

    COLLECTION = "expenses"

    def __init__(self, store: RecordStore):
        self.store = store

    async def insert_expense(self, expense: Expense) -> Expense:
        await self.store.insert(self.COLLECTION, expense.to_record())
        return expense

    async def list_expenses(self, **filter) -> List[Expense]:
        """List expenses, most recent first."""
        docs = await self.store.get(self.COLLECTION, filter)
        expenses = [Expense(**doc) for doc in docs]
        expenses.sort(key=lambda e: as_aware(e.date), reverse=True)
        return expenses

    async def delete_expense(self, expense_id: str) -> bool:
        return await self.store.delete(self.COLLECTION, expense_id) > 0


class FixedExpenseRepository:
    """Recurring bill templates."""

    COLLECTION = "fixed_expenses"

    def __init__(self, store: RecordStore):
        self.store = store

    async def insert_fixed_expense(self, expense: FixedExpense) -> FixedExpense:
        await self.store.insert(self.COLLECTION, expense.to_record())
        return expense

    async def get_fixed_expense(self, expense_id: str) -> Optional[FixedExpense]:
        doc = await self.store.get_one(self.COLLECTION, expense_id)
        if doc:
            return FixedExpense(**doc)
        return None

    async def list_fixed_expenses(self) -> List[FixedExpense]:
        """List templates by due day."""
        docs = await self.store.get(self.COLLECTION)
        expenses = [FixedExpense(**doc) for doc in docs]
        expenses.sort(key=lambda e: e.due_day)
        return expenses

    async def update_fixed_expense(self, expense_id: str, fields: Dict) -> None:
        await self.store.update(self.COLLECTION, expense_id, fields)

    async def delete_fixed_expense(self, expense_id: str) -> bool:
        return await self.store.delete(self.COLLECTION, expense_id) > 0
