from typing import List, Optional
from fastapi import APIRouter, Depends, status

from printshop.api.deps import get_expense_book
from printshop.schemas.expense import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseTotals,
    FixedExpenseCreate,
    FixedExpenseResponse,
    FixedExpenseUpdate,
)
from printshop.services.expense_service import ExpenseBook

router = APIRouter()


@router.get("/", response_model=List[ExpenseResponse])
async def list_expenses(
    category: Optional[str] = None,
    book: ExpenseBook = Depends(get_expense_book)
):
    """List expenses, most recent first"""
    return await book.list_expenses(category)


@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_expense(expense_in: ExpenseCreate, book: ExpenseBook = Depends(get_expense_book)):
    return await book.add_expense(**expense_in.model_dump())


@router.get("/totals", response_model=ExpenseTotals)
async def get_totals(book: ExpenseBook = Depends(get_expense_book)):
    return ExpenseTotals(
        total_expenses_cents=await book.total_expenses(),
        total_fixed_cents=await book.total_fixed_expenses(),
        supplier_balances=await book.supplier_balances()
    )


@router.get("/fixed", response_model=List[FixedExpenseResponse])
async def list_fixed_expenses(book: ExpenseBook = Depends(get_expense_book)):
    return await book.list_fixed_expenses()


@router.post("/fixed", response_model=FixedExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_fixed_expense(
    expense_in: FixedExpenseCreate,
    book: ExpenseBook = Depends(get_expense_book)
):
    return await book.add_fixed_expense(**expense_in.model_dump())


@router.get("/fixed/due", response_model=List[FixedExpenseResponse])
async def due_this_month(book: ExpenseBook = Depends(get_expense_book)):
    """Active fixed expenses not yet due this month"""
    return await book.due_this_month()


@router.patch("/fixed/{expense_id}", response_model=FixedExpenseResponse)
async def update_fixed_expense(
    expense_id: str,
    expense_in: FixedExpenseUpdate,
    book: ExpenseBook = Depends(get_expense_book)
):
    return await book.update_fixed_expense(expense_id, **expense_in.model_dump(exclude_unset=True))


@router.delete("/fixed/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fixed_expense(expense_id: str, book: ExpenseBook = Depends(get_expense_book)):
    await book.delete_fixed_expense(expense_id)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(expense_id: str, book: ExpenseBook = Depends(get_expense_book)):
    await book.delete_expense(expense_id)
