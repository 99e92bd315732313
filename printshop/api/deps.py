from typing import List, Optional

from fastapi import Depends, Query, Request

from printshop.core.config import settings
from printshop.db.session import get_store
from printshop.db.store import RecordStore
from printshop.services.commission_engine import CommissionEngine
from printshop.services.expense_service import ExpenseBook
from printshop.services.installment_planner import InstallmentPlanner
from printshop.services.notification_service import NotificationService
from printshop.services.order_ledger import OrderLedger


async def get_notifier(request: Request) -> Optional[NotificationService]:
    """The app-wide notifier created at startup."""
    return getattr(request.app.state, "notifier", None)


async def get_seller_scope(
    seller_ids: Optional[List[str]] = Query(None)
) -> Optional[List[str]]:
    """Sellers the caller may see. None means no restriction."""
    return seller_ids


async def get_order_ledger(
    store: RecordStore = Depends(get_store),
    notifier: Optional[NotificationService] = Depends(get_notifier)
) -> OrderLedger:
    return OrderLedger(store, notifier)


async def get_installment_planner(store: RecordStore = Depends(get_store)) -> InstallmentPlanner:
    return InstallmentPlanner(store)


async def get_commission_engine(
    store: RecordStore = Depends(get_store),
    notifier: Optional[NotificationService] = Depends(get_notifier)
) -> CommissionEngine:
    return CommissionEngine(store, notifier, config=settings)


async def get_expense_book(store: RecordStore = Depends(get_store)) -> ExpenseBook:
    return ExpenseBook(store)


async def get_notification_service(store: RecordStore = Depends(get_store)) -> NotificationService:
    return NotificationService(store, config=settings)
