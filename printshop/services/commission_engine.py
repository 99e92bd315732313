"""
CommissionEngine - seller commissions over paid order amounts.

compute_commissions is a pure function of its arguments: the same orders,
window and rate always give the same rows in the same order. Payouts are
written to the cash flow as expenses; the engine keeps no balance.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from printshop.core.config import Settings, settings
from printshop.core.errors import ValidationError
from printshop.core.logging import get_logger
from printshop.db.store import RecordStore
from printshop.models.commission import CommissionSummary, Seller, SellerCommission
from printshop.models.expense import COMMISSION_CATEGORY, Expense
from printshop.models.order import ServiceOrder
from printshop.repositories.expense_repo import ExpenseRepository
from printshop.repositories.order_repo import OrderRepository
from printshop.services.notification_service import NotificationService
from printshop.utils.dates import as_aware, utcnow
from printshop.utils.money import Amount, percent_of, to_decimal

logger = get_logger(__name__)


def compute_commissions(
    orders: Iterable[ServiceOrder],
    period_start: datetime,
    period_end: datetime,
    rate: Amount,
    accessible_seller_ids: Optional[Iterable[str]] = None
) -> List[SellerCommission]:
    """
    Group paid amounts per seller inside [period_start, period_end].

    Orders count when they have a seller, something paid, and (if a
    restriction is given) a seller in ``accessible_seller_ids``.
    Commission is total_sales * rate / 100, rounded half-up to the cent.
    Rows are sorted by commission descending, then seller id.
    """
    start, end = as_aware(period_start), as_aware(period_end)
    accessible = set(accessible_seller_ids) if accessible_seller_ids is not None else None

    eligible = [
        o for o in orders
        if o.seller_id
        and o.amount_paid_cents > 0
        and start <= as_aware(o.created_at) <= end
        and (accessible is None or o.seller_id in accessible)
    ]
    eligible.sort(key=lambda o: (as_aware(o.created_at), o.id))

    groups: Dict[str, List[ServiceOrder]] = {}
    for order in eligible:
        groups.setdefault(order.seller_id, []).append(order)

    commissions = []
    for seller_id, seller_orders in groups.items():
        total_sales = sum(o.amount_paid_cents for o in seller_orders)
        commissions.append(SellerCommission(
            seller_id=seller_id,
            seller_name=next((o.seller_name for o in seller_orders if o.seller_name), None),
            total_sales_cents=total_sales,
            commission_cents=percent_of(total_sales, rate),
            orders_count=len(seller_orders),
            order_ids=[o.id for o in seller_orders]
        ))
    commissions.sort(key=lambda c: (-c.commission_cents, c.seller_id))
    return commissions


def commission_summary(commissions: List[SellerCommission], rate: Amount) -> CommissionSummary:
    return CommissionSummary(
        total_sales_cents=sum(c.total_sales_cents for c in commissions),
        total_commission_cents=sum(c.commission_cents for c in commissions),
        orders_count=sum(c.orders_count for c in commissions),
        rate=to_decimal(rate)
    )


class CommissionEngine:
    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = utcnow,
        config: Settings = settings
    ):
        self.orders = OrderRepository(store)
        self.expenses = ExpenseRepository(store)
        self.notifier = notifier
        self.clock = clock
        self.config = config

    @property
    def default_rate(self) -> Decimal:
        return to_decimal(self.config.COMMISSION_PERCENTAGE)

    async def seller_commissions(
        self,
        period_start: datetime,
        period_end: datetime,
        rate: Optional[Amount] = None,
        accessible_seller_ids: Optional[List[str]] = None
    ) -> List[SellerCommission]:
        """Load the orders and compute commissions for the window."""
        if rate is None:
            rate = self.default_rate
        if to_decimal(rate) < 0:
            raise ValidationError("Commission rate cannot be negative")
        orders = await self.orders.list_orders()
        return compute_commissions(orders, period_start, period_end, rate, accessible_seller_ids)

    async def pay_commission(self, commission: SellerCommission, period: str) -> Expense:
        """Record a commission payout as a cash-flow expense."""
        if commission.commission_cents <= 0:
            raise ValidationError("Commission amount must be positive")

        seller_name = commission.seller_name or commission.seller_id
        now = self.clock()
        expense = Expense(
            supplier_name=COMMISSION_CATEGORY,
            description=f"Comissão de {seller_name} - {period}",
            amount_cents=commission.commission_cents,
            date=now,
            category=COMMISSION_CATEGORY,
            created_at=now,
            updated_at=now
        )
        await self.expenses.insert_expense(expense)
        logger.info(
            "Paid commission of %d cents to seller %s for %s",
            commission.commission_cents, commission.seller_id, period
        )

        if self.notifier:
            self.notifier.notify_commission_paid(
                commission.seller_id, seller_name, commission.commission_cents, period
            )
        return expense

    async def list_sellers(self, accessible_seller_ids: Optional[List[str]] = None) -> List[Seller]:
        """Distinct sellers that appear on orders, by name."""
        orders = await self.orders.list_orders()
        sellers: Dict[str, Seller] = {}
        for order in orders:
            if not order.seller_id or order.seller_id in sellers:
                continue
            if accessible_seller_ids is not None and order.seller_id not in accessible_seller_ids:
                continue
            sellers[order.seller_id] = Seller(seller_id=order.seller_id, seller_name=order.seller_name)
        return sorted(sellers.values(), key=lambda s: (s.seller_name or "", s.seller_id))
