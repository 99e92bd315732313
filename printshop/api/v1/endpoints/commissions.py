from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from printshop.api.deps import get_commission_engine, get_seller_scope
from printshop.core.config import settings
from printshop.core.errors import NotFoundError
from printshop.models.commission import Seller
from printshop.schemas.commission import CommissionPayRequest, CommissionReport
from printshop.schemas.expense import ExpenseResponse
from printshop.services.commission_engine import CommissionEngine, commission_summary
from printshop.utils.dates import month_label, month_window

router = APIRouter()


def require_commissions():
    if not settings.USES_COMMISSION:
        raise HTTPException(status_code=403, detail="Commissions are disabled")


@router.get("/", response_model=CommissionReport, dependencies=[Depends(require_commissions)])
async def get_commissions(
    year: int,
    month: int = Query(..., ge=1, le=12),
    rate: Optional[Decimal] = None,
    seller_ids: Optional[List[str]] = Depends(get_seller_scope),
    engine: CommissionEngine = Depends(get_commission_engine)
):
    """Commissions per seller for one calendar month"""
    start, end = month_window(year, month)
    rate = engine.default_rate if rate is None else rate
    commissions = await engine.seller_commissions(start, end, rate, seller_ids)
    return CommissionReport(
        period=month_label(year, month),
        period_start=start,
        period_end=end,
        commissions=commissions,
        summary=commission_summary(commissions, rate)
    )


@router.post("/pay", response_model=ExpenseResponse, dependencies=[Depends(require_commissions)])
async def pay_commission(
    pay_in: CommissionPayRequest,
    engine: CommissionEngine = Depends(get_commission_engine)
):
    """Pay a seller's commission for the month, recorded as an expense"""
    start, end = month_window(pay_in.year, pay_in.month)
    commissions = await engine.seller_commissions(start, end, pay_in.rate, [pay_in.seller_id])
    if not commissions:
        raise NotFoundError(f"No commission for seller {pay_in.seller_id} in {pay_in.month}/{pay_in.year}")
    return await engine.pay_commission(commissions[0], month_label(pay_in.year, pay_in.month))


@router.get("/sellers", response_model=List[Seller], dependencies=[Depends(require_commissions)])
async def list_sellers(
    seller_ids: Optional[List[str]] = Depends(get_seller_scope),
    engine: CommissionEngine = Depends(get_commission_engine)
):
    return await engine.list_sellers(seller_ids)
