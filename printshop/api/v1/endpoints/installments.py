from typing import List, Optional
from fastapi import APIRouter, Depends, status

from printshop.api.deps import get_installment_planner
from printshop.schemas.installment import (
    InstallmentResponse,
    InstallmentUpdate,
    PendingTotalResponse,
    PurchaseCreate,
    PurchaseDelete,
    PurchaseReplan,
)
from printshop.services.installment_planner import InstallmentPlanner

router = APIRouter()


@router.get("/", response_model=List[InstallmentResponse])
async def list_installments(
    paid: Optional[bool] = None,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    """List installments by due date"""
    return await planner.list_installments(paid)


@router.post("/", response_model=List[InstallmentResponse], status_code=status.HTTP_201_CREATED)
async def split_purchase(
    purchase_in: PurchaseCreate,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    """Split a purchase into monthly installments"""
    return await planner.split_purchase(**purchase_in.model_dump())


@router.get("/pending-total", response_model=PendingTotalResponse)
async def pending_total(planner: InstallmentPlanner = Depends(get_installment_planner)):
    pending = await planner.list_pending()
    return PendingTotalResponse(count=len(pending), total_cents=sum(r.amount_cents for r in pending))


@router.get("/purchases/{purchase_id}", response_model=List[InstallmentResponse])
async def get_purchase_installments(
    purchase_id: str,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    return await planner.get_purchase_installments(purchase_id)


@router.post("/purchases/replan", response_model=List[InstallmentResponse])
async def replan_purchase(
    replan_in: PurchaseReplan,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    """Regenerate or bulk-edit the installments of a purchase"""
    return await planner.replan_purchase(
        replan_in.installment_ids,
        new_total_amount=replan_in.new_total_amount,
        new_installment_count=replan_in.new_installment_count,
        new_dates=replan_in.new_dates,
        common_edits=replan_in.common_edits.model_dump() if replan_in.common_edits else None,
        installment_updates={
            installment_id: override.model_dump()
            for installment_id, override in replan_in.installment_updates.items()
        }
    )


@router.post("/purchases/delete")
async def delete_purchase(
    delete_in: PurchaseDelete,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    deleted = await planner.delete_purchase(delete_in.installment_ids)
    return {"deleted": deleted}


@router.post("/{installment_id}/pay", response_model=InstallmentResponse)
async def pay_installment(
    installment_id: str,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    """Mark an installment paid (idempotent)"""
    return await planner.pay_installment(installment_id)


@router.patch("/{installment_id}", response_model=InstallmentResponse)
async def edit_installment(
    installment_id: str,
    installment_in: InstallmentUpdate,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    return await planner.edit_installment(installment_id, **installment_in.model_dump(exclude_unset=True))


@router.delete("/{installment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_installment(
    installment_id: str,
    planner: InstallmentPlanner = Depends(get_installment_planner)
):
    await planner.delete_installment(installment_id)
