from fastapi import APIRouter
from printshop.api.v1.endpoints import orders, installments, commissions, expenses, notifications

api_router = APIRouter()

api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(installments.router, prefix="/installments", tags=["installments"])
api_router.include_router(commissions.router, prefix="/commissions", tags=["commissions"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
