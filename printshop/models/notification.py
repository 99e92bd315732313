from typing import Any, Dict, Optional
from enum import Enum

from printshop.models.base import StoredModel


class NotificationType(str, Enum):
    NEW_SALE = "new_sale"
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_RECEIVED = "payment_received"
    ORDER_STATUS = "order_status"
    COMMISSION_PAID = "commission_paid"


class Notification(StoredModel):
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = {}
    user_id: Optional[str] = None  # None = every admin/manager
    read: bool = False
