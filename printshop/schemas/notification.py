from typing import Any, Dict, Optional
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

from printshop.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = {}
    user_id: Optional[str] = None
    read: bool
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class UnreadCount(BaseModel):
    unread: int
