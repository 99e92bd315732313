from typing import List, Optional
from fastapi import APIRouter, Depends, status

from printshop.api.deps import get_notification_service
from printshop.schemas.notification import NotificationResponse, UnreadCount
from printshop.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    user_id: Optional[str] = None,
    unread_only: bool = False,
    service: NotificationService = Depends(get_notification_service)
):
    """A user's notifications plus the broadcast ones, newest first"""
    return await service.list_for_user(user_id, unread_only)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    user_id: Optional[str] = None,
    service: NotificationService = Depends(get_notification_service)
):
    return UnreadCount(unread=await service.unread_count(user_id))


@router.post("/read-all")
async def mark_all_read(
    user_id: Optional[str] = None,
    service: NotificationService = Depends(get_notification_service)
):
    return {"updated": await service.mark_all_read(user_id)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service)
):
    return await service.mark_read(notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service)
):
    await service.delete_notification(notification_id)
