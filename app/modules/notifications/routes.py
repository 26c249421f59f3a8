from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import NotificationResponse, NotificationSend, UnreadCountResponse
from app.modules.notifications.service import NotificationService
from app.modules.notifications.dispatcher import NotificationDispatcher
from app.modules.notifications.providers import (
    EmailProvider, SmsProvider, get_email_provider, get_sms_provider
)
from app.core.dependencies import require_permission, is_admin
from app.core.exceptions import Forbidden
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(
    supabase: Client = Depends(get_supabase),
    email_provider: EmailProvider = Depends(get_email_provider)
) -> NotificationService:
    return NotificationService(supabase, email_provider)


def get_dispatcher(
    supabase: Client = Depends(get_supabase),
    email_provider: EmailProvider = Depends(get_email_provider),
    sms_provider: SmsProvider = Depends(get_sms_provider)
) -> NotificationDispatcher:
    return NotificationDispatcher(supabase, email_provider, sms_provider)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    user_data: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    """Current user's notifications, newest first"""
    return service.list_notifications(user_data["id"])


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_data: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    return {"unread": service.unread_count(user_data["id"])}


@router.get("/user/{user_id}", response_model=List[NotificationResponse])
async def list_user_notifications(
    user_id: str,
    user_data: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    """Notifications of a given user (self or admin)"""
    if user_data["id"] != user_id and not is_admin(user_data):
        raise Forbidden()
    return service.list_notifications(user_id)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    user_data: Dict = Depends(require_permission("notifications:update")),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(notification_id, user_data)


@router.post("/mark-all-read")
async def mark_all_read(
    user_data: Dict = Depends(require_permission("notifications:update")),
    service: NotificationService = Depends(get_notification_service)
):
    updated = service.mark_all_read(user_data["id"])
    return {"message": "All notifications marked as read", "updated": updated}


@router.post("/send", response_model=NotificationResponse, status_code=201)
async def send_notification(
    send_data: NotificationSend,
    user_data: Dict = Depends(require_permission("notifications:send")),
    service: NotificationService = Depends(get_notification_service)
):
    """Admin sends a notification to a user"""
    return service.send_notification(send_data)
