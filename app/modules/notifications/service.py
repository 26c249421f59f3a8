from supabase import Client
from app.core.exceptions import NotFound, Forbidden
from app.modules.notifications.providers import EmailProvider
from app.modules.notifications.schemas import NotificationResponse, NotificationSend
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

NOTIFICATION_SUBJECTS = {
    "content": "Content Update",
    "appointment": "Appointment Update",
    "message": "New Message",
    "billing": "Billing Update",
}


def get_notification_subject(notification_type: str) -> str:
    return NOTIFICATION_SUBJECTS.get(notification_type, "New Notification")


class NotificationService:
    def __init__(self, supabase: Client, email_provider: Optional[EmailProvider] = None):
        self.supabase = supabase
        self.email_provider = email_provider

    def create_notification(
        self,
        recipient_id: str,
        notification_type: str,
        content: str,
        title: Optional[str] = None,
        link: Optional[str] = None,
        delivery_method: str = "in-app",
    ) -> NotificationResponse:
        """Insert a notification row for the recipient"""
        try:
            result = self.supabase.table("notifications").insert({
                "recipient_id": recipient_id,
                "type": notification_type,
                "title": title or get_notification_subject(notification_type),
                "content": content,
                "link": link,
                "is_read": False,
                "delivery_method": delivery_method,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create notification")

            return NotificationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_notification(self, notification_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("id", notification_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise NotFound("Notification not found")

            return NotificationResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_notifications(self, user_id: str) -> List[NotificationResponse]:
        """All notifications for a user, newest first"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("recipient_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [NotificationResponse(**n) for n in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def unread_count(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .select("id")\
                .eq("recipient_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, notification_id: str, user_data: Dict[str, Any]) -> NotificationResponse:
        """Mark one notification read. Only its recipient or an admin may do this."""
        notification = self.get_notification(notification_id)
        if notification.recipient_id != user_data["id"] and user_data.get("role") != "admin":
            raise Forbidden()
        if notification.is_read:
            return notification
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True, "read_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", notification_id)\
                .execute()
            if not result.data:
                raise NotFound("Notification not found")
            return NotificationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of the user read; returns how many changed"""
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True, "read_at": datetime.now(timezone.utc).isoformat()})\
                .eq("recipient_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def send_notification(self, send_data: NotificationSend) -> NotificationResponse:
        """Admin-initiated notification; email delivery is attempted on top of the stored row"""
        notification = self.create_notification(
            recipient_id=send_data.user_id,
            notification_type=send_data.type,
            content=send_data.content,
            title=send_data.title,
            link=send_data.link,
            delivery_method=send_data.delivery_method,
        )
        if send_data.delivery_method == "email" and self.email_provider and self.email_provider.configured:
            user_result = self.supabase.table("users")\
                .select("email")\
                .eq("id", send_data.user_id)\
                .maybe_single()\
                .execute()
            email = user_result.data.get("email") if user_result and user_result.data else None
            if email:
                subject = f"ManageTheFans Notification: {get_notification_subject(send_data.type)}"
                html = (
                    "<div><h1>ManageTheFans Notification</h1>"
                    f"<p>{send_data.content}</p>"
                    "<p>Log in to your account to view more details.</p></div>"
                )
                try:
                    self.email_provider.send(email, subject, send_data.content, html)
                except Exception as e:
                    logger.error(f"Notification email to user {send_data.user_id} failed: {e}")
        return notification
