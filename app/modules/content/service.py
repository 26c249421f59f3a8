from supabase import Client
from app.core.exceptions import NotFound, Forbidden
from app.modules.content.schemas import MediaCreate, MediaResponse
from app.modules.notifications.service import NotificationService
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ContentService:
    def __init__(self, supabase: Client, notifications: Optional[NotificationService] = None):
        self.supabase = supabase
        self.notifications = notifications

    def register_media(self, media_data: MediaCreate, user_id: str) -> MediaResponse:
        """Record metadata for a file the client uploaded to storage"""
        try:
            insert_data = media_data.model_dump(mode="json")
            insert_data["user_id"] = user_id
            insert_data["status"] = "pending"
            insert_data["upload_date"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("media_files").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to register content")
            media = MediaResponse(**result.data[0])
            logger.info(f"Content {media.id} registered by user {user_id}")
            return media
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_media(self, media_id: str) -> MediaResponse:
        try:
            result = self.supabase.table("media_files")\
                .select("*")\
                .eq("id", media_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise NotFound("File not found")
            return MediaResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_media_for_user(self, media_id: str, user_data: Dict[str, Any]) -> MediaResponse:
        media = self.get_media(media_id)
        if media.user_id != user_data["id"] and user_data.get("role") != "admin":
            raise Forbidden()
        return media

    def list_media(self, user_id: Optional[str] = None, status: Optional[str] = None) -> List[MediaResponse]:
        """Content newest first, optionally for one owner and/or one status"""
        try:
            query = self.supabase.table("media_files").select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            if status:
                query = query.eq("status", status)
            result = query.order("upload_date", desc=True).execute()
            return [MediaResponse(**m) for m in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _set_status(self, media: MediaResponse, status: str, message: str) -> MediaResponse:
        try:
            result = self.supabase.table("media_files")\
                .update({"status": status})\
                .eq("id", media.id)\
                .execute()
            if not result.data:
                raise NotFound("File not found")
            updated = MediaResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Content {media.id} {status}")
        if self.notifications:
            self.notifications.create_notification(
                recipient_id=media.user_id,
                notification_type="content",
                content=message,
                link="/content",
            )
        return updated

    def approve(self, media_id: str) -> MediaResponse:
        media = self.get_media(media_id)
        return self._set_status(media, "approved", f'Your content "{media.title}" has been approved.')

    def reject(self, media_id: str, reason: Optional[str] = None) -> MediaResponse:
        media = self.get_media(media_id)
        message = f'Your content "{media.title}" has been rejected. Reason: {reason or "No reason provided."}'
        return self._set_status(media, "rejected", message)

    def delete_media(self, media_id: str, user_data: Dict[str, Any]) -> bool:
        """Remove the metadata row (owner or admin); the stored object is left to storage policies"""
        self.get_media_for_user(media_id, user_data)
        try:
            self.supabase.table("media_files").delete().eq("id", media_id).execute()
            return True
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
