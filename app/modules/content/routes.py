from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.content.schemas import MediaCreate, MediaReject, MediaResponse
from app.modules.content.service import ContentService
from app.modules.notifications.service import NotificationService
from app.core.dependencies import require_permission, is_admin
from app.core.exceptions import Forbidden
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/content", tags=["content"])


def get_content_service(supabase: Client = Depends(get_supabase)) -> ContentService:
    return ContentService(supabase, NotificationService(supabase))


@router.post("", response_model=MediaResponse, status_code=201)
async def register_content(
    media_data: MediaCreate,
    user_data: Dict = Depends(require_permission("content:create")),
    service: ContentService = Depends(get_content_service)
):
    """Register an uploaded file for review"""
    return service.register_media(media_data, user_data["id"])


@router.get("", response_model=List[MediaResponse])
async def list_own_content(
    user_data: Dict = Depends(require_permission("content:read")),
    service: ContentService = Depends(get_content_service)
):
    return service.list_media(user_id=user_data["id"])


@router.get("/pending", response_model=List[MediaResponse])
async def list_pending_content(
    user_data: Dict = Depends(require_permission("content:review")),
    service: ContentService = Depends(get_content_service)
):
    """Review queue (admin)"""
    return service.list_media(status="pending")


@router.get("/user/{user_id}", response_model=List[MediaResponse])
async def list_user_content(
    user_id: str,
    status: Optional[str] = None,
    user_data: Dict = Depends(require_permission("content:read")),
    service: ContentService = Depends(get_content_service)
):
    if user_data["id"] != user_id and not is_admin(user_data):
        raise Forbidden()
    return service.list_media(user_id=user_id, status=status)


@router.get("/{media_id}", response_model=MediaResponse)
async def get_content(
    media_id: str,
    user_data: Dict = Depends(require_permission("content:read")),
    service: ContentService = Depends(get_content_service)
):
    return service.get_media_for_user(media_id, user_data)


@router.put("/{media_id}/approve", response_model=MediaResponse)
async def approve_content(
    media_id: str,
    user_data: Dict = Depends(require_permission("content:review")),
    service: ContentService = Depends(get_content_service)
):
    return service.approve(media_id)


@router.put("/{media_id}/reject", response_model=MediaResponse)
async def reject_content(
    media_id: str,
    reject_data: Optional[MediaReject] = None,
    user_data: Dict = Depends(require_permission("content:review")),
    service: ContentService = Depends(get_content_service)
):
    return service.reject(media_id, reject_data.reason if reject_data else None)


@router.delete("/{media_id}", status_code=204)
async def delete_content(
    media_id: str,
    user_data: Dict = Depends(require_permission("content:create")),
    service: ContentService = Depends(get_content_service)
):
    service.delete_media(media_id, user_data)
    return None
