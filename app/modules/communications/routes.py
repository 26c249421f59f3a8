from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.communications.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse,
    HistoryCreate, HistoryResponse, SendCommunicationRequest, SendCommunicationResponse
)
from app.modules.communications.service import CommunicationService
from app.modules.notifications.dispatcher import NotificationDispatcher
from app.modules.notifications.routes import get_dispatcher
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/communications", tags=["communications"])


def get_communication_service(
    supabase: Client = Depends(get_supabase),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> CommunicationService:
    return CommunicationService(supabase, dispatcher)


@router.get("/templates", response_model=List[TemplateResponse])
async def list_templates(
    user_data: Dict = Depends(require_permission("communications:read")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.list_templates()


@router.get("/templates/type/{template_type}", response_model=List[TemplateResponse])
async def list_templates_by_type(
    template_type: str,
    user_data: Dict = Depends(require_permission("communications:read")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.list_templates(template_type=template_type)


@router.get("/templates/category/{category}", response_model=List[TemplateResponse])
async def list_templates_by_category(
    category: str,
    user_data: Dict = Depends(require_permission("communications:read")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.list_templates(category=category)


@router.get("/templates/default/{template_type}/{category}", response_model=TemplateResponse)
async def get_default_template(
    template_type: str,
    category: str,
    user_data: Dict = Depends(require_permission("communications:read")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.get_default_template(template_type, category)


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    user_data: Dict = Depends(require_permission("communications:read")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.get_template(template_id)


@router.post("/templates", response_model=TemplateResponse, status_code=201)
async def create_template(
    template_data: TemplateCreate,
    user_data: Dict = Depends(require_permission("communications:create")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.create_template(template_data, user_data["id"])


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    template_data: TemplateUpdate,
    user_data: Dict = Depends(require_permission("communications:update")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.update_template(template_id, template_data)


@router.delete("/templates/{template_id}", status_code=204)
async def delete_template(
    template_id: str,
    user_data: Dict = Depends(require_permission("communications:delete")),
    service: CommunicationService = Depends(get_communication_service)
):
    service.delete_template(template_id)
    return None


@router.get("/history", response_model=List[HistoryResponse])
async def list_history(
    recipient_id: Optional[str] = None,
    sender_id: Optional[str] = None,
    type: Optional[str] = None,
    user_data: Dict = Depends(require_permission("communications:send")),
    service: CommunicationService = Depends(get_communication_service)
):
    """Admin view of sent communications, by recipient, sender or type"""
    return service.list_history(recipient_id=recipient_id, sender_id=sender_id, communication_type=type)


@router.get("/history/{history_id}", response_model=HistoryResponse)
async def get_history_entry(
    history_id: str,
    user_data: Dict = Depends(require_permission("communications:read")),
    service: CommunicationService = Depends(get_communication_service)
):
    return service.get_history_entry(history_id, user_data)


@router.post("/history", response_model=HistoryResponse, status_code=201)
async def create_history_entry(
    history_data: HistoryCreate,
    user_data: Dict = Depends(require_permission("communications:create")),
    service: CommunicationService = Depends(get_communication_service)
):
    """Record a communication sent outside the portal; the caller is the sender"""
    return service.create_history_entry(history_data, user_data["id"])


@router.post("/send", response_model=SendCommunicationResponse, status_code=201)
async def send_communication(
    request: SendCommunicationRequest,
    user_data: Dict = Depends(require_permission("communications:send")),
    service: CommunicationService = Depends(get_communication_service)
):
    """Render a template for a recipient and deliver it; the attempt is always recorded"""
    return service.send_communication(request, user_data["id"])
