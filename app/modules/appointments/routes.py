from fastapi import APIRouter, Depends, BackgroundTasks
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.appointments import lifecycle
from app.modules.appointments.schemas import (
    AppointmentCreate, AppointmentResponse, AppointmentRespond,
    AppointmentNotificationRequest, AppointmentResendRequest, AppointmentNotificationResponse
)
from app.modules.appointments.service import AppointmentService
from app.modules.notifications.dispatcher import NotificationDispatcher, DispatchResult
from app.modules.notifications.routes import get_dispatcher
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/appointments", tags=["appointments"])


def get_appointment_service(
    supabase: Client = Depends(get_supabase),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> AppointmentService:
    return AppointmentService(supabase, dispatcher, allow_reopen=settings.allow_reopen)


def _notification_response(appointment_id: str, result: DispatchResult, verb: str) -> Dict:
    summary = result.to_dict()
    message = f"Notification {verb} via {result.method}"
    if result.partial:
        message += f" (failed: {', '.join(result.failed_channels)})"
    return {
        "appointment_id": appointment_id,
        "success": summary["success"],
        "partial": summary["partial"],
        "message": message,
        "channels": summary["channels"],
    }


@router.post("/propose", response_model=AppointmentResponse, status_code=201)
async def propose_appointment(
    appointment_data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_permission("appointments:propose")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Admin proposes an appointment to a client. The notification is sent after the response."""
    appointment = service.propose(appointment_data, user_data["id"])
    if appointment.notification_method:
        background_tasks.add_task(service.notify_proposal, appointment.id, user_data["id"])
    return appointment


@router.get("/client", response_model=List[AppointmentResponse])
async def list_client_appointments(
    status: Optional[str] = None,
    user_data: Dict = Depends(require_permission("appointments:read")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Appointments of the current client"""
    return service.list_appointments(client_id=user_data["id"], status=status)


@router.get("/client/pending", response_model=List[AppointmentResponse])
async def list_pending_proposals(
    user_data: Dict = Depends(require_permission("appointments:respond")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Pending proposals awaiting the current client's answer"""
    return service.list_appointments(client_id=user_data["id"], status=lifecycle.PENDING)


@router.get("/admin", response_model=List[AppointmentResponse])
async def list_admin_appointments(
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    mine: bool = False,
    user_data: Dict = Depends(require_permission("appointments:manage")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """All appointments, optionally only those proposed by the current admin"""
    return service.list_appointments(
        client_id=client_id,
        admin_id=user_data["id"] if mine else None,
        status=status
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    user_data: Dict = Depends(require_permission("appointments:read")),
    service: AppointmentService = Depends(get_appointment_service)
):
    return service.get_appointment_for_user(appointment_id, user_data)


def _respond(
    appointment_id: str,
    status: str,
    user_data: Dict,
    service: AppointmentService,
    background_tasks: BackgroundTasks
) -> AppointmentResponse:
    appointment = service.respond(appointment_id, status, user_data)
    client_name = user_data.get("full_name") or user_data.get("email")
    background_tasks.add_task(service.notify_response, appointment, client_name)
    return appointment


@router.put("/{appointment_id}/respond", response_model=AppointmentResponse)
async def respond_to_appointment(
    appointment_id: str,
    respond_data: AppointmentRespond,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_permission("appointments:respond")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Client approves or declines a pending proposal"""
    return _respond(appointment_id, respond_data.status, user_data, service, background_tasks)


@router.post("/{appointment_id}/approve", response_model=AppointmentResponse)
async def approve_appointment(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_permission("appointments:respond")),
    service: AppointmentService = Depends(get_appointment_service)
):
    return _respond(appointment_id, lifecycle.APPROVED, user_data, service, background_tasks)


@router.post("/{appointment_id}/decline-proposal", response_model=AppointmentResponse)
async def decline_proposal(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_permission("appointments:respond")),
    service: AppointmentService = Depends(get_appointment_service)
):
    return _respond(appointment_id, lifecycle.DECLINED, user_data, service, background_tasks)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_permission("appointments:cancel")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Cancel a pending or approved appointment (admin, or the appointment's client)"""
    appointment = service.cancel(appointment_id, user_data)
    background_tasks.add_task(service.notify_cancellation, appointment, user_data)
    return appointment


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: str,
    user_data: Dict = Depends(require_permission("appointments:manage")),
    service: AppointmentService = Depends(get_appointment_service)
):
    return service.mark_completed(appointment_id)


@router.post("/{appointment_id}/decline", response_model=AppointmentResponse)
async def decline_appointment(
    appointment_id: str,
    user_data: Dict = Depends(require_permission("appointments:manage")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Admin declines a pending appointment"""
    return service.decline(appointment_id)


@router.post("/{appointment_id}/reopen", response_model=AppointmentResponse)
async def reopen_appointment(
    appointment_id: str,
    user_data: Dict = Depends(require_permission("appointments:manage")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Move a declined, completed or cancelled appointment back to pending (policy permitting)"""
    return service.reopen(appointment_id)


@router.post("/{appointment_id}/notification", response_model=AppointmentNotificationResponse)
async def send_appointment_notification(
    appointment_id: str,
    request: AppointmentNotificationRequest,
    user_data: Dict = Depends(require_permission("appointments:notify")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Send a custom message to the appointment's client"""
    result = service.send_notification(appointment_id, request.method, request.message, user_data["id"])
    return _notification_response(appointment_id, result, "sent")


@router.post("/{appointment_id}/resend-notification", response_model=AppointmentNotificationResponse)
async def resend_appointment_notification(
    appointment_id: str,
    request: Optional[AppointmentResendRequest] = None,
    user_data: Dict = Depends(require_permission("appointments:notify")),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Resend a reminder over the given or stored method; status is left unchanged"""
    method = request.notification_method if request else None
    result = service.resend_notification(appointment_id, method, user_data["id"])
    return _notification_response(appointment_id, result, "resent")
