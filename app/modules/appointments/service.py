from supabase import Client
from app.config import settings
from app.core.exceptions import NotFound, Forbidden, InvalidTransition, ValidationFailed, DeliveryFailed
from app.modules.appointments import lifecycle
from app.modules.appointments.schemas import AppointmentCreate, AppointmentResponse
from app.modules.notifications.dispatcher import NotificationDispatcher, DispatchResult
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def format_appointment_date(value: datetime) -> str:
    """e.g. 'June 1, 2024 at 2:00 PM'"""
    hour = value.hour % 12 or 12
    return f"{value:%B} {value.day}, {value.year} at {hour}:{value:%M} {value:%p}"


def proposal_summary(appointment: AppointmentResponse) -> str:
    summary = (
        f"New appointment proposal for {format_appointment_date(appointment.appointment_date)} "
        f"at {appointment.location}. Duration: {appointment.duration} minutes."
    )
    if appointment.amount:
        summary += f" Amount: ${appointment.amount}."
    return summary


def reminder_message(appointment: AppointmentResponse) -> str:
    return (
        f"Reminder: You have an appointment on {format_appointment_date(appointment.appointment_date)} "
        f"at {appointment.location}. Duration: {appointment.duration} minutes."
    )


class AppointmentService:
    def __init__(
        self,
        supabase: Client,
        dispatcher: Optional[NotificationDispatcher] = None,
        allow_reopen: bool = False
    ):
        self.supabase = supabase
        self.dispatcher = dispatcher
        self.allow_reopen = allow_reopen

    def _get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("users")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def get_appointment(self, appointment_id: str) -> AppointmentResponse:
        """Get appointment by ID"""
        try:
            result = self.supabase.table("appointments")\
                .select("*")\
                .eq("id", appointment_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise NotFound("Appointment not found")

            return AppointmentResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_appointment_for_user(self, appointment_id: str, user_data: Dict[str, Any]) -> AppointmentResponse:
        """Get appointment if the user is its client, its admin, or any admin"""
        appointment = self.get_appointment(appointment_id)
        if user_data.get("role") != "admin" and appointment.client_id != user_data["id"]:
            raise Forbidden()
        return appointment

    def list_appointments(
        self,
        client_id: Optional[str] = None,
        admin_id: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[AppointmentResponse]:
        """List appointments, soonest first"""
        try:
            query = self.supabase.table("appointments").select("*")
            if client_id:
                query = query.eq("client_id", client_id)
            if admin_id:
                query = query.eq("admin_id", admin_id)
            if status:
                query = query.eq("status", status)
            result = query.order("appointment_date").execute()
            return [AppointmentResponse(**a) for a in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def propose(self, appointment_data: AppointmentCreate, admin_id: str) -> AppointmentResponse:
        """Create an appointment proposal in 'pending'. Notification is sent separately."""
        try:
            client = self._get_user(appointment_data.client_id)
            if not client or client.get("role") != "client":
                raise NotFound("Client not found")

            insert_data = {
                "admin_id": admin_id,
                "client_id": appointment_data.client_id,
                "appointment_date": appointment_data.appointment_date.isoformat(),
                "duration": appointment_data.duration,
                "location": appointment_data.location,
                "details": appointment_data.details,
                "amount": f"{appointment_data.amount:.2f}" if appointment_data.amount is not None else None,
                "photo_url": appointment_data.photo_url,
                "status": lifecycle.PENDING,
                "notification_method": appointment_data.notification_method,
                "notification_sent": False,
            }
            result = self.supabase.table("appointments").insert(insert_data).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create appointment")

            appointment = AppointmentResponse(**result.data[0])
            logger.info(f"Appointment {appointment.id} proposed by admin {admin_id} to client {appointment.client_id}")
            return appointment
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _transition(self, appointment: AppointmentResponse, target: str) -> AppointmentResponse:
        """Write a status change, conditional on the status that was read."""
        lifecycle.ensure_transition(appointment.status, target, self.allow_reopen)
        try:
            result = self.supabase.table("appointments")\
                .update({"status": target, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", appointment.id)\
                .eq("status", appointment.status)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            # Another request changed the status between our read and write
            current = self.get_appointment(appointment.id)
            raise InvalidTransition(current.status, target)

        logger.info(f"Appointment {appointment.id}: {appointment.status} -> {target}")
        return AppointmentResponse(**result.data[0])

    def respond(self, appointment_id: str, status: str, user_data: Dict[str, Any]) -> AppointmentResponse:
        """Client approves or declines a pending proposal"""
        if status not in lifecycle.CLIENT_RESPONSES:
            raise ValidationFailed("Status must be 'approved' or 'declined'")
        appointment = self.get_appointment(appointment_id)
        if appointment.client_id != user_data["id"]:
            raise Forbidden("Only the assigned client can respond to this appointment")
        if appointment.status != lifecycle.PENDING:
            raise InvalidTransition(
                appointment.status, status,
                detail=f"Appointment has already been resolved ({appointment.status})"
            )
        return self._transition(appointment, status)

    def cancel(self, appointment_id: str, user_data: Dict[str, Any]) -> AppointmentResponse:
        """Cancel a pending or approved appointment (any admin, or its client)"""
        appointment = self.get_appointment(appointment_id)
        if user_data.get("role") != "admin" and appointment.client_id != user_data["id"]:
            raise Forbidden()
        return self._transition(appointment, lifecycle.CANCELLED)

    def mark_completed(self, appointment_id: str) -> AppointmentResponse:
        return self._transition(self.get_appointment(appointment_id), lifecycle.COMPLETED)

    def decline(self, appointment_id: str) -> AppointmentResponse:
        """Admin withdraws a pending proposal"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status != lifecycle.PENDING:
            raise InvalidTransition(appointment.status, lifecycle.DECLINED)
        return self._transition(appointment, lifecycle.DECLINED)

    def reopen(self, appointment_id: str) -> AppointmentResponse:
        """Move a terminal appointment back to pending, when the reopen policy allows it"""
        appointment = self.get_appointment(appointment_id)
        if not self.allow_reopen:
            raise InvalidTransition(
                appointment.status, lifecycle.PENDING,
                detail="Reopening appointments is disabled"
            )
        return self._transition(appointment, lifecycle.PENDING)

    def _dispatch(
        self,
        appointment: AppointmentResponse,
        recipient: Dict[str, Any],
        method: str,
        title: str,
        content: str,
        sender_id: Optional[str],
        html: Optional[str] = None,
    ) -> DispatchResult:
        if self.dispatcher is None:
            raise HTTPException(status_code=500, detail="Notification dispatcher not configured")
        return self.dispatcher.dispatch(
            recipient=recipient,
            method=method,
            title=title,
            content=content,
            notification_type="appointment",
            link="/appointments",
            sender_id=sender_id,
            html=html,
        )

    def _mark_notification_sent(self, appointment_id: str, method: str):
        """Only ever sets notification_sent; never touches status"""
        self.supabase.table("appointments")\
            .update({"notification_sent": True, "notification_method": method})\
            .eq("id", appointment_id)\
            .execute()

    def send_notification(
        self,
        appointment_id: str,
        method: Optional[str],
        message: str,
        sender_id: Optional[str] = None
    ) -> DispatchResult:
        """Deliver `message` to the appointment's client. Raises DeliveryFailed if no channel delivered."""
        appointment = self.get_appointment(appointment_id)
        method = method or appointment.notification_method
        if not method:
            raise ValidationFailed("Notification method is required")
        client = self._get_user(appointment.client_id)
        if not client:
            raise NotFound("Client information not found")

        result = self._dispatch(appointment, client, method, "Appointment Notification", message, sender_id)
        if not result.success:
            raise DeliveryFailed({"message": "Failed to send notification", **result.to_dict()})
        self._mark_notification_sent(appointment.id, method)
        return result

    def resend_notification(
        self,
        appointment_id: str,
        method: Optional[str] = None,
        sender_id: Optional[str] = None
    ) -> DispatchResult:
        """Re-send a reminder over the given or stored method. A new attempt, not deduplicated."""
        appointment = self.get_appointment(appointment_id)
        return self.send_notification(appointment.id, method, reminder_message(appointment), sender_id)

    def notify_proposal(self, appointment_id: str, sender_id: Optional[str] = None) -> Optional[DispatchResult]:
        """Background task: send the initial proposal notification. Failures are logged only."""
        try:
            appointment = self.get_appointment(appointment_id)
            if not appointment.notification_method:
                return None
            client = self._get_user(appointment.client_id)
            if not client:
                logger.error(f"Client {appointment.client_id} missing for appointment {appointment.id}")
                return None
            summary = proposal_summary(appointment)
            content = f"{summary} Please log in to your account to approve or decline this appointment."
            html = (
                '<div style="font-family: Arial, sans-serif; color: #333;">'
                "<h2>New Appointment Proposal</h2>"
                f"<p>{summary}</p>"
                "<p>Please log in to your account to approve or decline this appointment.</p>"
                f'<a href="{settings.app_url}/appointments">View Appointment</a>'
                "</div>"
            )
            result = self._dispatch(
                appointment, client, appointment.notification_method,
                "New Appointment Proposal", content, sender_id, html
            )
            if result.success:
                self._mark_notification_sent(appointment.id, appointment.notification_method)
            else:
                logger.error(f"Proposal notification for appointment {appointment.id} failed on every channel")
            return result
        except Exception as e:
            logger.error(f"Error notifying proposal {appointment_id}: {e}")
            return None

    def notify_response(self, appointment: AppointmentResponse, client_name: str) -> Optional[DispatchResult]:
        """Background task: tell the proposing admin how the client responded"""
        try:
            admin = self._get_user(appointment.admin_id)
            if not admin:
                return None
            content = f"Client {client_name} has {appointment.status} your appointment proposal."
            return self._dispatch(appointment, admin, "in-app", "Appointment Update", content, None)
        except Exception as e:
            logger.error(f"Error notifying response for appointment {appointment.id}: {e}")
            return None

    def notify_cancellation(self, appointment: AppointmentResponse, cancelled_by: Dict[str, Any]) -> Optional[DispatchResult]:
        """Background task: tell the other party about a cancellation"""
        try:
            when = format_appointment_date(appointment.appointment_date)
            if cancelled_by["id"] == appointment.client_id:
                recipient = self._get_user(appointment.admin_id)
                method = "in-app"
                sender_id = None
            else:
                recipient = self._get_user(appointment.client_id)
                method = appointment.notification_method or "in-app"
                sender_id = cancelled_by["id"]
            if not recipient:
                return None
            content = f"The appointment on {when} at {appointment.location} has been cancelled."
            return self._dispatch(appointment, recipient, method, "Appointment Cancelled", content, sender_id)
        except Exception as e:
            logger.error(f"Error notifying cancellation for appointment {appointment.id}: {e}")
            return None
