from supabase import Client
from app.core.exceptions import NotFound, Forbidden, ValidationFailed
from app.modules.communications.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse,
    HistoryCreate, HistoryResponse, SendCommunicationRequest, SendCommunicationResponse
)
from app.modules.notifications.dispatcher import NotificationDispatcher, EMAIL, SMS, IN_APP
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import re

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Template type -> dispatcher channel
TEMPLATE_CHANNELS = {
    "email": EMAIL,
    "sms": SMS,
    "notification": IN_APP,
}


def render(text: Optional[str], params: Dict[str, Any]) -> Optional[str]:
    """Replace {{key}} tokens with params; tokens without a value are left as-is."""
    if text is None:
        return None

    def substitute(match):
        key = match.group(1)
        if key in params and params[key] is not None:
            return str(params[key])
        return match.group(0)

    return PLACEHOLDER.sub(substitute, text)


def default_params(recipient: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, str]:
    now = now or datetime.now()
    hour = now.hour % 12 or 12
    return {
        "recipientName": recipient.get("full_name") or "",
        "recipientEmail": recipient.get("email") or "",
        "date": f"{now.month}/{now.day}/{now.year}",
        "time": f"{hour}:{now:%M:%S} {now:%p}",
    }


class CommunicationService:
    def __init__(self, supabase: Client, dispatcher: Optional[NotificationDispatcher] = None):
        self.supabase = supabase
        self.dispatcher = dispatcher

    # Templates

    def get_template(self, template_id: str) -> TemplateResponse:
        try:
            result = self.supabase.table("communication_templates")\
                .select("*")\
                .eq("id", template_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise NotFound("Template not found")
            return TemplateResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_templates(self, template_type: Optional[str] = None, category: Optional[str] = None) -> List[TemplateResponse]:
        try:
            query = self.supabase.table("communication_templates").select("*")
            if template_type:
                query = query.eq("type", template_type)
            if category:
                query = query.eq("category", category)
            result = query.order("name").execute()
            return [TemplateResponse(**t) for t in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_default_template(self, template_type: str, category: str) -> TemplateResponse:
        try:
            result = self.supabase.table("communication_templates")\
                .select("*")\
                .eq("type", template_type)\
                .eq("category", category)\
                .eq("is_default", True)\
                .limit(1)\
                .execute()
            if not result.data:
                raise NotFound("Default template not found")
            return TemplateResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_template(self, template_data: TemplateCreate, created_by: str) -> TemplateResponse:
        try:
            insert_data = template_data.model_dump()
            insert_data["created_by"] = created_by
            result = self.supabase.table("communication_templates").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create template")
            template = TemplateResponse(**result.data[0])
            logger.info(f"Template {template.id} ({template.type}/{template.category}) created by {created_by}")
            return template
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_template(self, template_id: str, template_data: TemplateUpdate) -> TemplateResponse:
        self.get_template(template_id)
        try:
            update_data = template_data.model_dump(exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("communication_templates")\
                .update(update_data)\
                .eq("id", template_id)\
                .execute()
            if not result.data:
                raise NotFound("Template not found")
            return TemplateResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_template(self, template_id: str) -> bool:
        self.get_template(template_id)
        try:
            self.supabase.table("communication_templates").delete().eq("id", template_id).execute()
            return True
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # History

    def get_history_entry(self, history_id: str, user_data: Dict[str, Any]) -> HistoryResponse:
        try:
            result = self.supabase.table("communication_history")\
                .select("*")\
                .eq("id", history_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise NotFound("Communication history not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        entry = HistoryResponse(**result.data)
        if user_data.get("role") != "admin" and user_data["id"] not in (entry.sender_id, entry.recipient_id):
            raise Forbidden("You don't have permission to view this communication history")
        return entry

    def list_history(
        self,
        recipient_id: Optional[str] = None,
        sender_id: Optional[str] = None,
        communication_type: Optional[str] = None
    ) -> List[HistoryResponse]:
        """History filtered by recipient, sender or type (first given wins)"""
        if recipient_id:
            column, value = "recipient_id", recipient_id
        elif sender_id:
            column, value = "sender_id", sender_id
        elif communication_type:
            column, value = "type", communication_type
        else:
            raise ValidationFailed("Either recipient_id, sender_id, or type must be provided")
        try:
            result = self.supabase.table("communication_history")\
                .select("*")\
                .eq(column, value)\
                .order("sent_at", desc=True)\
                .execute()
            return [HistoryResponse(**h) for h in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_history_entry(self, history_data: HistoryCreate, sender_id: str) -> HistoryResponse:
        try:
            insert_data = history_data.model_dump()
            insert_data["sender_id"] = sender_id
            insert_data["sent_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("communication_history").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create communication history")
            return HistoryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Sending

    def _get_recipient(self, recipient_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", recipient_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise NotFound("Recipient not found")
        return result.data

    def send_communication(self, request: SendCommunicationRequest, sender_id: str) -> SendCommunicationResponse:
        """Render a template for a recipient, deliver it, and record the attempt"""
        template = self.get_template(request.template_id)
        recipient = self._get_recipient(request.recipient_id)

        params = {**default_params(recipient), **request.custom_params}
        content = render(template.content, params)
        subject = render(template.subject, params)
        if template.type == "email" and not subject:
            subject = f"ManageTheFans: {template.name}"

        status = "failed"
        status_message = None
        channel = TEMPLATE_CHANNELS.get(template.type)
        if channel is None:
            status_message = "Invalid template type"
        elif channel == SMS and not recipient.get("phone"):
            status_message = "Recipient has no phone number"
        elif self.dispatcher is None:
            status_message = "Notification dispatcher not configured"
        else:
            result = self.dispatcher.dispatch(
                recipient=recipient,
                method=channel,
                title=subject or template.name,
                content=content,
                notification_type=template.category,
                html=content if channel == EMAIL else None,
            )
            if result.success:
                status = "sent"
            else:
                status_message = f"Error: {result.results[0].error}"

        if status == "failed":
            logger.warning(f"{template.type} communication to {recipient['id']} failed: {status_message}")

        history_entry = self.create_history_entry(
            HistoryCreate(
                template_id=template.id,
                recipient_id=recipient["id"],
                type=template.type,
                subject=subject,
                content=content,
                status=status,
                status_message=status_message,
            ),
            sender_id,
        )
        if status == "sent":
            message = f"{template.type} sent successfully"
        else:
            message = f"Failed to send {template.type}" + (f": {status_message}" if status_message else "")
        return SendCommunicationResponse(success=status == "sent", history_entry=history_entry, message=message)
