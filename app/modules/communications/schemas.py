from pydantic import BaseModel, Field
from typing import Optional, Dict, Literal
from datetime import datetime

TemplateType = Literal["email", "sms", "notification"]


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: TemplateType
    category: str = Field(..., min_length=1)
    subject: Optional[str] = None
    content: str = Field(..., min_length=1)
    is_default: bool = False


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[TemplateType] = None
    category: Optional[str] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    is_default: Optional[bool] = None


class TemplateResponse(BaseModel):
    id: str
    name: str
    type: str
    category: str
    subject: Optional[str] = None
    content: str
    is_default: bool = False
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HistoryCreate(BaseModel):
    template_id: Optional[str] = None
    recipient_id: str
    type: TemplateType
    subject: Optional[str] = None
    content: str
    status: Literal["sent", "failed"] = "sent"
    status_message: Optional[str] = None


class HistoryResponse(BaseModel):
    id: str
    template_id: Optional[str] = None
    recipient_id: str
    sender_id: str
    type: str
    subject: Optional[str] = None
    content: str
    status: str
    status_message: Optional[str] = None
    sent_at: datetime

    class Config:
        from_attributes = True


class SendCommunicationRequest(BaseModel):
    template_id: str
    recipient_id: str
    custom_params: Dict[str, str] = {}


class SendCommunicationResponse(BaseModel):
    success: bool
    history_entry: HistoryResponse
    message: str
