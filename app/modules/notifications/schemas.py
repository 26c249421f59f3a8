from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime

NotificationMethod = Literal["email", "sms", "in-app", "all"]


class NotificationResponse(BaseModel):
    id: str
    recipient_id: str
    type: str
    title: str
    content: str
    link: Optional[str] = None
    is_read: bool = False
    delivery_method: str = "in-app"
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationSend(BaseModel):
    user_id: str
    type: str
    content: str
    title: Optional[str] = None
    link: Optional[str] = None
    delivery_method: Literal["in-app", "email"] = "in-app"


class UnreadCountResponse(BaseModel):
    unread: int


class ChannelResultResponse(BaseModel):
    channel: str
    success: bool
    error: Optional[str] = None
