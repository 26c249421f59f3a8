from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal, List
from datetime import datetime
from decimal import Decimal
from app.modules.notifications.schemas import NotificationMethod, ChannelResultResponse


class AppointmentCreate(BaseModel):
    client_id: str
    appointment_date: datetime
    duration: int = Field(..., gt=0)  # minutes
    location: str = Field(..., min_length=1)
    details: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    photo_url: Optional[str] = None
    notification_method: Optional[NotificationMethod] = None

    @field_validator("location")
    @classmethod
    def strip_location(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("location must not be blank")
        return value


class AppointmentRespond(BaseModel):
    status: Literal["approved", "declined"]


class AppointmentNotificationRequest(BaseModel):
    method: NotificationMethod
    message: str = Field(..., min_length=1)


class AppointmentResendRequest(BaseModel):
    notification_method: Optional[NotificationMethod] = None


class AppointmentResponse(BaseModel):
    id: str
    admin_id: str
    client_id: str
    appointment_date: datetime
    duration: int
    location: str
    details: Optional[str] = None
    amount: Optional[str] = None
    photo_url: Optional[str] = None
    status: str
    notification_method: Optional[str] = None
    notification_sent: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentNotificationResponse(BaseModel):
    appointment_id: str
    success: bool
    partial: bool
    message: str
    channels: List[ChannelResultResponse]
