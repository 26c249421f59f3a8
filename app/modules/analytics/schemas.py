from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime

AnalyticsPeriod = Literal["weekly", "monthly", "all-time"]


class AnalyticsCreate(BaseModel):
    period: AnalyticsPeriod
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    total_appointments: int = Field(0, ge=0)
    completed_appointments: int = Field(0, ge=0)
    canceled_appointments: int = Field(0, ge=0)
    engagement_rate: float = Field(0, ge=0)
    earnings_total: float = Field(0, ge=0)
    subscriber_count: int = Field(0, ge=0)
    average_appointment_duration: int = Field(0, ge=0)
    content_uploads: int = Field(0, ge=0)
    custom_metrics: Optional[Dict[str, Any]] = None
    report_date: Optional[datetime] = None


class AnalyticsUpdate(BaseModel):
    period: Optional[AnalyticsPeriod] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    total_appointments: Optional[int] = Field(None, ge=0)
    completed_appointments: Optional[int] = Field(None, ge=0)
    canceled_appointments: Optional[int] = Field(None, ge=0)
    engagement_rate: Optional[float] = Field(None, ge=0)
    earnings_total: Optional[float] = Field(None, ge=0)
    subscriber_count: Optional[int] = Field(None, ge=0)
    average_appointment_duration: Optional[int] = Field(None, ge=0)
    content_uploads: Optional[int] = Field(None, ge=0)
    custom_metrics: Optional[Dict[str, Any]] = None


class AnalyticsResponse(BaseModel):
    id: str
    user_id: str
    period: str
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    total_appointments: int = 0
    completed_appointments: Optional[int] = 0
    canceled_appointments: Optional[int] = 0
    engagement_rate: Optional[float] = 0
    earnings_total: Optional[float] = 0
    subscriber_count: Optional[int] = 0
    average_appointment_duration: Optional[int] = 0
    content_uploads: Optional[int] = 0
    custom_metrics: Optional[Dict[str, Any]] = None
    report_date: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientAnalyticsOverview(AnalyticsResponse):
    """A client's latest report, as listed for admins"""
    user_name: Optional[str] = None
    user_email: Optional[str] = None


class AnalyticsUser(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: str


class UserAnalyticsResponse(BaseModel):
    user: AnalyticsUser
    analytics: List[AnalyticsResponse]
