from pydantic import BaseModel
from typing import List, Dict
from datetime import datetime
from app.modules.appointments.schemas import AppointmentResponse


class DashboardSummary(BaseModel):
    unread_notifications: int
    unread_messages: int
    pending_proposals: int
    upcoming_appointments: List[AppointmentResponse]


class StatusCounts(BaseModel):
    total: int
    by_status: Dict[str, int]


class DashboardStatistics(BaseModel):
    time_range: str
    active_clients: int
    active_clients_change: int
    verified_clients: int
    verified_clients_change: int
    appointments: int
    appointments_change: int
    unread_messages: int
    unread_messages_change: int
    revenue: float
    revenue_change: int
    media_content: int
    media_content_change: int
    period_start: datetime
    period_end: datetime
    previous_period_start: datetime
    previous_period_end: datetime
