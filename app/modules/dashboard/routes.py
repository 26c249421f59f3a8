from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.appointments.schemas import AppointmentResponse
from app.modules.dashboard.schemas import DashboardSummary, StatusCounts, DashboardStatistics
from app.modules.dashboard.service import DashboardService
from app.modules.dashboard.stats import DEFAULT_TIME_RANGE
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(supabase: Client = Depends(get_supabase)) -> DashboardService:
    return DashboardService(supabase)


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    user_data: Dict = Depends(require_permission("dashboard:read")),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Badge counters and the next few appointments for the current user"""
    return service.summary(user_data)


@router.get("/upcoming", response_model=List[AppointmentResponse])
async def get_upcoming_appointments(
    limit: int = Query(5, ge=1, le=50),
    user_data: Dict = Depends(require_permission("dashboard:read")),
    service: DashboardService = Depends(get_dashboard_service)
):
    return service.upcoming_appointments(user_data, limit=limit)


@router.get("/appointments/status-counts", response_model=StatusCounts)
async def get_status_counts(
    user_data: Dict = Depends(require_permission("dashboard:statistics")),
    service: DashboardService = Depends(get_dashboard_service)
):
    return service.status_counts()


@router.get("/statistics", response_model=DashboardStatistics)
async def get_statistics(
    time_range: str = DEFAULT_TIME_RANGE,
    user_data: Dict = Depends(require_permission("dashboard:statistics")),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Admin statistics; unknown ranges fall back to the last 7 days"""
    return service.statistics(time_range)
