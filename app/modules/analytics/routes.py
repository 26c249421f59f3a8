from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.analytics.schemas import (
    AnalyticsCreate, AnalyticsUpdate, AnalyticsResponse, ClientAnalyticsOverview, UserAnalyticsResponse
)
from app.modules.analytics.service import AnalyticsService
from app.core.dependencies import require_permission, is_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_analytics_service(supabase: Client = Depends(get_supabase)) -> AnalyticsService:
    return AnalyticsService(supabase)


@router.get("", response_model=List[ClientAnalyticsOverview])
async def list_analytics(
    user_data: Dict = Depends(require_permission("analytics:read")),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Clients get their own reports; admins get every client's latest report"""
    if is_admin(user_data):
        return service.latest_per_client()
    return service.list_for_user(user_data["id"])


@router.get("/users/{user_id}", response_model=UserAnalyticsResponse)
async def get_user_analytics(
    user_id: str,
    user_data: Dict = Depends(require_permission("analytics:manage")),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.get_user_analytics(user_id)


@router.post("/users/{user_id}", response_model=AnalyticsResponse, status_code=201)
async def create_analytics(
    user_id: str,
    report: AnalyticsCreate,
    user_data: Dict = Depends(require_permission("analytics:manage")),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Admin records a report for a client"""
    return service.create_report(user_id, report)


@router.put("/{analytics_id}", response_model=AnalyticsResponse)
async def update_analytics(
    analytics_id: str,
    report: AnalyticsUpdate,
    user_data: Dict = Depends(require_permission("analytics:manage")),
    service: AnalyticsService = Depends(get_analytics_service)
):
    return service.update_report(analytics_id, report)
