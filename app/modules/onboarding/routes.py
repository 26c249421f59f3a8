from fastapi import APIRouter, Body, Depends
from app.database.supabase_client import get_supabase
from app.modules.onboarding.schemas import StepResult, OnboardingProgress, OnboardingDetails
from app.modules.onboarding.service import OnboardingService
from app.core.dependencies import require_permission
from supabase import Client
from typing import Any, Dict

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


def get_onboarding_service(supabase: Client = Depends(get_supabase)) -> OnboardingService:
    return OnboardingService(supabase)


@router.post("/steps/{step}", response_model=StepResult)
async def save_step(
    step: int,
    payload: Dict[str, Any] = Body(default={}),
    user_data: Dict = Depends(require_permission("onboarding:update")),
    service: OnboardingService = Depends(get_onboarding_service)
):
    """Save one wizard step (1-8) and advance the caller's progress"""
    return service.save_step(user_data["id"], step, payload)


@router.get("/progress", response_model=OnboardingProgress)
async def get_progress(
    user_data: Dict = Depends(require_permission("onboarding:read")),
    service: OnboardingService = Depends(get_onboarding_service)
):
    return service.get_progress(user_data["id"])


@router.get("/details", response_model=OnboardingDetails)
async def get_own_details(
    user_data: Dict = Depends(require_permission("onboarding:read")),
    service: OnboardingService = Depends(get_onboarding_service)
):
    return service.get_details(user_data["id"])


@router.get("/users/{user_id}", response_model=OnboardingDetails)
async def get_user_details(
    user_id: str,
    user_data: Dict = Depends(require_permission("users:read")),
    service: OnboardingService = Depends(get_onboarding_service)
):
    """Admin view of a client's onboarding answers"""
    return service.get_details(user_id)
