from fastapi import APIRouter, Depends, BackgroundTasks
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.users.schemas import ProfileUpdate, AdminUserUpdate, UserCreate, UserResponse, ClientSummary
from app.modules.notifications.providers import EmailProvider, get_email_provider
from app.modules.users.service import UserService
from app.modules.notifications.service import NotificationService
from app.core.dependencies import require_permission, is_admin
from app.core.exceptions import Forbidden
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase),
    email_provider: EmailProvider = Depends(get_email_provider)
) -> UserService:
    return UserService(supabase, NotificationService(supabase), service_supabase, email_provider)


@router.get("/me", response_model=UserResponse)
async def get_profile(
    user_data: Dict = Depends(require_permission("profile:read")),
    service: UserService = Depends(get_user_service)
):
    return service.get_user_by_id(user_data["id"])


@router.put("/me", response_model=UserResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(require_permission("profile:update")),
    service: UserService = Depends(get_user_service)
):
    return service.update_profile(user_data["id"], profile_data)


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    """List all users (admin)"""
    return service.list_users(role=role, limit=limit, offset=offset)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    create_data: UserCreate,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(require_permission("users:create")),
    service: UserService = Depends(get_user_service)
):
    """Admin creates a client (or admin) account; a welcome email follows the response"""
    user = service.create_user(create_data)
    background_tasks.add_task(service.send_welcome_email, user)
    return user


@router.get("/clients", response_model=List[ClientSummary])
async def list_clients(
    user_data: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    """Clients available for appointment proposals and messaging"""
    return service.list_clients()


@router.get("/verifications/pending", response_model=List[UserResponse])
async def list_pending_verifications(
    user_data: Dict = Depends(require_permission("users:verify")),
    service: UserService = Depends(get_user_service)
):
    return service.list_pending_verifications()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user_data: Dict = Depends(require_permission("profile:read")),
    service: UserService = Depends(get_user_service)
):
    """Get user by ID (self, or any user for admins)"""
    if user_id != user_data["id"] and not is_admin(user_data):
        raise Forbidden("User not accessible")
    return service.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data_body: AdminUserUpdate,
    user_data: Dict = Depends(require_permission("users:update")),
    service: UserService = Depends(get_user_service)
):
    """Admin updates a user's role, plan, onboarding or verification status"""
    return service.update_user(user_id, user_data_body)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    user_data: Dict = Depends(require_permission("users:delete")),
    service: UserService = Depends(get_user_service)
):
    """Deactivate an account; the main admin and the caller's own account are protected"""
    service.deactivate_user(user_id, user_data["id"])
    return {"success": True, "message": "User deleted successfully"}
