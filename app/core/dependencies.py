"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.permissions_config import ADMIN_ROLE, get_role_permissions
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the bearer token to the portal user (auth identity merged with the users row)"""
    return auth_service.get_current_user(credentials.credentials)


def is_admin(user_data: Dict[str, Any]) -> bool:
    return user_data.get("role") == ADMIN_ROLE


def get_user_permissions(user_data: Dict[str, Any]) -> List[str]:
    return list(get_role_permissions(user_data.get("role", "")))


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(user_data: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if required_permission not in get_user_permissions(user_data):
            logger.info(f"User {user_data.get('id')} denied {required_permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return user_data
    return check_permission


def require_admin(user_data: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not is_admin(user_data):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user_data
