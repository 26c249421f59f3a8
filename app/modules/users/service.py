from supabase import Client
from app.core.exceptions import NotFound, Forbidden, ValidationFailed
from app.config import settings
from app.config.permissions_config import MAIN_ADMIN_USERNAME
from app.modules.users.schemas import ProfileUpdate, AdminUserUpdate, UserCreate, UserResponse, ClientSummary
from app.modules.notifications.service import NotificationService
from app.modules.notifications.providers import EmailProvider
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

VERIFICATION_MESSAGES = {
    "verified": "Your account has been verified.",
    "rejected": "Your account verification was rejected. Please contact support.",
    "pending": "Your account verification is pending review.",
}


# Effectively permanent; Supabase Auth has no "disabled" flag
DEACTIVATED_BAN_DURATION = "876000h"

WELCOME_SUBJECT = "Welcome to ManageTheFans - Get Started with Your Account"


def welcome_email(name: str, login_url: str):
    """(text, html) bodies of the welcome email sent to admin-created accounts"""
    text = (
        f"Hello {name},\n\n"
        "Thank you for joining ManageTheFans! We're excited to help you manage and grow "
        "your online presence.\n\n"
        "1. Complete your onboarding checklist so we can tailor our services to your brand.\n"
        "2. Select your package: Basic, Pro or Premium.\n"
        "3. Complete payment through our secure Stripe checkout.\n\n"
        f"Log in at {login_url} to get started.\n\n"
        "Best regards,\nThe ManageTheFans Team"
    )
    html = (
        "<div><h2>Welcome to ManageTheFans!</h2>"
        f"<p>Dear {name},</p>"
        "<p>Thank you for joining ManageTheFans! We're excited to help you manage and grow "
        "your online presence.</p>"
        "<ol><li>Complete your onboarding checklist.</li>"
        "<li>Select your package: Basic, Pro or Premium.</li>"
        "<li>Complete payment through our secure Stripe checkout.</li></ol>"
        f"<p><a href=\"{login_url}\">Log in to get started</a></p>"
        "<p>Best regards,<br>The ManageTheFans Team</p></div>"
    )
    return text, html


class UserService:
    def __init__(
        self,
        supabase: Client,
        notifications: Optional[NotificationService] = None,
        auth_admin: Optional[Client] = None,
        email_provider: Optional[EmailProvider] = None,
    ):
        self.supabase = supabase
        self.notifications = notifications
        # Service-role client for auth.admin calls
        self.auth_admin = auth_admin or supabase
        self.email_provider = email_provider

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user by ID"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise NotFound("User not found")

            return UserResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_users(self, role: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[UserResponse]:
        """List users, newest first"""
        try:
            query = self.supabase.table("users").select("*")
            query = query.neq("is_active", False)
            if role:
                query = query.eq("role", role)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [UserResponse(**user) for user in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_clients(self) -> List[ClientSummary]:
        """Clients an admin can pick from; contact fields only"""
        try:
            result = self.supabase.table("users")\
                .select("id, full_name, email, username, phone, verification_status")\
                .eq("role", "client")\
                .neq("is_active", False)\
                .order("full_name")\
                .execute()
            return [ClientSummary(**client) for client in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_pending_verifications(self) -> List[UserResponse]:
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("role", "client")\
                .eq("verification_status", "pending")\
                .neq("is_active", False)\
                .order("created_at")\
                .execute()
            return [UserResponse(**user) for user in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _update(self, user_id: str, update_data: Dict[str, Any]) -> UserResponse:
        try:
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("users")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise NotFound("User not found")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _exists(self, column: str, value: str) -> bool:
        result = self.supabase.table("users")\
            .select("id")\
            .eq(column, value)\
            .execute()
        return bool(result.data)

    def create_user(self, create_data: UserCreate) -> UserResponse:
        """Admin creates an account: Supabase Auth user plus the users row"""
        try:
            if self._exists("username", create_data.username):
                raise ValidationFailed("Username already exists")
            if self._exists("email", create_data.email):
                raise ValidationFailed("Email already exists")

            auth_response = self.auth_admin.auth.admin.create_user({
                "email": create_data.email,
                "password": create_data.password,
                "email_confirm": True,
                "user_metadata": {"full_name": create_data.full_name},
            })
            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to create user")
            auth_user_id = auth_response.user.id

            try:
                result = self.supabase.table("users").insert({
                    "id": auth_user_id,
                    "email": create_data.email,
                    "username": create_data.username,
                    "full_name": create_data.full_name,
                    "phone": create_data.phone,
                    "plan": create_data.plan,
                    "role": create_data.role,
                    "onboarding_status": "incomplete",
                    "onboarding_step": 1,
                    "verification_status": "pending",
                    "is_active": True,
                }).execute()
            except Exception:
                # No users row means nobody can use the auth identity; drop it
                self.auth_admin.auth.admin.delete_user(auth_user_id)
                raise

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create user")

            logger.info(f"Created {create_data.role} account {auth_user_id} ({create_data.username})")
            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            message = str(e)
            if "already" in message.lower():
                raise ValidationFailed("Email already exists")
            raise HTTPException(status_code=500, detail=message)

    def send_welcome_email(self, user: UserResponse) -> bool:
        """Best effort; the account exists whether or not this succeeds"""
        if not self.email_provider or not self.email_provider.configured:
            logger.warning(f"Welcome email to {user.email} skipped: email provider not configured")
            return False
        text, html = welcome_email(user.full_name or user.username or user.email, f"{settings.app_url}/login")
        try:
            self.email_provider.send(user.email, WELCOME_SUBJECT, text, html)
            return True
        except Exception as e:
            logger.error(f"Welcome email to {user.email} failed: {e}")
            return False

    def deactivate_user(self, user_id: str, acting_user_id: str) -> UserResponse:
        """
        Admin removes an account. The users row is kept (appointments, messages and
        history reference it) but flagged inactive, and the auth identity is banned
        so its tokens and password stop working.
        """
        user = self.get_user_by_id(user_id)
        if user.username == MAIN_ADMIN_USERNAME:
            raise Forbidden("Cannot delete the main admin account")
        if user_id == acting_user_id:
            raise Forbidden("Cannot delete your own account")
        if not user.is_active:
            return user

        deactivated = self._update(user_id, {
            "is_active": False,
            "deactivated_at": datetime.now(timezone.utc).isoformat(),
        })
        try:
            self.auth_admin.auth.admin.update_user_by_id(user_id, {"ban_duration": DEACTIVATED_BAN_DURATION})
        except Exception as e:
            logger.error(f"Failed to ban auth user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=f"User deactivated but sign-in could not be blocked: {e}")
        logger.info(f"Deactivated user {user_id}")
        return deactivated

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> UserResponse:
        """User edits their own profile"""
        return self._update(user_id, profile_data.model_dump(exclude_none=True))

    def update_user(self, user_id: str, user_data: AdminUserUpdate) -> UserResponse:
        """Admin update; a verification status change notifies the user"""
        previous = self.get_user_by_id(user_id)
        updated = self._update(user_id, user_data.model_dump(exclude_none=True))

        if (
            user_data.verification_status
            and user_data.verification_status != previous.verification_status
            and self.notifications
        ):
            try:
                self.notifications.create_notification(
                    recipient_id=user_id,
                    notification_type="verification",
                    title="Verification Update",
                    content=VERIFICATION_MESSAGES[user_data.verification_status],
                    link="/profile",
                )
            except HTTPException as e:
                logger.error(f"Verification notification for user {user_id} failed: {e.detail}")
        return updated
