import hashlib
import logging
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Dict, Any

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. dashboard polls with the same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

# Columns of the users row exposed on the request user
_USER_FIELDS = (
    "role", "full_name", "username", "phone", "plan",
    "verification_status", "onboarding_status", "onboarding_step",
    "stripe_customer_id", "stripe_subscription_id",
)


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


def _cache_user(cache_key: str, user_data: Dict[str, Any], now: float):
    if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
        for key in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
            del _AUTH_USER_CACHE[key]
    if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
        # Still full of live entries: drop the oldest insert
        del _AUTH_USER_CACHE[next(iter(_AUTH_USER_CACHE))]
    _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new client: Supabase Auth sign-up plus the users row"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"full_name": register_data.full_name}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            email = auth_response.user.email or register_data.email
            self.supabase.table("users").insert({
                "id": auth_response.user.id,
                "email": email,
                "username": register_data.username or email.split("@")[0],
                "full_name": register_data.full_name,
                "phone": register_data.phone,
                "role": "client",
                "onboarding_status": "incomplete",
                "onboarding_step": 1,
                "verification_status": "pending",
            }).execute()

            logger.info(f"Registered client {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            profile = self._get_user_row(auth_response.user.id)
            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email,
                role=profile.get("role", "client")
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def _get_user_row(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("users")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=403, detail="User account not found")
        if result.data.get("is_active") is False:
            raise HTTPException(status_code=403, detail="User account has been deactivated")
        return result.data

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a token to the portal user. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            profile = self._get_user_row(user.id)
            user_data = {
                "id": user.id,
                "email": profile.get("email") or user.email,
            }
            for field in _USER_FIELDS:
                user_data[field] = profile.get(field)
            user_data["role"] = user_data["role"] or "client"
            _cache_user(cache_key, user_data, now)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Supabase JWTs are stateless; drop our cached lookup and end the SDK session
            _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Logout failed: {e}")
            return False
