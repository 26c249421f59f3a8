from pydantic import BaseModel, EmailStr
from typing import Optional, List


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str
    username: Optional[str] = None
    phone: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: str
    role: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    phone: Optional[str] = None
    verification_status: Optional[str] = None
    onboarding_status: Optional[str] = None
    permissions: List[str]
