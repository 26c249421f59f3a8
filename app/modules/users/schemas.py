from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    username: Optional[str] = None
    phone: Optional[str] = None


class UserCreate(BaseModel):
    """Account created by an admin; the user gets a welcome email"""
    email: EmailStr
    username: str = Field(min_length=3)
    full_name: str = Field(min_length=1)
    password: str = Field(min_length=8)
    phone: Optional[str] = None
    plan: Optional[Literal["basic", "pro", "premium"]] = None
    role: Literal["admin", "client"] = "client"


class AdminUserUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Literal["admin", "client"]] = None
    plan: Optional[Literal["basic", "pro", "premium"]] = None
    onboarding_status: Optional[Literal["incomplete", "complete"]] = None
    onboarding_step: Optional[int] = None
    verification_status: Optional[Literal["pending", "verified", "rejected"]] = None


class UserResponse(BaseModel):
    id: str
    email: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "client"
    plan: Optional[str] = None
    onboarding_status: Optional[str] = None
    onboarding_step: Optional[int] = None
    verification_status: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientSummary(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: str
    username: Optional[str] = None
    phone: Optional[str] = None
    verification_status: Optional[str] = None
