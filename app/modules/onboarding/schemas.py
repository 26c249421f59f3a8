from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal

Platform = Literal["OnlyFans", "Instagram", "TikTok", "Twitter", "Snapchat", "Reddit"]

ONBOARDING_STEPS = [
    (1, "Identity"),
    (2, "Account Access"),
    (3, "Brand Strategy"),
    (4, "Communication"),
    (5, "Content Strategy"),
    (6, "Verification"),
    (7, "Concierge"),
    (8, "Legal"),
]
FINAL_STEP = ONBOARDING_STEPS[-1][0]


class IdentityStep(BaseModel):
    full_name: str = Field(..., min_length=1)
    date_of_birth: Optional[str] = None
    phone: Optional[str] = None


class PlatformAccountInput(BaseModel):
    platform: Platform
    username: Optional[str] = None
    needs_creation: bool = False


class AccountAccessStep(BaseModel):
    accounts: List[PlatformAccountInput] = []
    preferred_handles: Optional[str] = None


class BrandStrategyStep(BaseModel):
    growth_goals: List[str] = []
    content_types: List[str] = []
    brand_description: Optional[str] = None
    voice_tone: Optional[str] = None
    do_not_say_terms: Optional[str] = None


class CommunicationStep(BaseModel):
    notification_preferences: List[str] = []
    preferred_contact_method: Optional[str] = None
    preferred_check_in_time: Optional[str] = None
    timezone: Optional[str] = None


class ContentStrategyStep(BaseModel):
    upload_frequency: Optional[Literal["daily", "weekly", "biweekly"]] = None
    existing_content: Optional[str] = None


class VerificationStep(BaseModel):
    pass


class ConciergeStep(BaseModel):
    geographic_availability: Optional[str] = None
    minimum_rate: Optional[str] = None
    client_screening_preferences: Optional[str] = None
    services_offered: List[str] = []
    approval_process: Literal["auto", "manual"] = "manual"
    availability_times: Optional[Dict[str, Any]] = None
    receive_booking_alerts: bool = True
    show_only_verified_clients: bool = True


class LegalStep(BaseModel):
    accept_terms: bool


STEP_SCHEMAS = {
    1: IdentityStep,
    2: AccountAccessStep,
    3: BrandStrategyStep,
    4: CommunicationStep,
    5: ContentStrategyStep,
    6: VerificationStep,
    7: ConciergeStep,
    8: LegalStep,
}


class StepResult(BaseModel):
    success: bool = True
    message: str
    current_step: int
    status: str


class StepProgress(BaseModel):
    id: int
    title: str
    status: Literal["completed", "current", "pending"]


class OnboardingProgress(BaseModel):
    current_step: int
    status: str
    steps: List[StepProgress]


class OnboardingDetails(BaseModel):
    """Everything a client entered during onboarding, for the agency"""
    user_id: str
    progress: OnboardingProgress
    profile: Optional[Dict[str, Any]] = None
    platform_accounts: List[Dict[str, Any]] = []
    content_strategy: Optional[Dict[str, Any]] = None
    concierge_settings: Optional[Dict[str, Any]] = None
