"""
Onboarding wizard persistence.

Each of the eight steps writes its answers to the profile, platform account,
content strategy or concierge tables, then moves the user's onboarding_step
forward. Progress never moves backwards: re-submitting an earlier step
updates its answers and leaves the current step alone.
"""

from supabase import Client
from pydantic import BaseModel, ValidationError
from app.core.exceptions import NotFound, ValidationFailed
from app.modules.onboarding.schemas import (
    ONBOARDING_STEPS, FINAL_STEP, STEP_SCHEMAS,
    IdentityStep, AccountAccessStep, BrandStrategyStep, CommunicationStep,
    ContentStrategyStep, VerificationStep, ConciergeStep, LegalStep,
    StepResult, StepProgress, OnboardingProgress, OnboardingDetails
)
from typing import Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

COMPLETE = "complete"
INCOMPLETE = "incomplete"


def build_progress(current_step: int, status: str) -> OnboardingProgress:
    """Steps before the current one are completed; all are once onboarding is complete"""
    steps = []
    for step_id, title in ONBOARDING_STEPS:
        if status == COMPLETE or step_id < current_step:
            step_status = "completed"
        elif step_id == current_step:
            step_status = "current"
        else:
            step_status = "pending"
        steps.append(StepProgress(id=step_id, title=title, status=step_status))
    return OnboardingProgress(current_step=current_step, status=status, steps=steps)


class OnboardingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _get_user(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("users")\
            .select("id, onboarding_step, onboarding_status, verification_status")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise NotFound("User not found")
        return result.data

    def _update_user(self, user_id: str, update_data: Dict[str, Any]):
        update_data["updated_at"] = self._now()
        self.supabase.table("users").update(update_data).eq("id", user_id).execute()

    def _find(self, table: str, user_id: str, **filters) -> Optional[Dict[str, Any]]:
        query = self.supabase.table(table).select("*").eq("user_id", user_id)
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        return result.data[0] if result.data else None

    def _upsert(self, table: str, user_id: str, values: Dict[str, Any], **match):
        """Update the user's row in `table` (narrowed by `match`) or create it"""
        existing = self._find(table, user_id, **match)
        if existing:
            self.supabase.table(table).update(values).eq("id", existing["id"]).execute()
        else:
            self.supabase.table(table).insert({"user_id": user_id, **match, **values}).execute()

    def _save_identity(self, user_id: str, data: IdentityStep):
        user_update = {"full_name": data.full_name}
        if data.phone:
            user_update["phone"] = data.phone
        self._update_user(user_id, user_update)
        self._upsert("profiles", user_id, {"birth_date": data.date_of_birth})

    def _save_account_access(self, user_id: str, data: AccountAccessStep):
        accounts = {account.platform: account for account in data.accounts}
        # The OnlyFans row is always written so the agency sees an explicit answer
        self._upsert("platform_accounts", user_id, {
            "username": accounts["OnlyFans"].username if "OnlyFans" in accounts else None,
            "needs_creation": accounts["OnlyFans"].needs_creation if "OnlyFans" in accounts else False,
        }, platform_type="OnlyFans")
        for platform, account in accounts.items():
            if platform == "OnlyFans" or not (account.username or account.needs_creation):
                continue
            self._upsert("platform_accounts", user_id, {
                "username": account.username,
                "needs_creation": account.needs_creation,
            }, platform_type=platform)
        self._upsert("profiles", user_id, {"preferred_handles": data.preferred_handles})

    def _save_brand_strategy(self, user_id: str, data: BrandStrategyStep):
        self._upsert("profiles", user_id, {
            "brand_description": data.brand_description,
            "voice_tone": data.voice_tone,
            "do_not_say_terms": data.do_not_say_terms,
        })
        self._upsert("content_strategies", user_id, {
            "growth_goals": data.growth_goals,
            "content_types": data.content_types,
            "do_not_say_terms": data.do_not_say_terms,
            "updated_at": self._now(),
        })

    def _save_communication(self, user_id: str, data: CommunicationStep):
        self._upsert("profiles", user_id, data.model_dump())

    def _save_content_strategy(self, user_id: str, data: ContentStrategyStep):
        self._upsert("profiles", user_id, {"upload_frequency": data.upload_frequency})
        existing = self._find("content_strategies", user_id)
        if existing:
            self.supabase.table("content_strategies")\
                .update({"existing_content": data.existing_content, "updated_at": self._now()})\
                .eq("id", existing["id"])\
                .execute()
        else:
            self.supabase.table("content_strategies").insert({
                "user_id": user_id,
                "existing_content": data.existing_content,
                "growth_goals": [],
                "content_types": [],
            }).execute()

    def _save_verification(self, user_id: str, user: Dict[str, Any]):
        # Documents go to storage from the client; the admin queue picks the user up
        if user.get("verification_status") != "verified":
            self._update_user(user_id, {"verification_status": "pending"})

    def _save_concierge(self, user_id: str, data: ConciergeStep):
        self._upsert("concierge_settings", user_id, {**data.model_dump(), "updated_at": self._now()})

    def save_step(self, user_id: str, step: int, payload: Dict[str, Any]) -> StepResult:
        if step not in STEP_SCHEMAS:
            raise ValidationFailed("Invalid step number")
        try:
            data: BaseModel = STEP_SCHEMAS[step].model_validate(payload)
        except ValidationError as e:
            raise ValidationFailed(e.errors(include_url=False))
        if isinstance(data, LegalStep) and not data.accept_terms:
            raise ValidationFailed("The terms must be accepted to finish onboarding")

        try:
            user = self._get_user(user_id)
            if isinstance(data, IdentityStep):
                self._save_identity(user_id, data)
            elif isinstance(data, AccountAccessStep):
                self._save_account_access(user_id, data)
            elif isinstance(data, BrandStrategyStep):
                self._save_brand_strategy(user_id, data)
            elif isinstance(data, CommunicationStep):
                self._save_communication(user_id, data)
            elif isinstance(data, ContentStrategyStep):
                self._save_content_strategy(user_id, data)
            elif isinstance(data, VerificationStep):
                self._save_verification(user_id, user)
            elif isinstance(data, ConciergeStep):
                self._save_concierge(user_id, data)

            current_step = user.get("onboarding_step") or 1
            status = user.get("onboarding_status") or INCOMPLETE
            progress_update = {}
            if step > current_step:
                current_step = step
                progress_update["onboarding_step"] = step
            if step == FINAL_STEP and status != COMPLETE:
                status = COMPLETE
                progress_update["onboarding_status"] = COMPLETE
            if progress_update:
                self._update_user(user_id, progress_update)
                logger.info(f"User {user_id} onboarding now at step {current_step} ({status})")

            return StepResult(
                message=f"Step {step} completed successfully",
                current_step=current_step,
                status=status,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Onboarding step {step} for user {user_id} failed: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_progress(self, user_id: str) -> OnboardingProgress:
        try:
            user = self._get_user(user_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return build_progress(user.get("onboarding_step") or 1, user.get("onboarding_status") or INCOMPLETE)

    def get_details(self, user_id: str) -> OnboardingDetails:
        progress = self.get_progress(user_id)
        try:
            accounts = self.supabase.table("platform_accounts")\
                .select("*")\
                .eq("user_id", user_id)\
                .execute()
            return OnboardingDetails(
                user_id=user_id,
                progress=progress,
                profile=self._find("profiles", user_id),
                platform_accounts=accounts.data or [],
                content_strategy=self._find("content_strategies", user_id),
                concierge_settings=self._find("concierge_settings", user_id),
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
