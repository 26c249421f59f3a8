from supabase import Client
from app.core.exceptions import NotFound, ValidationFailed
from app.modules.analytics.schemas import (
    AnalyticsCreate, AnalyticsUpdate, AnalyticsResponse, ClientAnalyticsOverview,
    AnalyticsUser, UserAnalyticsResponse
)
from typing import List, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_user(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("users")\
            .select("id, full_name, email, role")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise NotFound("User not found")
        return result.data

    def list_for_user(self, user_id: str) -> List[AnalyticsResponse]:
        """A client's reports, most recent report first"""
        try:
            result = self.supabase.table("analytics")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("report_date", desc=True)\
                .execute()
            return [AnalyticsResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_analytics(self, user_id: str) -> UserAnalyticsResponse:
        try:
            user = self._get_user(user_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return UserAnalyticsResponse(
            user=AnalyticsUser(**user),
            analytics=self.list_for_user(user_id),
        )

    def latest_per_client(self) -> List[ClientAnalyticsOverview]:
        """Each client's most recent report; clients without reports are left out"""
        try:
            clients = self.supabase.table("users")\
                .select("id, full_name, email")\
                .eq("role", "client")\
                .execute()
            clients_by_id = {c["id"]: c for c in (clients.data or [])}
            if not clients_by_id:
                return []

            reports = self.supabase.table("analytics")\
                .select("*")\
                .in_("user_id", list(clients_by_id))\
                .order("report_date", desc=True)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        latest: Dict[str, ClientAnalyticsOverview] = {}
        for row in reports.data or []:
            if row["user_id"] in latest:
                continue
            client = clients_by_id[row["user_id"]]
            latest[row["user_id"]] = ClientAnalyticsOverview(
                **row, user_name=client.get("full_name"), user_email=client.get("email")
            )
        return list(latest.values())

    def create_report(self, user_id: str, report: AnalyticsCreate) -> AnalyticsResponse:
        try:
            user = self._get_user(user_id)
            if user.get("role") != "client":
                raise ValidationFailed("Analytics can only be recorded for clients")
            if report.completed_appointments + report.canceled_appointments > report.total_appointments:
                raise ValidationFailed("Completed and canceled appointments exceed the total")

            now = datetime.now(timezone.utc).isoformat()
            insert_data = report.model_dump(mode="json")
            insert_data["user_id"] = user_id
            insert_data["report_date"] = insert_data["report_date"] or now
            insert_data["updated_at"] = now
            result = self.supabase.table("analytics").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create analytics record")

            created = AnalyticsResponse(**result.data[0])
            logger.info(f"Analytics {created.id} ({created.period}) recorded for user {user_id}")
            return created
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_report(self, analytics_id: str, report: AnalyticsUpdate) -> AnalyticsResponse:
        try:
            existing = self.supabase.table("analytics")\
                .select("id")\
                .eq("id", analytics_id)\
                .maybe_single()\
                .execute()
            if not existing or not existing.data:
                raise NotFound("Analytics record not found")

            update_data = report.model_dump(mode="json", exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("analytics")\
                .update(update_data)\
                .eq("id", analytics_id)\
                .execute()
            if not result.data:
                raise NotFound("Analytics record not found")
            return AnalyticsResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
