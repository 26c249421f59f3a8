from supabase import Client
from app.modules.appointments import lifecycle
from app.modules.appointments.schemas import AppointmentResponse
from app.modules.dashboard import stats
from app.modules.dashboard.schemas import DashboardSummary, StatusCounts, DashboardStatistics
from app.modules.notifications.service import NotificationService
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class DashboardService:
    """Badge counters and lists, recomputed from fetched rows on every call."""

    def __init__(self, supabase: Client, notifications: Optional[NotificationService] = None):
        self.supabase = supabase
        self.notifications = notifications or NotificationService(supabase)

    def _rows(self, table: str, columns: str = "*", **filters) -> List[Dict[str, Any]]:
        query = self.supabase.table(table).select(columns)
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.execute()
        return result.data or []

    def unread_count(self, user_id: str) -> int:
        return self.notifications.unread_count(user_id)

    def unread_messages(self, user_id: str) -> int:
        """Messages in the user's conversations, sent by others, not yet read"""
        try:
            memberships = self._rows("conversation_participants", "conversation_id", user_id=user_id)
            conversation_ids = [m["conversation_id"] for m in memberships]
            if not conversation_ids:
                return 0
            result = self.supabase.table("messages")\
                .select("id, sender_id, read_at")\
                .in_("conversation_id", conversation_ids)\
                .execute()
            return sum(
                1 for m in (result.data or [])
                if m.get("sender_id") != user_id and not m.get("read_at")
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def upcoming_appointments(
        self,
        user_data: Dict[str, Any],
        limit: int = 5,
        now: Optional[datetime] = None
    ) -> List[AppointmentResponse]:
        """Pending or approved appointments from now on, soonest first. Admins see all."""
        now = now or datetime.now(timezone.utc)
        try:
            if user_data.get("role") == "admin":
                rows = self._rows("appointments")
            else:
                rows = self._rows("appointments", client_id=user_data["id"])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        upcoming = [
            row for row in rows
            if row.get("status") in lifecycle.UPCOMING_STATUSES
            and stats.parse_timestamp(row.get("appointment_date")) >= now
        ]
        upcoming.sort(key=lambda row: stats.parse_timestamp(row["appointment_date"]))
        return [AppointmentResponse(**row) for row in upcoming[:limit]]

    def pending_proposals(self, client_id: str) -> int:
        try:
            rows = self._rows("appointments", "id, status", client_id=client_id)
            return sum(1 for row in rows if row.get("status") == lifecycle.PENDING)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def summary(self, user_data: Dict[str, Any]) -> DashboardSummary:
        is_client = user_data.get("role") != "admin"
        return DashboardSummary(
            unread_notifications=self.unread_count(user_data["id"]),
            unread_messages=self.unread_messages(user_data["id"]),
            pending_proposals=self.pending_proposals(user_data["id"]) if is_client else 0,
            upcoming_appointments=self.upcoming_appointments(user_data),
        )

    def status_counts(self) -> StatusCounts:
        try:
            rows = self._rows("appointments", "id, status")
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        by_status = {status: 0 for status in lifecycle.STATUSES}
        for row in rows:
            by_status[row["status"]] = by_status.get(row["status"], 0) + 1
        return StatusCounts(total=len(rows), by_status=by_status)

    def statistics(self, time_range: str = stats.DEFAULT_TIME_RANGE, now: Optional[datetime] = None) -> DashboardStatistics:
        """Client activity in the range compared with the previous period of equal length"""
        current = stats.get_date_range(time_range, now)
        previous = stats.get_previous_period_range(current)
        try:
            clients = self._rows("users", role="client")
            client_ids = [c["id"] for c in clients]
            if client_ids:
                appointments = self.supabase.table("appointments").select("id, created_at")\
                    .in_("client_id", client_ids).execute().data or []
                messages = self.supabase.table("messages").select("id, created_at, read_at")\
                    .in_("sender_id", client_ids).execute().data or []
                subscriptions = self.supabase.table("subscriptions").select("*")\
                    .in_("user_id", client_ids).eq("status", "active").execute().data or []
                media = self.supabase.table("media_files").select("id, upload_date")\
                    .in_("user_id", client_ids).execute().data or []
            else:
                appointments = messages = subscriptions = media = []
        except Exception as e:
            logger.error(f"Error getting statistics: {str(e)}")
            raise HTTPException(status_code=500, detail="Error getting statistics")

        verified = [c for c in clients if c.get("verification_status") == "verified"]
        unread = [m for m in messages if not m.get("read_at")]

        def pair(rows, field):
            return stats.count_in_range(rows, field, current), stats.count_in_range(rows, field, previous)

        active_clients, prev_active_clients = pair(clients, "created_at")
        verified_clients, prev_verified_clients = pair(verified, "updated_at")
        appointment_count, prev_appointment_count = pair(appointments, "created_at")
        unread_count, prev_unread_count = pair(unread, "created_at")
        media_count, prev_media_count = pair(media, "upload_date")
        revenue = stats.estimate_revenue(s for s in subscriptions if stats.in_range(s.get("start_date"), current))
        prev_revenue = stats.estimate_revenue(s for s in subscriptions if stats.in_range(s.get("start_date"), previous))

        change = stats.calculate_percentage_change
        return DashboardStatistics(
            time_range=time_range,
            active_clients=active_clients,
            active_clients_change=change(active_clients, prev_active_clients),
            verified_clients=verified_clients,
            verified_clients_change=change(verified_clients, prev_verified_clients),
            appointments=appointment_count,
            appointments_change=change(appointment_count, prev_appointment_count),
            unread_messages=unread_count,
            unread_messages_change=change(unread_count, prev_unread_count),
            revenue=revenue,
            revenue_change=change(revenue, prev_revenue),
            media_content=media_count,
            media_content_change=change(media_count, prev_media_count),
            period_start=current[0],
            period_end=current[1],
            previous_period_start=previous[0],
            previous_period_end=previous[1],
        )
