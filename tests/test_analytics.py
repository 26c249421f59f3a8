import pytest

from app.modules.analytics.schemas import AnalyticsCreate
from app.modules.analytics.service import AnalyticsService
from app.core.exceptions import ValidationFailed


def report(**fields):
    payload = {
        "period": "monthly",
        "total_appointments": 10,
        "completed_appointments": 7,
        "canceled_appointments": 1,
        "engagement_rate": 4.5,
        "earnings_total": 1250.0,
        "subscriber_count": 320,
    }
    payload.update(fields)
    return payload


def seed_report(supabase, user, report_date, **fields):
    return supabase.seed("analytics", user_id=user["id"], report_date=report_date, **report(**fields))


class TestAnalyticsApi:
    def test_admin_records_report_for_client(self, login, supabase, admin, client_user):
        response = login(admin).post(f"/api/v1/analytics/users/{client_user['id']}", json=report())

        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == client_user["id"]
        assert body["subscriber_count"] == 320
        assert body["report_date"] is not None
        assert len(supabase.rows("analytics")) == 1

    def test_client_reads_only_own_reports(self, login, supabase, client_user, other_client):
        older = seed_report(supabase, client_user, "2024-05-01T00:00:00+00:00")
        newer = seed_report(supabase, client_user, "2024-06-01T00:00:00+00:00")
        seed_report(supabase, other_client, "2024-06-01T00:00:00+00:00")

        response = login(client_user).get("/api/v1/analytics")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [newer["id"], older["id"]]

    def test_admin_sees_latest_report_per_client(self, login, supabase, admin, client_user, other_client):
        seed_report(supabase, client_user, "2024-05-01T00:00:00+00:00", subscriber_count=100)
        latest = seed_report(supabase, client_user, "2024-06-01T00:00:00+00:00", subscriber_count=150)

        body = login(admin).get("/api/v1/analytics").json()

        assert len(body) == 1
        assert body[0]["id"] == latest["id"]
        assert body[0]["user_name"] == "Jess Client"
        assert body[0]["user_email"] == "jess@example.com"

    def test_admin_reads_one_clients_history(self, login, supabase, admin, client_user):
        seed_report(supabase, client_user, "2024-06-01T00:00:00+00:00")

        body = login(admin).get(f"/api/v1/analytics/users/{client_user['id']}").json()

        assert body["user"]["full_name"] == "Jess Client"
        assert len(body["analytics"]) == 1

    def test_unknown_user(self, login, admin):
        assert login(admin).get("/api/v1/analytics/users/missing").status_code == 404
        assert login(admin).post("/api/v1/analytics/users/missing", json=report()).status_code == 404

    def test_update_report(self, login, supabase, admin, client_user):
        existing = seed_report(supabase, client_user, "2024-06-01T00:00:00+00:00")

        response = login(admin).put(f"/api/v1/analytics/{existing['id']}", json={"earnings_total": 2000})

        assert response.status_code == 200
        assert response.json()["earnings_total"] == 2000
        assert supabase.row("analytics", existing["id"])["subscriber_count"] == 320

    def test_update_missing_report(self, login, admin):
        assert login(admin).put("/api/v1/analytics/missing", json={"earnings_total": 1}).status_code == 404

    def test_clients_cannot_write(self, login, client_user):
        api = login(client_user)
        assert api.post(f"/api/v1/analytics/users/{client_user['id']}", json=report()).status_code == 403
        assert api.get(f"/api/v1/analytics/users/{client_user['id']}").status_code == 403

    def test_invalid_period(self, login, admin, client_user):
        response = login(admin).post(f"/api/v1/analytics/users/{client_user['id']}", json=report(period="daily"))
        assert response.status_code == 422


class TestAnalyticsService:
    def test_breakdown_cannot_exceed_total(self, supabase, client_user):
        with pytest.raises(ValidationFailed):
            AnalyticsService(supabase).create_report(
                client_user["id"],
                AnalyticsCreate(**report(total_appointments=3, completed_appointments=3, canceled_appointments=1)),
            )

    def test_reports_are_for_clients_only(self, supabase, admin):
        with pytest.raises(ValidationFailed):
            AnalyticsService(supabase).create_report(admin["id"], AnalyticsCreate(**report()))
