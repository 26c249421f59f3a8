"""
Appointment lifecycle: proposal, client response, cancellation, completion,
reopening and notification resends.
"""
from datetime import datetime

import pytest

from app.core.exceptions import InvalidTransition, Forbidden, ValidationFailed
from app.modules.appointments import lifecycle
from app.modules.appointments.service import AppointmentService, format_appointment_date


def make_appointment(supabase, admin, client, status="pending", **fields):
    row = {
        "admin_id": admin["id"],
        "client_id": client["id"],
        "appointment_date": "2030-06-01T14:00:00+00:00",
        "duration": 60,
        "location": "Studio B",
        "details": None,
        "amount": "200.00",
        "photo_url": None,
        "status": status,
        "notification_method": None,
        "notification_sent": False,
    }
    row.update(fields)
    return supabase.seed("appointments", **row)


class TestLifecycle:
    def test_client_responses_only_from_pending(self):
        assert lifecycle.can_transition("pending", "approved")
        assert lifecycle.can_transition("pending", "declined")
        assert not lifecycle.can_transition("approved", "declined")
        assert not lifecycle.can_transition("declined", "approved")

    def test_cancel_only_from_pending_or_approved(self):
        for status in lifecycle.STATUSES:
            expected = status in ("pending", "approved")
            assert lifecycle.can_transition(status, "cancelled") is expected

    def test_complete_only_from_approved(self):
        assert lifecycle.can_transition("approved", "completed")
        assert not lifecycle.can_transition("pending", "completed")
        assert not lifecycle.can_transition("cancelled", "completed")

    def test_terminal_states_reopen_only_when_allowed(self):
        for status in lifecycle.TERMINAL_STATUSES:
            assert not lifecycle.can_transition(status, "pending")
            assert lifecycle.can_transition(status, "pending", allow_reopen=True)
        assert not lifecycle.can_transition("pending", "pending", allow_reopen=True)

    def test_ensure_transition_raises_conflict(self):
        with pytest.raises(InvalidTransition) as exc_info:
            lifecycle.ensure_transition("completed", "cancelled")
        assert exc_info.value.status_code == 409
        assert exc_info.value.current == "completed"


class TestAppointmentService:
    def test_respond_requires_assigned_client(self, supabase, admin, client_user, other_client):
        appointment = make_appointment(supabase, admin, client_user)
        service = AppointmentService(supabase)

        with pytest.raises(Forbidden):
            service.respond(appointment["id"], "approved", other_client)
        with pytest.raises(Forbidden):
            service.respond(appointment["id"], "approved", admin)
        assert supabase.row("appointments", appointment["id"])["status"] == "pending"

    def test_respond_rejects_other_statuses(self, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)
        with pytest.raises(ValidationFailed):
            AppointmentService(supabase).respond(appointment["id"], "completed", client_user)

    def test_status_write_is_conditional_on_status_read(self, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)
        service = AppointmentService(supabase)
        stale = service.get_appointment(appointment["id"])

        # A concurrent response lands between our read and our write
        supabase.row("appointments", appointment["id"])["status"] = "declined"

        with pytest.raises(InvalidTransition) as exc_info:
            service._transition(stale, "approved")
        assert exc_info.value.current == "declined"
        assert supabase.row("appointments", appointment["id"])["status"] == "declined"

    def test_reopen_follows_policy(self, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user, status="cancelled")

        with pytest.raises(InvalidTransition):
            AppointmentService(supabase, allow_reopen=False).reopen(appointment["id"])

        reopened = AppointmentService(supabase, allow_reopen=True).reopen(appointment["id"])
        assert reopened.status == "pending"

    def test_reopen_rejects_open_appointments(self, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user, status="approved")
        with pytest.raises(InvalidTransition):
            AppointmentService(supabase, allow_reopen=True).reopen(appointment["id"])

    def test_failed_proposal_notification_keeps_record(self, supabase, admin, client_user, dispatcher, email_provider):
        email_provider.fail = True
        appointment = make_appointment(supabase, admin, client_user, notification_method="email")

        result = AppointmentService(supabase, dispatcher).notify_proposal(appointment["id"], admin["id"])

        assert not result.success
        row = supabase.row("appointments", appointment["id"])
        assert row["status"] == "pending"
        assert row["notification_sent"] is False

    def test_format_appointment_date(self):
        assert format_appointment_date(datetime(2024, 6, 1, 14, 0)) == "June 1, 2024 at 2:00 PM"
        assert format_appointment_date(datetime(2024, 12, 25, 0, 5)) == "December 25, 2024 at 12:05 AM"


class TestProposeApi:
    def test_propose_creates_pending_record(self, login, supabase, admin, client_user):
        response = login(admin).post("/api/v1/appointments/propose", json={
            "client_id": client_user["id"],
            "appointment_date": "2024-06-01T14:00:00",
            "duration": 60,
            "location": "Studio B",
            "amount": 200,
        })

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["notification_sent"] is False
        assert body["amount"] == "200.00"
        assert body["admin_id"] == admin["id"]
        assert supabase.rows("notifications") == []

    def test_propose_with_method_notifies_after_response(self, login, supabase, admin, client_user, email_provider):
        response = login(admin).post("/api/v1/appointments/propose", json={
            "client_id": client_user["id"],
            "appointment_date": "2024-06-01T14:00:00",
            "duration": 60,
            "location": "Studio B",
            "amount": 200,
            "notification_method": "email",
        })

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert len(email_provider.sent) == 1
        assert email_provider.sent[0]["to"] == client_user["email"]
        assert "June 1, 2024 at 2:00 PM" in email_provider.sent[0]["text"]
        assert supabase.row("appointments", response.json()["id"])["notification_sent"] is True

    def test_propose_to_unknown_client(self, login, admin):
        response = login(admin).post("/api/v1/appointments/propose", json={
            "client_id": admin["id"],
            "appointment_date": "2024-06-01T14:00:00",
            "duration": 60,
            "location": "Studio B",
        })
        assert response.status_code == 404

    def test_client_cannot_propose(self, login, client_user):
        response = login(client_user).post("/api/v1/appointments/propose", json={
            "client_id": client_user["id"],
            "appointment_date": "2024-06-01T14:00:00",
            "duration": 60,
            "location": "Studio B",
        })
        assert response.status_code == 403


class TestRespondApi:
    def test_second_response_fails(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)
        api = login(client_user)

        first = api.put(f"/api/v1/appointments/{appointment['id']}/respond", json={"status": "approved"})
        assert first.status_code == 200
        assert first.json()["status"] == "approved"

        second = api.put(f"/api/v1/appointments/{appointment['id']}/respond", json={"status": "declined"})
        assert second.status_code == 409
        assert supabase.row("appointments", appointment["id"])["status"] == "approved"

    def test_response_notifies_admin_in_app(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)

        response = login(client_user).post(f"/api/v1/appointments/{appointment['id']}/decline-proposal")

        assert response.status_code == 200
        assert response.json()["status"] == "declined"
        notifications = supabase.rows("notifications")
        assert len(notifications) == 1
        assert notifications[0]["recipient_id"] == admin["id"]
        assert notifications[0]["content"] == "Client Jess Client has declined your appointment proposal."

    def test_other_client_cannot_respond(self, login, supabase, admin, client_user, other_client):
        appointment = make_appointment(supabase, admin, client_user)
        response = login(other_client).post(f"/api/v1/appointments/{appointment['id']}/approve")
        assert response.status_code == 403

    def test_invalid_response_status(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)
        response = login(client_user).put(
            f"/api/v1/appointments/{appointment['id']}/respond", json={"status": "completed"}
        )
        assert response.status_code == 422

    def test_pending_list_shows_only_callers_proposals(self, login, supabase, admin, client_user, other_client):
        mine = make_appointment(supabase, admin, client_user)
        make_appointment(supabase, admin, client_user, status="approved")
        make_appointment(supabase, admin, other_client)

        response = login(client_user).get("/api/v1/appointments/client/pending")

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [mine["id"]]

    def test_unknown_appointment(self, login, client_user):
        response = login(client_user).post("/api/v1/appointments/missing/approve")
        assert response.status_code == 404


class TestAdminManagementApi:
    def test_cancel_then_complete_fails(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user, status="approved")
        api = login(admin)

        cancelled = api.post(f"/api/v1/appointments/{appointment['id']}/cancel")
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"

        completed = api.post(f"/api/v1/appointments/{appointment['id']}/complete")
        assert completed.status_code == 409

    @pytest.mark.parametrize("status", ["completed", "cancelled", "declined"])
    def test_cannot_cancel_terminal(self, login, supabase, admin, client_user, status):
        appointment = make_appointment(supabase, admin, client_user, status=status)
        response = login(admin).post(f"/api/v1/appointments/{appointment['id']}/cancel")
        assert response.status_code == 409

    def test_client_cancellation_notifies_admin(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user, status="approved")

        response = login(client_user).post(f"/api/v1/appointments/{appointment['id']}/cancel")

        assert response.status_code == 200
        notifications = supabase.rows("notifications")
        assert [n["recipient_id"] for n in notifications] == [admin["id"]]
        assert notifications[0]["title"] == "Appointment Cancelled"

    def test_other_client_cannot_cancel(self, login, supabase, admin, client_user, other_client):
        appointment = make_appointment(supabase, admin, client_user)
        response = login(other_client).post(f"/api/v1/appointments/{appointment['id']}/cancel")
        assert response.status_code == 403

    def test_admin_decline_only_from_pending(self, login, supabase, admin, client_user):
        pending = make_appointment(supabase, admin, client_user)
        approved = make_appointment(supabase, admin, client_user, status="approved")
        api = login(admin)

        assert api.post(f"/api/v1/appointments/{pending['id']}/decline").json()["status"] == "declined"
        assert api.post(f"/api/v1/appointments/{approved['id']}/decline").status_code == 409

    def test_client_cannot_complete(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user, status="approved")
        response = login(client_user).post(f"/api/v1/appointments/{appointment['id']}/complete")
        assert response.status_code == 403

    def test_reopen_disabled_by_default(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user, status="completed")
        response = login(admin).post(f"/api/v1/appointments/{appointment['id']}/reopen")
        assert response.status_code == 409
        assert supabase.row("appointments", appointment["id"])["status"] == "completed"

    def test_admin_list_filters_by_status(self, login, supabase, admin, client_user):
        make_appointment(supabase, admin, client_user)
        approved = make_appointment(supabase, admin, client_user, status="approved")

        response = login(admin).get("/api/v1/appointments/admin", params={"status": "approved"})

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [approved["id"]]


class TestResendNotificationApi:
    def test_resend_keeps_status_and_flags_sent(self, login, supabase, admin, client_user, sms_provider):
        appointment = make_appointment(supabase, admin, client_user, status="approved", notification_method="sms")

        response = login(admin).post(f"/api/v1/appointments/{appointment['id']}/resend-notification")

        assert response.status_code == 200
        assert response.json()["success"] is True
        row = supabase.row("appointments", appointment["id"])
        assert row["status"] == "approved"
        assert row["notification_sent"] is True
        assert sms_provider.sent[0]["body"].startswith("Reminder: You have an appointment on June 1, 2030")

    def test_partial_delivery_over_all_channels(self, login, supabase, admin, client_user, email_provider, sms_provider):
        email_provider.fail = True
        appointment = make_appointment(supabase, admin, client_user)

        response = login(admin).post(
            f"/api/v1/appointments/{appointment['id']}/resend-notification",
            json={"notification_method": "all"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["partial"] is True
        assert "failed: email" in body["message"]
        channels = {c["channel"]: c["success"] for c in body["channels"]}
        assert channels == {"email": False, "sms": True, "in-app": True}
        row = supabase.row("appointments", appointment["id"])
        assert row["notification_sent"] is True
        assert row["notification_method"] == "all"
        assert row["status"] == "pending"

    def test_resend_is_not_deduplicated(self, login, supabase, admin, client_user, email_provider):
        appointment = make_appointment(supabase, admin, client_user, notification_method="email")
        api = login(admin)

        api.post(f"/api/v1/appointments/{appointment['id']}/resend-notification")
        api.post(f"/api/v1/appointments/{appointment['id']}/resend-notification")

        assert len(email_provider.sent) == 2

    def test_every_channel_failing(self, login, supabase, admin, client_user, email_provider):
        email_provider.fail = True
        appointment = make_appointment(supabase, admin, client_user, notification_method="email")

        response = login(admin).post(f"/api/v1/appointments/{appointment['id']}/resend-notification")

        assert response.status_code == 502
        assert supabase.row("appointments", appointment["id"])["notification_sent"] is False

    def test_resend_without_method(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)
        response = login(admin).post(f"/api/v1/appointments/{appointment['id']}/resend-notification")
        assert response.status_code == 400

    def test_custom_notification(self, login, supabase, admin, client_user):
        appointment = make_appointment(supabase, admin, client_user)

        response = login(admin).post(
            f"/api/v1/appointments/{appointment['id']}/notification",
            json={"method": "in-app", "message": "Bring the blue outfit."},
        )

        assert response.status_code == 200
        notifications = supabase.rows("notifications")
        assert notifications[0]["recipient_id"] == client_user["id"]
        assert notifications[0]["content"] == "Bring the blue outfit."
