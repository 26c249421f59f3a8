import pytest

from app.modules.notifications.dispatcher import resolve_channels
from app.modules.notifications.providers import EmailProvider, SmsProvider, DeliveryError, format_phone_number
from app.modules.notifications.service import NotificationService, get_notification_subject


def test_resolve_channels():
    assert resolve_channels("all") == ["email", "sms", "in-app"]
    assert resolve_channels("sms") == ["sms"]
    with pytest.raises(ValueError):
        resolve_channels("pigeon")


@pytest.mark.parametrize("raw, expected", [
    ("5551234567", "+15551234567"),
    ("(555) 123-4567", "+15551234567"),
    ("+44 20 7946 0958", "+442079460958"),
    ("447700900123", "+447700900123"),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_unconfigured_providers_refuse_to_send():
    with pytest.raises(DeliveryError):
        EmailProvider(None, "from@example.com").send("to@example.com", "Hi", "Body")
    with pytest.raises(DeliveryError):
        SmsProvider("not-a-sid", "token", "+15550000000").send("5551234567", "Body")


class TestDispatcher:
    def test_all_fans_out_independently(self, dispatcher, supabase, client_user, email_provider, sms_provider):
        email_provider.fail = True

        result = dispatcher.dispatch(client_user, "all", "Appointment Notification", "See you soon")

        assert result.success is True
        assert result.partial is True
        assert result.failed_channels == ["email"]
        assert sms_provider.sent == [{"to": "5551234567", "body": "See you soon"}]
        assert len(supabase.rows("notifications")) == 1

    def test_missing_phone_is_a_channel_failure(self, dispatcher, other_client):
        result = dispatcher.dispatch(other_client, "sms", "Reminder", "Tomorrow at noon")

        assert result.success is False
        assert result.partial is False
        assert result.results[0].error == "Recipient has no phone number"

    def test_in_app_row(self, dispatcher, supabase, client_user):
        dispatcher.dispatch(client_user, "in-app", "Heads up", "Body", notification_type="content", link="/content")

        row = supabase.rows("notifications")[0]
        assert row["recipient_id"] == client_user["id"]
        assert row["type"] == "content"
        assert row["link"] == "/content"
        assert row["is_read"] is False

    def test_sends_with_sender_are_recorded(self, dispatcher, supabase, admin, client_user):
        dispatcher.dispatch(client_user, "all", "Subject", "Body", sender_id=admin["id"])

        history = supabase.rows("communication_history")
        assert sorted(h["type"] for h in history) == ["email", "sms"]
        assert all(h["status"] == "sent" for h in history)

    def test_to_dict(self, dispatcher, client_user, sms_provider):
        sms_provider.fail = True
        summary = dispatcher.dispatch(client_user, "sms", "Subject", "Body").to_dict()

        assert summary["success"] is False
        assert summary["channels"][0]["channel"] == "sms"
        assert "rejected" in summary["channels"][0]["error"]


def test_unread_count_counts_only_own_unread(supabase, client_user, admin):
    supabase.seed("notifications", recipient_id=client_user["id"], is_read=False)
    supabase.seed("notifications", recipient_id=client_user["id"], is_read=True)
    supabase.seed("notifications", recipient_id=admin["id"], is_read=False)
    service = NotificationService(supabase)

    assert service.unread_count(client_user["id"]) == 1
    assert service.unread_count("nobody") == 0


def test_notification_subjects():
    assert get_notification_subject("appointment") == "Appointment Update"
    assert get_notification_subject("billing") == "Billing Update"
    assert get_notification_subject("anything-else") == "New Notification"


class TestNotificationApi:
    def seed(self, supabase, user, is_read=False, created_at="2024-06-01T10:00:00+00:00"):
        return supabase.seed(
            "notifications",
            recipient_id=user["id"],
            type="appointment",
            title="Appointment Update",
            content="Something happened",
            link=None,
            is_read=is_read,
            delivery_method="in-app",
            created_at=created_at,
        )

    def test_list_newest_first_and_unread_count(self, login, supabase, client_user, admin):
        older = self.seed(supabase, client_user, created_at="2024-06-01T10:00:00+00:00")
        newer = self.seed(supabase, client_user, created_at="2024-06-02T10:00:00+00:00")
        self.seed(supabase, client_user, is_read=True)
        self.seed(supabase, admin)
        api = login(client_user)

        listed = api.get("/api/v1/notifications").json()
        assert [n["id"] for n in listed][:2] == [newer["id"], older["id"]]
        assert len(listed) == 3
        assert api.get("/api/v1/notifications/unread-count").json() == {"unread": 2}

    def test_mark_read_by_recipient_only(self, login, supabase, client_user, other_client):
        notification = self.seed(supabase, client_user)

        denied = login(other_client).patch(f"/api/v1/notifications/{notification['id']}/read")
        assert denied.status_code == 403

        marked = login(client_user).patch(f"/api/v1/notifications/{notification['id']}/read")
        assert marked.status_code == 200
        assert marked.json()["is_read"] is True
        assert marked.json()["read_at"] is not None

    def test_mark_all_read(self, login, supabase, client_user):
        self.seed(supabase, client_user)
        self.seed(supabase, client_user)
        self.seed(supabase, client_user, is_read=True)

        response = login(client_user).post("/api/v1/notifications/mark-all-read")

        assert response.json()["updated"] == 2
        assert all(n["is_read"] for n in supabase.rows("notifications"))

    def test_admin_send_with_email(self, login, supabase, admin, client_user, email_provider):
        response = login(admin).post("/api/v1/notifications/send", json={
            "user_id": client_user["id"],
            "type": "billing",
            "content": "Your invoice is ready",
            "delivery_method": "email",
        })

        assert response.status_code == 201
        assert response.json()["title"] == "Billing Update"
        assert email_provider.sent[0]["subject"] == "ManageTheFans Notification: Billing Update"

    def test_client_cannot_send(self, login, client_user):
        response = login(client_user).post("/api/v1/notifications/send", json={
            "user_id": client_user["id"], "type": "content", "content": "Hi",
        })
        assert response.status_code == 403

    def test_other_users_notifications_hidden(self, login, client_user, other_client):
        response = login(other_client).get(f"/api/v1/notifications/user/{client_user['id']}")
        assert response.status_code == 403
