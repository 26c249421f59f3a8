from datetime import datetime

import pytest

from app.modules.communications.service import render, default_params


def test_render_replaces_known_tokens():
    text = "Hi {{recipientName}}, your shoot is on {{ date }}."
    assert render(text, {"recipientName": "Jess", "date": "6/1/2024"}) == "Hi Jess, your shoot is on 6/1/2024."


def test_render_leaves_unknown_tokens():
    assert render("Hello {{recipientName}} {{unknown}}", {"recipientName": "Jess"}) == "Hello Jess {{unknown}}"
    assert render(None, {}) is None


def test_default_params():
    params = default_params({"full_name": "Jess Client", "email": "jess@example.com"}, datetime(2024, 6, 1, 14, 5, 9))
    assert params == {
        "recipientName": "Jess Client",
        "recipientEmail": "jess@example.com",
        "date": "6/1/2024",
        "time": "2:05:09 PM",
    }


@pytest.fixture
def template_factory(supabase, admin):
    def _make(type="email", subject=None, content="Hi {{recipientName}}", category="appointment", **fields):
        return supabase.seed(
            "communication_templates",
            name=fields.pop("name", "Welcome"),
            type=type,
            category=category,
            subject=subject,
            content=content,
            is_default=fields.pop("is_default", False),
            created_by=admin["id"],
            **fields,
        )
    return _make


class TestTemplatesApi:
    def test_create_and_list_by_type(self, login, admin, template_factory):
        template_factory(type="sms", name="Reminder")
        api = login(admin)

        created = api.post("/api/v1/communications/templates", json={
            "name": "Onboarding",
            "type": "email",
            "category": "onboarding",
            "subject": "Welcome {{recipientName}}",
            "content": "Glad to have you",
        })
        assert created.status_code == 201
        assert created.json()["created_by"] == admin["id"]

        emails = api.get("/api/v1/communications/templates/type/email").json()
        assert [t["name"] for t in emails] == ["Onboarding"]

    def test_client_cannot_create(self, login, client_user):
        response = login(client_user).post("/api/v1/communications/templates", json={
            "name": "X", "type": "sms", "category": "c", "content": "y",
        })
        assert response.status_code == 403

    def test_default_template(self, login, admin, template_factory):
        template_factory(name="Plain")
        default = template_factory(name="Fancy", is_default=True)

        response = login(admin).get("/api/v1/communications/templates/default/email/appointment")

        assert response.json()["id"] == default["id"]
        missing = login(admin).get("/api/v1/communications/templates/default/sms/appointment")
        assert missing.status_code == 404

    def test_update_and_delete(self, login, supabase, admin, template_factory):
        template = template_factory()
        api = login(admin)

        updated = api.put(f"/api/v1/communications/templates/{template['id']}", json={"content": "Changed"})
        assert updated.json()["content"] == "Changed"
        assert updated.json()["name"] == "Welcome"

        assert api.delete(f"/api/v1/communications/templates/{template['id']}").status_code == 204
        assert supabase.rows("communication_templates") == []
        assert api.delete(f"/api/v1/communications/templates/{template['id']}").status_code == 404


class TestSendCommunicationApi:
    def test_email_send_renders_and_records(self, login, supabase, admin, client_user, template_factory, email_provider):
        template = template_factory(content="Hi {{recipientName}}, see you at {{place}}")

        response = login(admin).post("/api/v1/communications/send", json={
            "template_id": template["id"],
            "recipient_id": client_user["id"],
            "custom_params": {"place": "Studio B"},
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "email sent successfully"
        assert body["history_entry"]["content"] == "Hi Jess Client, see you at Studio B"
        assert body["history_entry"]["subject"] == "ManageTheFans: Welcome"
        assert email_provider.sent[0]["subject"] == "ManageTheFans: Welcome"
        history = supabase.rows("communication_history")
        assert [h["status"] for h in history] == ["sent"]
        assert history[0]["template_id"] == template["id"]

    def test_sms_without_phone_is_recorded_as_failed(self, login, supabase, admin, other_client, template_factory, sms_provider):
        template = template_factory(type="sms")

        response = login(admin).post("/api/v1/communications/send", json={
            "template_id": template["id"],
            "recipient_id": other_client["id"],
        })

        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Failed to send sms: Recipient has no phone number"
        assert body["history_entry"]["status"] == "failed"
        assert sms_provider.sent == []

    def test_notification_template_creates_in_app_row(self, login, supabase, admin, client_user, template_factory):
        template = template_factory(type="notification", category="payment", content="Payment due")

        login(admin).post("/api/v1/communications/send", json={
            "template_id": template["id"],
            "recipient_id": client_user["id"],
        })

        notification = supabase.rows("notifications")[0]
        assert notification["type"] == "payment"
        assert notification["content"] == "Payment due"

    def test_provider_failure_is_recorded(self, login, supabase, admin, client_user, template_factory, email_provider):
        email_provider.fail = True
        template = template_factory()

        body = login(admin).post("/api/v1/communications/send", json={
            "template_id": template["id"],
            "recipient_id": client_user["id"],
        }).json()

        assert body["success"] is False
        assert body["history_entry"]["status_message"].startswith("Error: ")

    def test_unknown_recipient(self, login, admin, template_factory):
        template = template_factory()
        response = login(admin).post("/api/v1/communications/send", json={
            "template_id": template["id"],
            "recipient_id": "nobody",
        })
        assert response.status_code == 404


class TestHistoryApi:
    def test_list_requires_a_filter(self, login, admin):
        assert login(admin).get("/api/v1/communications/history").status_code == 400

    def test_get_entry_visibility(self, login, supabase, admin, client_user, other_client):
        entry = supabase.seed(
            "communication_history",
            template_id=None,
            recipient_id=client_user["id"],
            sender_id=admin["id"],
            type="email",
            subject="Hi",
            content="Body",
            status="sent",
            status_message=None,
            sent_at="2024-06-01T10:00:00+00:00",
        )

        assert login(client_user).get(f"/api/v1/communications/history/{entry['id']}").status_code == 200
        assert login(other_client).get(f"/api/v1/communications/history/{entry['id']}").status_code == 403

    def test_list_by_recipient(self, login, supabase, admin, client_user):
        login(admin).post("/api/v1/communications/history", json={
            "recipient_id": client_user["id"],
            "type": "sms",
            "content": "Sent from my phone",
        })

        entries = login(admin).get(
            "/api/v1/communications/history", params={"recipient_id": client_user["id"]}
        ).json()
        assert len(entries) == 1
        assert entries[0]["sender_id"] == admin["id"]
