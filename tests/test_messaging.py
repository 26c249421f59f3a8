import asyncio

import pytest

from app.modules.messaging.realtime import (
    ReconnectPolicy, RealtimeSubscription, SupabaseChangeSource, extract_record
)
from app.modules.messaging.service import message_preview


def test_message_preview_truncates_at_fifty():
    assert message_preview("short") == "short"
    assert message_preview("x" * 50) == "x" * 50
    assert message_preview("x" * 51) == "x" * 50 + "..."


def make_conversation(supabase, *users, title="Shoot planning"):
    conversation = supabase.seed("conversations", title=title, last_message_preview="", updated_at=None)
    for user in users:
        supabase.seed("conversation_participants", conversation_id=conversation["id"], user_id=user["id"])
    return conversation


class TestConversationsApi:
    def test_creator_is_always_a_participant(self, login, supabase, admin, client_user):
        response = login(admin).post("/api/v1/messages/conversations", json={
            "participant_ids": [client_user["id"], client_user["id"]],
        })

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "New Conversation"
        assert sorted(p["id"] for p in body["participants"]) == sorted([admin["id"], client_user["id"]])
        assert len(supabase.rows("conversation_participants")) == 2

    def test_list_only_own_conversations(self, login, supabase, admin, client_user, other_client):
        mine = make_conversation(supabase, admin, client_user)
        make_conversation(supabase, admin, other_client)

        listed = login(client_user).get("/api/v1/messages/conversations").json()

        assert [c["id"] for c in listed] == [mine["id"]]


class TestMessagesApi:
    def test_send_updates_preview(self, login, supabase, admin, client_user):
        conversation = make_conversation(supabase, admin, client_user)
        content = "Can we move the shoot to the afternoon? The light is much better after three."

        response = login(client_user).post("/api/v1/messages", json={
            "conversation_id": conversation["id"],
            "content": content,
        })

        assert response.status_code == 201
        assert response.json()["sender_id"] == client_user["id"]
        stored = supabase.row("conversations", conversation["id"])
        assert stored["last_message_preview"] == content[:50] + "..."
        assert stored["updated_at"] is not None

    def test_non_participant_cannot_send(self, login, supabase, admin, client_user, other_client):
        conversation = make_conversation(supabase, admin, client_user)

        response = login(other_client).post("/api/v1/messages", json={
            "conversation_id": conversation["id"],
            "content": "Hello?",
        })

        assert response.status_code == 403
        assert supabase.rows("messages") == []

    def test_admin_reads_any_conversation(self, login, supabase, admin, client_user, other_client):
        conversation = make_conversation(supabase, client_user, other_client)
        supabase.seed("messages", conversation_id=conversation["id"], sender_id=client_user["id"],
                      content="first", attachments=None, read_at=None, created_at="2024-06-01T10:00:00+00:00")
        supabase.seed("messages", conversation_id=conversation["id"], sender_id=other_client["id"],
                      content="second", attachments=None, read_at=None, created_at="2024-06-01T10:05:00+00:00")

        response = login(admin).get(f"/api/v1/messages/conversations/{conversation['id']}/messages")

        assert [m["content"] for m in response.json()] == ["first", "second"]

    def test_mark_read_skips_own_messages(self, login, supabase, admin, client_user):
        conversation = make_conversation(supabase, admin, client_user)
        message = supabase.seed("messages", conversation_id=conversation["id"], sender_id=client_user["id"],
                                content="hi", attachments=None, read_at=None)

        own = login(client_user).patch(f"/api/v1/messages/{message['id']}/read")
        assert own.json()["read_at"] is None

        other = login(admin).patch(f"/api/v1/messages/{message['id']}/read")
        assert other.json()["read_at"] is not None


class TestReconnectPolicy:
    def test_delays_grow_and_cap(self):
        policy = ReconnectPolicy(initial_delay=1.0, max_delay=10.0, multiplier=2.0)
        assert [policy.delay(n) for n in range(6)] == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_jitter_stays_within_bounds(self):
        policy = ReconnectPolicy(initial_delay=4.0, max_delay=5.0, multiplier=2.0, jitter=0.5)
        for attempt in range(5):
            delay = policy.delay(attempt)
            assert 0.0 <= delay <= 5.0


class FlakySource:
    """Fails once, delivers one event, then the subscriber stops."""

    def __init__(self):
        self.calls = 0
        self.closed = False
        self.subscription = None

    async def listen(self, table, callback, filter=None, on_subscribed=None):
        self.calls += 1
        if self.calls == 1:
            raise ConnectionError("socket dropped")
        if self.calls == 2:
            on_subscribed()
            callback({"data": {"record": {"id": "m1", "content": "hello"}}})
            return
        await self.subscription.stop()

    async def close(self):
        self.closed = True


def test_subscription_reconnects_until_stopped():
    source = FlakySource()
    received = []
    subscription = RealtimeSubscription(
        source, "messages", received.append, filter="conversation_id=eq.c1",
        policy=ReconnectPolicy(initial_delay=0.001, max_delay=0.01),
    )
    source.subscription = subscription

    asyncio.run(subscription.run())

    assert source.calls == 3
    assert subscription.connections == 1
    # Counter was reset by the successful subscription
    assert subscription.attempt == 1
    assert subscription.stopped
    assert source.closed
    assert [extract_record(p) for p in received] == [{"id": "m1", "content": "hello"}]


def test_extract_record_accepts_flat_payloads():
    assert extract_record({"new": {"id": "m2"}}) == {"id": "m2"}


class FakeRealtime:
    def __init__(self, client):
        self.client = client

    async def close(self):
        self.client.closed = True


class FakeChannel:
    def __init__(self, status):
        self.status = status

    def on_postgres_changes(self, event, **options):
        self.options = options

    async def subscribe(self, callback):
        callback("SUBSCRIBED")
        callback(self.status)


class FakeRealtimeClient:
    def __init__(self, status):
        self.status = status
        self.closed = False
        self.removed = []
        self.realtime = FakeRealtime(self)

    def channel(self, name):
        return FakeChannel(self.status)

    async def remove_channel(self, channel):
        self.removed.append(channel)


class TestSupabaseChangeSource:
    def make_source(self, status):
        clients = []

        async def factory():
            client = FakeRealtimeClient(status)
            clients.append(client)
            return client

        return SupabaseChangeSource(client_factory=factory), clients

    def test_failed_channel_closes_its_client(self):
        source, clients = self.make_source("CHANNEL_ERROR")
        subscribed = []

        async def listen_twice():
            for _ in range(2):
                with pytest.raises(ConnectionError):
                    await source.listen("messages", lambda payload: None, on_subscribed=lambda: subscribed.append(1))

        asyncio.run(listen_twice())

        assert len(clients) == 2
        assert all(client.closed for client in clients)
        assert all(len(client.removed) == 1 for client in clients)
        assert len(subscribed) == 2

    def test_clean_close_also_closes_client(self):
        source, clients = self.make_source("CLOSED")

        asyncio.run(source.listen("messages", lambda payload: None, filter="conversation_id=eq.c1"))

        assert clients[0].closed

    def test_reconnecting_subscription_never_leaks_clients(self):
        source, clients = self.make_source("CHANNEL_ERROR")
        subscription = RealtimeSubscription(
            source, "messages", lambda payload: None,
            policy=ReconnectPolicy(initial_delay=0.001, max_delay=0.001),
        )

        async def run_briefly():
            task = asyncio.ensure_future(subscription.run())
            while len(clients) < 3:
                await asyncio.sleep(0.001)
            await subscription.stop()
            await task

        asyncio.run(run_briefly())

        assert len(clients) >= 3
        assert all(client.closed for client in clients)
