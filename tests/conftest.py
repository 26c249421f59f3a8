import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import get_current_user
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.notifications.dispatcher import NotificationDispatcher
from app.modules.notifications.providers import get_email_provider, get_sms_provider
from fakes import FakeSupabase, FakeEmailProvider, FakeSmsProvider


@pytest.fixture(autouse=True)
def fresh_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def email_provider():
    return FakeEmailProvider()


@pytest.fixture
def sms_provider():
    return FakeSmsProvider()


@pytest.fixture
def dispatcher(supabase, email_provider, sms_provider):
    return NotificationDispatcher(supabase, email_provider, sms_provider)


@pytest.fixture
def admin(supabase):
    return supabase.seed(
        "users",
        email="admin@managethefans.com",
        username="admin",
        full_name="Admin User",
        phone=None,
        role="admin",
        verification_status="verified",
    )


@pytest.fixture
def client_user(supabase):
    return supabase.seed(
        "users",
        email="jess@example.com",
        username="jess",
        full_name="Jess Client",
        phone="5551234567",
        role="client",
        verification_status="pending",
    )


@pytest.fixture
def other_client(supabase):
    return supabase.seed(
        "users",
        email="sam@example.com",
        username="sam",
        full_name="Sam Other",
        phone=None,
        role="client",
        verification_status="pending",
    )


@pytest.fixture
def api(supabase, email_provider, sms_provider):
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_service_supabase] = lambda: supabase
    app.dependency_overrides[get_email_provider] = lambda: email_provider
    app.dependency_overrides[get_sms_provider] = lambda: sms_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(api):
    """login(user) makes `user` the caller of every following request"""
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: dict(user)
        return api
    return _login
