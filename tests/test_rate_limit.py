from app.config import settings


def limit_count(limit: str) -> int:
    return int(limit.split("/")[0].split()[0])


def test_default_limit_applies_to_every_route(api):
    allowed = limit_count(settings.rate_limit)

    statuses = [api.get("/").status_code for _ in range(allowed)]
    assert set(statuses) == {200}

    blocked = api.get("/")
    assert blocked.status_code == 429


def test_health_is_exempt(api):
    allowed = limit_count(settings.rate_limit)
    for _ in range(allowed):
        api.get("/")

    assert api.get("/").status_code == 429
    assert api.get("/health").status_code == 200


def test_login_has_its_own_tighter_limit(api):
    allowed = limit_count(settings.auth_rate_limit)
    credentials = {"email": "jess@example.com", "password": "wrong-password"}

    for _ in range(allowed):
        assert api.post("/api/v1/auth/login", json=credentials).status_code == 401

    assert api.post("/api/v1/auth/login", json=credentials).status_code == 429


def test_security_headers(api):
    response = api.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
