"""
Failure Injection Tests.

Validates resilience against component failures and the shape of error
responses.
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

import carpool.app.core.redis_client as redis_client_module
from carpool.app.core.config import settings
from carpool.app.core.rate_limit import limiter
from carpool.app.core.reliability import RetryExhaustedError, retry_with_fixed_delay
from carpool.app.db.session import get_db
from carpool.app.domain.payments.payment_service import PaymentService
from carpool.app.main import app


@pytest.mark.asyncio
async def test_retry_gives_up_after_max_attempts():
    calls = []

    async def failing_connect():
        calls.append(1)
        raise OSError("connection refused")

    with pytest.raises(RetryExhaustedError) as exc:
        await retry_with_fixed_delay(failing_connect, attempts=3, delay_seconds=0, retry_on=(OSError,))

    assert len(calls) == 3
    assert exc.value.attempts == 3
    assert isinstance(exc.value.last_error, OSError)


@pytest.mark.asyncio
async def test_retry_recovers_and_does_not_retry_unexpected_errors():
    attempts = {"n": 0}

    async def flaky():
        attempts["n"] += 1
        if attempts["n"] < 2:
            raise OSError("not yet")
        return "connected"

    assert await retry_with_fixed_delay(flaky, attempts=5, delay_seconds=0, retry_on=(OSError,)) == "connected"
    assert attempts["n"] == 2

    async def broken():
        raise ValueError("bad config")

    with pytest.raises(ValueError):
        await retry_with_fixed_delay(broken, attempts=5, delay_seconds=0, retry_on=(OSError,))


@pytest.mark.asyncio
async def test_database_exhaustion_triggers_shutdown(mocker):
    """When the database never comes up the process signals itself to stop."""
    from carpool.app.db import session as session_module

    mocker.patch.object(session_module.settings, "db_connect_max_attempts", 2)
    mocker.patch.object(session_module.settings, "db_connect_retry_delay_seconds", 0)
    mocker.patch.object(
        session_module, "_connect_and_create_tables", side_effect=OSError("db down")
    )
    kill = mocker.patch.object(session_module.os, "kill")

    await session_module.connect_database_with_retry()

    kill.assert_called_once()
    assert kill.call_args.args[1] == session_module.signal.SIGTERM


@pytest.mark.asyncio
async def test_unexpected_error_is_sanitized(client, trip, passenger, mocker):
    """A crash inside a handler leaks no details and still carries the request id."""
    mocker.patch.object(PaymentService, "get_payment", side_effect=RuntimeError("secret stack detail"))

    response = await client.get(
        "/v1/payments/1", headers={**passenger["headers"], "X-Request-ID": "req-500"}
    )
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Internal Server Error"
    assert data["message"] == "An unexpected error occurred"
    assert "secret" not in response.text
    assert data["requestId"] == "req-500"
    assert response.headers["X-Request-ID"] == "req-500"


@pytest.mark.asyncio
async def test_error_payload_shape(client, passenger):
    response = await client.get("/v1/trips/987", headers={**passenger["headers"], "X-Request-ID": "abc-123"})
    assert response.status_code == 404
    data = response.json()
    assert set(data) == {"statusCode", "error", "message", "timestamp", "path", "requestId"}
    assert data["statusCode"] == 404
    assert data["error"] == "Not Found"
    assert data["path"] == "/v1/trips/987"
    assert data["requestId"] == "abc-123"


@pytest.mark.asyncio
async def test_request_id_and_security_headers(client):
    echoed = await client.get("/", headers={"X-Request-ID": "trace-me"})
    assert echoed.headers["X-Request-ID"] == "trace-me"

    generated = await client.get("/")
    assert generated.headers["X-Request-ID"]
    assert generated.headers["X-Content-Type-Options"] == "nosniff"
    assert generated.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_health_ok(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["version"] == settings.api_version


@pytest.mark.asyncio
async def test_health_degraded_when_database_down(client, mocker):
    broken_session = mocker.AsyncMock()
    broken_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))

    async def override_get_db():
        yield broken_session

    original = app.dependency_overrides[get_db]
    app.dependency_overrides[get_db] = override_get_db
    try:
        response = await client.get("/health")
    finally:
        app.dependency_overrides[get_db] = original

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "disconnected"


@pytest.mark.asyncio
async def test_auth_rate_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_rate_limit", 2)
    payload = {"email": "nobody@test.com", "password": "password123"}

    for _ in range(2):
        response = await client.post("/v1/auth/login", json=payload)
        assert response.status_code == 401

    limited = await client.post("/v1/auth/login", json=payload)
    assert limited.status_code == 429
    assert limited.headers["Retry-After"] == str(settings.auth_rate_window_seconds)
    assert limited.json()["statusCode"] == 429
    assert limited.json()["message"] == "Too many requests, please try again later"


@pytest.mark.asyncio
async def test_register_rate_limit_counts_per_endpoint(client, monkeypatch):
    """Register has its own window; exhausting it leaves login untouched."""
    monkeypatch.setattr(settings, "auth_rate_limit", 1)

    first = await client.post(
        "/v1/auth/register", json={"email": "a@test.com", "password": "secret1", "name": "A"}
    )
    assert first.status_code == 201

    second = await client.post(
        "/v1/auth/register", json={"email": "b@test.com", "password": "secret1", "name": "B"}
    )
    assert second.status_code == 429
    assert second.headers["Retry-After"] == str(settings.auth_rate_window_seconds)

    login = await client.post("/v1/auth/login", json={"email": "a@test.com", "password": "secret1"})
    assert login.status_code == 200


class BrokenRedis:
    async def exists(self, key):
        raise RedisConnectionError("redis down")

    async def setex(self, key, ttl, value):
        raise RedisConnectionError("redis down")


@pytest.mark.asyncio
async def test_redis_outage_fails_open(client, passenger, monkeypatch, mocker):
    """Rate limiting and revocation checks let traffic through when Redis is down."""
    monkeypatch.setattr(redis_client_module, "redis_client", BrokenRedis())
    mocker.patch.object(limiter.limiter, "hit", side_effect=RedisConnectionError("redis down"))
    # slowapi flags its storage as dead on the first failure; restored after the test
    monkeypatch.setattr(limiter, "_storage_dead", False)

    login = await client.post("/v1/auth/login", json={"email": "passenger@test.com", "password": "password123"})
    assert login.status_code == 200

    me = await client.get("/v1/auth/me", headers=passenger["headers"])
    assert me.status_code == 200


@pytest.mark.asyncio
async def test_unknown_route_uses_standard_payload(client):
    response = await client.get("/v1/does-not-exist")
    assert response.status_code == 404
    assert response.json()["statusCode"] == 404
    assert response.json()["path"] == "/v1/does-not-exist"
