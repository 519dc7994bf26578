"""Tests for rate limiting functionality."""

import time

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from conftest import MODERATOR_PASSWORD
from servermod.config import settings
from servermod.infrastructure.database.database import get_session
from servermod.main import app
from servermod.rate_limiting import RateLimiter, rate_limiter


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_password_reproof_has_sensitive_limit(client: TestClient, moderator):
    """Repeated undo attempts are throttled in the sensitive bucket."""
    rate_limiter.enable()
    rate_limiter.reset()
    original_limits = rate_limiter.set_limits_for_testing(sensitive=2)

    try:
        responses = [
            client.request(
                "DELETE",
                "/api/v1/moderation/servers/missing/schedule-delete",
                json={"password": MODERATOR_PASSWORD},
                headers={"X-User-Id": moderator.id},
            )
            for _ in range(3)
        ]

        assert [r.status_code for r in responses[:2]] == [404, 404]
        limited = responses[2]
        assert limited.status_code == 429
        assert limited.headers["Retry-After"] == "60"
        data = limited.json()
        assert data["code"] == "rate_limited"
        assert data["limit_type"] == "sensitive"
    finally:
        rate_limiter.restore_limits(original_limits)
        rate_limiter.reset()


def test_reads_use_general_bucket(client: TestClient, moderator):
    rate_limiter.enable()
    rate_limiter.reset()
    original_limits = rate_limiter.set_limits_for_testing(general=3, sensitive=1)

    try:
        statuses = [
            client.get(
                "/api/v1/moderation/audit-logs", headers={"X-User-Id": moderator.id}
            ).status_code
            for _ in range(4)
        ]

        assert statuses == [200, 200, 200, 429]
    finally:
        rate_limiter.restore_limits(original_limits)
        rate_limiter.reset()


def test_clients_behind_trusted_proxy_are_limited_separately(
    client: TestClient, moderator, monkeypatch
):
    monkeypatch.setattr(settings, "trust_proxy_headers", True)
    rate_limiter.enable()
    rate_limiter.reset()
    original_limits = rate_limiter.set_limits_for_testing(general=1)

    try:
        url = "/api/v1/moderation/audit-logs"
        first = client.get(
            url, headers={"X-User-Id": moderator.id, "X-Forwarded-For": "10.0.0.1"}
        )
        second = client.get(
            url, headers={"X-User-Id": moderator.id, "X-Forwarded-For": "10.0.0.2"}
        )

        assert first.status_code == 200
        assert second.status_code == 200
    finally:
        rate_limiter.restore_limits(original_limits)
        rate_limiter.reset()


def test_rate_limiting_headers(client: TestClient, moderator):
    rate_limiter.enable()
    rate_limiter.reset()

    response = client.get(
        "/api/v1/moderation/audit-logs", headers={"X-User-Id": moderator.id}
    )
    assert response.status_code == 200

    limit = int(response.headers["X-RateLimit-Limit"])
    remaining = int(response.headers["X-RateLimit-Remaining"])
    reset_time = int(response.headers["X-RateLimit-Reset"])

    assert limit > 0
    assert 0 <= remaining < limit
    assert reset_time > int(time.time())


def test_rate_limiting_disabled(client: TestClient, moderator):
    """Rate limiting stays off unless enabled (conftest default)."""
    original_limits = rate_limiter.set_limits_for_testing(general=1)

    try:
        statuses = [
            client.get(
                "/api/v1/moderation/audit-logs", headers={"X-User-Id": moderator.id}
            ).status_code
            for _ in range(3)
        ]
        assert statuses == [200, 200, 200]
    finally:
        rate_limiter.restore_limits(original_limits)


def test_forged_forwarding_headers_share_one_bucket(client: TestClient, moderator):
    """Without a trusted proxy, rotating X-Forwarded-For does not reset limits."""
    rate_limiter.enable()
    rate_limiter.reset()
    original_limits = rate_limiter.set_limits_for_testing(sensitive=3)

    try:
        statuses = [
            client.request(
                "DELETE",
                "/api/v1/moderation/servers/missing/schedule-delete",
                json={"password": MODERATOR_PASSWORD},
                headers={
                    "X-User-Id": moderator.id,
                    "X-Forwarded-For": f"10.0.0.{i}",
                },
            ).status_code
            for i in range(5)
        ]

        assert statuses == [404, 404, 404, 429, 429]
    finally:
        rate_limiter.restore_limits(original_limits)
        rate_limiter.reset()


def test_idle_buckets_are_evicted(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr("servermod.rate_limiting.time.time", lambda: now[0])
    monkeypatch.setattr(settings, "trust_proxy_headers", True)
    limiter = RateLimiter()

    class _Request:
        method = "GET"
        client = None

        def __init__(self, ip):
            self.headers = {"X-Forwarded-For": ip}

    for i in range(20):
        limiter.check_rate_limit(_Request(f"10.0.0.{i}"))
    assert len(limiter._requests) == 20

    now[0] += 61
    limiter.check_rate_limit(_Request("10.0.1.1"))

    assert list(limiter._requests) == [("10.0.1.1", "general")]
