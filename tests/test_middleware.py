"""Middleware tests: request id, rate limiting, CORS, error shapes, log redaction."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

from dare2earn.middleware import rate_limit
from dare2earn.middleware.logging import redact_secrets


class _CountingPipeline:
    """Just enough of a redis pipeline for the fixed-window counter."""

    def __init__(self, counts: dict[str, int]) -> None:
        self.counts = counts
        self.key: str | None = None

    def incr(self, key: str) -> None:
        self.key = key

    def expire(self, key: str, seconds: int) -> None:
        pass

    async def execute(self) -> list[Any]:
        assert self.key is not None
        self.counts[self.key] = self.counts.get(self.key, 0) + 1
        return [self.counts[self.key], True]


class _CountingRedis:
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}

    def pipeline(self) -> _CountingPipeline:
        return _CountingPipeline(self.counts)


@pytest.fixture
def counting_redis(monkeypatch: pytest.MonkeyPatch) -> _CountingRedis:
    fake = _CountingRedis()
    monkeypatch.setattr(rate_limit, "redis_enabled", lambda: True)
    monkeypatch.setattr(rate_limit, "get_redis", lambda: fake)
    return fake


class TestRequestId:
    async def test_request_id_generated(self, client: AsyncClient):
        response = await client.get("/health")
        assert len(response.headers["x-request-id"]) == 36  # UUID format

    async def test_request_id_preserved(self, client: AsyncClient):
        response = await client.get("/version", headers={"X-Request-Id": "test-abc-123"})
        assert response.headers["x-request-id"] == "test-abc-123"


class TestRateLimit:
    async def test_passes_through_without_redis(self, client: AsyncClient):
        response = await client.get("/version")
        assert response.status_code == 200
        assert "x-ratelimit-limit" not in response.headers

    async def test_headers_present(self, client: AsyncClient, counting_redis):
        response = await client.get("/version")
        assert response.headers["x-ratelimit-limit"] == "100"
        assert response.headers["x-ratelimit-remaining"] == "99"

    async def test_credential_routes_have_smaller_budget(self, client: AsyncClient, counting_redis):
        body = {"email": "nobody@example.com", "password": "whatever1"}
        for _ in range(10):
            response = await client.post("/auth/signin", json=body)
            assert response.status_code == 400
        blocked = await client.post("/auth/signin", json=body)
        assert blocked.status_code == 429
        assert blocked.headers["retry-after"] == "60"
        assert "detail" in blocked.json()

        # The general budget is separate.
        assert (await client.get("/version")).status_code == 200

    async def test_health_exempt(self, client: AsyncClient, counting_redis):
        for _ in range(150):
            assert (await client.get("/health")).status_code == 200
        assert counting_redis.counts == {}


class TestCors:
    async def test_preflight_for_configured_origin(self, client: AsyncClient):
        response = await client.options(
            "/api/dares",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    async def test_unknown_origin_not_allowed(self, client: AsyncClient):
        response = await client.options(
            "/api/dares",
            headers={"Origin": "http://evil.example.com", "Access-Control-Request-Method": "GET"},
        )
        assert "access-control-allow-origin" not in response.headers


class TestErrorShapes:
    async def test_unknown_route_is_json_404(self, client: AsyncClient):
        response = await client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}

    async def test_validation_errors_are_400(self, client: AsyncClient):
        response = await client.post("/auth/signin", json={"email": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Validation error"
        assert {tuple(e["loc"]) for e in body["errors"]} >= {("body", "password")}


class TestRedaction:
    def test_secret_keys_redacted(self):
        event = {"event": "signin_attempt", "password": "hunter2", "token": "eyJ...", "user_id": 3}
        redacted = redact_secrets(None, "info", event)
        assert redacted["password"] == "[redacted]"
        assert redacted["token"] == "[redacted]"
        assert redacted["user_id"] == 3
