"""Middleware tests: request ID, rate limiting, CORS, error handling."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError


class _FakePipeline:
    def __init__(self, store: dict[str, int], fail: bool) -> None:
        self._store = store
        self._fail = fail
        self._key: str | None = None

    def incr(self, key: str) -> None:
        self._key = key

    def expire(self, key: str, seconds: int) -> None:
        pass

    async def execute(self) -> list[int]:
        if self._fail:
            raise RedisConnectionError("redis is down")
        assert self._key is not None
        self._store[self._key] = self._store.get(self._key, 0) + 1
        return [self._store[self._key], True]


class _FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.counters: dict[str, int] = {}
        self.fail = fail

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self.counters, self.fail)


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, monkeypatch) -> None:
    """Rate limit headers are present on non-exempt endpoints."""
    monkeypatch.setattr("questline.middleware.rate_limit.get_redis", lambda: _FakeRedis())
    response = await client.get("/version")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, monkeypatch) -> None:
    """101st request in a window returns 429 with Retry-After header."""
    fake = _FakeRedis()
    monkeypatch.setattr("questline.middleware.rate_limit.get_redis", lambda: fake)
    for _ in range(100):
        await client.get("/version")
    response = await client.get("/version")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert "detail" in response.json()


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, monkeypatch) -> None:
    fake = _FakeRedis()
    monkeypatch.setattr("questline.middleware.rate_limit.get_redis", lambda: fake)
    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200
    assert fake.counters == {}


@pytest.mark.asyncio
async def test_rate_limit_fails_open(client: AsyncClient, monkeypatch) -> None:
    """An unreachable Redis never blocks traffic."""
    monkeypatch.setattr("questline.middleware.rate_limit.get_redis", lambda: _FakeRedis(fail=True))
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.asyncio
async def test_unknown_route_json_404(client: AsyncClient) -> None:
    response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


@pytest.mark.asyncio
async def test_validation_errors_are_400(client: AsyncClient) -> None:
    response = await client.post("/api/referrals/event", content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    data = response.json()
    assert data["detail"] == "Validation error"
    assert isinstance(data["errors"], list)
