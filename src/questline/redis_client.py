"""Shared Redis client for rate-limit counters and the readiness probe.

Redis is optional at runtime: every caller treats an unset or unreachable
client as "no rate limiting", never as a failed request.
"""

import redis.asyncio as redis

# Short timeouts so a dead Redis costs a request milliseconds, not seconds.
_SOCKET_TIMEOUT_SECONDS = 0.5

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    """Create the client. No connection is opened until first use."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        socket_timeout=_SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=_SOCKET_TIMEOUT_SECONDS,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """The shared client, or None before init_redis() / after close_redis()."""
    return _client
