"""Rate limiting utilities."""

import math
from datetime import datetime

import redis
from fastapi import Request

from backend.app.db.context import Principal
from backend.app.db.repositories import RetryAfter


def client_ip(request: Request) -> str:
    """Best-effort client address.

    Uses the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client is not None:
        return request.client.host

    return "unknown"


def make_rate_limit_key(principal: Principal | None, ip: str) -> str:
    """Create rate limit key for a caller.

    Args:
        principal: Authenticated principal, if any
        ip: Client address, used for anonymous callers

    Returns:
        ``user:<user_id>`` or ``ip:<address>``
    """
    if principal is not None:
        return f"user:{principal.user_id}"
    return f"ip:{ip}"


class RedisRateLimiter:
    """Fixed-window limiter shared across workers through Redis.

    Each window is its own counter key, ``ratelimit:<key>:<window index>``,
    incremented and given a TTL in one pipeline round trip. The retry hint is
    the time left until the window boundary, so no TTL read is needed.
    """

    def __init__(self, redis_client: redis.Redis, max_requests: int, window_seconds: int = 900) -> None:
        self._redis = redis_client
        self._max_requests = max_requests
        self._window_seconds = window_seconds

    def _window(self, now: datetime) -> tuple[int, float]:
        index = int(now.timestamp()) // self._window_seconds
        return index, float((index + 1) * self._window_seconds)

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Count one request against ``key``.

        Returns:
            RetryAfter if the window is exhausted, None if allowed

        Raises:
            redis.RedisError: Redis is unreachable (callers fail open)
        """
        index, window_end = self._window(now)
        counter_key = f"ratelimit:{key}:{index}"

        pipe = self._redis.pipeline()
        pipe.incr(counter_key)
        # Counter outlives its window by at most one window
        pipe.expire(counter_key, self._window_seconds * 2)
        hits, _ = pipe.execute()

        if int(hits) <= self._max_requests:
            return None

        return RetryAfter(seconds=max(1, math.ceil(window_end - now.timestamp())))
