"""Per-client request quotas for write endpoints.

Counters live in Redis (``INCR`` + ``EXPIRE``); when Redis cannot be reached
an in-process fixed-window counter takes over for that request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Tuple

from fastapi import Request
import redis.asyncio as redis

from config import settings
from services.errors import RateLimitError

logger = logging.getLogger(__name__)

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def _client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def _consume_local_quota(key: str, window_seconds: int) -> int:
    now = time.time()
    async with _local_lock:
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count, reset_at = 0, now + window_seconds
        count += 1
        _local_counters[key] = (count, reset_at)
        return count


async def _consume_redis_quota(key: str, window_seconds: int) -> int:
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await client.incr(key)
        if current == 1:
            await client.expire(key, window_seconds)
        return int(current)
    finally:
        await client.aclose()


def rate_limit(scope: str, limit: int, window_seconds: int) -> Callable[[Request], Awaitable[None]]:
    """Return a dependency allowing ``limit`` calls per client per window."""

    async def _dependency(request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED or getattr(request.app.state, "disable_rate_limits", False):
            return

        key = f"bec:rate:{scope}:{_client_identifier(request)}"
        try:
            used = await _consume_redis_quota(key, window_seconds)
        except (redis.RedisError, OSError) as exc:
            logger.debug("rate_limit_redis_unavailable scope=%s error=%s", scope, exc)
            used = await _consume_local_quota(key, window_seconds)

        if used > limit:
            raise RateLimitError(f"Rate limit exceeded for {scope}. Try again later.")

    return _dependency
