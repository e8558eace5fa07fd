# src/linksy/infrastructure/rate_limiter.py
"""
API Rate Limiter

Sliding-window request limiting for API endpoints.

Each identifier (normally a client IP) keeps a log of accepted request
timestamps. A request is allowed while fewer than `limit` timestamps fall
inside the trailing window; denied requests are not logged.

The in-memory store is per-process: it does not survive restarts and is not
shared between instances. Set REDIS_URL to share windows through Redis
sorted sets with the same semantics.

Usage:
    from fastapi import Depends
    from .rate_limiter import rate_limit

    @router.post("/api/auth/login")
    async def login(request: Request, _=Depends(rate_limit("5/15minutes", endpoint="auth"))):
        ...

    limiter = get_rate_limiter()
    info = await limiter.check("203.0.113.9", limit=100, window=60)
"""

import logging
import math
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import redis.asyncio as aioredis
from fastapi import Request
from fastapi.responses import JSONResponse

from ..errors import RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitInfo:
    """Rate limit check result."""
    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    @property
    def retry_after(self) -> int:
        return max(0, math.ceil(self.reset_at - time.time()))

    def to_headers(self, include_retry: bool = False) -> Dict[str, str]:
        """Convert to HTTP headers."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.remaining)),
            "X-RateLimit-Reset": datetime.fromtimestamp(self.reset_at, tz=timezone.utc).isoformat(),
        }
        if include_retry:
            headers["Retry-After"] = str(self.retry_after)
        return headers


@dataclass
class RequestWindow:
    """Accepted request timestamps for one identifier."""
    requests: List[float] = field(default_factory=list)
    window_start: float = 0.0


class InMemoryRateLimitStore:
    """Sliding-window log held in process memory."""

    def __init__(self, idle_ttl: float = 3600, cleanup_interval: float = 300):
        self._windows: Dict[str, RequestWindow] = {}
        self._idle_ttl = idle_ttl
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()

    def hit(self, key: str, limit: int, window: float, now: Optional[float] = None) -> RateLimitInfo:
        """Record a request for `key` if it fits in the window."""
        now = time.time() if now is None else now
        self._maybe_cleanup(now)

        entry = self._windows.get(key)
        if entry is None:
            entry = RequestWindow(window_start=now)
            self._windows[key] = entry

        cutoff = now - window
        entry.requests = [ts for ts in entry.requests if ts > cutoff]

        count = len(entry.requests)
        remaining = max(0, limit - count)
        allowed = count < limit

        if allowed:
            entry.requests.append(now)
            entry.window_start = now

        oldest = entry.requests[0] if entry.requests else now

        return RateLimitInfo(
            allowed=allowed,
            limit=limit,
            remaining=remaining - 1 if allowed else 0,
            reset_at=oldest + window,
        )

    def usage(self, key: str, window: float, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        entry = self._windows.get(key)
        if entry is None:
            return 0
        return len([ts for ts in entry.requests if ts > now - window])

    def reset(self, key: str) -> None:
        self._windows.pop(key, None)

    def cleanup(self, now: Optional[float] = None) -> int:
        """Drop identifiers with no accepted request inside the idle TTL."""
        now = time.time() if now is None else now
        stale = [key for key, entry in self._windows.items() if entry.window_start < now - self._idle_ttl]
        for key in stale:
            del self._windows[key]
        self._last_cleanup = now
        return len(stale)

    def _maybe_cleanup(self, now: float) -> None:
        if now - self._last_cleanup >= self._cleanup_interval:
            removed = self.cleanup(now)
            if removed:
                logger.debug(f"Rate limiter dropped {removed} idle identifiers")

    def stats(self) -> Dict[str, Any]:
        return {
            "total_identifiers": len(self._windows),
            "identifiers": list(self._windows.keys()),
        }

    def clear(self) -> None:
        self._windows.clear()


class RateLimiter:
    """
    Sliding-window rate limiter with optional Redis support.
    """

    # Default limits by endpoint type: (requests, window seconds)
    DEFAULT_LIMITS = {
        "default": (100, 60),      # 100 requests per minute
        "auth": (5, 15 * 60),      # 5 attempts per 15 minutes
        "upload": (10, 60),        # 10 uploads per minute
    }

    def __init__(
        self,
        redis_url: Optional[str] = None,
        limits: Optional[Dict[str, Tuple[int, int]]] = None,
        idle_ttl: float = 3600,
        cleanup_interval: float = 300,
    ):
        """
        Initialize rate limiter.

        Args:
            redis_url: Redis connection URL; memory mode when empty
            limits: Overrides for DEFAULT_LIMITS
            idle_ttl: Seconds before an idle identifier is forgotten
            cleanup_interval: Seconds between idle sweeps
        """
        self.limits = {**self.DEFAULT_LIMITS, **(limits or {})}
        self._memory = InMemoryRateLimitStore(idle_ttl=idle_ttl, cleanup_interval=cleanup_interval)
        self._redis_client = None

        if redis_url:
            self._redis_client = aioredis.from_url(redis_url, decode_responses=True)
            logger.info("✅ Rate limiter using Redis")
        else:
            logger.info("📦 Rate limiter running in memory mode")

    def _make_key(self, *parts: str) -> str:
        """Create rate limit key."""
        return f"ratelimit:{':'.join(parts)}"

    async def check(
        self,
        identifier: str,
        endpoint: str = "default",
        limit: Optional[int] = None,
        window: Optional[int] = None,
    ) -> RateLimitInfo:
        """
        Check if request is allowed and record it when it is.

        Args:
            identifier: Unique identifier (IP, user ID, ...)
            endpoint: Endpoint tier for limit lookup
            limit: Override limit
            window: Override window in seconds
        """
        default_limit, default_window = self.limits.get(endpoint, self.limits["default"])
        limit = limit or default_limit
        window = window or default_window

        key = self._make_key(endpoint, identifier)

        if self._redis_client is None:
            return self._memory.hit(key, limit, window)
        return await self._check_redis(key, limit, window, time.time())

    async def _check_redis(self, key: str, limit: int, window: int, now: float) -> RateLimitInfo:
        """Sliding window log on a Redis sorted set."""
        try:
            pipe = self._redis_client.pipeline()
            pipe.zremrangebyscore(key, 0, now - window)
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            _, count, oldest = await pipe.execute()

            allowed = count < limit
            if allowed:
                await self._redis_client.zadd(key, {str(now): now})
                await self._redis_client.expire(key, window)

            oldest_ts = oldest[0][1] if oldest else now
            return RateLimitInfo(
                allowed=allowed,
                limit=limit,
                remaining=max(0, limit - count - 1) if allowed else 0,
                reset_at=oldest_ts + window,
            )
        except aioredis.RedisError as e:
            # Fail open: a broken limiter must not take the API down
            logger.error(f"Redis rate limit error: {e}")
            return RateLimitInfo(allowed=True, limit=limit, remaining=limit, reset_at=now + window)

    async def get_usage(self, identifier: str, endpoint: str = "default") -> Dict[str, Any]:
        """Get current usage for an identifier."""
        key = self._make_key(endpoint, identifier)
        limit, window = self.limits.get(endpoint, self.limits["default"])

        if self._redis_client is None:
            used = self._memory.usage(key, window)
        else:
            now = time.time()
            used = await self._redis_client.zcount(key, now - window, now)

        return {
            "identifier": identifier,
            "endpoint": endpoint,
            "used": used,
            "limit": limit,
            "window": window,
        }

    async def reset(self, identifier: str, endpoint: str = "default") -> None:
        """Reset rate limit for an identifier."""
        key = self._make_key(endpoint, identifier)
        if self._redis_client is None:
            self._memory.reset(key)
        else:
            await self._redis_client.delete(key)

    def get_stats(self) -> Dict[str, Any]:
        """Snapshot of the in-memory store (monitoring/debugging)."""
        return self._memory.stats()

    def clear(self) -> None:
        """Clear all in-memory windows (useful for testing)."""
        self._memory.clear()

    @property
    def is_redis_available(self) -> bool:
        """Check if Redis is configured."""
        return self._redis_client is not None


# Singleton instance
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get the rate limiter singleton, configured from LinksyConfig."""
    global _rate_limiter
    if _rate_limiter is None:
        from ..config import get_config

        config = get_config()
        tiers = config.rate_limits
        _rate_limiter = RateLimiter(
            redis_url=config.redis_url or None,
            limits={
                "default": parse_rate_limit(tiers.global_limit),
                "auth": parse_rate_limit(tiers.auth_limit),
                "upload": parse_rate_limit(tiers.upload_limit),
            },
            idle_ttl=tiers.idle_ttl_seconds,
            cleanup_interval=tiers.cleanup_interval_seconds,
        )
    return _rate_limiter


_WINDOW_UNITS = {
    "second": 1,
    "seconds": 1,
    "sec": 1,
    "s": 1,
    "minute": 60,
    "minutes": 60,
    "min": 60,
    "m": 60,
    "hour": 3600,
    "hours": 3600,
    "hr": 3600,
    "h": 3600,
    "day": 86400,
    "days": 86400,
    "d": 86400,
}


def parse_rate_limit(limit_str: str) -> Tuple[int, int]:
    """
    Parse rate limit string.

    Formats:
    - "10/minute" -> (10, 60)
    - "100/hour" -> (100, 3600)
    - "5/15minutes" -> (5, 900)
    - "1000/day" -> (1000, 86400)
    """
    parts = limit_str.lower().split("/")
    if len(parts) != 2:
        raise ValueError(f"Invalid rate limit format: {limit_str}")

    count = int(parts[0])
    match = re.fullmatch(r"\s*(\d*)\s*([a-z]+)\s*", parts[1])
    if not match:
        raise ValueError(f"Invalid rate limit format: {limit_str}")

    multiplier = int(match.group(1)) if match.group(1) else 1
    unit = _WINDOW_UNITS.get(match.group(2))
    if unit is None:
        raise ValueError(f"Unknown time unit: {match.group(2)}")

    return count, multiplier * unit


def client_identifier(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"


def rate_limit(
    limit_str: str = "100/minute",
    key_func: Optional[Callable[[Request], str]] = None,
    endpoint: str = "default",
):
    """
    FastAPI dependency for per-route rate limiting.

    Usage:
        @router.post("/upload")
        async def upload(request: Request, _=Depends(rate_limit("10/minute", endpoint="upload"))):
            ...
    """
    limit, window = parse_rate_limit(limit_str)

    async def dependency(request: Request) -> RateLimitInfo:
        identifier = key_func(request) if key_func else client_identifier(request)

        limiter = get_rate_limiter()
        info = await limiter.check(identifier=identifier, endpoint=endpoint, limit=limit, window=window)

        if not info.allowed:
            raise RateLimitError(
                "Too many requests. Please try again later.",
                headers=info.to_headers(include_retry=True),
            )

        return info

    return dependency


async def rate_limit_middleware(request: Request, call_next):
    """Apply the global limit to every /api/ route and stamp the headers."""
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    limiter = get_rate_limiter()
    info = await limiter.check(identifier=client_identifier(request))

    if not info.allowed:
        logger.warning(f"Rate limit exceeded for {client_identifier(request)} on {request.url.path}")
        return JSONResponse(
            {"error": "Too many requests. Please try again later."},
            status_code=429,
            headers=info.to_headers(include_retry=True),
        )

    response = await call_next(request)
    for key, value in info.to_headers().items():
        response.headers[key] = value
    return response
