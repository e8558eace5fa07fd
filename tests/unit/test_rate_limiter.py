# tests/unit/test_rate_limiter.py
"""
Unit tests for the sliding-window rate limiter.

Covers:
- Limit string parsing
- In-memory sliding window (admit, reject, expiry, idle cleanup)
- Header rendering
- The per-route dependency and the global middleware
"""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from src.linksy.errors import register_error_handlers
from src.linksy.infrastructure.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitInfo,
    client_identifier,
    parse_rate_limit,
    rate_limit,
)


# =============================================================================
# PARSING
# =============================================================================

class TestParseRateLimit:

    def test_simple_units(self):
        assert parse_rate_limit("100/minute") == (100, 60)
        assert parse_rate_limit("10/second") == (10, 1)
        assert parse_rate_limit("1000/hour") == (1000, 3600)

    def test_multiplied_window(self):
        """"5/15minutes" is five requests per fifteen minutes."""
        assert parse_rate_limit("5/15minutes") == (5, 900)

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            parse_rate_limit("lots")

    def test_unknown_unit(self):
        with pytest.raises(ValueError, match="Unknown time unit"):
            parse_rate_limit("5/fortnight")


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class TestInMemoryStore:

    def test_admits_up_to_limit(self):
        store = InMemoryRateLimitStore()
        results = [store.hit("k", limit=3, window=60, now=1000 + i) for i in range(3)]

        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [2, 1, 0]

    def test_rejects_over_limit(self):
        store = InMemoryRateLimitStore()
        for i in range(3):
            store.hit("k", limit=3, window=60, now=1000 + i)

        info = store.hit("k", limit=3, window=60, now=1005)

        assert info.allowed is False
        assert info.remaining == 0
        # Resets when the oldest admitted request leaves the window
        assert info.reset_at == 1060

    def test_rejected_requests_are_not_recorded(self):
        store = InMemoryRateLimitStore()
        store.hit("k", limit=1, window=60, now=1000)
        store.hit("k", limit=1, window=60, now=1001)
        store.hit("k", limit=1, window=60, now=1002)

        assert store.usage("k", window=60, now=1002) == 1

    def test_window_slides(self):
        store = InMemoryRateLimitStore()
        store.hit("k", limit=2, window=60, now=1000)
        store.hit("k", limit=2, window=60, now=1030)

        assert store.hit("k", limit=2, window=60, now=1050).allowed is False
        assert store.hit("k", limit=2, window=60, now=1061).allowed is True

    def test_identifiers_are_independent(self):
        store = InMemoryRateLimitStore()
        store.hit("a", limit=1, window=60, now=1000)

        assert store.hit("b", limit=1, window=60, now=1000).allowed is True

    def test_cleanup_drops_idle_identifiers(self):
        store = InMemoryRateLimitStore(idle_ttl=100)
        store.hit("old", limit=5, window=60, now=1000)
        store.hit("fresh", limit=5, window=60, now=1150)

        removed = store.cleanup(now=1200)

        assert removed == 1
        assert store.stats()["identifiers"] == ["fresh"]

    def test_reset_and_clear(self):
        store = InMemoryRateLimitStore()
        store.hit("a", limit=1, window=60, now=1000)
        store.hit("b", limit=1, window=60, now=1000)

        store.reset("a")
        assert store.hit("a", limit=1, window=60, now=1001).allowed is True

        store.clear()
        assert store.stats()["total_identifiers"] == 0


class TestRateLimitInfo:

    def test_headers(self):
        info = RateLimitInfo(allowed=True, limit=100, remaining=42, reset_at=0)
        headers = info.to_headers()

        assert headers["X-RateLimit-Limit"] == "100"
        assert headers["X-RateLimit-Remaining"] == "42"
        assert headers["X-RateLimit-Reset"].startswith("1970-01-01T00:00:00")
        assert "Retry-After" not in headers

    def test_retry_after_included_on_rejection(self):
        info = RateLimitInfo(allowed=False, limit=1, remaining=0, reset_at=0)
        assert info.to_headers(include_retry=True)["Retry-After"] == "0"


# =============================================================================
# LIMITER
# =============================================================================

class TestRateLimiter:

    @pytest.mark.asyncio
    async def test_memory_mode_by_default(self):
        limiter = RateLimiter()
        assert limiter.is_redis_available is False

    @pytest.mark.asyncio
    async def test_endpoint_tiers(self):
        limiter = RateLimiter(limits={"auth": (2, 900)})

        assert (await limiter.check("1.2.3.4", endpoint="auth")).allowed
        assert (await limiter.check("1.2.3.4", endpoint="auth")).allowed
        assert not (await limiter.check("1.2.3.4", endpoint="auth")).allowed
        # Default tier has its own window
        assert (await limiter.check("1.2.3.4")).allowed

    @pytest.mark.asyncio
    async def test_usage_and_reset(self):
        limiter = RateLimiter()
        await limiter.check("user-1")
        await limiter.check("user-1")

        usage = await limiter.get_usage("user-1")
        assert usage["used"] == 2
        assert usage["limit"] == 100

        await limiter.reset("user-1")
        assert (await limiter.get_usage("user-1"))["used"] == 0


# =============================================================================
# FASTAPI INTEGRATION
# =============================================================================

def _app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/limited")
    async def limited(_=Depends(rate_limit("2/minute", endpoint="unit-test"))):
        return {"ok": True}

    return app


class TestRateLimitDependency:

    def test_rejects_third_request(self):
        client = TestClient(_app())

        assert client.get("/limited").status_code == 200
        assert client.get("/limited").status_code == 200

        response = client.get("/limited")
        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests. Please try again later."}
        assert "Retry-After" in response.headers

    def test_forwarded_for_is_the_identifier(self):
        client = TestClient(_app())

        for _ in range(2):
            client.get("/limited", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

        assert client.get("/limited", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.get("/limited", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200


class TestClientIdentifier:

    def test_prefers_first_forwarded_hop(self):
        class _Request:
            headers = {"x-forwarded-for": " 203.0.113.9 , 10.0.0.1"}
            client = None

        assert client_identifier(_Request()) == "203.0.113.9"

    def test_falls_back_to_loopback(self):
        class _Request:
            headers = {}
            client = None

        assert client_identifier(_Request()) == "127.0.0.1"


class TestGlobalMiddleware:

    def test_api_responses_carry_headers(self, client):
        response = client.get("/api/public/directory")

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "100"

    def test_non_api_paths_are_not_limited(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers
