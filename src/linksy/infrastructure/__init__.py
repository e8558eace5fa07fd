# src/linksy/infrastructure/__init__.py
"""
Infrastructure Layer

Shared clients and cross-cutting request handling:
- supabase_client: service-role Supabase client singleton
- rate_limiter: sliding-window limiter, dependency and middleware
"""

from .rate_limiter import RateLimiter, RateLimitInfo, get_rate_limiter, rate_limit, rate_limit_middleware
from .supabase_client import get_supabase_client

__all__ = [
    "get_supabase_client",
    "RateLimiter",
    "RateLimitInfo",
    "get_rate_limiter",
    "rate_limit",
    "rate_limit_middleware",
]
