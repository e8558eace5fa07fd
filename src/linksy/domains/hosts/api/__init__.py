# src/linksy/domains/hosts/api/__init__.py
"""
Hosts Domain API Routes

Both routers are unauthenticated.
"""

from fastapi import APIRouter

from .public import router as public_router
from .widget import router as widget_router

router = APIRouter(tags=["hosts"])
router.include_router(widget_router, prefix="/api/hosts")

public = APIRouter(tags=["public"])
public.include_router(public_router, prefix="/api/public")

__all__ = ["router", "public"]
