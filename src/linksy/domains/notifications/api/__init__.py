# src/linksy/domains/notifications/api/__init__.py
"""
Notifications Domain API Routes
"""

from fastapi import APIRouter

from .inbox import router as inbox_router

router = APIRouter(tags=["notifications"])

router.include_router(inbox_router, prefix="/api/notifications")

__all__ = ["router"]
