# src/linksy/domains/webhooks/api/__init__.py
"""
Webhooks Domain API Routes
"""

from fastapi import APIRouter

from .management import router as management_router

router = APIRouter(tags=["webhooks"])

router.include_router(management_router, prefix="/api/webhooks")

__all__ = ["router"]
