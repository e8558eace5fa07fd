# src/linksy/domains/providers/api/__init__.py
"""
Providers Domain API Routes
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .contacts import router as contacts_router
from .crud import router as crud_router
from .notes import router as notes_router

router = APIRouter(tags=["providers"])

router.include_router(crud_router, prefix="/api/providers")
router.include_router(contacts_router, prefix="/api/providers", tags=["providers-contacts"])
router.include_router(notes_router, prefix="/api/providers", tags=["providers-notes"])

admin = APIRouter(tags=["providers-admin"])
admin.include_router(admin_router, prefix="/api/admin")

__all__ = ["router", "admin"]
