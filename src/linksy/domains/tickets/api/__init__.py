# src/linksy/domains/tickets/api/__init__.py
"""
Tickets Domain API Routes

Aggregates the ticket sub-routers for main.py. Admin routes live under
/api/admin alongside the provider admin tools.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .comments import router as comments_router
from .crud import router as crud_router
from .workflow import router as workflow_router

router = APIRouter(tags=["tickets"])

router.include_router(crud_router, prefix="/api/tickets", tags=["tickets-crud"])
router.include_router(workflow_router, prefix="/api/tickets", tags=["tickets-workflow"])
router.include_router(comments_router, prefix="/api/tickets", tags=["tickets-comments"])

admin = APIRouter(tags=["tickets-admin"])
admin.include_router(admin_router, prefix="/api/admin")

__all__ = ["router", "admin"]
