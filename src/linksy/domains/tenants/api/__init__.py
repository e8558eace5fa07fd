# src/linksy/domains/tenants/api/__init__.py
"""
Tenants Domain API Routes
"""

from fastapi import APIRouter

from .audit import router as audit_router
from .members import router as members_router
from .modules import catalog_router, tenant_modules_router
from .tenants import router as tenants_router

router = APIRouter(tags=["tenants"])

router.include_router(tenants_router, prefix="/api/tenants")
router.include_router(members_router, prefix="/api/tenants", tags=["tenants-members"])
router.include_router(tenant_modules_router, prefix="/api/tenants", tags=["tenants-modules"])

modules = APIRouter(tags=["modules"])
modules.include_router(catalog_router, prefix="/api/modules")

audit = APIRouter(tags=["audit"])
audit.include_router(audit_router, prefix="/api/audit-logs")

__all__ = ["router", "modules", "audit"]
