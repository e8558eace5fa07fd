# src/linksy/domains/tenants/api/tenants.py
"""
Tenant API Routes

Site admins create and delete tenants; tenant admins read and edit their own.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ....auth import AuthContext, ensure_tenant_access, require_site_admin, require_tenant_admin
from ....errors import NotFoundError
from ....repositories import get_tenant_repository
from ..constants import SLUG_PATTERN
from ..services import get_tenant_service

router = APIRouter()


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=2)
    slug: str = Field(..., min_length=2, max_length=50, pattern=SLUG_PATTERN)
    admin_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    admin_name: str = Field(..., min_length=2)
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    track_location: Optional[bool] = None


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    settings: Optional[Dict[str, Any]] = None
    branding: Optional[Dict[str, Any]] = None


@router.get("")
async def list_tenants(ctx: AuthContext = Depends(require_site_admin)):
    return get_tenant_repository().list_all()


@router.post("")
async def create_tenant(body: TenantCreate, ctx: AuthContext = Depends(require_site_admin)):
    tenant = get_tenant_service().create_tenant(ctx, body.model_dump())
    return JSONResponse(tenant, status_code=201)


@router.get("/{tenant_id}")
async def get_tenant(tenant_id: str, ctx: AuthContext = Depends(require_tenant_admin)):
    ensure_tenant_access(ctx, tenant_id)
    tenant = get_tenant_repository().get_by_id(tenant_id)
    if not tenant:
        raise NotFoundError("Tenant not found")
    return tenant


@router.patch("/{tenant_id}")
async def update_tenant(tenant_id: str, body: TenantUpdate, ctx: AuthContext = Depends(require_tenant_admin)):
    """Only name, settings and branding can change."""
    ensure_tenant_access(ctx, tenant_id)
    updates = body.model_dump(exclude_none=True)
    return get_tenant_service().update_tenant(ctx, tenant_id, updates)


@router.delete("/{tenant_id}")
async def delete_tenant(tenant_id: str, ctx: AuthContext = Depends(require_site_admin)):
    get_tenant_service().delete_tenant(ctx, tenant_id)
    return {"success": True}
