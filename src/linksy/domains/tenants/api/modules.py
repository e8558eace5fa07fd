# src/linksy/domains/tenants/api/modules.py
"""
Module API Routes

The module catalog (site admin) and per-tenant module switches.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ....auth import AuthContext, ensure_tenant_access, require_auth, require_site_admin, require_tenant_admin
from ....errors import NotFoundError, ValidationError
from ....repositories import get_module_repository, get_tenant_module_repository
from ..constants import SLUG_PATTERN
from ..services import get_tenant_service

# Mounted at /api/modules
catalog_router = APIRouter()

# Mounted under /api/tenants
tenant_modules_router = APIRouter()


class ModuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=50, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=500)


class ModuleUpdate(BaseModel):
    id: str
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=50, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class ModuleToggle(BaseModel):
    is_enabled: bool


@catalog_router.get("")
async def list_modules(ctx: AuthContext = Depends(require_auth)):
    return get_module_repository().list_all()


@catalog_router.post("")
async def create_module(body: ModuleCreate, ctx: AuthContext = Depends(require_site_admin)):
    module = get_module_repository().create({
        "name": body.name,
        "slug": body.slug,
        "description": body.description or None,
        "is_active": True,
    })
    return JSONResponse(module, status_code=201)


@catalog_router.patch("")
async def update_module(body: ModuleUpdate, ctx: AuthContext = Depends(require_site_admin)):
    updates = body.model_dump(exclude={"id"}, exclude_unset=True)
    if not updates:
        raise ValidationError("No valid fields to update")

    module = get_module_repository().update(body.id, updates)
    if not module:
        raise NotFoundError("Module not found")
    return module


@tenant_modules_router.get("/{tenant_id}/modules")
async def list_tenant_modules(tenant_id: str, ctx: AuthContext = Depends(require_auth)):
    """Every catalog module with whether this tenant has it switched on."""
    ensure_tenant_access(ctx, tenant_id)
    enabled = {
        row["module_id"]: row.get("is_enabled", False)
        for row in get_tenant_module_repository().list_for_tenant(tenant_id)
    }
    return [
        {**module, "is_enabled": enabled.get(module["id"], False)}
        for module in get_module_repository().list_all()
    ]


@tenant_modules_router.put("/{tenant_id}/modules/{module_id}")
async def set_tenant_module(
    tenant_id: str,
    module_id: str,
    body: ModuleToggle,
    ctx: AuthContext = Depends(require_tenant_admin),
):
    ensure_tenant_access(ctx, tenant_id)
    return get_tenant_service().set_module_enabled(ctx, tenant_id, module_id, body.is_enabled)
