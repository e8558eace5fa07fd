# src/linksy/domains/providers/api/crud.py
"""
Provider CRUD API Routes

The service-organization directory: list, read, create, update, delete.
"""

import logging
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ....auth import AuthContext, require_auth, require_site_admin
from ....errors import NotFoundError, PermissionDeniedError, ValidationError
from ....repositories import (
    get_contact_repository,
    get_note_repository,
    get_provider_need_repository,
    get_provider_repository,
)
from ..constants import ADMIN_FIELDS, DEFAULT_PROVIDER_LIMIT, MAX_PROVIDER_LIMIT, STAFF_FIELDS
from .notes import visible_notes

logger = logging.getLogger(__name__)

router = APIRouter()


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def unique_slug(base: str, taken: set) -> str:
    """base, then base-2, base-3, ... until unused."""
    slug = base
    suffix = 2
    while slug in taken:
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def is_provider_contact(ctx: AuthContext, provider_id: str) -> bool:
    contact = get_contact_repository().find_membership(ctx.user.id, provider_id)
    return bool(contact) and contact.get("status", "active") == "active"


def ensure_provider_access(ctx: AuthContext, provider_id: str) -> None:
    """Site and tenant admins see every provider; contacts see their own."""
    if ctx.is_site_admin or ctx.is_tenant_admin:
        return
    if not is_provider_contact(ctx, provider_id):
        raise PermissionDeniedError("Access denied")


@router.get("")
async def list_providers(
    q: str = Query(""),
    sector: str = Query("all"),
    status: str = Query("active"),
    limit: int = Query(DEFAULT_PROVIDER_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
):
    result = get_provider_repository().search(
        q=q, status=status, sector=sector, limit=min(limit, MAX_PROVIDER_LIMIT), offset=offset
    )
    return {"providers": result.data, "pagination": result.pagination()}


@router.post("")
async def create_provider(request: Request, ctx: AuthContext = Depends(require_site_admin)):
    """Create a provider with a unique slug derived from its name."""
    data = await request.json()

    name = (data.get("name") or "").strip()
    sector = data.get("sector")
    if not name or not sector:
        raise ValidationError("name and sector are required")

    repo = get_provider_repository()
    base = slugify(name)
    slug = unique_slug(base, set(repo.list_slugs_like(base)))

    provider = repo.create({
        "name": name,
        "slug": slug,
        "sector": sector,
        "description": data.get("description") or None,
        "phone": data.get("phone") or None,
        "email": data.get("email") or None,
        "website": data.get("website") or None,
        "hours": data.get("hours") or None,
        "project_status": data.get("project_status") or "active",
        "referral_type": data.get("referral_type") or "standard",
        "referral_instructions": data.get("referral_instructions") or None,
        "is_active": data.get("is_active", True),
        "provider_status": data.get("provider_status") or "active",
        "accepting_referrals": data.get("accepting_referrals", True),
        "tenant_id": data.get("tenant_id"),
        "allow_auto_update": False,
    })
    logger.info(f"Created provider {name} ({slug})")

    return JSONResponse(provider, status_code=201)


@router.get("/{provider_id}")
async def get_provider(provider_id: str, ctx: AuthContext = Depends(require_auth)):
    """A provider with its contacts, needs and the notes the caller may see."""
    ensure_provider_access(ctx, provider_id)

    provider = get_provider_repository().get_by_id(provider_id)
    if not provider:
        raise NotFoundError("Provider not found")

    return {
        **provider,
        "contacts": get_contact_repository().list_for_provider(provider_id),
        "needs": get_provider_need_repository().list_for_provider(provider_id),
        "notes": visible_notes(ctx, get_note_repository().list_for_provider(provider_id)),
    }


@router.patch("/{provider_id}")
async def update_provider(provider_id: str, request: Request, ctx: AuthContext = Depends(require_auth)):
    """Admins may edit every field; provider contacts only the staff fields."""
    data: Dict[str, Any] = await request.json()

    if ctx.is_site_admin or ctx.is_tenant_admin:
        allowed = STAFF_FIELDS + ADMIN_FIELDS
    elif is_provider_contact(ctx, provider_id):
        allowed = STAFF_FIELDS
    else:
        raise PermissionDeniedError("Forbidden")

    updates = {key: data[key] for key in allowed if key in data}
    if not updates:
        raise ValidationError("No valid fields to update")

    provider: Optional[Dict[str, Any]] = get_provider_repository().update(provider_id, updates)
    if not provider:
        raise NotFoundError("Provider not found")
    return provider


@router.delete("/{provider_id}")
async def delete_provider(provider_id: str, ctx: AuthContext = Depends(require_site_admin)):
    repo = get_provider_repository()
    if not repo.get_by_id(provider_id):
        raise NotFoundError("Provider not found")

    repo.delete(provider_id)
    logger.info(f"Deleted provider {provider_id}")
    return {"success": True}
