# src/linksy/domains/hosts/api/public.py
"""
Public API Routes

No authentication: provider search, referral submission, tenant branding
and the need taxonomy. Search and submission carry their own rate limit on
top of the global one.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ....config import get_config
from ....errors import NotFoundError
from ....infrastructure import rate_limit
from ....repositories import get_need_category_repository, get_need_repository, get_tenant_repository
from ...tickets.services import get_intake_service
from ..services import get_host_service
from ..services.host_service import DEFAULT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter()

public_limit = rate_limit(get_config().rate_limits.public_limit, endpoint="public")


class PublicTicketCreate(BaseModel):
    provider_id: Optional[str] = None
    need_id: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    description_of_need: Optional[str] = None


@router.get("/search")
async def search_providers(
    q: str = Query(""),
    host_id: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1),
    _=Depends(public_limit),
):
    providers = get_host_service().search(q, host_id=host_id, limit=limit)
    return {"query": q, "providers": providers, "total": len(providers)}


@router.post("/tickets")
async def submit_referral(body: PublicTicketCreate, _=Depends(public_limit)):
    """Referral request from an end user of the widget."""
    ticket = get_intake_service().create_public_ticket(body.model_dump())
    return JSONResponse(
        {
            "success": True,
            "ticket_number": ticket.get("ticket_number"),
            "message": "Your referral request has been submitted successfully!",
        },
        status_code=201,
    )


@router.get("/directory")
async def public_directory(slug: Optional[str] = Query(None)):
    """Public branding for a tenant slug."""
    if not slug:
        return {"message": "Public directory API", "version": "1.0"}

    tenant = get_tenant_repository().get_by_slug(slug)
    if not tenant:
        raise NotFoundError("Not found")

    branding = tenant.get("branding") or {}
    return {
        "name": tenant.get("name"),
        "slug": tenant.get("slug"),
        "branding": {
            "logo_url": branding.get("logo_url"),
            "primary_color": branding.get("primary_color"),
        },
    }


@router.get("/need-categories")
async def need_categories():
    """Need categories with their needs nested."""
    needs = get_need_repository().list_ordered()
    return [
        {**category, "needs": [n for n in needs if n.get("category_id") == category["id"]]}
        for category in get_need_category_repository().list_ordered()
    ]
