# src/linksy/domains/tickets/api/crud.py
"""
Ticket CRUD API Routes

List, read, create and update referral tickets.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ....auth import AuthContext, require_auth, require_tenant_admin
from ....errors import NotFoundError, ValidationError
from ....repositories import (
    get_provider_repository,
    get_ticket_comment_repository,
    get_ticket_repository,
)
from ....repositories.tickets import TicketFilters
from ...webhooks.services import dispatch_webhook
from ..constants import DEFAULT_TICKET_LIMIT, MAX_TICKET_LIMIT, TICKET_STATUSES
from ..services import get_intake_service, get_workflow_service

logger = logging.getLogger(__name__)

router = APIRouter()


class TicketCreate(BaseModel):
    site_id: Optional[str] = None
    provider_id: Optional[str] = None
    need_id: Optional[str] = None
    ticket_number: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    description_of_need: Optional[str] = None
    status: Optional[str] = None
    source: Optional[str] = None
    client_user_id: Optional[str] = None
    custom_data: Optional[Dict[str, Any]] = None
    force: bool = False


class TicketUpdate(BaseModel):
    status: Optional[str] = None
    description_of_need: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    follow_up_sent: Optional[bool] = None
    provider_id: Optional[str] = None
    need_id: Optional[str] = None
    client_user_id: Optional[str] = None


class BulkStatusUpdate(BaseModel):
    ids: List[str] = []
    status: Optional[str] = None


def serialize_ticket(ticket: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten embedded provider/need relations into {provider, need}."""
    data = dict(ticket)
    provider = data.pop("linksy_providers", None)
    need = data.pop("linksy_needs", None)
    data["provider"] = {"name": provider.get("name")} if provider else None
    data["need"] = {"id": need.get("id"), "name": need.get("name")} if need else None
    return data


@router.get("")
async def list_tickets(
    q: str = Query(""),
    status: str = Query("all"),
    provider_id: Optional[str] = Query(None),
    need_id: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_TICKET_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    ctx: AuthContext = Depends(require_auth),
):
    """List tickets with filters; limit is capped at 100."""
    filters = TicketFilters(
        q=q,
        status=status,
        provider_id=provider_id,
        need_id=need_id,
        date_from=date_from,
        date_to=date_to,
        limit=min(limit, MAX_TICKET_LIMIT),
        offset=offset,
    )
    result = get_ticket_repository().list_tickets(filters)

    return {
        "tickets": [serialize_ticket(t) for t in result.data],
        "pagination": result.pagination(),
    }


@router.post("")
async def create_ticket(
    body: TicketCreate,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(require_tenant_admin),
):
    """Create a referral; pass force=true to skip the duplicate check."""
    data = body.model_dump(exclude={"force"}, exclude_none=True)
    outcome = get_intake_service().create_ticket(ctx, data, force=body.force)

    if outcome.webhook:
        background_tasks.add_task(dispatch_webhook, outcome.webhook)

    return JSONResponse(outcome.ticket, status_code=201)


@router.patch("/bulk")
async def bulk_update_status(body: BulkStatusUpdate, ctx: AuthContext = Depends(require_tenant_admin)):
    if not body.ids:
        raise ValidationError("ids must be a non-empty array")
    if not body.status or body.status not in TICKET_STATUSES:
        raise ValidationError("Invalid status")

    updated = get_ticket_repository().update_status_many(body.ids, body.status)
    logger.info(f"Bulk status update to {body.status} on {updated} tickets")
    return {"updated": updated}


@router.get("/{ticket_id}")
async def get_ticket(ticket_id: str, ctx: AuthContext = Depends(require_auth)):
    """A ticket with its comments; private comments only for site admins."""
    ticket = get_ticket_repository().get_by_id(ticket_id)
    if not ticket:
        raise NotFoundError("Ticket not found")

    data = serialize_ticket(ticket)
    if ticket.get("provider_id") and data["provider"] is None:
        provider = get_provider_repository().get_by_id(ticket["provider_id"])
        data["provider"] = {"name": provider.get("name")} if provider else None

    data["comments"] = get_ticket_comment_repository().list_for_ticket(
        ticket_id, include_private=ctx.is_site_admin
    )
    return data


@router.patch("/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    body: TicketUpdate,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(require_tenant_admin),
):
    """Update whitelisted fields; a status change fires ticket.status_changed."""
    changes = {field: getattr(body, field) for field in body.model_fields_set}
    outcome = get_workflow_service().update_ticket(ctx, ticket_id, changes)

    if outcome.webhook:
        background_tasks.add_task(dispatch_webhook, outcome.webhook)

    return outcome.ticket
