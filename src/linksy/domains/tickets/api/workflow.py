# src/linksy/domains/tickets/api/workflow.py
"""
Ticket Workflow API Routes

Forwarding, internal assignment and the audit trail of a ticket.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from ....auth import AuthContext, require_auth
from ....errors import NotFoundError, PermissionDeniedError
from ....repositories import get_contact_repository, get_ticket_event_repository, get_ticket_repository
from ...webhooks.services import dispatch_webhook
from ..services import get_workflow_service

router = APIRouter()


class ForwardRequest(BaseModel):
    action: Optional[str] = None
    reason: Optional[str] = None
    target_provider_id: Optional[str] = None
    notes: Optional[str] = None
    new_status: Optional[str] = None


class AssignRequest(BaseModel):
    assigned_to_user_id: Optional[str] = None
    notes: Optional[str] = None


@router.post("/{ticket_id}/forward")
async def forward_ticket(
    ticket_id: str,
    body: ForwardRequest,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(require_auth),
):
    """Send a ticket back to the admin pool or on to another provider."""
    outcome = get_workflow_service().forward(
        ctx,
        ticket_id,
        action=body.action,
        reason=body.reason,
        target_provider_id=body.target_provider_id,
        notes=body.notes,
        new_status=body.new_status,
    )
    if outcome.webhook:
        background_tasks.add_task(dispatch_webhook, outcome.webhook)
    return {"success": True, "ticket": outcome.ticket}


@router.post("/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: str,
    body: AssignRequest,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(require_auth),
):
    """Assign a ticket to another contact within the same provider."""
    outcome = get_workflow_service().assign(ctx, ticket_id, body.assigned_to_user_id, notes=body.notes)
    if outcome.webhook:
        background_tasks.add_task(dispatch_webhook, outcome.webhook)
    return {"success": True, "ticket": outcome.ticket}


@router.get("/{ticket_id}/events")
async def list_ticket_events(ticket_id: str, ctx: AuthContext = Depends(require_auth)):
    ticket = get_ticket_repository().get_by_id(ticket_id)
    if not ticket:
        raise NotFoundError("Ticket not found")

    if not ctx.is_site_admin:
        is_contact = bool(ticket.get("provider_id")) and get_contact_repository().find_membership(
            ctx.user.id, ticket["provider_id"]
        )
        if not is_contact:
            raise PermissionDeniedError("Unauthorized")

    return {"events": get_ticket_event_repository().list_for_ticket(ticket_id)}
