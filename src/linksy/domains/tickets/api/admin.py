# src/linksy/domains/tickets/api/admin.py
"""
Ticket Admin API Routes

Site admin only: reassignment, the aging report and reassignment stats.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel

from ....auth import AuthContext, require_site_admin
from ....config import get_config
from ...webhooks.services import dispatch_webhook
from ..services import get_reports_service, get_workflow_service

router = APIRouter()


class ReassignRequest(BaseModel):
    target_provider_id: Optional[str] = None
    target_contact_id: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    preserve_history: bool = False


@router.post("/tickets/{ticket_id}/reassign")
async def reassign_ticket(
    ticket_id: str,
    body: ReassignRequest,
    background_tasks: BackgroundTasks,
    ctx: AuthContext = Depends(require_site_admin),
):
    outcome = get_workflow_service().reassign(
        ctx,
        ticket_id,
        target_provider_id=body.target_provider_id,
        target_contact_id=body.target_contact_id,
        reason=body.reason,
        notes=body.notes,
        preserve_history=body.preserve_history,
    )
    if outcome.webhook:
        background_tasks.add_task(dispatch_webhook, outcome.webhook)
    return {"success": True, "ticket": outcome.ticket}


@router.get("/tickets/aging")
async def aging_tickets(
    threshold_hours: Optional[int] = Query(None, ge=1),
    send_notifications: bool = Query(False),
    ctx: AuthContext = Depends(require_site_admin),
):
    """Pending tickets older than threshold_hours, bucketed by age."""
    threshold = threshold_hours or get_config().tickets.aging_threshold_hours
    return get_reports_service().aging_report(threshold, send_notifications=send_notifications)


@router.get("/reports/reassignments")
async def reassignment_report(
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    ctx: AuthContext = Depends(require_site_admin),
):
    return get_reports_service().reassignment_stats(date_from, date_to)
