# src/linksy/domains/tickets/services/workflow_service.py
"""
Workflow Service

Business logic for moving a referral ticket between providers and people.

Every transition:
1. Validates the caller and the target
2. Updates the ticket row
3. Records an audit event through linksy_record_ticket_event
4. Notifies the affected users (best effort)
5. Returns the webhook event for the route to dispatch after responding
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ....auth import AuthContext, get_tenant_id
from ....errors import NotFoundError, PermissionDeniedError, RepositoryError, ValidationError
from ....repositories import (
    get_contact_repository,
    get_provider_repository,
    get_ticket_event_repository,
    get_ticket_repository,
)
from ....repositories.tickets import TicketEvent
from ...notifications.services import NotificationInput, get_notification_service
from ...webhooks.services import PendingWebhook
from ..constants import FORWARD_ACTIONS, FORWARD_REASONS, TICKET_STATUSES, UPDATABLE_FIELDS

logger = logging.getLogger(__name__)


@dataclass
class WorkflowOutcome:
    """Updated ticket plus the webhook to fire once the response is out."""
    ticket: Dict[str, Any]
    webhook: Optional[PendingWebhook] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class WorkflowService:
    """Reassign, forward, assign and status-change operations on tickets."""

    def __init__(self):
        self.tickets = get_ticket_repository()
        self.events = get_ticket_event_repository()
        self.providers = get_provider_repository()
        self.contacts = get_contact_repository()
        self.notifications = get_notification_service()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _load_ticket(self, ticket_id: str) -> Dict[str, Any]:
        ticket = self.tickets.get_by_id(ticket_id)
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    def _record(self, event: TicketEvent) -> None:
        self.events.record(event)
        logger.info(f"📝 Ticket {event.ticket_id}: {event.event_type} by {event.actor_type}")

    def _notify(self, notifications: List[NotificationInput]) -> None:
        """Notification failures never fail the transition."""
        try:
            self.notifications.create_bulk_notifications(notifications)
        except (RepositoryError, ValueError) as e:
            logger.warning(f"Failed to send ticket notifications: {e}")

    def _notify_assignee(self, user_id: Optional[str], ticket: Dict[str, Any], type: str, title: str, message: str):
        if not user_id:
            return
        self._notify([
            NotificationInput(
                user_id=user_id,
                tenant_id=ticket.get("site_id"),
                type=type,
                title=title,
                message=message,
                action_url=f"/dashboard/tickets/{ticket['id']}",
                metadata={"ticket_id": ticket["id"], "ticket_number": ticket.get("ticket_number")},
            )
        ])

    # -------------------------------------------------------------------------
    # Reassign (site admin)
    # -------------------------------------------------------------------------

    def reassign(
        self,
        ctx: AuthContext,
        ticket_id: str,
        target_provider_id: Optional[str],
        target_contact_id: Optional[str] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
        preserve_history: bool = False,
    ) -> WorkflowOutcome:
        """Move a ticket to another provider, optionally to a specific contact."""
        if not target_provider_id:
            raise ValidationError("Missing required field: target_provider_id")

        ticket = self._load_ticket(ticket_id)

        target_provider = self.providers.get_by_id(target_provider_id)
        if not target_provider:
            raise NotFoundError("Target provider not found")

        assigned_to = None
        if target_contact_id:
            contact = self.contacts.get_for_provider(target_contact_id, target_provider_id)
            if not contact:
                raise ValidationError("Contact not found or does not belong to target provider")
            assigned_to = contact.get("user_id")
        else:
            handler = self.contacts.get_default_handler(target_provider_id)
            assigned_to = handler.get("user_id") if handler else None

        now = _now()
        previous_state = {
            "provider_id": ticket.get("provider_id"),
            "assigned_to": ticket.get("assigned_to"),
            "forwarded_from_provider_id": ticket.get("forwarded_from_provider_id"),
        }

        updated = self.tickets.update(ticket_id, {
            "provider_id": target_provider_id,
            "assigned_to": assigned_to,
            "assigned_at": now,
            "reassignment_count": (ticket.get("reassignment_count") or 0) + 1,
            "last_reassigned_at": now,
            "forwarded_from_provider_id": ticket.get("forwarded_from_provider_id") if preserve_history else None,
        })

        self._record(TicketEvent(
            ticket_id=ticket_id,
            event_type="reassigned",
            actor_id=ctx.user.id,
            actor_type="site_admin",
            previous_state=previous_state,
            new_state={"provider_id": target_provider_id, "assigned_to": assigned_to},
            reason=reason or "admin_reassignment",
            notes=notes,
            metadata={"preserve_history": preserve_history, "target_contact_id": target_contact_id},
        ))

        self._notify_assignee(
            assigned_to,
            updated or ticket,
            type="ticket_reassigned",
            title=f"Ticket {ticket.get('ticket_number')} reassigned to you",
            message=f"A referral for {ticket.get('client_name') or 'a client'} was reassigned to {target_provider.get('name')}.",
        )

        webhook = PendingWebhook(
            event_type="ticket.reassigned",
            tenant_id=ticket.get("site_id"),
            payload={
                "ticket_id": ticket_id,
                "target_provider_id": target_provider_id,
                "assigned_to": assigned_to,
                "reassigned_by": ctx.user.id,
                "reason": reason or "admin_reassignment",
            },
        )
        return WorkflowOutcome(ticket=updated or ticket, webhook=webhook)

    # -------------------------------------------------------------------------
    # Forward (provider contact or site admin)
    # -------------------------------------------------------------------------

    def forward(
        self,
        ctx: AuthContext,
        ticket_id: str,
        action: Optional[str],
        reason: Optional[str],
        target_provider_id: Optional[str] = None,
        notes: Optional[str] = None,
        new_status: Optional[str] = None,
    ) -> WorkflowOutcome:
        """Hand a ticket back to the admin pool or on to another provider."""
        if not action or not reason:
            raise ValidationError("Missing required fields: action, reason")
        if action not in FORWARD_ACTIONS:
            raise ValidationError(f"action must be one of: {', '.join(FORWARD_ACTIONS)}")
        if reason not in FORWARD_REASONS:
            raise ValidationError(f"reason must be one of: {', '.join(FORWARD_REASONS)}")
        if action == "forward_to_provider" and not target_provider_id:
            raise ValidationError("target_provider_id required when forwarding to provider")
        if new_status is not None and new_status not in TICKET_STATUSES:
            raise ValidationError(f"Invalid status: {new_status}")

        ticket = self._load_ticket(ticket_id)

        if not ctx.is_site_admin:
            membership = None
            if ticket.get("provider_id"):
                membership = self.contacts.find_membership(ctx.user.id, ticket["provider_id"])
            if not membership:
                raise PermissionDeniedError("Unauthorized: You can only forward tickets for your own provider")

        now = _now()
        count = (ticket.get("reassignment_count") or 0) + 1
        previous_state = {
            "provider_id": ticket.get("provider_id"),
            "assigned_to": ticket.get("assigned_to"),
            "status": ticket.get("status"),
        }

        if action == "forward_to_admin":
            updates: Dict[str, Any] = {
                "provider_id": None,
                "assigned_to": None,
                "assigned_at": None,
                "forwarded_from_provider_id": ticket.get("provider_id"),
                "reassignment_count": count,
                "last_reassigned_at": now,
            }
            if new_status:
                updates["status"] = new_status
            new_state = {
                "provider_id": None,
                "assigned_to": None,
                "forwarded_from_provider_id": ticket.get("provider_id"),
            }
            metadata: Dict[str, Any] = {"action": action}
            assigned_to = None
        else:
            target_provider = self.providers.get_by_id(target_provider_id)
            if not target_provider:
                raise NotFoundError("Target provider not found")

            handler = self.contacts.get_default_handler(target_provider_id)
            assigned_to = handler.get("user_id") if handler else None
            updates = {
                "provider_id": target_provider_id,
                "assigned_to": assigned_to,
                "assigned_at": now,
                "forwarded_from_provider_id": None,
                "reassignment_count": count,
                "last_reassigned_at": now,
            }
            if new_status:
                updates["status"] = new_status
            new_state = {"provider_id": target_provider_id, "assigned_to": assigned_to}
            metadata = {"action": action, "target_provider_id": target_provider_id}

        updated = self.tickets.update(ticket_id, updates) or ticket

        self._record(TicketEvent(
            ticket_id=ticket_id,
            event_type="forwarded",
            actor_id=ctx.user.id,
            actor_type="site_admin" if ctx.is_site_admin else "provider_contact",
            previous_state=previous_state,
            new_state=new_state,
            reason=reason,
            notes=notes,
            metadata=metadata,
        ))

        if action == "forward_to_admin":
            try:
                self.notifications.notify_site_admins(
                    type="ticket_forwarded",
                    title=f"Ticket {ticket.get('ticket_number')} needs reassignment",
                    message=f"A provider forwarded a referral back to the admin pool ({reason}).",
                    action_url=f"/dashboard/tickets/{ticket_id}",
                    metadata={"ticket_id": ticket_id, "reason": reason, "notes": notes},
                )
            except (RepositoryError, ValueError) as e:
                logger.warning(f"Failed to notify site admins about forwarded ticket {ticket_id}: {e}")
        else:
            self._notify_assignee(
                assigned_to,
                updated,
                type="ticket_forwarded",
                title=f"Ticket {ticket.get('ticket_number')} forwarded to you",
                message=f"A referral for {ticket.get('client_name') or 'a client'} was forwarded to your organization.",
            )

        payload: Dict[str, Any] = {"ticket_id": ticket_id, "action": action}
        if action == "forward_to_provider":
            payload["target_provider_id"] = target_provider_id
        payload["forwarded_by"] = ctx.user.id
        payload["reason"] = reason

        webhook = PendingWebhook(event_type="ticket.forwarded", tenant_id=ticket.get("site_id"), payload=payload)
        return WorkflowOutcome(ticket=updated, webhook=webhook)

    # -------------------------------------------------------------------------
    # Internal assignment (provider admin or site admin)
    # -------------------------------------------------------------------------

    def assign(
        self,
        ctx: AuthContext,
        ticket_id: str,
        assigned_to_user_id: Optional[str],
        notes: Optional[str] = None,
    ) -> WorkflowOutcome:
        """Assign a ticket to another contact of the same provider."""
        if not assigned_to_user_id:
            raise ValidationError("Missing required field: assigned_to_user_id")

        ticket = self._load_ticket(ticket_id)
        provider_id = ticket.get("provider_id")
        if not provider_id:
            raise ValidationError("Cannot assign internal contact to unassigned ticket")

        if not ctx.is_site_admin:
            membership = self.contacts.find_membership(ctx.user.id, provider_id)
            if not membership or membership.get("provider_role") != "admin":
                raise PermissionDeniedError("Unauthorized: Only provider admins can assign tickets internally")

        target = self.contacts.find_membership(assigned_to_user_id, provider_id)
        if not target:
            raise ValidationError("Target contact not found or does not belong to this provider")

        updated = self.tickets.update(ticket_id, {
            "assigned_to": assigned_to_user_id,
            "assigned_at": _now(),
        }) or ticket

        self._record(TicketEvent(
            ticket_id=ticket_id,
            event_type="assigned",
            actor_id=ctx.user.id,
            actor_type="site_admin" if ctx.is_site_admin else "provider_admin",
            previous_state={"assigned_to": ticket.get("assigned_to")},
            new_state={"assigned_to": assigned_to_user_id},
            reason="internal_assignment",
            notes=notes,
            metadata={"internal_assignment": True},
        ))

        self._notify_assignee(
            assigned_to_user_id,
            updated,
            type="ticket_assigned",
            title=f"Ticket {ticket.get('ticket_number')} assigned to you",
            message=f"You were assigned a referral for {ticket.get('client_name') or 'a client'}.",
        )

        webhook = PendingWebhook(
            event_type="ticket.assigned",
            tenant_id=ticket.get("site_id"),
            payload={
                "ticket_id": ticket_id,
                "assigned_to": assigned_to_user_id,
                "assigned_by": ctx.user.id,
            },
        )
        return WorkflowOutcome(ticket=updated, webhook=webhook)

    # -------------------------------------------------------------------------
    # Field update / status change (tenant admin)
    # -------------------------------------------------------------------------

    def update_ticket(self, ctx: AuthContext, ticket_id: str, changes: Dict[str, Any]) -> WorkflowOutcome:
        """Apply whitelisted field changes; a real status change emits an event."""
        updates = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if not updates:
            raise ValidationError("No valid fields to update")
        if "status" in updates and updates["status"] not in TICKET_STATUSES:
            raise ValidationError(f"Invalid status: {updates['status']}")

        ticket = self._load_ticket(ticket_id)

        if "client_user_id" in updates:
            updates["assigned_to"] = updates["client_user_id"]
            updates["assigned_at"] = _now() if updates["client_user_id"] else None

        updated = self.tickets.update(ticket_id, updates) or {**ticket, **updates}

        previous_status = ticket.get("status")
        new_status = updated.get("status")
        if "status" not in updates or previous_status == new_status:
            return WorkflowOutcome(ticket=updated)

        self._record(TicketEvent(
            ticket_id=ticket_id,
            event_type="status_changed",
            actor_id=ctx.user.id,
            actor_type="site_admin" if ctx.is_site_admin else "provider_admin",
            previous_state={"status": previous_status},
            new_state={"status": new_status},
        ))

        tenant_id = None
        provider_id = updated.get("provider_id")
        if provider_id:
            provider = self.providers.get_by_id(provider_id)
            tenant_id = provider.get("tenant_id") if provider else None
        tenant_id = tenant_id or get_tenant_id(ctx)

        if not tenant_id:
            logger.warning(f"⚠️ No tenant for ticket {ticket_id}; skipping ticket.status_changed webhook")
            return WorkflowOutcome(ticket=updated)

        webhook = PendingWebhook(
            event_type="ticket.status_changed",
            tenant_id=tenant_id,
            payload={
                "ticket_id": updated.get("id", ticket_id),
                "ticket_number": updated.get("ticket_number"),
                "previous_status": previous_status,
                "new_status": new_status,
                "source": updated.get("source"),
                "provider_id": provider_id,
                "need_id": updated.get("need_id"),
                "client_name": updated.get("client_name"),
                "updated_at": updated.get("updated_at"),
            },
        )
        return WorkflowOutcome(ticket=updated, webhook=webhook)


def get_workflow_service() -> WorkflowService:
    """Get the workflow service instance."""
    return WorkflowService()
