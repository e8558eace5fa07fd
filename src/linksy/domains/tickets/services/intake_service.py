# src/linksy/domains/tickets/services/intake_service.py
"""
Intake Service

Creates referral tickets from the staff dashboard and the public widget.

Before a ticket is written the intake guards run in order:
1. Duplicate pending referral for the same client/provider/need (409 unless forced)
2. Per-email hourly limit (429)
3. Active referral cap per client, matched by email or phone (429)
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ....auth import AuthContext, get_tenant_id
from ....config import get_config
from ....errors import ConflictError, RateLimitError, ValidationError
from ....repositories import (
    get_contact_repository,
    get_ticket_event_repository,
    get_ticket_repository,
)
from ....repositories.tickets import TicketEvent
from ...webhooks.services import PendingWebhook
from ..constants import PUBLIC_TICKET_SOURCE, TICKET_STATUSES
from .workflow_service import WorkflowOutcome

logger = logging.getLogger(__name__)


def format_staff_ticket_number(existing_count: int, base: int = 2000, suffix: Optional[int] = None) -> str:
    """R-<base + count + 1>-<2-digit random suffix>."""
    if suffix is None:
        suffix = random.randint(0, 99)
    return f"R-{base + existing_count + 1}-{suffix:02d}"


def format_public_ticket_number(created_today: int, now: Optional[datetime] = None) -> str:
    """LINK-YYYYMMDD-NNNN with a per-day sequence."""
    now = now or datetime.now(timezone.utc)
    return f"LINK-{now.strftime('%Y%m%d')}-{created_today + 1:04d}"


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def created_webhook_payload(ticket: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "ticket_id": ticket.get("id"),
        "ticket_number": ticket.get("ticket_number"),
        "status": ticket.get("status"),
        "source": ticket.get("source"),
        "provider_id": ticket.get("provider_id"),
        "need_id": ticket.get("need_id"),
        "client_name": ticket.get("client_name"),
        "created_at": ticket.get("created_at"),
    }


class IntakeService:
    """Validates and writes new referral tickets."""

    def __init__(self):
        self.config = get_config().tickets
        self.tickets = get_ticket_repository()
        self.events = get_ticket_event_repository()
        self.contacts = get_contact_repository()

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def check_duplicate(
        self,
        client_email: Optional[str],
        provider_id: Optional[str],
        need_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> None:
        if not client_email or not provider_id:
            return

        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=self.config.duplicate_window_days)).isoformat()
        duplicate = self.tickets.find_pending_duplicate(client_email, provider_id, need_id, since)
        if duplicate:
            raise ConflictError(
                "Duplicate referral detected",
                details={
                    "duplicate": duplicate,
                    "message": (
                        "A pending referral for this client and provider already exists "
                        f"(ticket #{duplicate.get('ticket_number')}). Set force: true to create anyway."
                    ),
                },
            )

    def check_email_rate(self, client_email: Optional[str], now: Optional[datetime] = None) -> None:
        if not client_email:
            return

        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(hours=1)).isoformat()
        if self.tickets.count_by_email_since(client_email, since) >= self.config.per_email_hourly_limit:
            raise RateLimitError(
                "Rate limit exceeded",
                details={"message": "Too many referrals for this email address. Please wait before creating more."},
            )

    def check_referral_cap(self, client_email: Optional[str], client_phone: Optional[str]) -> None:
        if not client_email and not client_phone:
            return

        cap = self.config.max_active_referrals_per_client
        existing = self.tickets.find_pending_for_client(client_email, client_phone)
        if len(existing) >= cap:
            raise RateLimitError(
                "Referral cap exceeded",
                details={
                    "message": (
                        f"This client has reached the maximum of {cap} active referrals. "
                        "Please wait for existing referrals to be resolved before creating more."
                    ),
                    "existingTickets": [
                        {
                            "ticket_number": t.get("ticket_number"),
                            "provider_id": t.get("provider_id"),
                            "created_at": t.get("created_at"),
                        }
                        for t in existing
                    ],
                },
            )

    def resolve_default_handler(self, provider_id: Optional[str]) -> Optional[str]:
        if not provider_id:
            return None
        handler = self.contacts.get_default_handler(provider_id)
        return handler.get("user_id") if handler else None

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_ticket(self, ctx: AuthContext, data: Dict[str, Any], force: bool = False) -> WorkflowOutcome:
        """Staff-created ticket with all intake guards."""
        status = data.get("status") or "pending"
        if status not in TICKET_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        client_email = data.get("client_email") or None
        client_phone = data.get("client_phone") or None
        provider_id = data.get("provider_id") or None
        need_id = data.get("need_id") or None

        if not force:
            self.check_duplicate(client_email, provider_id, need_id)
        self.check_email_rate(client_email)
        self.check_referral_cap(client_email, client_phone)

        assignee = data.get("client_user_id") or self.resolve_default_handler(provider_id)

        ticket_number = data.get("ticket_number") or format_staff_ticket_number(
            self.tickets.count_created_since(), base=self.config.ticket_number_base
        )

        row = {
            "site_id": data.get("site_id") or get_tenant_id(ctx),
            "provider_id": provider_id,
            "need_id": need_id,
            "ticket_number": ticket_number,
            "client_name": data.get("client_name") or None,
            "client_phone": client_phone,
            "client_email": client_email,
            "description_of_need": data.get("description_of_need") or None,
            "status": status,
            "source": data.get("source") or None,
            "client_user_id": assignee,
            "assigned_to": assignee,
            "assigned_at": datetime.now(timezone.utc).isoformat() if assignee else None,
            "custom_data": data.get("custom_data") or {},
        }
        ticket = self.tickets.create(row) or row
        logger.info(f"🎫 Created ticket {ticket_number} for provider {provider_id}")

        self._record_created(ticket, actor_id=ctx.user.id, actor_type="site_admin" if ctx.is_site_admin else "provider_admin")

        tenant_id = get_tenant_id(ctx)
        webhook = None
        if tenant_id:
            webhook = PendingWebhook("ticket.created", tenant_id, created_webhook_payload(ticket))
        return WorkflowOutcome(ticket=ticket, webhook=webhook)

    def create_public_ticket(self, data: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Ticket submitted from the public search widget; no auth."""
        provider_id = data.get("provider_id")
        if not provider_id:
            raise ValidationError("Provider is required")

        client_email = data.get("client_email") or None
        client_phone = data.get("client_phone") or None
        if not client_email and not client_phone:
            raise ValidationError("Please provide either a phone number or email address")

        self.check_email_rate(client_email, now)
        self.check_referral_cap(client_email, client_phone)

        now = now or datetime.now(timezone.utc)
        created_today = self.tickets.count_created_since(start_of_day(now).isoformat())
        ticket_number = format_public_ticket_number(created_today, now)

        row = {
            "site_id": None,
            "provider_id": provider_id,
            "need_id": data.get("need_id") or None,
            "ticket_number": ticket_number,
            "client_name": data.get("client_name") or None,
            "client_phone": client_phone,
            "client_email": client_email,
            "description_of_need": data.get("description_of_need") or None,
            "status": "pending",
            "source": PUBLIC_TICKET_SOURCE,
        }
        ticket = self.tickets.create(row) or row
        logger.info(f"🌐 Public referral {ticket_number} submitted for provider {provider_id}")

        self._record_created(ticket, actor_id=None, actor_type="system")
        return ticket

    def _record_created(self, ticket: Dict[str, Any], actor_id: Optional[str], actor_type: str) -> None:
        if not ticket.get("id"):
            return
        self.events.record(TicketEvent(
            ticket_id=ticket["id"],
            event_type="created",
            actor_id=actor_id,
            actor_type=actor_type,
            new_state={
                "status": ticket.get("status"),
                "provider_id": ticket.get("provider_id"),
                "assigned_to": ticket.get("assigned_to"),
            },
            metadata={"source": ticket.get("source")},
        ))


def get_intake_service() -> IntakeService:
    return IntakeService()
