# src/linksy/repositories/tickets.py
"""
Ticket Repository - Ports and Adapters

Port: TicketRepository (abstract interface)
Adapters: SupabaseTicketRepository

Also holds the comment and audit-event adapters that hang off a ticket.
"""

import json
import logging
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import BaseRepository, QueryResult, SupabaseRepository

logger = logging.getLogger(__name__)


@dataclass
class TicketFilters:
    """Filters accepted by the ticket list endpoint."""
    q: str = ""
    status: str = "all"
    provider_id: Optional[str] = None
    need_id: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    limit: int = 50
    offset: int = 0


@dataclass
class TicketEvent:
    """One entry in a ticket's audit trail."""
    ticket_id: str
    event_type: str
    actor_id: Optional[str]
    actor_type: str
    previous_state: Optional[Dict[str, Any]] = None
    new_state: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_rpc_params(self) -> Dict[str, Any]:
        return {
            "p_ticket_id": self.ticket_id,
            "p_event_type": self.event_type,
            "p_actor_id": self.actor_id,
            "p_actor_type": self.actor_type,
            "p_previous_state": self.previous_state,
            "p_new_state": self.new_state,
            "p_reason": self.reason,
            "p_notes": self.notes,
            "p_metadata": json.dumps(self.metadata),
        }


class TicketRepository(BaseRepository[Dict[str, Any]]):
    """
    Ticket Repository Port - defines the interface for referral ticket access.

    Adds the intake guards and reporting queries to the generic CRUD port.
    """

    @abstractmethod
    def list_tickets(self, filters: TicketFilters) -> QueryResult[Dict[str, Any]]:
        """Paginated ticket list, newest first."""
        pass

    @abstractmethod
    def find_pending_duplicate(
        self, client_email: str, provider_id: str, need_id: Optional[str], since: str
    ) -> Optional[Dict[str, Any]]:
        """Pending ticket for the same client and provider created since `since`."""
        pass

    @abstractmethod
    def count_by_email_since(self, client_email: str, since: str) -> int:
        pass

    @abstractmethod
    def find_pending_for_client(
        self, client_email: Optional[str], client_phone: Optional[str]
    ) -> List[Dict[str, Any]]:
        """Pending tickets matching the client's email or phone."""
        pass

    @abstractmethod
    def count_created_since(self, since: Optional[str] = None) -> int:
        pass

    @abstractmethod
    def get_pending_older_than(self, cutoff: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def update_status_many(self, ticket_ids: List[str], status: str) -> int:
        pass

    @abstractmethod
    def get_reassigned(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> List[Dict[str, Any]]:
        """Tickets that have moved between providers at least once."""
        pass

    @abstractmethod
    def move_user_tickets(self, provider_id: str, from_user_id: str, to_user_id: str) -> int:
        """Point a provider's tickets at another user (contact merge)."""
        pass


# =============================================================================
# SUPABASE ADAPTER
# =============================================================================

class SupabaseTicketRepository(SupabaseRepository, TicketRepository):
    """
    Supabase adapter for ticket repository.
    """

    table_name = "linksy_tickets"

    def list_tickets(self, filters: TicketFilters) -> QueryResult[Dict[str, Any]]:
        query = (
            self._table()
            .select("*, linksy_providers(name), linksy_needs(id, name)", count="exact")
            .order("created_at", desc=True)
            .range(filters.offset, filters.offset + filters.limit - 1)
        )

        if filters.q:
            query = query.ilike("client_name", f"%{filters.q}%")
        if filters.status and filters.status != "all":
            query = query.eq("status", filters.status)
        if filters.provider_id:
            query = query.eq("provider_id", filters.provider_id)
        if filters.need_id:
            query = query.eq("need_id", filters.need_id)
        if filters.date_from:
            query = query.gte("created_at", filters.date_from)
        if filters.date_to:
            query = query.lte("created_at", filters.date_to)

        result = self._execute(query, "list tickets")
        total = result.count or 0
        has_more = filters.offset + filters.limit < total

        return QueryResult(
            data=self._rows(result),
            total_count=total,
            has_more=has_more,
            next_offset=filters.offset + filters.limit if has_more else None,
        )

    def find_pending_duplicate(
        self, client_email: str, provider_id: str, need_id: Optional[str], since: str
    ) -> Optional[Dict[str, Any]]:
        query = (
            self._table()
            .select("id, ticket_number, created_at")
            .eq("client_email", client_email)
            .eq("provider_id", provider_id)
            .gte("created_at", since)
            .eq("status", "pending")
        )
        if need_id:
            query = query.eq("need_id", need_id)

        return self._first(self._execute(query.limit(1), "check duplicate tickets"))

    def count_by_email_since(self, client_email: str, since: str) -> int:
        query = (
            self._table()
            .select("id", count="exact")
            .eq("client_email", client_email)
            .gte("created_at", since)
        )
        return self._execute(query, "count recent tickets").count or 0

    def find_pending_for_client(
        self, client_email: Optional[str], client_phone: Optional[str]
    ) -> List[Dict[str, Any]]:
        """Pending tickets matching either contact detail, one query per column."""
        found: Dict[str, Dict[str, Any]] = {}
        for column, value in (("client_email", client_email), ("client_phone", client_phone)):
            if not value:
                continue
            query = (
                self._table()
                .select("id, ticket_number, provider_id, created_at")
                .eq("status", "pending")
                .eq(column, value)
            )
            for row in self._rows(self._execute(query, "find active referrals")):
                found.setdefault(row["id"], row)
        return list(found.values())

    def count_created_since(self, since: Optional[str] = None) -> int:
        query = self._table().select("id", count="exact")
        if since:
            query = query.gte("created_at", since)
        return self._execute(query, "count tickets").count or 0

    def get_pending_older_than(self, cutoff: str) -> List[Dict[str, Any]]:
        query = (
            self._table()
            .select("*, linksy_providers(name), linksy_needs(name)")
            .eq("status", "pending")
            .lt("created_at", cutoff)
            .order("created_at")
        )
        return self._rows(self._execute(query, "load aging tickets"))

    def update_status_many(self, ticket_ids: List[str], status: str) -> int:
        query = self._table().update({"status": status}).in_("id", ticket_ids)
        return len(self._rows(self._execute(query, "bulk update ticket status")))

    def get_reassigned(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self._table().select("id, reassignment_count, provider_id").gt("reassignment_count", 0)
        if date_from:
            query = query.gte("created_at", date_from)
        if date_to:
            query = query.lte("created_at", date_to)
        return self._rows(self._execute(query, "load reassigned tickets"))

    def move_user_tickets(self, provider_id: str, from_user_id: str, to_user_id: str) -> int:
        moved = 0
        for column in ("client_user_id", "assigned_to"):
            moved += len(self.update_where(
                {"provider_id": provider_id, column: from_user_id},
                {column: to_user_id},
            ))
        return moved


class TicketCommentRepository(SupabaseRepository):
    """Comments left on a ticket by staff."""

    table_name = "linksy_ticket_comments"

    def list_for_ticket(self, ticket_id: str, include_private: bool = False) -> List[Dict[str, Any]]:
        query = self._table().select("*").eq("ticket_id", ticket_id).order("created_at")
        if not include_private:
            query = query.eq("is_private", False)
        return self._rows(self._execute(query, "list comments"))


class TicketEventRepository(SupabaseRepository):
    """Audit trail. Writes go through the database function so triggers stay in charge."""

    table_name = "linksy_ticket_events"

    def record(self, event: TicketEvent) -> Optional[str]:
        """Record an event, returning the new event id when the database reports one."""
        result = self._execute(
            self.client.rpc("linksy_record_ticket_event", event.to_rpc_params()),
            f"record {event.event_type} event",
        )
        data = result.data
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            return data.get("id")
        return data

    def list_for_ticket(self, ticket_id: str) -> List[Dict[str, Any]]:
        query = self._table().select("*").eq("ticket_id", ticket_id).order("created_at")
        return self._rows(self._execute(query, "list ticket events"))

    def list_by_types(
        self,
        event_types: List[str],
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = self._table().select("*").in_("event_type", event_types)
        if date_from:
            query = query.gte("created_at", date_from)
        if date_to:
            query = query.lte("created_at", date_to)
        return self._rows(self._execute(query, "list ticket events by type"))
