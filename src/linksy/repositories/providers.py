# src/linksy/repositories/providers.py
"""
Provider Repository - Ports and Adapters

Port: ProviderRepository (abstract interface)
Adapters: SupabaseProviderRepository

Contacts, notes and the provider-owned tables touched by a merge are plain
Supabase adapters that live alongside it.
"""

import logging
from abc import abstractmethod
from typing import Any, Dict, List, Optional

from .base import BaseRepository, QueryResult, SupabaseRepository

logger = logging.getLogger(__name__)


class ProviderRepository(BaseRepository[Dict[str, Any]]):
    """
    Provider Repository Port - the service-organization directory.
    """

    @abstractmethod
    def search(
        self,
        q: str = "",
        status: Optional[str] = None,
        sector: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> QueryResult[Dict[str, Any]]:
        """Paginated directory listing."""
        pass

    @abstractmethod
    def list_by_name(self, limit: int) -> List[Dict[str, Any]]:
        """Providers ordered by name (duplicate scan input)."""
        pass

    @abstractmethod
    def get_many(self, provider_ids: List[str]) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_slugs_like(self, prefix: str) -> List[str]:
        pass


# =============================================================================
# SUPABASE ADAPTER
# =============================================================================

class SupabaseProviderRepository(SupabaseRepository, ProviderRepository):
    """Supabase adapter for the provider directory."""

    table_name = "linksy_providers"

    DUPLICATE_SCAN_COLUMNS = "id, name, slug, phone, email, website, sector, is_active, created_at"

    def search(
        self,
        q: str = "",
        status: Optional[str] = None,
        sector: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> QueryResult[Dict[str, Any]]:
        query = (
            self._table()
            .select("*", count="exact")
            .order("name")
            .range(offset, offset + limit - 1)
        )
        if q:
            query = query.ilike("name", f"%{q}%")
        if status and status != "all":
            query = query.eq("provider_status", status)
        if sector and sector != "all":
            query = query.eq("sector", sector)

        result = self._execute(query, "search providers")
        total = result.count or 0
        has_more = offset + limit < total
        return QueryResult(
            data=self._rows(result),
            total_count=total,
            has_more=has_more,
            next_offset=offset + limit if has_more else None,
        )

    def list_by_name(self, limit: int) -> List[Dict[str, Any]]:
        query = self._table().select(self.DUPLICATE_SCAN_COLUMNS).order("name").limit(limit)
        return self._rows(self._execute(query, "list providers"))

    def get_many(self, provider_ids: List[str]) -> List[Dict[str, Any]]:
        if not provider_ids:
            return []
        query = self._table().select("*").in_("id", provider_ids)
        return self._rows(self._execute(query, "load providers"))

    def list_slugs_like(self, prefix: str) -> List[str]:
        query = self._table().select("slug").ilike("slug", f"{prefix}%")
        return [row["slug"] for row in self._rows(self._execute(query, "list provider slugs")) if row.get("slug")]


class ProviderContactRepository(SupabaseRepository):
    """People attached to a provider, optionally linked to a platform user."""

    table_name = "linksy_provider_contacts"

    def list_for_provider(self, provider_id: str) -> List[Dict[str, Any]]:
        return self.find(provider_id=provider_id, order_by="created_at")

    def list_active_for_provider(self, provider_id: str) -> List[Dict[str, Any]]:
        return self.find(provider_id=provider_id, status="active", order_by="created_at")

    def get_for_provider(self, contact_id: str, provider_id: str) -> Optional[Dict[str, Any]]:
        return self.find_one(id=contact_id, provider_id=provider_id)

    def get_default_handler(self, provider_id: str) -> Optional[Dict[str, Any]]:
        return self.find_one(provider_id=provider_id, is_default_referral_handler=True)

    def find_membership(self, user_id: str, provider_id: str) -> Optional[Dict[str, Any]]:
        return self.find_one(user_id=user_id, provider_id=provider_id)

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.find(user_id=user_id)

    def clear_default_handler(self, provider_id: str) -> None:
        self.update_where(
            {"provider_id": provider_id, "is_default_referral_handler": True},
            {"is_default_referral_handler": False},
        )

    def move_to_provider(self, contact_ids: List[str], provider_id: str) -> None:
        if not contact_ids:
            return
        query = self._table().update({"provider_id": provider_id}).in_("id", contact_ids)
        self._execute(query, "move contacts")

    def delete_many(self, contact_ids: List[str]) -> None:
        if not contact_ids:
            return
        self._execute(self._table().delete().in_("id", contact_ids), "delete contacts")


class ProviderNoteRepository(SupabaseRepository):
    """Internal notes about a provider."""

    table_name = "linksy_provider_notes"

    def list_for_provider(self, provider_id: str) -> List[Dict[str, Any]]:
        return self.find(provider_id=provider_id, order_by="created_at", order_desc=True)

    def move_author(self, provider_id: str, from_user_id: str, to_user_id: str) -> int:
        return len(self.update_where(
            {"provider_id": provider_id, "user_id": from_user_id},
            {"user_id": to_user_id},
        ))


class ProviderNeedRepository(SupabaseRepository):
    """Which needs a provider serves."""

    table_name = "linksy_provider_needs"

    def list_for_provider(self, provider_id: str) -> List[Dict[str, Any]]:
        query = self._table().select("need_id, source, is_confirmed").eq("provider_id", provider_id)
        return self._rows(self._execute(query, "list provider needs"))


class SearchSessionRepository(SupabaseRepository):
    """Widget search sessions; `services_clicked` is a JSON array of provider ids."""

    table_name = "linksy_search_sessions"

    def find_clicked(self, provider_id: str) -> List[Dict[str, Any]]:
        query = self._table().select("id, services_clicked").contains("services_clicked", [provider_id])
        return self._rows(self._execute(query, "find search sessions"))


class ProviderOwnedRepository(SupabaseRepository):
    """Any table whose rows carry a provider_id foreign key."""

    def __init__(self, table_name: str):
        super().__init__()
        self.table_name = table_name

    def count_for_provider(self, provider_id: str) -> int:
        return self.get_count({"provider_id": provider_id})

    def reassign_provider(self, from_provider_id: str, to_provider_id: str) -> int:
        return len(self.update_where({"provider_id": from_provider_id}, {"provider_id": to_provider_id}))
