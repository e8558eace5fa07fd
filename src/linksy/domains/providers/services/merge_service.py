# src/linksy/domains/providers/services/merge_service.py
"""
Provider Merge Service

Folds a duplicate provider into the one being kept.

Steps:
1. Copy the fields chosen from the merged provider onto the primary
2. Move locations, notes, tickets, events and interactions
3. Move contacts, dropping those whose user is already on the primary
4. Union provider needs
5. Rewrite services_clicked in search sessions
6. Delete the merged provider
"""

import logging
from typing import Any, Dict, List, Optional

from ....errors import NotFoundError, RepositoryError, ValidationError
from ....repositories import (
    get_contact_repository,
    get_provider_need_repository,
    get_provider_owned_repository,
    get_provider_repository,
    get_search_session_repository,
)
from .duplicates import find_duplicate_groups

logger = logging.getLogger(__name__)

# Tables whose rows simply follow the provider
MOVED_TABLES = [
    "linksy_locations",
    "linksy_provider_notes",
    "linksy_tickets",
    "linksy_provider_events",
    "linksy_interactions",
]

# Tables counted when reviewing a duplicate group
COUNTED_TABLES = {
    "locations": "linksy_locations",
    "contacts": "linksy_provider_contacts",
    "notes": "linksy_provider_notes",
    "tickets": "linksy_tickets",
}


class ProviderMergeService:
    """Duplicate review and merge for site admins."""

    def __init__(self):
        self.providers = get_provider_repository()
        self.contacts = get_contact_repository()
        self.needs = get_provider_need_repository()
        self.sessions = get_search_session_repository()

    def find_duplicates(self, threshold: float = 0.7, limit: int = 50) -> Dict[str, Any]:
        """Scan 2 * limit providers by name and enrich each grouped provider with counts."""
        providers = self.providers.list_by_name(limit * 2)
        groups = find_duplicate_groups(providers, threshold)

        duplicates = [
            {
                "providers": [{**p, "counts": self._related_counts(p["id"])} for p in group],
                "similarity": "high",
            }
            for group in groups
        ]
        return {"duplicates": duplicates, "total": len(duplicates)}

    def _related_counts(self, provider_id: str) -> Dict[str, int]:
        return {
            label: get_provider_owned_repository(table).count_for_provider(provider_id)
            for label, table in COUNTED_TABLES.items()
        }

    def merge(
        self,
        primary_id: Optional[str],
        merge_id: Optional[str],
        field_choices: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if not primary_id or not merge_id:
            raise ValidationError("Both primaryProviderId and mergeProviderId are required")
        if primary_id == merge_id:
            raise ValidationError("Cannot merge a provider with itself")

        primary = self.providers.get_by_id(primary_id)
        merged = self.providers.get_by_id(merge_id)
        if not primary or not merged:
            raise NotFoundError("One or both providers not found")

        updates = {
            field: merged.get(field)
            for field, chosen in (field_choices or {}).items()
            if chosen == merge_id and field != "id"
        }
        if updates:
            self.providers.update(primary_id, updates)

        moved = {}
        for table in MOVED_TABLES:
            try:
                moved[table] = get_provider_owned_repository(table).reassign_provider(merge_id, primary_id)
            except RepositoryError as e:
                logger.error(f"Error moving {table} from {merge_id}: {e.message}")

        self._merge_contacts(primary_id, merge_id)
        self._merge_needs(primary_id, merge_id)
        self._rewrite_search_sessions(primary_id, merge_id)

        self.providers.delete(merge_id)
        logger.info(f"🔀 Merged provider {merged.get('name')} ({merge_id}) into {primary.get('name')} ({primary_id})")

        return {
            "success": True,
            "message": f"Successfully merged provider {merged.get('name')} into {primary.get('name')}",
            "primaryProviderId": primary_id,
            "moved": moved,
        }

    def _merge_contacts(self, primary_id: str, merge_id: str) -> None:
        merge_contacts = self.contacts.list_for_provider(merge_id)
        if not merge_contacts:
            return

        existing_users = {c.get("user_id") for c in self.contacts.list_for_provider(primary_id)}
        to_move: List[str] = []
        to_delete: List[str] = []
        for contact in merge_contacts:
            if contact.get("user_id") in existing_users:
                to_delete.append(contact["id"])
            else:
                to_move.append(contact["id"])

        self.contacts.move_to_provider(to_move, primary_id)
        self.contacts.delete_many(to_delete)

    def _merge_needs(self, primary_id: str, merge_id: str) -> None:
        merge_needs = self.needs.list_for_provider(merge_id)
        if not merge_needs:
            return

        existing = {n.get("need_id") for n in self.needs.list_for_provider(primary_id)}
        new_rows = [
            {
                "provider_id": primary_id,
                "need_id": n["need_id"],
                "source": n.get("source"),
                "is_confirmed": n.get("is_confirmed"),
            }
            for n in merge_needs
            if n.get("need_id") not in existing
        ]
        if new_rows:
            self.needs.create_many(new_rows)
        self.needs.delete_where(provider_id=merge_id)

    def _rewrite_search_sessions(self, primary_id: str, merge_id: str) -> None:
        for session in self.sessions.find_clicked(merge_id):
            clicked = [primary_id if pid == merge_id else pid for pid in session.get("services_clicked") or []]
            self.sessions.update(session["id"], {"services_clicked": clicked})


def get_merge_service() -> ProviderMergeService:
    return ProviderMergeService()
