# src/linksy/domains/providers/services/contact_merge_service.py
"""
Contact Merge Service

Finds contacts of one provider that point at the same person and folds
one into the other. The merged contact's flags, tickets and notes move to
the contact being kept before it is deleted.
"""

import logging
from typing import Any, Dict, List, Optional

from ....errors import NotFoundError, RepositoryError, ValidationError
from ....repositories import (
    get_contact_repository,
    get_note_repository,
    get_ticket_repository,
    get_user_repository,
)

logger = logging.getLogger(__name__)

# Flags the kept contact inherits when only the merged one has them
INHERITED_FLAGS = ["is_primary_contact", "is_default_referral_handler"]


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def group_contacts_by_email(contacts: List[Dict[str, Any]], users: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group contacts whose linked users share an email, in encounter order."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for contact in contacts:
        user = users.get(contact.get("user_id")) or {}
        email = _normalize_email(user.get("email"))
        if not email:
            continue
        groups.setdefault(email, []).append({
            "id": contact["id"],
            "user_id": contact.get("user_id"),
            "email": user.get("email"),
            "full_name": user.get("full_name"),
            "job_title": contact.get("job_title"),
            "is_primary_contact": contact.get("is_primary_contact"),
            "is_default_referral_handler": contact.get("is_default_referral_handler"),
            "created_at": contact.get("created_at"),
        })

    return [{"email": email, "contacts": group} for email, group in groups.items() if len(group) > 1]


class ContactMergeService:
    """Duplicate contact review and merge for site admins."""

    def __init__(self):
        self.contacts = get_contact_repository()
        self.users = get_user_repository()
        self.tickets = get_ticket_repository()
        self.notes = get_note_repository()

    def find_duplicates(self, provider_id: Optional[str]) -> Dict[str, Any]:
        if not provider_id:
            raise ValidationError("provider_id is required")

        contacts = self.contacts.list_active_for_provider(provider_id)
        if not contacts:
            return {"duplicates": [], "total": 0}

        user_ids = sorted({c["user_id"] for c in contacts if c.get("user_id")})
        users = {u["id"]: u for u in self.users.get_many(user_ids)}
        duplicates = group_contacts_by_email(contacts, users)
        return {"duplicates": duplicates, "total": len(duplicates)}

    def merge(
        self,
        primary_id: Optional[str],
        merge_id: Optional[str],
        provider_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not primary_id or not merge_id:
            raise ValidationError("Both primaryContactId and mergeContactId are required")
        if primary_id == merge_id:
            raise ValidationError("Cannot merge a contact with itself")

        primary = self.contacts.get_by_id(primary_id)
        merged = self.contacts.get_by_id(merge_id)
        if not primary or not merged:
            raise NotFoundError("One or both contacts not found")
        if primary.get("provider_id") != merged.get("provider_id"):
            raise ValidationError("Contacts must belong to the same provider")
        if provider_id and primary.get("provider_id") != provider_id:
            raise ValidationError("Provider ID mismatch")

        updates = {flag: True for flag in INHERITED_FLAGS if merged.get(flag) and not primary.get(flag)}
        if updates:
            self.contacts.update(primary_id, updates)

        self._move_references(primary, merged)

        self.contacts.delete(merge_id)
        logger.info(f"🔀 Merged contact {merge_id} into {primary_id} (provider {primary.get('provider_id')})")

        return {
            "success": True,
            "message": "Successfully merged contacts",
            "primaryContactId": primary_id,
        }

    def _move_references(self, primary: Dict[str, Any], merged: Dict[str, Any]) -> None:
        """Tickets and notes follow the kept contact's user; failures are logged only."""
        from_user = merged.get("user_id")
        to_user = primary.get("user_id")
        if not from_user or not to_user or from_user == to_user:
            return

        provider_id = primary["provider_id"]
        try:
            self.tickets.move_user_tickets(provider_id, from_user, to_user)
        except RepositoryError as e:
            logger.error(f"Error moving tickets from user {from_user} to {to_user}: {e.message}")

        try:
            self.notes.move_author(provider_id, from_user, to_user)
        except RepositoryError as e:
            logger.error(f"Error moving notes from user {from_user} to {to_user}: {e.message}")


def get_contact_merge_service() -> ContactMergeService:
    return ContactMergeService()
