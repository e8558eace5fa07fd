# src/linksy/domains/providers/api/contacts.py
"""
Provider Contacts API Routes

People who work a provider's referrals. One contact per provider may be the
default referral handler; new tickets are assigned to them.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ....auth import AuthContext, require_auth
from ....errors import NotFoundError, ValidationError
from ....repositories import get_contact_repository, get_user_repository
from ..constants import CONTACT_ROLES, CONTACT_UPDATABLE_FIELDS
from .crud import ensure_provider_access

logger = logging.getLogger(__name__)

router = APIRouter()


def load_contact(provider_id: str, contact_id: str) -> Dict[str, Any]:
    contact = get_contact_repository().get_for_provider(contact_id, provider_id)
    if not contact:
        raise NotFoundError("Contact not found")
    return contact


@router.get("/{provider_id}/contacts")
async def list_contacts(provider_id: str, ctx: AuthContext = Depends(require_auth)):
    ensure_provider_access(ctx, provider_id)
    return {"contacts": get_contact_repository().list_for_provider(provider_id)}


@router.post("/{provider_id}/contacts")
async def create_contact(provider_id: str, request: Request, ctx: AuthContext = Depends(require_auth)):
    """Add a contact, linking to an existing user with the same email when there is one."""
    ensure_provider_access(ctx, provider_id)
    data = await request.json()

    email = (data.get("email") or "").strip()
    if not email:
        raise ValidationError("Email is required")

    role = data.get("provider_role") or "user"
    if role not in CONTACT_ROLES:
        raise ValidationError(f"provider_role must be one of: {', '.join(CONTACT_ROLES)}")

    user_id = data.get("user_id")
    if not user_id:
        existing = get_user_repository().get_by_email(email)
        user_id = existing["id"] if existing else None

    repo = get_contact_repository()
    if data.get("is_default_referral_handler"):
        repo.clear_default_handler(provider_id)

    contact = repo.create({
        "provider_id": provider_id,
        "user_id": user_id,
        "email": None if user_id else email,
        "full_name": None if user_id else data.get("full_name"),
        "job_title": data.get("job_title") or None,
        "phone": data.get("phone") or None,
        "contact_type": data.get("contact_type") or "provider_employee",
        "provider_role": role,
        "is_primary_contact": bool(data.get("is_primary_contact")),
        "is_default_referral_handler": bool(data.get("is_default_referral_handler")),
        "status": "active" if user_id else "pending",
    })
    return JSONResponse(contact, status_code=201)


@router.patch("/{provider_id}/contacts/{contact_id}")
async def update_contact(
    provider_id: str,
    contact_id: str,
    request: Request,
    ctx: AuthContext = Depends(require_auth),
):
    ensure_provider_access(ctx, provider_id)
    load_contact(provider_id, contact_id)
    data = await request.json()

    updates = {key: data[key] for key in CONTACT_UPDATABLE_FIELDS if key in data}
    if not updates:
        raise ValidationError("No valid fields to update")
    if "provider_role" in updates and updates["provider_role"] not in CONTACT_ROLES:
        raise ValidationError(f"provider_role must be one of: {', '.join(CONTACT_ROLES)}")

    repo = get_contact_repository()
    if updates.get("is_default_referral_handler"):
        repo.clear_default_handler(provider_id)
    return repo.update(contact_id, updates)


@router.delete("/{provider_id}/contacts/{contact_id}")
async def archive_contact(provider_id: str, contact_id: str, ctx: AuthContext = Depends(require_auth)):
    """Contacts are archived rather than deleted."""
    ensure_provider_access(ctx, provider_id)
    load_contact(provider_id, contact_id)
    get_contact_repository().update(contact_id, {"status": "archived", "is_default_referral_handler": False})
    return {"success": True}


@router.post("/{provider_id}/contacts/{contact_id}/set-default-handler")
async def set_default_handler(provider_id: str, contact_id: str, ctx: AuthContext = Depends(require_auth)):
    """Make this contact the only default referral handler of the provider."""
    ensure_provider_access(ctx, provider_id)
    load_contact(provider_id, contact_id)

    repo = get_contact_repository()
    repo.clear_default_handler(provider_id)
    repo.update(contact_id, {"is_default_referral_handler": True})
    logger.info(f"Contact {contact_id} is now the default handler for provider {provider_id}")
    return {"success": True}
