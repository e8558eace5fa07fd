# src/linksy/domains/webhooks/api/management.py
"""
Webhook Management API Routes

Tenant admins manage their own tenant's webhooks; site admins can manage any
tenant's by passing tenant_id (or provider_id on create).
"""

import logging
import math
import secrets
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ....auth import AuthContext, get_tenant_id, require_tenant_admin
from ....errors import NotFoundError, PermissionDeniedError, ValidationError
from ....repositories import (
    get_provider_repository,
    get_webhook_delivery_repository,
    get_webhook_repository,
)
from ..constants import DEFAULT_DELIVERY_PAGE_SIZE, MAX_DELIVERY_PAGE_SIZE, WEBHOOK_EVENT_TYPES
from ..services import get_webhook_delivery_service

logger = logging.getLogger(__name__)

router = APIRouter()


class WebhookCreate(BaseModel):
    url: str = ""
    events: List[str] = []
    secret: Optional[str] = None
    is_active: bool = True
    tenant_id: Optional[str] = None
    provider_id: Optional[str] = None


class WebhookUpdate(BaseModel):
    url: Optional[str] = None
    events: Optional[List[str]] = None
    is_active: Optional[bool] = None
    secret: Optional[str] = None
    rotate_secret: bool = False


def sanitize_webhook(webhook: Dict[str, Any]) -> Dict[str, Any]:
    """Public view of a webhook: the secret is never echoed back."""
    return {
        "id": webhook.get("id"),
        "tenant_id": webhook.get("tenant_id"),
        "url": webhook.get("url"),
        "events": webhook.get("events") or [],
        "is_active": webhook.get("is_active"),
        "created_by": webhook.get("created_by"),
        "created_at": webhook.get("created_at"),
        "updated_at": webhook.get("updated_at"),
        "last_delivery_at": webhook.get("last_delivery_at"),
        "last_error": webhook.get("last_error"),
        "has_secret": bool(webhook.get("secret")),
    }


def generate_secret() -> str:
    return secrets.token_hex(32)


def validate_url(url: Optional[str], empty_message: str = "url is required") -> str:
    url = (url or "").strip()
    if not url:
        raise ValidationError(empty_message)

    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError("url must be a valid URL")
    if parsed.scheme not in ("http", "https"):
        raise ValidationError("url must use http or https")
    return url


def validate_events(events: Optional[List[str]]) -> List[str]:
    events = events or []
    invalid = [event for event in events if event not in WEBHOOK_EVENT_TYPES]
    if not events or invalid:
        raise ValidationError(f"events must be a non-empty subset of: {', '.join(WEBHOOK_EVENT_TYPES)}")
    return events


def resolve_webhook_tenant_id(ctx: AuthContext, requested_tenant_id: Optional[str] = None) -> Optional[str]:
    if ctx.is_site_admin:
        return requested_tenant_id or get_tenant_id(ctx)
    return get_tenant_id(ctx)


def load_accessible_webhook(webhook_id: str, ctx: AuthContext) -> Dict[str, Any]:
    webhook = get_webhook_repository().get_by_id(webhook_id)
    if not webhook:
        raise NotFoundError("Webhook not found")
    if not ctx.is_site_admin and get_tenant_id(ctx) != webhook.get("tenant_id"):
        raise PermissionDeniedError("Forbidden")
    return webhook


@router.get("")
async def list_webhooks(
    tenant_id: Optional[str] = Query(None),
    ctx: AuthContext = Depends(require_tenant_admin),
):
    """List a tenant's webhooks with the supported event types."""
    resolved = resolve_webhook_tenant_id(ctx, tenant_id)
    if not resolved:
        raise ValidationError("tenant_id is required for site admins")

    webhooks = get_webhook_repository().list_for_tenant(resolved)
    return {
        "webhooks": [sanitize_webhook(w) for w in webhooks],
        "supported_events": WEBHOOK_EVENT_TYPES,
    }


@router.post("")
async def create_webhook(body: WebhookCreate, ctx: AuthContext = Depends(require_tenant_admin)):
    """Register a webhook; a secret is generated when none is supplied."""
    tenant_id = resolve_webhook_tenant_id(ctx, body.tenant_id)
    if ctx.is_site_admin and body.provider_id:
        provider = get_provider_repository().get_by_id(body.provider_id)
        if provider and provider.get("tenant_id"):
            tenant_id = provider["tenant_id"]

    if not tenant_id:
        raise ValidationError("tenant_id is required for site admins")

    url = validate_url(body.url)
    events = validate_events(body.events)
    secret = (body.secret or "").strip() or generate_secret()

    webhook = get_webhook_repository().create({
        "tenant_id": tenant_id,
        "url": url,
        "events": events,
        "secret": secret,
        "is_active": body.is_active,
        "created_by": ctx.user.id,
    })
    logger.info(f"Webhook created for tenant {tenant_id}: {url}")

    return JSONResponse(sanitize_webhook(webhook), status_code=201)


@router.get("/{webhook_id}")
async def get_webhook(
    webhook_id: str,
    event_type: str = Query("all"),
    success: str = Query("all", pattern="^(all|success|failed)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_DELIVERY_PAGE_SIZE, ge=1, le=MAX_DELIVERY_PAGE_SIZE),
    ctx: AuthContext = Depends(require_tenant_admin),
):
    """A webhook with its paginated delivery log."""
    webhook = load_accessible_webhook(webhook_id, ctx)

    offset = (page - 1) * page_size
    deliveries = get_webhook_delivery_repository().list_for_webhook(
        webhook["id"], event_type=event_type, success=success, limit=page_size, offset=offset
    )

    return {
        "webhook": sanitize_webhook(webhook),
        "deliveries": deliveries.data,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": deliveries.total_count,
            "total_pages": math.ceil(deliveries.total_count / page_size),
            "has_more": deliveries.has_more,
        },
        "supported_events": WEBHOOK_EVENT_TYPES,
    }


@router.patch("/{webhook_id}")
async def update_webhook(
    webhook_id: str,
    body: WebhookUpdate,
    ctx: AuthContext = Depends(require_tenant_admin),
):
    load_accessible_webhook(webhook_id, ctx)

    sent = body.model_fields_set
    updates: Dict[str, Any] = {}

    if "url" in sent:
        updates["url"] = validate_url(body.url, empty_message="url cannot be empty")
    if "events" in sent:
        updates["events"] = validate_events(body.events)
    if "is_active" in sent:
        if body.is_active is None:
            raise ValidationError("is_active must be boolean")
        updates["is_active"] = body.is_active

    if body.rotate_secret:
        updates["secret"] = generate_secret()
    elif "secret" in sent:
        secret = (body.secret or "").strip()
        if not secret:
            raise ValidationError("secret cannot be empty")
        updates["secret"] = secret

    if not updates:
        raise ValidationError("No valid fields to update")

    webhook = get_webhook_repository().update(webhook_id, updates)
    return sanitize_webhook(webhook)


@router.delete("/{webhook_id}")
async def delete_webhook(webhook_id: str, ctx: AuthContext = Depends(require_tenant_admin)):
    load_accessible_webhook(webhook_id, ctx)
    get_webhook_repository().delete(webhook_id)
    return {"success": True}


@router.get("/{webhook_id}/secret")
async def reveal_webhook_secret(webhook_id: str, ctx: AuthContext = Depends(require_tenant_admin)):
    webhook = load_accessible_webhook(webhook_id, ctx)
    return {"webhook_id": webhook["id"], "secret": webhook.get("secret")}


@router.post("/{webhook_id}/test")
async def send_test_webhook(webhook_id: str, ctx: AuthContext = Depends(require_tenant_admin)):
    """Deliver webhook.test synchronously and report the outcome."""
    load_accessible_webhook(webhook_id, ctx)
    result = await get_webhook_delivery_service().send_webhook_test(webhook_id)
    return {"success": True, "delivery": result.to_dict()}
