# src/linksy/domains/webhooks/services/delivery.py
"""
Webhook Delivery Service

Signs and POSTs event envelopes to tenant webhooks.

Each delivery:
1. Wraps the payload as {id, event, created_at, data}
2. Signs "<timestamp>.<body>" with HMAC-SHA256 using the webhook secret
3. POSTs with X-Linksy-Event / X-Linksy-Timestamp / X-Linksy-Signature
4. Records the attempt in linksy_webhook_deliveries and stamps the webhook

There is no retry or queueing: a failed attempt is logged and recorded.
"""

import asyncio
import hashlib
import hmac
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ....config import get_config
from ....errors import NotFoundError, RepositoryError
from ....repositories import get_webhook_delivery_repository, get_webhook_repository
from ..constants import (
    EVENT_HEADER,
    SIGNATURE_HEADER,
    SIGNATURE_TOLERANCE_SECONDS,
    TEST_EVENT_TYPE,
    TIMESTAMP_HEADER,
)

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt."""
    success: bool
    status_code: Optional[int]
    duration_ms: int
    response_body: Optional[str]
    error_message: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "status_code": self.status_code,
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
        }


@dataclass
class PendingWebhook:
    """A webhook event waiting to be fanned out after the response is sent."""
    event_type: str
    tenant_id: Optional[str]
    payload: Dict[str, Any] = field(default_factory=dict)


def sign_payload(secret: str, timestamp: str, body: str) -> str:
    """Hex HMAC-SHA256 of "<timestamp>.<body>"."""
    message = f"{timestamp}.{body}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(
    secret: str,
    signature_header: str,
    body: str,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> bool:
    """
    Check an X-Linksy-Signature header ("t=<ts>,v1=<hex>") against a raw body.

    Receivers should reject deliveries older than `tolerance` seconds.
    """
    parts = dict(
        item.split("=", 1) for item in signature_header.split(",") if "=" in item
    )
    timestamp = parts.get("t")
    signature = parts.get("v1")
    if not timestamp or not signature:
        return False

    try:
        sent_at = int(timestamp)
    except ValueError:
        return False

    now = time.time() if now is None else now
    if tolerance and abs(now - sent_at) > tolerance:
        return False

    expected = sign_payload(secret, timestamp, body)
    return hmac.compare_digest(expected, signature)


def build_envelope(event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "event": event_type,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "data": payload,
    }


def is_subscribed(webhook_events: Optional[List[str]], event_type: str) -> bool:
    """An empty or missing event list subscribes to nothing."""
    if not webhook_events:
        return False
    return event_type in webhook_events


class WebhookDeliveryService:
    """Delivers signed webhook events and keeps the delivery log."""

    def __init__(self):
        config = get_config().webhooks
        self.timeout = config.timeout_seconds
        self.user_agent = config.user_agent
        self.response_body_limit = config.response_body_limit
        self.webhooks = get_webhook_repository()
        self.deliveries = get_webhook_delivery_repository()

    async def deliver(
        self,
        client: httpx.AsyncClient,
        webhook: Dict[str, Any],
        event_type: str,
        payload: Dict[str, Any],
    ) -> DeliveryResult:
        """POST one signed envelope; never raises for HTTP or transport failures."""
        started = time.monotonic()

        timestamp = str(int(time.time()))
        body = json.dumps(build_envelope(event_type, payload), separators=(",", ":"), default=str)
        signature = sign_payload(webhook.get("secret") or "", timestamp, body)

        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            EVENT_HEADER: event_type,
            TIMESTAMP_HEADER: timestamp,
            SIGNATURE_HEADER: f"t={timestamp},v1={signature}",
        }

        try:
            response = await client.post(webhook["url"], content=body, headers=headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            return DeliveryResult(
                success=False,
                status_code=None,
                duration_ms=int((time.monotonic() - started) * 1000),
                response_body=None,
                error_message=str(e) or e.__class__.__name__,
            )

        ok = 200 <= response.status_code < 300
        text = response.text[: self.response_body_limit]

        return DeliveryResult(
            success=ok,
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
            response_body=text or None,
            error_message=None if ok else f"Non-2xx response ({response.status_code})",
        )

    async def deliver_and_record(
        self,
        client: httpx.AsyncClient,
        webhook: Dict[str, Any],
        event_type: str,
        payload: Dict[str, Any],
    ) -> DeliveryResult:
        result = await self.deliver(client, webhook, event_type, payload)

        try:
            self.deliveries.create({
                "webhook_id": webhook["id"],
                "event_type": event_type,
                "payload": payload,
                "status_code": result.status_code,
                "success": result.success,
                "duration_ms": result.duration_ms,
                "response_body": result.response_body,
                "error_message": result.error_message,
            })
        except RepositoryError as e:
            logger.error(f"Failed to log delivery for webhook {webhook['id']}: {e.message}")

        try:
            self.webhooks.record_delivery_status(
                webhook["id"], None if result.success else result.error_message
            )
        except RepositoryError as e:
            logger.error(f"Failed to update delivery status for webhook {webhook['id']}: {e.message}")

        if result.success:
            logger.info(f"📤 Delivered {event_type} to webhook {webhook['id']} ({result.status_code})")
        else:
            logger.warning(f"Webhook {webhook['id']} delivery of {event_type} failed: {result.error_message}")

        return result

    async def send_webhook_event(
        self,
        tenant_id: str,
        event_type: str,
        payload: Dict[str, Any],
    ) -> List[DeliveryResult]:
        """Fan an event out to every active, subscribed webhook of a tenant."""
        try:
            hooks = self.webhooks.list_active_for_tenant(tenant_id)
        except RepositoryError as e:
            logger.error(f"Could not load webhooks for tenant {tenant_id}: {e.message}")
            return []

        subscribed = [hook for hook in hooks if is_subscribed(hook.get("events"), event_type)]
        if not subscribed:
            logger.debug(f"No webhooks subscribed to {event_type} for tenant {tenant_id}")
            return []

        async with httpx.AsyncClient() as client:
            results = await asyncio.gather(
                *(self.deliver_and_record(client, hook, event_type, payload) for hook in subscribed)
            )
        return list(results)

    async def send_webhook_test(
        self,
        webhook_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> DeliveryResult:
        """Send webhook.test to one webhook regardless of its subscriptions."""
        hook = self.webhooks.get_by_id(webhook_id)
        if not hook:
            raise NotFoundError("Webhook not found")

        test_payload = {
            "message": "This is a test webhook delivery from Linksy.",
            "sent_at": datetime.now(timezone.utc).isoformat(),
            **(payload or {}),
        }

        async with httpx.AsyncClient() as client:
            return await self.deliver_and_record(client, hook, TEST_EVENT_TYPE, test_payload)

    async def fire_webhook(self, event_type: str, site_id: str, payload: Dict[str, Any]) -> List[DeliveryResult]:
        """Deliver using a ticket's site_id as the tenant."""
        return await self.send_webhook_event(site_id, event_type, payload)


def get_webhook_delivery_service() -> WebhookDeliveryService:
    return WebhookDeliveryService()


async def dispatch_webhook(pending: PendingWebhook) -> None:
    """Background-task entry point; failures are logged, never raised."""
    if not pending.tenant_id:
        logger.warning(f"⚠️ Skipping {pending.event_type} webhook: no tenant resolved")
        return

    try:
        await get_webhook_delivery_service().send_webhook_event(
            pending.tenant_id, pending.event_type, pending.payload
        )
    except Exception as e:
        logger.error(f"Failed to send {pending.event_type} webhook for tenant {pending.tenant_id}: {e}")
