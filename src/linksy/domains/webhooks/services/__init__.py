# src/linksy/domains/webhooks/services/__init__.py
"""
Webhooks Domain Services

Signing, delivery and per-tenant fan-out.
"""

from .delivery import (
    DeliveryResult,
    PendingWebhook,
    WebhookDeliveryService,
    build_envelope,
    dispatch_webhook,
    get_webhook_delivery_service,
    is_subscribed,
    sign_payload,
    verify_signature,
)

__all__ = [
    "DeliveryResult",
    "PendingWebhook",
    "WebhookDeliveryService",
    "build_envelope",
    "dispatch_webhook",
    "get_webhook_delivery_service",
    "is_subscribed",
    "sign_payload",
    "verify_signature",
]
