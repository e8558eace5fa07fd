# src/linksy/repositories/webhooks.py
"""
Webhook Repository - Ports and Adapters

Port: WebhookRepository (abstract interface)
Adapters: SupabaseWebhookRepository

Deliveries are an append-only log kept by WebhookDeliveryRepository.
"""

import logging
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import BaseRepository, QueryResult, SupabaseRepository

logger = logging.getLogger(__name__)


class WebhookRepository(BaseRepository[Dict[str, Any]]):
    """
    Webhook Repository Port - tenant-configured HTTP callbacks.
    """

    @abstractmethod
    def list_for_tenant(self, tenant_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_active_for_tenant(self, tenant_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def record_delivery_status(self, webhook_id: str, error_message: Optional[str]) -> None:
        """Stamp last_delivery_at; last_error is cleared when error_message is None."""
        pass


# =============================================================================
# SUPABASE ADAPTER
# =============================================================================

class SupabaseWebhookRepository(SupabaseRepository, WebhookRepository):
    """Supabase adapter for webhooks."""

    table_name = "linksy_webhooks"

    DELIVERY_COLUMNS = "id, tenant_id, url, secret, events, is_active"

    def list_for_tenant(self, tenant_id: str) -> List[Dict[str, Any]]:
        return self.find(tenant_id=tenant_id, order_by="created_at", order_desc=True)

    def list_active_for_tenant(self, tenant_id: str) -> List[Dict[str, Any]]:
        query = (
            self._table()
            .select(self.DELIVERY_COLUMNS)
            .eq("tenant_id", tenant_id)
            .eq("is_active", True)
        )
        return self._rows(self._execute(query, "load active webhooks"))

    def record_delivery_status(self, webhook_id: str, error_message: Optional[str]) -> None:
        self.update(webhook_id, {
            "last_delivery_at": datetime.now(timezone.utc).isoformat(),
            "last_error": error_message,
        })


class WebhookDeliveryRepository(SupabaseRepository):
    """One row per delivery attempt."""

    table_name = "linksy_webhook_deliveries"

    LIST_COLUMNS = "id, event_type, status_code, success, duration_ms, error_message, created_at"

    def list_for_webhook(
        self,
        webhook_id: str,
        event_type: str = "all",
        success: str = "all",
        limit: int = 20,
        offset: int = 0,
    ) -> QueryResult[Dict[str, Any]]:
        query = (
            self._table()
            .select(self.LIST_COLUMNS, count="exact")
            .eq("webhook_id", webhook_id)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
        )
        if event_type != "all":
            query = query.eq("event_type", event_type)
        if success == "success":
            query = query.eq("success", True)
        elif success == "failed":
            query = query.eq("success", False)

        result = self._execute(query, "list webhook deliveries")
        total = result.count or 0
        has_more = offset + limit < total
        return QueryResult(
            data=self._rows(result),
            total_count=total,
            has_more=has_more,
            next_offset=offset + limit if has_more else None,
        )
