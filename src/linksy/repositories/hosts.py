# src/linksy/repositories/hosts.py
"""
Host Repository

Widget hosts are providers flagged `is_host`. Slug resolution, budget checks
and full-text search are database functions; this adapter only calls them.
"""

import logging
from typing import Any, Dict, List, Optional

from .base import SupabaseRepository

logger = logging.getLogger(__name__)


class HostRepository(SupabaseRepository):
    table_name = "linksy_providers"

    def _rpc(self, function_name: str, params: Dict[str, Any]):
        return self._execute(self.client.rpc(function_name, params), f"call {function_name}")

    def resolve_host(self, slug: str) -> Optional[Dict[str, Any]]:
        """Host row for a widget slug: provider_id, provider_name, widget_config, over_budget."""
        data = self._rpc("linksy_resolve_host", {"p_slug": slug}).data
        if isinstance(data, list):
            return data[0] if data else None
        return data or None

    def search_providers(
        self,
        query: str,
        host_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[Dict[str, Any]]:
        data = self._rpc("linksy_search_providers", {
            "p_query": query,
            "p_host_id": host_id,
            "p_limit": limit,
        }).data
        return data or []

    def increment_usage(self, host_id: str, tokens_used: int = 0) -> None:
        self._rpc("linksy_increment_host_usage", {
            "p_host_provider_id": host_id,
            "p_tokens_used": tokens_used,
        })
