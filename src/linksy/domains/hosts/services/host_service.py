# src/linksy/domains/hosts/services/host_service.py
"""
Host Service

Resolves embeddable widget hosts and runs public provider searches against
the database search function, charging usage to the host.
"""

import logging
from typing import Any, Dict, List, Optional

from ....errors import NotFoundError, RateLimitError, RepositoryError, ValidationError
from ....repositories import get_host_repository

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 50


class HostService:
    """Widget host lookups and budgeted search."""

    def __init__(self):
        self.hosts = get_host_repository()

    def resolve(self, slug: str) -> Dict[str, Any]:
        """Public widget config for a host slug; 404 unknown, 429 over budget."""
        host = self.hosts.resolve_host(slug)
        if not host:
            raise NotFoundError("Host not found")
        if host.get("over_budget"):
            logger.warning(f"⚠️ Host {slug} is over its monthly search budget")
            raise RateLimitError("Monthly search budget reached. Please contact support.")

        return {
            "provider_id": host.get("provider_id"),
            "provider_name": host.get("provider_name"),
            "widget_config": host.get("widget_config") or {},
        }

    def search(self, query: str, host_id: Optional[str] = None, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Dict[str, Any]]:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Query is required")

        results = self.hosts.search_providers(query, host_id=host_id, limit=min(limit, MAX_SEARCH_LIMIT))

        if host_id:
            try:
                self.hosts.increment_usage(host_id)
            except RepositoryError as e:
                logger.error(f"Failed to record search usage for host {host_id}: {e.message}")

        logger.debug(f"Public search '{query}' returned {len(results)} providers")
        return results


def get_host_service() -> HostService:
    return HostService()
