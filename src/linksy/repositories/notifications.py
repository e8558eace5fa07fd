# src/linksy/repositories/notifications.py
"""
Notification Repository

In-app notifications addressed to a single user. A notification is unread
while `read_at` is null.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import QueryResult, SupabaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(SupabaseRepository):
    table_name = "notifications"

    def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> QueryResult[Dict[str, Any]]:
        query = (
            self._table()
            .select("*", count="exact")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
        )
        if unread_only:
            query = query.is_("read_at", "null")

        result = self._execute(query, "list notifications")
        total = result.count or 0
        return QueryResult(data=self._rows(result), total_count=total, has_more=offset + limit < total)

    def set_read(self, notification_id: str, user_id: str, read: bool = True) -> List[Dict[str, Any]]:
        read_at = datetime.now(timezone.utc).isoformat() if read else None
        return self.update_where({"id": notification_id, "user_id": user_id}, {"read_at": read_at})

    def mark_many_read(self, notification_ids: List[str], user_id: str) -> None:
        if not notification_ids:
            return
        query = (
            self._table()
            .update({"read_at": datetime.now(timezone.utc).isoformat()})
            .in_("id", notification_ids)
            .eq("user_id", user_id)
        )
        self._execute(query, "mark notifications read")

    def mark_all_read(self, user_id: str) -> None:
        query = (
            self._table()
            .update({"read_at": datetime.now(timezone.utc).isoformat()})
            .eq("user_id", user_id)
            .is_("read_at", "null")
        )
        self._execute(query, "mark all notifications read")
