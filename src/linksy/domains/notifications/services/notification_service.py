# src/linksy/domains/notifications/services/notification_service.py
"""
Notification Service

Creates in-app notifications. These replace the transactional emails a
hosted deployment would send (ticket reassigned, forwarded to admin, role
changed, ...).
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from ....repositories import (
    get_notification_repository,
    get_tenant_user_repository,
    get_user_repository,
)
from ..constants import NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


@dataclass
class NotificationInput:
    user_id: str
    type: str
    title: str
    message: str
    tenant_id: Optional[str] = None
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_row(self) -> Dict[str, Any]:
        if self.type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {self.type}")
        return asdict(self)


class NotificationService:
    """Writes notifications for users, tenant admins and site admins."""

    def __init__(self):
        self.notifications = get_notification_repository()

    def create_notification(self, notification: NotificationInput) -> Optional[Dict[str, Any]]:
        return self.notifications.create(notification.to_row())

    def create_bulk_notifications(self, notifications: List[NotificationInput]) -> int:
        rows = [n.to_row() for n in notifications]
        if not rows:
            return 0
        self.notifications.create_many(rows)
        return len(rows)

    def notify_tenant_admins(
        self,
        tenant_id: str,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        admin_ids = get_tenant_user_repository().list_admin_ids(tenant_id)
        return self.create_bulk_notifications([
            NotificationInput(
                user_id=user_id,
                tenant_id=tenant_id,
                type=type,
                title=title,
                message=message,
                action_url=action_url,
                metadata=metadata,
            )
            for user_id in admin_ids
        ])

    def notify_site_admins(
        self,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        admin_ids = get_user_repository().list_site_admin_ids()
        return self.create_bulk_notifications([
            NotificationInput(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                action_url=action_url,
                metadata=metadata,
            )
            for user_id in admin_ids
        ])


def get_notification_service() -> NotificationService:
    return NotificationService()
