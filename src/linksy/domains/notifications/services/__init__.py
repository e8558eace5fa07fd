# src/linksy/domains/notifications/services/__init__.py
"""
Notifications Domain Services
"""

from .notification_service import NotificationInput, NotificationService, get_notification_service

__all__ = [
    "NotificationInput",
    "NotificationService",
    "get_notification_service",
]
