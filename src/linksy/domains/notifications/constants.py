# src/linksy/domains/notifications/constants.py
"""
Notifications Domain Constants
"""

NOTIFICATION_TYPES = [
    "user_invited",
    "user_removed",
    "role_changed",
    "module_enabled",
    "module_disabled",
    "tenant_updated",
    "ticket_assigned",
    "ticket_reassigned",
    "ticket_forwarded",
    "ticket_aging",
    "system_alert",
    "info",
    "warning",
    "error",
    "success",
]

DEFAULT_NOTIFICATION_LIMIT = 50
