# src/linksy/domains/notifications/__init__.py
"""
Notifications Domain - In-app notifications

This domain handles:
- Creating notifications for single users, tenant admins and site admins
- Listing and marking a user's own notifications
"""
