# src/linksy/domains/__init__.py
"""
Domain Layer - Business domains organized by bounded context

Each domain folder contains:
- api/       - HTTP route handlers (thin controllers)
- services/  - Business logic and use cases
- constants  - Domain constants and enums

Available domains:
- tickets/        - Referral tickets, workflow, intake and reports
- providers/      - Provider directory, contacts, notes, duplicate merge
- webhooks/       - Signed outbound webhooks and their management API
- tenants/        - Organizations, memberships and modules
- hosts/          - Embeddable widget hosts and public endpoints
- notifications/  - In-app notifications

Usage:
    from src.linksy.domains.tickets.api import router as tickets_router
    from src.linksy.domains.webhooks.api import router as webhooks_router
"""

__all__ = [
    "tickets",
    "providers",
    "webhooks",
    "tenants",
    "hosts",
    "notifications",
]
