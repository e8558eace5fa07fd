# src/linksy/repositories/__init__.py
"""
Repository Layer - Ports and Adapters Pattern

This module provides a clean abstraction over data access, allowing:
- Consistent interface across all tables
- Better testability with a mocked Supabase client
- Database errors surfaced as RepositoryError instead of raw PostgREST errors

Usage:
    from src.linksy.repositories import get_ticket_repository, get_webhook_repository

    tickets = get_ticket_repository()
    ticket = tickets.get_by_id("uuid")
    tickets.update(ticket["id"], {"status": "customer_need_addressed"})
"""

from .base import BaseRepository, QueryOptions, QueryResult, SupabaseRepository
from .hosts import HostRepository
from .needs import NeedCategoryRepository, NeedRepository
from .notifications import NotificationRepository
from .providers import (
    ProviderContactRepository,
    ProviderNeedRepository,
    ProviderNoteRepository,
    ProviderOwnedRepository,
    ProviderRepository,
    SearchSessionRepository,
    SupabaseProviderRepository,
)
from .tenants import (
    AuditLogRepository,
    ModuleRepository,
    TenantModuleRepository,
    TenantRepository,
    TenantUserRepository,
)
from .tickets import (
    SupabaseTicketRepository,
    TicketCommentRepository,
    TicketEvent,
    TicketEventRepository,
    TicketFilters,
    TicketRepository,
)
from .users import UserRepository
from .webhooks import SupabaseWebhookRepository, WebhookDeliveryRepository, WebhookRepository


def get_ticket_repository() -> TicketRepository:
    return SupabaseTicketRepository()


def get_ticket_comment_repository() -> TicketCommentRepository:
    return TicketCommentRepository()


def get_ticket_event_repository() -> TicketEventRepository:
    return TicketEventRepository()


def get_provider_repository() -> ProviderRepository:
    return SupabaseProviderRepository()


def get_contact_repository() -> ProviderContactRepository:
    return ProviderContactRepository()


def get_note_repository() -> ProviderNoteRepository:
    return ProviderNoteRepository()


def get_provider_need_repository() -> ProviderNeedRepository:
    return ProviderNeedRepository()


def get_search_session_repository() -> SearchSessionRepository:
    return SearchSessionRepository()


def get_provider_owned_repository(table_name: str) -> ProviderOwnedRepository:
    """Adapter for any table keyed by provider_id (locations, events, interactions...)."""
    return ProviderOwnedRepository(table_name)


def get_webhook_repository() -> WebhookRepository:
    return SupabaseWebhookRepository()


def get_webhook_delivery_repository() -> WebhookDeliveryRepository:
    return WebhookDeliveryRepository()


def get_tenant_repository() -> TenantRepository:
    return TenantRepository()


def get_tenant_user_repository() -> TenantUserRepository:
    return TenantUserRepository()


def get_module_repository() -> ModuleRepository:
    return ModuleRepository()


def get_tenant_module_repository() -> TenantModuleRepository:
    return TenantModuleRepository()


def get_audit_log_repository() -> AuditLogRepository:
    return AuditLogRepository()


def get_user_repository() -> UserRepository:
    return UserRepository()


def get_notification_repository() -> NotificationRepository:
    return NotificationRepository()


def get_host_repository() -> HostRepository:
    return HostRepository()


def get_need_category_repository() -> NeedCategoryRepository:
    return NeedCategoryRepository()


def get_need_repository() -> NeedRepository:
    return NeedRepository()


__all__ = [
    # Base
    "BaseRepository",
    "SupabaseRepository",
    "QueryOptions",
    "QueryResult",
    # Tickets
    "TicketRepository",
    "SupabaseTicketRepository",
    "TicketCommentRepository",
    "TicketEventRepository",
    "TicketEvent",
    "TicketFilters",
    "get_ticket_repository",
    "get_ticket_comment_repository",
    "get_ticket_event_repository",
    # Providers
    "ProviderRepository",
    "SupabaseProviderRepository",
    "ProviderContactRepository",
    "ProviderNoteRepository",
    "ProviderNeedRepository",
    "ProviderOwnedRepository",
    "SearchSessionRepository",
    "get_provider_repository",
    "get_contact_repository",
    "get_note_repository",
    "get_provider_need_repository",
    "get_search_session_repository",
    "get_provider_owned_repository",
    # Webhooks
    "WebhookRepository",
    "SupabaseWebhookRepository",
    "WebhookDeliveryRepository",
    "get_webhook_repository",
    "get_webhook_delivery_repository",
    # Tenants
    "TenantRepository",
    "TenantUserRepository",
    "ModuleRepository",
    "TenantModuleRepository",
    "get_tenant_repository",
    "get_tenant_user_repository",
    "get_module_repository",
    "get_tenant_module_repository",
    "AuditLogRepository",
    "get_audit_log_repository",
    # Users, notifications, hosts
    "UserRepository",
    "NotificationRepository",
    "HostRepository",
    "get_user_repository",
    "get_notification_repository",
    "get_host_repository",
    # Needs
    "NeedCategoryRepository",
    "NeedRepository",
    "get_need_category_repository",
    "get_need_repository",
]
