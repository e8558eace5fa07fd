# src/linksy/domains/tenants/services/tenant_service.py
"""
Tenant Service

Tenant lifecycle, membership changes and module switches. Every change is
written to audit_logs and the affected users are notified.
"""

import logging
from typing import Any, Dict, List, Optional

from ....auth import AuthContext
from ....errors import NotFoundError, RepositoryError, ValidationError
from ....repositories import (
    get_audit_log_repository,
    get_module_repository,
    get_tenant_module_repository,
    get_tenant_repository,
    get_tenant_user_repository,
    get_user_repository,
)
from ...notifications.services import NotificationInput, get_notification_service
from ..constants import DEFAULT_MODULES, REQUIRED_MODULES, TENANT_ROLES

logger = logging.getLogger(__name__)


class TenantService:
    """Business rules around tenants, their members and their modules."""

    def __init__(self):
        self.tenants = get_tenant_repository()
        self.members = get_tenant_user_repository()
        self.modules = get_module_repository()
        self.tenant_modules = get_tenant_module_repository()
        self.notifications = get_notification_service()

    def _audit(self, ctx: AuthContext, action: str, entity_type: str, entity_id: Optional[str], **kwargs) -> None:
        try:
            get_audit_log_repository().record(ctx.user.id, action, entity_type, entity_id, **kwargs)
        except RepositoryError as e:
            logger.warning(f"Failed to write audit log for {action} {entity_type} {entity_id}: {e.message}")

    def _notify(self, notification: NotificationInput) -> None:
        try:
            self.notifications.create_notification(notification)
        except RepositoryError as e:
            logger.warning(f"Failed to notify user {notification.user_id}: {e.message}")

    # -------------------------------------------------------------------------
    # Tenants
    # -------------------------------------------------------------------------

    def create_tenant(self, ctx: AuthContext, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a tenant, make the named admin a member when they already have
        an account, and enable the default modules.
        """
        if self.tenants.get_by_slug(data["slug"]):
            raise ValidationError("A tenant with this slug already exists")

        admin_email = data.pop("admin_email", None)
        admin_name = data.pop("admin_name", None)
        admin_user = get_user_repository().get_by_email(admin_email) if admin_email else None

        tenant = self.tenants.create({
            **data,
            "track_location": data.get("track_location") or False,
            "primary_contact_id": admin_user["id"] if admin_user else None,
            "settings": {},
            "branding": {},
        })

        if admin_user and not self.members.get_membership(admin_user["id"], tenant["id"]):
            self.members.create({"tenant_id": tenant["id"], "user_id": admin_user["id"], "role": "admin"})
        elif not admin_user and admin_email:
            logger.info(f"No account for {admin_email} yet; tenant {tenant['slug']} has no admin member")

        self.enable_default_modules(tenant["id"])

        self._audit(
            ctx, "create", "tenant", tenant["id"],
            metadata={"name": tenant.get("name"), "slug": tenant.get("slug"), "admin_email": admin_email, "admin_name": admin_name},
        )
        logger.info(f"🏢 Created tenant {tenant.get('name')} ({tenant.get('slug')})")
        return tenant

    def enable_default_modules(self, tenant_id: str) -> List[Dict[str, Any]]:
        modules = self.modules.get_by_slugs(DEFAULT_MODULES)
        return [self.tenant_modules.set_enabled(tenant_id, m["id"], True) for m in modules]

    def update_tenant(self, ctx: AuthContext, tenant_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        if not updates:
            raise ValidationError("No valid fields to update")

        tenant = self.tenants.update(tenant_id, updates)
        if not tenant:
            raise NotFoundError("Tenant not found")

        self._audit(ctx, "update", "tenant", tenant_id, metadata={"updates": list(updates)})
        return tenant

    def delete_tenant(self, ctx: AuthContext, tenant_id: str) -> None:
        tenant = self.tenants.get_by_id(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant not found")

        self.tenants.delete(tenant_id)
        self._audit(ctx, "delete", "tenant", tenant_id, metadata={"name": tenant.get("name"), "slug": tenant.get("slug")})

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def update_member_role(self, ctx: AuthContext, tenant_id: str, user_id: str, role: str) -> Dict[str, Any]:
        if role not in TENANT_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(TENANT_ROLES)}")
        if user_id == ctx.user.id:
            raise ValidationError("You cannot change your own role")
        if not self.members.get_membership(user_id, tenant_id):
            raise NotFoundError("User is not a member of this tenant")

        updated = self.members.update_where({"tenant_id": tenant_id, "user_id": user_id}, {"role": role})
        self._audit(ctx, "update_user_role", "tenant_user", user_id, metadata={"new_role": role}, tenant_id=tenant_id)
        self._notify(NotificationInput(
            user_id=user_id,
            tenant_id=tenant_id,
            type="role_changed",
            title="Your role has changed",
            message=f"You are now {'an admin' if role == 'admin' else 'a member'} of this organization.",
            metadata={"new_role": role},
        ))
        return updated[0] if updated else {"tenant_id": tenant_id, "user_id": user_id, "role": role}

    def remove_member(self, ctx: AuthContext, tenant_id: str, user_id: str) -> None:
        if user_id == ctx.user.id:
            raise ValidationError("You cannot remove yourself from the tenant")
        if not self.members.get_membership(user_id, tenant_id):
            raise NotFoundError("User is not a member of this tenant")

        self.members.delete_where(tenant_id=tenant_id, user_id=user_id)
        self._audit(ctx, "remove_user", "tenant_user", user_id, tenant_id=tenant_id)
        self._notify(NotificationInput(
            user_id=user_id,
            type="user_removed",
            title="Removed from organization",
            message="You have been removed from an organization.",
            metadata={"tenant_id": tenant_id},
        ))

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    def set_module_enabled(self, ctx: AuthContext, tenant_id: str, module_id: str, is_enabled: bool) -> Dict[str, Any]:
        module = self.modules.get_by_id(module_id)
        if not module:
            raise NotFoundError("Module not found")
        if not is_enabled and module.get("slug") in REQUIRED_MODULES:
            raise ValidationError(f"The {module.get('slug')} module cannot be disabled")

        row = self.tenant_modules.set_enabled(tenant_id, module_id, is_enabled)
        self._audit(
            ctx, "enable_module" if is_enabled else "disable_module", "tenant_module", module_id,
            metadata={"slug": module.get("slug")}, tenant_id=tenant_id,
        )

        try:
            self.notifications.notify_tenant_admins(
                tenant_id,
                type="module_enabled" if is_enabled else "module_disabled",
                title=f"{module.get('name')} {'enabled' if is_enabled else 'disabled'}",
                message=f"The {module.get('name')} module was {'enabled' if is_enabled else 'disabled'} for your organization.",
                metadata={"module_id": module_id},
            )
        except RepositoryError as e:
            logger.warning(f"Failed to notify tenant admins of module change: {e.message}")

        return row or {"tenant_id": tenant_id, "module_id": module_id, "is_enabled": is_enabled}


def get_tenant_service() -> TenantService:
    return TenantService()
