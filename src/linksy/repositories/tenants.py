# src/linksy/repositories/tenants.py
"""
Tenant, membership and module repositories.
"""

import logging
from typing import Any, Dict, List, Optional

from .base import QueryResult, SupabaseRepository

logger = logging.getLogger(__name__)


class TenantRepository(SupabaseRepository):
    table_name = "tenants"

    def list_all(self) -> List[Dict[str, Any]]:
        return self.find(order_by="created_at", order_desc=True)

    def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return self.find_one(slug=slug)


class TenantUserRepository(SupabaseRepository):
    """Membership rows linking users to tenants with a role."""

    table_name = "tenant_users"

    def get_membership(self, user_id: str, tenant_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if tenant_id:
            return self.find_one(user_id=user_id, tenant_id=tenant_id)
        return self.find_one(user_id=user_id)

    def list_members(self, tenant_id: str) -> List[Dict[str, Any]]:
        return self.find(tenant_id=tenant_id, order_by="created_at")

    def list_admin_ids(self, tenant_id: str) -> List[str]:
        query = self._table().select("user_id").eq("tenant_id", tenant_id).eq("role", "admin")
        return [row["user_id"] for row in self._rows(self._execute(query, "list tenant admins"))]

    def list_member_ids(self, tenant_id: str) -> List[str]:
        query = self._table().select("user_id").eq("tenant_id", tenant_id)
        return [row["user_id"] for row in self._rows(self._execute(query, "list tenant members"))]


class ModuleRepository(SupabaseRepository):
    """Feature modules that tenants can switch on."""

    table_name = "modules"

    def list_all(self) -> List[Dict[str, Any]]:
        return self.find(order_by="name")

    def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return self.find_one(slug=slug)

    def get_by_slugs(self, slugs: List[str]) -> List[Dict[str, Any]]:
        if not slugs:
            return []
        query = self._table().select("*").in_("slug", slugs)
        return self._rows(self._execute(query, "load modules"))


class TenantModuleRepository(SupabaseRepository):
    """Per-tenant enable flags for modules."""

    table_name = "tenant_modules"

    def list_for_tenant(self, tenant_id: str, enabled_only: bool = False) -> List[Dict[str, Any]]:
        if enabled_only:
            return self.find(tenant_id=tenant_id, is_enabled=True)
        return self.find(tenant_id=tenant_id)

    def set_enabled(self, tenant_id: str, module_id: str, is_enabled: bool) -> Optional[Dict[str, Any]]:
        existing = self.find_one(tenant_id=tenant_id, module_id=module_id)
        if existing:
            return self.update(existing["id"], {"is_enabled": is_enabled})
        return self.create({"tenant_id": tenant_id, "module_id": module_id, "is_enabled": is_enabled})


class AuditLogRepository(SupabaseRepository):
    """Append-only record of administrative actions."""

    table_name = "audit_logs"

    def record(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        return self.create({
            "tenant_id": tenant_id,
            "user_id": user_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "metadata": metadata or {},
        })

    def search(
        self,
        tenant_id: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> QueryResult[Dict[str, Any]]:
        """Audit rows newest first; tenant_id None means every tenant."""
        query = (
            self._table()
            .select("*", count="exact")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
        )
        if tenant_id:
            query = query.eq("tenant_id", tenant_id)
        if action:
            query = query.eq("action", action)
        if user_id:
            query = query.eq("user_id", user_id)
        if from_date:
            query = query.gte("created_at", from_date)
        if to_date:
            query = query.lte("created_at", to_date)

        result = self._execute(query, "list audit logs")
        total = result.count or 0
        return QueryResult(data=self._rows(result), total_count=total, has_more=offset + limit < total)
