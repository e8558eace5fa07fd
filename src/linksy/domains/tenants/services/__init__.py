# src/linksy/domains/tenants/services/__init__.py
"""
Tenants Domain Services
"""

from .tenant_service import TenantService, get_tenant_service

__all__ = ["TenantService", "get_tenant_service"]
