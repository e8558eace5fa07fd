# src/linksy/domains/tenants/constants.py
"""
Tenants Domain Constants
"""

TENANT_ROLES = ["admin", "member"]

# Modules every tenant must keep enabled
REQUIRED_MODULES = ["core"]

# Modules switched on for a new tenant
DEFAULT_MODULES = ["core", "users", "notifications"]

SLUG_PATTERN = r"^[a-z0-9-]+$"

DEFAULT_AUDIT_LOG_LIMIT = 50
MAX_AUDIT_LOG_LIMIT = 100
