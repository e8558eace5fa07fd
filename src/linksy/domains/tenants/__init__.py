# src/linksy/domains/tenants/__init__.py
"""
Tenants Domain - Organizations, members and modules

This domain handles:
- Tenant lifecycle (site admin)
- Member roles and removal, with notifications
- The module catalog and per-tenant module switches
"""
