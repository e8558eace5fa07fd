# src/linksy/domains/webhooks/__init__.py
"""
Webhooks Domain - Signed outbound HTTP callbacks

This domain handles:
- Signing and delivering ticket lifecycle events to tenant endpoints
- Recording every delivery attempt
- Webhook management routes (CRUD, secret reveal, test send)
"""
