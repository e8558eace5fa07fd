# src/linksy/domains/providers/__init__.py
"""
Providers Domain - Service organization directory

This domain handles:
- Provider CRUD with field-level edit rights
- Contacts and the default referral handler
- Provider notes with private visibility
- Duplicate detection and merge
"""
