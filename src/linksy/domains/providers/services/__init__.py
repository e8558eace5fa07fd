# src/linksy/domains/providers/services/__init__.py
"""
Providers Domain Services
"""

from .contact_merge_service import ContactMergeService, get_contact_merge_service, group_contacts_by_email
from .duplicates import calculate_similarity, find_duplicate_groups, levenshtein_distance
from .merge_service import ProviderMergeService, get_merge_service

__all__ = [
    "ContactMergeService",
    "ProviderMergeService",
    "calculate_similarity",
    "find_duplicate_groups",
    "get_contact_merge_service",
    "get_merge_service",
    "group_contacts_by_email",
    "levenshtein_distance",
]
