# src/linksy/repositories/needs.py
"""
Need taxonomy repositories: categories and the needs filed under them.
"""

from typing import Any, Dict, List

from .base import SupabaseRepository


class NeedCategoryRepository(SupabaseRepository):
    table_name = "linksy_need_categories"

    def list_ordered(self) -> List[Dict[str, Any]]:
        query = (
            self._table()
            .select("id, name, slug, description, sort_order, airs_code, is_active")
            .order("sort_order")
        )
        return self._rows(self._execute(query, "list need categories"))


class NeedRepository(SupabaseRepository):
    table_name = "linksy_needs"

    def list_ordered(self) -> List[Dict[str, Any]]:
        query = self._table().select("id, category_id, name, synonyms, is_active").order("name")
        return self._rows(self._execute(query, "list needs"))
