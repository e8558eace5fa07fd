# src/linksy/repositories/users.py
"""
User profile repository (the `users` table mirrors auth accounts).
"""

from typing import Any, Dict, List, Optional

from .base import SupabaseRepository


class UserRepository(SupabaseRepository):
    table_name = "users"

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.find_one(email=email)

    def list_site_admin_ids(self) -> List[str]:
        query = self._table().select("id").eq("role", "site_admin")
        return [row["id"] for row in self._rows(self._execute(query, "list site admins"))]

    def get_many(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        if not user_ids:
            return []
        query = self._table().select("id, email, full_name, role").in_("id", user_ids)
        return self._rows(self._execute(query, "load users"))
