# src/linksy/repositories/base.py
"""
Base Repository - Abstract Interface (Port) and Supabase Adapter

Defines the contract that all repository implementations must follow
(the "port" in ports and adapters terminology), plus the generic Supabase
adapter that table-specific repositories extend.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from postgrest.exceptions import APIError

from ..errors import RepositoryError, describe_database_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class QueryOptions:
    """Options for repository queries."""
    limit: int = 100
    offset: int = 0
    order_by: str = "created_at"
    order_desc: bool = True
    filters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QueryResult(Generic[T]):
    """Result wrapper for paginated repository queries."""
    data: List[T]
    total_count: int = 0
    has_more: bool = False
    next_offset: Optional[int] = None

    @property
    def count(self) -> int:
        return len(self.data)

    def pagination(self) -> Dict[str, Any]:
        return {
            "total": self.total_count,
            "hasMore": self.has_more,
            "nextOffset": self.next_offset,
        }


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository defining the interface for all data access.

    This is the PORT that defines what operations are available.
    Concrete implementations (adapters) provide the actual behavior.
    """

    @abstractmethod
    def get_all(self, options: Optional[QueryOptions] = None) -> List[T]:
        """
        Get all entities with optional filtering and pagination.

        Args:
            options: Query options for filtering, sorting, pagination

        Returns:
            List of entities
        """
        pass

    @abstractmethod
    def get_by_id(self, entity_id: str) -> Optional[T]:
        """
        Get a single entity by its ID.

        Args:
            entity_id: The unique identifier

        Returns:
            The entity or None if not found
        """
        pass

    @abstractmethod
    def get_count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Get the count of entities matching optional equality filters.
        """
        pass

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Optional[T]:
        """
        Create a new entity.

        Args:
            data: Entity data

        Returns:
            The created entity
        """
        pass

    @abstractmethod
    def update(self, entity_id: str, data: Dict[str, Any]) -> Optional[T]:
        """
        Update an existing entity.

        Args:
            entity_id: The ID of the entity to update
            data: Fields to update

        Returns:
            The updated entity or None if nothing matched
        """
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by ID.

        Returns:
            True if a row was deleted
        """
        pass

    def exists(self, entity_id: str) -> bool:
        """Check if an entity exists."""
        return self.get_by_id(entity_id) is not None


# =============================================================================
# SUPABASE ADAPTER
# =============================================================================

class SupabaseRepository(BaseRepository[Dict[str, Any]]):
    """
    Generic Supabase adapter over a single PostgREST table.

    Subclasses set `table_name` and add table-specific queries. Database
    failures surface as RepositoryError; "no rows" is never an error.
    """

    table_name: str = ""

    def __init__(self):
        self._client = None

    @property
    def client(self):
        """Lazy-load Supabase client."""
        if self._client is None:
            from ..infrastructure.supabase_client import get_supabase_client
            self._client = get_supabase_client()
            if self._client is None:
                raise RepositoryError("Database not configured")
        return self._client

    def _table(self):
        return self.client.table(self.table_name)

    def _execute(self, query, action: str):
        """Run a PostgREST query, translating API errors."""
        try:
            return query.execute()
        except APIError as e:
            logger.error(f"Failed to {action} ({self.table_name}): {e.message}")
            raise RepositoryError(describe_database_error(e.code, e.message), code=e.code) from e

    def _format_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return row

    def _rows(self, result) -> List[Dict[str, Any]]:
        return [self._format_row(row) for row in (result.data or [])]

    def _first(self, result) -> Optional[Dict[str, Any]]:
        rows = self._rows(result)
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def get_all(self, options: Optional[QueryOptions] = None) -> List[Dict[str, Any]]:
        options = options or QueryOptions()

        query = self._table().select("*")
        for column, value in options.filters.items():
            query = query.eq(column, value)
        query = query.order(options.order_by, desc=options.order_desc)
        query = query.range(options.offset, options.offset + options.limit - 1)

        return self._rows(self._execute(query, "list rows"))

    def get_by_id(self, entity_id: str) -> Optional[Dict[str, Any]]:
        query = self._table().select("*").eq("id", entity_id).limit(1)
        return self._first(self._execute(query, "get row"))

    def get_count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._table().select("id", count="exact")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        result = self._execute(query, "count rows")
        return result.count or 0

    def create(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self._execute(self._table().insert(data), "create row")
        return self._first(result)

    def create_many(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return self._rows(self._execute(self._table().insert(rows), "create rows"))

    def update(self, entity_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self._execute(self._table().update(data).eq("id", entity_id), "update row")
        return self._first(result)

    def delete(self, entity_id: str) -> bool:
        result = self._execute(self._table().delete().eq("id", entity_id), "delete row")
        return bool(result.data)

    # -------------------------------------------------------------------------
    # Filtered helpers
    # -------------------------------------------------------------------------

    def find(self, order_by: Optional[str] = None, order_desc: bool = False, **filters) -> List[Dict[str, Any]]:
        """All rows matching equality filters."""
        query = self._table().select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=order_desc)
        return self._rows(self._execute(query, "find rows"))

    def find_one(self, **filters) -> Optional[Dict[str, Any]]:
        query = self._table().select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        return self._first(self._execute(query.limit(1), "find row"))

    def update_where(self, filters: Dict[str, Any], data: Dict[str, Any]) -> List[Dict[str, Any]]:
        query = self._table().update(data)
        for column, value in filters.items():
            query = query.eq(column, value)
        return self._rows(self._execute(query, "update rows"))

    def delete_where(self, **filters) -> int:
        query = self._table().delete()
        for column, value in filters.items():
            query = query.eq(column, value)
        return len(self._execute(query, "delete rows").data or [])
