# tests/conftest.py
"""
Pytest configuration and fixtures for the Linksy test suite.

Provides:
- In-memory Supabase mock (tables, filters, RPC functions, auth)
- FastAPI test client wired to the mock
- Auth context overrides for each role
- Sample data factories

Note: Tests never reach a real Supabase project; the mock stores rows in
plain dicts and evaluates PostgREST filters in Python.
"""

import json
import os
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator, List, Optional
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment before imports
os.environ["LINKSY_ENV"] = "test"
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"

from src.linksy.auth import AuthContext, AuthUser, TenantMembership, get_auth_context
from src.linksy.infrastructure import get_rate_limiter
from src.linksy.main import app
from tests.fixtures.data import CONTACT_ID, SITE_ADMIN_ID, TENANT_ADMIN_ID, TENANT_ID


# ============== Supabase Mock ==============

class MockSupabaseResponse:
    """Mock response from Supabase operations."""

    def __init__(self, data: Any = None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


def _like(pattern: str) -> "re.Pattern":
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _comparable(value: Any) -> Any:
    return "" if value is None else value


class MockSupabaseTable:
    """Chainable query builder evaluated against the in-memory store."""

    def __init__(self, table_name: str, data_store: Dict[str, List[Dict]]):
        self.table_name = table_name
        self._data_store = data_store
        self._action = "select"
        self._payload: Any = None
        self._predicates: List[Callable[[Dict], bool]] = []
        self._order: List[tuple] = []
        self._limit: Optional[int] = None
        self._range: Optional[tuple] = None
        self._count = False

    # Actions

    def select(self, columns: str = "*", count: Optional[str] = None):
        self._action = "select"
        self._count = count is not None
        return self

    def insert(self, data):
        self._action = "insert"
        self._payload = data
        return self

    def update(self, data: Dict):
        self._action = "update"
        self._payload = data
        return self

    def delete(self):
        self._action = "delete"
        return self

    # Filters

    def _where(self, predicate: Callable[[Dict], bool]):
        self._predicates.append(predicate)
        return self

    def eq(self, column: str, value: Any):
        return self._where(lambda row: row.get(column) == value)

    def neq(self, column: str, value: Any):
        return self._where(lambda row: row.get(column) != value)

    def in_(self, column: str, values: List[Any]):
        values = list(values)
        return self._where(lambda row: row.get(column) in values)

    def gt(self, column: str, value: Any):
        return self._where(lambda row: row.get(column) is not None and row.get(column) > value)

    def gte(self, column: str, value: Any):
        return self._where(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lt(self, column: str, value: Any):
        return self._where(lambda row: row.get(column) is not None and row.get(column) < value)

    def lte(self, column: str, value: Any):
        return self._where(lambda row: row.get(column) is not None and row.get(column) <= value)

    def ilike(self, column: str, pattern: str):
        regex = _like(pattern)
        return self._where(lambda row: row.get(column) is not None and bool(regex.match(str(row.get(column)))))

    def is_(self, column: str, value: Any):
        if value in ("null", None):
            return self._where(lambda row: row.get(column) is None)
        return self._where(lambda row: row.get(column) == value)

    def contains(self, column: str, values: List[Any]):
        return self._where(lambda row: all(v in (row.get(column) or []) for v in values))

    # Modifiers

    def order(self, column: str, desc: bool = False):
        self._order.append((column, desc))
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    # Execution

    def _matches(self, row: Dict) -> bool:
        return all(predicate(row) for predicate in self._predicates)

    def execute(self) -> MockSupabaseResponse:
        rows = self._data_store.setdefault(self.table_name, [])

        if self._action == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            created = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                created.append(dict(row))
            return MockSupabaseResponse(data=created)

        matched = [row for row in rows if self._matches(row)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return MockSupabaseResponse(data=[dict(row) for row in matched])

        if self._action == "delete":
            self._data_store[self.table_name] = [row for row in rows if row not in matched]
            return MockSupabaseResponse(data=[dict(row) for row in matched])

        for column, desc in reversed(self._order):
            matched = sorted(matched, key=lambda row: _comparable(row.get(column)), reverse=desc)

        total = len(matched)
        if self._range:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[:self._limit]

        return MockSupabaseResponse(data=[dict(row) for row in matched], count=total if self._count else None)


class MockSupabaseClient:
    """Mock Supabase client for testing."""

    def __init__(self):
        self._data_store: Dict[str, List[Dict]] = {}
        self._rpc_results: Dict[str, Any] = {}
        self.rpc_calls: List[tuple] = []
        self.auth = MagicMock()

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(name, self._data_store)

    def rpc(self, function_name: str, params: Dict = None):
        """Mock RPC call; ticket events are written to linksy_ticket_events."""
        params = params or {}
        self.rpc_calls.append((function_name, params))
        mock = MagicMock()

        if function_name == "linksy_record_ticket_event":
            row = {
                "ticket_id": params.get("p_ticket_id"),
                "event_type": params.get("p_event_type"),
                "actor_id": params.get("p_actor_id"),
                "actor_type": params.get("p_actor_type"),
                "previous_state": params.get("p_previous_state"),
                "new_state": params.get("p_new_state"),
                "reason": params.get("p_reason"),
                "notes": params.get("p_notes"),
                "metadata": json.loads(params.get("p_metadata") or "{}"),
            }
            created = self.table("linksy_ticket_events").insert(row).execute()
            mock.execute.return_value = MockSupabaseResponse(data=created.data[0]["id"])
            return mock

        mock.execute.return_value = MockSupabaseResponse(data=self._rpc_results.get(function_name, []))
        return mock

    def set_rpc_result(self, function_name: str, result: Any):
        """Set the result for an RPC call."""
        self._rpc_results[function_name] = result

    def seed_data(self, table_name: str, data: List[Dict]):
        """Seed test data into a table."""
        self._data_store[table_name] = [dict(row) for row in data]

    def rows(self, table_name: str) -> List[Dict]:
        return self._data_store.get(table_name, [])

    def clear(self):
        """Clear all test data."""
        self._data_store.clear()
        self._rpc_results.clear()
        self.rpc_calls.clear()


@pytest.fixture(scope="function")
def mock_supabase() -> Generator[MockSupabaseClient, None, None]:
    """
    Mock Supabase client patched in for every repository.

    Repositories resolve the client lazily, so patching the factory is enough.
    """
    client = MockSupabaseClient()
    with patch("src.linksy.infrastructure.supabase_client.get_supabase_client", return_value=client):
        yield client


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Every test starts with empty rate limit windows."""
    get_rate_limiter().clear()
    yield
    get_rate_limiter().clear()


# ============== Auth Fixtures ==============

def make_context(
    user_id: str,
    role: str = "user",
    tenant_id: Optional[str] = None,
    tenant_role: str = "member",
    email: Optional[str] = None,
) -> AuthContext:
    return AuthContext(
        user=AuthUser(id=user_id, email=email or f"{user_id}@example.org", role=role),
        tenant_membership=TenantMembership(tenant_id=tenant_id, role=tenant_role) if tenant_id else None,
    )


@pytest.fixture
def site_admin() -> AuthContext:
    return make_context(SITE_ADMIN_ID, role="site_admin", tenant_id=TENANT_ID, tenant_role="admin")


@pytest.fixture
def tenant_admin() -> AuthContext:
    return make_context(TENANT_ADMIN_ID, role="tenant_admin", tenant_id=TENANT_ID, tenant_role="admin")


@pytest.fixture
def provider_contact() -> AuthContext:
    return make_context(CONTACT_ID, tenant_id=TENANT_ID)


@pytest.fixture
def login():
    """Override the auth dependency for the rest of the test."""
    def _login(ctx: AuthContext):
        app.dependency_overrides[get_auth_context] = lambda: ctx
        return ctx
    yield _login
    app.dependency_overrides.pop(get_auth_context, None)


# ============== FastAPI Client Fixtures ==============

@pytest.fixture(scope="function")
def client(mock_supabase) -> Generator[TestClient, None, None]:
    """FastAPI test client with mocked Supabase and no caller signed in."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client, login, site_admin) -> TestClient:
    login(site_admin)
    return client


@pytest.fixture
def tenant_client(client, login, tenant_admin) -> TestClient:
    login(tenant_admin)
    return client


@pytest.fixture
def contact_client(client, login, provider_contact) -> TestClient:
    login(provider_contact)
    return client


# ============== Sample Data Factories ==============

@pytest.fixture
def provider_factory():
    """Factory for provider rows."""
    def _create_provider(
        provider_id: str = "prov-1",
        name: str = "Harbor Food Pantry",
        tenant_id: Optional[str] = TENANT_ID,
        **extra,
    ) -> Dict[str, Any]:
        return {
            "id": provider_id,
            "name": name,
            "slug": name.lower().replace(" ", "-"),
            "sector": "nonprofit",
            "provider_status": "active",
            "tenant_id": tenant_id,
            "created_at": "2024-01-10T10:00:00+00:00",
            **extra,
        }
    return _create_provider


@pytest.fixture
def ticket_factory():
    """Factory for ticket rows."""
    def _create_ticket(
        ticket_id: str = "ticket-1",
        provider_id: Optional[str] = "prov-1",
        status: str = "pending",
        created_at: str = "2024-01-15T10:00:00+00:00",
        **extra,
    ) -> Dict[str, Any]:
        return {
            "id": ticket_id,
            "ticket_number": f"R-20{ticket_id[-1]}1-07",
            "site_id": TENANT_ID,
            "provider_id": provider_id,
            "need_id": "need-1",
            "client_name": "Dana Reyes",
            "client_email": "dana@example.org",
            "client_phone": None,
            "status": status,
            "reassignment_count": 0,
            "assigned_to": None,
            "created_at": created_at,
            **extra,
        }
    return _create_ticket


@pytest.fixture
def contact_factory():
    """Factory for provider contact rows."""
    def _create_contact(
        contact_id: str = "contact-1",
        user_id: str = CONTACT_ID,
        provider_id: str = "prov-1",
        **extra,
    ) -> Dict[str, Any]:
        return {
            "id": contact_id,
            "user_id": user_id,
            "provider_id": provider_id,
            "email": f"{user_id}@example.org",
            "provider_role": "user",
            "is_default_referral_handler": False,
            "status": "active",
            "created_at": "2024-01-10T10:00:00+00:00",
            **extra,
        }
    return _create_contact


# ============== Assertion Helpers ==============

@pytest.fixture
def assert_response_success():
    """Helper to assert successful API responses."""
    def _assert(response, status_code: int = 200):
        assert response.status_code == status_code, f"Expected {status_code}, got {response.status_code}: {response.text}"
        return response.json()
    return _assert


@pytest.fixture
def assert_response_error():
    """Helper to assert error API responses."""
    def _assert(response, status_code: int = 400, error: str = None):
        assert response.status_code == status_code, f"Expected {status_code}, got {response.status_code}: {response.text}"
        if error:
            assert error in response.json().get("error", "")
        return response.json()
    return _assert
