# tests/unit/test_config_errors.py
"""
Unit tests for configuration loading and error rendering.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from src.linksy.config import ConfigLoader, LinksyConfig
from src.linksy.errors import (
    ConflictError,
    NotFoundError,
    RateLimitError,
    RepositoryError,
    describe_database_error,
    register_error_handlers,
)


class TestConfigLoader:

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LINKSY_ENV", "development")
        config = ConfigLoader(str(tmp_path)).get()

        assert isinstance(config, LinksyConfig)
        assert config.rate_limits.global_limit == "100/minute"
        assert config.tickets.max_active_referrals_per_client == 4
        assert config.providers.duplicate_threshold == 0.7

    def test_environment_file_overrides_default(self, tmp_path, monkeypatch):
        (tmp_path / "default.yaml").write_text("tickets:\n  duplicate_window_days: 7\n  aging_threshold_hours: 48\n")
        (tmp_path / "staging.yaml").write_text("tickets:\n  aging_threshold_hours: 24\n")
        monkeypatch.setenv("LINKSY_ENV", "staging")

        config = ConfigLoader(str(tmp_path)).get()

        assert config.environment == "staging"
        assert config.tickets.aging_threshold_hours == 24
        # Nested sections merge instead of being replaced
        assert config.tickets.duplicate_window_days == 7

    def test_env_vars_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LINKSY_ENV", "development")
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
        monkeypatch.setenv("WEBHOOK_TIMEOUT_SECONDS", "3.5")
        monkeypatch.setenv("LINKSY_LOG_LEVEL", "debug")

        config = ConfigLoader(str(tmp_path)).get()

        assert config.supabase_url == "https://example.supabase.co"
        assert config.supabase_key == "service-key"
        assert config.webhooks.timeout_seconds == 3.5
        assert config.log_level == "DEBUG"

    def test_bad_yaml_falls_back(self, tmp_path, monkeypatch):
        (tmp_path / "default.yaml").write_text("rate_limits: [unclosed\n")
        monkeypatch.setenv("LINKSY_ENV", "development")

        config = ConfigLoader(str(tmp_path)).get()

        assert config.rate_limits.public_limit == "10/minute"


class TestDatabaseErrors:

    def test_known_codes(self):
        assert describe_database_error("23505") == "This record already exists. Please use a different value."

    def test_plain_message_passes_through(self):
        assert describe_database_error("XX000", "column too long") == "column too long"

    def test_internal_message_is_hidden(self):
        assert describe_database_error(None, "operator does not exist: text::uuid") == (
            "A database error occurred. Please try again."
        )


class _Body(BaseModel):
    name: str


def _app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Ticket not found")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Duplicate referral detected", details={"duplicate": {"id": "t-1"}})

    @app.get("/limited")
    async def limited():
        raise RateLimitError("Too many requests. Please try again later.", headers={"Retry-After": "30"})

    @app.get("/db")
    async def db():
        raise RepositoryError("A database error occurred. Please try again.", code="XX000")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.post("/body")
    async def body(payload: _Body):
        return payload

    return app


class TestErrorHandlers:

    @pytest.fixture
    def app_client(self):
        return TestClient(_app(), raise_server_exceptions=False)

    def test_not_found(self, app_client):
        response = app_client.get("/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Ticket not found"}

    def test_details_are_merged(self, app_client):
        response = app_client.get("/conflict")
        assert response.status_code == 409
        assert response.json() == {"error": "Duplicate referral detected", "duplicate": {"id": "t-1"}}

    def test_headers_are_forwarded(self, app_client):
        response = app_client.get("/limited")
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"

    def test_repository_error_is_500(self, app_client):
        assert app_client.get("/db").status_code == 500

    def test_unhandled_error(self, app_client):
        response = app_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_request_validation_is_400(self, app_client):
        response = app_client.post("/body", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert response.json()["details"][0]["field"] == "name"
