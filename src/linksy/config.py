"""
Configuration loader for Linksy.
Loads configuration from YAML files and environment variables.
"""

from typing import Dict, Any, Optional
from pathlib import Path
import yaml
import os
from pydantic import BaseModel, ConfigDict, Field
import logging

logger = logging.getLogger(__name__)


class RateLimitConfig(BaseModel):
    """Rate limit tiers, written as "<count>/<unit>" strings."""

    global_limit: str = "100/minute"
    auth_limit: str = "5/15minutes"
    upload_limit: str = "10/minute"
    public_limit: str = "10/minute"

    # Housekeeping for the in-memory store
    cleanup_interval_seconds: int = 300
    idle_ttl_seconds: int = 3600

    model_config = ConfigDict(extra="allow")


class WebhookConfig(BaseModel):
    """Outbound webhook delivery settings."""

    timeout_seconds: float = 10.0
    user_agent: str = "Linksy-Webhooks/1.0"
    response_body_limit: int = 2000

    model_config = ConfigDict(extra="allow")


class TicketConfig(BaseModel):
    """Referral intake guards and reporting defaults."""

    duplicate_window_days: int = 7
    per_email_hourly_limit: int = 5
    max_active_referrals_per_client: int = 4
    ticket_number_base: int = 2000
    aging_threshold_hours: int = 48

    model_config = ConfigDict(extra="allow")


class ProviderConfig(BaseModel):
    """Provider directory maintenance defaults."""

    duplicate_threshold: float = 0.7
    duplicate_limit: int = 50

    model_config = ConfigDict(extra="allow")


class LinksyConfig(BaseModel):
    """Main Linksy configuration."""

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8001
    api_prefix: str = "/api"
    app_url: str = "http://localhost:3000"

    # Hosted database
    supabase_url: str = ""
    supabase_key: str = ""

    # Optional shared store for rate limiting across instances
    redis_url: str = ""

    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    webhooks: WebhookConfig = Field(default_factory=WebhookConfig)
    tickets: TicketConfig = Field(default_factory=TicketConfig)
    providers: ProviderConfig = Field(default_factory=ProviderConfig)

    model_config = ConfigDict(extra="allow")


class ConfigLoader:
    """Load and manage Linksy configuration."""

    def __init__(self, config_dir: str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
        """
        self.config_dir = Path(config_dir)
        self.config: Optional[LinksyConfig] = None
        self.load()

    def load(self) -> LinksyConfig:
        """Load configuration from YAML and environment variables."""

        env = os.getenv("LINKSY_ENV", "development")
        config_file = self.config_dir / f"{env}.yaml"

        config_data = self._load_yaml(self.config_dir / "default.yaml")

        if config_file.exists():
            _deep_update(config_data, self._load_yaml(config_file))
        else:
            logger.warning(f"Config file not found: {config_file}, using defaults")

        _deep_update(config_data, self._load_from_env())

        self.config = LinksyConfig(**config_data)

        logger.info(f"Configuration loaded (environment: {self.config.environment})")

        return self.config

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML config file."""
        if not path.exists():
            return {}

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
                return data or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load YAML config {path}: {e}")
            return {}

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if environment := os.getenv("LINKSY_ENV"):
            config["environment"] = environment
        if log_level := os.getenv("LINKSY_LOG_LEVEL"):
            config["log_level"] = log_level.upper()
        if api_port := os.getenv("LINKSY_API_PORT"):
            config["api_port"] = int(api_port)
        if app_url := os.getenv("APP_URL"):
            config["app_url"] = app_url

        # Server-side code talks to the database with the service role key
        if supabase_url := os.getenv("SUPABASE_URL"):
            config["supabase_url"] = supabase_url
        supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_KEY")
        if supabase_key:
            config["supabase_key"] = supabase_key

        if redis_url := os.getenv("REDIS_URL"):
            config["redis_url"] = redis_url

        if webhook_timeout := os.getenv("WEBHOOK_TIMEOUT_SECONDS"):
            config["webhooks"] = {"timeout_seconds": float(webhook_timeout)}

        return config

    def get(self) -> LinksyConfig:
        """Get current configuration."""
        if not self.config:
            self.load()
        return self.config

    def reload(self):
        """Reload configuration (useful for development)."""
        logger.info("Reloading configuration...")
        self.load()


def _deep_update(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested sections instead of replacing them wholesale."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


# Global config instance
_global_config_loader: Optional[ConfigLoader] = None


def get_config() -> LinksyConfig:
    """Get the global Linksy configuration."""
    global _global_config_loader
    if _global_config_loader is None:
        _global_config_loader = ConfigLoader(os.getenv("LINKSY_CONFIG_DIR", "config"))
    return _global_config_loader.get()


def initialize_config(config_dir: str = "config") -> LinksyConfig:
    """Initialize the global configuration loader."""
    global _global_config_loader
    _global_config_loader = ConfigLoader(config_dir)
    return _global_config_loader.get()
