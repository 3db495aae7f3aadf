"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses
- Single source of truth for all configurable values

EXTENSIBILITY:
- To add a response store backend: add its connection settings to StoreSettings
- To change dashboard defaults per deployment: set the ANALYTICS_* variables
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class StoreSettings:
    """Where survey responses are read from."""

    # "sqlite" (local database file) or "postgrest" (managed Postgres over REST)
    backend: str = field(default_factory=lambda: os.getenv("RESPONSE_STORE_BACKEND", "sqlite").lower())

    database_file: Path = field(
        default_factory=lambda: Path(os.getenv("SURVEYPULSE_DB", "surveypulse.db"))
    )

    supabase_url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    service_key: str = field(default_factory=lambda: os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""))
    table: str = field(default_factory=lambda: os.getenv("RESPONSES_TABLE", "survey_responses"))

    # Any fetch timeout belongs to the store client, not the engine
    timeout_seconds: int = field(default_factory=lambda: _env_int("STORE_TIMEOUT_SECONDS", 15))


@dataclass(frozen=True)
class AnalyticsSettings:
    """Dashboard computation defaults."""

    # IANA zone for day boundaries; empty = host time zone
    timezone: str = field(default_factory=lambda: os.getenv("ANALYTICS_TIMEZONE", ""))

    # Absorbs dashboard polling bursts only
    cache_ttl_seconds: int = field(default_factory=lambda: _env_int("DASHBOARD_CACHE_TTL_SECONDS", 15))


@dataclass(frozen=True)
class ValidationSettings:
    """Offline comparison tool settings."""

    api_url: str = field(default_factory=lambda: os.getenv("ANALYTICS_API_URL", ""))
    api_token: str = field(default_factory=lambda: os.getenv("ANALYTICS_API_TOKEN", ""))
    timeout_seconds: int = field(default_factory=lambda: _env_int("ANALYTICS_API_TIMEOUT_SECONDS", 30))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from surveypulse.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.analytics.cache_ttl_seconds)
    """

    store: StoreSettings = field(default_factory=StoreSettings)
    analytics: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if self.store.backend not in ("sqlite", "postgrest"):
            issues.append(
                f"ERROR: Unknown RESPONSE_STORE_BACKEND '{self.store.backend}'. "
                "Use 'sqlite' or 'postgrest'."
            )

        if self.store.backend == "postgrest" and not (self.store.supabase_url and self.store.service_key):
            issues.append(
                "ERROR: postgrest backend needs SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."
            )

        if self.store.backend == "sqlite" and not self.store.database_file.exists():
            issues.append(
                f"WARNING: Database file not found: {self.store.database_file}. "
                "An empty one will be created."
            )

        if self.analytics.cache_ttl_seconds <= 0:
            issues.append("WARNING: DASHBOARD_CACHE_TTL_SECONDS <= 0 disables the dashboard cache.")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
