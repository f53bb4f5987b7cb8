# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache naming, interception policy, monitor
thresholds, reconciliation timing and logging.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_NAME_RE = re.compile(r"^[A-Za-z0-9._]+$")


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache buckets ===
    cache_prefix: str = "app"
    cache_version: str = "v1"
    cache_backend: Literal["memory", "json", "sqlite"] = "memory"
    cache_root: Path = Path("~/.staleguard/profile")
    precache_urls: str = (
        "/,/index.html,/manifest.webmanifest,"
        "/icons/icon-192x192.png,/icons/icon-512x512.png"
    )

    # === Interception policy ===
    bypass_paths: str = "/api,/socket.io"
    bypass_hosts: str = r"supabase\.co"
    dev_tooling_patterns: str = (
        "/@vite/,/__vite_ping,/@react-refresh,/sockjs-node,"
        "/__webpack_hmr,/livereload,.hot-update."
    )
    navigation_timeout_s: float = 12.0
    resource_timeout_s: float = 10.0
    skip_waiting_on_install: bool = True

    # === Error monitor ===
    error_threshold: int = 3
    classified_error_threshold: int = 2
    load_timeout_s: float = 15.0

    # === Update reconciler ===
    version_endpoint: str = "/version.json"
    version_timeout_s: float = 5.0
    update_check_interval_s: float = 30 * 60
    reset_delay_s: float = 1.5
    worker_update_interval_s: float = 60 * 60

    # === Manual triggers ===
    environment: Literal["development", "production"] = "production"
    show_debug_tools: bool = False

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("cache_prefix", "cache_version")
    @classmethod
    def validate_bucket_token(cls, v: str) -> str:  # noqa: N805
        """Bucket name tokens must not contain the '-' separator."""
        if not _NAME_RE.match(v):
            raise ValueError(
                f"cache_prefix/cache_version must match [A-Za-z0-9._]+, got {v!r}"
            )
        return v

    @field_validator("error_threshold", "classified_error_threshold")
    @classmethod
    def validate_threshold(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("error thresholds must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.classified_error_threshold > self.error_threshold:
            errors.append(
                "CLASSIFIED_ERROR_THRESHOLD must be <= ERROR_THRESHOLD"
            )

        for name in (
            "navigation_timeout_s",
            "resource_timeout_s",
            "version_timeout_s",
            "load_timeout_s",
        ):
            if getattr(self, name) <= 0:
                errors.append(f"{name.upper()} must be > 0")

        if self.reset_delay_s < 0:
            errors.append("RESET_DELAY_S must be >= 0")

        if self.update_check_interval_s < 0:
            errors.append("UPDATE_CHECK_INTERVAL_S must be >= 0")

        if not self.version_endpoint.startswith("/"):
            errors.append("VERSION_ENDPOINT must be an origin-relative path")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def precache_urls_list(self) -> list[str]:
        """Parse comma-separated precache manifest."""
        return [u.strip() for u in self.precache_urls.split(",") if u.strip()]

    @property
    def bypass_paths_list(self) -> list[str]:
        """Parse comma-separated bypass path prefixes."""
        return [p.strip() for p in self.bypass_paths.split(",") if p.strip()]

    @property
    def bypass_hosts_list(self) -> list[str]:
        """Parse comma-separated bypass host patterns."""
        return [h.strip() for h in self.bypass_hosts.split(",") if h.strip()]

    @property
    def dev_tooling_patterns_list(self) -> list[str]:
        """Parse comma-separated development tooling URL fragments."""
        return [
            p.strip() for p in self.dev_tooling_patterns.split(",") if p.strip()
        ]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-page config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
