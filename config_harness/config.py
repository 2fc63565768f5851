"""
Config Harness - Configuration

Centralized configuration management using pydantic-settings.

All configuration is loaded from environment variables with sensible
defaults. The walker never reads the environment itself; callers resolve
a HarnessConfig once and pass the values in.

Environment Variables:
    # Fixtures
    TEST_SRCDIR: Root that fixture-relative paths are resolved against (default: .)
    MODEL_CONFIG_SANITY_RPATH: Explicit-config fixture tree, relative to TEST_SRCDIR
    AUTOFILL_SANITY_RPATH: Autofill fixture tree, relative to TEST_SRCDIR
    COPY_FIXTURES: Run against a temporary copy of the fixture tree (default: false)

    # Logging
    LOG_LEVEL: Logging level (default: INFO)
    LOG_FORMAT: Log format: json or text (default: text)

    # Metrics
    METRICS_ENABLED: Record Prometheus metrics (default: true)
    METRICS_FILE: Write metrics to this textfile after a run (default: unset)

Usage:
    from config_harness.config import get_config

    config = get_config()
    print(config.source_root)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class HarnessConfig(BaseSettings):
    """Harness configuration loaded from environment variables."""

    # =========================================================================
    # Fixture Configuration
    # =========================================================================

    test_srcdir: str = Field(
        default=".",
        description="Root directory fixture-relative paths are resolved against"
    )

    model_config_sanity_rpath: str = Field(
        default="config_harness/tests/testdata/model_config_sanity",
        description="Fixture tree validated without autofill and with a forced platform"
    )

    autofill_sanity_rpath: str = Field(
        default="config_harness/tests/testdata/autofill_sanity",
        description="Fixture tree validated with autofill and no platform override"
    )

    copy_fixtures: bool = Field(
        default=False,
        description="Validate a temporary copy so config rewrites leave fixtures untouched"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_format: str = Field(
        default="text",
        description="Log format (json or text)"
    )

    # =========================================================================
    # Metrics Configuration
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Record Prometheus metrics for validated models"
    )

    metrics_file: Optional[str] = Field(
        default=None,
        description="Prometheus textfile to write after a run"
    )

    @property
    def source_root(self) -> Path:
        return Path(self.test_srcdir)

    # =========================================================================
    # Pydantic Configuration
    # =========================================================================

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables
        protected_namespaces = ()


@lru_cache()
def get_config() -> HarnessConfig:
    """
    Get harness configuration (cached).

    Returns:
        HarnessConfig instance
    """
    return HarnessConfig()


def reload_config() -> HarnessConfig:
    """
    Reload configuration (clears cache).

    Returns:
        Fresh HarnessConfig instance
    """
    get_config.cache_clear()
    return get_config()
