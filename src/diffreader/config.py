"""Configuration management."""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from diffreader.exceptions import ConfigError


class DiffReaderConfig(BaseSettings):
    """Configuration for diffreader parsing and CLI output."""

    model_config = SettingsConfigDict(
        env_prefix="DIFFREADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Parser settings
    strict: bool = False
    warn_on_parse_error: bool = False
    keep_raw_diff: bool = False

    # Parallel parsing
    max_workers: int | None = Field(default=None, ge=1)
    min_parallel_blocks: int = Field(default=2, ge=1)

    # Logging
    verbose: bool = False


@lru_cache
def _get_config_cached() -> DiffReaderConfig:
    """Cached configuration lookup from environment and .env only."""
    return DiffReaderConfig()


def get_config(clear_cache: bool = False, **overrides: Any) -> DiffReaderConfig:
    """Get configuration instance.

    Args:
        clear_cache: If True, clear the cache before returning config.
        **overrides: Explicit field values; these take precedence over the
            environment and bypass the cache.

    Raises:
        ConfigError: If a setting fails validation.
    """
    if clear_cache:
        _get_config_cached.cache_clear()

    try:
        if overrides:
            return DiffReaderConfig(**overrides)
        return _get_config_cached()
    except ValidationError as e:
        raise ConfigError(f"Invalid diffreader configuration: {e}") from e
