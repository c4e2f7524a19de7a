# ABOUTME: Application configuration using Pydantic Settings for environment variables
# ABOUTME: Rate limits, cache TTLs, request timeout, user agent and logging settings

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wiki_navigator.wiki.client import DEFAULT_USER_AGENT


class Config(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="WIKI_NAVIGATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # Upstream politeness
    rate_limit: float = Field(default=10.0, gt=0, description="Requests per second allowed against each wiki")
    request_timeout: float = Field(default=30.0, gt=0, description="Overall timeout in seconds for one API call")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent sent to every wiki")

    # Cache lifetimes (seconds)
    cache_ttl: float = Field(default=300.0, gt=0, description="TTL for assembled page content")
    cache_ttl_info: float = Field(default=3600.0, gt=0, description="TTL for wiki metadata")
    cache_ttl_search: float = Field(default=60.0, gt=0, description="TTL for search results")
    cache_sweep_interval: float = Field(default=60.0, gt=0, description="Seconds between expired-entry sweeps")

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )

    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")


# Global config instance - lazy loaded when first accessed
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates the config on first access, subsequent calls return the same instance.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment variables (used by tests)."""
    global _config_instance
    _config_instance = Config()
    return _config_instance
