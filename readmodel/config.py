"""
Configuration for the read model.

Uses pydantic-settings for environment variable loading. Settings are read
once when a ReadModel is constructed; the instance holds them for its whole
lifetime.

Invariants:
    - All settings have sensible defaults for local development
    - Secrets are never logged (use redis_endpoint for log output)

How to change safely:
    - Add new settings with defaults that keep existing deployments working
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class ReadModelSettings(BaseSettings):
    """Read model configuration loaded from environment."""

    # Redis connection
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_password: Optional[str] = Field(default=None, description="Redis AUTH password")
    redis_db: int = Field(default=0, ge=0, description="Redis database number")
    redis_url: Optional[str] = Field(
        default=None,
        description="Full redis:// URL, takes precedence over host/port when set",
    )

    # Query defaults
    page_size: int = Field(default=10, ge=1, description="Default items per page")
    temp_set_expire_seconds: int = Field(
        default=5,
        ge=1,
        description="TTL of cached union/intersection result sets",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level for setup_logging")
    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")

    model_config = {"env_prefix": "READMODEL_"}

    @property
    def redis_endpoint(self) -> str:
        """Connection target without credentials."""
        if self.redis_url:
            return self.redis_url.split("@")[-1]
        return f"{self.redis_host}:{self.redis_port}/{self.redis_db}"
