"""
Shared configuration management for Feature Guard.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="FEATURE_GUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_socket_timeout: float = Field(default=5.0)
    redis_connect_timeout: float = Field(default=5.0)


class FeatureGuardConfig(BaseConfig):
    """Flag store and guard settings."""

    service_name: str = "feature_guard"

    # Namespace for every persisted flag key: <key_prefix>:<flag>:info|users
    key_prefix: str = Field(default="feature-guard")

    # Backend batch-size limit for SADD when writing allow-lists
    user_batch_size: int = Field(default=1000, gt=0)

    enable_metrics: bool = Field(default=True)


def get_config(**overrides: Any) -> FeatureGuardConfig:
    """Get configuration, optionally overriding values read from the environment."""
    return FeatureGuardConfig(**overrides)
