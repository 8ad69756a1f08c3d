"""
Shared configuration management for the Data Governance Catalog.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="APP_ENV")
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    # PostgreSQL
    db_host: str = Field(default="postgres", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="governance_db", validation_alias="DB_NAME")
    db_user: str = Field(default="governance_user", validation_alias="DB_USER")
    db_password: str = Field(default="secure_password", validation_alias="DB_PASSWORD")
    db_pool_max_size: int = Field(default=20, validation_alias="DB_POOL_MAX_SIZE")
    db_connect_timeout: float = Field(default=2.0, validation_alias="DB_CONNECT_TIMEOUT")

    # Redis
    redis_host: str = Field(default="redis", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, validation_alias="REDIS_PASSWORD")
    redis_timeout: float = Field(default=5.0, validation_alias="REDIS_TIMEOUT")

    # Caching
    cache_ttl_seconds: int = Field(default=300, validation_alias="CACHE_TTL_SECONDS")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "catalog"
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
