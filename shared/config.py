"""
Shared configuration management for the Market Cache Layer.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("CACHE_ENV", "env"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("CACHE_LOG_LEVEL", "log_level"))

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("CACHE_REDIS_URL", "redis_url"),
    )
    redis_socket_timeout: float = Field(
        default=5.0,
        validation_alias=AliasChoices("CACHE_REDIS_SOCKET_TIMEOUT", "redis_socket_timeout"),
    )
    redis_connect_timeout: float = Field(
        default=5.0,
        validation_alias=AliasChoices("CACHE_REDIS_CONNECT_TIMEOUT", "redis_connect_timeout"),
    )

    # Caching
    cache_default_ttl: int = Field(
        default=300,
        ge=0,
        validation_alias=AliasChoices("CACHE_DEFAULT_TTL", "cache_default_ttl"),
    )

    # Simulated upstream providers
    provider_latency_ms: int = Field(
        default=100,
        ge=0,
        validation_alias=AliasChoices("CACHE_PROVIDER_LATENCY_MS", "provider_latency_ms"),
    )

    # Metrics exporter (optional standalone port)
    metrics_port: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("CACHE_METRICS_PORT", "metrics_port"),
    )


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
