"""
Shared configuration management for the Rates service.
"""

from typing import Literal

from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RATES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_format: Literal["json", "console"] = Field(default="json")

    # Cache store
    cache_backend: Literal["redis", "memory"] = Field(default="redis")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_expire_seconds: PositiveInt = Field(default=300)
    cache_timeout_seconds: float = Field(default=2.0, gt=0)

    # User profile store
    user_store_backend: Literal["postgres", "memory"] = Field(default="postgres")
    postgres_dsn: str = Field(default="postgresql://localhost:5432/rates")

    # Upstream exchange-rate API
    exchange_rates_url: str = Field(default="https://api.coingecko.com/api/v3/exchange_rates")
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)


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
