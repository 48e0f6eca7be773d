"""
Shared configuration management for the Secrets Manager caching proxy.
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Hard per-call ceiling of BatchGetSecretValue.
MAX_BATCH_SIZE = 20


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SECRETS_PROXY_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Environment
    env: str = "local"
    log_level: str = "info"
    json_logs: bool = True

    # Backend
    aws_region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("SECRETS_PROXY_AWS_REGION", "AWS_REGION"),
    )
    aws_endpoint_url: Optional[str] = None
    backend_timeout_seconds: float = 10.0
    max_batch_size: int = MAX_BATCH_SIZE

    @field_validator("max_batch_size")
    @classmethod
    def _within_backend_ceiling(cls, value: int) -> int:
        if value < 1 or value > MAX_BATCH_SIZE:
            raise ValueError(f"max_batch_size must be between 1 and {MAX_BATCH_SIZE}")
        return value

    @field_validator("backend_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("backend_timeout_seconds must be positive")
        return value


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    host: str = "0.0.0.0"
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("SECRETS_PROXY_PORT", "PORT", "port"),
    )


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
