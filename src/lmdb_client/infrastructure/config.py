"""Configuration management for the LMDB client."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentOptions(BaseModel):
    """Options recognized when opening an environment.

    ``maxreaders`` and ``mapsize`` are optional: ``None`` leaves the engine
    default in place. Non-positive values are normalized the same way the
    engine setup treats them (unset for ``maxreaders`` / ``mapsize``, one
    table for ``maxdbs``).
    """

    flags: int = Field(default=0, ge=0, description="Bit-set of environment flags")
    mode: int = Field(default=0o755, ge=0, le=0o7777, description="File creation mode")
    maxreaders: int | None = Field(default=None, description="Maximum reader slots")
    maxdbs: int = Field(default=10, description="Maximum named tables")
    mapsize: int | None = Field(default=None, description="Memory map size in bytes")

    @field_validator("maxreaders", "mapsize")
    @classmethod
    def _unset_non_positive(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            return None
        return value

    @field_validator("maxdbs")
    @classmethod
    def _at_least_one_table(cls, value: int) -> int:
        return max(value, 1)


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    metrics_port: int | None = Field(
        default=None, ge=1, le=65535, description="Prometheus metrics port (disabled if unset)"
    )
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="lmdb_client", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the LMDB client."""

    model_config = SettingsConfigDict(
        env_prefix="LMDB_CLIENT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    environment: EnvironmentOptions = Field(default_factory=EnvironmentOptions)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
