"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(default=["*"])
    allow_credentials: bool = False
    allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"])
    allow_headers: list[str] = Field(default=["*"])


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./claims.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @computed_field
    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite."""
        return self.url.startswith("sqlite")


class StoreConfig(BaseModel):
    """User-claim store configuration."""

    backend: Literal["sql", "memory"] = Field(
        default="sql", description="Storage backend for user claim records"
    )
    table_name: str = Field(default="users", description="Name of the users table")
    identity_field: Literal["userAddress", "userId"] = Field(
        default="userAddress",
        description="Wire name of the primary identity key",
    )


class ConsentConfig(BaseModel):
    """Consent (proof template) service configuration."""

    app_name: str = Field(default="claim-registry", description="Application name")
    provider: str = Field(
        default="github-contributor", description="Claim provider requested"
    )
    callback_url: str = Field(
        default="http://localhost:8000/callback",
        description="Base URL the proof service posts claims back to",
    )
    template_base_url: str = Field(
        default="https://share.reclaimprotocol.org/template",
        description="Base URL of the issued template link",
    )
    verification: Literal["none", "provider"] = Field(
        default="none", description="Claim verification policy"
    )


class ViewsConfig(BaseModel):
    """Rendered view configuration."""

    redirect_url: str = Field(
        default="http://localhost:3000",
        description="Base URL users are sent back to after a claim",
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig, description="User claim store configuration"
    )
    consent: ConsentConfig = Field(
        default_factory=ConsentConfig, description="Consent service configuration"
    )
    views: ViewsConfig = Field(
        default_factory=ViewsConfig, description="Rendered view configuration"
    )
