"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field, field_validator


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(default=["http://localhost:8000"])
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RateLimiterConfig(BaseModel):
    """Login throttling configuration."""

    enabled: bool = Field(default=True, description="Enable login throttling")
    login_requests: int = Field(
        default=10, description="Login attempts allowed per window and client"
    )
    login_window_ms: int = Field(
        default=60000, description="Time window in milliseconds"
    )


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=False, description="Enable Redis session storage")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password and "@" not in self.url:
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )

    @field_validator("file", mode="before")
    @classmethod
    def _empty_file_disables_sink(cls, value: str | None) -> str | None:
        return value or None


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./catalog.db", description="Database connection URL"
    )
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @computed_field
    @property
    def password(self) -> str | None:
        """Resolve the database password.

        A mounted secrets file wins over an environment variable; when neither
        is configured the password embedded in the URL (if any) is used.
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e
        if self.password_env_var:
            password = os.getenv(self.password_env_var)
            if not password:
                raise ValueError(
                    f"Environment variable {self.password_env_var} not set"
                )
            return password

        from sqlalchemy.engine import make_url

        return make_url(self.url).password

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string with the resolved password."""
        from sqlalchemy.engine import make_url

        base_url = make_url(self.url)
        if self.is_sqlite:
            return self.url

        resolved_password = self.password
        if resolved_password and resolved_password != base_url.password:
            if base_url.password:
                logger.warning(
                    "Database password from secrets does not match the one in the URL. "
                    "Using password from secrets."
                )
            base_url = base_url.set(password=resolved_password)
        return base_url.render_as_string(hide_password=False)


class StorageConfig(BaseModel):
    """Cover image storage configuration."""

    covers_dir: str = Field(
        default="var/uploads/covers", description="Directory holding cover images"
    )
    covers_url_prefix: str = Field(
        default="/covers", description="URL prefix cover images are served under"
    )
    max_cover_size_mb: int = Field(
        default=5, description="Largest accepted cover upload in MB"
    )
    allowed_extensions: list[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png", ".gif", ".webp"],
        description="Accepted cover file extensions",
    )

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value
        ]


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    session_max_age: int = Field(
        default=3600, description="Session maximum age in seconds"
    )
    session_signing_secret: str | None = Field(
        default=None, description="Secret for signing CSRF tokens"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @field_validator("session_signing_secret", mode="before")
    @classmethod
    def _empty_secret_is_unset(cls, value: str | None) -> str | None:
        return value or None

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class SecurityConfig(BaseModel):
    """Security configuration for authentication, sessions and authorization."""

    admin_role: str = Field(
        default="ROLE_ADMIN", description="Role tag granting write access to books"
    )
    session_cookie_name: str = Field(
        default="user_session_id", description="Name of the session cookie"
    )
    secure_cookies: bool = Field(
        default=True, description="Mark cookies Secure in production"
    )
    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite cookie attribute"
    )
    csrf_field_name: str = Field(
        default="csrf_token", description="Form field carrying the CSRF token"
    )
    csrf_token_max_age_hours: int = Field(
        default=12, description="Maximum age for CSRF tokens in hours"
    )
    enable_client_fingerprinting: bool = Field(
        default=True, description="Bind sessions to the client user agent and IP"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig, description="Cover storage configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )
    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Login throttling configuration"
    )

    def validate_runtime(self) -> None:
        """Validate configuration for the current environment."""
        if self.app.environment == "production":
            if not self.app.session_signing_secret:
                raise ValueError("session_signing_secret must be configured in production")
            if self.database.is_sqlite:
                raise ValueError("SQLite is not supported in production")
            if "*" in self.app.cors.origins:
                raise ValueError(
                    "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
                )
        elif self.app.session_signing_secret is None:
            logger.warning(
                "session_signing_secret is not set; using an insecure development key"
            )
