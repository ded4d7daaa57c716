"""
Configuration Module for the Grant Store

This module defines the configuration for the grant store, using Pydantic for
settings validation. Values are loaded from environment variables with defaults
suitable for development environments.

Key configuration areas include:
- Database connection
- Credential lifetimes and refresh policy
- Monitoring and error reporting
"""

import logging
from typing import Literal, Optional

from pydantic import AliasChoices, Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the grant store.

    Environment variables are automatically mapped to settings fields, with
    aliases provided where a conventional name exists. For example, the
    database connection string can be set with either PG_DSN or DATABASE_URL.
    """

    debug: bool = False
    """
    Enable debug mode for verbose logging.
    Set with DEBUG=true environment variable.
    """

    pg_dsn: PostgresDsn = Field(
        "postgresql+asyncpg://postgres:password@db/grantstore",
        validation_alias=AliasChoices("pg_dsn", "database_url"),
    )  # type: ignore
    """
    PostgreSQL connection string for the credential tables.
    Set with PG_DSN or DATABASE_URL environment variables.
    Default: postgresql+asyncpg://postgres:password@db/grantstore
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    # Credential lifetimes
    authorization_code_lifetime: int = 600  # 10 minutes
    """
    Lifetime in seconds of an issued authorization code.
    Set with AUTHORIZATION_CODE_LIFETIME environment variable.
    """

    access_token_lifetime: int = 3600  # 1 hour
    """
    Lifetime in seconds of an issued access token.
    Set with ACCESS_TOKEN_LIFETIME environment variable.
    """

    refresh_token_lifetime: Optional[int] = None
    """
    Lifetime in seconds of an issued refresh token. Unset means refresh
    tokens never expire.
    Set with REFRESH_TOKEN_LIFETIME environment variable.
    """

    rotate_on_refresh: bool = False
    """
    Revoke the presented refresh token and issue a new one on every refresh.
    When false, refresh tokens are static and remain valid after use.
    Set with ROTATE_ON_REFRESH environment variable.
    """

    refresh_token_leeway: int = 0
    """
    Seconds past a refresh token's expiry during which it is still accepted,
    to tolerate clock skew between workers.
    Set with REFRESH_TOKEN_LEEWAY environment variable.
    """

    # Monitoring and observability settings
    metrics_backend: Literal["none", "telegraf"] = "none"
    """
    Metrics backend for issuer instrumentation: 'telegraf' or 'none'.
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "grantstore"
    """
    Prefix for all StatsD metrics from this service.
    Set with STATSD_PREFIX environment variable.
    """

    @field_validator(
        "authorization_code_lifetime", "access_token_lifetime", "refresh_token_lifetime"
    )
    @classmethod
    def validate_lifetime(cls, v: Optional[int]) -> Optional[int]:
        """Lifetimes must be positive."""
        if v is not None and v <= 0:
            raise ValueError("credential lifetimes must be positive")
        return v

    @field_validator("refresh_token_leeway")
    @classmethod
    def validate_leeway(cls, v: int) -> int:
        if v < 0:
            raise ValueError("refresh_token_leeway must not be negative")
        return v
