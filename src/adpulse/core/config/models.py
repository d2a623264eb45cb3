"""
Pydantic configuration models for AdPulse.

These models provide type-safe configuration with validation for:
- Graph API connection settings
- Rate limiting, caching and pagination limits
- Credentials lookup
- The periodic sync job
- Logging
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from adpulse.core.query.builder import DEFAULT_FIELDS
from adpulse.core.query.descriptor import normalize_account_id


# =============================================================================
# Graph API
# =============================================================================


class GraphApiConfig(BaseModel):
    """Upstream API connection settings."""

    base_url: str = Field(
        default="https://graph.facebook.com",
        description="Graph API root URL",
    )
    api_version: str = Field(
        default="v21.0",
        pattern=r"^v\d+\.\d+$",
        description="Graph API version segment",
    )
    timeout_seconds: float = Field(
        default=60.0,
        ge=1.0,
        le=300.0,
        description="Per-request timeout in seconds",
    )
    page_size: int = Field(
        default=1000,
        ge=1,
        le=5000,
        description="Rows requested per page (limit parameter)",
    )
    fields: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FIELDS),
        min_length=1,
        description="Insight fields requested on every call",
    )


# =============================================================================
# Rate limiting / caching / pagination
# =============================================================================


class RateLimitConfig(BaseModel):
    """Admission queue limits, shared by every upstream call."""

    max_concurrent: int = Field(
        default=2,
        ge=1,
        le=20,
        description="Max units of work running at once",
    )
    min_interval_ms: int = Field(
        default=4000,
        ge=0,
        description="Minimum delay between two admissions in milliseconds",
    )


class CacheConfig(BaseModel):
    """In-memory row cache settings."""

    ttl_seconds: float = Field(
        default=180.0,
        ge=0.0,
        description="Lifetime of a cached row set",
    )


class PaginationConfig(BaseModel):
    """Page ceilings for cursor pagination."""

    max_pages: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Page ceiling for insights fetches",
    )
    account_max_pages: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Page ceiling for ad account discovery",
    )
    account_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Accounts requested per discovery page",
    )


class CredentialsConfig(BaseModel):
    """Where to find the access token."""

    access_token_env: str = Field(
        default="META_ACCESS_TOKEN",
        min_length=1,
        description="Environment variable holding the Graph API access token",
    )


# =============================================================================
# Sync job
# =============================================================================


class SyncConfig(BaseModel):
    """Periodic insights sync settings."""

    interval_minutes: int = Field(
        default=60,
        ge=1,
        description="Minutes between scheduled sync runs",
    )
    lookback_minutes: int = Field(
        default=90,
        ge=1,
        description="How far back each run reaches; converted to whole dates",
    )
    account_ids: list[str] = Field(
        default_factory=list,
        description="Accounts to sync; empty means discover via me/adaccounts",
    )
    output_path: Path = Field(
        default=Path("data/insights.jsonl"),
        description="JSON lines file receiving normalized rows",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Extra attempts per account on upstream failure",
    )

    @field_validator("account_ids")
    @classmethod
    def normalize_accounts(cls, v: list[str]) -> list[str]:
        """Strip the act_ prefix and drop blanks."""
        return [acc for acc in (normalize_account_id(item) for item in v) if acc]


# =============================================================================
# Logging
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    file: Path | None = Field(
        default=Path("logs/adpulse.log"),
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


# =============================================================================
# Application
# =============================================================================


class AppConfig(BaseModel):
    """Top-level application configuration."""

    api: GraphApiConfig = Field(default_factory=GraphApiConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
