"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from reelarr.infrastructure.common.headers import DEFAULT_USER_AGENT

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackend = Literal["diskcache", "memory"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class ProviderOverride(BaseModel):
    """Per-provider runtime override (YAML section: providers.overrides.<id>)."""

    enabled: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=0)


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/providers/tmdb).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="reelarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=20.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for upstream requests.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects by default.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )
    http_max_retries: int = Field(
        default=2,
        validation_alias=AliasChoices(
            "http_max_retries",
            AliasPath("http", "max_retries"),
        ),
        description="Retries for 429/5xx and connection errors.",
    )
    http_backoff_base: float = Field(
        default=0.5,
        validation_alias=AliasChoices(
            "http_backoff_base",
            AliasPath("http", "backoff_base"),
        ),
        description="Base delay (seconds) of the exponential retry backoff.",
    )
    http_response_ttl_seconds: int = Field(
        default=300,
        validation_alias=AliasChoices(
            "http_response_ttl_seconds",
            AliasPath("http", "response_ttl_seconds"),
        ),
        description="TTL of cached listing/detail page bodies.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Cache (YAML section: cache.*)
    cache_backend: CacheBackend = Field(
        default="diskcache",
        validation_alias=AliasChoices(
            "cache_backend",
            AliasPath("cache", "backend"),
        ),
        description="Cache backend: 'diskcache' (SQLite) or 'memory'.",
    )
    cache_dir: Path = Field(
        default=Path("./.cache/reelarr"),
        validation_alias=AliasChoices(
            "cache_dir",
            AliasPath("cache", "dir"),
        ),
        description="Cache directory (disk).",
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        validation_alias=AliasChoices(
            "cache_ttl_seconds",
            AliasPath("cache", "ttl_seconds"),
        ),
        description="Cache TTL in seconds.",
    )
    cache_max_concurrent: int = Field(
        default=10,
        validation_alias=AliasChoices(
            "cache_max_concurrent",
            AliasPath("cache", "max_concurrent"),
        ),
        description="Max parallel cache ops (semaphore limit).",
    )

    # Providers (YAML section: providers.*)
    provider_url_document: str = Field(
        default="./config/provider_urls.json",
        validation_alias=AliasChoices(
            "provider_url_document",
            AliasPath("providers", "url_document"),
        ),
        description="URL or file path of the {id: {name, url}} base-URL document.",
    )
    base_url_ttl_seconds: float = Field(
        default=3600.0,
        validation_alias=AliasChoices(
            "base_url_ttl_seconds",
            AliasPath("providers", "base_url_ttl_seconds"),
        ),
        description="Whole-document TTL of the base-URL cache.",
    )
    provider_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "provider_timeout_seconds",
            AliasPath("providers", "timeout_seconds"),
        ),
        description="Per-provider call timeout during fan-out and fallback.",
    )
    provider_max_concurrent: int = Field(
        default=16,
        validation_alias=AliasChoices(
            "provider_max_concurrent",
            AliasPath("providers", "max_concurrent"),
        ),
        description="Max concurrently running provider calls per fan-out.",
    )
    extractor_timeout_seconds: float = Field(
        default=20.0,
        validation_alias=AliasChoices(
            "extractor_timeout_seconds",
            AliasPath("providers", "extractor_timeout_seconds"),
        ),
        description="Timeout for one landing-page extraction.",
    )
    provider_overrides: dict[str, ProviderOverride] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "provider_overrides",
            AliasPath("providers", "overrides"),
        ),
        description="Per-provider enabled/priority overrides keyed by provider id.",
    )

    # TMDB (YAML section: tmdb.*)
    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_api_key",
            AliasPath("tmdb", "api_key"),
        ),
        description="TMDB API key for the API-backed providers.",
    )
    tmdb_language: str = Field(
        default="en-US",
        validation_alias=AliasChoices(
            "tmdb_language",
            AliasPath("tmdb", "language"),
        ),
        description="Language passed to TMDB requests.",
    )

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds", "provider_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("cache_ttl_seconds", "http_max_retries")
    @classmethod
    def _validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @field_validator("provider_max_concurrent", "cache_max_concurrent")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("concurrency limits must be >= 1")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
                "max_retries": self.http_max_retries,
                "backoff_base": self.http_backoff_base,
                "response_ttl_seconds": self.http_response_ttl_seconds,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache_backend,
                "dir": str(self.cache_dir),
                "ttl_seconds": self.cache_ttl_seconds,
                "max_concurrent": self.cache_max_concurrent,
            },
            "providers": {
                "url_document": self.provider_url_document,
                "base_url_ttl_seconds": self.base_url_ttl_seconds,
                "timeout_seconds": self.provider_timeout_seconds,
                "max_concurrent": self.provider_max_concurrent,
                "extractor_timeout_seconds": self.extractor_timeout_seconds,
                "overrides": {
                    pid: o.model_dump(exclude_none=True)
                    for pid, o in self.provider_overrides.items()
                },
            },
            "tmdb": {"api_key": self.tmdb_api_key, "language": self.tmdb_language},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read REELARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - REELARR_HTTP_TIMEOUT_SECONDS
    - REELARR_PROVIDER_URL_DOCUMENT
    - REELARR_TMDB_API_KEY
    - REELARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="REELARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None
    http_max_retries: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackend] = None
    cache_dir: Optional[Path] = None
    cache_ttl_seconds: Optional[int] = None

    provider_url_document: Optional[str] = None
    provider_timeout_seconds: Optional[float] = None
    provider_max_concurrent: Optional[int] = None

    tmdb_api_key: Optional[str] = None
    tmdb_language: Optional[str] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
