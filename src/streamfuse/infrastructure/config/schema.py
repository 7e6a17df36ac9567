"""Pydantic configuration models with validation."""

from __future__ import annotations

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

from streamfuse.domain.entities.streams import GIB, MIB, FilterPolicy

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
DebridService = Literal["realdebrid", "torbox", "alldebrid"]


class FilterConfig(BaseModel):
    """Admission thresholds (YAML section: filter.*)."""

    min_size_movie_bytes: int = Field(
        default=200 * MIB,
        description="Movies below this size are rejected as samples/fakes.",
    )
    min_size_episode_bytes: int = Field(
        default=50 * MIB,
        description="Episodes (per-episode estimate for packs) below this are rejected.",
    )
    max_size_bytes: int = Field(
        default=10 * GIB,
        description="Candidates above this size are rejected. 0 = no cap.",
    )
    exclude_patterns: list[str] = Field(
        default_factory=list,
        description="Case-insensitive patterns; plain words match on word boundaries.",
    )
    title_match_threshold: int = Field(
        default=80,
        description="Minimum rapidfuzz token_set_ratio (0-100). 0 disables.",
    )
    year_tolerance: int = Field(
        default=1,
        description="Allowed year difference for movies (+/- N years).",
    )


class ProvidersConfig(BaseModel):
    """Upstream providers (YAML section: providers.*)."""

    enabled: list[str] = Field(
        default_factory=lambda: ["tpb", "knaben", "zilean"],
        description="Provider names to query, see providers/registry.py.",
    )
    priority: list[str] = Field(
        default_factory=list,
        description="Dedup tie-break order (earlier wins). Defaults to `enabled`.",
    )
    per_provider_timeout_ms: int = Field(
        default=10_000,
        description="Per-provider timeout in milliseconds.",
    )
    max_concurrent: int = Field(
        default=8,
        description="Max providers queried at the same time.",
    )
    tpb_url: str = Field(default="https://apibay.org")
    knaben_url: str = Field(default="https://api.knaben.org/v1")
    zilean_url: str = Field(default="https://zilean.elfhosted.com")

    @field_validator("per_provider_timeout_ms", "max_concurrent")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @property
    def effective_priority(self) -> list[str]:
        return self.priority or self.enabled


class ExtractorsConfig(BaseModel):
    """Embed extraction (YAML section: extractors.*)."""

    concurrency_limit: int = Field(
        default=5,
        description="Max embed pages resolved at the same time.",
    )
    timeout_seconds: float = Field(
        default=15.0,
        description="Per-URL extraction timeout in seconds.",
    )
    resolve_inline: bool = Field(
        default=False,
        description="Resolve embeds while answering /stream instead of via /play.",
    )
    mediaflow_url: Optional[str] = Field(
        default=None,
        description="MediaFlow proxy base URL (enables MixDrop/Streamtape).",
    )
    mediaflow_password: Optional[str] = Field(
        default=None,
        description="MediaFlow proxy api_password.",
    )

    @field_validator("concurrency_limit")
    @classmethod
    def _validate_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("concurrency_limit must be > 0")
        return v


class DebridConfig(BaseModel):
    """Debrid instant availability (YAML section: debrid.*)."""

    service: Optional[DebridService] = Field(
        default=None,
        description="Debrid service to check; unset disables the check.",
    )
    api_key: Optional[str] = Field(default=None, description="Debrid API token.")
    batch_delay_seconds: float = Field(
        default=0.5,
        description="Pause between consecutive availability batches.",
    )


class SortingConfig(BaseModel):
    """Final ordering weights (YAML section: sorting.*)."""

    resolution_scores: dict[str, int] = Field(
        default={"4K": 2160, "1080p": 1080, "720p": 720, "480p": 480},
        description="Score per canonical resolution label (higher first).",
    )
    preferred_languages: list[str] = Field(
        default_factory=lambda: ["it", "multi"],
        description="Language codes ranked first, in order.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/filter/providers/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="streamfuse", description="Application name.")
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
        description="HTTP timeout in seconds for upstream calls.",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
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

    # TMDB API key (collection lookups)
    tmdb_api_key: str | None = Field(
        default=None,
        description="TMDB API key for collection item lookup.",
    )

    filter: FilterConfig = Field(default_factory=FilterConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    extractors: ExtractorsConfig = Field(default_factory=ExtractorsConfig)
    debrid: DebridConfig = Field(default_factory=DebridConfig)
    sorting: SortingConfig = Field(default_factory=SortingConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    @property
    def per_provider_timeout_seconds(self) -> float:
        return self.providers.per_provider_timeout_ms / 1000.0

    def filter_policy(self) -> FilterPolicy:
        """Immutable admission policy; raises ConfigError when inconsistent."""
        return FilterPolicy(
            min_size_movie_bytes=self.filter.min_size_movie_bytes,
            min_size_episode_bytes=self.filter.min_size_episode_bytes,
            max_size_bytes=self.filter.max_size_bytes,
            exclude_patterns=tuple(self.filter.exclude_patterns),
            title_match_threshold=self.filter.title_match_threshold,
            year_tolerance=self.filter.year_tolerance,
        )

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "filter": self.filter.model_dump(),
            "providers": self.providers.model_dump(),
            "extractors": self.extractors.model_dump(),
            "debrid": self.debrid.model_dump(exclude={"api_key"}),
            "sorting": self.sorting.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read STREAMFUSE_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - STREAMFUSE_LOG_LEVEL
    - STREAMFUSE_MIN_SIZE_MOVIE_BYTES
    - STREAMFUSE_EXCLUDE_PATTERNS='["cam", "telesync"]'
    - STREAMFUSE_PER_PROVIDER_TIMEOUT_MS
    - STREAMFUSE_DEBRID_API_KEY
    """

    model_config = SettingsConfigDict(
        env_prefix="STREAMFUSE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    min_size_movie_bytes: Optional[int] = None
    min_size_episode_bytes: Optional[int] = None
    max_size_bytes: Optional[int] = None
    exclude_patterns: Optional[list[str]] = None

    providers_enabled: Optional[list[str]] = None
    per_provider_timeout_ms: Optional[int] = None

    extractor_concurrency_limit: Optional[int] = None
    mediaflow_url: Optional[str] = None
    mediaflow_password: Optional[str] = None

    debrid_service: Optional[DebridService] = None
    debrid_api_key: Optional[str] = None

    tmdb_api_key: Optional[str] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
