"""Configuration schemas for taming.toml."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import (
    LogLevel,
    LogSinkType,
    PhaseName,
    ReasoningEffort,
)


class LogSinkConfig(BaseSchema):
    """Configuration for a single log sink.

    ``phases`` narrows phase events (including retries) to the listed phases;
    run-level events always pass. ``min_level`` drops quieter entries.
    """

    type: LogSinkType = Field(..., description="Log sink type (console|file|noop)")
    phases: list[PhaseName] | None = Field(
        None, description="Phases whose events are forwarded (all when unset)"
    )
    min_level: LogLevel = Field(LogLevel.DEBUG, description="Lowest level forwarded")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> LogSinkType:
        if isinstance(value, LogSinkType):
            return value
        if isinstance(value, str):
            return LogSinkType(value)
        return value  # type: ignore[return-value]

    @field_validator("phases", mode="before")
    @classmethod
    def _coerce_phases(cls, value: object) -> list[PhaseName] | None:
        if isinstance(value, list):
            return [
                PhaseName(item) if isinstance(item, str) else item for item in value
            ]
        return value  # type: ignore[return-value]

    @field_validator("min_level", mode="before")
    @classmethod
    def _coerce_min_level(cls, value: object) -> LogLevel:
        if isinstance(value, str) and not isinstance(value, LogLevel):
            return LogLevel(value)
        return value  # type: ignore[return-value]


class LoggingConfig(BaseSchema):
    """Logging configuration for pipeline runs and CLI commands."""

    sinks: list[LogSinkConfig] = Field(
        ..., min_length=1, description="Log sinks to enable"
    )

    @model_validator(mode="after")
    def validate_sink_types(self) -> LoggingConfig:
        """Ensure log sink types are unique.

        Returns:
            LoggingConfig: Validated logging configuration.

        Raises:
            ValueError: If sink types are duplicated.
        """
        sink_types = [sink.type for sink in self.sinks]
        if len(set(sink_types)) != len(sink_types):
            raise ValueError("log sinks must not contain duplicates")
        return self


def _default_logging() -> LoggingConfig:
    return LoggingConfig(sinks=[LogSinkConfig(type=LogSinkType.FILE)])


class EndpointConfig(BaseSchema):
    """OpenAI-compatible endpoint for the generation service."""

    base_url: str = Field(
        "https://openrouter.ai/api/v1", description="OpenAI-compatible base URL"
    )
    api_key_env: str = Field(
        "TAMING_API_KEY",
        min_length=1,
        description="Environment variable holding the API key",
    )
    timeout_s: float = Field(60.0, gt=0, description="Request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Ensure base URL uses http/https with a host.

        Args:
            value: Raw base URL string.

        Returns:
            str: Validated base URL.

        Raises:
            ValueError: If the URL is missing scheme/host.
        """
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "base_url must be an http/https URL with host "
                "(for localhost include http://)"
            )
        if parsed.path in {"", "/"}:
            return f"{value.rstrip('/')}/v1"
        return value


class ModelSettings(BaseSchema):
    """Model settings for generation calls."""

    model_id: str = Field(
        "google/gemini-2.5-pro", min_length=1, description="Model identifier"
    )
    temperature: float = Field(0.9, ge=0, le=2, description="Sampling temperature")
    max_output_tokens: int | None = Field(
        4096, ge=1, description="Maximum tokens for responses"
    )
    reasoning_effort: ReasoningEffort | None = Field(
        None, description="Reasoning effort level when supported"
    )
    top_p: float = Field(1.0, ge=0, le=1, description="Top-p sampling")

    @field_validator("reasoning_effort", mode="before")
    @classmethod
    def _coerce_reasoning_effort(cls, value: object) -> ReasoningEffort | None:
        if value is None:
            return None
        if isinstance(value, ReasoningEffort):
            return value
        if isinstance(value, str):
            return ReasoningEffort(value)
        return value  # type: ignore[return-value]


class RetryConfig(BaseSchema):
    """Retry policy for generation requests."""

    max_retries: int = Field(2, ge=0, description="Maximum retry attempts")
    backoff_s: float = Field(1.0, gt=0, description="Base backoff in seconds")
    max_jitter_s: float = Field(
        0.5, ge=0, description="Upper bound of uniform jitter in seconds"
    )


class StorageConfig(BaseSchema):
    """Filesystem locations for state, logs and exports."""

    workspace_dir: str = Field(".", description="Workspace root")
    state_dir: str = Field(".taming/state", description="Snapshot directory")
    logs_dir: str = Field(".taming/logs", description="JSONL log directory")
    exports_dir: str = Field(".taming/exports", description="Export directory")


class PipelineSettings(BaseSchema):
    """Pipeline execution settings."""

    offline: bool = Field(False, description="Use fixtures instead of the service")
    offline_latency_s: float = Field(
        1.0, ge=0, description="Artificial latency for offline runs"
    )


class AppConfig(BaseSchema):
    """Root taming.toml configuration."""

    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    model: ModelSettings = Field(default_factory=ModelSettings)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=_default_logging)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    @model_validator(mode="after")
    def validate_openrouter_model(self) -> AppConfig:
        """Ensure OpenRouter endpoints use provider-prefixed model ids.

        Returns:
            AppConfig: Validated configuration.

        Raises:
            ValueError: If an OpenRouter model id lacks a provider prefix.
        """
        is_openrouter = "openrouter.ai" in self.endpoint.base_url.lower()
        if is_openrouter and "/" not in self.model.model_id:
            raise ValueError(
                "model.model_id must look like 'provider/model' for OpenRouter"
            )
        return self
