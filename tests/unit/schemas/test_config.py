"""Unit tests for configuration schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from taming_schemas.config import AppConfig, EndpointConfig, LoggingConfig
from taming_schemas.primitives import LogSinkType, ReasoningEffort


def test_defaults_are_valid() -> None:
    """An empty document yields the default configuration."""
    config = AppConfig.model_validate({}, strict=False)

    assert config.endpoint.base_url == "https://openrouter.ai/api/v1"
    assert config.endpoint.api_key_env == "TAMING_API_KEY"
    assert config.retry.max_retries == 2
    assert [sink.type for sink in config.logging.sinks] == [LogSinkType.FILE]
    assert not config.pipeline.offline


def test_toml_payload_loads_non_strict() -> None:
    """String enums and nested tables load from parsed TOML."""
    payload = {
        "endpoint": {"base_url": "http://localhost:8000", "timeout_s": 30},
        "model": {"model_id": "local-model", "reasoning_effort": "high"},
        "logging": {"sinks": [{"type": "console"}, {"type": "file"}]},
        "pipeline": {"offline": True, "offline_latency_s": 0},
    }

    config = AppConfig.model_validate(payload, strict=False)

    assert config.endpoint.base_url == "http://localhost:8000/v1"
    assert config.endpoint.timeout_s == 30.0
    assert config.model.reasoning_effort == ReasoningEffort.HIGH
    assert [sink.type for sink in config.logging.sinks] == ["console", "file"]
    assert config.pipeline.offline


def test_base_url_requires_scheme_and_host() -> None:
    """Bare hosts are rejected."""
    with pytest.raises(ValidationError, match="http/https URL"):
        EndpointConfig(base_url="localhost:8000")


def test_base_url_keeps_explicit_path() -> None:
    """Explicit paths are preserved."""
    config = EndpointConfig(base_url="https://api.example.com/custom/v2")
    assert config.base_url == "https://api.example.com/custom/v2"


def test_openrouter_requires_provider_prefix() -> None:
    """OpenRouter model ids must be provider-prefixed."""
    with pytest.raises(ValidationError, match="provider/model"):
        AppConfig.model_validate({"model": {"model_id": "gpt-4o"}}, strict=False)


def test_duplicate_log_sinks_rejected() -> None:
    """Each sink type may appear once."""
    with pytest.raises(ValidationError, match="duplicates"):
        LoggingConfig.model_validate(
            {"sinks": [{"type": "file"}, {"type": "file"}]}, strict=False
        )


def test_logging_requires_a_sink() -> None:
    """An empty sink list is rejected."""
    with pytest.raises(ValidationError):
        LoggingConfig(sinks=[])


def test_retry_bounds() -> None:
    """Negative retries are rejected."""
    with pytest.raises(ValidationError):
        AppConfig.model_validate({"retry": {"max_retries": -1}}, strict=False)
