"""Centralized model factory for the generation service.

All provider and model instantiation goes through create_model().
"""

from __future__ import annotations

import logging
import re
from typing import Literal, cast

from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel, OpenAIChatModelSettings
from pydantic_ai.models.openrouter import OpenRouterModel, OpenRouterModelSettings
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.providers.openrouter import OpenRouterProvider
from pydantic_ai.settings import ModelSettings

from taming_llm.providers import detect_provider
from taming_schemas.primitives import ReasoningEffort

_log = logging.getLogger(__name__)

_OPENROUTER_MODEL_ID_RE = re.compile(r"^[^/]+/.+")
_EffortLevel = Literal["low", "medium", "high"]


class ProviderFactoryError(Exception):
    """Raised when provider/model creation fails validation."""


def create_model(
    *,
    base_url: str,
    api_key: str,
    model_id: str,
    temperature: float,
    top_p: float = 1.0,
    timeout_s: float = 60.0,
    max_output_tokens: int | None = None,
    reasoning_effort: ReasoningEffort | str | None = None,
) -> tuple[Model, ModelSettings]:
    """Create the provider/model pair for an endpoint.

    Routes OpenRouter vs generic OpenAI-compatible endpoints based on
    detect_provider().

    Args:
        base_url: Endpoint base URL.
        api_key: API key for the provider.
        model_id: Model identifier.
        temperature: Sampling temperature.
        top_p: Top-p sampling.
        timeout_s: Request timeout in seconds.
        max_output_tokens: Maximum output tokens (None uses model default).
        reasoning_effort: Reasoning effort level when supported.

    Returns:
        Tuple of (Model, ModelSettings) ready for a pydantic-ai Agent.

    Raises:
        ProviderFactoryError: If an OpenRouter model id is malformed.
    """
    capabilities = detect_provider(base_url)
    effort = _resolve_reasoning_effort(reasoning_effort)
    _log.debug("Creating %s model %s", capabilities.name, model_id)

    if capabilities.is_openrouter:
        validate_openrouter_model_id(model_id)
        model: Model = OpenRouterModel(
            model_id, provider=OpenRouterProvider(api_key=api_key)
        )
        openrouter_settings: OpenRouterModelSettings = {
            "temperature": temperature,
            "top_p": top_p,
            "timeout": timeout_s,
        }
        if effort is not None:
            openrouter_settings["openrouter_reasoning"] = {"effort": effort}
        if max_output_tokens is not None:
            openrouter_settings["max_tokens"] = max_output_tokens
        return model, cast(ModelSettings, openrouter_settings)

    model = OpenAIChatModel(
        model_id, provider=OpenAIProvider(base_url=base_url, api_key=api_key)
    )
    openai_settings: OpenAIChatModelSettings = {
        "temperature": temperature,
        "top_p": top_p,
        "timeout": timeout_s,
    }
    if effort is not None:
        openai_settings["openai_reasoning_effort"] = effort
    if max_output_tokens is not None:
        openai_settings["max_tokens"] = max_output_tokens
    return model, cast(ModelSettings, openai_settings)


def validate_openrouter_model_id(model_id: str) -> None:
    """Validate an OpenRouter model id has the form 'provider/model-name'.

    Raises:
        ProviderFactoryError: If the model id is invalid.
    """
    if not _OPENROUTER_MODEL_ID_RE.match(model_id):
        raise ProviderFactoryError(
            f"Invalid OpenRouter model ID '{model_id}': "
            "must match format 'provider/model-name' (e.g. 'google/gemini-2.5-pro')"
        )


def _resolve_reasoning_effort(
    effort: ReasoningEffort | str | None,
) -> _EffortLevel | None:
    # use_enum_values stores StrEnum members as plain str
    if effort is None:
        return None
    raw = effort.value if isinstance(effort, ReasoningEffort) else effort
    return cast(_EffortLevel, raw)
