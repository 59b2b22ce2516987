"""Generation client issuing structured requests through pydantic-ai."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings as AgentModelSettings

from taming_core.ports.generation import (
    TRANSIENT_STATUS_CODES,
    GenerationError,
    GenerationErrorCode,
    GenerationErrorDetails,
    GenerationErrorInfo,
)
from taming_llm.provider_factory import create_model
from taming_schemas.config import AppConfig, EndpointConfig, ModelSettings
from taming_schemas.llm import GenerationRequest

_log = logging.getLogger(__name__)


class PydanticAiGenerationClient:
    """Generation client backed by a pydantic-ai Agent per request.

    The model is created lazily on first use and reused afterwards. Failures
    are classified into GenerationError codes so that the retry policy can
    tell transient overload apart from malformed output.
    """

    def __init__(
        self,
        endpoint: EndpointConfig,
        model: ModelSettings,
        *,
        api_key: str,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Endpoint configuration.
            model: Model settings.
            api_key: API key for the endpoint.
        """
        self._endpoint = endpoint
        self._model_settings = model
        self._api_key = api_key
        self._model: tuple[Model, AgentModelSettings] | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        environ: Mapping[str, str] | None = None,
    ) -> PydanticAiGenerationClient:
        """Build a client reading the API key from the environment.

        Args:
            config: Application configuration.
            environ: Environment mapping (defaults to ``os.environ``).

        Returns:
            PydanticAiGenerationClient: Configured client.

        Raises:
            GenerationError: If the API key environment variable is unset.
        """
        env = os.environ if environ is None else environ
        api_key = env.get(config.endpoint.api_key_env, "")
        if not api_key:
            raise GenerationError(
                GenerationErrorInfo(
                    code=GenerationErrorCode.MISSING_API_KEY,
                    message=(
                        f"Missing API key: set {config.endpoint.api_key_env} "
                        "or use offline mode"
                    ),
                    details=GenerationErrorDetails(
                        model_id=config.model.model_id,
                        reason=f"{config.endpoint.api_key_env} is not set",
                    ),
                )
            )
        return cls(config.endpoint, config.model, api_key=api_key)

    async def generate(self, request: GenerationRequest) -> BaseModel:
        """Issue one structured request and return the validated payload.

        Args:
            request: Generation request.

        Returns:
            BaseModel: Instance of ``request.response_schema``.

        Raises:
            GenerationError: If the response is malformed or the service
                returns an HTTP error.
        """
        model, settings = self._resolve_model()
        agent = Agent(
            model,
            output_type=request.response_schema,
            instructions=request.system_instruction,
        )
        model_id = self._model_settings.model_id
        try:
            result = await agent.run(request.prompt, model_settings=settings)
        except UnexpectedModelBehavior as exc:
            raise GenerationError(
                GenerationErrorInfo(
                    code=GenerationErrorCode.MALFORMED_RESPONSE,
                    message=f"Malformed {request.phase} response: {exc.message}",
                    details=GenerationErrorDetails(
                        phase=request.phase, model_id=model_id, reason=exc.body
                    ),
                )
            ) from exc
        except ModelHTTPError as exc:
            code = (
                GenerationErrorCode.TRANSIENT
                if exc.status_code in TRANSIENT_STATUS_CODES
                else GenerationErrorCode.SERVICE_ERROR
            )
            _log.debug(
                "Generation request for %s failed with HTTP %s",
                request.phase,
                exc.status_code,
            )
            raise GenerationError(
                GenerationErrorInfo(
                    code=code,
                    message=(
                        f"Generation service returned HTTP {exc.status_code} "
                        f"for {request.phase}"
                    ),
                    details=GenerationErrorDetails(
                        phase=request.phase,
                        status_code=exc.status_code,
                        model_id=model_id,
                        reason=str(exc.body) if exc.body is not None else None,
                    ),
                )
            ) from exc
        return result.output

    def _resolve_model(self) -> tuple[Model, AgentModelSettings]:
        if self._model is None:
            self._model = create_model(
                base_url=self._endpoint.base_url,
                api_key=self._api_key,
                model_id=self._model_settings.model_id,
                temperature=self._model_settings.temperature,
                top_p=self._model_settings.top_p,
                timeout_s=self._endpoint.timeout_s,
                max_output_tokens=self._model_settings.max_output_tokens,
                reasoning_effort=self._model_settings.reasoning_effort,
            )
        return self._model
