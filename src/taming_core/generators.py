"""Phase generators backed by the generation client."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable, Sequence

from pydantic import BaseModel

from taming_core.modes import get_mode_profile
from taming_core.ports.generation import (
    GenerationClientProtocol,
    GenerationError,
    GenerationErrorCode,
    GenerationErrorDetails,
    GenerationErrorInfo,
)
from taming_core.ports.random_source import RandomSourceProtocol
from taming_core.prompts import (
    build_coach_prompt,
    build_copy_prompt,
    build_judgment_prompt,
    build_scene_prompt,
    build_system_instruction,
    build_translation_prompt,
    build_visual_prompt,
)
from taming_core.retry import RetryPolicy, SleepFunction, with_retry
from taming_schemas.llm import (
    CoachResponse,
    CopyResponse,
    GenerationRequest,
    JudgmentResponse,
    SceneResponse,
    VisualResponse,
)
from taming_schemas.primitives import PhaseName
from taming_schemas.protocol import (
    CoachOutput,
    CopyOutput,
    InputModel,
    JudgmentContent,
    Scene,
    VisualOutput,
)

type PhaseRetryObserver = Callable[
    [PhaseName, int, float, BaseException], Awaitable[None] | None
]


class LlmPhaseGenerators:
    """Phase generators that call the generation service with retries.

    Each phase builds its prompt, issues one structured request through the
    retry policy and normalizes the typed response into protocol models.
    """

    def __init__(
        self,
        client: GenerationClientProtocol,
        *,
        retry_policy: RetryPolicy | None = None,
        random_source: RandomSourceProtocol | None = None,
        sleep: SleepFunction = asyncio.sleep,
        on_retry: PhaseRetryObserver | None = None,
    ) -> None:
        """Initialize the generators.

        Args:
            client: Generation client.
            retry_policy: Retry policy applied to every request.
            random_source: Random source used to pick erosion systems.
            sleep: Sleep used for retry backoff.
            on_retry: Observer told about every scheduled retry, keyed by phase.
        """
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy()
        self._random = random_source or random.Random()
        self._sleep = sleep
        self.on_retry = on_retry

    async def judgment(self, input_model: InputModel) -> JudgmentContent:
        """Produce the structural judgment."""
        profile = get_mode_profile(input_model.mode)
        response = await self._request(
            PhaseName.JUDGMENT,
            build_judgment_prompt(input_model),
            JudgmentResponse,
            build_system_instruction(profile),
        )
        return JudgmentContent(**response.model_dump())

    async def copywriting(
        self, input_model: InputModel, judgment_lock: str
    ) -> CopyOutput:
        """Produce narrative copy anchored to the judgment lock."""
        profile = get_mode_profile(input_model.mode)
        response = await self._request(
            PhaseName.COPY,
            build_copy_prompt(input_model, judgment_lock),
            CopyResponse,
            build_system_instruction(profile),
        )
        return _copy_from_response(response)

    async def visual(
        self, input_model: InputModel, judgment_lock: str, narrative_spine: str
    ) -> VisualOutput:
        """Produce the four-scene visual output."""
        profile = get_mode_profile(input_model.mode)
        erosion = self._pick_erosion(profile.erosion_catalog)
        response = await self._request(
            PhaseName.VISUAL,
            build_visual_prompt(
                input_model, profile, judgment_lock, narrative_spine, erosion
            ),
            VisualResponse,
            build_system_instruction(profile),
        )
        scenes = [
            _scene_from_response(PhaseName.VISUAL, item, item.id)
            for item in response.scenes
        ]
        return VisualOutput(scenes=scenes)

    async def scene(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scene_id: int,
    ) -> Scene:
        """Regenerate one scene; the requested id is forced on the result."""
        profile = get_mode_profile(input_model.mode)
        erosion = self._pick_erosion(profile.erosion_catalog)
        response = await self._request(
            PhaseName.SCENE,
            build_scene_prompt(
                input_model,
                profile,
                judgment_lock,
                narrative_spine,
                scene_id,
                erosion,
            ),
            SceneResponse,
            build_system_instruction(profile),
        )
        return _scene_from_response(PhaseName.SCENE, response, scene_id)

    async def coach(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scenes: list[Scene],
    ) -> CoachOutput:
        """Produce the retrospective coaching log."""
        profile = get_mode_profile(input_model.mode)
        response = await self._request(
            PhaseName.COACH,
            build_coach_prompt(profile, judgment_lock, narrative_spine, scenes),
            CoachResponse,
            build_system_instruction(profile),
        )
        return CoachOutput(**response.model_dump())

    async def translate_judgment(self, content: JudgmentContent) -> JudgmentContent:
        """Translate a judgment into Simplified Chinese."""
        response = await self._request(
            PhaseName.TRANSLATION,
            build_translation_prompt(content.model_dump()),
            JudgmentResponse,
        )
        return JudgmentContent(**response.model_dump())

    async def translate_copy(self, content: CopyOutput) -> CopyOutput:
        """Translate copy into Simplified Chinese."""
        payload: dict[str, object] = {
            "narrative_spine": content.narrative_spine,
            "resonance_lines": list(content.key_lines),
        }
        response = await self._request(
            PhaseName.TRANSLATION,
            build_translation_prompt(payload),
            CopyResponse,
        )
        return _copy_from_response(response)

    def _pick_erosion(self, catalog: Sequence[str]) -> str | None:
        if not catalog:
            return None
        return self._random.choice(catalog)

    async def _request[ResponseT: BaseModel](
        self,
        phase: PhaseName,
        prompt: str,
        schema: type[ResponseT],
        system_instruction: str | None = None,
    ) -> ResponseT:
        request = GenerationRequest(
            phase=phase,
            prompt=prompt,
            system_instruction=system_instruction,
            response_schema=schema,
        )

        async def _attempt() -> BaseModel:
            return await self._client.generate(request)

        async def _observe(attempt: int, delay: float, exc: BaseException) -> None:
            if self.on_retry is None:
                return
            observed = self.on_retry(phase, attempt, delay, exc)
            if observed is not None:
                await observed

        payload = await with_retry(
            _attempt,
            self._retry_policy,
            sleep=self._sleep,
            on_retry=_observe,
            label=f"{phase} request",
        )
        if not isinstance(payload, schema):
            raise GenerationError(
                GenerationErrorInfo(
                    code=GenerationErrorCode.MALFORMED_RESPONSE,
                    message=f"Unexpected response type for {phase}",
                    details=GenerationErrorDetails(
                        phase=phase,
                        reason=f"expected {schema.__name__}, "
                        f"got {type(payload).__name__}",
                    ),
                )
            )
        return payload


def _copy_from_response(response: CopyResponse) -> CopyOutput:
    return CopyOutput(
        narrative_spine=response.narrative_spine,
        key_lines=list(response.resonance_lines),
    )


def _scene_from_response(
    phase: PhaseName, response: SceneResponse, scene_id: int
) -> Scene:
    """Normalize a scene response, rejecting ids outside the scene range.

    Raises:
        GenerationError: If the scene id is not one of 1-4.
    """
    try:
        return Scene(id=scene_id, prompt_text=response.prompt_text, hint=response.hint)
    except ValueError as exc:
        raise GenerationError(
            GenerationErrorInfo(
                code=GenerationErrorCode.MALFORMED_RESPONSE,
                message=f"Invalid scene in {phase} response",
                details=GenerationErrorDetails(phase=phase, reason=str(exc)),
            )
        ) from exc
