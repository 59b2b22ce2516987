"""Protocol for phase generators."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from taming_schemas.protocol import (
    CoachOutput,
    CopyOutput,
    InputModel,
    JudgmentContent,
    Scene,
    VisualOutput,
)


@runtime_checkable
class PhaseGeneratorsProtocol(Protocol):
    """Protocol for the set of phase generators used by the orchestrator.

    Each method turns input configuration plus upstream text into one typed
    phase result.
    """

    async def judgment(self, input_model: InputModel) -> JudgmentContent:
        """Produce the structural judgment."""
        raise NotImplementedError

    async def copywriting(
        self, input_model: InputModel, judgment_lock: str
    ) -> CopyOutput:
        """Produce narrative copy anchored to the judgment lock."""
        raise NotImplementedError

    async def visual(
        self, input_model: InputModel, judgment_lock: str, narrative_spine: str
    ) -> VisualOutput:
        """Produce the four-scene visual output."""
        raise NotImplementedError

    async def scene(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scene_id: int,
    ) -> Scene:
        """Regenerate exactly one scene."""
        raise NotImplementedError

    async def coach(
        self,
        input_model: InputModel,
        judgment_lock: str,
        narrative_spine: str,
        scenes: list[Scene],
    ) -> CoachOutput:
        """Produce the retrospective coaching log."""
        raise NotImplementedError

    async def translate_judgment(self, content: JudgmentContent) -> JudgmentContent:
        """Translate a judgment into Simplified Chinese."""
        raise NotImplementedError

    async def translate_copy(self, content: CopyOutput) -> CopyOutput:
        """Translate copy into Simplified Chinese."""
        raise NotImplementedError
