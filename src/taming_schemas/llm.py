"""Generation request and phase response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import SCENE_COUNT, PhaseName


class GenerationRequest(BaseSchema):
    """One structured request to the generation service."""

    phase: PhaseName = Field(..., description="Phase issuing the request")
    prompt: str = Field(..., min_length=1, description="Phase task prompt")
    system_instruction: str | None = Field(
        None, description="Mode-specific instruction string"
    )
    response_schema: type[BaseModel] = Field(
        ...,
        description="Pydantic schema the response must satisfy",
        exclude=True,
    )

    @field_validator("phase", mode="before")
    @classmethod
    def _coerce_phase(cls, value: object) -> PhaseName:
        if isinstance(value, str) and not isinstance(value, PhaseName):
            return PhaseName(value)
        return value  # type: ignore[return-value]


class JudgmentResponse(BaseSchema):
    """Service response shape for the judgment phase."""

    observed_claim: str = Field(..., description="What the user thinks the topic is")
    operational_mechanism: str = Field(
        ..., description="How it functions as psychological compensation"
    )
    failure_point: str = Field(..., description="Where the mechanism fails")
    judgment_lock: str = Field(
        ..., description="Single sharp conclusion anchoring the theory"
    )


class CopyResponse(BaseSchema):
    """Service response shape for the copy phase."""

    narrative_spine: str = Field(
        ..., description="ANCHOR / REALITY / TENSION narrative restating the lock"
    )
    resonance_lines: list[str] = Field(
        ..., description="Short lines traceable to the judgment lock"
    )


class SceneResponse(BaseSchema):
    """Service response shape for a single scene."""

    id: int = Field(..., description="Scene ordinal 1-4")
    prompt_text: str = Field(..., description="English image prompt")
    hint: str | None = Field(None, description="Chinese structural hint")


class VisualResponse(BaseSchema):
    """Service response shape for the visual phase."""

    scenes: list[SceneResponse] = Field(
        ..., min_length=1, max_length=SCENE_COUNT, description="Generated scenes"
    )


class CoachResponse(BaseSchema):
    """Service response shape for the coach phase."""

    did_right: str = Field(..., description="What was done right")
    visual_tips: str = Field(..., description="Reusable visual techniques")
    copy_tips: str = Field(..., description="Reusable copy techniques")
    avoided: str = Field(..., description="Trap deliberately avoided")
    music_vibe: str = Field(..., description="Music recommendation block")
