"""Discrete intents accepted by the protocol state machine."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import (
    Intensity,
    Mode,
    OutputScale,
    RunId,
    VisualLanguage,
)
from taming_schemas.protocol import JudgmentContent, PipelineResult, ProtocolState


class SetMode(BaseSchema):
    """Select the operating mode."""

    kind: Literal["set_mode"] = "set_mode"
    mode: Mode

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: object) -> Mode:
        if isinstance(value, str) and not isinstance(value, Mode):
            return Mode(value)
        return value  # type: ignore[return-value]


class SetTopic(BaseSchema):
    """Replace the free-text topic."""

    kind: Literal["set_topic"] = "set_topic"
    topic: str


class SetIntensity(BaseSchema):
    """Set the intensity level."""

    kind: Literal["set_intensity"] = "set_intensity"
    intensity: Intensity


class SetOutputScale(BaseSchema):
    """Select the output scale."""

    kind: Literal["set_output_scale"] = "set_output_scale"
    output_scale: OutputScale

    @field_validator("output_scale", mode="before")
    @classmethod
    def _coerce_output_scale(cls, value: object) -> OutputScale:
        if isinstance(value, str) and not isinstance(value, OutputScale):
            return OutputScale(value)
        return value  # type: ignore[return-value]


class ToggleConstraint(BaseSchema):
    """Add the tag if absent, remove it if present."""

    kind: Literal["toggle_constraint"] = "toggle_constraint"
    tag: str = Field(..., min_length=1)


class SetVisualLanguage(BaseSchema):
    """Select English-only or bilingual visual prompts."""

    kind: Literal["set_visual_language"] = "set_visual_language"
    visual_language: VisualLanguage

    @field_validator("visual_language", mode="before")
    @classmethod
    def _coerce_visual_language(cls, value: object) -> VisualLanguage:
        if isinstance(value, str) and not isinstance(value, VisualLanguage):
            return VisualLanguage(value)
        return value  # type: ignore[return-value]


class SetJudgmentDraft(BaseSchema):
    """Store a freshly generated judgment draft."""

    kind: Literal["set_judgment_draft"] = "set_judgment_draft"
    draft: JudgmentContent


class ConfirmJudgment(BaseSchema):
    """Promote the current draft to the confirmed judgment."""

    kind: Literal["confirm_judgment"] = "confirm_judgment"


class IngestPipelineResult(BaseSchema):
    """Adopt a completed pipeline result and record its run."""

    kind: Literal["ingest_pipeline_result"] = "ingest_pipeline_result"
    result: PipelineResult


class ViewRun(BaseSchema):
    """Enter read-only replay of a stored run."""

    kind: Literal["view_run"] = "view_run"
    run_id: RunId


class ExitReplay(BaseSchema):
    """Leave replay mode."""

    kind: Literal["exit_replay"] = "exit_replay"


class ReuseInput(BaseSchema):
    """Start over from a stored run's input."""

    kind: Literal["reuse_input"] = "reuse_input"
    run_id: RunId


class ReuseJudgment(BaseSchema):
    """Start over from a stored run's input and judgment."""

    kind: Literal["reuse_judgment"] = "reuse_judgment"
    run_id: RunId


class DeleteRun(BaseSchema):
    """Remove a stored run from history."""

    kind: Literal["delete_run"] = "delete_run"
    run_id: RunId


class ResetProtocol(BaseSchema):
    """Restore defaults while keeping history and mode."""

    kind: Literal["reset_protocol"] = "reset_protocol"


class LoadState(BaseSchema):
    """Replace the whole state with a loaded snapshot."""

    kind: Literal["load_state"] = "load_state"
    state: ProtocolState


type Intent = Annotated[
    SetMode
    | SetTopic
    | SetIntensity
    | SetOutputScale
    | ToggleConstraint
    | SetVisualLanguage
    | SetJudgmentDraft
    | ConfirmJudgment
    | IngestPipelineResult
    | ViewRun
    | ExitReplay
    | ReuseInput
    | ReuseJudgment
    | DeleteRun
    | ResetProtocol
    | LoadState,
    Field(discriminator="kind"),
]

REPLAY_SAFE_INTENTS = (ExitReplay, ReuseInput, ReuseJudgment, DeleteRun, LoadState)
