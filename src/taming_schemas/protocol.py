"""Protocol data model: inputs, phase outputs, runs and working state."""

from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import (
    Intensity,
    Mode,
    OutputScale,
    PipelineStatus,
    RunId,
    RunStatus,
    SceneId,
    Timestamp,
    ValidationPhase,
    ValidationStatus,
    VisualLanguage,
)
from taming_schemas.version import PROTOCOL_STATE_VERSION


class InputModel(BaseSchema):
    """User configuration consumed by every generation phase."""

    mode: Mode = Field(Mode.HUMAN_SILENCE, description="Operating mode")
    topic: str = Field("", description="Free-text topic")
    intensity: Intensity = Field(3, description="Intensity from 1 to 5")
    output_scale: OutputScale = Field(
        OutputScale.STANDARD, description="Requested output scale"
    )
    constraints: list[str] = Field(
        default_factory=list, description="Unique free-text constraint tags"
    )
    visual_language: VisualLanguage = Field(
        VisualLanguage.EN, description="Visual prompt language setting"
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: object) -> Mode:
        if isinstance(value, str) and not isinstance(value, Mode):
            return Mode(value)
        return value  # type: ignore[return-value]

    @field_validator("output_scale", mode="before")
    @classmethod
    def _coerce_output_scale(cls, value: object) -> OutputScale:
        if isinstance(value, str) and not isinstance(value, OutputScale):
            return OutputScale(value)
        return value  # type: ignore[return-value]

    @field_validator("visual_language", mode="before")
    @classmethod
    def _coerce_visual_language(cls, value: object) -> VisualLanguage:
        if isinstance(value, str) and not isinstance(value, VisualLanguage):
            return VisualLanguage(value)
        return value  # type: ignore[return-value]

    @field_validator("constraints")
    @classmethod
    def validate_constraints(cls, value: list[str]) -> list[str]:
        """Ensure constraint tags are unique.

        Args:
            value: Constraint tags.

        Returns:
            list[str]: Validated constraint tags.

        Raises:
            ValueError: If a tag is repeated.
        """
        if len(set(value)) != len(value):
            raise ValueError("constraints must be unique")
        return value

    @property
    def is_bilingual(self) -> bool:
        """Whether visual prompts must carry a secondary-language hint."""
        return self.visual_language == VisualLanguage.ZH_EN


class JudgmentContent(BaseSchema):
    """Structural judgment produced by the first phase."""

    observed_claim: str = Field(..., description="What the topic claims to be")
    operational_mechanism: str = Field(
        ..., description="How the topic actually operates"
    )
    failure_point: str = Field(..., description="Where the mechanism fails")
    judgment_lock: str = Field(..., description="Binding single-sentence anchor")


class JudgmentOutput(BaseSchema):
    """Draft and confirmed judgment slots."""

    draft: JudgmentContent | None = Field(None, description="Latest draft")
    confirmed: JudgmentContent | None = Field(
        None, description="Judgment confirmed by an explicit intent"
    )


class CopyOutput(BaseSchema):
    """Narrative copy derived from the judgment lock."""

    narrative_spine: str = Field("", description="Main narrative prose")
    key_lines: list[str] = Field(
        default_factory=list, description="Short standalone resonance lines"
    )

    @property
    def is_empty(self) -> bool:
        """Whether no narrative has been produced."""
        return not self.narrative_spine


class Scene(BaseSchema):
    """One ordinal visual prompt unit."""

    id: SceneId = Field(..., description="Ordinal position 1-4")
    prompt_text: str = Field(..., description="Image generation prompt")
    hint: str | None = Field(None, description="Secondary-language annotation")


class VisualOutput(BaseSchema):
    """Ordered scene sequence."""

    scenes: list[Scene] = Field(default_factory=list, description="Scenes in order")

    def replace_scene(self, scene: Scene) -> VisualOutput:
        """Return a copy with the scene of the same id replaced.

        Args:
            scene: Replacement scene.

        Returns:
            VisualOutput: Updated visual output; other scenes are untouched.
        """
        scenes = [scene if item.id == scene.id else item for item in self.scenes]
        return VisualOutput(scenes=scenes)

    def scene_ids(self) -> list[int]:
        """Return scene ids in sequence order."""
        return [scene.id for scene in self.scenes]


class CoachOutput(BaseSchema):
    """Retrospective coaching log."""

    did_right: str = Field("", description="What worked")
    visual_tips: str = Field("", description="Reusable visual techniques")
    copy_tips: str = Field("", description="Reusable copy techniques")
    avoided: str = Field("", description="Trap deliberately avoided")
    music_vibe: str = Field("", description="Music recommendation")


class OutputModel(BaseSchema):
    """Working or stored output of all phases."""

    judgment: JudgmentOutput = Field(default_factory=JudgmentOutput)
    copywriting: CopyOutput = Field(default_factory=CopyOutput)
    visual: VisualOutput = Field(default_factory=VisualOutput)
    coach: CoachOutput = Field(default_factory=CoachOutput)


class ValidationFinding(BaseSchema):
    """Validation reasons recorded for one phase."""

    phase: ValidationPhase = Field(..., description="Validated phase")
    reasons: list[str] = Field(
        ..., min_length=1, description="Human-readable findings in order"
    )

    @field_validator("phase", mode="before")
    @classmethod
    def _coerce_phase(cls, value: object) -> ValidationPhase:
        if isinstance(value, str) and not isinstance(value, ValidationPhase):
            return ValidationPhase(value)
        return value  # type: ignore[return-value]


class Run(BaseSchema):
    """Immutable record of a completed pipeline invocation."""

    model_config = ConfigDict(frozen=True)

    id: RunId = Field(..., description="Time-ordered run identifier")
    created_at: Timestamp = Field(..., description="ISO-8601 creation time")
    status: RunStatus = Field(..., description="Stored completion flag")
    input: InputModel = Field(..., description="Input used for the run")
    output: OutputModel = Field(..., description="Full phase output")
    findings: list[ValidationFinding] = Field(
        default_factory=list, description="Validation findings for the run"
    )

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> RunStatus:
        if isinstance(value, str) and not isinstance(value, RunStatus):
            return RunStatus(value)
        return value  # type: ignore[return-value]


class PipelineResult(BaseSchema):
    """Run plus its derived pipeline status."""

    run: Run = Field(..., description="Bundled run record")
    status: PipelineStatus = Field(..., description="Derived status")

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> PipelineStatus:
        if isinstance(value, str) and not isinstance(value, PipelineStatus):
            return PipelineStatus(value)
        return value  # type: ignore[return-value]


class ProtocolState(BaseSchema):
    """The single mutable application state, replaced wholesale per intent."""

    version: int = Field(PROTOCOL_STATE_VERSION, description="Snapshot version")
    input: InputModel = Field(default_factory=InputModel)
    output: OutputModel = Field(default_factory=OutputModel)
    status: ValidationStatus = Field(
        ValidationStatus.OK, description="Aggregate status of current findings"
    )
    findings: list[ValidationFinding] = Field(default_factory=list)
    runs: list[Run] = Field(default_factory=list, description="Newest first")
    viewing_run_id: RunId | None = Field(
        None, description="Run being replayed; set means read-only"
    )

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> ValidationStatus:
        if isinstance(value, str) and not isinstance(value, ValidationStatus):
            return ValidationStatus(value)
        return value  # type: ignore[return-value]

    @property
    def is_replaying(self) -> bool:
        """Whether the state is in read-only replay mode."""
        return self.viewing_run_id is not None

    def find_run(self, run_id: RunId) -> Run | None:
        """Return the stored run with the given id, if any."""
        for run in self.runs:
            if run.id == run_id:
                return run
        return None
