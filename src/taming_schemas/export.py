"""Export bundle schema."""

from __future__ import annotations

from pydantic import Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import Mode, RunId, Timestamp
from taming_schemas.protocol import CoachOutput, Scene


class ExportBundle(BaseSchema):
    """Run bundle document written verbatim on export."""

    run_id: RunId | None = Field(None, description="Exported run identifier")
    timestamp: Timestamp = Field(..., description="Export time")
    mode: Mode = Field(..., description="Operating mode")
    judgment_lock: str | None = Field(None, description="Confirmed judgment lock")
    narrative_spine: str = Field(..., description="Narrative spine")
    visuals: list[Scene] = Field(..., description="Scene sequence")
    coach: CoachOutput = Field(..., description="Coach output")

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: object) -> Mode:
        if isinstance(value, str) and not isinstance(value, Mode):
            return Mode(value)
        return value  # type: ignore[return-value]
