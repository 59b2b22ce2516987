"""Event taxonomy and structured payloads for run observability."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import PhaseName, PipelineStatus


class RunEvent(StrEnum):
    """Event names for run lifecycle."""

    STARTED = "run_started"
    COMPLETED = "run_completed"
    FAILED = "run_failed"


class PhaseEventSuffix(StrEnum):
    """Suffixes for phase lifecycle events."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class RetryEvent(StrEnum):
    """Event names for retry scheduling."""

    SCHEDULED = "retry_scheduled"


class RunStartedData(BaseSchema):
    """Payload for run start events."""

    entry_point: str = Field(..., min_length=1, description="Pipeline entry point")
    phases: list[PhaseName] = Field(..., description="Planned phases for the run")
    offline: bool = Field(False, description="Whether fixtures replace the service")


class RunCompletedData(BaseSchema):
    """Payload for run completion events."""

    status: PipelineStatus = Field(..., description="Derived pipeline status")
    finding_count: int = Field(..., ge=0, description="Recorded finding reasons")

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> PipelineStatus:
        if isinstance(value, str) and not isinstance(value, PipelineStatus):
            return PipelineStatus(value)
        return value  # type: ignore[return-value]


class RunFailedData(BaseSchema):
    """Payload for run failure events."""

    error_code: str = Field(..., min_length=1, description="Error code")
    why: str = Field(..., min_length=1, description="Reason for failure")
    next_action: str = Field(..., min_length=1, description="Suggested next action")


class PhaseEventData(BaseSchema):
    """Payload for phase lifecycle events."""

    phase: PhaseName = Field(..., description="Phase name")
    scene_id: int | None = Field(None, ge=1, le=4, description="Regenerated scene")


class RetryScheduledData(BaseSchema):
    """Payload for scheduled retry events."""

    phase: PhaseName = Field(..., description="Phase whose request is retried")
    attempt: int = Field(..., ge=1, description="One-based retry attempt")
    delay_s: float = Field(..., ge=0, description="Backoff before the retry")
    error: str = Field(..., description="Failure that triggered the retry")
