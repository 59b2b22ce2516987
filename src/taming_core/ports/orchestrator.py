"""Protocol definitions and helpers for pipeline orchestration."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.events import (
    PhaseEventData,
    PhaseEventSuffix,
    RetryEvent,
    RetryScheduledData,
    RunCompletedData,
    RunEvent,
    RunFailedData,
    RunStartedData,
)
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import (
    JsonValue,
    LogLevel,
    PhaseName,
    PipelineStatus,
    RunId,
    Timestamp,
)
from taming_schemas.responses import ErrorDetails, ErrorResponse


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Protocol for emitting structured log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Emit a log entry."""
        raise NotImplementedError


class OrchestrationErrorCode(StrEnum):
    """Categorized error codes for orchestration failures."""

    MISSING_DEPENDENCY = "missing_dependency"
    INVALID_SCENE = "invalid_scene"
    PHASE_EXECUTION_FAILED = "phase_execution_failed"


class OrchestrationErrorDetails(BaseSchema):
    """Detailed orchestration error context."""

    phase: PhaseName | None = Field(None, description="Phase associated with error")
    scene_id: int | None = Field(None, description="Scene id if applicable")
    missing_phases: list[PhaseName] | None = Field(
        None, description="Missing prerequisite phases"
    )
    reason: str | None = Field(None, description="Additional error context")

    @field_validator("phase", mode="before")
    @classmethod
    def _coerce_phase(cls, value: object) -> PhaseName | None:
        if isinstance(value, str) and not isinstance(value, PhaseName):
            return PhaseName(value)
        return value  # type: ignore[return-value]


class OrchestrationErrorInfo(BaseSchema):
    """Structured orchestration error data."""

    code: OrchestrationErrorCode = Field(..., description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: OrchestrationErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert orchestration error info to standard error response.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.scene_id is not None:
            details = ErrorDetails(
                field="scene_id",
                provided=str(self.details.scene_id),
                valid_options=["1", "2", "3", "4"],
            )
        elif self.details is not None and self.details.phase is not None:
            details = ErrorDetails(
                field="phase", provided=str(self.details.phase), valid_options=None
            )
        return ErrorResponse(code=str(self.code), message=self.message, details=details)


class OrchestrationError(Exception):
    """Orchestration error with structured details."""

    def __init__(self, info: OrchestrationErrorInfo) -> None:
        """Initialize the orchestration error.

        Args:
            info: Structured orchestration error information.
        """
        super().__init__(info.message)
        self.info = info


def build_run_started_log(
    timestamp: Timestamp,
    run_id: RunId,
    entry_point: str,
    phases: list[PhaseName],
    offline: bool = False,
) -> LogEntry:
    """Build a log entry for run start.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Pipeline run identifier.
        entry_point: Pipeline entry point name.
        phases: Planned phases for the run.
        offline: Whether fixtures replace the service.

    Returns:
        LogEntry: Structured run start log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=RunEvent.STARTED,
        run_id=run_id,
        phase=None,
        message="Run started",
        data=RunStartedData(
            entry_point=entry_point, phases=phases, offline=offline
        ).model_dump(mode="json", exclude_none=True),
    )


def build_run_completed_log(
    timestamp: Timestamp,
    run_id: RunId,
    status: PipelineStatus,
    finding_count: int,
) -> LogEntry:
    """Build a log entry for run completion.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Pipeline run identifier.
        status: Derived pipeline status.
        finding_count: Number of recorded finding reasons.

    Returns:
        LogEntry: Structured run completion log entry.
    """
    level = LogLevel.INFO if status == PipelineStatus.COMPLETED else LogLevel.WARN
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=RunEvent.COMPLETED,
        run_id=run_id,
        phase=None,
        message="Run completed",
        data=RunCompletedData(status=status, finding_count=finding_count).model_dump(
            mode="json", exclude_none=True
        ),
    )


def build_run_failed_log(
    timestamp: Timestamp,
    run_id: RunId,
    message: str,
    error_code: str,
    why: str,
    next_action: str,
) -> LogEntry:
    """Build a log entry for run failure.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Pipeline run identifier.
        message: Failure message.
        error_code: Error code describing the failure.
        why: Reason for the failure.
        next_action: Suggested next action.

    Returns:
        LogEntry: Structured run failure log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=RunEvent.FAILED,
        run_id=run_id,
        phase=None,
        message=message,
        data=RunFailedData(
            error_code=error_code, why=why, next_action=next_action
        ).model_dump(exclude_none=True),
    )


def build_phase_event_name(phase: PhaseName, suffix: PhaseEventSuffix) -> str:
    """Build a phase-specific event name.

    Args:
        phase: Phase name.
        suffix: Event suffix (e.g., started, completed).

    Returns:
        str: Event name in snake_case.
    """
    return f"{PhaseName(phase).value}_{PhaseEventSuffix(suffix).value}"


def build_phase_log(
    timestamp: Timestamp,
    run_id: RunId,
    phase: PhaseName,
    event_suffix: PhaseEventSuffix,
    message: str,
    data: dict[str, JsonValue] | None = None,
    level: LogLevel = LogLevel.INFO,
) -> LogEntry:
    """Build a log entry for a phase lifecycle event.

    Args:
        timestamp: ISO-8601 timestamp.
        run_id: Pipeline run identifier.
        phase: Phase name.
        event_suffix: Event suffix (started/completed/failed).
        message: Log message.
        data: Structured event data.
        level: Log level.

    Returns:
        LogEntry: Structured phase log entry.
    """
    scene_id: int | None = None
    if data is not None:
        raw_scene_id = data.get("scene_id")
        if isinstance(raw_scene_id, int):
            scene_id = raw_scene_id
    payload = PhaseEventData(phase=PhaseName(phase), scene_id=scene_id)
    extra: dict[str, JsonValue] = {}
    if data is not None:
        extra = {
            key: value
            for key, value in data.items()
            if key not in {"phase", "scene_id"}
        }
    return LogEntry(
        timestamp=timestamp,
        level=level,
        event=build_phase_event_name(phase, event_suffix),
        run_id=run_id,
        phase=phase,
        message=message,
        data={**payload.model_dump(mode="json", exclude_none=True), **extra},
    )


def build_retry_log(
    timestamp: Timestamp,
    run_id: RunId,
    phase: PhaseName,
    attempt: int,
    delay_s: float,
    error: str,
) -> LogEntry:
    """Build a log entry for a scheduled retry of a phase request.

    Returns:
        LogEntry: Warning-level retry log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.WARN,
        event=RetryEvent.SCHEDULED,
        run_id=run_id,
        phase=phase,
        message=f"Retrying {PhaseName(phase).value} request (attempt {attempt})",
        data=RetryScheduledData(
            phase=PhaseName(phase),
            attempt=attempt,
            delay_s=float(delay_s),
            error=error,
        ).model_dump(mode="json"),
    )
