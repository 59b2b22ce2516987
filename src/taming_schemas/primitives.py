"""Primitive types and enums shared across taming schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"

SCENE_IDS = (1, 2, 3, 4)
SCENE_COUNT = len(SCENE_IDS)
MIN_INTENSITY = 1
MAX_INTENSITY = 5


def _validate_uuid7(value: UUID) -> UUID:
    """Ensure UUID values are version 7.

    Args:
        value: Parsed UUID value.

    Returns:
        UUID: The validated UUIDv7 value.

    Raises:
        ValueError: If the UUID is not version 7.
    """
    if value.version != 7:
        raise ValueError("UUID must be version 7")
    return value


type Uuid7 = Annotated[UUID, AfterValidator(_validate_uuid7)]

type RunId = Uuid7
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]
type SceneId = Annotated[int, Field(ge=SCENE_IDS[0], le=SCENE_IDS[-1])]
type Intensity = Annotated[int, Field(ge=MIN_INTENSITY, le=MAX_INTENSITY)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]


class Mode(StrEnum):
    """Mutually exclusive generation styles."""

    HUMAN_SILENCE = "human_silence"
    MIND_RIOT = "mind_riot"


class OutputScale(StrEnum):
    """Requested output scale for a run."""

    STANDARD = "standard"
    ENHANCED = "enhanced"


class VisualLanguage(StrEnum):
    """Language setting for visual prompts."""

    EN = "en"
    ZH_EN = "zh_en"


class PhaseName(StrEnum):
    """Generation phase names."""

    JUDGMENT = "judgment"
    COPY = "copy"
    VISUAL = "visual"
    SCENE = "scene"
    COACH = "coach"
    TRANSLATION = "translation"


PIPELINE_PHASE_ORDER = [
    PhaseName.JUDGMENT,
    PhaseName.COPY,
    PhaseName.VISUAL,
    PhaseName.COACH,
]


class ValidationPhase(StrEnum):
    """Phases covered by structural validation."""

    COPY = "copy"
    VISUAL = "visual"


class FindingSeverity(StrEnum):
    """Severity of a single validation check result."""

    BLOCKING = "blocking"
    ADVISORY = "advisory"


class PipelineStatus(StrEnum):
    """Derived status of a pipeline invocation."""

    COMPLETED = "completed"
    WARNING = "warning"
    FAILED = "failed"


class RunStatus(StrEnum):
    """Stored completion flag of a run record."""

    COMPLETED = "completed"
    FAILED = "failed"


class ValidationStatus(StrEnum):
    """Aggregate status of the protocol working state."""

    OK = "ok"
    WARNING = "warning"
    FAILED = "failed"


class LogLevel(StrEnum):
    """Log levels for structured log entries."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    FILE = "file"
    NOOP = "noop"


class ReasoningEffort(StrEnum):
    """Reasoning effort levels for supported models."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
