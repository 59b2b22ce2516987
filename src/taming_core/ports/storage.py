"""Protocol definitions and errors for snapshot and log persistence."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from taming_schemas.base import BaseSchema
from taming_schemas.logs import LogEntry
from taming_schemas.primitives import RunId
from taming_schemas.protocol import ProtocolState
from taming_schemas.responses import ErrorDetails, ErrorResponse

SNAPSHOT_KEY = "taming_protocol_state_v1"


class StorageErrorCode(StrEnum):
    """Categorized error codes for storage operations."""

    IO_ERROR = "io_error"


class StorageErrorDetails(BaseSchema):
    """Detailed storage error context."""

    operation: str | None = Field(None, description="Storage operation name")
    run_id: RunId | None = Field(None, description="Run identifier")
    path: str | None = Field(None, description="Filesystem path")
    reason: str | None = Field(None, description="Additional error context")


class StorageErrorInfo(BaseSchema):
    """Structured storage error data."""

    code: StorageErrorCode = Field(..., description="Storage error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: StorageErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert storage error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None:
            details = ErrorDetails(
                field=self.details.operation,
                provided=self.details.path,
                valid_options=None,
            )
        return ErrorResponse(code=str(self.code), message=self.message, details=details)


class StorageError(Exception):
    """Storage error with structured details."""

    def __init__(self, info: StorageErrorInfo) -> None:
        """Initialize the storage error.

        Args:
            info: Structured storage error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class SnapshotStoreProtocol(Protocol):
    """Protocol for the single versioned protocol-state snapshot."""

    async def save_snapshot(self, state: ProtocolState) -> None:
        """Overwrite the stored snapshot."""
        raise NotImplementedError

    async def load_snapshot(self) -> ProtocolState | None:
        """Load the snapshot if present and version-compatible."""
        raise NotImplementedError


@runtime_checkable
class LogStoreProtocol(Protocol):
    """Protocol for persisting JSONL log entries."""

    async def append_log(self, entry: LogEntry) -> None:
        """Append a single log entry."""
        raise NotImplementedError
