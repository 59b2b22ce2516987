"""Protocol definitions and errors for run export."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import Field

from taming_schemas.base import BaseSchema
from taming_schemas.export import ExportBundle
from taming_schemas.responses import ErrorDetails, ErrorResponse


class ExportErrorCode(StrEnum):
    """Categorized error codes for export failures."""

    REFUSED = "refused"
    CONFIRMATION_REQUIRED = "confirmation_required"
    NOTHING_TO_EXPORT = "nothing_to_export"
    IO_ERROR = "io_error"


class ExportErrorDetails(BaseSchema):
    """Detailed export error context."""

    status: str | None = Field(None, description="Working status at export time")
    output_path: str | None = Field(None, description="Output file path")
    reason: str | None = Field(None, description="Additional error context")


class ExportErrorInfo(BaseSchema):
    """Structured export error data."""

    code: ExportErrorCode = Field(..., description="Export error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ExportErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert export error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.status is not None:
            details = ErrorDetails(
                field="status", provided=self.details.status, valid_options=None
            )
        return ErrorResponse(code=str(self.code), message=self.message, details=details)


class ExportError(Exception):
    """Export error with structured details."""

    def __init__(self, info: ExportErrorInfo) -> None:
        """Initialize the export error.

        Args:
            info: Structured export error information.
        """
        super().__init__(info.message)
        self.info = info


@runtime_checkable
class ExportWriterProtocol(Protocol):
    """Protocol for writing an export bundle."""

    async def write_bundle(self, bundle: ExportBundle, path: Path) -> Path:
        """Write the bundle and return the written path."""
        raise NotImplementedError
