"""JSON envelope printed by the CLI when a command fails."""

from __future__ import annotations

from typing import Self

from pydantic import Field, model_validator

from taming_schemas.base import BaseSchema
from taming_schemas.primitives import Timestamp
from taming_schemas.version import VERSION


class MetaInfo(BaseSchema):
    """Which command produced the envelope, when, and under which release."""

    timestamp: Timestamp = Field(..., description="ISO-8601 response timestamp")
    command: str = Field(..., min_length=1, description="CLI command name")
    version: str = Field(str(VERSION), description="taming release version")


class ErrorDetails(BaseSchema):
    """Detailed error context for responses."""

    field: str | None = Field(None, description="Field name if applicable")
    provided: str | None = Field(None, description="Provided value")
    valid_options: list[str] | None = Field(
        None, description="Valid options if applicable"
    )


class ErrorResponse(BaseSchema):
    """Error code and message taken from a pipeline, storage or export error."""

    code: str = Field(..., min_length=1, description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ErrorDetails | None = Field(None, description="Optional error details")


class ApiResponse[ResponseData](BaseSchema):
    """Envelope carrying either a payload or an error, never both."""

    data: ResponseData | None = Field(
        None, description="Success payload, null on error"
    )
    error: ErrorResponse | None = Field(
        None, description="Error information, null on success"
    )
    meta: MetaInfo = Field(..., description="Response metadata")

    @model_validator(mode="after")
    def _data_or_error(self) -> Self:
        if self.data is not None and self.error is not None:
            raise ValueError("a response carries data or an error, not both")
        return self


def error_envelope(
    error: ErrorResponse, *, command: str, timestamp: Timestamp
) -> ApiResponse[None]:
    """Wrap a failed command's error for printing.

    Args:
        error: Error converted from the raised exception.
        command: Name of the CLI command that failed.
        timestamp: Time the failure was reported.

    Returns:
        ApiResponse[None]: Envelope with no data and the error set.
    """
    return ApiResponse[None](
        data=None,
        error=error,
        meta=MetaInfo(timestamp=timestamp, command=command),
    )
