"""Protocol definitions and errors for the generation service."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, field_validator

from taming_schemas.base import BaseSchema
from taming_schemas.llm import GenerationRequest
from taming_schemas.primitives import PhaseName
from taming_schemas.responses import ErrorDetails, ErrorResponse

TRANSIENT_STATUS_CODES = frozenset({429, 503})


class GenerationErrorCode(StrEnum):
    """Categorized error codes for generation failures."""

    TRANSIENT = "transient"
    MALFORMED_RESPONSE = "malformed_response"
    SERVICE_ERROR = "service_error"
    MISSING_API_KEY = "missing_api_key"


class GenerationErrorDetails(BaseSchema):
    """Detailed generation error context."""

    phase: PhaseName | None = Field(None, description="Phase issuing the request")
    status_code: int | None = Field(None, description="HTTP status if known")
    model_id: str | None = Field(None, description="Model identifier")
    reason: str | None = Field(None, description="Additional error context")

    @field_validator("phase", mode="before")
    @classmethod
    def _coerce_phase(cls, value: object) -> PhaseName | None:
        if isinstance(value, str) and not isinstance(value, PhaseName):
            return PhaseName(value)
        return value  # type: ignore[return-value]


class GenerationErrorInfo(BaseSchema):
    """Structured generation error data."""

    code: GenerationErrorCode = Field(..., description="Generation error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: GenerationErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert generation error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.phase is not None:
            details = ErrorDetails(
                field="phase", provided=str(self.details.phase), valid_options=None
            )
        return ErrorResponse(code=str(self.code), message=self.message, details=details)


class GenerationError(Exception):
    """Generation error with structured details."""

    def __init__(self, info: GenerationErrorInfo) -> None:
        """Initialize the generation error.

        Args:
            info: Structured generation error information.
        """
        super().__init__(info.message)
        self.info = info

    @property
    def is_transient(self) -> bool:
        """Whether the failure signals overload or rate limiting."""
        return self.info.code == GenerationErrorCode.TRANSIENT


@runtime_checkable
class GenerationClientProtocol(Protocol):
    """Protocol for one structured request to the generation service.

    Implementations must raise GenerationError with code malformed_response
    when the payload does not satisfy ``request.response_schema``.
    """

    async def generate(self, request: GenerationRequest) -> BaseModel:
        """Issue the request and return the validated response payload."""
        raise NotImplementedError
