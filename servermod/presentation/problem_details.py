"""RFC 7807 Problem Details for API error responses."""

from typing import Final

from fastapi import status
from pydantic import BaseModel, Field

_PROBLEM_TYPE_BASE: Final = "/problems/"


class ErrorCodes:
    """Stable machine-readable codes for field errors."""

    FIELD_REQUIRED: Final = "field_required"
    FIELD_INVALID_TYPE: Final = "field_invalid_type"
    FIELD_INVALID_VALUE: Final = "field_invalid_value"


class FieldError(BaseModel):
    field: str = Field(description="Request field the error is attached to")
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class ProblemDetail(BaseModel):
    """Problem Details object (RFC 7807) with a stable error code."""

    type: str = Field(description="URI identifying the problem type")
    title: str = Field(description="Short summary of the problem type")
    status: int = Field(description="HTTP status code")
    detail: str = Field(description="Explanation specific to this occurrence")
    instance: str | None = Field(None, description="Request path that failed")
    code: str = Field(description="Stable machine-readable error code")
    errors: list[FieldError] | None = Field(
        None, description="Field-specific errors, if any"
    )


class ProblemDetailFactory:
    """Builds ProblemDetail instances for the common failure classes."""

    @staticmethod
    def create(
        status_code: int,
        title: str,
        code: str,
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{_PROBLEM_TYPE_BASE}{code.replace('_', '-')}",
            title=title,
            status=status_code,
            detail=detail,
            instance=instance,
            code=code,
            errors=[FieldError(**error) for error in field_errors]
            if field_errors
            else None,
        )

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
    ) -> ProblemDetail:
        return ProblemDetailFactory.create(
            status.HTTP_400_BAD_REQUEST,
            "Validation Failed",
            "input_invalid",
            detail,
            instance,
            field_errors,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetailFactory.create(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal Server Error",
            "internal_error",
            detail,
            instance,
        )
