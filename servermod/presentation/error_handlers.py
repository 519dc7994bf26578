"""Centralized error handling for the presentation layer."""

from typing import Final

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    AccountInconsistencyError,
    DomainError,
    ForbiddenError,
    InvalidCredentialError,
    NotAuthenticatedError,
    NotScheduledError,
    ServerNotFoundError,
    TransitionFailedError,
    ValidationError,
)
from .problem_details import ErrorCodes, ProblemDetail, ProblemDetailFactory

# (status, title) per domain error. Not-found and not-scheduled share 404 and
# are told apart by their code.
_ERROR_RESPONSES: Final[dict[type[DomainError], tuple[int, str]]] = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "Validation Failed"),
    NotAuthenticatedError: (status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    ForbiddenError: (status.HTTP_403_FORBIDDEN, "Forbidden"),
    InvalidCredentialError: (status.HTTP_403_FORBIDDEN, "Invalid Credential"),
    AccountInconsistencyError: (status.HTTP_404_NOT_FOUND, "Not Found"),
    ServerNotFoundError: (status.HTTP_404_NOT_FOUND, "Server Not Found"),
    NotScheduledError: (status.HTTP_404_NOT_FOUND, "Not Scheduled"),
    TransitionFailedError: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Transition Failed",
    ),
}

_DEFAULT_RESPONSE: Final = (status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error")


def _field_code(error: DomainError) -> str:
    if isinstance(error, InvalidCredentialError):
        return error.code
    message = error.message.lower()
    if "required" in message:
        return ErrorCodes.FIELD_REQUIRED
    if "must be a string" in message:
        return ErrorCodes.FIELD_INVALID_TYPE
    if "between" in message:
        return ErrorCodes.FIELD_INVALID_VALUE
    return error.code


def problem_for_domain_error(error: DomainError, instance: str) -> ProblemDetail:
    """Convert a domain error into a Problem Details object."""
    status_code, title = _ERROR_RESPONSES.get(type(error), _DEFAULT_RESPONSE)

    field_errors = None
    if error.field:
        field_errors = [
            {
                "field": error.field,
                "code": _field_code(error),
                "message": error.message,
            }
        ]

    return ProblemDetailFactory.create(
        status_code=status_code,
        title=title,
        code=error.code,
        detail=error.message,
        instance=instance,
        field_errors=field_errors,
    )


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to appropriate HTTP responses."""
    problem = problem_for_domain_error(error, str(request.url.path))
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
    )
