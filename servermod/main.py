import socket
from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import get_main_engine, init_db
from .logging_config import get_logger, setup_logging
from .logging_utils import log_system_info
from .middleware import log_requests_middleware
from .presentation.api_routes import api_router
from .presentation.error_handlers import handle_domain_error
from .presentation.problem_details import ProblemDetail, ProblemDetailFactory
from .rate_limiting import rate_limit_middleware
from .telemetry import setup_telemetry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()

    init_db(get_main_engine())
    logger.info("Database initialized successfully")

    log_system_info(socket.gethostname(), settings.debug)

    yield

    logger.info("Application shutdown completed")


app: Final = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
    description="""
**ServerMod** - moderation service for community servers.

## Scheduled deletion undo

Moderators can cancel a server's pending deletion. The action requires
moderator capability and a fresh password re-proof. Every undo appends an
entry to the moderation audit log, drops cached views of the server and
notifies listeners that the deletion countdown is gone.

## Errors

Errors are RFC 7807 Problem Details with a stable `code`, e.g.
`invalid_password`, `server_not_found`, `not_scheduled`.

## Authentication

Sessions are resolved by the gateway in front of this service, which forwards
the authenticated user id in the `X-User-Id` header.
    """.strip(),
    openapi_tags=[
        {
            "name": "moderation",
            "description": "Moderator actions on servers and the audit log",
        },
    ],
)

setup_telemetry(app)

# Order matters: rate limiting before logging
app.middleware("http")(rate_limit_middleware)
app.middleware("http")(log_requests_middleware)


def _problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
    )


def _request_context(request: Request) -> dict[str, str]:
    return {"path": request.url.path, "method": request.method}


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning(
        "Domain error occurred",
        error_type=type(exc).__name__,
        error_code=exc.code,
        error_message=exc.message,
        **_request_context(request),
    )
    return handle_domain_error(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    field_errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body")
            or "unknown",
            "code": error["type"],
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    # Field names only, raw input may contain the password
    logger.warning(
        "Request validation error occurred",
        fields=[error["field"] for error in field_errors],
        **_request_context(request),
    )
    return _problem_response(
        ProblemDetailFactory.validation_failed(
            detail="Request validation failed",
            instance=request.url.path,
            field_errors=field_errors,
        )
    )


@app.exception_handler(SQLAlchemyError)
@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Store faults and unexpected errors: logged in full, generic 500 body."""
    is_database_error = isinstance(exc, SQLAlchemyError)
    logger.error(
        "Database error occurred" if is_database_error else "Unexpected error occurred",
        error_type=type(exc).__name__,
        error_message=str(exc),
        **_request_context(request),
    )
    return _problem_response(
        ProblemDetailFactory.internal_server_error(
            detail="A database error occurred. Please try again."
            if is_database_error
            else "Something went wrong. Try again later.",
            instance=request.url.path,
        )
    )


app.include_router(api_router)


def run() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "servermod.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
