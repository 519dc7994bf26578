import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import Request

_SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "secret",
        "key",
        "token",
        "credential",
        "auth",
        "session",
        "cookie",
    }
)


def log_moderation_action(
    action: str, moderator_id: str, logger_name: str = "moderation", **kwargs: Any
) -> None:
    """Log moderation actions with consistent structure.

    Args:
        action: The action performed (e.g., 'server_delete_undo')
        moderator_id: ID of the moderator performing the action
        logger_name: Name of the logger to use
        **kwargs: Additional context data; sensitive keys are redacted
    """
    logger = logging.getLogger(logger_name)

    log_data = {
        "action": action,
        "moderator_id": moderator_id,
        "timestamp": datetime.now(UTC).isoformat(),
        **_redact(kwargs),
    }

    logger.info(f"Moderation action: {action} by {moderator_id}", extra=log_data)


def log_api_request(
    request: Request,
    response_status: int,
    process_time_ms: float | None = None,
    logger_name: str = "api",
) -> None:
    """Log API requests with consistent format.

    Args:
        request: FastAPI request object
        response_status: HTTP response status code
        process_time_ms: Request processing time in milliseconds
        logger_name: Name of the logger to use
    """
    logger = logging.getLogger(logger_name)

    log_data = {
        "method": request.method,
        "path": request.url.path,
        "status_code": response_status,
        "client_ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent", "Unknown")[:100],
    }

    if process_time_ms is not None:
        log_data["process_time_ms"] = str(round(process_time_ms, 2))

    if response_status >= 500:
        log_level = logging.ERROR
    elif response_status >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    message = f"{request.method} {request.url.path} - {response_status}"
    if process_time_ms is not None:
        message += f" ({process_time_ms:.1f}ms)"

    logger.log(log_level, message, extra=log_data)


def log_database_operation(
    operation: str,
    table: str,
    success: bool = True,
    logger_name: str = "database",
    **kwargs: Any,
) -> None:
    """Log database operations.

    Args:
        operation: Database operation (create, update, delete, select)
        table: Table name being operated on
        success: Whether the operation was successful
        logger_name: Name of the logger to use
        **kwargs: Additional context data
    """
    logger = logging.getLogger(logger_name)

    log_data = {"operation": operation, "table": table, "success": success, **kwargs}

    level = logging.INFO if success else logging.ERROR
    status = "succeeded" if success else "failed"

    logger.log(level, f"Database {operation} on {table} {status}", extra=log_data)


def log_system_info(hostname: str, debug_mode: bool) -> None:
    """Log system startup information."""
    logger = logging.getLogger("system")

    logger.info(
        "Application startup",
        extra={
            "hostname": hostname,
            "debug_mode": debug_mode,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


def _redact(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: "[REDACTED]" if is_sensitive_field(key) else value
        for key, value in data.items()
    }


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field contains sensitive data that should not be logged.

    Args:
        field_name: Name of the field to check

    Returns:
        True if field is sensitive, False otherwise
    """
    field_lower = field_name.lower()
    return any(sensitive in field_lower for sensitive in _SENSITIVE_FIELDS)
