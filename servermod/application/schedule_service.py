"""Cancelling a server's scheduled deletion.

Moves a server from pending deletion back to active. Side effects run strictly
after the schedule record is gone: audit entry, cache invalidation, then the
change notification. Once the schedule is removed nothing here re-creates it;
a failing side effect degrades to a warning on the result.
"""

from dataclasses import dataclass, field
from typing import Protocol

from sqlmodel import Session

from ..domain.entities import (
    ModAuditLogEntry,
    ModAuditLogType,
    User,
    validate_password_shape,
)
from ..domain.exceptions import (
    AuditWriteFailedError,
    DomainError,
    NotScheduledError,
    ServerNotFoundError,
)
from ..infrastructure.database.repositories import (
    ModAuditLogRepository,
    ScheduledDeletionRepository,
    ServerRepository,
)
from ..infrastructure.ids import generate_id
from ..logging_config import get_logger
from ..logging_utils import log_moderation_action
from ..metrics import record_audit_write_failure, record_undo_outcome
from .authorization import authorize_destructive_action

logger = get_logger(__name__)

AUDIT_WRITE_FAILED = AuditWriteFailedError.code
CACHE_INVALIDATION_FAILED = "cache_invalidation_failed"
NOTIFICATION_FAILED = "notification_failed"


class ServerCacheInvalidator(Protocol):
    def invalidate(self, server_id: str) -> bool: ...


class ScheduleChangeNotifier(Protocol):
    def announce_schedule_removed(self, server_id: str) -> None: ...


@dataclass
class UndoResult:
    """Confirmation of an undone deletion, with any degraded side effects."""

    server_id: str
    warnings: list[str] = field(default_factory=list)


def undo_scheduled_deletion(
    session: Session,
    principal: User | None,
    server_id: str,
    password: str,
    *,
    cache: ServerCacheInvalidator,
    notifier: ScheduleChangeNotifier,
) -> UndoResult:
    """Undo the scheduled deletion of a server.

    Args:
        session: Database session
        principal: The acting user as resolved by the identity layer
        server_id: Server whose schedule should be removed
        password: The principal's password, re-proven for this action
        cache: Receives the invalidation of the server's cached view
        notifier: Receives the "schedule removed" announcement

    Returns:
        UndoResult, possibly carrying warnings for degraded side effects

    Raises:
        ValidationError: Password shape is invalid
        NotAuthenticatedError, ForbiddenError, AccountInconsistencyError,
        InvalidCredentialError: The authorization gate refused
        ServerNotFoundError: No such server
        NotScheduledError: The server has no scheduled deletion (or another
            request removed it first)
        TransitionFailedError: The store could not remove the schedule
    """
    try:
        moderator, server = _remove_schedule(session, principal, server_id, password)
    except DomainError as e:
        record_undo_outcome(e.code)
        raise

    result = UndoResult(server_id=server.id)

    try:
        entry = ModAuditLogEntry.server_deletion_undone(
            entry_id=generate_id(), moderator=moderator, server=server
        )
        ModAuditLogRepository(session).append(entry)
    except Exception as e:
        # The schedule stays removed, only the audit trail is degraded
        session.rollback()
        logger.error(
            "Audit entry for undo not written",
            server_id=server.id,
            error_type=type(e).__name__,
            error=str(e),
        )
        record_audit_write_failure(ModAuditLogType.SERVER_DELETE_UNDO.name)
        result.warnings.append(AUDIT_WRITE_FAILED)

    try:
        cache.invalidate(server.id)
    except Exception as e:
        logger.error(
            "Server cache invalidation failed", server_id=server.id, error=str(e)
        )
        result.warnings.append(CACHE_INVALIDATION_FAILED)

    try:
        notifier.announce_schedule_removed(server.id)
    except Exception as e:
        logger.error(
            "Schedule removal announcement failed", server_id=server.id, error=str(e)
        )
        result.warnings.append(NOTIFICATION_FAILED)

    log_moderation_action(
        "server_delete_undo",
        moderator.id,
        server_id=server.id,
        server_name=server.name,
        warnings=result.warnings,
    )
    logger.info(
        "Scheduled server deletion undone",
        server_id=server.id,
        moderator_id=moderator.id,
        warnings=result.warnings,
    )
    record_undo_outcome("success" if not result.warnings else "degraded")
    return result


def _remove_schedule(
    session: Session, principal: User | None, server_id: str, password: str
):
    """Validate, authorize and delete the schedule record. No other side effects."""
    validate_password_shape(password)
    moderator = authorize_destructive_action(session, principal, password)

    server = ServerRepository(session).find_with_schedule(server_id)
    if server is None:
        logger.warning("Undo failed - server not found", server_id=server_id)
        raise ServerNotFoundError()

    if not server.is_scheduled_for_deletion():
        logger.warning("Undo failed - server not scheduled", server_id=server_id)
        raise NotScheduledError()

    if not ScheduledDeletionRepository(session).delete_for_server(server.id):
        # Another request removed the schedule between our read and delete
        logger.warning("Undo lost race - schedule already removed", server_id=server_id)
        raise NotScheduledError()

    return moderator, server
