from sqlmodel import Session

from ..domain.constants import MAX_AUDIT_LOG_LIMIT
from ..domain.entities import ModAuditLogEntry, User
from ..domain.exceptions import ValidationError
from ..infrastructure.database.repositories import ModAuditLogRepository
from .authorization import authorize_moderator_read


def list_mod_audit_logs(
    session: Session, principal: User | None, limit: int
) -> list[ModAuditLogEntry]:
    """List moderation audit entries, newest first."""
    authorize_moderator_read(principal)

    if not 1 <= limit <= MAX_AUDIT_LOG_LIMIT:
        raise ValidationError(
            f"Limit must be between 1 and {MAX_AUDIT_LOG_LIMIT}", field="limit"
        )

    return ModAuditLogRepository(session).find_recent(limit)
