from datetime import datetime
from typing import Annotated, Any, Final

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..application.audit_service import list_mod_audit_logs
from ..application.schedule_service import undo_scheduled_deletion
from ..application.server_service import get_server_moderation_view
from ..domain.constants import DEFAULT_AUDIT_LOG_LIMIT
from ..domain.entities import ModAuditLogEntry, User
from ..infrastructure.cache import ServerCache
from ..infrastructure.database.database import get_session
from ..infrastructure.notifier import ChangeNotifier
from .dependencies import get_acting_principal, get_change_notifier, get_server_cache

api_router: Final = APIRouter(
    prefix="/api/v1/moderation",
    tags=["moderation"],
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        401: {"description": "Unauthorized - No acting user"},
        403: {"description": "Forbidden - Not a moderator, or invalid password"},
        404: {"description": "Not Found - Resource or schedule does not exist"},
        429: {"description": "Too Many Requests - Rate limit exceeded"},
    },
)

SessionDep = Annotated[Session, Depends(get_session)]
PrincipalDep = Annotated[User | None, Depends(get_acting_principal)]
ServerIdPath = Annotated[str, Path(description="Server identifier", min_length=1)]


# Request Models
class PasswordConfirmation(BaseModel):
    """Password re-proof required for destructive moderation actions."""

    password: str | None = Field(
        None,
        description="The acting moderator's account password (4-72 characters)",
    )


# Response Models
class UndoScheduleDeleteResponse(BaseModel):
    """Confirmation that a scheduled deletion was removed."""

    success: bool = Field(description="Always true on a 200 response")
    warnings: list[str] = Field(
        default_factory=list,
        description="Side effects that failed after the schedule was removed",
    )


class ScheduledDeletionInfo(BaseModel):
    scheduled_by_id: str = Field(description="Moderator who scheduled the deletion")
    scheduled_at: datetime = Field(description="When the deletion was scheduled")


class ServerModerationResponse(BaseModel):
    """A server as seen by moderators."""

    id: str = Field(description="Server identifier")
    name: str = Field(description="Server display name")
    created_by_id: str = Field(description="Creator of the server")
    scheduled_for_deletion: ScheduledDeletionInfo | None = Field(
        description="Pending deletion, or null when the server is active"
    )


class ModAuditLogEntryResponse(BaseModel):
    id: str = Field(description="Entry identifier")
    action_type: int = Field(description="Numeric action type")
    action: str = Field(description="Action type name")
    action_by_id: str = Field(description="Moderator who performed the action")
    server_id: str | None = Field(description="Affected server")
    server_name: str | None = Field(description="Server name when the action ran")
    user_id: str | None = Field(description="Affected user (server creator)")
    created_at: datetime | None = Field(description="When the action ran")

    @classmethod
    def from_entry(cls, entry: ModAuditLogEntry) -> "ModAuditLogEntryResponse":
        return cls(
            id=entry.id,
            action_type=int(entry.action_type),
            action=entry.action_type.name,
            action_by_id=entry.action_by_id,
            server_id=entry.server_id,
            server_name=entry.server_name,
            user_id=entry.user_id,
            created_at=entry.created_at,
        )


class ModAuditLogListResponse(BaseModel):
    entries: list[ModAuditLogEntryResponse] = Field(description="Newest first")


@api_router.delete(
    "/servers/{server_id}/schedule-delete",
    response_model=UndoScheduleDeleteResponse,
    summary="Undo a scheduled server deletion",
)
def undo_schedule_delete(
    server_id: ServerIdPath,
    body: PasswordConfirmation,
    session: SessionDep,
    principal: PrincipalDep,
    cache: Annotated[ServerCache, Depends(get_server_cache)],
    notifier: Annotated[ChangeNotifier, Depends(get_change_notifier)],
) -> UndoScheduleDeleteResponse:
    """Cancel a pending deletion, returning the server to active.

    Requires moderator capability and the moderator's password.
    """
    result = undo_scheduled_deletion(
        session,
        principal,
        server_id,
        body.password or "",
        cache=cache,
        notifier=notifier,
    )
    return UndoScheduleDeleteResponse(success=True, warnings=result.warnings)


@api_router.get(
    "/servers/{server_id}",
    response_model=ServerModerationResponse,
    summary="Get a server's moderation state",
)
def get_server(
    server_id: ServerIdPath,
    session: SessionDep,
    principal: PrincipalDep,
    cache: Annotated[ServerCache, Depends(get_server_cache)],
) -> Any:
    return get_server_moderation_view(session, principal, server_id, cache)


@api_router.get(
    "/audit-logs",
    response_model=ModAuditLogListResponse,
    summary="List moderation audit log entries",
)
def get_audit_logs(
    session: SessionDep,
    principal: PrincipalDep,
    limit: Annotated[int, Query(description="Maximum entries")] = (
        DEFAULT_AUDIT_LOG_LIMIT
    ),
) -> ModAuditLogListResponse:
    entries = list_mod_audit_logs(session, principal, limit)
    return ModAuditLogListResponse(
        entries=[ModAuditLogEntryResponse.from_entry(entry) for entry in entries]
    )
