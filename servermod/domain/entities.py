"""Pure domain entities without infrastructure dependencies."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import IntEnum, IntFlag

from .constants import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from .exceptions import ValidationError


class Badge(IntFlag):
    """Capability badges a user can hold."""

    NONE = 0
    FOUNDER = 1
    ADMIN = 2
    MODERATOR = 4
    SUPPORTER = 8


MODERATOR_BADGES = Badge.FOUNDER | Badge.ADMIN | Badge.MODERATOR


class ModAuditLogType(IntEnum):
    """Moderation action tags. Values are persisted, never renumber."""

    USER_SUSPEND = 0
    USER_UNSUSPEND = 1
    SERVER_DELETE = 2
    SERVER_DELETE_SCHEDULE = 3
    SERVER_DELETE_UNDO = 4


def validate_password_shape(password: object) -> None:
    """Validate the shape of a re-proof password.

    Pure domain validation without logging or external dependencies.

    Args:
        password: The value supplied by the caller

    Raises:
        ValidationError: If the password is missing, not a string, or has a
            length outside the allowed bounds
    """
    if password is None or password == "":
        raise ValidationError("Password is required", field="password")

    if not isinstance(password, str):
        raise ValidationError("Password must be a string!", field="password")

    if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be between {MIN_PASSWORD_LENGTH} and "
            f"{MAX_PASSWORD_LENGTH} characters long.",
            field="password",
        )


@dataclass
class User:
    """The acting principal as resolved by the identity layer."""

    id: str
    username: str
    badges: Badge = Badge.NONE

    def is_moderator(self) -> bool:
        """Check if the user holds any moderator capability badge."""
        return bool(self.badges & MODERATOR_BADGES)


@dataclass
class Account:
    """Stored credential of a user. Read only, used for verification."""

    id: str
    user_id: str
    password_hash: str


@dataclass
class ScheduledDeletion:
    """A pending, not yet executed removal of a server."""

    server_id: str
    scheduled_by_id: str
    scheduled_at: datetime


@dataclass
class Server:
    """Core business entity representing a community server."""

    id: str
    name: str
    created_by_id: str
    created_at: datetime | None = None
    scheduled_deletion: ScheduledDeletion | None = None

    def is_scheduled_for_deletion(self) -> bool:
        """The schedule record's presence is the only pending-deletion signal."""
        return self.scheduled_deletion is not None


@dataclass(frozen=True)
class ModAuditLogEntry:
    """Immutable record of a moderation action."""

    id: str
    action_type: ModAuditLogType
    action_by_id: str
    server_id: str | None = None
    server_name: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def server_deletion_undone(
        cls, entry_id: str, moderator: User, server: Server
    ) -> "ModAuditLogEntry":
        """Build the entry for an undone server deletion.

        The server name is snapshotted now so later renames don't rewrite history.
        """
        return cls(
            id=entry_id,
            action_type=ModAuditLogType.SERVER_DELETE_UNDO,
            action_by_id=moderator.id,
            server_id=server.id,
            server_name=server.name,
            user_id=server.created_by_id,
            created_at=datetime.now(UTC),
        )
