"""Domain-specific exceptions.

Every error carries a stable ``code`` and a default user-facing ``message`` so
clients can tell "wrong password" apart from "already not scheduled" apart from
"try again later".
"""


class DomainError(Exception):
    """Base exception for domain errors."""

    code = "domain_error"
    message = "Something went wrong."
    field: str | None = None

    def __init__(self, message: str | None = None, *, field: str | None = None):
        if message is not None:
            self.message = message
        if field is not None:
            self.field = field
        super().__init__(self.message)


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    code = "input_invalid"
    message = "Please check your input and try again."


class NotAuthenticatedError(DomainError):
    """Raised when no acting principal could be resolved."""

    code = "not_authenticated"
    message = "Authentication required."


class ForbiddenError(DomainError):
    """Raised when the principal lacks moderator capability."""

    code = "forbidden"
    message = "Moderator access required."


class InvalidCredentialError(DomainError):
    """Raised when the re-proof password does not match."""

    code = "invalid_password"
    message = "Invalid password."
    field = "password"


class AccountInconsistencyError(DomainError):
    """Raised when a resolved user has no stored credential."""

    code = "account_unavailable"
    message = "Something went wrong. Try again later."


class ServerNotFoundError(DomainError):
    code = "server_not_found"
    message = "Server does not exist."


class NotScheduledError(DomainError):
    """Raised when the server carries no scheduled deletion to undo."""

    code = "not_scheduled"
    message = "Server is already not scheduled to delete."


class TransitionFailedError(DomainError):
    """Raised when the store could not remove the schedule record."""

    code = "transition_failed"
    message = "Failed to de-schedule server deletion."


class AuditWriteFailedError(DomainError):
    """Raised when an audit entry could not be persisted.

    Never fatal to an undo that already committed.
    """

    code = "audit_write_failed"
    message = "Failed to write moderation audit log entry."
