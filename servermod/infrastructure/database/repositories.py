"""Infrastructure layer - Repository implementations."""

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select

from ...domain.entities import Account as DomainAccount
from ...domain.entities import ModAuditLogEntry as DomainModAuditLogEntry
from ...domain.entities import Server as DomainServer
from ...domain.entities import User as DomainUser
from ...domain.exceptions import AuditWriteFailedError, TransitionFailedError
from ...logging_config import get_logger
from ...logging_utils import log_database_operation
from .models import Account as AccountModel
from .models import ModAuditLog as ModAuditLogModel
from .models import ScheduledServerDeletion as ScheduledServerDeletionModel
from .models import Server as ServerModel
from .models import User as UserModel

logger = get_logger(__name__)


class UserRepository:
    """Repository for User lookups."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: str) -> DomainUser | None:
        """Find user by ID."""
        user_model = self.session.get(UserModel, user_id)
        return user_model.to_domain() if user_model else None


class AccountRepository:
    """Read-only access to stored credentials."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_user_id(self, user_id: str) -> DomainAccount | None:
        """Find the account holding the credential of a user."""
        account_model = self.session.exec(
            select(AccountModel).where(AccountModel.user_id == user_id)
        ).first()
        return account_model.to_domain() if account_model else None


class ServerRepository:
    """Repository for Server reads."""

    def __init__(self, session: Session):
        self.session = session

    def find_with_schedule(self, server_id: str) -> DomainServer | None:
        """Find server with its scheduled deletion (if any) loaded."""
        server_model = self.session.exec(
            select(ServerModel)
            .options(selectinload(ServerModel.scheduled_deletion))  # type: ignore[arg-type]
            .where(ServerModel.id == server_id)
        ).first()
        return server_model.to_domain() if server_model else None


class ScheduledDeletionRepository:
    """Repository for the per-server deletion schedule record."""

    def __init__(self, session: Session):
        self.session = session

    def delete_for_server(self, server_id: str) -> bool:
        """Remove the schedule record of a server if it still exists.

        Issued as a single conditional DELETE so that of several concurrent
        callers only one sees an affected row.

        Returns:
            True if exactly one record was removed, False if none was left

        Raises:
            TransitionFailedError: If the store failed or timed out
        """
        statement = delete(ScheduledServerDeletionModel).where(
            col(ScheduledServerDeletionModel.server_id) == server_id
        )
        try:
            result = self.session.connection().execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_database_operation(
                operation="delete",
                table="schedule_server_deletes",
                success=False,
                server_id=server_id,
                error=str(e),
            )
            raise TransitionFailedError() from e

        removed = result.rowcount == 1
        log_database_operation(
            operation="delete",
            table="schedule_server_deletes",
            success=True,
            server_id=server_id,
            removed=removed,
        )
        return removed


class ModAuditLogRepository:
    """Append-only access to the moderation audit log."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, entry: DomainModAuditLogEntry) -> DomainModAuditLogEntry:
        """Persist a new audit entry.

        Raises:
            AuditWriteFailedError: If the entry could not be written
        """
        entry_model = ModAuditLogModel.from_domain(entry)
        try:
            self.session.add(entry_model)
            self.session.commit()
            self.session.refresh(entry_model)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                "Failed to append moderation audit entry",
                entry_id=entry.id,
                action_type=entry.action_type.name,
                error=str(e),
            )
            raise AuditWriteFailedError() from e

        return entry_model.to_domain()

    def find_recent(self, limit: int) -> list[DomainModAuditLogEntry]:
        """Get the newest entries first."""
        entries = self.session.exec(
            select(ModAuditLogModel)
            .order_by(
                col(ModAuditLogModel.created_at).desc(),
                col(ModAuditLogModel.id).desc(),
            )
            .limit(limit)
        ).all()
        return [entry.to_domain() for entry in entries]
