from datetime import UTC, datetime
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel

from ...domain.entities import Account as DomainAccount
from ...domain.entities import Badge, ModAuditLogType
from ...domain.entities import ModAuditLogEntry as DomainModAuditLogEntry
from ...domain.entities import ScheduledDeletion as DomainScheduledDeletion
from ...domain.entities import Server as DomainServer
from ...domain.entities import User as DomainUser


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(SQLModel, table=True):  # type: ignore[call-arg]
    """A platform user. Badges hold capability flags such as moderator."""

    __tablename__: str = "users"  # type: ignore[assignment]

    id: str = Field(primary_key=True)
    username: str = Field(index=True)
    badges: int = Field(default=0)

    def to_domain(self) -> DomainUser:
        """Convert persistence model to domain entity."""
        return DomainUser(
            id=self.id, username=self.username, badges=Badge(self.badges)
        )


class Account(SQLModel, table=True):  # type: ignore[call-arg]
    """Login credentials of a user."""

    __tablename__: str = "accounts"  # type: ignore[assignment]

    id: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    password: str  # bcrypt hash

    def to_domain(self) -> DomainAccount:
        """Convert persistence model to domain entity."""
        return DomainAccount(
            id=self.id, user_id=self.user_id, password_hash=self.password
        )


class Server(SQLModel, table=True):  # type: ignore[call-arg]
    """A community server."""

    __tablename__: str = "servers"  # type: ignore[assignment]

    id: str = Field(primary_key=True)
    name: str
    created_by_id: str = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=_utcnow)

    scheduled_deletion: Optional["ScheduledServerDeletion"] = Relationship(
        back_populates="server", sa_relationship_kwargs={"uselist": False}
    )

    def to_domain(self) -> DomainServer:
        """Convert persistence model to domain entity."""
        return DomainServer(
            id=self.id,
            name=self.name,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
            scheduled_deletion=(
                self.scheduled_deletion.to_domain() if self.scheduled_deletion else None
            ),
        )


class ScheduledServerDeletion(SQLModel, table=True):  # type: ignore[call-arg]
    """Marks a server as queued for deletion. Keyed by server, so one at most."""

    __tablename__: str = "schedule_server_deletes"  # type: ignore[assignment]

    server_id: str = Field(foreign_key="servers.id", primary_key=True)
    scheduled_by_id: str = Field(foreign_key="users.id")
    scheduled_at: datetime = Field(default_factory=_utcnow)

    server: Server | None = Relationship(back_populates="scheduled_deletion")

    def to_domain(self) -> DomainScheduledDeletion:
        """Convert persistence model to domain entity."""
        return DomainScheduledDeletion(
            server_id=self.server_id,
            scheduled_by_id=self.scheduled_by_id,
            scheduled_at=self.scheduled_at,
        )


class ModAuditLog(SQLModel, table=True):  # type: ignore[call-arg]
    """Append-only moderation ledger.

    server_id is deliberately not a foreign key: entries outlive purged servers.
    """

    __tablename__: str = "mod_audit_logs"  # type: ignore[assignment]

    id: str = Field(primary_key=True)
    action_type: int = Field(index=True)
    action_by_id: str = Field(index=True)
    server_id: str | None = Field(default=None, index=True)
    server_name: str | None = None
    user_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow, index=True)

    @classmethod
    def from_domain(cls, entry: DomainModAuditLogEntry) -> "ModAuditLog":
        """Convert domain entity to persistence model."""
        return cls(
            id=entry.id,
            action_type=int(entry.action_type),
            action_by_id=entry.action_by_id,
            server_id=entry.server_id,
            server_name=entry.server_name,
            user_id=entry.user_id,
            created_at=entry.created_at or _utcnow(),
        )

    def to_domain(self) -> DomainModAuditLogEntry:
        """Convert persistence model to domain entity."""
        return DomainModAuditLogEntry(
            id=self.id,
            action_type=ModAuditLogType(self.action_type),
            action_by_id=self.action_by_id,
            server_id=self.server_id,
            server_name=self.server_name,
            user_id=self.user_id,
            created_at=self.created_at,
        )
