from datetime import UTC, datetime

import pytest
from sqlmodel import Session

from servermod.domain.entities import ModAuditLogEntry, ModAuditLogType
from servermod.domain.exceptions import AuditWriteFailedError
from servermod.infrastructure.database.repositories import (
    AccountRepository,
    ModAuditLogRepository,
    ScheduledDeletionRepository,
    ServerRepository,
    UserRepository,
)


def _entry(entry_id: str, created_at: datetime | None = None) -> ModAuditLogEntry:
    return ModAuditLogEntry(
        id=entry_id,
        action_type=ModAuditLogType.SERVER_DELETE_UNDO,
        action_by_id="M1",
        server_id="S1",
        server_name="Cozy Corner",
        user_id="O1",
        created_at=created_at or datetime.now(UTC),
    )


def test_find_with_schedule_loads_schedule(session, create_server):
    create_server("S1", "Cozy Corner", scheduled=True)
    create_server("S2", "Quiet Place")

    scheduled = ServerRepository(session).find_with_schedule("S1")
    active = ServerRepository(session).find_with_schedule("S2")

    assert scheduled is not None and scheduled.is_scheduled_for_deletion()
    assert scheduled.scheduled_deletion.scheduled_by_id == "O1"
    assert active is not None and not active.is_scheduled_for_deletion()
    assert ServerRepository(session).find_with_schedule("nope") is None


def test_delete_for_server_is_conditional(session, create_server):
    create_server("S1", "Cozy Corner", scheduled=True)
    create_server("S2", "Quiet Place")
    repo = ScheduledDeletionRepository(session)

    assert repo.delete_for_server("S1") is True
    assert repo.delete_for_server("S1") is False
    assert repo.delete_for_server("S2") is False
    assert repo.delete_for_server("missing") is False


def test_delete_from_two_sessions_only_one_wins(engine, session, create_server):
    """Covers: two sessions that both saw the schedule, one delete wins."""
    create_server("S1", "Cozy Corner", scheduled=True)

    with Session(engine) as other_session:
        first = ServerRepository(session).find_with_schedule("S1")
        second = ServerRepository(other_session).find_with_schedule("S1")
        assert first.is_scheduled_for_deletion()
        assert second.is_scheduled_for_deletion()

        results = [
            ScheduledDeletionRepository(session).delete_for_server("S1"),
            ScheduledDeletionRepository(other_session).delete_for_server("S1"),
        ]

    assert sorted(results) == [False, True]


def test_delete_keeps_server(session, create_server):
    create_server("S1", "Cozy Corner", scheduled=True)

    ScheduledDeletionRepository(session).delete_for_server("S1")

    server = ServerRepository(session).find_with_schedule("S1")
    assert server is not None
    assert server.name == "Cozy Corner"
    assert not server.is_scheduled_for_deletion()


def test_audit_append_and_list_newest_first(session):
    repo = ModAuditLogRepository(session)
    repo.append(_entry("1", datetime(2026, 1, 1, tzinfo=UTC)))
    repo.append(_entry("2", datetime(2026, 1, 2, tzinfo=UTC)))
    repo.append(_entry("3", datetime(2026, 1, 3, tzinfo=UTC)))

    entries = repo.find_recent(limit=2)

    assert [entry.id for entry in entries] == ["3", "2"]
    assert entries[0].action_type is ModAuditLogType.SERVER_DELETE_UNDO
    assert entries[0].server_name == "Cozy Corner"


def test_audit_append_failure_is_reported(session):
    repo = ModAuditLogRepository(session)
    repo.append(_entry("dup"))

    with pytest.raises(AuditWriteFailedError):
        repo.append(_entry("dup"))

    # The session is usable again after the failed write
    assert [entry.id for entry in repo.find_recent(limit=10)] == ["dup"]


def test_user_and_account_lookup(session, moderator):
    assert UserRepository(session).find_by_id("M1") == moderator
    assert UserRepository(session).find_by_id("nobody") is None

    account = AccountRepository(session).find_by_user_id("M1")
    assert account is not None
    assert account.password_hash.startswith("$2")
    assert AccountRepository(session).find_by_user_id("nobody") is None
