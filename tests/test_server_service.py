import pytest
from sqlmodel import Session

from conftest import MODERATOR_PASSWORD
from servermod.application.schedule_service import undo_scheduled_deletion
from servermod.application.server_service import get_server_moderation_view
from servermod.domain.exceptions import ForbiddenError, ServerNotFoundError
from servermod.infrastructure.database.repositories import ServerRepository


def test_view_is_cached(session, moderator, create_server, cache):
    create_server("S1", "Cozy Corner", scheduled=True)

    view = get_server_moderation_view(session, moderator, "S1", cache)

    assert view["scheduled_for_deletion"]["scheduled_by_id"] == "O1"
    assert cache.get("S1") == view


def test_unknown_server(session, moderator, cache):
    with pytest.raises(ServerNotFoundError):
        get_server_moderation_view(session, moderator, "missing", cache)

    assert cache.get("missing") is None


def test_view_requires_moderator(session, regular_user, create_server, cache):
    create_server("S1", "Cozy Corner")

    with pytest.raises(ForbiddenError):
        get_server_moderation_view(session, regular_user, "S1", cache)


def test_read_racing_undo_never_caches_removed_schedule(
    engine, session, moderator, create_server, cache, notifier, monkeypatch
):
    """A read loads the scheduled server, then an undo commits before the read
    stores its view. The stale view must not be cached."""
    create_server("S1", "Cozy Corner", scheduled=True)
    original_find = ServerRepository.find_with_schedule
    undone = []

    def find_then_undo(self, server_id):
        server = original_find(self, server_id)
        if not undone:
            with Session(engine) as other_session:
                undone.append(
                    undo_scheduled_deletion(
                        other_session,
                        moderator,
                        server_id,
                        MODERATOR_PASSWORD,
                        cache=cache,
                        notifier=notifier,
                    )
                )
        return server

    monkeypatch.setattr(ServerRepository, "find_with_schedule", find_then_undo)

    stale = get_server_moderation_view(session, moderator, "S1", cache)
    monkeypatch.undo()

    assert len(undone) == 1
    assert stale["scheduled_for_deletion"] is not None
    assert cache.get("S1") is None

    fresh = get_server_moderation_view(session, moderator, "S1", cache)
    assert fresh["scheduled_for_deletion"] is None
    assert cache.get("S1") == fresh
