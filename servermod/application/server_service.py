from typing import Any

from sqlmodel import Session

from ..domain.entities import Server, User
from ..domain.exceptions import ServerNotFoundError
from ..infrastructure.cache import ServerCache
from ..infrastructure.database.repositories import ServerRepository
from ..logging_config import get_logger
from .authorization import authorize_moderator_read

logger = get_logger(__name__)


def _server_view(server: Server) -> dict[str, Any]:
    schedule = server.scheduled_deletion
    return {
        "id": server.id,
        "name": server.name,
        "created_by_id": server.created_by_id,
        "scheduled_for_deletion": (
            {
                "scheduled_by_id": schedule.scheduled_by_id,
                "scheduled_at": schedule.scheduled_at.isoformat(),
            }
            if schedule
            else None
        ),
    }


def get_server_moderation_view(
    session: Session, principal: User | None, server_id: str, cache: ServerCache
) -> dict[str, Any]:
    """Get a server with its deletion schedule, served from cache when possible.

    Raises:
        ServerNotFoundError: If the server does not exist
    """
    authorize_moderator_read(principal)

    cached = cache.get(server_id)
    if cached is not None:
        logger.debug("Server view served from cache", server_id=server_id)
        return cached

    # An undo committing during the read bumps the generation
    generation = cache.generation(server_id)
    server = ServerRepository(session).find_with_schedule(server_id)
    if server is None:
        raise ServerNotFoundError()

    view = _server_view(server)
    cache.set(server_id, view, generation=generation)
    return view
