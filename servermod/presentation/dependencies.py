"""FastAPI dependencies shared by the API routes."""

from typing import Annotated

from fastapi import Depends, Header
from sqlmodel import Session

from ..domain.entities import User
from ..infrastructure.cache import ServerCache, server_cache
from ..infrastructure.database.database import get_session
from ..infrastructure.database.repositories import UserRepository
from ..infrastructure.notifier import ChangeNotifier, change_notifier


def get_acting_principal(
    session: Annotated[Session, Depends(get_session)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> User | None:
    """Resolve the acting user.

    Session handling belongs to the identity layer in front of this service,
    which forwards the authenticated user id in ``X-User-Id``. Unknown or
    missing ids resolve to ``None``.
    """
    if not x_user_id:
        return None
    return UserRepository(session).find_by_id(x_user_id)


def get_server_cache() -> ServerCache:
    return server_cache


def get_change_notifier() -> ChangeNotifier:
    return change_notifier
