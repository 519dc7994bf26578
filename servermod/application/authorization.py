"""Authorization gate for destructive-state-reversing moderation actions.

Two independent checks are composed: a coarse capability check on the
principal's badges, then a re-proof of identity with the account password.
"""

from sqlmodel import Session

from ..domain.entities import User
from ..domain.exceptions import (
    AccountInconsistencyError,
    ForbiddenError,
    InvalidCredentialError,
    NotAuthenticatedError,
)
from ..infrastructure.database.repositories import AccountRepository
from ..infrastructure.security import check_password
from ..logging_config import get_logger

logger = get_logger(__name__)


def require_authenticated(principal: User | None) -> User:
    """Ensure an acting principal was resolved by the identity layer."""
    if principal is None:
        raise NotAuthenticatedError()
    return principal


def require_moderator(principal: User) -> None:
    """Ensure the principal holds moderator capability.

    Raises:
        ForbiddenError: If no moderator badge is held
    """
    if not principal.is_moderator():
        logger.warning(
            "Moderator capability check failed",
            user_id=principal.id,
            badges=int(principal.badges),
        )
        raise ForbiddenError()


def verify_password(session: Session, principal: User, password: str) -> None:
    """Re-prove the principal's identity with their account password.

    Raises:
        AccountInconsistencyError: If the user has no stored credential
        InvalidCredentialError: If the password does not match
    """
    account = AccountRepository(session).find_by_user_id(principal.id)
    if account is None:
        # Users are always created with an account
        logger.error("Account missing for resolved user", user_id=principal.id)
        raise AccountInconsistencyError()

    if not check_password(account.password_hash, password):
        logger.warning("Password re-proof failed", user_id=principal.id)
        raise InvalidCredentialError()


def authorize_destructive_action(
    session: Session, principal: User | None, password: str
) -> User:
    """Run the full gate: authenticated, moderator, then password re-proof.

    Returns:
        The authorized principal
    """
    user = require_authenticated(principal)
    require_moderator(user)
    verify_password(session, user, password)
    return user


def authorize_moderator_read(principal: User | None) -> User:
    """Gate for read-only moderation views. No password re-proof."""
    user = require_authenticated(principal)
    require_moderator(user)
    return user
