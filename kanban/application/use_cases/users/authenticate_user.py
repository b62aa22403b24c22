"""Use case for authenticating a user."""

from enum import Enum
from typing import NamedTuple

from sqlalchemy.orm import Session

from kanban.domain.entities import User
from kanban.infrastructure.repositories import UserRepository
from kanban.infrastructure.security import verify_password


class AuthenticationStatus(Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE = "inactive"


class AuthenticationResult(NamedTuple):
    user: User | None
    status: AuthenticationStatus


def authenticate_user(session: Session, login: str, password: str) -> AuthenticationResult:
    """Check ``password`` for the user whose e-mail or username is ``login``.

    The user is only returned when the password matches, even if the account
    is inactive, so callers can tell the two failures apart.
    """

    repository = UserRepository(session)
    user = repository.get_by_email(login) or repository.get_by_username(login)
    if user is None or not verify_password(password, user.password):
        return AuthenticationResult(None, AuthenticationStatus.INVALID_CREDENTIALS)
    if not user.is_active:
        return AuthenticationResult(user, AuthenticationStatus.INACTIVE)
    return AuthenticationResult(user, AuthenticationStatus.SUCCESS)
