"""Use case for creating users."""

from sqlalchemy.orm import Session

from kanban.domain.entities import User
from kanban.infrastructure.repositories import UserRepository
from kanban.infrastructure.security import get_password_hash
from kanban.utils import local_now


def create_user(
    session: Session,
    *,
    username: str,
    full_name: str,
    email: str,
    password: str,
    avatar: str | None = None,
) -> User:
    """Create a new user ensuring unique e-mail addresses and usernames."""

    repository = UserRepository(session)

    if repository.get_by_email(email):
        raise ValueError("El correo electrónico ya está registrado")
    if repository.get_by_username(username):
        raise ValueError("El nombre de usuario ya está registrado")

    user = User(
        id=None,
        username=username,
        full_name=full_name,
        email=email,
        password=get_password_hash(password),
        avatar=avatar,
        is_active=True,
        last_login=None,
        created_at=local_now(),
        updated_at=None,
    )
    return repository.create(user)
