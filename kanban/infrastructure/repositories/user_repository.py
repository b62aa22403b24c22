"""Persistence layer for user data."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from kanban.domain.entities import User
from kanban.infrastructure.models import UserModel
from kanban.utils import to_local, to_storage


class UserRepository:
    """Look up and register users; notifications only ever need their identity."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        return self._first(UserModel.email == email)

    def get_by_username(self, username: str) -> User | None:
        return self._first(UserModel.username == username)

    def create(self, user: User) -> User:
        model = UserModel(
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            password=user.password,
            avatar=user.avatar,
            is_active=user.is_active,
        )
        if user.created_at is not None:
            model.created_at = to_storage(user.created_at)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def touch_last_login(self, user_id: int, when: datetime) -> None:
        self.session.query(UserModel).filter(UserModel.id == user_id).update(
            {UserModel.last_login: to_storage(when)}, synchronize_session=False
        )
        self.session.commit()

    def _first(self, criterion) -> User | None:
        model = self.session.query(UserModel).filter(criterion).first()
        return self._to_entity(model) if model else None

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            full_name=model.full_name,
            email=model.email,
            password=model.password,
            avatar=model.avatar,
            is_active=model.is_active,
            last_login=to_local(model.last_login),
            created_at=to_local(model.created_at),
            updated_at=to_local(model.updated_at),
        )


__all__ = ["UserRepository"]
