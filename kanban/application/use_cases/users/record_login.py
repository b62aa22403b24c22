from sqlalchemy.orm import Session

from kanban.infrastructure.repositories import UserRepository
from kanban.utils import local_now


def record_login(session: Session, user_id: int) -> None:
    UserRepository(session).touch_last_login(user_id, local_now())
