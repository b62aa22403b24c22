"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text

from kanban.domain.entities import NotificationStatus, NotificationType
from kanban.infrastructure.database import Base
from kanban.utils import local_now_naive


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    project_id = Column(Integer, nullable=True, index=True)
    task_id = Column(Integer, nullable=True, index=True)
    from_user_id = Column(Integer, nullable=True, index=True)
    type = Column(
        Enum(
            NotificationType,
            name="notification_type",
            values_callable=_enum_values,
            native_enum=False,
            length=40,
        ),
        nullable=False,
    )
    status = Column(
        Enum(
            NotificationStatus,
            name="notification_status",
            values_callable=_enum_values,
            native_enum=False,
            length=20,
        ),
        nullable=False,
        default=NotificationStatus.UNREAD,
        index=True,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False, default=local_now_naive)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=local_now_naive,
        onupdate=local_now_naive,
    )
    read_at = Column(DateTime(), nullable=True)
    archived_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationModel"]
