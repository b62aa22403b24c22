"""SQLAlchemy model for project activity logs."""

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from kanban.domain.entities import ActivityType
from kanban.infrastructure.database import Base
from kanban.utils import local_now_naive


class ActivityLogModel(Base):
    """Append-only record of project activity."""

    __tablename__ = "activity_log"
    __table_args__ = (
        Index("ix_activity_log_project_created", "project_id", "created_at"),
        Index("ix_activity_log_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("project.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    action = Column(
        Enum(
            ActivityType,
            name="activity_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            native_enum=False,
            length=40,
        ),
        nullable=False,
    )
    description = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=False, default=local_now_naive)

    user = relationship("UserModel", lazy="joined")
    project = relationship("ProjectModel", lazy="joined")


__all__ = ["ActivityLogModel"]
