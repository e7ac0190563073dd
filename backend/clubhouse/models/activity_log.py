"""
Activity log model.

Append-only: rows are written by clubhouse.platform.activity_logger and are
never updated or deleted by application code.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from clubhouse.db_base import Base
from clubhouse.models.base import generate_uuid, utcnow


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # Null for system-initiated actions, or after the user was deleted
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    subject_type = Column(String(100), nullable=True)
    subject_id = Column(String(36), nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User")

    __table_args__ = (
        Index("ix_activity_logs_action", "action"),
        Index("ix_activity_logs_user_id", "user_id"),
        Index("ix_activity_logs_created_at", "created_at"),
        Index("ix_activity_logs_subject", "subject_type", "subject_id"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, action={self.action}, user_id={self.user_id})>"
