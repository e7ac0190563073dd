"""
In-app notification model.

The payload lives in `data` as {title, message, action_url, type, ...}.
The only mutation after creation is setting read_at.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, JSON, String
from sqlalchemy.orm import relationship

from clubhouse.db_base import Base
from clubhouse.models.base import generate_uuid, utcnow

# Producer tags stored in Notification.type
NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY = "membership_expiry"
NOTIFICATION_TYPE_MEMBERSHIP_STATUS = "membership"
NOTIFICATION_TYPE_BOOKING = "booking"
NOTIFICATION_TYPE_TOURNAMENT = "tournament"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type = Column(String(64), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("ix_notifications_user_type", "user_id", "type"),
        Index("ix_notifications_user_read", "user_id", "read_at"),
    )

    @property
    def title(self) -> str:
        return (self.data or {}).get("title", "")

    @property
    def message(self) -> str:
        return (self.data or {}).get("message", "")

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_as_read(self) -> None:
        if self.read_at is None:
            self.read_at = utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "data": dict(self.data or {}),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "read_at": self.read_at.isoformat() if self.read_at else None,
        }

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type})>"
