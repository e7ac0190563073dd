"""Key/value club settings (fees, rates, payment QR code)."""

from typing import Optional

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import Session

from clubhouse.db_base import Base
from clubhouse.models.base import TimestampMixin, generate_uuid


class Setting(Base, TimestampMixin):
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=True)
    description = Column(String(255), nullable=True)

    @classmethod
    def get_value(cls, db: Session, key: str, default: Optional[str] = None) -> Optional[str]:
        setting = db.query(cls).filter(cls.key == key).first()
        if setting is None or setting.value is None:
            return default
        return setting.value

    @classmethod
    def as_mapping(cls, db: Session) -> dict:
        return {setting.key: setting.value for setting in db.query(cls).all()}

    def __repr__(self) -> str:
        return f"<Setting(key={self.key}, value={self.value})>"
