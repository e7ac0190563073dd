"""
Club settings service.

Settings are seeded with the club's default fees and then edited in bulk
by administrators. Only existing keys can be updated.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from clubhouse.config.club import DEFAULT_SETTINGS, QR_CODE_SETTING_KEY, get_default_setting
from clubhouse.models.setting import Setting
from clubhouse.platform.errors import ValidationError

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def seed_defaults(self) -> int:
        """Insert any default setting that is missing. Returns how many were added."""
        existing = {key for (key,) in self.db.query(Setting.key).all()}
        added = 0
        for key, value, description in DEFAULT_SETTINGS:
            if key in existing:
                continue
            self.db.add(Setting(key=key, value=value, description=description))
            added += 1
        if added:
            self.db.flush()
            logger.info("Seeded default settings", extra={"count": added})
        return added

    def list_settings(self) -> List[Setting]:
        """All settings except the payment QR code, ordered by key."""
        return (
            self.db.query(Setting)
            .filter(Setting.key != QR_CODE_SETTING_KEY)
            .order_by(Setting.key.asc())
            .all()
        )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if default is None:
            default = get_default_setting(key)
        return Setting.get_value(self.db, key, default)

    def get_decimal(self, key: str, default: str = "0") -> Decimal:
        raw = self.get(key)
        try:
            return Decimal(str(raw)) if raw not in (None, "") else Decimal(default)
        except InvalidOperation:
            logger.warning("Non-numeric setting value", extra={"key": key, "value": raw})
            return Decimal(default)

    def qr_code_path(self) -> Optional[str]:
        return Setting.get_value(self.db, QR_CODE_SETTING_KEY)

    def update_many(self, items: Iterable[Dict[str, str]]) -> int:
        """
        Update values of existing settings.

        Raises:
            ValidationError: If the list is empty, a key is unknown or a value is missing
        """
        items = list(items)
        if not items:
            raise ValidationError("At least one setting is required")

        keys = [item.get("key") for item in items]
        settings = {
            s.key: s for s in self.db.query(Setting).filter(Setting.key.in_(keys)).all()
        }

        unknown = [key for key in keys if key not in settings]
        if unknown:
            raise ValidationError("Unknown setting key", {"keys": unknown})

        for item in items:
            value = item.get("value")
            if value is None or str(value) == "":
                raise ValidationError("Setting value is required", {"key": item["key"]})
            settings[item["key"]].value = str(value)

        self.db.flush()
        return len(items)
