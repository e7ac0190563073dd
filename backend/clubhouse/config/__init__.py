"""Configuration module for the clubhouse backend."""

from clubhouse.config.club import (
    DEFAULT_SETTINGS,
    MEMBERSHIP_FEE_KEYS,
    get_default_setting,
)
from clubhouse.config.settings import (
    DATABASE_URL,
    SESSION_COOKIE_NAME,
    SESSION_SECRET_KEY,
    SESSION_TTL_MINUTES,
)

__all__ = [
    "DATABASE_URL",
    "DEFAULT_SETTINGS",
    "MEMBERSHIP_FEE_KEYS",
    "SESSION_COOKIE_NAME",
    "SESSION_SECRET_KEY",
    "SESSION_TTL_MINUTES",
    "get_default_setting",
]
