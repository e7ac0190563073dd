"""
Runtime configuration read from the environment.

All values are resolved once at import time. Override them through
environment variables in deployment; tests patch the module attributes.
"""

import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clubhouse.db")
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

# Session cookie (HS256 signed JWT)
DEFAULT_SESSION_SECRET_KEY = "change-me-in-production"
# HS256 keys shorter than the SHA-256 digest are flagged as insecure by PyJWT
MIN_SESSION_SECRET_LENGTH = 32
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", DEFAULT_SESSION_SECRET_KEY)
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "clubhouse_session")
SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", "720"))
SESSION_ALGORITHM = "HS256"

# Membership expiry window, in days from today (inclusive on both ends)
MEMBERSHIP_EXPIRY_WINDOW_START_DAYS = int(
    os.getenv("MEMBERSHIP_EXPIRY_WINDOW_START_DAYS", "1")
)
MEMBERSHIP_EXPIRY_WINDOW_END_DAYS = int(
    os.getenv("MEMBERSHIP_EXPIRY_WINDOW_END_DAYS", "3")
)

# Default page sizes
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
ACTIVITY_LOG_PAGE_SIZE = 20

# First administrator, created by the bootstrap job when no account uses the email
INITIAL_ADMIN_EMAIL = os.getenv("INITIAL_ADMIN_EMAIL", "")
INITIAL_ADMIN_PASSWORD = os.getenv("INITIAL_ADMIN_PASSWORD", "")
INITIAL_ADMIN_NAME = os.getenv("INITIAL_ADMIN_NAME", "Admin User")
