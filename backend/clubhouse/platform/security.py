"""
Password hashing and session tokens.

Passwords are hashed with werkzeug. Sessions are HS256 JWTs carrying the
user id in `sub`, delivered as an HttpOnly cookie or a Bearer header.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from clubhouse.config import settings

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def check_session_secret() -> bool:
    """
    Warn when sessions are signed with a guessable or short key.

    Returns True when the configured key is safe to use.
    """
    secret = settings.SESSION_SECRET_KEY
    if secret == settings.DEFAULT_SESSION_SECRET_KEY:
        logger.warning(
            "SESSION_SECRET_KEY is not set; sessions are signed with the built-in default key"
        )
        return False
    if len(secret.encode("utf-8")) < settings.MIN_SESSION_SECRET_LENGTH:
        logger.warning(
            "SESSION_SECRET_KEY is shorter than the recommended length",
            extra={"min_length": settings.MIN_SESSION_SECRET_LENGTH},
        )
        return False
    return True


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def create_session_token(user_id: str, ttl_minutes: Optional[int] = None) -> str:
    """Issue a signed session token for a user."""
    now = datetime.now(timezone.utc)
    ttl = ttl_minutes if ttl_minutes is not None else settings.SESSION_TTL_MINUTES
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=ttl),
    }
    return jwt.encode(payload, settings.SESSION_SECRET_KEY, algorithm=settings.SESSION_ALGORITHM)


def decode_session_token(token: str) -> Optional[str]:
    """
    Return the user id from a session token.

    Returns None for expired, tampered or malformed tokens.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SESSION_SECRET_KEY,
            algorithms=[settings.SESSION_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        logger.info("Session token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid session token", extra={"error": str(e)})
        return None

    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None
