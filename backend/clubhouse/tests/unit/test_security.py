"""Tests for password hashing and session tokens."""

from datetime import datetime, timedelta, timezone

import jwt

from clubhouse.config import settings
from clubhouse.platform.security import (
    check_session_secret,
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password(hashed, "correct horse")
        assert not verify_password(hashed, "wrong horse")

    def test_empty_hash_never_verifies(self):
        assert not verify_password("", "anything")


class TestSessionTokens:
    def test_round_trip_user_id(self):
        token = create_session_token("user-123")
        assert decode_session_token(token) == "user-123"

    def test_expired_token_is_rejected(self):
        token = create_session_token("user-123", ttl_minutes=-1)
        assert decode_session_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = jwt.encode(
            {"sub": "user-123", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "another-secret-that-is-long-enough-for-hs256",
            algorithm=settings.SESSION_ALGORITHM,
        )
        assert decode_session_token(token) is None

    def test_garbage_is_rejected(self):
        assert decode_session_token("not-a-token") is None


class TestSessionSecretCheck:
    def test_default_key_is_flagged(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "SESSION_SECRET_KEY", settings.DEFAULT_SESSION_SECRET_KEY)
        with caplog.at_level("WARNING", logger="clubhouse.platform.security"):
            assert check_session_secret() is False
        assert "built-in default key" in caplog.text

    def test_short_key_is_flagged(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "SESSION_SECRET_KEY", "short-key")
        with caplog.at_level("WARNING", logger="clubhouse.platform.security"):
            assert check_session_secret() is False
        assert "shorter than the recommended length" in caplog.text

    def test_configured_key_passes(self, caplog):
        with caplog.at_level("WARNING", logger="clubhouse.platform.security"):
            assert check_session_secret() is True
        assert caplog.records == []
