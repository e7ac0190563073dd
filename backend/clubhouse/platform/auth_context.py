"""
Actor context for audited operations.

Services receive the acting user and client address explicitly instead of
reading them from request globals, so the same code runs from routes,
batch jobs and tests.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request


@dataclass(frozen=True)
class ActorContext:
    """Who performed an action and from where."""

    user_id: Optional[str] = None
    ip_address: Optional[str] = None

    @classmethod
    def system(cls) -> "ActorContext":
        """Context for scheduled jobs and other non-user actions."""
        return cls(user_id=None, ip_address=None)

    @classmethod
    def for_user(cls, user, request: Optional[Request] = None) -> "ActorContext":
        ip_address = extract_client_ip(request) if request is not None else None
        return cls(user_id=user.id if user is not None else None, ip_address=ip_address)


def extract_client_ip(request: Request) -> Optional[str]:
    """
    Extract client IP from request.

    Handles X-Forwarded-For for proxied requests.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (client IP)
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None
