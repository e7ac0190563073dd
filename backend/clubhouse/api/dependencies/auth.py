"""
Authentication and role-check dependencies.

get_current_user resolves the session token to a User (or None).
require_roles builds a per-route dependency from a static allow-list:

    @router.get("/reports/bookings")
    async def booking_report(user=Depends(require_roles(*STAFF_ONLY))): ...
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request

from clubhouse.config import settings
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import AccessOutcome, evaluate_access
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import LoginRequiredError, PermissionDeniedError
from clubhouse.platform.security import decode_session_token

logger = logging.getLogger(__name__)


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    db_session=Depends(get_db_session),
) -> Optional[User]:
    """Return the authenticated user, or None when there is no valid session."""
    token = _extract_token(request)
    if not token:
        return None

    user_id = decode_session_token(token)
    if not user_id:
        return None

    user = db_session.query(User).filter(User.id == user_id).first()
    if user is not None:
        request.state.user = user
    return user


def require_roles(*roles) -> Callable:
    """
    Dependency factory restricting a route to the given roles.

    Raises LoginRequiredError when nobody is logged in and
    PermissionDeniedError when the user's role is not allowed.
    Returns the authenticated user.
    """

    def _check(
        request: Request,
        user: Optional[User] = Depends(get_current_user),
    ) -> User:
        decision = evaluate_access(user, roles)
        if decision.outcome is AccessOutcome.REDIRECT_LOGIN:
            raise LoginRequiredError()
        if decision.outcome is AccessOutcome.FORBIDDEN:
            logger.warning(
                "Access denied",
                extra={
                    "user_id": user.id,
                    "role": user.role,
                    "path": request.url.path,
                },
            )
            raise PermissionDeniedError(decision.message)
        return user

    return _check


def get_actor(request: Request, user: Optional[User] = Depends(get_current_user)) -> ActorContext:
    """Actor context for the current request."""
    return ActorContext.for_user(user, request)
