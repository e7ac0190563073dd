"""
Role-based access gate.

evaluate_access is the pure decision: given the current user (or None)
and a route's allow-list, it admits, asks for login, or forbids. Allow-list
entries that do not name a known role are dropped before the check, so an
allow-list made only of unknown names denies everyone.

Routes declare their allow-list statically through
clubhouse.api.dependencies.auth.require_roles.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Tuple

from clubhouse.constants.roles import UserType, parse_user_type

logger = logging.getLogger(__name__)

UNAUTHORIZED_ACTION_MESSAGE = "Unauthorized action."
NO_PERMISSION_MESSAGE = "You do not have permission to access this resource."


class AccessOutcome(str, Enum):
    ADMIT = "admit"
    REDIRECT_LOGIN = "redirect_login"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class AccessDecision:
    outcome: AccessOutcome
    message: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.outcome is AccessOutcome.ADMIT


ADMIT = AccessDecision(AccessOutcome.ADMIT)
REDIRECT_LOGIN = AccessDecision(AccessOutcome.REDIRECT_LOGIN)


def resolve_allowed_roles(allowed_roles: Iterable) -> FrozenSet[UserType]:
    """Map allow-list entries to UserTypes, dropping anything unknown."""
    resolved = set()
    for entry in allowed_roles:
        user_type = parse_user_type(entry)
        if user_type is None:
            logger.warning("Ignoring unknown role in allow-list", extra={"role": str(entry)})
            continue
        resolved.add(user_type)
    return frozenset(resolved)


def evaluate_access(user, allowed_roles: Iterable) -> AccessDecision:
    """
    Decide whether `user` may use a route restricted to `allowed_roles`.

    Args:
        user: The authenticated user, or None
        allowed_roles: UserType members or role strings

    Returns:
        AccessDecision with outcome ADMIT, REDIRECT_LOGIN or FORBIDDEN
    """
    if user is None:
        return REDIRECT_LOGIN

    resolved = resolve_allowed_roles(allowed_roles)
    if not resolved:
        return AccessDecision(AccessOutcome.FORBIDDEN, UNAUTHORIZED_ACTION_MESSAGE)

    if user.user_type in resolved:
        return ADMIT

    return AccessDecision(AccessOutcome.FORBIDDEN, NO_PERMISSION_MESSAGE)


# Common allow-lists
ADMIN_ONLY: Tuple[UserType, ...] = (UserType.ADMIN,)
STAFF_ONLY: Tuple[UserType, ...] = (UserType.ADMIN, UserType.STAFF)
MEMBER_ONLY: Tuple[UserType, ...] = (UserType.ADMIN, UserType.STAFF, UserType.MEMBER)
AUTHENTICATED: Tuple[UserType, ...] = tuple(UserType)
