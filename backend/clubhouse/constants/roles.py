"""
User types and the access levels they imply.

Every account carries exactly one UserType. Access levels escalate:
admin has staff access, staff has member access. The three level
predicates are pure set-membership checks over the closed enumeration.
"""

from enum import Enum
from typing import FrozenSet, List, Optional, Union


class UserType(str, Enum):
    """Closed set of account roles, stored by value."""

    ADMIN = "admin"
    STAFF = "staff"
    MEMBER = "member"
    NON_MEMBER = "non-member"
    STUDENT = "student"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    def is_admin_level(self) -> bool:
        return self in ADMIN_LEVEL

    def is_staff_level(self) -> bool:
        return self in STAFF_LEVEL

    def is_member_level(self) -> bool:
        return self in MEMBER_LEVEL


_LABELS = {
    UserType.ADMIN: "Admin",
    UserType.STAFF: "Staff",
    UserType.MEMBER: "Member",
    UserType.NON_MEMBER: "Non-Member",
    UserType.STUDENT: "Student",
}

ADMIN_LEVEL: FrozenSet[UserType] = frozenset({UserType.ADMIN})
STAFF_LEVEL: FrozenSet[UserType] = frozenset({UserType.ADMIN, UserType.STAFF})
MEMBER_LEVEL: FrozenSet[UserType] = frozenset(
    {UserType.ADMIN, UserType.STAFF, UserType.MEMBER}
)

# Accounts that are managed as club customers (bookings, memberships, reports)
CUSTOMER_TYPES: FrozenSet[UserType] = frozenset(
    {UserType.MEMBER, UserType.NON_MEMBER, UserType.STUDENT}
)


def parse_user_type(value: Union[str, UserType, None]) -> Optional[UserType]:
    """
    Resolve a raw value to a UserType.

    Returns None for anything outside the enumeration so unknown strings
    never reach the level predicates.
    """
    if isinstance(value, UserType):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UserType(value)
    except ValueError:
        return None


def is_admin_level(user_type: UserType) -> bool:
    return user_type in ADMIN_LEVEL


def is_staff_level(user_type: UserType) -> bool:
    return user_type in STAFF_LEVEL


def is_member_level(user_type: UserType) -> bool:
    return user_type in MEMBER_LEVEL
