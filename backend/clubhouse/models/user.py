"""
User account model.

Every account carries exactly one role (a UserType value). Access
predicates delegate to the role's level checks so there is a single
definition of what each level admits.
"""

from typing import Iterable

from sqlalchemy import Column, Index, String
from sqlalchemy.orm import relationship

from clubhouse.constants.roles import UserType, parse_user_type
from clubhouse.db_base import Base
from clubhouse.models.base import TimestampMixin, generate_uuid

MEMBERSHIP_STATUS_MEMBER = "member"
MEMBERSHIP_STATUS_NON_MEMBER = "non-member"


class User(Base, TimestampMixin):
    """
    Club account.

    Attributes:
        id: Unique identifier (UUID)
        name: Display name
        email: Login email, unique
        password_hash: werkzeug password hash
        role: UserType value, never null
        membership_status: 'member' or 'non-member'
        player_level: Free-form skill level
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserType.NON_MEMBER.value)
    avatar = Column(String(512), nullable=True)
    phone = Column(String(20), nullable=True)
    player_level = Column(String(50), nullable=True)
    membership_status = Column(
        String(20), nullable=False, default=MEMBERSHIP_STATUS_NON_MEMBER
    )

    subscriptions = relationship(
        "MemberSubscription",
        foreign_keys="MemberSubscription.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    bookings = relationship(
        "CourtBooking",
        foreign_keys="CourtBooking.user_id",
        back_populates="user",
    )
    registrations = relationship(
        "TournamentRegistration",
        foreign_keys="TournamentRegistration.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    notifications = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Notification.created_at.desc()",
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_membership_status", "membership_status"),
    )

    @property
    def user_type(self) -> UserType:
        """Role as a UserType. Stored values are always valid enumeration members."""
        return UserType(self.role)

    @user_type.setter
    def user_type(self, value: UserType) -> None:
        self.role = UserType(value).value

    def is_admin(self) -> bool:
        return self.user_type is UserType.ADMIN

    def is_staff(self) -> bool:
        return self.user_type is UserType.STAFF

    def is_member(self) -> bool:
        return self.user_type is UserType.MEMBER

    def is_non_member(self) -> bool:
        return self.user_type is UserType.NON_MEMBER

    def is_student(self) -> bool:
        return self.user_type is UserType.STUDENT

    def has_admin_access(self) -> bool:
        return self.user_type.is_admin_level()

    def has_staff_access(self) -> bool:
        return self.user_type.is_staff_level()

    def has_member_access(self) -> bool:
        return self.user_type.is_member_level()

    def has_role(self, role) -> bool:
        return parse_user_type(role) is self.user_type

    def has_any_role(self, roles: Iterable) -> bool:
        return any(self.has_role(role) for role in roles)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
