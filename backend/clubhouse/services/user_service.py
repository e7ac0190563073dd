"""
User administration service.

Administrators manage every account detail. Staff may only move a user
between the non-member and student roles.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from clubhouse.constants.roles import CUSTOMER_TYPES, UserType, parse_user_type
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.tournament import TournamentRegistration
from clubhouse.models.user import User
from clubhouse.platform.access import UNAUTHORIZED_ACTION_MESSAGE
from clubhouse.platform.activity_logger import log_activity
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from clubhouse.platform.security import MIN_PASSWORD_LENGTH, hash_password
from clubhouse.services.pagination import Page

logger = logging.getLogger(__name__)

STAFF_ASSIGNABLE_TYPES = (UserType.NON_MEMBER, UserType.STUDENT)
SORT_FIELDS = ("name", "email", "role", "created_at")
COUNT_SORT_FIELDS = ("paid_bookings_count", "paid_tournaments_count")
MAX_PHONE_LENGTH = 20


@dataclass
class UserRow:
    user: User
    paid_bookings_count: int
    paid_tournaments_count: int

    def to_dict(self) -> dict:
        return {
            "id": self.user.id,
            "name": self.user.name,
            "email": self.user.email,
            "type": self.user.role,
            "phone": self.user.phone,
            "membership_status": self.user.membership_status,
            "paid_bookings_count": self.paid_bookings_count,
            "paid_tournaments_count": self.paid_tournaments_count,
            "created_at": self.user.created_at.isoformat() if self.user.created_at else None,
        }


def _require_user_type(value) -> UserType:
    user_type = parse_user_type(value)
    if user_type is None:
        raise ValidationError("The selected type is invalid.", {"field": "type"})
    return user_type


def _validate_password(password: str, confirmation: Optional[str]) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"The password must be at least {MIN_PASSWORD_LENGTH} characters.",
            {"field": "password"},
        )
    if confirmation is not None and password != confirmation:
        raise ValidationError("The password confirmation does not match.", {"field": "password"})


class UserService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def stats(self) -> dict:
        def _count(*criteria) -> int:
            return self.db.query(func.count(User.id)).filter(*criteria).scalar()

        return {
            "total": _count(User.role != UserType.ADMIN.value),
            "members": _count(User.role == UserType.MEMBER.value),
            "non_members": _count(User.role == UserType.NON_MEMBER.value),
            "students": _count(User.role == UserType.STUDENT.value),
        }

    def list_users(
        self,
        search: Optional[str] = None,
        sort_field: str = "created_at",
        sort_direction: str = "desc",
        page: int = 1,
        per_page: int = 10,
    ) -> Page:
        """Non-admin users with paid booking and tournament counts."""
        paid_bookings = (
            self.db.query(CourtBooking.user_id, func.count(CourtBooking.id).label("n"))
            .filter(CourtBooking.payment_status == "paid")
            .group_by(CourtBooking.user_id)
            .subquery()
        )
        paid_tournaments = (
            self.db.query(TournamentRegistration.user_id, func.count(TournamentRegistration.id).label("n"))
            .filter(TournamentRegistration.payment_status == "paid")
            .group_by(TournamentRegistration.user_id)
            .subquery()
        )
        bookings_count = func.coalesce(paid_bookings.c.n, 0)
        tournaments_count = func.coalesce(paid_tournaments.c.n, 0)

        query = (
            self.db.query(User, bookings_count, tournaments_count)
            .outerjoin(paid_bookings, paid_bookings.c.user_id == User.id)
            .outerjoin(paid_tournaments, paid_tournaments.c.user_id == User.id)
            .filter(User.role != UserType.ADMIN.value)
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        if sort_field in SORT_FIELDS:
            column = getattr(User, sort_field)
        elif sort_field == "paid_bookings_count":
            column = bookings_count
        elif sort_field == "paid_tournaments_count":
            column = tournaments_count
        else:
            column = User.created_at
        query = query.order_by(column.asc() if sort_direction == "asc" else column.desc())

        page = max(1, page)
        total = query.order_by(None).count()
        rows = query.offset((page - 1) * per_page).limit(per_page).all()
        items = [UserRow(user=u, paid_bookings_count=b, paid_tournaments_count=t) for u, b, t in rows]
        return Page(items=items, total=total, page=page, per_page=per_page)

    def create_user(
        self,
        actor_user: User,
        name: str,
        email: str,
        password: str,
        user_type,
        actor: ActorContext,
        phone: Optional[str] = None,
        password_confirmation: Optional[str] = None,
    ) -> User:
        if not actor_user.is_admin():
            raise PermissionDeniedError(UNAUTHORIZED_ACTION_MESSAGE)
        if not name or not name.strip():
            raise ValidationError("Name is required", {"field": "name"})
        if not email or "@" not in email:
            raise ValidationError("A valid email is required", {"field": "email"})
        if phone and len(phone) > MAX_PHONE_LENGTH:
            raise ValidationError("Phone may not exceed 20 characters", {"field": "phone"})
        role = _require_user_type(user_type)
        _validate_password(password, password_confirmation)

        email = email.strip().lower()
        if self.db.query(User).filter(User.email == email).first() is not None:
            raise ConflictError("The email has already been taken.", {"field": "email"})

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            phone=phone,
        )
        self.db.add(user)
        self.db.flush()
        log_activity(self.db, actor, "user_create", f"Admin created user {user.name}", user)
        return user

    def update_user(
        self,
        actor_user: User,
        user_id: str,
        actor: ActorContext,
        user_type,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        """
        Update a user.

        Admins update name, email, type and phone. Staff update only the
        type of club customers, and only to non-member or student.
        """
        user = self.get_user(user_id)
        role = _require_user_type(user_type)

        if actor_user.is_admin():
            if not name or not name.strip():
                raise ValidationError("Name is required", {"field": "name"})
            if not email or "@" not in email:
                raise ValidationError("A valid email is required", {"field": "email"})
            email = email.strip().lower()
            clash = (
                self.db.query(User)
                .filter(User.email == email, User.id != user.id)
                .first()
            )
            if clash is not None:
                raise ConflictError("The email has already been taken.", {"field": "email"})
            user.name = name.strip()
            user.email = email
            user.phone = phone
            user.user_type = role
            action = "user_update"
            description = f"Admin updated user details for {user.name}"
        elif actor_user.is_staff():
            if user.user_type not in CUSTOMER_TYPES:
                raise PermissionDeniedError(UNAUTHORIZED_ACTION_MESSAGE)
            if role not in STAFF_ASSIGNABLE_TYPES:
                raise ValidationError("The selected type is invalid.", {"field": "type"})
            user.user_type = role
            action = "user_type_update"
            description = f"Staff updated user type for {user.name}"
        else:
            raise PermissionDeniedError(UNAUTHORIZED_ACTION_MESSAGE)

        self.db.flush()
        log_activity(self.db, actor, action, description, user)
        return user

    def delete_user(self, actor_user: User, user_id: str, actor: ActorContext) -> None:
        if not actor_user.is_admin():
            raise PermissionDeniedError(UNAUTHORIZED_ACTION_MESSAGE)
        if actor_user.id == user_id:
            raise ValidationError("You cannot delete yourself.")
        user = self.get_user(user_id)
        name = user.name
        self.db.delete(user)
        self.db.flush()
        log_activity(self.db, actor, "user_delete", f"Admin deleted user {name}")

    def change_password(
        self,
        actor_user: User,
        user_id: str,
        password: str,
        actor: ActorContext,
        password_confirmation: Optional[str] = None,
    ) -> User:
        if not actor_user.is_admin():
            raise PermissionDeniedError(UNAUTHORIZED_ACTION_MESSAGE)
        _validate_password(password, password_confirmation)
        user = self.get_user(user_id)
        user.password_hash = hash_password(password)
        self.db.flush()
        log_activity(self.db, actor, "user_password_change", f"Admin changed password for user {user.name}", user)
        return user

    def ensure_admin(self, email: str, password: str, name: str, actor: ActorContext) -> Tuple[User, bool]:
        """
        Create the first administrator unless the email is already registered.

        An existing account is returned untouched; its role and password are
        never changed here.

        Returns:
            (user, created)
        """
        if not email or "@" not in email:
            raise ValidationError("A valid email is required", {"field": "email"})
        email = email.strip().lower()
        existing = self.db.query(User).filter(User.email == email).first()
        if existing is not None:
            if not existing.is_admin():
                logger.warning(
                    "Initial admin email belongs to a non-admin account",
                    extra={"user_id": existing.id, "role": existing.role},
                )
            return existing, False

        _validate_password(password, None)
        user = User(
            name=(name or "").strip() or "Admin User",
            email=email,
            password_hash=hash_password(password),
            role=UserType.ADMIN.value,
        )
        self.db.add(user)
        self.db.flush()
        log_activity(self.db, actor, "user_create", f"Initial administrator {user.name} created", user)
        logger.info("Initial administrator created", extra={"user_id": user.id})
        return user, True
