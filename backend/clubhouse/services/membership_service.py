"""
Membership subscription service.

Purchases, staff adjustments and the membership management list.
Buying any plan makes the user a member; students keep their student
role so they retain the student court rate.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from clubhouse.config.club import MEMBERSHIP_FEE_KEYS
from clubhouse.constants.roles import CUSTOMER_TYPES, UserType
from clubhouse.models.court_booking import PAYMENT_METHODS
from clubhouse.models.member_subscription import SUBSCRIPTION_TYPES, MemberSubscription
from clubhouse.models.notification import NOTIFICATION_TYPE_MEMBERSHIP_STATUS
from clubhouse.models.user import MEMBERSHIP_STATUS_MEMBER, User
from clubhouse.platform.activity_logger import log_activity
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import NotFoundError, ValidationError
from clubhouse.services.notification_service import (
    NotificationService,
    format_display_date,
    membership_status_payload,
)
from clubhouse.services.pagination import Page, paginate
from clubhouse.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = 3
USER_SEARCH_LIMIT = 10
MANAGE_SORT_COLUMNS = ("name", "email", "membership_status")
_CUSTOMER_ROLES = tuple(sorted(user_type.value for user_type in CUSTOMER_TYPES))


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def subscription_end_date(subscription_type: str, start: date) -> Optional[date]:
    if subscription_type == "annual":
        return add_months(start, 12)
    if subscription_type == "monthly":
        return add_months(start, 1)
    return None


def _require_customer(user: User) -> None:
    """Admin and staff accounts never hold memberships; their role must not change."""
    if user.user_type not in CUSTOMER_TYPES:
        raise ValidationError(
            "Memberships can only be recorded for club customers.",
            {"field": "user_id"},
        )


@dataclass
class ManagedMember:
    user: User
    subscription: Optional[MemberSubscription]
    is_expiring: bool

    def to_dict(self) -> dict:
        sub = self.subscription
        if sub is None:
            expiry = "-"
        elif sub.is_lifetime:
            expiry = "Lifetime"
        else:
            expiry = format_display_date(sub.end_date)
        return {
            "id": self.user.id,
            "name": self.user.name,
            "email": self.user.email,
            "type": self.user.role,
            "membership_status": self.user.membership_status,
            "current_plan": sub.type.capitalize() if sub else "None",
            "subscription_id": sub.id if sub else None,
            "start_date": format_display_date(sub.start_date) if sub else "-",
            "expiry_date": expiry,
            "is_expiring": self.is_expiring,
        }


class MembershipService:
    def __init__(self, db_session: Session):
        self.db = db_session
        self.settings = SettingsService(db_session)

    def membership_fees(self) -> dict:
        return {key: self.settings.get(key) for key in MEMBERSHIP_FEE_KEYS.values()}

    def purchase(
        self,
        actor_user: User,
        subscription_type: str,
        payment_method: str,
        actor: ActorContext,
        user_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> MemberSubscription:
        """
        Buy a membership plan.

        Staff must choose the user; everyone else buys for themselves.
        """
        if subscription_type not in SUBSCRIPTION_TYPES:
            raise ValidationError("Invalid membership type", {"field": "type"})
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError("Payment method must be cash or gcash", {"field": "payment_method"})

        is_staff = actor_user.has_staff_access()
        if is_staff:
            if not user_id:
                raise ValidationError("A user must be selected", {"field": "user_id"})
            user = self.db.get(User, user_id)
            if user is None:
                raise ValidationError("Selected user does not exist", {"field": "user_id"})
            _require_customer(user)
        else:
            user = actor_user

        start = today or date.today()
        amount = self.settings.get_decimal(MEMBERSHIP_FEE_KEYS[subscription_type])

        subscription = MemberSubscription(
            user_id=user.id,
            staff_id=actor_user.id if is_staff else None,
            type=subscription_type,
            start_date=start,
            end_date=subscription_end_date(subscription_type, start),
            payment_method=payment_method,
            payment_status="paid",
            amount_paid=amount,
        )
        self.db.add(subscription)

        user.membership_status = MEMBERSHIP_STATUS_MEMBER
        if user.user_type is not UserType.STUDENT:
            user.user_type = UserType.MEMBER
        self.db.flush()

        log_activity(
            self.db,
            actor,
            "membership_purchase",
            f"{subscription_type.capitalize()} membership recorded for {user.name}",
            subscription,
        )
        NotificationService(self.db).notify(
            user.id,
            NOTIFICATION_TYPE_MEMBERSHIP_STATUS,
            membership_status_payload(MEMBERSHIP_STATUS_MEMBER),
        )

        logger.info(
            "Membership purchased",
            extra={
                "subscription_id": subscription.id,
                "user_id": user.id,
                "type": subscription_type,
                "amount": str(amount),
            },
        )
        return subscription

    def update_for_user(
        self,
        actor_user: User,
        user_id: str,
        subscription_type: str,
        start_date: date,
        end_date: Optional[date],
        actor: ActorContext,
    ) -> MemberSubscription:
        """
        Adjust the user's latest subscription, creating one if none exists.

        Lifetime plans always have their end date cleared.
        """
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        _require_customer(user)
        if subscription_type not in SUBSCRIPTION_TYPES:
            raise ValidationError("Invalid membership type", {"field": "type"})

        if subscription_type == "lifetime":
            end_date = None
        elif end_date is not None and end_date < start_date:
            raise ValidationError(
                "The end date must be a date after or equal to start date.",
                {"field": "end_date"},
            )

        subscription = self.latest_subscription(user.id)
        if subscription is None:
            subscription = MemberSubscription(
                user_id=user.id,
                staff_id=actor_user.id,
                type=subscription_type,
                start_date=start_date,
                end_date=end_date,
                payment_method="cash",
                payment_status="paid",
                amount_paid=Decimal("0"),
            )
            self.db.add(subscription)
        else:
            # Clear first so the start/end ordering check sees consistent values
            subscription.end_date = None
            subscription.type = subscription_type
            subscription.start_date = start_date
            subscription.end_date = end_date

        user.membership_status = MEMBERSHIP_STATUS_MEMBER
        if user.user_type is UserType.NON_MEMBER:
            user.user_type = UserType.MEMBER
        self.db.flush()

        log_activity(
            self.db,
            actor,
            "membership_update",
            f"Membership updated for {user.name}",
            subscription,
        )
        return subscription

    def latest_subscription(self, user_id: str) -> Optional[MemberSubscription]:
        return (
            self.db.query(MemberSubscription)
            .filter(MemberSubscription.user_id == user_id)
            .order_by(MemberSubscription.created_at.desc())
            .first()
        )

    def current_subscription(self, user_id: str, today: Optional[date] = None) -> Optional[MemberSubscription]:
        """Latest subscription that is lifetime or ends after today."""
        today = today or date.today()
        return (
            self.db.query(MemberSubscription)
            .filter(
                MemberSubscription.user_id == user_id,
                or_(
                    MemberSubscription.end_date > today,
                    MemberSubscription.end_date.is_(None),
                ),
            )
            .order_by(MemberSubscription.created_at.desc())
            .first()
        )

    @staticmethod
    def is_expiring(subscription: Optional[MemberSubscription], today: date) -> bool:
        if subscription is None or subscription.is_lifetime:
            return False
        return today < subscription.end_date <= today + timedelta(days=EXPIRING_SOON_DAYS)

    def manage_list(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        sort: str = "name",
        direction: str = "asc",
        page: int = 1,
        per_page: int = 10,
        today: Optional[date] = None,
    ) -> Page:
        """Customers with their current plan and expiry flag."""
        today = today or date.today()
        query = self.db.query(User).filter(User.role.in_(_CUSTOMER_ROLES))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if status and status != "all":
            query = query.filter(User.membership_status == status)

        if sort in MANAGE_SORT_COLUMNS:
            column = getattr(User, sort)
            query = query.order_by(column.desc() if direction == "desc" else column.asc())
        else:
            query = query.order_by(User.name.asc())

        result = paginate(query, page, per_page)
        managed = []
        for user in result.items:
            sub = self.current_subscription(user.id, today)
            managed.append(ManagedMember(user=user, subscription=sub, is_expiring=self.is_expiring(sub, today)))
        result.items = managed
        return result

    def search_users(self, term: Optional[str] = None) -> List[User]:
        query = self.db.query(User).filter(User.role.in_(_CUSTOMER_ROLES))
        if term:
            pattern = f"%{term}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        return query.order_by(User.name.asc()).limit(USER_SEARCH_LIMIT).all()
