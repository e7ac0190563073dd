"""
In-app notification service.

Creates notifications for users and serves the owner-scoped read API.
Payload builders produce the {title, message, action_url, type} shape
stored in Notification.data.

SECURITY:
- Every read and mark operation is scoped to the owning user
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from clubhouse.constants.roles import STAFF_LEVEL
from clubhouse.models.notification import (
    NOTIFICATION_TYPE_BOOKING,
    NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
    NOTIFICATION_TYPE_MEMBERSHIP_STATUS,
    NOTIFICATION_TYPE_TOURNAMENT,
    Notification,
)
from clubhouse.models.base import utcnow
from clubhouse.models.user import User

logger = logging.getLogger(__name__)

MEMBERSHIPS_URL = "/memberships"
EXPIRY_DATE_FORMAT = "%b %d, %Y"


def format_display_date(value: date) -> str:
    """Format a date as shown to users, e.g. 'Feb 11, 2025'."""
    return value.strftime(EXPIRY_DATE_FORMAT)


def membership_expiry_payload(subscription_type: str, end_date: date) -> dict:
    return {
        "title": "Membership Expiring Soon",
        "message": (
            f"Your {subscription_type.capitalize()} membership will expire on "
            f"{format_display_date(end_date)}. Please renew to continue enjoying benefits."
        ),
        "action_url": MEMBERSHIPS_URL,
        "type": NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
    }


def membership_status_payload(status: str) -> dict:
    return {
        "title": "Membership Update",
        "message": f"Your membership status has been updated to: {status.capitalize()}",
        "action_url": MEMBERSHIPS_URL,
        "type": NOTIFICATION_TYPE_MEMBERSHIP_STATUS,
    }


def new_booking_payload(booking_date: date, amount: Decimal) -> dict:
    return {
        "title": "New Court Booking",
        "message": f"A new booking has been created for {format_display_date(booking_date)}",
        "amount": str(amount),
        "action_url": f"/payments/verify?tab=bookings&date={booking_date.isoformat()}",
        "type": NOTIFICATION_TYPE_BOOKING,
    }


def new_tournament_registration_payload(registered_on: date) -> dict:
    return {
        "title": "New Tournament Registration",
        "message": "A user has registered for a tournament.",
        "action_url": f"/payments/verify?tab=tournaments&date={registered_on.isoformat()}",
        "type": NOTIFICATION_TYPE_TOURNAMENT,
    }


class NotificationService:
    """Creates and reads in-app notifications."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def notify(self, user_id: str, notification_type: str, data: dict) -> Notification:
        """Create a notification for one user (flushed, not committed)."""
        if not user_id:
            raise ValueError("user_id is required")

        notification = Notification(
            user_id=user_id,
            type=notification_type,
            data=data,
        )
        self.db.add(notification)
        self.db.flush()

        logger.info(
            "Notification created",
            extra={
                "notification_id": notification.id,
                "user_id": user_id,
                "type": notification_type,
            },
        )
        return notification

    def notify_many(self, users: Iterable[User], notification_type: str, data: dict) -> List[Notification]:
        return [self.notify(user.id, notification_type, dict(data)) for user in users]

    def notify_staff(self, notification_type: str, data: dict) -> List[Notification]:
        """Send the same notification to every admin and staff account."""
        staff = (
            self.db.query(User)
            .filter(User.role.in_([role.value for role in STAFF_LEVEL]))
            .all()
        )
        return self.notify_many(staff, notification_type, data)

    def get_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Notification], int]:
        """Return a page of the user's notifications, newest first, and the total."""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read_at.is_(None))

        total = query.count()
        notifications = (
            query.order_by(Notification.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return notifications, total

    def get_unread_count(self, user_id: str) -> int:
        return (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
            .count()
        )

    def get_notification(self, notification_id: str, user_id: str) -> Optional[Notification]:
        return (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
            .first()
        )

    def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        """Mark one notification read. Returns False if the user does not own it."""
        notification = self.get_notification(notification_id, user_id)
        if notification is None:
            return False
        notification.mark_as_read()
        self.db.flush()
        return True

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of the user as read. Returns the count."""
        unread = (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
            .all()
        )
        now = utcnow()
        for notification in unread:
            notification.read_at = now
        self.db.flush()
        return len(unread)
