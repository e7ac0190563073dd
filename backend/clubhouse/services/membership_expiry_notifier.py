"""
Membership expiry notifier.

Finds subscriptions ending between tomorrow and three days from today
(inclusive) and sends each owner one "Membership Expiring Soon"
notification per expiry date.

De-duplication: a user is skipped when any of their membership_expiry
notifications already contains the formatted expiry date (e.g.
"Feb 11, 2025") in its message. This is a substring match, so a message
that happens to mention the same date for another subscription also
suppresses the notification. Known limitation; kept for compatibility with
notifications already stored in that format.

Each subscription is processed in its own savepoint so one bad record
does not abort the batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from clubhouse.config import settings
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.notification import (
    NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
    Notification,
)
from clubhouse.models.user import User
from clubhouse.services.notification_service import (
    NotificationService,
    format_display_date,
    membership_expiry_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class ExpiryRunResult:
    """Outcome of one notifier run."""

    window_start: date
    window_end: date
    notified: int = 0
    candidates: int = 0
    skipped_duplicate: int = 0
    skipped_no_user: int = 0
    failed: int = 0
    errors: list = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def count(self) -> int:
        return self.notified

    def summary(self) -> str:
        return (
            f"Sent {self.notified} membership expiry notifications for "
            f"{self.window_start.isoformat()} to {self.window_end.isoformat()}."
        )

    def to_dict(self) -> dict:
        return {
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "notified": self.notified,
            "candidates": self.candidates,
            "skipped_duplicate": self.skipped_duplicate,
            "skipped_no_user": self.skipped_no_user,
            "failed": self.failed,
            "errors": self.errors[:10],
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


def expiry_window(
    today: date,
    start_days: Optional[int] = None,
    end_days: Optional[int] = None,
) -> tuple:
    """Return the (start, end) calendar dates of the notification window."""
    if start_days is None:
        start_days = settings.MEMBERSHIP_EXPIRY_WINDOW_START_DAYS
    if end_days is None:
        end_days = settings.MEMBERSHIP_EXPIRY_WINDOW_END_DAYS
    return today + timedelta(days=start_days), today + timedelta(days=end_days)


class MembershipExpiryNotifier:
    """Sends expiry reminders for subscriptions ending soon."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.notifications = NotificationService(db_session)

    def find_expiring(self, window_start: date, window_end: date) -> List[MemberSubscription]:
        return (
            self.db.query(MemberSubscription)
            .filter(
                MemberSubscription.end_date.isnot(None),
                MemberSubscription.end_date >= window_start,
                MemberSubscription.end_date <= window_end,
            )
            .order_by(MemberSubscription.end_date.asc(), MemberSubscription.created_at.asc())
            .all()
        )

    def already_notified(self, user_id: str, date_token: str) -> bool:
        """True when any expiry notification of the user mentions date_token."""
        previous = (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.type == NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
            )
            .all()
        )
        return any(date_token in (n.message or "") for n in previous)

    def run(self, today: Optional[date] = None) -> ExpiryRunResult:
        """
        Notify owners of subscriptions expiring in the window.

        Args:
            today: Reference date; defaults to the current local date

        Returns:
            ExpiryRunResult with the number of notifications created
        """
        today = today or date.today()
        window_start, window_end = expiry_window(today)
        result = ExpiryRunResult(window_start=window_start, window_end=window_end)

        subscriptions = self.find_expiring(window_start, window_end)
        result.candidates = len(subscriptions)

        logger.info(
            "Checking membership expiry",
            extra={
                "window_start": window_start.isoformat(),
                "window_end": window_end.isoformat(),
                "candidates": result.candidates,
            },
        )

        for subscription in subscriptions:
            try:
                with self.db.begin_nested():
                    self._process(subscription, result)
            except Exception as e:
                result.failed += 1
                result.errors.append(f"{subscription.id}: {e}")
                logger.error(
                    "Failed to process expiring subscription",
                    extra={"subscription_id": subscription.id, "error": str(e)},
                    exc_info=True,
                )

        result.completed_at = datetime.now(timezone.utc)
        logger.info("Membership expiry check finished", extra=result.to_dict())
        return result

    def _process(self, subscription: MemberSubscription, result: ExpiryRunResult) -> None:
        user = self.db.get(User, subscription.user_id) if subscription.user_id else None
        if user is None:
            result.skipped_no_user += 1
            return

        date_token = format_display_date(subscription.end_date)
        if self.already_notified(user.id, date_token):
            result.skipped_duplicate += 1
            return

        self.notifications.notify(
            user.id,
            NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
            membership_expiry_payload(subscription.type, subscription.end_date),
        )
        result.notified += 1
