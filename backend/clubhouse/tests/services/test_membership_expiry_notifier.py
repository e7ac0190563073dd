"""
Tests for the membership expiry notifier.

Covers the notification window, idempotence across runs, the
date-substring de-duplication and per-record failure isolation.
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from clubhouse.constants.roles import UserType
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.notification import NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY, Notification
from clubhouse.services.membership_expiry_notifier import (
    MembershipExpiryNotifier,
    expiry_window,
)
from clubhouse.services.notification_service import NotificationService

TODAY = date(2025, 2, 9)


@pytest.fixture
def subscribe(db):
    """Create a subscription for a user ending on the given date."""

    def _subscribe(user, end_date, sub_type="monthly", user_id=None):
        subscription = MemberSubscription(
            user_id=user_id or user.id,
            type=sub_type,
            start_date=date(2025, 1, 1),
            end_date=end_date,
            payment_method="cash",
            amount_paid=Decimal("500.00"),
        )
        db.add(subscription)
        db.flush()
        return subscription

    return _subscribe


def _expiry_notifications(db, user):
    return (
        db.query(Notification)
        .filter(
            Notification.user_id == user.id,
            Notification.type == NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
        )
        .all()
    )


# ============================================================================
# WINDOW
# ============================================================================

class TestExpiryWindow:
    def test_default_window_is_tomorrow_to_three_days(self):
        assert expiry_window(TODAY) == (date(2025, 2, 10), date(2025, 2, 12))

    def test_explicit_offsets(self):
        assert expiry_window(TODAY, 0, 7) == (TODAY, date(2025, 2, 16))

    @pytest.mark.parametrize(
        "offset,expected",
        [(-1, 0), (0, 0), (1, 1), (2, 1), (3, 1), (4, 0)],
    )
    def test_window_bounds(self, db, member, subscribe, offset, expected):
        subscribe(member, TODAY + timedelta(days=offset))

        result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.notified == expected
        assert len(_expiry_notifications(db, member)) == expected

    def test_lifetime_subscription_never_selected(self, db, member, subscribe):
        subscribe(member, None, sub_type="lifetime")

        result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.candidates == 0
        assert result.notified == 0


# ============================================================================
# NOTIFICATION CONTENT
# ============================================================================

class TestNotificationPayload:
    def test_payload(self, db, member, subscribe):
        subscribe(member, date(2025, 2, 11), sub_type="annual")

        MembershipExpiryNotifier(db).run(today=TODAY)

        [notification] = _expiry_notifications(db, member)
        assert notification.data == {
            "title": "Membership Expiring Soon",
            "message": (
                "Your Annual membership will expire on Feb 11, 2025. "
                "Please renew to continue enjoying benefits."
            ),
            "action_url": "/memberships",
            "type": "membership_expiry",
        }
        assert notification.read_at is None


# ============================================================================
# DE-DUPLICATION
# ============================================================================

class TestDeduplication:
    def test_consecutive_days(self, db, member, subscribe):
        """One reminder per expiry date even though the date stays in the window."""
        subscribe(member, date(2025, 2, 11))
        notifier = MembershipExpiryNotifier(db)

        first = notifier.run(today=date(2025, 2, 9))
        second = notifier.run(today=date(2025, 2, 10))

        assert first.notified == 1
        assert second.notified == 0
        assert second.skipped_duplicate == 1
        assert len(_expiry_notifications(db, member)) == 1

    def test_same_day_rerun_is_idempotent(self, db, member, non_member, subscribe):
        subscribe(member, date(2025, 2, 10))
        subscribe(non_member, date(2025, 2, 12))
        notifier = MembershipExpiryNotifier(db)

        assert notifier.run(today=TODAY).notified == 2
        assert notifier.run(today=TODAY).notified == 0

    def test_different_expiry_dates_both_notified(self, db, member, subscribe):
        subscribe(member, date(2025, 2, 10))
        subscribe(member, date(2025, 2, 12))

        result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.notified == 2

    def test_any_message_mentioning_the_date_suppresses(self, db, member, subscribe):
        """Matching is by date text inside earlier expiry messages."""
        NotificationService(db).notify(
            member.id,
            NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
            {"title": "Reminder", "message": "Your locker rental ends Feb 11, 2025."},
        )
        subscribe(member, date(2025, 2, 11))

        result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.notified == 0
        assert result.skipped_duplicate == 1

    def test_other_notification_types_do_not_suppress(self, db, member, subscribe):
        NotificationService(db).notify(
            member.id,
            "membership",
            {"title": "Membership Update", "message": "Renewed until Feb 11, 2025"},
        )
        subscribe(member, date(2025, 2, 11))

        assert MembershipExpiryNotifier(db).run(today=TODAY).notified == 1

    def test_other_users_notifications_do_not_suppress(self, db, member, non_member, subscribe):
        subscribe(non_member, date(2025, 2, 11))
        MembershipExpiryNotifier(db).run(today=TODAY)
        subscribe(member, date(2025, 2, 11))

        result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.notified == 1
        assert len(_expiry_notifications(db, member)) == 1


# ============================================================================
# ROBUSTNESS
# ============================================================================

class TestRobustness:
    def test_subscription_without_user_is_skipped(self, db, member, subscribe):
        subscribe(member, date(2025, 2, 11), user_id="missing-user-id")

        result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.candidates == 1
        assert result.notified == 0
        assert result.skipped_no_user == 1
        assert db.query(Notification).count() == 0

    def test_one_failure_does_not_abort_the_batch(self, db, make_user, subscribe):
        users = [make_user(UserType.MEMBER) for _ in range(3)]
        for user in users:
            subscribe(user, date(2025, 2, 11))

        original_notify = NotificationService.notify
        calls = {"n": 0}

        def flaky_notify(self, user_id, notification_type, data):
            calls["n"] += 1
            if calls["n"] == 2:
                raise RuntimeError("mail queue unavailable")
            return original_notify(self, user_id, notification_type, data)

        with patch.object(NotificationService, "notify", flaky_notify):
            result = MembershipExpiryNotifier(db).run(today=TODAY)

        assert result.candidates == 3
        assert result.notified == 2
        assert result.failed == 1
        assert "mail queue unavailable" in result.errors[0]
        assert db.query(Notification).count() == 2

    def test_empty_window(self, db):
        result = MembershipExpiryNotifier(db).run(today=TODAY)
        assert result.count == 0
        assert result.completed_at is not None
        assert result.summary() == (
            "Sent 0 membership expiry notifications for 2025-02-10 to 2025-02-12."
        )
