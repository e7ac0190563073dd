"""Tests for the membership expiry cron job."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from clubhouse.jobs import membership_expiry_job
from clubhouse.jobs.membership_expiry_job import _parse_args, main, run_expiry_check
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.notification import Notification


@pytest.fixture
def expiring_subscription(db, member):
    subscription = MemberSubscription(
        user_id=member.id,
        type="monthly",
        start_date=date(2025, 1, 11),
        end_date=date(2025, 2, 11),
        payment_method="gcash",
        amount_paid=Decimal("500.00"),
    )
    db.add(subscription)
    db.commit()
    return subscription


class TestParseArgs:
    def test_default_date_is_none(self):
        assert _parse_args([]).date is None

    def test_explicit_date(self):
        assert _parse_args(["--date", "2025-02-09"]).date == date(2025, 2, 9)

    def test_invalid_date_exits(self):
        with pytest.raises(SystemExit):
            _parse_args(["--date", "09/02/2025"])


class TestRunExpiryCheck:
    def test_commits_notifications(self, db, expiring_subscription):
        result = run_expiry_check(db, today=date(2025, 2, 9))

        assert result.notified == 1
        db.rollback()
        assert db.query(Notification).count() == 1


class TestMain:
    def test_prints_summary(self, db, expiring_subscription, capsys):
        with patch.object(membership_expiry_job, "SessionLocal", return_value=db):
            exit_code = main(["--date", "2025-02-09"])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "Sent 1 membership expiry notifications for 2025-02-10 to 2025-02-12." in out
        assert db.query(Notification).count() == 1

    def test_second_run_sends_nothing(self, db, expiring_subscription, capsys):
        with patch.object(membership_expiry_job, "SessionLocal", return_value=db):
            main(["--date", "2025-02-09"])
            main(["--date", "2025-02-10"])

        out = capsys.readouterr().out
        assert "Sent 0 membership expiry notifications for 2025-02-11 to 2025-02-13." in out

    def test_failure_returns_nonzero(self, db):
        with patch.object(membership_expiry_job, "SessionLocal", return_value=db), patch.object(
            membership_expiry_job,
            "run_expiry_check",
            side_effect=RuntimeError("database unavailable"),
        ):
            assert main(["--date", "2025-02-09"]) == 1
