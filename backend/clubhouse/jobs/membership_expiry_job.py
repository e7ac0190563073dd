"""
Membership expiry job: daily cron entry point for expiry reminders.

Notifies users whose subscription ends between tomorrow and three days
from today. Safe to run more than once per day; users already reminded
about a given expiry date are skipped.

Run as a daily cron job:
    python -m clubhouse.jobs.membership_expiry_job
    python -m clubhouse.jobs.membership_expiry_job --date 2025-02-09
"""

import argparse
import logging
import sys
from datetime import date
from typing import Optional, Sequence

from clubhouse.database.session import SessionLocal
from clubhouse.services.membership_expiry_notifier import (
    ExpiryRunResult,
    MembershipExpiryNotifier,
)

logger = logging.getLogger(__name__)


def run_expiry_check(db_session, today: Optional[date] = None) -> ExpiryRunResult:
    """Run the notifier and commit the notifications it created."""
    result = MembershipExpiryNotifier(db_session).run(today=today)
    db_session.commit()
    return result


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send membership expiry notifications"
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD); defaults to today",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the membership expiry job."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = _parse_args(argv)

    session = SessionLocal()
    try:
        result = run_expiry_check(session, today=args.date)
    except Exception as exc:
        session.rollback()
        logger.error(
            "Membership expiry job failed",
            extra={"error": str(exc)},
            exc_info=True,
        )
        return 1
    finally:
        session.close()

    print(result.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
