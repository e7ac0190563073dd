"""
Dashboard summaries.

Staff see booking statistics, the player list and revenue charts; other
users see their own booking, tournament and plan summary. The first staff
visit of each day also triggers the membership expiry check.
"""

import logging
import threading
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from clubhouse.constants.roles import UserType
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.expense import Expense
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.tournament import TournamentRegistration
from clubhouse.models.user import User
from clubhouse.services.membership_expiry_notifier import ExpiryRunResult, MembershipExpiryNotifier
from clubhouse.services.pagination import paginate

logger = logging.getLogger(__name__)

CHART_DAYS = 30
PLAYERS_PER_PAGE = 5
PIE_FILTERS = ("today", "all")

_expiry_check_lock = threading.Lock()
_last_expiry_check: Optional[date] = None


def run_daily_expiry_check(db_session: Session, today: Optional[date] = None) -> Optional[ExpiryRunResult]:
    """
    Run the membership expiry check at most once per day per process.

    Returns None when the check already ran today.
    """
    global _last_expiry_check
    today = today or date.today()
    with _expiry_check_lock:
        if _last_expiry_check == today:
            return None
        result = MembershipExpiryNotifier(db_session).run(today=today)
        _last_expiry_check = today
    logger.info("Dashboard expiry check completed", extra=result.to_dict())
    return result


def reset_daily_expiry_check() -> None:
    global _last_expiry_check
    with _expiry_check_lock:
        _last_expiry_check = None


def _chart_label(day: date) -> str:
    return day.strftime("%b %d")


class DashboardService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def _bookings(self, pie_filter: str, today: date):
        query = self.db.query(CourtBooking)
        if pie_filter == "today":
            query = query.filter(CourtBooking.booking_date == today)
        return query

    def staff_stats(self, pie_filter: str, today: date) -> dict:
        members = self.db.query(User).filter(User.role == UserType.MEMBER.value)
        if pie_filter == "today":
            start = datetime.combine(today, time.min)
            members = members.filter(User.created_at >= start, User.created_at < start + timedelta(days=1))
        return {
            "daily_bookings": self._bookings(pie_filter, today).count(),
            "daily_paid": self._bookings(pie_filter, today)
            .filter(CourtBooking.payment_status == "paid")
            .count(),
            "daily_unpaid": self._bookings(pie_filter, today)
            .filter(CourtBooking.payment_status == "pending")
            .count(),
            "total_members": members.count(),
        }

    def booking_chart(self, today: date) -> List[dict]:
        """Bookings per day over the last 30 days."""
        since = today - timedelta(days=CHART_DAYS)
        rows = (
            self.db.query(CourtBooking.booking_date, func.count(CourtBooking.id))
            .filter(CourtBooking.booking_date >= since)
            .group_by(CourtBooking.booking_date)
            .order_by(CourtBooking.booking_date)
            .all()
        )
        return [{"date": _chart_label(day), "count": count} for day, count in rows]

    def players(self, pie_filter: str, player_type: str, today: date, page: int = 1) -> dict:
        query = self._bookings(pie_filter, today).order_by(CourtBooking.created_at.asc())
        if player_type != "all":
            if player_type == "guest":
                query = query.filter(CourtBooking.user_id.is_(None))
            else:
                query = query.join(User, CourtBooking.user_id == User.id).filter(User.role == player_type)

        def _row(booking: CourtBooking) -> dict:
            return {
                "id": booking.id,
                "user_name": booking.user.name if booking.user else (booking.guest_name or "Guest"),
                "user_type": booking.user.role if booking.user else "guest",
                "time": booking.created_at.strftime("%I:%M %p"),
                "schedule": booking.schedule_type,
                "status": booking.payment_status,
            }

        return paginate(query, page, PLAYERS_PER_PAGE).to_dict(_row)

    def pie_data(self, pie_filter: str, today: date) -> List[dict]:
        counts = {"member": 0, "non-member": 0, "guest": 0, "student": 0}
        for booking in self._bookings(pie_filter, today).all():
            if booking.user_id is None:
                counts["guest"] += 1
            elif booking.user_type_at_booking in counts:
                counts[booking.user_type_at_booking] += 1
        return [
            {"name": "Member", "value": counts["member"]},
            {"name": "Non-Member", "value": counts["non-member"]},
            {"name": "Guest", "value": counts["guest"]},
            {"name": "Student", "value": counts["student"]},
        ]

    def revenue_chart(self, today: date) -> List[dict]:
        """Paid bookings plus memberships against expenses, per day, last 30 days."""
        since = today - timedelta(days=CHART_DAYS)
        revenue: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
        expenses: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))

        for day, total in (
            self.db.query(CourtBooking.booking_date, func.sum(CourtBooking.total_amount))
            .filter(CourtBooking.payment_status == "paid", CourtBooking.booking_date >= since)
            .group_by(CourtBooking.booking_date)
            .all()
        ):
            revenue[day] += Decimal(str(total or 0))

        subscriptions = (
            self.db.query(MemberSubscription)
            .filter(
                MemberSubscription.payment_status == "paid",
                MemberSubscription.created_at >= datetime.combine(since, time.min),
            )
            .all()
        )
        for subscription in subscriptions:
            revenue[subscription.created_at.date()] += Decimal(str(subscription.amount_paid))

        for day, total in (
            self.db.query(Expense.date, func.sum(Expense.amount))
            .filter(Expense.date >= since)
            .group_by(Expense.date)
            .all()
        ):
            expenses[day] += Decimal(str(total or 0))

        return [
            {
                "date": _chart_label(day),
                "revenue": float(round(revenue[day], 2)),
                "expenses": float(round(expenses[day], 2)),
            }
            for day in sorted(set(revenue) | set(expenses))
        ]

    def staff_dashboard(
        self,
        pie_filter: str = "today",
        player_type: str = "all",
        page: int = 1,
        today: Optional[date] = None,
    ) -> dict:
        today = today or date.today()
        if pie_filter not in PIE_FILTERS:
            pie_filter = "today"
        return {
            "stats": self.staff_stats(pie_filter, today),
            "chart_data": self.booking_chart(today),
            "todays_players": self.players(pie_filter, player_type, today, page),
            "filters": {"player_type": player_type, "pie_filter": pie_filter},
            "pie_data": self.pie_data(pie_filter, today),
            "revenue_chart": self.revenue_chart(today),
        }

    def member_dashboard(self, user: User, today: Optional[date] = None) -> dict:
        today = today or date.today()
        active_bookings = (
            self.db.query(CourtBooking)
            .filter(CourtBooking.user_id == user.id, CourtBooking.booking_date >= today)
            .count()
        )
        tournaments_joined = (
            self.db.query(TournamentRegistration)
            .filter(
                TournamentRegistration.user_id == user.id,
                TournamentRegistration.payment_status == "paid",
            )
            .count()
        )
        latest = (
            self.db.query(MemberSubscription)
            .filter(MemberSubscription.user_id == user.id)
            .order_by(MemberSubscription.created_at.desc())
            .first()
        )
        return {
            "stats": {
                "active_bookings": active_bookings,
                "tournaments_joined": tournaments_joined,
                "current_plan": latest.type.capitalize() if latest else "None",
            }
        }
