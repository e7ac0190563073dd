"""
Reporting service: bookings, members, revenue and tournaments.

Each report has a filtered query, a row transform shared by the page view
and the export, and (for exports) a fixed column list.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from clubhouse.constants.roles import CUSTOMER_TYPES
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.expense import Expense
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.tournament import Tournament, TournamentRegistration
from clubhouse.models.user import User
from clubhouse.services.notification_service import format_display_date
from clubhouse.services.pagination import Page, paginate
from clubhouse.services.report_exporter import ExportFormat, ExportedReport, export_report
from clubhouse.services.settings_service import SettingsService
from clubhouse.services.tournament_service import TournamentService

logger = logging.getLogger(__name__)

DEFAULT_PICKER_FEE = "80"
_CUSTOMER_ROLES = tuple(sorted(user_type.value for user_type in CUSTOMER_TYPES))

BOOKING_COLUMNS = [
    ("date", "Date"),
    ("customer", "Customer"),
    ("type", "Type"),
    ("time", "Schedule"),
    ("games", "Games"),
    ("with_trainer", "Trainer"),
    ("priest_count", "Priest Count"),
    ("with_picker", "With Picker"),
    ("picker_fee", "Picker Fee"),
    ("status", "Status"),
    ("total", "Amount"),
]
MEMBER_COLUMNS = [
    ("name", "Name"),
    ("email", "Email"),
    ("type", "Type"),
    ("status", "Status"),
    ("last_payment_date", "Last Payment"),
    ("subscription_end", "Subscription End"),
]
REVENUE_COLUMNS = [
    ("date", "Date"),
    ("income", "Income"),
    ("expenses", "Expenses"),
    ("net", "Net Revenue"),
]
TOURNAMENT_COLUMNS = [
    ("name", "Name"),
    ("start_date", "Start Date"),
    ("end_date", "End Date"),
    ("status", "Status"),
    ("fee", "Fee"),
    ("participants", "Participants"),
]
PARTICIPANT_COLUMNS = [
    ("name", "Name"),
    ("email", "Email"),
    ("payment_method", "Payment Method"),
    ("payment_status", "Payment Status"),
    ("amount", "Amount"),
    ("registered_at", "Registered At"),
]


def _is_set(value) -> bool:
    return value is not None and value != "" and value != "all"


def parse_bool_filter(value) -> Optional[bool]:
    """'true'/'1'/'yes'/'on' -> True, 'false'/'0'/'no'/'off' -> False, else None."""
    if isinstance(value, bool):
        return value
    if not _is_set(value):
        return None
    lowered = str(value).strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    return None


def picker_fee(booking: CourtBooking, base_fee: Decimal) -> Decimal:
    """
    Ball picker fee for a booking.

    The base fee is shared by the paying players on court: four for doubles,
    two otherwise, minus priests (who do not pay), never fewer than one.
    """
    used = booking.pickers_used
    if not used:
        return Decimal("0")
    divisor = 4 if booking.category == "double" else 2
    payers = max(1, divisor - (booking.priest_count or 0))
    return (base_fee / payers) * used


@dataclass
class BookingReportFilters:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    type: Optional[str] = None
    with_trainer: Optional[str] = None
    payment_status: Optional[str] = None
    schedule_type: Optional[str] = None
    with_priest: Optional[str] = None
    with_picker: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "date_from": self.date_from.isoformat() if self.date_from else None,
            "date_to": self.date_to.isoformat() if self.date_to else None,
            "type": self.type,
            "with_trainer": self.with_trainer,
            "payment_status": self.payment_status,
            "schedule_type": self.schedule_type,
            "with_priest": self.with_priest,
            "with_picker": self.with_picker,
        }


class ReportService:
    def __init__(self, db_session: Session):
        self.db = db_session
        self.settings = SettingsService(db_session)

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def _booking_query(self, filters: BookingReportFilters):
        query = self.db.query(CourtBooking)
        if filters.date_from:
            query = query.filter(CourtBooking.booking_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(CourtBooking.booking_date <= filters.date_to)
        if _is_set(filters.type):
            if filters.type == "guest":
                query = query.filter(CourtBooking.user_id.is_(None))
            else:
                query = query.filter(
                    CourtBooking.user_type_at_booking == filters.type,
                    CourtBooking.user_id.isnot(None),
                )
        with_trainer = parse_bool_filter(filters.with_trainer)
        if with_trainer is not None:
            query = query.filter(CourtBooking.with_trainer == with_trainer)
        if _is_set(filters.payment_status):
            query = query.filter(CourtBooking.payment_status == filters.payment_status)
        if _is_set(filters.schedule_type):
            query = query.filter(CourtBooking.schedule_type == filters.schedule_type)
        with_priest = parse_bool_filter(filters.with_priest)
        if with_priest is True:
            query = query.filter(CourtBooking.priest_count > 0)
        elif with_priest is False:
            query = query.filter(CourtBooking.priest_count == 0)
        return query

    def _bookings_matching(self, filters: BookingReportFilters) -> List[CourtBooking]:
        bookings = (
            self._booking_query(filters)
            .order_by(CourtBooking.booking_date.desc(), CourtBooking.created_at.asc())
            .all()
        )
        # JSON containment differs per database; the picker filter runs in Python
        with_picker = parse_bool_filter(filters.with_picker)
        if with_picker is not None:
            bookings = [b for b in bookings if (b.pickers_used > 0) == with_picker]
        return bookings

    def base_picker_fee(self) -> Decimal:
        return self.settings.get_decimal("fee_picker", DEFAULT_PICKER_FEE)

    @staticmethod
    def booking_row(booking: CourtBooking, base_fee: Decimal) -> dict:
        fee = picker_fee(booking, base_fee)
        if booking.user is not None:
            customer = booking.user.name
            user_type = booking.user_type_at_booking
        else:
            customer = booking.guest_name or "Guest"
            user_type = "Guest"
        return {
            "id": booking.id,
            "date": format_display_date(booking.booking_date),
            "time": "Day" if booking.schedule_type == "day" else "Night",
            "customer": customer,
            "type": user_type,
            "games": booking.games_count,
            "with_trainer": "Yes" if booking.with_trainer else "No",
            "priest_count": booking.priest_count or 0,
            "with_picker": "Yes" if booking.pickers_used > 0 else "No",
            "picker_fee": f"{fee:.2f}",
            "total": Decimal(str(booking.total_amount)),
            "status": booking.payment_status.capitalize(),
        }

    def booking_report(self, filters: BookingReportFilters, page: int = 1, per_page: int = 10) -> dict:
        bookings = self._bookings_matching(filters)
        base_fee = self.base_picker_fee()

        paid = sum(
            (Decimal(str(b.total_amount)) for b in bookings if b.payment_status == "paid"),
            Decimal("0"),
        )
        unpaid = sum(
            (Decimal(str(b.total_amount)) for b in bookings if b.payment_status != "paid"),
            Decimal("0"),
        )
        stats = {
            "total_bookings": len(bookings),
            "total_games": sum(b.games_count for b in bookings),
            "total_paid": paid,
            "total_unpaid": unpaid,
        }

        page = max(1, page)
        start = (page - 1) * per_page
        rows = Page(
            items=bookings[start:start + per_page],
            total=len(bookings),
            page=page,
            per_page=per_page,
        )
        return {
            "bookings": rows.to_dict(lambda b: self.booking_row(b, base_fee)),
            "filters": filters.to_dict(),
            "stats": stats,
        }

    def export_booking_report(self, filters: BookingReportFilters, fmt: ExportFormat) -> ExportedReport:
        base_fee = self.base_picker_fee()
        rows = [self.booking_row(b, base_fee) for b in self._bookings_matching(filters)]
        return export_report("booking_report", "Booking Report", BOOKING_COLUMNS, rows, fmt)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    @staticmethod
    def member_status(subscriptions: List[MemberSubscription], today: date) -> str:
        """Active if any plan is lifetime or ends today or later, Expired if all ended."""
        if any(s.is_lifetime or s.end_date >= today for s in subscriptions):
            return "Active"
        if subscriptions:
            return "Expired"
        return "No Record"

    def _active_subscription_exists(self, today: date):
        return User.subscriptions.any(
            or_(MemberSubscription.end_date.is_(None), MemberSubscription.end_date >= today)
        )

    def _member_query(self, search: Optional[str], member_type: Optional[str], status: Optional[str], today: date):
        query = self.db.query(User).filter(User.role.in_(_CUSTOMER_ROLES))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if _is_set(member_type):
            query = query.filter(User.membership_status == member_type)
        if status == "active":
            query = query.filter(self._active_subscription_exists(today))
        elif status == "expired":
            query = query.filter(User.subscriptions.any(), ~self._active_subscription_exists(today))
        return query.order_by(User.name.asc())

    def member_row(self, user: User, today: date) -> dict:
        subscriptions = list(user.subscriptions)
        latest = max(
            subscriptions,
            key=lambda s: (s.end_date is None, s.end_date or date.min),
            default=None,
        )
        if latest is None:
            end_label = "-"
        elif latest.is_lifetime:
            end_label = "Lifetime"
        else:
            end_label = format_display_date(latest.end_date)
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "type": user.user_type.label,
            "membership_status": user.membership_status,
            "status": self.member_status(subscriptions, today),
            "last_payment_date": format_display_date(latest.created_at.date()) if latest else "-",
            "subscription_end": end_label,
        }

    def member_stats(self, today: date) -> dict:
        customers = self.db.query(User).filter(User.role.in_(_CUSTOMER_ROLES))
        return {
            "total_users": customers.count(),
            "active_members": customers.filter(self._active_subscription_exists(today)).count(),
            "expired_members": customers.filter(
                User.subscriptions.any(), ~self._active_subscription_exists(today)
            ).count(),
        }

    def member_report(
        self,
        search: Optional[str] = None,
        member_type: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
        today: Optional[date] = None,
    ) -> dict:
        today = today or date.today()
        result = paginate(self._member_query(search, member_type, status, today), page, per_page)
        return {
            "users": result.to_dict(lambda u: self.member_row(u, today)),
            "filters": {"search": search, "type": member_type, "status": status},
            "stats": self.member_stats(today),
            "memberStatus": ["member", "non-member"],
        }

    def export_member_report(
        self,
        fmt: ExportFormat,
        search: Optional[str] = None,
        member_type: Optional[str] = None,
        status: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ExportedReport:
        today = today or date.today()
        rows = [self.member_row(u, today) for u in self._member_query(search, member_type, status, today).all()]
        return export_report("members_report", "Members Report", MEMBER_COLUMNS, rows, fmt)

    # ------------------------------------------------------------------
    # Revenue
    # ------------------------------------------------------------------

    @staticmethod
    def default_revenue_range(today: Optional[date] = None) -> tuple:
        """First and last day of the current month."""
        today = today or date.today()
        first = today.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        return first, next_month - timedelta(days=1)

    def revenue_data(self, date_from: date, date_to: date) -> List[dict]:
        """
        Income, expenses and net per day.

        Income is paid bookings (by booking date) plus paid tournament
        registrations (by last update, the payment confirmation).
        """
        income: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
        expenses: Dict[date, Decimal] = defaultdict(lambda: Decimal("0"))

        bookings = (
            self.db.query(CourtBooking)
            .filter(
                CourtBooking.payment_status == "paid",
                CourtBooking.booking_date >= date_from,
                CourtBooking.booking_date <= date_to,
            )
            .all()
        )
        for booking in bookings:
            income[booking.booking_date] += Decimal(str(booking.total_amount))

        range_start = datetime.combine(date_from, time.min)
        range_end = datetime.combine(date_to + timedelta(days=1), time.min)
        registrations = (
            self.db.query(TournamentRegistration)
            .filter(
                TournamentRegistration.payment_status == "paid",
                TournamentRegistration.updated_at >= range_start,
                TournamentRegistration.updated_at < range_end,
            )
            .all()
        )
        for registration in registrations:
            income[registration.updated_at.date()] += Decimal(str(registration.amount_paid))

        for expense in (
            self.db.query(Expense)
            .filter(Expense.date >= date_from, Expense.date <= date_to)
            .all()
        ):
            expenses[expense.date] += Decimal(str(expense.amount))

        rows = []
        for day in sorted(set(income) | set(expenses)):
            rows.append({
                "date": format_display_date(day),
                "raw_date": day.isoformat(),
                "income": income[day],
                "expenses": expenses[day],
                "net": income[day] - expenses[day],
            })
        return rows

    def export_revenue_report(self, date_from: date, date_to: date, fmt: ExportFormat) -> ExportedReport:
        rows = self.revenue_data(date_from, date_to)
        subtitle = f"{date_from.isoformat()} to {date_to.isoformat()}"
        return export_report("revenue_report", "Revenue Report", REVENUE_COLUMNS, rows, fmt, subtitle)

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    def _registration_counts(self) -> Dict[str, int]:
        rows = (
            self.db.query(TournamentRegistration.tournament_id, func.count(TournamentRegistration.id))
            .group_by(TournamentRegistration.tournament_id)
            .all()
        )
        return {tournament_id: count for tournament_id, count in rows}

    @staticmethod
    def tournament_row(tournament: Tournament, participants: int) -> dict:
        max_label = tournament.max_participants if tournament.max_participants is not None else ""
        return {
            "id": tournament.id,
            "name": tournament.name,
            "start_date": format_display_date(tournament.start_date),
            "end_date": format_display_date(tournament.end_date),
            "status": tournament.status.capitalize(),
            "fee": f"{Decimal(str(tournament.registration_fee)):.2f}",
            "participants_count": participants,
            "max_participants": tournament.max_participants,
            "participants": f"{participants} / {max_label}",
        }

    def tournament_report(
        self,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> dict:
        query = TournamentService(self.db).filtered_query(
            search, date_from, date_to, status, date_to_column="end_date"
        ).order_by(Tournament.start_date.desc())
        counts = self._registration_counts()
        result = paginate(query, page, per_page)
        return {
            "tournaments": result.to_dict(lambda t: self.tournament_row(t, counts.get(t.id, 0))),
            "filters": {
                "search": search,
                "date_from": date_from.isoformat() if date_from else None,
                "date_to": date_to.isoformat() if date_to else None,
                "status": status,
            },
        }

    def export_tournament_report(
        self,
        fmt: ExportFormat,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
    ) -> ExportedReport:
        query = TournamentService(self.db).filtered_query(
            search, date_from, date_to, status, date_to_column="end_date"
        ).order_by(Tournament.start_date.desc())
        counts = self._registration_counts()
        rows = [self.tournament_row(t, counts.get(t.id, 0)) for t in query.all()]
        return export_report("tournaments_report", "Tournaments Report", TOURNAMENT_COLUMNS, rows, fmt)

    @staticmethod
    def participant_row(registration: TournamentRegistration) -> dict:
        return {
            "id": registration.id,
            "name": registration.user.name,
            "email": registration.user.email,
            "payment_method": registration.payment_method.capitalize(),
            "payment_status": registration.payment_status.capitalize(),
            "amount": f"{Decimal(str(registration.amount_paid)):.2f}",
            "registered_at": registration.created_at.strftime("%b %d, %Y %H:%M"),
        }

    def tournament_participants(
        self,
        tournament_id: str,
        search: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_method: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> dict:
        service = TournamentService(self.db)
        tournament = service.get_tournament(tournament_id)
        query = service.filtered_participants(tournament.id, search, payment_status, payment_method)
        result = paginate(query, page, per_page)
        return {
            "tournament": {"id": tournament.id, "name": tournament.name},
            "participants": result.to_dict(self.participant_row),
            "filters": {
                "search": search,
                "payment_status": payment_status,
                "payment_method": payment_method,
            },
        }

    def export_tournament_participants(
        self,
        tournament_id: str,
        fmt: ExportFormat,
        search: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> ExportedReport:
        service = TournamentService(self.db)
        tournament = service.get_tournament(tournament_id)
        query = service.filtered_participants(tournament.id, search, payment_status, payment_method)
        rows = [self.participant_row(r) for r in query.all()]
        return export_report(
            "tournament_participants",
            f"Participants: {tournament.name}",
            PARTICIPANT_COLUMNS,
            rows,
            fmt,
        )
