"""Tests for the booking, member, revenue and tournament reports."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from clubhouse.constants.roles import UserType
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.expense import Expense
from clubhouse.models.member_subscription import MemberSubscription
from clubhouse.models.tournament import Tournament, TournamentRegistration
from clubhouse.services.report_exporter import ExportFormat
from clubhouse.services.report_service import (
    BookingReportFilters,
    ReportService,
    parse_bool_filter,
    picker_fee,
)

TODAY = date(2025, 2, 9)


@pytest.fixture
def add_booking(db):
    counter = {"n": 0}

    def _add(user=None, **overrides):
        counter["n"] += 1
        values = {
            "user_id": user.id if user is not None else None,
            "user_type_at_booking": user.role if user is not None else None,
            "schedule_type": "day",
            "booking_date": TODAY,
            "games_count": 1,
            "payment_method": "cash",
            "payment_reference": f"TC-REP{counter['n']:04d}",
            "payment_status": "paid",
            "total_amount": Decimal("100"),
        }
        values.update(overrides)
        booking = CourtBooking(**values)
        db.add(booking)
        db.flush()
        return booking

    return _add


class TestHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("1", True), ("YES", True), ("on", True), ("false", False),
         ("0", False), ("off", False), ("all", None), ("", None), (None, None), ("maybe", None)],
    )
    def test_parse_bool_filter(self, value, expected):
        assert parse_bool_filter(value) is expected

    @pytest.mark.parametrize(
        "category,priests,pickers,expected",
        [
            ("single", 0, [True, False], Decimal("40")),
            ("double", 0, [True, True], Decimal("40")),
            ("double", 2, [True], Decimal("40")),
            ("single", 2, [True], Decimal("80")),
            ("single", 5, [True, True], Decimal("160")),
            (None, 0, [], Decimal("0")),
            ("double", 0, None, Decimal("0")),
        ],
    )
    def test_picker_fee(self, category, priests, pickers, expected):
        booking = CourtBooking(category=category, priest_count=priests, picker_selection=pickers)
        assert picker_fee(booking, Decimal("80")) == expected


class TestBookingReport:
    def test_stats_and_rows(self, db, member, add_booking):
        add_booking(member, games_count=2, total_amount=Decimal("150"))
        add_booking(None, guest_name="Walk-in", payment_status="pending", total_amount=Decimal("150"))

        report = ReportService(db).booking_report(BookingReportFilters())

        assert report["stats"] == {
            "total_bookings": 2,
            "total_games": 3,
            "total_paid": Decimal("150"),
            "total_unpaid": Decimal("150"),
        }
        customers = {row["customer"]: row for row in report["bookings"]["data"]}
        assert customers["Walk-in"]["type"] == "Guest"
        assert customers["Maria Member"]["type"] == "member"
        assert customers["Maria Member"]["status"] == "Paid"

    def test_filters(self, db, member, student, add_booking):
        add_booking(member, with_trainer=True, schedule_type="night")
        add_booking(student, priest_count=1, picker_selection=[True])
        add_booking(None, booking_date=date(2025, 3, 1))
        service = ReportService(db)

        def _count(**kwargs):
            return service.booking_report(BookingReportFilters(**kwargs))["stats"]["total_bookings"]

        assert _count(type="student") == 1
        assert _count(type="guest") == 1
        assert _count(with_trainer="true") == 1
        assert _count(schedule_type="night") == 1
        assert _count(with_priest="1") == 1
        assert _count(with_priest="0") == 2
        assert _count(with_picker="yes") == 1
        assert _count(date_from=date(2025, 2, 10)) == 1
        assert _count(date_to=TODAY) == 2
        assert _count(type="all") == 3

    def test_picker_fee_uses_setting(self, db, member, add_booking):
        from clubhouse.models.setting import Setting

        db.add(Setting(key="fee_picker", value="100"))
        add_booking(member, category="single", picker_selection=[True])

        [row] = ReportService(db).booking_report(BookingReportFilters())["bookings"]["data"]
        assert row["picker_fee"] == "50.00"
        assert row["with_picker"] == "Yes"

    def test_export_csv(self, db, member, add_booking):
        add_booking(member)

        report = ReportService(db).export_booking_report(BookingReportFilters(), ExportFormat.CSV)

        assert report.filename == "booking_report.csv"
        assert report.record_count == 1
        lines = report.content.decode("utf-8").splitlines()
        assert lines[0].startswith("Date,Customer,Type,Schedule")
        assert "Maria Member" in lines[1]


class TestMemberReport:
    def _subscribe(self, db, user, end_date):
        db.add(MemberSubscription(
            user_id=user.id, type="monthly", start_date=date(2024, 1, 1),
            end_date=end_date, payment_method="cash", amount_paid=Decimal("100"),
        ))
        db.flush()

    def test_member_status(self):
        active = MemberSubscription(type="lifetime", start_date=TODAY, end_date=None)
        ended = MemberSubscription(type="monthly", start_date=date(2024, 1, 1), end_date=date(2024, 2, 1))
        ends_today = MemberSubscription(type="monthly", start_date=date(2025, 1, 9), end_date=TODAY)

        assert ReportService.member_status([active], TODAY) == "Active"
        assert ReportService.member_status([ends_today], TODAY) == "Active"
        assert ReportService.member_status([ended], TODAY) == "Expired"
        assert ReportService.member_status([], TODAY) == "No Record"

    def test_status_filters_and_stats(self, db, admin, member, non_member, student):
        self._subscribe(db, member, date(2025, 3, 1))
        self._subscribe(db, student, date(2024, 12, 31))
        service = ReportService(db)

        report = service.member_report(today=TODAY)
        assert report["stats"] == {"total_users": 3, "active_members": 1, "expired_members": 1}
        statuses = {row["name"]: row["status"] for row in report["users"]["data"]}
        assert statuses == {"Maria Member": "Active", "Nate Visitor": "No Record", "Stella Student": "Expired"}

        active = service.member_report(status="active", today=TODAY)["users"]["data"]
        expired = service.member_report(status="expired", today=TODAY)["users"]["data"]
        assert [row["name"] for row in active] == ["Maria Member"]
        assert [row["name"] for row in expired] == ["Stella Student"]

        members_only = service.member_report(member_type="member", today=TODAY)["users"]["data"]
        assert [row["name"] for row in members_only] == ["Maria Member"]

    def test_export_json(self, db, member):
        self._subscribe(db, member, date(2025, 3, 1))
        report = ReportService(db).export_member_report(ExportFormat.JSON, today=TODAY)
        assert report.filename == "members_report.json"
        assert b'"subscription_end": "Mar 01, 2025"' in report.content


class TestRevenueReport:
    def test_default_range(self):
        assert ReportService.default_revenue_range(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert ReportService.default_revenue_range(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))

    def test_income_and_expenses_per_day(self, db, member, add_booking):
        add_booking(member, total_amount=Decimal("300"))
        add_booking(member, payment_status="pending", total_amount=Decimal("999"))
        tournament = Tournament(name="Cup", start_date=TODAY, end_date=TODAY, registration_fee=Decimal("500"))
        db.add(tournament)
        db.flush()
        db.add(TournamentRegistration(
            tournament_id=tournament.id, user_id=member.id, payment_method="cash",
            payment_reference="TRN-REV1", payment_status="paid", amount_paid=Decimal("500"),
            updated_at=datetime(2025, 2, 10, 9, 0),
        ))
        db.add(Expense(date=TODAY, item="Balls", amount=Decimal("120")))
        db.flush()

        rows = ReportService(db).revenue_data(date(2025, 2, 1), date(2025, 2, 28))

        assert rows == [
            {"date": "Feb 09, 2025", "raw_date": "2025-02-09", "income": Decimal("300"),
             "expenses": Decimal("120"), "net": Decimal("180")},
            {"date": "Feb 10, 2025", "raw_date": "2025-02-10", "income": Decimal("500"),
             "expenses": Decimal("0"), "net": Decimal("500")},
        ]


class TestTournamentReport:
    def test_rows_and_participants(self, db, member, student):
        tournament = Tournament(
            name="Spring Cup", start_date=date(2025, 4, 1), end_date=date(2025, 4, 2),
            registration_fee=Decimal("500"), max_participants=16,
        )
        db.add(tournament)
        db.flush()
        for n, user in enumerate((member, student)):
            db.add(TournamentRegistration(
                tournament_id=tournament.id, user_id=user.id, payment_method="gcash",
                payment_reference=f"TRN-P{n}", payment_status="unpaid", amount_paid=Decimal("500"),
            ))
        db.flush()
        service = ReportService(db)

        [row] = service.tournament_report()["tournaments"]["data"]
        assert row["participants"] == "2 / 16"
        assert row["fee"] == "500.00"
        assert service.tournament_report(date_to=date(2025, 4, 1))["tournaments"]["total"] == 0

        participants = service.tournament_participants(tournament.id, search="maria")
        assert participants["participants"]["total"] == 1
        assert participants["participants"]["data"][0]["payment_method"] == "Gcash"

        export = service.export_tournament_participants(tournament.id, ExportFormat.PDF)
        assert export.content.startswith(b"%PDF")
        assert export.record_count == 2
