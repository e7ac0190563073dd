"""Tests for tournament management and registration."""

from datetime import date
from decimal import Decimal

import pytest

from clubhouse.constants.roles import UserType
from clubhouse.models.activity_log import ActivityLog
from clubhouse.models.notification import Notification
from clubhouse.models.tournament import TournamentRegistration
from clubhouse.platform.errors import ConflictError, NotFoundError, ValidationError
from clubhouse.services.tournament_service import TournamentData, TournamentService


def _data(**overrides) -> TournamentData:
    values = {
        "name": "Summer Open",
        "start_date": date(2025, 6, 1),
        "end_date": date(2025, 6, 3),
        "registration_fee": Decimal("500"),
    }
    values.update(overrides)
    return TournamentData(**values)


@pytest.fixture
def tournament(db, admin, actor_for):
    return TournamentService(db).create_tournament(_data(), actor_for(admin))


class TestTournamentData:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "  "},
            {"name": "x" * 256},
            {"end_date": date(2025, 5, 31)},
            {"registration_fee": Decimal("-1")},
            {"max_participants": 0},
            {"status": "cancelled"},
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ValidationError):
            _data(**overrides).validate()

    def test_single_day_is_valid(self):
        _data(end_date=date(2025, 6, 1)).validate()


class TestCreateAndUpdate:
    def test_create_logs_activity(self, db, tournament):
        entry = db.query(ActivityLog).one()
        assert entry.action == "tournament_create"
        assert entry.subject_type == "Tournament"
        assert entry.description == "Admin created tournament: Summer Open"

    def test_update(self, db, admin, tournament, actor_for):
        updated = TournamentService(db).update_tournament(
            tournament.id, _data(name="Summer Open II", status="ongoing"), actor_for(admin)
        )
        assert updated.name == "Summer Open II"
        assert updated.status == "ongoing"

    def test_update_missing(self, db, admin, actor_for):
        with pytest.raises(NotFoundError):
            TournamentService(db).update_tournament("missing", _data(), actor_for(admin))

    def test_list_public_hides_completed(self, db, admin, actor_for):
        service = TournamentService(db)
        service.create_tournament(_data(name="Done", status="completed"), actor_for(admin))
        live = service.create_tournament(_data(name="Live", status="ongoing"), actor_for(admin))

        assert [t.id for t in service.list_public()] == [live.id]


class TestRegister:
    def test_register(self, db, tournament, member, admin, staff, actor_for):
        registration = TournamentService(db).register(tournament.id, member, "gcash", actor_for(member))

        assert registration.payment_status == "unpaid"
        assert registration.amount_paid == Decimal("500")
        assert registration.payment_reference.startswith("TRN-")
        staff_notified = {n.user_id for n in db.query(Notification).filter(Notification.type == "tournament")}
        assert staff_notified == {admin.id, staff.id}

    def test_only_once_per_user(self, db, tournament, member, actor_for):
        service = TournamentService(db)
        service.register(tournament.id, member, "cash", actor_for(member))
        with pytest.raises(ConflictError):
            service.register(tournament.id, member, "cash", actor_for(member))

    def test_capacity(self, db, admin, make_user, actor_for):
        service = TournamentService(db)
        small = service.create_tournament(_data(max_participants=1), actor_for(admin))
        first, second = make_user(UserType.MEMBER), make_user(UserType.STUDENT)

        service.register(small.id, first, "cash", actor_for(first))
        with pytest.raises(ConflictError):
            service.register(small.id, second, "cash", actor_for(second))

    def test_closed_tournament(self, db, admin, member, actor_for):
        service = TournamentService(db)
        ongoing = service.create_tournament(_data(status="ongoing"), actor_for(admin))
        with pytest.raises(ValidationError):
            service.register(ongoing.id, member, "cash", actor_for(member))

    def test_bad_payment_method(self, db, tournament, member, actor_for):
        with pytest.raises(ValidationError):
            TournamentService(db).register(tournament.id, member, "card", actor_for(member))


class TestParticipants:
    def test_summary_and_mark_paid(self, db, tournament, member, student, actor_for):
        service = TournamentService(db)
        paid = service.register(tournament.id, member, "cash", actor_for(member))
        service.register(tournament.id, student, "gcash", actor_for(student))

        service.mark_paid(tournament.id, paid.id)
        _, registrations, summary = service.participants(tournament.id)

        assert len(registrations) == 2
        assert summary == {"total": 2, "paid": 1, "unpaid": 1, "total_amount": Decimal("500")}

    def test_filtered_participants(self, db, tournament, member, student, actor_for):
        service = TournamentService(db)
        service.register(tournament.id, member, "cash", actor_for(member))
        service.register(tournament.id, student, "gcash", actor_for(student))

        assert service.filtered_participants(tournament.id, search="stella").count() == 1
        assert service.filtered_participants(tournament.id, payment_method="cash").count() == 1
        assert service.filtered_participants(tournament.id, payment_status="paid").count() == 0

    def test_remove_participant(self, db, admin, tournament, member, actor_for):
        service = TournamentService(db)
        registration = service.register(tournament.id, member, "cash", actor_for(member))

        service.remove_participant(tournament.id, registration.id, actor_for(admin))

        assert db.query(TournamentRegistration).count() == 0
        entry = db.query(ActivityLog).filter(ActivityLog.action == "tournament_participant_remove").one()
        assert "Maria Member" in entry.description

    def test_registration_of_other_tournament_is_not_found(self, db, admin, tournament, member, actor_for):
        service = TournamentService(db)
        other = service.create_tournament(_data(name="Winter Cup"), actor_for(admin))
        registration = service.register(other.id, member, "cash", actor_for(member))

        with pytest.raises(NotFoundError):
            service.mark_paid(tournament.id, registration.id)
