"""
Tournament service.

Administrators create and run tournaments; any signed-in user can join an
open tournament once. Registrations start unpaid and are settled at the
counter through payment verification or the participants page.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from clubhouse.models.court_booking import PAYMENT_METHODS
from clubhouse.models.notification import NOTIFICATION_TYPE_TOURNAMENT
from clubhouse.models.tournament import TOURNAMENT_STATUSES, Tournament, TournamentRegistration
from clubhouse.models.user import User
from clubhouse.platform.activity_logger import log_activity
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import ConflictError, NotFoundError, ValidationError
from clubhouse.services.notification_service import (
    NotificationService,
    new_tournament_registration_payload,
)
from clubhouse.services.pagination import Page, paginate

logger = logging.getLogger(__name__)


@dataclass
class TournamentData:
    name: str
    start_date: date
    end_date: date
    registration_fee: Decimal
    status: str = "open"
    max_participants: Optional[int] = None
    description: Optional[str] = None

    def validate(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Name is required", {"field": "name"})
        if len(self.name) > 255:
            raise ValidationError("Name may not exceed 255 characters", {"field": "name"})
        if self.end_date < self.start_date:
            raise ValidationError(
                "The end date must be a date after or equal to start date.",
                {"field": "end_date"},
            )
        if self.registration_fee < 0:
            raise ValidationError("Registration fee cannot be negative", {"field": "registration_fee"})
        if self.max_participants is not None and self.max_participants < 1:
            raise ValidationError("Max participants must be at least 1", {"field": "max_participants"})
        if self.status not in TOURNAMENT_STATUSES:
            raise ValidationError("Invalid tournament status", {"field": "status"})


def generate_registration_reference() -> str:
    return "TRN-" + uuid.uuid4().hex[:13].upper()


class TournamentService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.db.get(Tournament, tournament_id)
        if tournament is None:
            raise NotFoundError("Tournament", tournament_id)
        return tournament

    def get_registration(self, tournament: Tournament, registration_id: str) -> TournamentRegistration:
        """Registration of this tournament; 404 if it belongs to another one."""
        registration = self.db.get(TournamentRegistration, registration_id)
        if registration is None or registration.tournament_id != tournament.id:
            raise NotFoundError("Registration", registration_id)
        return registration

    def create_tournament(self, data: TournamentData, actor: ActorContext) -> Tournament:
        data.validate()
        tournament = Tournament(
            name=data.name.strip(),
            description=data.description,
            start_date=data.start_date,
            end_date=data.end_date,
            registration_fee=data.registration_fee,
            max_participants=data.max_participants,
            status=data.status,
        )
        self.db.add(tournament)
        self.db.flush()
        log_activity(self.db, actor, "tournament_create", f"Admin created tournament: {tournament.name}", tournament)
        return tournament

    def update_tournament(self, tournament_id: str, data: TournamentData, actor: ActorContext) -> Tournament:
        data.validate()
        tournament = self.get_tournament(tournament_id)
        tournament.name = data.name.strip()
        tournament.description = data.description
        tournament.start_date = data.start_date
        tournament.end_date = data.end_date
        tournament.registration_fee = data.registration_fee
        tournament.max_participants = data.max_participants
        tournament.status = data.status
        self.db.flush()
        log_activity(self.db, actor, "tournament_update", f"Admin updated tournament: {tournament.name}", tournament)
        return tournament

    def list_public(self) -> List[Tournament]:
        """Open and ongoing tournaments by start date."""
        return (
            self.db.query(Tournament)
            .filter(Tournament.status.in_(("open", "ongoing")))
            .order_by(Tournament.start_date.asc())
            .all()
        )

    def registration_count(self, tournament_id: str) -> int:
        return (
            self.db.query(func.count(TournamentRegistration.id))
            .filter(TournamentRegistration.tournament_id == tournament_id)
            .scalar()
        )

    def filtered_query(
        self,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        date_to_column: str = "start_date",
    ):
        query = self.db.query(Tournament)
        if search:
            query = query.filter(Tournament.name.ilike(f"%{search}%"))
        if date_from:
            query = query.filter(Tournament.start_date >= date_from)
        if date_to:
            query = query.filter(getattr(Tournament, date_to_column) <= date_to)
        if status and status != "all":
            query = query.filter(Tournament.status == status)
        return query

    def manage_list(
        self,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> Page:
        query = self.filtered_query(search, date_from, date_to, status).order_by(
            Tournament.created_at.desc()
        )
        return paginate(query, page, per_page)

    def my_registration(self, tournament_id: str, user_id: str) -> Optional[TournamentRegistration]:
        return (
            self.db.query(TournamentRegistration)
            .filter(
                TournamentRegistration.tournament_id == tournament_id,
                TournamentRegistration.user_id == user_id,
            )
            .first()
        )

    def register(self, tournament_id: str, user: User, payment_method: str, actor: ActorContext) -> TournamentRegistration:
        """
        Register a user for a tournament.

        Raises:
            ValidationError: Bad payment method or tournament not open
            ConflictError: Already registered or tournament full
        """
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError("Payment method must be cash or gcash", {"field": "payment_method"})

        tournament = self.get_tournament(tournament_id)
        if tournament.status != "open":
            raise ValidationError("Registration is closed for this tournament")
        if self.my_registration(tournament.id, user.id) is not None:
            raise ConflictError("You are already registered for this tournament")
        if (
            tournament.max_participants is not None
            and self.registration_count(tournament.id) >= tournament.max_participants
        ):
            raise ConflictError("This tournament is full")

        registration = TournamentRegistration(
            tournament_id=tournament.id,
            user_id=user.id,
            payment_method=payment_method,
            payment_reference=generate_registration_reference(),
            payment_status="unpaid",
            amount_paid=tournament.registration_fee,
        )
        self.db.add(registration)
        self.db.flush()

        log_activity(self.db, actor, "tournament_join", f"User joined tournament: {tournament.name}", registration)
        NotificationService(self.db).notify_staff(
            NOTIFICATION_TYPE_TOURNAMENT,
            new_tournament_registration_payload(registration.created_at.date()),
        )

        logger.info(
            "Tournament registration created",
            extra={
                "registration_id": registration.id,
                "tournament_id": tournament.id,
                "user_id": user.id,
            },
        )
        return registration

    def participants(self, tournament_id: str) -> Tuple[Tournament, List[TournamentRegistration], dict]:
        """Registrations of a tournament with paid/unpaid totals."""
        tournament = self.get_tournament(tournament_id)
        registrations = (
            self.db.query(TournamentRegistration)
            .filter(TournamentRegistration.tournament_id == tournament.id)
            .order_by(TournamentRegistration.created_at.asc())
            .all()
        )
        paid = [r for r in registrations if r.payment_status == "paid"]
        summary = {
            "total": len(registrations),
            "paid": len(paid),
            "unpaid": len(registrations) - len(paid),
            "total_amount": sum((Decimal(str(r.amount_paid)) for r in paid), Decimal("0")),
        }
        return tournament, registrations, summary

    def filtered_participants(
        self,
        tournament_id: str,
        search: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_method: Optional[str] = None,
    ):
        query = (
            self.db.query(TournamentRegistration)
            .join(User, TournamentRegistration.user_id == User.id)
            .filter(TournamentRegistration.tournament_id == tournament_id)
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if payment_status and payment_status != "all":
            query = query.filter(TournamentRegistration.payment_status == payment_status)
        if payment_method and payment_method != "all":
            query = query.filter(TournamentRegistration.payment_method == payment_method)
        return query.order_by(TournamentRegistration.created_at.desc())

    def remove_participant(self, tournament_id: str, registration_id: str, actor: ActorContext) -> None:
        tournament = self.get_tournament(tournament_id)
        registration = self.get_registration(tournament, registration_id)
        user_name = registration.user.name if registration.user else "Unknown"
        self.db.delete(registration)
        self.db.flush()
        log_activity(
            self.db,
            actor,
            "tournament_participant_remove",
            f"Admin removed participant {user_name} from tournament {tournament.name}",
        )

    def mark_paid(self, tournament_id: str, registration_id: str) -> TournamentRegistration:
        tournament = self.get_tournament(tournament_id)
        registration = self.get_registration(tournament, registration_id)
        registration.payment_status = "paid"
        self.db.flush()
        return registration
