"""
Payment verification service.

Lists the day's unpaid court bookings and tournament registrations and
lets staff confirm cash payments. Only administrators may look at other
days; everyone else always sees today.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.tournament import TournamentRegistration
from clubhouse.models.user import User
from clubhouse.platform.activity_logger import log_activity
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import NotFoundError

logger = logging.getLogger(__name__)


def day_bounds(day: date) -> tuple:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class PaymentVerificationService:
    def __init__(self, db_session: Session):
        self.db = db_session

    @staticmethod
    def effective_date(user: User, requested: Optional[date], today: Optional[date] = None) -> date:
        today = today or date.today()
        if not user.is_admin() or requested is None:
            return today
        return requested

    def unpaid_bookings(self, on_date: date) -> List[CourtBooking]:
        return (
            self.db.query(CourtBooking)
            .filter(
                CourtBooking.payment_status != "paid",
                CourtBooking.booking_date == on_date,
            )
            .order_by(CourtBooking.created_at.desc())
            .all()
        )

    def unpaid_registrations(self, on_date: date) -> List[TournamentRegistration]:
        """Unpaid registrations made on the given day."""
        start, end = day_bounds(on_date)
        return (
            self.db.query(TournamentRegistration)
            .filter(
                TournamentRegistration.payment_status != "paid",
                TournamentRegistration.created_at >= start,
                TournamentRegistration.created_at < end,
            )
            .order_by(TournamentRegistration.created_at.desc())
            .all()
        )

    def mark_booking_paid(self, booking_id: str, staff_user: User, actor: ActorContext) -> CourtBooking:
        booking = self.db.get(CourtBooking, booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)

        booking.payment_status = "paid"
        booking.staff_id = staff_user.id
        booking.payment_method = "cash"
        self.db.flush()

        log_activity(
            self.db,
            actor,
            "payment_verify_booking",
            f"{staff_user.user_type.label} confirmed payment for booking {booking.payment_reference}",
            booking,
        )
        logger.info(
            "Booking payment confirmed",
            extra={"booking_id": booking.id, "staff_id": staff_user.id},
        )
        return booking

    def mark_registration_paid(
        self, registration_id: str, staff_user: User, actor: ActorContext
    ) -> TournamentRegistration:
        registration = self.db.get(TournamentRegistration, registration_id)
        if registration is None:
            raise NotFoundError("Registration", registration_id)

        registration.payment_status = "paid"
        registration.staff_id = staff_user.id
        registration.payment_method = "cash"
        self.db.flush()

        log_activity(
            self.db,
            actor,
            "payment_verify_tournament",
            f"{staff_user.user_type.label} confirmed payment for tournament registration "
            f"{registration.payment_reference}",
            registration,
        )
        logger.info(
            "Tournament payment confirmed",
            extra={"registration_id": registration.id, "staff_id": staff_user.id},
        )
        return registration
