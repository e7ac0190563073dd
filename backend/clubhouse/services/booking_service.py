"""
Court booking service.

Pricing is per game and depends on the booker's role at booking time:
members pay the day or night rate, students a flat rate, everyone else
(non-members, guests, staff booking for themselves) the non-member rate.
A trainer adds the configured trainer fee per game.

Bookings entered by staff are taken at the counter and recorded as paid;
self-service bookings stay pending until payment is verified.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from clubhouse.config.club import (
    MAX_GAMES_PER_BOOKING,
    MEMBER_DAY_RATE,
    MEMBER_NIGHT_RATE,
    MIN_GAMES_PER_BOOKING,
    NON_MEMBER_RATE,
    STUDENT_RATE,
)
from clubhouse.constants.roles import UserType
from clubhouse.models.court_booking import (
    BOOKING_CATEGORIES,
    PAYMENT_METHODS,
    SCHEDULE_TYPES,
    CourtBooking,
)
from clubhouse.models.notification import NOTIFICATION_TYPE_BOOKING
from clubhouse.models.user import User
from clubhouse.platform.activity_logger import log_activity
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.errors import NotFoundError, ValidationError
from clubhouse.services.notification_service import NotificationService, new_booking_payload
from clubhouse.services.pagination import Page, paginate
from clubhouse.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("booking_date", "created_at", "total_amount", "games_count")


@dataclass
class BookingRequest:
    schedule_type: str
    booking_date: date
    games_count: int
    payment_method: str
    with_trainer: bool = False
    user_id: Optional[str] = None
    guest_name: Optional[str] = None
    category: Optional[str] = None
    priest_count: int = 0
    picker_selection: Optional[List[bool]] = None


@dataclass
class BookingQuote:
    rate: Decimal
    trainer_fee: Decimal
    subtotal: Decimal
    discount: Decimal
    total: Decimal


def generate_booking_reference() -> str:
    return "TC-" + uuid.uuid4().hex[:8].upper()


def court_rate(user_type: Optional[UserType], schedule_type: str) -> Decimal:
    """Per-game court rate for a role (None for guests)."""
    if user_type is UserType.MEMBER:
        return MEMBER_DAY_RATE if schedule_type == "day" else MEMBER_NIGHT_RATE
    if user_type is UserType.STUDENT:
        return STUDENT_RATE
    return NON_MEMBER_RATE


class BookingService:
    def __init__(self, db_session: Session):
        self.db = db_session
        self.settings = SettingsService(db_session)

    def quote(
        self,
        user_type: Optional[UserType],
        schedule_type: str,
        games_count: int,
        with_trainer: bool,
    ) -> BookingQuote:
        rate = court_rate(user_type, schedule_type)
        trainer_fee = self.settings.get_decimal("fee_trainer") if with_trainer else Decimal("0")
        subtotal = (rate * games_count) + (trainer_fee * games_count)
        discount = Decimal("0")
        return BookingQuote(
            rate=rate,
            trainer_fee=trainer_fee,
            subtotal=subtotal,
            discount=discount,
            total=subtotal - discount,
        )

    def _validate(self, req: BookingRequest) -> None:
        if req.schedule_type not in SCHEDULE_TYPES:
            raise ValidationError("Schedule type must be day or night", {"field": "schedule_type"})
        if req.payment_method not in PAYMENT_METHODS:
            raise ValidationError("Payment method must be cash or gcash", {"field": "payment_method"})
        if not (MIN_GAMES_PER_BOOKING <= req.games_count <= MAX_GAMES_PER_BOOKING):
            raise ValidationError(
                f"Games must be between {MIN_GAMES_PER_BOOKING} and {MAX_GAMES_PER_BOOKING}",
                {"field": "games_count"},
            )
        if req.category is not None and req.category not in BOOKING_CATEGORIES:
            raise ValidationError("Category must be single or double", {"field": "category"})
        if req.priest_count < 0:
            raise ValidationError("Priest count cannot be negative", {"field": "priest_count"})

    def create_booking(self, actor_user: User, req: BookingRequest, actor: ActorContext) -> CourtBooking:
        """
        Create a booking.

        Staff may book for any user (or a guest); everyone else books for
        themselves regardless of the submitted user_id.
        """
        self._validate(req)
        is_staff = actor_user.has_staff_access()

        booked_user = None
        if is_staff:
            if req.user_id:
                booked_user = self.db.get(User, req.user_id)
                if booked_user is None:
                    raise ValidationError("Selected user does not exist", {"field": "user_id"})
        else:
            booked_user = actor_user

        user_type = booked_user.user_type if booked_user is not None else None
        quote = self.quote(user_type, req.schedule_type, req.games_count, req.with_trainer)

        booking = CourtBooking(
            user_id=booked_user.id if booked_user is not None else None,
            staff_id=actor_user.id if is_staff else None,
            guest_name=req.guest_name if booked_user is None else None,
            schedule_type=req.schedule_type,
            category=req.category,
            booking_date=req.booking_date,
            games_count=req.games_count,
            with_trainer=bool(req.with_trainer),
            picker_selection=req.picker_selection,
            priest_count=req.priest_count,
            user_type_at_booking=user_type.value if user_type is not None else None,
            payment_method=req.payment_method,
            payment_reference=generate_booking_reference(),
            payment_status="paid" if is_staff else "pending",
            total_amount=quote.total,
            discount_applied=quote.discount,
        )
        self.db.add(booking)
        self.db.flush()

        log_activity(
            self.db,
            actor,
            "booking_create",
            f"Booking {booking.payment_reference} created for {booking.booking_date.isoformat()}",
            booking,
        )

        if booking.payment_status != "paid":
            NotificationService(self.db).notify_staff(
                NOTIFICATION_TYPE_BOOKING,
                new_booking_payload(booking.booking_date, booking.total_amount),
            )

        logger.info(
            "Court booking created",
            extra={
                "booking_id": booking.id,
                "reference": booking.payment_reference,
                "user_id": booking.user_id,
                "staff_id": booking.staff_id,
                "total_amount": str(booking.total_amount),
            },
        )
        return booking

    def get_booking(self, booking_id: str) -> CourtBooking:
        booking = self.db.get(CourtBooking, booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    def _filtered(self, search: Optional[str], status: Optional[str], on_date: Optional[date]):
        query = self.db.query(CourtBooking)
        if search:
            pattern = f"%{search}%"
            query = query.join(User, CourtBooking.user_id == User.id).filter(
                or_(User.name.ilike(pattern), User.email.ilike(pattern))
            )
        if status and status != "all":
            if status == "guest":
                query = query.filter(CourtBooking.user_id.is_(None))
            else:
                if not search:
                    query = query.join(User, CourtBooking.user_id == User.id)
                query = query.filter(User.membership_status == status)
        if on_date:
            query = query.filter(CourtBooking.booking_date == on_date)
        return query

    def list_bookings(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
        sort: str = "created_at",
        direction: str = "desc",
        page: int = 1,
        per_page: int = 10,
    ) -> Page:
        if sort not in SORTABLE_COLUMNS:
            sort = "created_at"
        column = getattr(CourtBooking, sort)
        order = column.asc() if direction == "asc" else column.desc()
        query = self._filtered(search, status, on_date).order_by(order)
        return paginate(query, page, per_page)

    def booking_totals(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> dict:
        """Cash paid, GCash paid and unpaid totals over the filtered bookings."""

        def _sum(*criteria) -> Decimal:
            query = self._filtered(search, status, on_date).filter(*criteria)
            value = query.with_entities(func.coalesce(func.sum(CourtBooking.total_amount), 0)).scalar()
            return Decimal(str(value))

        return {
            "total_cash_paid": _sum(
                CourtBooking.payment_method == "cash", CourtBooking.payment_status == "paid"
            ),
            "total_gcash_paid": _sum(
                CourtBooking.payment_method == "gcash", CourtBooking.payment_status == "paid"
            ),
            "total_unpaid": _sum(CourtBooking.payment_status != "paid"),
        }

    def my_bookings(self, user_id: str, page: int = 1, per_page: int = 12) -> Page:
        query = (
            self.db.query(CourtBooking)
            .filter(CourtBooking.user_id == user_id)
            .order_by(CourtBooking.created_at.desc())
        )
        return paginate(query, page, per_page)
