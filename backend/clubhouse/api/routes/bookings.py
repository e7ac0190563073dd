"""Court booking routes: staff list, booking form, creation and my-bookings."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import get_actor, require_roles
from clubhouse.api.schemas.bookings import BookingCreateRequest
from clubhouse.config.club import DEFAULT_SETTINGS
from clubhouse.database.session import get_db_session
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.setting import Setting
from clubhouse.models.user import User
from clubhouse.platform.access import AUTHENTICATED, STAFF_ONLY
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.booking_service import BookingRequest, BookingService
from clubhouse.services.notification_service import format_display_date
from clubhouse.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


def _booking_row(booking: CourtBooking) -> dict:
    return {
        "id": booking.id,
        "user_name": booking.user.name if booking.user else (booking.guest_name or "Guest"),
        "user_email": booking.user.email if booking.user else "-",
        "membership_status": booking.user.membership_status if booking.user else "guest",
        "schedule_type": booking.schedule_type,
        "booking_date": format_display_date(booking.booking_date),
        "booking_date_raw": booking.booking_date.isoformat(),
        "games_count": booking.games_count,
        "with_trainer": booking.with_trainer,
        "payment_method": booking.payment_method,
        "payment_reference": booking.payment_reference,
        "payment_status": booking.payment_status,
        "total_amount": str(booking.total_amount),
        "discount_applied": str(booking.discount_applied),
        "staff_name": booking.staff.name if booking.staff else None,
        "created_at": booking.created_at.strftime("%b %d, %Y %H:%M"),
    }


def _my_booking_row(booking: CourtBooking) -> dict:
    row = _booking_row(booking)
    row["booking_date_full"] = booking.booking_date.strftime("%A, %B %d, %Y")
    return row


@router.get("/bookings")
async def bookings_index(
    request: Request,
    search: Optional[str] = None,
    status: Optional[str] = Query(None, description="member, non-member, guest or all"),
    on_date: Optional[date] = Query(None, alias="date"),
    sort: str = "created_at",
    direction: str = "desc",
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    service = BookingService(db_session)
    bookings = service.list_bookings(search, status, on_date, sort, direction, page)
    totals = service.booking_totals(search, status, on_date)
    return render_page(
        "Bookings/Index",
        {
            "bookings": bookings.to_dict(_booking_row),
            "filters": {
                "search": search,
                "status": status,
                "date": on_date.isoformat() if on_date else None,
            },
            "sort": {"column": sort, "direction": direction},
            "stats": {key: str(value) for key, value in totals.items()},
        },
        user=user,
        url=request.url.path,
    )


@router.get("/bookings/create")
async def bookings_create(
    request: Request,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    settings = {key: value for key, value, _ in DEFAULT_SETTINGS}
    settings.update(Setting.as_mapping(db_session))
    users = []
    if user.has_staff_access():
        users = [
            {
                "id": u.id,
                "name": u.name,
                "type": u.role,
                "membership_status": u.membership_status,
                "player_level": u.player_level,
            }
            for u in db_session.query(User).order_by(User.name).all()
        ]
    return render_page(
        "Bookings/Create",
        {
            "settings": settings,
            "users": users,
            "isStaff": user.has_staff_access(),
        },
        user=user,
        url=request.url.path,
    )


@router.post("/bookings")
async def bookings_store(
    body: BookingCreateRequest,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    """
    Create a booking.

    Staff bookings are recorded as paid; self-service bookings wait for
    payment verification.
    """
    booking = BookingService(db_session).create_booking(
        user,
        BookingRequest(
            schedule_type=body.schedule_type,
            booking_date=body.booking_date,
            games_count=body.games_count,
            payment_method=body.payment_method,
            with_trainer=body.with_trainer,
            user_id=body.user_id,
            guest_name=body.guest_name,
            category=body.category,
            priest_count=body.priest_count,
            picker_selection=body.picker_selection,
        ),
        actor,
    )
    db_session.commit()

    if user.has_staff_access():
        return action_result(
            "Booking created successfully!",
            "/dashboard",
            booking=_booking_row(booking),
        )
    return action_result(
        "Booking created! Please complete payment.",
        "/my-bookings",
        booking=_booking_row(booking),
    )


@router.get("/my-bookings")
async def my_bookings(
    request: Request,
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    bookings = BookingService(db_session).my_bookings(user.id, page)
    return render_page(
        "Bookings/MyBookings",
        {
            "bookings": bookings.to_dict(_my_booking_row),
            "gcashQrCode": SettingsService(db_session).qr_code_path(),
        },
        user=user,
        url=request.url.path,
    )
