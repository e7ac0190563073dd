"""
Payment verification routes.

Staff confirm the day's cash payments. Only administrators can look at a
date other than today.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import get_actor, require_roles
from clubhouse.database.session import get_db_session
from clubhouse.models.court_booking import CourtBooking
from clubhouse.models.tournament import TournamentRegistration
from clubhouse.models.user import User
from clubhouse.platform.access import STAFF_ONLY
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.payment_verification_service import PaymentVerificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments/verify", tags=["payments"])


def _booking_item(booking: CourtBooking) -> dict:
    return {
        "id": booking.id,
        "reference": booking.payment_reference,
        "customer": booking.user.name if booking.user else (booking.guest_name or "Guest"),
        "amount": str(booking.total_amount),
        "status": booking.payment_status.capitalize(),
        "date": booking.booking_date.isoformat(),
        "details": f"Court Booking - {booking.schedule_type.capitalize()}",
        "type": "booking",
        "method": booking.payment_method.capitalize() if booking.payment_method else "-",
    }


def _registration_item(registration: TournamentRegistration) -> dict:
    fee = registration.tournament.registration_fee
    return {
        "id": registration.id,
        "reference": registration.payment_reference,
        "customer": registration.user.name if registration.user else "Unknown",
        "amount": str(registration.amount_paid if registration.amount_paid else fee),
        "expected_amount": str(fee),
        "status": registration.payment_status.capitalize(),
        "date": registration.created_at.date().isoformat(),
        "details": f"Tournament: {registration.tournament.name}",
        "type": "tournament",
        "method": registration.payment_method.capitalize() if registration.payment_method else "-",
    }


@router.get("")
async def payments_verify(
    request: Request,
    requested_date: Optional[date] = Query(None, alias="date"),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    service = PaymentVerificationService(db_session)
    on_date = service.effective_date(user, requested_date)
    return render_page(
        "Payments/Verify",
        {
            "bookings": [_booking_item(b) for b in service.unpaid_bookings(on_date)],
            "registrations": [_registration_item(r) for r in service.unpaid_registrations(on_date)],
            "filters": {"date": on_date.isoformat()},
            "isAdmin": user.is_admin(),
        },
        user=user,
        url=request.url.path,
    )


@router.post("/booking/{booking_id}/pay")
async def mark_booking_paid(
    booking_id: str,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    PaymentVerificationService(db_session).mark_booking_paid(booking_id, user, actor)
    db_session.commit()
    return action_result("Booking marked as paid.")


@router.post("/tournament/{registration_id}/pay")
async def mark_registration_paid(
    registration_id: str,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    PaymentVerificationService(db_session).mark_registration_paid(registration_id, user, actor)
    db_session.commit()
    return action_result("Registration marked as paid.")
