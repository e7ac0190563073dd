"""
Tournament routes.

Management routes are administrator only. Browsing and registration are
open to every signed-in user.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import get_actor, require_roles
from clubhouse.api.schemas.tournaments import TournamentRegisterRequest, TournamentRequest
from clubhouse.database.session import get_db_session
from clubhouse.models.tournament import Tournament, TournamentRegistration
from clubhouse.models.user import User
from clubhouse.platform.access import ADMIN_ONLY, AUTHENTICATED
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.notification_service import format_display_date
from clubhouse.services.settings_service import SettingsService
from clubhouse.services.tournament_service import TournamentData, TournamentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tournaments", tags=["tournaments"])


def _tournament_dict(tournament: Tournament, iso_dates: bool = False) -> dict:
    fmt = (lambda d: d.isoformat()) if iso_dates else format_display_date
    return {
        "id": tournament.id,
        "name": tournament.name,
        "description": tournament.description,
        "start_date": fmt(tournament.start_date),
        "end_date": fmt(tournament.end_date),
        "registration_fee": str(tournament.registration_fee),
        "max_participants": tournament.max_participants,
        "status": tournament.status,
    }


def _registration_dict(registration: TournamentRegistration) -> dict:
    return {
        "id": registration.id,
        "user_id": registration.user_id,
        "user_name": registration.user.name if registration.user else None,
        "user_email": registration.user.email if registration.user else None,
        "payment_method": registration.payment_method,
        "payment_reference": registration.payment_reference,
        "payment_status": registration.payment_status,
        "amount_paid": str(registration.amount_paid),
        "created_at": registration.created_at.strftime("%b %d, %Y %H:%M"),
    }


def _to_data(body: TournamentRequest) -> TournamentData:
    return TournamentData(
        name=body.name,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date,
        registration_fee=body.registration_fee,
        max_participants=body.max_participants,
        status=body.status,
    )


@router.get("/manage")
async def tournaments_manage(
    request: Request,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tournament_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    service = TournamentService(db_session)
    result = service.manage_list(search, date_from, date_to, tournament_status, page)

    def _row(tournament: Tournament) -> dict:
        row = _tournament_dict(tournament)
        row["registrations_count"] = service.registration_count(tournament.id)
        row["created_at"] = format_display_date(tournament.created_at.date())
        return row

    return render_page(
        "Tournaments/Manage",
        {
            "tournaments": result.to_dict(_row),
            "filters": {
                "search": search or "",
                "date_from": date_from.isoformat() if date_from else "",
                "date_to": date_to.isoformat() if date_to else "",
                "status": tournament_status or "",
            },
        },
        user=user,
        url=request.url.path,
    )


@router.get("/create")
async def tournaments_create(
    request: Request,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
):
    return render_page("Tournaments/Create", {}, user=user, url=request.url.path)


@router.post("")
async def tournaments_store(
    body: TournamentRequest,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    tournament = TournamentService(db_session).create_tournament(_to_data(body), actor)
    db_session.commit()
    return action_result(
        "Tournament created successfully!",
        "/tournaments/manage",
        tournament_id=tournament.id,
    )


@router.get("")
async def tournaments_index(
    request: Request,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    tournaments = TournamentService(db_session).list_public()
    return render_page(
        "Tournaments/Index",
        {"tournaments": [_tournament_dict(t) for t in tournaments]},
        user=user,
        url=request.url.path,
    )


@router.get("/{tournament_id}")
async def tournaments_show(
    request: Request,
    tournament_id: str,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    service = TournamentService(db_session)
    tournament = service.get_tournament(tournament_id)
    registration = service.my_registration(tournament.id, user.id)
    return render_page(
        "Tournaments/Show",
        {
            "tournament": _tournament_dict(tournament),
            "myRegistration": _registration_dict(registration) if registration else None,
            "gcashQrCode": SettingsService(db_session).qr_code_path(),
        },
        user=user,
        url=request.url.path,
    )


@router.post("/{tournament_id}/register")
async def tournaments_register(
    tournament_id: str,
    body: TournamentRegisterRequest,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    registration = TournamentService(db_session).register(tournament_id, user, body.payment_method, actor)
    db_session.commit()
    return action_result("Registered successfully!", registration=_registration_dict(registration))


@router.get("/{tournament_id}/edit")
async def tournaments_edit(
    request: Request,
    tournament_id: str,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    tournament = TournamentService(db_session).get_tournament(tournament_id)
    return render_page(
        "Tournaments/Edit",
        {"tournament": _tournament_dict(tournament, iso_dates=True)},
        user=user,
        url=request.url.path,
    )


@router.put("/{tournament_id}")
async def tournaments_update(
    tournament_id: str,
    body: TournamentRequest,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    TournamentService(db_session).update_tournament(tournament_id, _to_data(body), actor)
    db_session.commit()
    return action_result("Tournament updated successfully!", "/tournaments/manage")


@router.get("/{tournament_id}/participants")
async def tournaments_participants(
    request: Request,
    tournament_id: str,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    tournament, registrations, summary = TournamentService(db_session).participants(tournament_id)
    summary = dict(summary, total_amount=str(summary["total_amount"]))
    return render_page(
        "Tournaments/Participants",
        {
            "tournament": {
                "id": tournament.id,
                "name": tournament.name,
                "registration_fee": str(tournament.registration_fee),
            },
            "registrations": [_registration_dict(r) for r in registrations],
            "summary": summary,
        },
        user=user,
        url=request.url.path,
    )


@router.delete("/{tournament_id}/participants/{registration_id}")
async def tournaments_remove_participant(
    tournament_id: str,
    registration_id: str,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    TournamentService(db_session).remove_participant(tournament_id, registration_id, actor)
    db_session.commit()
    return action_result("Participant removed successfully!")


@router.patch("/{tournament_id}/participants/{registration_id}/pay")
async def tournaments_mark_paid(
    tournament_id: str,
    registration_id: str,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    TournamentService(db_session).mark_paid(tournament_id, registration_id)
    db_session.commit()
    return action_result("Participant marked as paid successfully!")
