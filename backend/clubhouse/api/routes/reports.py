"""
Report routes.

Each report has a page view and an /export variant taking
?format=pdf|xlsx|csv|json with the same filters.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from clubhouse.api.dependencies.auth import require_roles
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import STAFF_ONLY
from clubhouse.platform.view_model import render_page
from clubhouse.services.report_exporter import ExportedReport, parse_export_format
from clubhouse.services.report_service import BookingReportFilters, ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _download(report: ExportedReport) -> Response:
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{report.filename}"',
            "X-Record-Count": str(report.record_count),
        },
    )


def _booking_filters(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    type: Optional[str] = None,
    with_trainer: Optional[str] = None,
    payment_status: Optional[str] = None,
    schedule_type: Optional[str] = None,
    with_priest: Optional[str] = None,
    with_picker: Optional[str] = None,
) -> BookingReportFilters:
    return BookingReportFilters(
        date_from=date_from,
        date_to=date_to,
        type=type,
        with_trainer=with_trainer,
        payment_status=payment_status,
        schedule_type=schedule_type,
        with_priest=with_priest,
        with_picker=with_picker,
    )


@router.get("/bookings")
async def booking_report(
    request: Request,
    page: int = Query(1, ge=1),
    filters: BookingReportFilters = Depends(_booking_filters),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    props = ReportService(db_session).booking_report(filters, page)
    return render_page("Reports/Bookings", props, user=user, url=request.url.path)


@router.get("/bookings/export")
async def export_booking_report(
    export_format: str = Query("pdf", alias="format"),
    filters: BookingReportFilters = Depends(_booking_filters),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    fmt = parse_export_format(export_format)
    return _download(ReportService(db_session).export_booking_report(filters, fmt))


@router.get("/members")
async def member_report(
    request: Request,
    search: Optional[str] = None,
    member_type: Optional[str] = Query(None, alias="type"),
    member_status: Optional[str] = Query(None, alias="status", description="active or expired"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    props = ReportService(db_session).member_report(search, member_type, member_status, page)
    return render_page("Reports/Members", props, user=user, url=request.url.path)


@router.get("/members/export")
async def export_member_report(
    export_format: str = Query("pdf", alias="format"),
    search: Optional[str] = None,
    member_type: Optional[str] = Query(None, alias="type"),
    member_status: Optional[str] = Query(None, alias="status"),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    fmt = parse_export_format(export_format)
    report = ReportService(db_session).export_member_report(fmt, search, member_type, member_status)
    return _download(report)


@router.get("/revenue")
async def revenue_report(
    request: Request,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    service = ReportService(db_session)
    default_from, default_to = service.default_revenue_range()
    date_from = date_from or default_from
    date_to = date_to or default_to
    return render_page(
        "Reports/Revenue",
        {
            "data": service.revenue_data(date_from, date_to),
            "filters": {"date_from": date_from.isoformat(), "date_to": date_to.isoformat()},
        },
        user=user,
        url=request.url.path,
    )


@router.get("/revenue/export")
async def export_revenue_report(
    export_format: str = Query("pdf", alias="format"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    fmt = parse_export_format(export_format)
    service = ReportService(db_session)
    default_from, default_to = service.default_revenue_range()
    report = service.export_revenue_report(date_from or default_from, date_to or default_to, fmt)
    return _download(report)


@router.get("/tournaments")
async def tournament_report(
    request: Request,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tournament_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    props = ReportService(db_session).tournament_report(search, date_from, date_to, tournament_status, page)
    return render_page("Reports/Tournaments/Index", props, user=user, url=request.url.path)


@router.get("/tournaments/export")
async def export_tournament_report(
    export_format: str = Query("pdf", alias="format"),
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tournament_status: Optional[str] = Query(None, alias="status"),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    fmt = parse_export_format(export_format)
    report = ReportService(db_session).export_tournament_report(
        fmt, search, date_from, date_to, tournament_status
    )
    return _download(report)


@router.get("/tournaments/{tournament_id}/participants")
async def tournament_participants_report(
    request: Request,
    tournament_id: str,
    search: Optional[str] = None,
    payment_status: Optional[str] = None,
    payment_method: Optional[str] = None,
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    props = ReportService(db_session).tournament_participants(
        tournament_id, search, payment_status, payment_method, page
    )
    return render_page("Reports/Tournaments/Participants", props, user=user, url=request.url.path)


@router.get("/tournaments/{tournament_id}/participants/export")
async def export_tournament_participants_report(
    tournament_id: str,
    export_format: str = Query("pdf", alias="format"),
    search: Optional[str] = None,
    payment_status: Optional[str] = None,
    payment_method: Optional[str] = None,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    fmt = parse_export_format(export_format)
    report = ReportService(db_session).export_tournament_participants(
        tournament_id, fmt, search, payment_status, payment_method
    )
    return _download(report)
