"""Dashboard page for staff and members."""

import logging

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import require_roles
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import AUTHENTICATED
from clubhouse.platform.view_model import render_page
from clubhouse.services.dashboard_service import DashboardService, run_daily_expiry_check

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def dashboard(
    request: Request,
    pie_filter: str = Query("today", description="today or all"),
    player_type: str = Query("all", description="Role filter for the player list, or guest"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    service = DashboardService(db_session)

    if user.has_staff_access():
        if run_daily_expiry_check(db_session) is not None:
            db_session.commit()
        props = service.staff_dashboard(pie_filter=pie_filter, player_type=player_type, page=page)
    else:
        props = service.member_dashboard(user)

    return render_page("Dashboard", props, user=user, url=request.url.path)
