"""Administrator settings and the activity log viewer."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import require_roles
from clubhouse.api.schemas.settings import SettingsUpdateRequest
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import ADMIN_ONLY
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.activity_log_service import ActivityLogService, activity_log_row
from clubhouse.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def settings_index(
    request: Request,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    service = SettingsService(db_session)
    if service.seed_defaults():
        db_session.commit()
    return render_page(
        "Settings/Index",
        {
            "settings": [
                {"id": s.id, "key": s.key, "value": s.value, "description": s.description}
                for s in service.list_settings()
            ],
            "qrCode": service.qr_code_path(),
        },
        user=user,
        url=request.url.path,
    )


@router.post("")
async def settings_update(
    body: SettingsUpdateRequest,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    updated = SettingsService(db_session).update_many(item.model_dump() for item in body.settings)
    logger.info("Settings updated", extra={"user_id": user.id, "count": updated})
    db_session.commit()
    return action_result("Settings updated successfully!")


@router.get("/activity-logs")
async def activity_logs(
    request: Request,
    on_date: Optional[date] = Query(None, alias="date"),
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    db_session=Depends(get_db_session),
):
    service = ActivityLogService(db_session)
    logs = service.list_entries(on_date, user_id, action, search, page)
    return render_page(
        "Settings/ActivityLogs/Index",
        {
            "logs": logs.to_dict(activity_log_row),
            "filters": {
                "date": on_date.isoformat() if on_date else None,
                "user_id": user_id,
                "action": action,
                "search": search,
            },
            "actions": service.distinct_actions(),
        },
        user=user,
        url=request.url.path,
    )
