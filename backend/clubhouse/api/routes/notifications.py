"""
Notification routes.

Users only ever see and update their own notifications.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import require_roles
from clubhouse.api.schemas.notifications import (
    MarkAllReadResponse,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from clubhouse.config.settings import DEFAULT_PAGE_SIZE
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import AUTHENTICATED
from clubhouse.platform.errors import NotFoundError
from clubhouse.platform.view_model import render_page
from clubhouse.services.notification_service import NotificationService
from clubhouse.services.pagination import Page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


def _list_notifications(db_session, user: User, page: int, unread_only: bool = False) -> NotificationListResponse:
    service = NotificationService(db_session)
    notifications, total = service.get_notifications(
        user_id=user.id,
        unread_only=unread_only,
        limit=DEFAULT_PAGE_SIZE,
        offset=(page - 1) * DEFAULT_PAGE_SIZE,
    )
    result = Page(items=notifications, total=total, page=page, per_page=DEFAULT_PAGE_SIZE)
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n.to_dict()) for n in notifications],
        total=total,
        current_page=page,
        per_page=DEFAULT_PAGE_SIZE,
        last_page=result.last_page,
        unread_count=service.get_unread_count(user.id),
    )


@router.get("/notifications")
async def notifications_page(
    request: Request,
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    listing = _list_notifications(db_session, user, page)
    return render_page(
        "Notifications/Index",
        {"paginatedNotifications": listing.model_dump(mode="json")},
        user=user,
        url=request.url.path,
    )


@router.get("/api/notifications", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    unread_only: bool = Query(False, description="Only unread notifications"),
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    """List the current user's notifications, newest first."""
    return _list_notifications(db_session, user, page, unread_only)


@router.get("/api/notifications/unread/count", response_model=UnreadCountResponse)
async def get_unread_count(
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    return UnreadCountResponse(count=NotificationService(db_session).get_unread_count(user.id))


@router.post("/notifications/{notification_id}/read", response_model=MarkReadResponse)
async def mark_as_read(
    notification_id: str,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    """
    Mark a notification as read.

    Notifications of other users are reported as not found.
    """
    if not NotificationService(db_session).mark_as_read(notification_id, user.id):
        raise NotFoundError("Notification", notification_id)

    db_session.commit()
    return MarkReadResponse(success=True)


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    count = NotificationService(db_session).mark_all_as_read(user.id)
    db_session.commit()

    logger.info(
        "All notifications marked as read",
        extra={"user_id": user.id, "count": count},
    )
    return MarkAllReadResponse(marked_count=count)
