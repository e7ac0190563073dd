"""Membership routes: plans, purchase, staff management and user search."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse

from clubhouse.api.dependencies.auth import get_actor, require_roles
from clubhouse.api.schemas.memberships import MembershipPurchaseRequest, MembershipUpdateRequest
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import AUTHENTICATED, STAFF_ONLY
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.membership_service import MembershipService
from clubhouse.services.notification_service import format_display_date

logger = logging.getLogger(__name__)

router = APIRouter(tags=["memberships"])


def _user_option(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "type": user.role,
        "membership_status": user.membership_status,
        "email": user.email,
    }


@router.get("/memberships")
async def memberships_index(
    request: Request,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    db_session=Depends(get_db_session),
):
    if user.has_staff_access():
        return RedirectResponse(url="/manage-memberships", status_code=status.HTTP_303_SEE_OTHER)

    service = MembershipService(db_session)
    current = service.current_subscription(user.id)
    my_subscription = None
    if current is not None:
        my_subscription = {
            "type": current.type.capitalize(),
            "start_date": format_display_date(current.start_date),
            "end_date": format_display_date(current.end_date) if current.end_date else "Lifetime",
            "status": "Active",
        }
    return render_page(
        "Memberships/Index",
        {"fees": service.membership_fees(), "isStaff": False, "mySubscription": my_subscription},
        user=user,
        url=request.url.path,
    )


@router.get("/manage-memberships")
async def memberships_manage(
    request: Request,
    search: Optional[str] = None,
    membership_status: Optional[str] = Query(None, alias="status"),
    sort: str = "name",
    direction: str = "asc",
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    members = MembershipService(db_session).manage_list(
        search=search,
        status=membership_status,
        sort=sort,
        direction=direction,
        page=page,
    )
    return render_page(
        "Memberships/Manage",
        {
            "users": members.to_dict(lambda m: m.to_dict()),
            "filters": {
                "search": search,
                "status": membership_status,
                "sort": sort,
                "direction": direction,
            },
        },
        user=user,
        url=request.url.path,
    )


@router.get("/memberships/create")
async def memberships_create(
    request: Request,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    service = MembershipService(db_session)
    return render_page(
        "Memberships/Create",
        {
            "fees": service.membership_fees(),
            "users": [_user_option(u) for u in service.search_users()],
        },
        user=user,
        url=request.url.path,
    )


@router.post("/memberships")
async def memberships_store(
    body: MembershipPurchaseRequest,
    user: User = Depends(require_roles(*AUTHENTICATED)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    subscription = MembershipService(db_session).purchase(
        user,
        body.type,
        body.payment_method,
        actor,
        user_id=body.user_id,
    )
    db_session.commit()
    return action_result(
        "Membership upgrade successful!",
        "/dashboard",
        subscription_id=subscription.id,
    )


@router.put("/memberships/{user_id}")
async def memberships_update(
    user_id: str,
    body: MembershipUpdateRequest,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    subscription = MembershipService(db_session).update_for_user(
        user,
        user_id,
        body.type,
        body.start_date,
        body.end_date,
        actor,
    )
    db_session.commit()
    return action_result("Membership updated successfully.", subscription_id=subscription.id)


@router.get("/api/users/search")
async def users_search(
    query: Optional[str] = None,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    """Customers matching a name or email fragment, at most ten."""
    return [_user_option(u) for u in MembershipService(db_session).search_users(query)]
