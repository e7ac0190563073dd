"""
User administration routes.

Staff can open the list and change a user's type between non-member and
student; everything else is reserved for administrators.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.api.dependencies.auth import get_actor, require_roles
from clubhouse.api.schemas.users import PasswordChangeRequest, UserCreateRequest, UserUpdateRequest
from clubhouse.constants.roles import UserType
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.access import ADMIN_ONLY, STAFF_ONLY
from clubhouse.platform.auth_context import ActorContext
from clubhouse.platform.view_model import action_result, render_page
from clubhouse.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def users_index(
    request: Request,
    search: Optional[str] = None,
    sort_field: str = "created_at",
    sort_direction: str = "desc",
    page: int = Query(1, ge=1),
    user: User = Depends(require_roles(*STAFF_ONLY)),
    db_session=Depends(get_db_session),
):
    service = UserService(db_session)
    users = service.list_users(search, sort_field, sort_direction, page)
    return render_page(
        "Users/Index",
        {
            "users": users.to_dict(lambda row: row.to_dict()),
            "stats": service.stats(),
            "filters": {
                "search": search,
                "sort_field": sort_field,
                "sort_direction": sort_direction,
            },
            "userTypes": [{"value": t.value, "label": t.label} for t in UserType],
        },
        user=user,
        url=request.url.path,
    )


@router.post("")
async def users_store(
    body: UserCreateRequest,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    created = UserService(db_session).create_user(
        user,
        body.name,
        body.email,
        body.password,
        body.type,
        actor,
        phone=body.phone,
        password_confirmation=body.password_confirmation,
    )
    db_session.commit()
    return action_result("User created successfully.", user_id=created.id)


@router.put("/{user_id}")
async def users_update(
    user_id: str,
    body: UserUpdateRequest,
    user: User = Depends(require_roles(*STAFF_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    UserService(db_session).update_user(
        user,
        user_id,
        actor,
        body.type,
        name=body.name,
        email=body.email,
        phone=body.phone,
    )
    db_session.commit()
    return action_result("User updated successfully.")


@router.delete("/{user_id}")
async def users_destroy(
    user_id: str,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    UserService(db_session).delete_user(user, user_id, actor)
    db_session.commit()
    return action_result("User deleted successfully.")


@router.put("/{user_id}/password")
async def users_change_password(
    user_id: str,
    body: PasswordChangeRequest,
    user: User = Depends(require_roles(*ADMIN_ONLY)),
    actor: ActorContext = Depends(get_actor),
    db_session=Depends(get_db_session),
):
    UserService(db_session).change_password(
        user,
        user_id,
        body.password,
        actor,
        password_confirmation=body.password_confirmation,
    )
    db_session.commit()
    return action_result("User password updated successfully.")
