"""
Login and logout.

The session is a signed token stored in an HttpOnly cookie. API clients
may send the same token as a Bearer header instead.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from clubhouse.config import settings
from clubhouse.database.session import get_db_session
from clubhouse.models.user import User
from clubhouse.platform.auth_context import extract_client_ip
from clubhouse.platform.errors import AuthenticationError, LOGIN_PATH
from clubhouse.platform.security import create_session_token, verify_password
from clubhouse.platform.view_model import render_page
from clubhouse.api.dependencies.auth import get_current_user
from clubhouse.api.schemas.auth import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/")
async def root():
    return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.get(LOGIN_PATH)
async def login_page(request: Request, user: Optional[User] = Depends(get_current_user)):
    if user is not None:
        return RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    return render_page("Auth/Login", {}, user=None, url=request.url.path)


@router.post(LOGIN_PATH, response_model=LoginResponse)
async def login(
    request: Request,
    body: LoginRequest,
    db_session=Depends(get_db_session),
):
    """
    Authenticate with email and password.

    Sets the session cookie and returns the token for API clients.
    """
    email = body.email.strip().lower()
    user = db_session.query(User).filter(User.email == email).first()
    if user is None or not verify_password(user.password_hash, body.password):
        logger.warning(
            "Failed login attempt",
            extra={"email": email, "ip_address": extract_client_ip(request)},
        )
        raise AuthenticationError()

    token = create_session_token(user.id)

    logger.info("User logged in", extra={"user_id": user.id})

    response_body = LoginResponse(
        token=token,
        user_id=user.id,
        name=user.name,
        type=user.role,
        expires_in_minutes=settings.SESSION_TTL_MINUTES,
    )
    response = JSONResponse(content=response_body.model_dump())
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout")
async def logout():
    response = RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
