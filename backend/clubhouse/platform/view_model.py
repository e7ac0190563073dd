"""
Shared view-model for page responses.

Every page payload carries `auth.user` and `auth.permissions`, derived
fresh from the current user on each request. Both are None for guests.
"""

from typing import Any, Optional


def build_user_props(user) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "type": user.role,
        "avatar": user.avatar,
        "phone": user.phone,
    }


def build_permission_props(user) -> Optional[dict]:
    if user is None:
        return None
    return {
        "isAdmin": user.is_admin(),
        "isStaff": user.is_staff(),
        "isMember": user.is_member(),
        "isNonMember": user.is_non_member(),
        "hasAdminAccess": user.has_admin_access(),
        "hasStaffAccess": user.has_staff_access(),
        "hasMemberAccess": user.has_member_access(),
    }


def build_auth_props(user) -> dict:
    """Project the current user into the shared `auth` view-model."""
    return {
        "user": build_user_props(user),
        "permissions": build_permission_props(user),
    }


def render_page(
    component: str,
    props: Optional[dict[str, Any]] = None,
    *,
    user=None,
    url: Optional[str] = None,
    flash: Optional[dict[str, Any]] = None,
) -> dict:
    """
    Build a page payload.

    Args:
        component: Front-end page name, e.g. "Bookings/Index"
        props: Page-specific props
        user: Current user (or None)
        url: Request path the page was rendered for
        flash: One-shot messages such as {"success": "..."}

    Returns:
        {"component", "props", "url"} with shared auth merged into props
    """
    page_props = dict(props or {})
    page_props["auth"] = build_auth_props(user)
    page_props["flash"] = {"success": None, "error": None, **(flash or {})}
    return {
        "component": component,
        "props": page_props,
        "url": url,
    }


def action_result(message: str, redirect: Optional[str] = None, **extra: Any) -> dict:
    """Response for a successful mutation: a success flash and where to go next."""
    result = {"flash": {"success": message, "error": None}, "redirect": redirect}
    result.update(extra)
    return result
