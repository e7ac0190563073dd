"""
Application factory.

Run with any ASGI server, e.g. `clubhouse.main:app`.
"""

import logging

from fastapi import FastAPI

from clubhouse.api.routes import (
    auth,
    bookings,
    dashboard,
    expenses,
    health,
    memberships,
    notifications,
    payments,
    reports,
    settings,
    tournaments,
    users,
)
from clubhouse.platform.errors import register_error_handlers
from clubhouse.platform.security import check_session_secret

logger = logging.getLogger(__name__)

ROUTERS = (
    health.router,
    auth.router,
    dashboard.router,
    bookings.router,
    tournaments.router,
    memberships.router,
    payments.router,
    users.router,
    expenses.router,
    settings.router,
    reports.router,
    notifications.router,
)


def create_app() -> FastAPI:
    check_session_secret()
    app = FastAPI(title="Clubhouse", version="0.1.0")
    register_error_handlers(app)
    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()
