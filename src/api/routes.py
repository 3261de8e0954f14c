"""
API Routes

All API routers organized by domain:
- Auth (registration, login, profile)
- Lawyers (public directory and search)
- Notifications (connection requests)
- Cases (the caller's case records)
"""

import logging
from fastapi import FastAPI

from src.api.auth_routes import auth_router
from src.api.cases_routes import cases_router
from src.api.lawyers_routes import lawyers_router
from src.api.notifications_routes import notifications_router

logger = logging.getLogger(__name__)


def include_routers(app: FastAPI) -> None:
    """Include all routers in the app"""
    app.include_router(auth_router)
    app.include_router(lawyers_router)
    app.include_router(notifications_router)
    app.include_router(cases_router)
