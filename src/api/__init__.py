"""API Routes Module"""
from .routes import include_routers, auth_router, cases_router, lawyers_router, notifications_router

__all__ = ['include_routers', 'auth_router', 'cases_router', 'lawyers_router', 'notifications_router']
