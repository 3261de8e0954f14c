"""
Shared FastAPI dependencies

Builds the process-wide stores and services from AppConfig on first use and
exposes the auth gate as the `get_current_account` dependency. Tests swap any
of these through `app.dependency_overrides`.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from config.loader import get_config
from src.middleware.auth_gate import AuthGate
from src.services.auth_service import AuthService
from src.services.case_service import CaseService
from src.services.connection_service import ConnectionService
from src.services.login_throttle import LoginThrottle
from src.services.session_service import SessionManager
from src.tools.account_store import Account, AccountStore
from src.tools.case_store import CaseStore
from src.tools.notification_store import NotificationStore
from src.utils.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

_account_store: Optional[AccountStore] = None
_notification_store: Optional[NotificationStore] = None
_case_store: Optional[CaseStore] = None
_session_manager: Optional[SessionManager] = None


def get_account_store() -> AccountStore:
    global _account_store
    if _account_store is None:
        _account_store = AccountStore(get_config())
    return _account_store


def get_notification_store() -> NotificationStore:
    global _notification_store
    if _notification_store is None:
        _notification_store = NotificationStore(get_config())
    return _notification_store


def get_case_store() -> CaseStore:
    global _case_store
    if _case_store is None:
        _case_store = CaseStore(get_config())
    return _case_store


def get_session_manager() -> SessionManager:
    """Session manager holding the secret loaded once from configuration"""
    global _session_manager
    if _session_manager is None:
        config = get_config()
        _session_manager = SessionManager(config.session_secret, ttl=config.session_ttl)
    return _session_manager


def reset_dependencies() -> None:
    """Drop cached stores and session manager (used by tests)"""
    global _account_store, _notification_store, _case_store, _session_manager
    _account_store = None
    _notification_store = None
    _case_store = None
    _session_manager = None


def get_login_throttle(account_store: AccountStore = Depends(get_account_store)) -> LoginThrottle:
    config = get_config()
    return LoginThrottle(
        account_store,
        max_failures=config.lockout_max_failures,
        lockout_window=config.lockout_window,
    )


def get_auth_service(
    account_store: AccountStore = Depends(get_account_store),
    login_throttle: LoginThrottle = Depends(get_login_throttle),
    session_manager: SessionManager = Depends(get_session_manager)
) -> AuthService:
    return AuthService(account_store, login_throttle, session_manager)


def get_connection_service(
    notification_store: NotificationStore = Depends(get_notification_store),
    account_store: AccountStore = Depends(get_account_store)
) -> ConnectionService:
    return ConnectionService(notification_store, account_store)


def get_case_service(case_store: CaseStore = Depends(get_case_store)) -> CaseService:
    return CaseService(case_store)


def get_auth_gate(
    session_manager: SessionManager = Depends(get_session_manager),
    account_store: AccountStore = Depends(get_account_store)
) -> AuthGate:
    return AuthGate(session_manager, account_store)


async def get_current_account(
    authorization: Optional[str] = Header(None),
    gate: AuthGate = Depends(get_auth_gate)
) -> Account:
    """
    FastAPI dependency resolving the caller's active account.

    Usage:
        @router.get("/endpoint")
        async def endpoint(account: Account = Depends(get_current_account)):
            ...
    """
    try:
        return await gate.authenticate_header(authorization)
    except UnauthorizedError as e:
        raise HTTPException(
            status_code=401,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
