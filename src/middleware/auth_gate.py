"""
Authentication Gate

Resolves a presented bearer token to an active account for protected routes.

1. The session token is validated first; a bad token is refused without any
   store access.
2. The account is re-loaded by the token subject and must still be active.
   A session only proves identity at issuance time, so a deactivated account
   stops working immediately even though its token has not expired.

Every refusal raises the same UnauthorizedError; the reason is only logged.
"""

import logging
from typing import Optional

from src.services.session_service import SessionManager, SessionError
from src.tools.account_store import Account, AccountStore
from src.utils.exceptions import StorageFailure, UnauthorizedError
from src.utils.structured_logger import set_account_id

logger = logging.getLogger(__name__)

UNAUTHORIZED_DETAIL = "Invalid or expired session"


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header"""
    if not authorization:
        raise UnauthorizedError(UNAUTHORIZED_DETAIL)

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedError(UNAUTHORIZED_DETAIL)

    return parts[1]


class AuthGate:
    """Session validation plus the current-standing check on the account"""

    def __init__(self, session_manager: SessionManager, account_store: AccountStore):
        self.session_manager = session_manager
        self.account_store = account_store

    async def authenticate(self, token: str) -> Account:
        """
        Raises:
            UnauthorizedError: for any invalid, expired or inactive session
        """
        try:
            account_id = self.session_manager.validate(token)
        except SessionError as e:
            logger.info(f"Session rejected: {type(e).__name__}")
            raise UnauthorizedError(UNAUTHORIZED_DETAIL) from e

        try:
            account = await self.account_store.find_by_id(account_id)
        except StorageFailure as e:
            logger.error(f"Could not load account {account_id} for session check: {e}")
            raise UnauthorizedError(UNAUTHORIZED_DETAIL) from e

        if account is None:
            logger.warning(f"Session for unknown account {account_id}")
            raise UnauthorizedError(UNAUTHORIZED_DETAIL)

        if not account.is_active:
            logger.warning(f"Session for deactivated account {account_id}")
            raise UnauthorizedError(UNAUTHORIZED_DETAIL)

        set_account_id(account.id)
        return account

    async def authenticate_header(self, authorization: Optional[str]) -> Account:
        return await self.authenticate(extract_bearer_token(authorization))
