"""
Authentication Service - account registration, login and profile management

Login runs the presented password through the LoginThrottle lockout state
machine and issues a session on success. Every failure that could reveal
whether an email is registered collapses into the same "Invalid email or
password" error.
"""

import logging
from typing import Optional, Dict, Any, List, Tuple

from src.services.login_throttle import LoginThrottle, AttemptResult
from src.services.session_service import SessionManager, SessionAssertion
from src.tools.account_store import (
    Account,
    AccountStore,
    new_account_id,
    ROLE_LAWYER,
    ROLE_CLIENT,
)
from src.utils.exceptions import (
    AccountLockedError,
    DuplicateAccountError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from src.utils.passwords import (
    hash_password_async,
    verify_password_async,
    MIN_PASSWORD_LENGTH,
    MAX_PASSWORD_BYTES,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
LOCKED_MESSAGE = "Account is temporarily locked due to too many failed login attempts"

# Directory search paging
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50

# Profile fields a user may change through update_profile
PROFILE_FIELDS = {
    "full_name",
    "specialization",
    "personal_info",
    "professional_info",
    "qualifications",
    "experience",
}


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationFailedError("All fields are required")


def _check_new_password(password: str, confirm_password: Optional[str]) -> None:
    if confirm_password is not None and password != confirm_password:
        raise ValidationFailedError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValidationFailedError("Password is too long")


class AuthService:
    """Account lifecycle on top of the store, lockout machine and session manager"""

    def __init__(
        self,
        account_store: AccountStore,
        login_throttle: LoginThrottle,
        session_manager: SessionManager
    ):
        self.account_store = account_store
        self.login_throttle = login_throttle
        self.session_manager = session_manager

    def issue_session(self, account: Account) -> SessionAssertion:
        return self.session_manager.issue(account.id, account.display_name, account.email)

    # ==================== Registration ====================

    async def register_lawyer(
        self,
        full_name: str,
        email: str,
        password: str,
        confirm_password: str,
        bar_number: str,
        specialization: str
    ) -> Tuple[Account, SessionAssertion]:
        """
        Register a lawyer account and sign it in.

        Raises:
            ValidationFailedError: missing fields, mismatched or short password
            DuplicateAccountError: email or bar number already registered
        """
        _require(
            full_name=full_name,
            email=email,
            password=password,
            confirm_password=confirm_password,
            bar_number=bar_number,
            specialization=specialization,
        )
        _check_new_password(password, confirm_password)

        if await self.account_store.find_by_email(email):
            raise DuplicateAccountError("Email already registered")
        if await self.account_store.find_by_bar_number(bar_number.strip()):
            raise DuplicateAccountError("Bar number already registered")

        account = await self.account_store.create(Account(
            id=new_account_id(),
            email=email,
            password_hash=await hash_password_async(password),
            full_name=full_name.strip(),
            role=ROLE_LAWYER,
            specialization=specialization.strip(),
            bar_number=bar_number.strip(),
        ))
        return account, self.issue_session(account)

    async def register_client(self, full_name: str, email: str, password: str) -> Tuple[Account, SessionAssertion]:
        """Register a client account and sign it in"""
        _require(full_name=full_name, email=email, password=password)
        _check_new_password(password, None)

        if await self.account_store.find_by_email(email):
            raise DuplicateAccountError("Email already registered")

        account = await self.account_store.create(Account(
            id=new_account_id(),
            email=email,
            password_hash=await hash_password_async(password),
            full_name=full_name.strip(),
            role=ROLE_CLIENT,
        ))
        return account, self.issue_session(account)

    # ==================== Login ====================

    async def login(self, email: str, password: str) -> Tuple[Account, SessionAssertion]:
        """
        Authenticate with email and password.

        Raises:
            ValidationFailedError: email or password missing
            UnauthorizedError: unknown email, wrong password or deactivated account
            AccountLockedError: account locked, including by this attempt
        """
        if not email or not password:
            raise ValidationFailedError("Email and password are required")

        account = await self.account_store.find_by_email(email)
        if account is None:
            raise UnauthorizedError(INVALID_CREDENTIALS)

        try:
            outcome = await self.login_throttle.attempt(account.id, password)
        except NotFoundError:
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if outcome.result == AttemptResult.REJECTED_INACTIVE:
            # Answered like a bad password so the email is not confirmed as registered
            logger.warning(f"Login attempt for deactivated account {account.id}")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if outcome.result == AttemptResult.REJECTED_LOCKED or outcome.just_locked:
            raise AccountLockedError(LOCKED_MESSAGE, locked_until=outcome.locked_until)
        if outcome.result == AttemptResult.REJECTED_CREDENTIAL:
            raise UnauthorizedError(INVALID_CREDENTIALS)

        logger.info(f"Account {outcome.account.id} logged in")
        return outcome.account, self.issue_session(outcome.account)

    # ==================== Profile ====================

    async def _load(self, account_id: str) -> Account:
        account = await self.account_store.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    async def update_profile(self, account_id: str, updates: Dict[str, Any]) -> Account:
        """Apply the allowed, non-empty profile fields and save"""
        account = await self._load(account_id)

        safe_updates = {k: v for k, v in updates.items() if k in PROFILE_FIELDS and v is not None}
        if "full_name" in safe_updates and not str(safe_updates["full_name"]).strip():
            safe_updates.pop("full_name")
        if "specialization" in safe_updates and not str(safe_updates["specialization"]).strip():
            safe_updates.pop("specialization")

        for key, value in safe_updates.items():
            setattr(account, key, value.strip() if isinstance(value, str) else value)

        return await self.account_store.save(account)

    async def change_password(
        self,
        account_id: str,
        current_password: str,
        new_password: str,
        confirm_password: str
    ) -> None:
        """
        Raises:
            ValidationFailedError: missing fields, mismatch, short or wrong current password
        """
        if not current_password or not new_password or not confirm_password:
            raise ValidationFailedError("All password fields are required")
        if new_password != confirm_password:
            raise ValidationFailedError("New passwords do not match")
        _check_new_password(new_password, None)

        account = await self._load(account_id)
        if not await verify_password_async(current_password, account.password_hash):
            raise ValidationFailedError("Current password is incorrect")

        account.password_hash = await hash_password_async(new_password)
        await self.account_store.save(account)
        logger.info(f"Password changed for account {account_id}")

    async def deactivate(self, account_id: str) -> Account:
        """Flip the active flag off. Outstanding sessions stop working at the gate."""
        account = await self._load(account_id)
        account.is_active = False
        saved = await self.account_store.save(account)
        logger.info(f"Account {account_id} deactivated")
        return saved

    # ==================== Directory ====================

    async def list_lawyers(self, specialization: Optional[str] = None) -> List[Account]:
        return await self.account_store.list_lawyers(specialization=specialization)

    async def get_lawyer(self, account_id: str) -> Account:
        account = await self.account_store.find_by_id(account_id)
        if account is None or account.role != ROLE_LAWYER or not account.is_active:
            raise NotFoundError("Lawyer not found")
        return account

    async def search_lawyers(
        self,
        query: Optional[str] = None,
        practice_area: Optional[str] = None,
        city: Optional[str] = None,
        min_experience: Optional[int] = None,
        max_rate: Optional[float] = None,
        available_only: bool = False,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> Tuple[List[Account], int]:
        """
        Search lawyers with a complete profile. Returns (page of lawyers, total).

        Raises:
            ValidationFailedError: page below 1 or page size out of range
        """
        if page < 1:
            raise ValidationFailedError("Page must be 1 or greater")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationFailedError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        return await self.account_store.search_lawyers(
            query=(query or "").strip() or None,
            practice_area=(practice_area or "").strip() or None,
            city=(city or "").strip() or None,
            min_experience=min_experience,
            max_rate=max_rate,
            available_only=available_only,
            page=page,
            limit=limit,
        )
