"""
Per-account login throttle to prevent brute-force attacks.

Lockout state lives on the account record:
- failed_login_attempts counts consecutive failures
- locked_until blocks every attempt while it lies in the future

Locks an account for LOCKOUT_SECONDS once MAX_FAILURES consecutive failures
accumulate. The lock lifts by itself when locked_until passes; the next
successful login clears both fields.

The failure counter is written with a compare-and-swap against the value that
was read, so concurrent failures are never lost.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from src.tools.account_store import Account, AccountStore
from src.tools.supabase_tool import utc_now
from src.utils.exceptions import NotFoundError, StorageFailure
from src.utils.passwords import verify_password_async

logger = logging.getLogger(__name__)

MAX_FAILURES = 5
LOCKOUT_SECONDS = 30 * 60  # 30 minutes

# Attempts at the counter compare-and-swap before giving up
MAX_COUNTER_RETRIES = 5


class AttemptResult(str, Enum):
    SUCCESS = "success"
    REJECTED_CREDENTIAL = "rejected_credential"
    REJECTED_LOCKED = "rejected_locked"
    REJECTED_INACTIVE = "rejected_inactive"


@dataclass
class AttemptOutcome:
    """Result of one login attempt"""
    result: AttemptResult
    account: Account
    failed_attempts: int = 0
    locked_until: Optional[datetime] = None
    just_locked: bool = False

    @property
    def succeeded(self) -> bool:
        return self.result == AttemptResult.SUCCESS


class LoginThrottle:
    """Lockout state machine over the account store"""

    def __init__(
        self,
        account_store: AccountStore,
        max_failures: int = MAX_FAILURES,
        lockout_window: timedelta = timedelta(seconds=LOCKOUT_SECONDS)
    ):
        self.account_store = account_store
        self.max_failures = max_failures
        self.lockout_window = lockout_window

    async def attempt(self, account_id: str, presented_secret: str) -> AttemptOutcome:
        """
        Check a presented password against an account, honouring the lock.

        Raises:
            NotFoundError: no account has this id
            StorageFailure: the lockout state could not be persisted
        """
        account = await self.account_store.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")

        if not account.is_active:
            return AttemptOutcome(AttemptResult.REJECTED_INACTIVE, account,
                                  failed_attempts=account.failed_login_attempts)

        now = utc_now()
        if account.is_locked(now):
            # Locked accounts are refused without hashing the secret
            return AttemptOutcome(AttemptResult.REJECTED_LOCKED, account,
                                  failed_attempts=account.failed_login_attempts,
                                  locked_until=account.locked_until)

        if await verify_password_async(presented_secret, account.password_hash):
            await self.account_store.record_successful_login(account.id, now)
            account.failed_login_attempts = 0
            account.locked_until = None
            account.last_login_at = now
            return AttemptOutcome(AttemptResult.SUCCESS, account)

        return await self._record_failure(account, now)

    async def _record_failure(self, account: Account, now: datetime) -> AttemptOutcome:
        for _ in range(MAX_COUNTER_RETRIES):
            expected = account.failed_login_attempts
            failures = expected + 1
            locked_until = now + self.lockout_window if failures >= self.max_failures else None

            swapped = await self.account_store.record_failed_attempt(
                account.id, expected, failures, locked_until
            )
            if swapped:
                account.failed_login_attempts = failures
                account.locked_until = locked_until
                if locked_until is not None:
                    logger.warning(
                        f"Account {account.id} locked after {failures} failed logins "
                        f"until {locked_until.isoformat()}"
                    )
                return AttemptOutcome(
                    AttemptResult.REJECTED_CREDENTIAL,
                    account,
                    failed_attempts=failures,
                    locked_until=locked_until,
                    just_locked=locked_until is not None,
                )

            # Another request moved the counter first; re-read and re-apply
            logger.debug(f"Failed-login counter changed concurrently for {account.id}, retrying")
            reloaded = await self.account_store.find_by_id(account.id)
            if reloaded is None:
                raise NotFoundError("Account not found")
            account = reloaded

        raise StorageFailure("Could not record failed login after repeated concurrent updates")
