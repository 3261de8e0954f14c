"""
Account Store - credential and profile records in the `accounts` table

Lockout columns (failed_login_attempts, locked_until, last_login_at) are only
written by `record_failed_attempt` and `record_successful_login`. A full-record
`save` leaves them alone so a profile edit can never overwrite a concurrent
counter update.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from config.database import SupabaseTables
from src.tools.supabase_tool import (
    SupabaseTool,
    utc_now,
    to_timestamp,
    parse_timestamp,
    is_unique_violation,
)
from src.utils.exceptions import DuplicateAccountError, StorageFailure

logger = logging.getLogger(__name__)

ROLE_LAWYER = "lawyer"
ROLE_CLIENT = "client"

# Label used wherever an account has no usable name or cannot be found
PLACEHOLDER_DISPLAY_NAME = "Lawyer"

_LOCKOUT_COLUMNS = ("failed_login_attempts", "locked_until", "last_login_at")

# Columns matched by the free-text directory search
_TEXT_SEARCH_COLUMNS = (
    "full_name",
    "specialization",
    "professional_info->>specialization",
    "professional_info->>bio",
)


def _quoted(value: str) -> str:
    """Quote a value for a PostgREST or=() list, where , . : ( ) are reserved"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class Account:
    """A registered lawyer or client"""
    id: str
    email: str
    password_hash: str
    full_name: str = ""
    role: str = ROLE_LAWYER
    specialization: str = ""
    bar_number: Optional[str] = None
    personal_info: Dict[str, Any] = field(default_factory=dict)
    professional_info: Dict[str, Any] = field(default_factory=dict)
    qualifications: List[Dict[str, Any]] = field(default_factory=list)
    experience: List[Dict[str, Any]] = field(default_factory=list)
    is_active: bool = True
    failed_login_attempts: int = 0
    locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        first = (self.personal_info or {}).get("firstName") or ""
        last = (self.personal_info or {}).get("lastName") or ""
        name = f"{first} {last}".strip()
        return name or PLACEHOLDER_DISPLAY_NAME

    @property
    def specialization_tag(self) -> str:
        return self.specialization or (self.professional_info or {}).get("specialization") or ""

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """True while locked_until lies in the future. Expiry needs no write."""
        if self.locked_until is None:
            return False
        return self.locked_until > (now or utc_now())

    @property
    def is_profile_complete(self) -> bool:
        personal = self.personal_info or {}
        professional = self.professional_info or {}
        years = professional.get("yearsOfExperience")
        return bool(
            personal.get("firstName")
            and personal.get("lastName")
            and personal.get("city")
            and professional.get("practiceAreas")
            and years is not None and years >= 0
            and self.qualifications
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Account":
        return cls(
            id=str(row["id"]),
            email=row["email"],
            password_hash=row.get("password_hash") or "",
            full_name=row.get("full_name") or "",
            role=row.get("role") or ROLE_LAWYER,
            specialization=row.get("specialization") or "",
            bar_number=row.get("bar_number"),
            personal_info=row.get("personal_info") or {},
            professional_info=row.get("professional_info") or {},
            qualifications=row.get("qualifications") or [],
            experience=row.get("experience") or [],
            is_active=bool(row.get("is_active", True)),
            failed_login_attempts=int(row.get("failed_login_attempts") or 0),
            locked_until=parse_timestamp(row.get("locked_until")),
            last_login_at=parse_timestamp(row.get("last_login_at")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_row(self, include_lockout: bool = True) -> Dict[str, Any]:
        row = {
            "id": self.id,
            "email": self.email,
            "password_hash": self.password_hash,
            "full_name": self.full_name,
            "role": self.role,
            "specialization": self.specialization,
            "bar_number": self.bar_number,
            "personal_info": self.personal_info,
            "professional_info": self.professional_info,
            "qualifications": self.qualifications,
            "experience": self.experience,
            "is_active": self.is_active,
            # Derived, stored so the directory search can filter on it
            "is_profile_complete": self.is_profile_complete,
            "failed_login_attempts": self.failed_login_attempts,
            "locked_until": to_timestamp(self.locked_until),
            "last_login_at": to_timestamp(self.last_login_at),
            "created_at": to_timestamp(self.created_at),
            "updated_at": to_timestamp(self.updated_at),
        }
        if not include_lockout:
            for column in _LOCKOUT_COLUMNS:
                row.pop(column)
        return row

    def to_public_dict(self) -> Dict[str, Any]:
        """Profile view with the credential hash and lockout state removed"""
        return {
            "id": self.id,
            "name": self.display_name,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "specialization": self.specialization_tag,
            "bar_number": self.bar_number,
            "personal_info": self.personal_info,
            "professional_info": self.professional_info,
            "qualifications": self.qualifications,
            "experience": self.experience,
            "is_active": self.is_active,
            "is_profile_complete": self.is_profile_complete,
            "last_login_at": to_timestamp(self.last_login_at),
            "created_at": to_timestamp(self.created_at),
        }


def new_account_id() -> str:
    return str(uuid.uuid4())


class AccountStore(SupabaseTool):
    """Credential store backed by the Supabase `accounts` table"""

    TABLE = SupabaseTables.ACCOUNTS

    async def _find_one(self, column: str, value: Any, description: str) -> Optional[Account]:
        result = await self._execute(
            lambda: self.table().select("*").eq(column, value).limit(1).execute(),
            description
        )
        if not result.data:
            return None
        return Account.from_row(result.data[0])

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        if not account_id:
            return None
        return await self._find_one("id", account_id, "loading account")

    async def find_by_email(self, email: str) -> Optional[Account]:
        if not email:
            return None
        return await self._find_one("email", email.strip().lower(), "looking up account by email")

    async def find_by_bar_number(self, bar_number: str) -> Optional[Account]:
        if not bar_number:
            return None
        return await self._find_one("bar_number", bar_number, "looking up account by bar number")

    async def create(self, account: Account) -> Account:
        now = utc_now()
        account.email = account.email.strip().lower()
        account.created_at = account.created_at or now
        account.updated_at = now
        row = account.to_row()

        try:
            result = await self._execute(
                lambda: self.table().insert(row).execute(),
                "creating account"
            )
        except StorageFailure as e:
            # Lost a race with another registration for the same email or bar number
            if is_unique_violation(e.__cause__):
                raise DuplicateAccountError("Email or bar number already registered") from e
            raise
        if not result.data:
            raise StorageFailure("Storage error while creating account")

        logger.info(f"Created {account.role} account {account.id}")
        return Account.from_row(result.data[0])

    async def save(self, account: Account) -> Account:
        """Write every profile and credential field of the record in one update"""
        account.updated_at = utc_now()
        row = account.to_row(include_lockout=False)
        row.pop("id")
        row.pop("created_at")

        result = await self._execute(
            lambda: self.table().update(row).eq("id", account.id).execute(),
            "saving account"
        )
        if not result.data:
            raise StorageFailure("Storage error while saving account")
        return Account.from_row(result.data[0])

    async def record_failed_attempt(
        self,
        account_id: str,
        expected_attempts: int,
        new_attempts: int,
        locked_until: Optional[datetime]
    ) -> bool:
        """
        Compare-and-swap the failed attempt counter.

        The update only applies while the stored counter still equals
        `expected_attempts`. Returns False when another request changed it
        first; the caller re-reads and retries.
        """
        updates = {
            "failed_login_attempts": new_attempts,
            "locked_until": to_timestamp(locked_until),
        }
        result = await self._execute(
            lambda: self.table()
                .update(updates)
                .eq("id", account_id)
                .eq("failed_login_attempts", expected_attempts)
                .execute(),
            "recording failed login"
        )
        return bool(result.data)

    async def record_successful_login(self, account_id: str, at: datetime) -> None:
        updates = {
            "failed_login_attempts": 0,
            "locked_until": None,
            "last_login_at": to_timestamp(at),
        }
        result = await self._execute(
            lambda: self.table().update(updates).eq("id", account_id).execute(),
            "recording successful login"
        )
        if not result.data:
            raise StorageFailure("Storage error while recording successful login")

    async def list_lawyers(self, specialization: Optional[str] = None) -> List[Account]:
        """Active lawyer accounts, newest first"""
        def _query():
            query = self.table()\
                .select("*")\
                .eq("role", ROLE_LAWYER)\
                .eq("is_active", True)\
                .order("created_at", desc=True)
            if specialization:
                value = _quoted(specialization)
                query = query.or_(
                    f"specialization.eq.{value},professional_info->>specialization.eq.{value}"
                )
            return query.execute()

        result = await self._execute(_query, "listing lawyers")
        lawyers = [Account.from_row(row) for row in (result.data or [])]
        if specialization:
            # The column wins over professional_info when both are set
            lawyers = [a for a in lawyers if a.specialization_tag == specialization]
        return lawyers

    async def search_lawyers(
        self,
        query: Optional[str] = None,
        practice_area: Optional[str] = None,
        city: Optional[str] = None,
        min_experience: Optional[int] = None,
        max_rate: Optional[float] = None,
        available_only: bool = False,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Account], int]:
        """
        Directory search over active lawyers with a complete profile.

        Args:
            query: Free text matched against name, specialization and bio
            practice_area: Must appear in professional_info.practiceAreas
            city: Case-insensitive substring of personal_info.city
            min_experience: Lower bound on professional_info.yearsOfExperience
            max_rate: Upper bound on professional_info.hourlyRate
            available_only: Only lawyers with professional_info.isAvailable set
            page: 1-based page number
            limit: Page size

        Returns:
            (lawyers on the requested page, total matching lawyers)
        """
        offset = (page - 1) * limit

        def _query():
            q = self.table()\
                .select("*", count="exact")\
                .eq("role", ROLE_LAWYER)\
                .eq("is_active", True)\
                .eq("is_profile_complete", True)

            if query and query.strip():
                pattern = _quoted(f"%{query.strip()}%")
                q = q.or_(",".join(
                    f"{column}.ilike.{pattern}" for column in _TEXT_SEARCH_COLUMNS
                ))
            if practice_area:
                q = q.contains("professional_info", {"practiceAreas": [practice_area]})
            if city:
                q = q.ilike("personal_info->>city", f"%{city}%")
            if min_experience is not None:
                q = q.gte("professional_info->yearsOfExperience", min_experience)
            if max_rate is not None:
                q = q.lte("professional_info->hourlyRate", max_rate)
            if available_only:
                q = q.contains("professional_info", {"isAvailable": True})

            return q.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()

        result = await self._execute(_query, "searching lawyers")
        lawyers = [Account.from_row(row) for row in (result.data or [])]
        total = result.count if result.count is not None else len(lawyers)
        return lawyers, total
