"""
Notification Store - connection requests and reminders in the `notifications` table

Records are append-only history. The only mutation after creation is the
single pending -> accepted/rejected status write, performed as a conditional
update so two concurrent responses cannot both succeed.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional, Sequence

from config.database import SupabaseTables
from src.tools.supabase_tool import (
    SupabaseTool,
    utc_now,
    to_timestamp,
    parse_timestamp,
)
from src.utils.exceptions import StorageFailure

logger = logging.getLogger(__name__)

KIND_CONNECTION_REQUEST = "connection_request"
KIND_REMINDER = "reminder"
NOTIFICATION_KINDS = (KIND_CONNECTION_REQUEST, KIND_REMINDER)

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
NOTIFICATION_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_REJECTED)


@dataclass
class Notification:
    """A connection request, response receipt or reminder"""
    id: str
    to_account_id: str
    message: str
    from_account_id: Optional[str] = None
    from_display_name: Optional[str] = None
    kind: str = KIND_CONNECTION_REQUEST
    status: str = STATUS_PENDING
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Notification":
        from_account_id = row.get("from_account_id")
        return cls(
            id=str(row["id"]),
            to_account_id=str(row["to_account_id"]),
            message=row.get("message") or "",
            from_account_id=str(from_account_id) if from_account_id else None,
            from_display_name=row.get("from_display_name"),
            kind=row.get("kind") or KIND_CONNECTION_REQUEST,
            status=row.get("status") or STATUS_PENDING,
            created_at=parse_timestamp(row.get("created_at")) or utc_now(),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "from_display_name": self.from_display_name,
            "kind": self.kind,
            "status": self.status,
            "message": self.message,
            "created_at": to_timestamp(self.created_at),
        }

    def to_dict(self) -> Dict[str, Any]:
        return self.to_row()


def new_notification_id() -> str:
    return str(uuid.uuid4())


class NotificationStore(SupabaseTool):
    """Notification store backed by the Supabase `notifications` table"""

    TABLE = SupabaseTables.NOTIFICATIONS

    async def find_by_id(self, notification_id: str) -> Optional[Notification]:
        if not notification_id:
            return None
        result = await self._execute(
            lambda: self.table().select("*").eq("id", notification_id).limit(1).execute(),
            "loading notification"
        )
        if not result.data:
            return None
        return Notification.from_row(result.data[0])

    async def find(
        self,
        to_account_id: Optional[str] = None,
        involving: Optional[str] = None,
        kinds: Optional[Sequence[str]] = None,
        status: Optional[str] = None,
        newest_first: bool = True
    ) -> List[Notification]:
        """
        Query notifications by filter.

        Args:
            to_account_id: Only notifications addressed to this account
            involving: Only notifications where this account is sender or addressee
            kinds: Restrict to these kinds
            status: Restrict to this status
            newest_first: Order by created_at descending (ascending otherwise)
        """
        def _query():
            query = self.table().select("*")
            if to_account_id:
                query = query.eq("to_account_id", to_account_id)
            if involving:
                query = query.or_(f"from_account_id.eq.{involving},to_account_id.eq.{involving}")
            if kinds:
                query = query.in_("kind", list(kinds))
            if status:
                query = query.eq("status", status)
            return query.order("created_at", desc=newest_first).execute()

        result = await self._execute(_query, "querying notifications")
        return [Notification.from_row(row) for row in (result.data or [])]

    async def create(self, notification: Notification) -> Notification:
        row = notification.to_row()
        result = await self._execute(
            lambda: self.table().insert(row).execute(),
            "creating notification"
        )
        if not result.data:
            raise StorageFailure("Storage error while creating notification")
        return Notification.from_row(result.data[0])

    async def save(self, notification: Notification) -> Notification:
        """Write the full record. Resolved history should go through update_status."""
        row = notification.to_row()
        row.pop("id")
        result = await self._execute(
            lambda: self.table().update(row).eq("id", notification.id).execute(),
            "saving notification"
        )
        if not result.data:
            raise StorageFailure("Storage error while saving notification")
        return Notification.from_row(result.data[0])

    async def update_status(self, notification_id: str, expected_status: str, new_status: str) -> bool:
        """
        Conditionally move a notification from expected_status to new_status.

        Returns False when the stored status no longer matches.
        """
        result = await self._execute(
            lambda: self.table()
                .update({"status": new_status})
                .eq("id", notification_id)
                .eq("status", expected_status)
                .execute(),
            "updating notification status"
        )
        return bool(result.data)
