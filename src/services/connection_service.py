"""
Connection Service - connection requests between accounts

A connection request is a notification addressed to the recipient. The
recipient accepts or rejects it exactly once; the response also appends a
second, already-resolved notification back to the sender as a receipt.

There is no connections table. Connections are derived by scanning accepted
notifications, so the write path stays append-only. Because both the original
request and its receipt are accepted, one exchange normally shows up twice in
`connections_for`; callers that need a unique peer list deduplicate it.

The sender's display name is copied onto the request when it is created and
is never refreshed afterwards.
"""

import logging
from typing import Dict, List, Optional

from src.tools.account_store import AccountStore, PLACEHOLDER_DISPLAY_NAME
from src.tools.notification_store import (
    Notification,
    NotificationStore,
    new_notification_id,
    KIND_CONNECTION_REQUEST,
    KIND_REMINDER,
    STATUS_PENDING,
    STATUS_ACCEPTED,
    STATUS_REJECTED,
    NOTIFICATION_STATUSES,
)
from src.tools.supabase_tool import utc_now
from src.utils.exceptions import (
    NotFoundError,
    InvalidTransitionError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

RESPONSE_DECISIONS = (STATUS_ACCEPTED, STATUS_REJECTED)
CONNECTION_KINDS = (KIND_CONNECTION_REQUEST, KIND_REMINDER)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class ConnectionService:
    """Connection request workflow over the notification and account stores"""

    def __init__(self, notification_store: NotificationStore, account_store: AccountStore):
        self.notification_store = notification_store
        self.account_store = account_store

    async def _display_name_for(self, account_id: Optional[str]) -> str:
        if not account_id:
            return PLACEHOLDER_DISPLAY_NAME
        account = await self.account_store.find_by_id(account_id)
        return account.display_name if account else PLACEHOLDER_DISPLAY_NAME

    async def send_request(self, from_id: str, to_id: str, message: str) -> Notification:
        """
        Create a pending connection request from one account to another.

        Repeated requests to the same recipient are allowed.

        Raises:
            ValidationFailedError: from_id, to_id or message missing or blank
        """
        if _is_blank(from_id) or _is_blank(to_id) or _is_blank(message):
            raise ValidationFailedError("Missing required fields")

        notification = Notification(
            id=new_notification_id(),
            from_account_id=from_id,
            to_account_id=to_id,
            from_display_name=await self._display_name_for(from_id),
            message=message,
            kind=KIND_CONNECTION_REQUEST,
            status=STATUS_PENDING,
            created_at=utc_now(),
        )
        created = await self.notification_store.create(notification)
        logger.info(f"Connection request {created.id} sent from {from_id} to {to_id}")
        return created

    async def create_reminder(self, to_id: str, message: str, status: str = STATUS_PENDING) -> Notification:
        """Create a system reminder with no originating account"""
        if _is_blank(to_id) or _is_blank(message):
            raise ValidationFailedError("Missing required fields")
        if status not in NOTIFICATION_STATUSES:
            raise ValidationFailedError(f"Invalid status: {status}")

        notification = Notification(
            id=new_notification_id(),
            to_account_id=to_id,
            message=message,
            kind=KIND_REMINDER,
            status=status,
            created_at=utc_now(),
        )
        return await self.notification_store.create(notification)

    async def list_for(self, account_id: Optional[str]) -> List[Notification]:
        """All notifications addressed to an account, newest first"""
        if _is_blank(account_id):
            return []
        return await self.notification_store.find(to_account_id=account_id, newest_first=True)

    async def pending_count_for(self, account_id: Optional[str]) -> int:
        if _is_blank(account_id):
            return 0
        pending = await self.notification_store.find(to_account_id=account_id, status=STATUS_PENDING)
        return len(pending)

    async def respond(
        self,
        notification_id: str,
        decision: str,
        responder_id: Optional[str] = None
    ) -> None:
        """
        Accept or reject a pending notification and send a receipt to its sender.

        Args:
            notification_id: Notification being answered
            decision: "accepted" or "rejected"
            responder_id: When given, must be the notification's addressee

        Raises:
            ValidationFailedError: decision is not accepted/rejected
            NotFoundError: no such notification (or not addressed to responder_id)
            InvalidTransitionError: the notification is already resolved
        """
        if decision not in RESPONSE_DECISIONS:
            raise ValidationFailedError("Invalid request")
        if _is_blank(notification_id):
            raise ValidationFailedError("Invalid request")

        notification = await self.notification_store.find_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        if responder_id is not None and notification.to_account_id != responder_id:
            raise NotFoundError("Notification not found")
        if not notification.is_pending:
            raise InvalidTransitionError(f"Notification already {notification.status}")

        updated = await self.notification_store.update_status(notification.id, STATUS_PENDING, decision)
        if not updated:
            # Resolved by a concurrent response between the read and the write
            raise InvalidTransitionError("Notification already resolved")

        logger.info(f"Notification {notification.id} {decision} by {notification.to_account_id}")

        if not notification.from_account_id:
            logger.info(f"Notification {notification.id} has no sender; no receipt created")
            return

        responder_name = await self._display_name_for(notification.to_account_id)
        receipt = Notification(
            id=new_notification_id(),
            from_account_id=notification.to_account_id,
            to_account_id=notification.from_account_id,
            from_display_name=responder_name,
            message=f"Your connection request was {decision} by {responder_name}.",
            kind=KIND_CONNECTION_REQUEST,
            status=decision,
            created_at=utc_now(),
        )
        await self.notification_store.create(receipt)

    async def connections_for(self, account_id: Optional[str]) -> List[Dict[str, str]]:
        """
        Accepted connections of an account as {name, specialization} entries.

        One entry per accepted notification; not deduplicated.
        """
        if _is_blank(account_id):
            return []

        accepted = await self.notification_store.find(
            involving=account_id,
            kinds=CONNECTION_KINDS,
            status=STATUS_ACCEPTED,
        )

        connections = []
        for notification in accepted:
            if notification.from_account_id == account_id:
                other_id = notification.to_account_id
            else:
                other_id = notification.from_account_id

            other = await self.account_store.find_by_id(other_id) if other_id else None
            connections.append({
                "name": other.display_name if other else PLACEHOLDER_DISPLAY_NAME,
                "specialization": other.specialization_tag if other else "",
            })
        return connections
