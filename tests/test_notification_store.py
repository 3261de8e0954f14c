"""
Tests for the Supabase-backed NotificationStore.
"""

import pytest
from datetime import datetime, timezone

from src.tools.notification_store import (
    Notification,
    NotificationStore,
    KIND_CONNECTION_REQUEST,
    KIND_REMINDER,
    STATUS_ACCEPTED,
    STATUS_PENDING,
)
from src.utils.exceptions import StorageFailure
from tests.fixtures.supabase_fixtures import set_result


def notification_row(**overrides):
    row = {
        "id": "n-1",
        "from_account_id": "lawyer-alice",
        "to_account_id": "lawyer-bob",
        "from_display_name": "Alice Mensah",
        "kind": KIND_CONNECTION_REQUEST,
        "status": STATUS_PENDING,
        "message": "Let's collaborate",
        "created_at": "2026-03-01T09:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def table(mock_supabase_client):
    return mock_supabase_client.table.return_value


@pytest.fixture
def store(mock_config, mock_supabase_client):
    return NotificationStore(mock_config, client=mock_supabase_client)


class TestNotificationRecord:

    def test_from_row(self):
        notification = Notification.from_row(notification_row())

        assert notification.is_pending
        assert notification.created_at == datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def test_reminder_has_no_sender(self):
        notification = Notification.from_row(notification_row(
            from_account_id=None, from_display_name=None, kind=KIND_REMINDER
        ))

        assert notification.from_account_id is None
        assert notification.to_dict()["from_account_id"] is None


class TestFind:

    @pytest.mark.asyncio
    async def test_find_by_recipient_newest_first(self, store, table, mock_supabase_client):
        set_result(table, [notification_row()])

        results = await store.find(to_account_id="lawyer-bob")

        mock_supabase_client.table.assert_called_with("notifications")
        table.eq.assert_called_once_with("to_account_id", "lawyer-bob")
        table.order.assert_called_once_with("created_at", desc=True)
        assert [n.id for n in results] == ["n-1"]

    @pytest.mark.asyncio
    async def test_find_involving_accepted_connections(self, store, table):
        set_result(table, [])

        await store.find(
            involving="lawyer-alice",
            kinds=(KIND_CONNECTION_REQUEST, KIND_REMINDER),
            status=STATUS_ACCEPTED,
            newest_first=False,
        )

        table.or_.assert_called_once_with(
            "from_account_id.eq.lawyer-alice,to_account_id.eq.lawyer-alice"
        )
        table.in_.assert_called_once_with("kind", [KIND_CONNECTION_REQUEST, KIND_REMINDER])
        table.eq.assert_called_once_with("status", STATUS_ACCEPTED)
        table.order.assert_called_once_with("created_at", desc=False)

    @pytest.mark.asyncio
    async def test_find_by_id(self, store, table):
        set_result(table, [notification_row()])

        notification = await store.find_by_id("n-1")

        assert notification.from_display_name == "Alice Mensah"

    @pytest.mark.asyncio
    async def test_storage_error(self, store, table):
        table.execute.side_effect = ConnectionError("timeout")

        with pytest.raises(StorageFailure):
            await store.find(to_account_id="lawyer-bob")


class TestWrites:

    @pytest.mark.asyncio
    async def test_create_inserts_row(self, store, table):
        set_result(table, [notification_row()])
        notification = Notification.from_row(notification_row())

        created = await store.create(notification)

        inserted = table.insert.call_args[0][0]
        assert inserted["status"] == STATUS_PENDING
        assert inserted["created_at"] == "2026-03-01T09:00:00+00:00"
        assert created.id == "n-1"

    @pytest.mark.asyncio
    async def test_update_status_guards_on_expected(self, store, table):
        set_result(table, [notification_row(status=STATUS_ACCEPTED)])

        assert await store.update_status("n-1", STATUS_PENDING, STATUS_ACCEPTED) is True

        table.update.assert_called_once_with({"status": STATUS_ACCEPTED})
        table.eq.assert_any_call("id", "n-1")
        table.eq.assert_any_call("status", STATUS_PENDING)

    @pytest.mark.asyncio
    async def test_update_status_no_match(self, store, table):
        set_result(table, [])
        assert await store.update_status("n-1", STATUS_PENDING, STATUS_ACCEPTED) is False

    @pytest.mark.asyncio
    async def test_save_writes_full_record(self, store, table):
        set_result(table, [notification_row(message="edited")])
        notification = Notification.from_row(notification_row(message="edited"))

        saved = await store.save(notification)

        updates = table.update.call_args[0][0]
        assert "id" not in updates
        assert updates["message"] == "edited"
        assert saved.message == "edited"
