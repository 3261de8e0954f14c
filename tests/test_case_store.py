"""
Tests for the Supabase-backed CaseStore.
"""

import pytest
from datetime import datetime, timezone

from src.tools.case_store import Case, CaseStore
from src.utils.exceptions import StorageFailure
from tests.fixtures.supabase_fixtures import set_result


def case_row(**overrides):
    row = {
        "id": "case-1",
        "owner_account_id": "lawyer-alice",
        "title": "Mensah v. Accra Holdings",
        "client": "Kwame Asante",
        "opposing_party": "Accra Holdings",
        "lawyer": "Alice Mensah",
        "court": "High Court",
        "judge": "",
        "jurisdiction": "Greater Accra",
        "filing_date": "2026-02-01",
        "next_hearing_date": None,
        "current_stage": 2,
        "completed_stages": [0, 1],
        "stage_history": [{"stageId": 0, "completedDate": "2026-02-10", "actualDuration": 9}],
        "last_update_date": "2026-02-20",
        "created_at": "2026-02-01T09:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def table(mock_supabase_client):
    return mock_supabase_client.table.return_value


@pytest.fixture
def store(mock_config, mock_supabase_client):
    return CaseStore(mock_config, client=mock_supabase_client)


class TestCaseRecord:

    def test_from_row(self):
        case = Case.from_row(case_row())

        assert case.current_stage == 2
        assert case.completed_stages == [0, 1]
        assert case.created_at == datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)

    def test_missing_optional_columns(self):
        case = Case.from_row({"id": "c", "owner_account_id": "a", "title": "T"})

        assert case.court == ""
        assert case.stage_history == []
        assert case.filing_date is None


class TestCaseQueries:

    @pytest.mark.asyncio
    async def test_create_inserts_row(self, store, table, mock_supabase_client):
        set_result(table, [case_row()])

        created = await store.create(Case.from_row(case_row()))

        mock_supabase_client.table.assert_called_with("cases")
        inserted = table.insert.call_args[0][0]
        assert inserted["owner_account_id"] == "lawyer-alice"
        assert inserted["created_at"] == "2026-02-01T09:00:00+00:00"
        assert created.title == "Mensah v. Accra Holdings"

    @pytest.mark.asyncio
    async def test_create_without_returned_row_fails(self, store, table):
        set_result(table, [])

        with pytest.raises(StorageFailure):
            await store.create(Case.from_row(case_row()))

    @pytest.mark.asyncio
    async def test_list_for_owner(self, store, table):
        set_result(table, [case_row(), case_row(id="case-0")])

        cases = await store.list_for_owner("lawyer-alice")

        table.eq.assert_called_once_with("owner_account_id", "lawyer-alice")
        table.order.assert_called_once_with("created_at", desc=True)
        assert [c.id for c in cases] == ["case-1", "case-0"]

    @pytest.mark.asyncio
    async def test_list_for_blank_owner_skips_query(self, store, mock_supabase_client):
        assert await store.list_for_owner("") == []
        mock_supabase_client.table.assert_not_called()
