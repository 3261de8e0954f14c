"""
Tests for the authentication gate.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from freezegun import freeze_time

from src.middleware.auth_gate import AuthGate, extract_bearer_token, UNAUTHORIZED_DETAIL
from src.services.session_service import SessionManager
from src.utils.exceptions import StorageFailure, UnauthorizedError
from src.utils.structured_logger import get_account_id, clear_account_id
from tests.fixtures.store_fixtures import make_account


@pytest.fixture
def gate(session_manager, account_store):
    return AuthGate(session_manager, account_store)


@pytest.fixture(autouse=True)
def clean_account_context():
    clear_account_id()
    yield
    clear_account_id()


class TestExtractBearerToken:

    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token("bearer tok") == "tok"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer a b"])
    def test_invalid_headers(self, header):
        with pytest.raises(UnauthorizedError):
            extract_bearer_token(header)


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_valid_session_returns_account(self, gate, session_manager, lawyer_account):
        session = session_manager.issue(lawyer_account.id, lawyer_account.display_name, lawyer_account.email)

        account = await gate.authenticate(session.token)

        assert account.id == lawyer_account.id
        assert get_account_id() == lawyer_account.id

    @pytest.mark.asyncio
    async def test_deactivated_account_rejected_with_live_token(
        self, gate, session_manager, account_store, lawyer_account
    ):
        session = session_manager.issue(lawyer_account.id, lawyer_account.display_name, lawyer_account.email)
        account_store.records[lawyer_account.id].is_active = False

        with pytest.raises(UnauthorizedError) as exc_info:
            await gate.authenticate(session.token)
        assert exc_info.value.message == UNAUTHORIZED_DETAIL

    @pytest.mark.asyncio
    async def test_deleted_account_rejected(self, gate, session_manager):
        session = session_manager.issue("ghost", "Ghost", "ghost@example.com")

        with pytest.raises(UnauthorizedError):
            await gate.authenticate(session.token)

    @pytest.mark.asyncio
    async def test_bad_token_never_touches_store(self, gate, account_store):
        with pytest.raises(UnauthorizedError):
            await gate.authenticate("garbage")
        assert account_store.find_calls == 0

    @pytest.mark.asyncio
    async def test_expired_session_rejected(self, gate, session_manager, lawyer_account):
        with freeze_time("2026-02-01 12:00:00") as frozen:
            session = session_manager.issue(lawyer_account.id, "Alice", lawyer_account.email)
            frozen.tick(timedelta(days=8))

            with pytest.raises(UnauthorizedError):
                await gate.authenticate(session.token)

    @pytest.mark.asyncio
    async def test_rotated_secret_rejected(self, account_store, lawyer_account, session_manager):
        session = session_manager.issue(lawyer_account.id, "Alice", lawyer_account.email)
        gate = AuthGate(SessionManager("rotated-secret"), account_store)

        with pytest.raises(UnauthorizedError):
            await gate.authenticate(session.token)

    @pytest.mark.asyncio
    async def test_store_failure_is_unauthorized(self, session_manager):
        store = MagicMock()
        store.find_by_id = AsyncMock(side_effect=StorageFailure("down"))
        gate = AuthGate(session_manager, store)
        session = session_manager.issue("acct-1", "Alice", "alice@example.com")

        with pytest.raises(UnauthorizedError):
            await gate.authenticate(session.token)

    @pytest.mark.asyncio
    async def test_authenticate_header(self, gate, session_manager, account_store):
        account = account_store.add(make_account(account_id="c1", email="c@example.com", role="client"))
        session = session_manager.issue(account.id, account.display_name, account.email)

        resolved = await gate.authenticate_header(f"Bearer {session.token}")

        assert resolved.id == "c1"
