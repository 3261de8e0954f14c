"""
Test Configuration and Fixtures

Central configuration for pytest including:
- Environment and configuration isolation
- Supabase client mocks for store tests
- In-memory stores and wired services for workflow tests
- Test client setup with dependency overrides
- Authentication helpers

Usage:
    All fixtures defined here are automatically available to all tests.
    Import store doubles from tests.fixtures.store_fixtures if needed.
"""

import pytest
from unittest.mock import MagicMock, patch
import os
import sys
from datetime import timedelta

# Ensure src is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

TEST_SESSION_SECRET = "test-session-secret-key-for-hs256"


# ==================== Configuration Fixtures ====================

@pytest.fixture(autouse=True)
def isolated_env():
    """Known environment plus fresh config and dependency singletons per test."""
    env_vars = {
        'ENVIRONMENT': 'test',
        'SUPABASE_URL': 'https://test.supabase.co',
        'SUPABASE_SERVICE_KEY': 'test-service-key',
        'SESSION_SECRET': TEST_SESSION_SECRET,
    }
    from config.loader import reset_config
    from src.api.dependencies import reset_dependencies

    with patch.dict(os.environ, env_vars):
        reset_config()
        reset_dependencies()
        yield env_vars
    reset_config()
    reset_dependencies()


@pytest.fixture(autouse=True)
def fast_bcrypt():
    """Minimum bcrypt cost so hashing does not dominate test time."""
    with patch('src.utils.passwords.BCRYPT_ROUNDS', 4):
        yield


@pytest.fixture
def mock_config():
    """Create a mock AppConfig for testing.

    Returns:
        MagicMock: A mock configuration object with common attributes.
    """
    config = MagicMock()
    config.environment = "test"
    config.supabase_url = "https://test.supabase.co"
    config.supabase_service_key = "test-service-key"
    config.session_secret = TEST_SESSION_SECRET
    config.session_ttl = timedelta(days=7)
    config.lockout_max_failures = 5
    config.lockout_window = timedelta(minutes=30)
    config.login_rate_limit = "5/minute"
    return config


# ==================== Database Fixtures ====================

@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client.

    Returns:
        MagicMock: A mock Supabase client that returns one chainable mock
            for every table() call.
    """
    from tests.fixtures.supabase_fixtures import create_mock_supabase_client
    return create_mock_supabase_client()


# ==================== Store and Service Fixtures ====================

@pytest.fixture
def account_store():
    from tests.fixtures.store_fixtures import InMemoryAccountStore
    return InMemoryAccountStore()


@pytest.fixture
def notification_store():
    from tests.fixtures.store_fixtures import InMemoryNotificationStore
    return InMemoryNotificationStore()


@pytest.fixture
def case_store():
    from tests.fixtures.store_fixtures import InMemoryCaseStore
    return InMemoryCaseStore()


@pytest.fixture
def session_manager():
    from src.services.session_service import SessionManager
    return SessionManager(TEST_SESSION_SECRET, ttl=timedelta(days=7))


@pytest.fixture
def login_throttle(account_store):
    from src.services.login_throttle import LoginThrottle
    return LoginThrottle(account_store, max_failures=5, lockout_window=timedelta(minutes=30))


@pytest.fixture
def auth_service(account_store, login_throttle, session_manager):
    from src.services.auth_service import AuthService
    return AuthService(account_store, login_throttle, session_manager)


@pytest.fixture
def connection_service(notification_store, account_store):
    from src.services.connection_service import ConnectionService
    return ConnectionService(notification_store, account_store)


# ==================== HTTP Client Fixtures ====================

@pytest.fixture
def test_client(account_store, notification_store, case_store, session_manager):
    """Create a FastAPI TestClient backed by in-memory stores.

    Returns:
        TestClient: A test client for the application.
    """
    from fastapi.testclient import TestClient
    from main import app
    from src.api.auth_routes import limiter
    from src.api.dependencies import (
        get_account_store,
        get_case_store,
        get_notification_store,
        get_session_manager,
    )

    app.dependency_overrides[get_account_store] = lambda: account_store
    app.dependency_overrides[get_notification_store] = lambda: notification_store
    app.dependency_overrides[get_case_store] = lambda: case_store
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    limiter.enabled = False

    yield TestClient(app)

    app.dependency_overrides.clear()
    limiter.enabled = True
    limiter.reset()


def auth_headers_for(session_manager, account):
    """Bearer headers for a freshly issued session."""
    session = session_manager.issue(account.id, account.display_name, account.email)
    return {
        'Authorization': f'Bearer {session.token}',
        'Content-Type': 'application/json'
    }


# ==================== Data Fixtures ====================

@pytest.fixture
def lawyer_account(account_store):
    """Active lawyer 'Alice Mensah' with password 'correct-horse-1'."""
    from tests.fixtures.store_fixtures import make_account
    return account_store.add(make_account(
        account_id="lawyer-alice",
        email="alice@example.com",
        password="correct-horse-1",
        full_name="Alice Mensah",
        specialization="Corporate Law",
        bar_number="BAR-1001",
    ))


@pytest.fixture
def other_lawyer(account_store):
    """Active lawyer 'Bob Okafor' with password 'battery-staple-2'."""
    from tests.fixtures.store_fixtures import make_account
    return account_store.add(make_account(
        account_id="lawyer-bob",
        email="bob@example.com",
        password="battery-staple-2",
        full_name="Bob Okafor",
        specialization="Family Law",
        bar_number="BAR-2002",
    ))


@pytest.fixture
def alice_headers(session_manager, lawyer_account):
    return auth_headers_for(session_manager, lawyer_account)


@pytest.fixture
def bob_headers(session_manager, other_lawyer):
    return auth_headers_for(session_manager, other_lawyer)


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
