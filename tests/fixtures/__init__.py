"""
Test Fixtures Package

Reusable mock infrastructure for the storage layer:
- Supabase client mocks for the store adapters
- In-memory account, notification and case stores for service and route tests

Usage:
    from tests.fixtures.supabase_fixtures import create_chainable_mock, set_result
    from tests.fixtures.store_fixtures import InMemoryAccountStore, make_account
"""

from tests.fixtures.supabase_fixtures import (
    create_chainable_mock,
    create_supabase_response,
    create_mock_supabase_client,
    set_result,
)

from tests.fixtures.store_fixtures import (
    InMemoryAccountStore,
    InMemoryNotificationStore,
    InMemoryCaseStore,
    make_account,
)

__all__ = [
    # Supabase mocks
    "create_chainable_mock",
    "create_supabase_response",
    "create_mock_supabase_client",
    "set_result",
    # In-memory stores
    "InMemoryAccountStore",
    "InMemoryNotificationStore",
    "InMemoryCaseStore",
    "make_account",
]
