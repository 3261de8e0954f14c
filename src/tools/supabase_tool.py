"""
Supabase Tool - shared client and query execution for the record stores

The directory keeps all durable state in Supabase (PostgreSQL via PostgREST).
Store adapters subclass SupabaseTool and run every query through
`_execute`, which moves the blocking client call onto a worker thread and
converts client errors into StorageFailure.

Usage:
    from config.loader import get_config
    from src.tools.account_store import AccountStore

    store = AccountStore(get_config())
    account = await store.find_by_id("...")
"""

import logging
import asyncio
from typing import Dict, Any, Callable, Optional, TypeVar
from datetime import datetime, timezone

from supabase import create_client, Client

from config.loader import AppConfig
from src.utils.exceptions import StorageFailure

T = TypeVar('T')

# PostgreSQL SQLSTATE for unique_violation, reported in PostgREST error bodies
UNIQUE_VIOLATION = "23505"

logger = logging.getLogger(__name__)


async def execute_async(operation: Callable[[], T]) -> T:
    """
    Execute a synchronous Supabase operation in a thread pool.
    Usage: result = await execute_async(lambda: client.table('x').select('*').execute())
    """
    return await asyncio.to_thread(operation)


def is_unique_violation(error: Optional[BaseException]) -> bool:
    """True when a client error is a unique constraint violation"""
    return getattr(error, "code", None) == UNIQUE_VIOLATION


# ==================== Client Cache ====================
# Cache Supabase clients to avoid reinitializing on every request
_supabase_client_cache: Dict[str, Client] = {}


def get_cached_supabase_client(supabase_url: str, supabase_key: str) -> Client:
    """Get or create a cached Supabase client"""
    key_suffix = supabase_key[-10:] if supabase_key else "nokey"
    cache_key = f"{supabase_url[:30]}:{key_suffix}"

    if cache_key not in _supabase_client_cache:
        _supabase_client_cache[cache_key] = create_client(supabase_url, supabase_key)
        logger.info("Supabase client created and cached")

    return _supabase_client_cache[cache_key]


# ==================== Timestamp Helpers ====================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for a timestamptz column"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamptz value returned by PostgREST"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SupabaseTool:
    """Base class for Supabase-backed stores"""

    TABLE: str = ""

    def __init__(self, config: AppConfig, client: Optional[Client] = None):
        """
        Initialize with application configuration

        Args:
            config: AppConfig instance
            client: Optional pre-built client (tests inject mocks here)
        """
        self.config = config
        self.client = client or get_cached_supabase_client(
            config.supabase_url,
            config.supabase_service_key
        )

    def table(self):
        return self.client.table(self.TABLE)

    async def _execute(self, operation: Callable[[], Any], description: str) -> Any:
        """
        Run a query builder chain off the event loop.

        Raises:
            StorageFailure: on any client or transport error
        """
        try:
            return await execute_async(operation)
        except Exception as e:
            logger.error(f"Supabase {description} failed on '{self.TABLE}': {e}")
            raise StorageFailure(f"Storage error while {description}") from e
