"""
Database Table Names

Supabase table name constants shared by the store adapters.

Usage:
    from config.database import SupabaseTables

    client.table(SupabaseTables.ACCOUNTS).select("*")
"""


class SupabaseTables:
    """Supabase table name constants"""

    ACCOUNTS = "accounts"
    NOTIFICATIONS = "notifications"
    CASES = "cases"
