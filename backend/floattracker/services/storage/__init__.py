"""
Storage adapters for the float tracker tables.

`get_store()` returns the adapter selected by STORAGE_BACKEND:
- "supabase": SupabaseFloatStore (supabase-py table API)
- "sql":      SqlFloatStore over SUPABASE_DB_URL (SQLAlchemy)
"""

from floattracker.core.config import settings
from floattracker.core.errors import PersistenceError
from floattracker.services.storage.sql_store import SqlFloatStore
from floattracker.services.storage.supabase_store import SupabaseFloatStore


def get_store():
    backend = (settings.STORAGE_BACKEND or "supabase").strip().lower()
    if backend == "sql":
        if not settings.SUPABASE_DB_URL:
            raise PersistenceError("SUPABASE_DB_URL must be configured for STORAGE_BACKEND=sql.")
        return SqlFloatStore.from_url(settings.SUPABASE_DB_URL)
    if backend == "supabase":
        return SupabaseFloatStore()
    raise PersistenceError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


__all__ = ["SqlFloatStore", "SupabaseFloatStore", "get_store"]
