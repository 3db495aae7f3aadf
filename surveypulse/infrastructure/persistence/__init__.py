from .store import (
    BASE_COLUMNS,
    OPTIONAL_COLUMNS,
    LIVE_FEED_COLUMNS,
    Projection,
    ResponseStore,
    ResponseStoreError,
    SchemaDriftError,
)
from .database import Database, SQLiteResponseStore
from .postgrest import PostgrestResponseStore
from .factory import create_response_store

__all__ = [
    "BASE_COLUMNS",
    "OPTIONAL_COLUMNS",
    "LIVE_FEED_COLUMNS",
    "Projection",
    "ResponseStore",
    "ResponseStoreError",
    "SchemaDriftError",
    "Database",
    "SQLiteResponseStore",
    "PostgrestResponseStore",
    "create_response_store",
]
