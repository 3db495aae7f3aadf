"""Builds the configured ResponseStore."""

import logging

from ..config import StoreSettings
from .database import Database, SQLiteResponseStore
from .postgrest import PostgrestResponseStore
from .store import ResponseStore

logger = logging.getLogger(__name__)


def create_response_store(settings: StoreSettings) -> ResponseStore:
    if settings.backend == "postgrest":
        logger.info(f"Using PostgREST response store at {settings.supabase_url}")
        return PostgrestResponseStore(
            base_url=settings.supabase_url,
            service_key=settings.service_key,
            table=settings.table,
            timeout=settings.timeout_seconds,
        )

    if settings.backend != "sqlite":
        raise ValueError(f"Unknown response store backend: {settings.backend}")

    db = Database(settings.database_file)
    db.init()
    return SQLiteResponseStore(db)
