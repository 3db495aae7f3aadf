"""
SQLite Database Repository - Survey Response Persistence
========================================================

Stores survey responses per tenant so each business only sees its own data.
Also provides the SQLite implementation of the ResponseStore interface.

Timestamps are stored as UTC ISO strings with millisecond precision and a
``Z`` suffix, so range filters can compare them as text.
"""

import json
import sqlite3
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from contextlib import contextmanager

from ...domain.periods import parse_timestamp, to_iso
from .store import (
    OPTIONAL_COLUMNS,
    Projection,
    ResponseStore,
    ResponseStoreError,
    SchemaDriftError,
)

logger = logging.getLogger(__name__)

DATABASE_FILE = "surveypulse.db"

BOOLEAN_COLUMNS = ("would_recommend", "is_anonymous", "google_redirect_triggered")

INSERTABLE_COLUMNS = (
    "tenant_id",
    "template_id",
    "created_at",
    "overall_rating",
    "custom_answers",
    "would_recommend",
    "comment",
    "source",
    "is_anonymous",
    "customer_name",
    "customer_email",
    "customer_phone",
)

OPTIONAL_COLUMN_DDL = {
    "google_redirect_triggered": "ALTER TABLE survey_responses ADD COLUMN google_redirect_triggered INTEGER",
    "followup_status": "ALTER TABLE survey_responses ADD COLUMN followup_status TEXT",
    "followup_note": "ALTER TABLE survey_responses ADD COLUMN followup_note TEXT",
    "followup_updated_at": "ALTER TABLE survey_responses ADD COLUMN followup_updated_at TEXT",
}

SCHEMA_DRIFT_MARKERS = ("no such column", "no such table", "has no column named")


def normalize_created_at(value) -> Optional[str]:
    """Store format for a timestamp; unparseable values are kept verbatim."""
    if value is None or value == "":
        return None
    parsed = parse_timestamp(value, timezone.utc)
    return to_iso(parsed) if parsed else str(value)


class Database:
    """
    SQLite database for survey responses.

    Usage:
        db = Database()
        db.init()

        db.add_response(tenant_id="t-1", overall_rating=4, comment="Great!")
        rows = db.select_responses(Projection.EXTENDED.columns, tenant_id="t-1")
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = str(db_path)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self, include_optional: bool = True):
        """
        Initialize database tables.

        ``include_optional=False`` leaves out the follow-up/redirect columns,
        which is what databases created before those features look like.
        """
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS survey_responses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    tenant_id TEXT NOT NULL,
                    template_id TEXT,
                    created_at TEXT,
                    overall_rating NUMERIC,
                    custom_answers TEXT,
                    would_recommend INTEGER,
                    comment TEXT DEFAULT '',
                    source TEXT,
                    is_anonymous INTEGER DEFAULT 0,
                    customer_name TEXT,
                    customer_email TEXT,
                    customer_phone TEXT
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_responses_tenant_created "
                "ON survey_responses (tenant_id, created_at)"
            )

            if include_optional:
                self._migrate_optional_columns(conn)

            logger.info(f"Database initialized: {self.db_path}")

    def migrate_optional_columns(self):
        """Add the follow-up/redirect columns to an existing database."""
        with self._get_connection() as conn:
            self._migrate_optional_columns(conn)

    def _migrate_optional_columns(self, conn):
        """Add missing columns to existing survey_responses table."""
        existing = {row[1] for row in conn.execute("PRAGMA table_info(survey_responses)").fetchall()}

        for col in OPTIONAL_COLUMNS:
            if col not in existing:
                conn.execute(OPTIONAL_COLUMN_DDL[col])
                logger.info(f"Migrated: added '{col}' column to survey_responses")

    def existing_columns(self) -> set:
        with self._get_connection() as conn:
            return {row[1] for row in conn.execute("PRAGMA table_info(survey_responses)").fetchall()}

    # ── Writes (ingestion only) ────────────────────────────────────

    def _prepare(self, tenant_id: str, response: dict) -> dict:
        values = {col: response.get(col) for col in INSERTABLE_COLUMNS}
        values["tenant_id"] = tenant_id
        values["created_at"] = normalize_created_at(
            response.get("created_at") or datetime.now(timezone.utc)
        )
        answers = values["custom_answers"]
        if answers is not None and not isinstance(answers, str):
            values["custom_answers"] = json.dumps(answers)
        for col in OPTIONAL_COLUMNS:
            if col in response:
                values[col] = response[col]
        return values

    def add_response(self, tenant_id: str, **response) -> int:
        """Insert one response for a tenant. Returns the new row id."""
        values = self._prepare(tenant_id, response)
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO survey_responses ({columns}) VALUES ({placeholders})",
                list(values.values())
            )
            return cursor.lastrowid

    def bulk_add_responses(self, tenant_id: str, responses: Iterable[dict]) -> dict:
        """
        Add multiple responses at once for a tenant.

        Returns:
            Dict with 'added' count and 'errors' messages
        """
        result = {'added': 0, 'errors': []}

        with self._get_connection() as conn:
            for index, response in enumerate(responses):
                values = self._prepare(tenant_id, response)
                columns = ", ".join(values)
                placeholders = ", ".join("?" for _ in values)
                try:
                    conn.execute(
                        f"INSERT INTO survey_responses ({columns}) VALUES ({placeholders})",
                        list(values.values())
                    )
                    result['added'] += 1
                except sqlite3.Error as e:
                    result['errors'].append(f"row {index + 1}: {e}")

        logger.info(f"Bulk import for tenant {tenant_id}: {result['added']} added, {len(result['errors'])} errors")
        return result

    # ── Reads ──────────────────────────────────────────────────────

    def select_responses(
        self,
        columns: Iterable[str],
        tenant_id: str,
        template_id: Optional[str] = None,
        start_iso: Optional[str] = None,
        end_iso: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Raw query. sqlite3 errors propagate to the caller."""
        clauses = ["tenant_id = ?"]
        params: list = [tenant_id]

        if template_id is not None:
            clauses.append("template_id = ?")
            params.append(template_id)
        if start_iso:
            clauses.append("created_at >= ?")
            params.append(start_iso)
        if end_iso:
            clauses.append("created_at <= ?")
            params.append(end_iso)

        sql = (
            f"SELECT {', '.join(columns)} FROM survey_responses "
            f"WHERE {' AND '.join(clauses)} "
            f"ORDER BY created_at {'ASC' if ascending else 'DESC'}, id {'ASC' if ascending else 'DESC'}"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._get_connection() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_response(row) for row in rows]

    def latest_tenant_id(self, require_rating: bool = False) -> Optional[str]:
        where = "WHERE tenant_id IS NOT NULL"
        if require_rating:
            where += " AND overall_rating IS NOT NULL"
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT tenant_id FROM survey_responses {where} ORDER BY created_at DESC, id DESC LIMIT 1"
            ).fetchone()
            return row["tenant_id"] if row else None

    def count_responses(self, tenant_id: Optional[str] = None) -> int:
        with self._get_connection() as conn:
            if tenant_id is not None:
                return conn.execute(
                    "SELECT COUNT(*) FROM survey_responses WHERE tenant_id = ?", (tenant_id,)
                ).fetchone()[0]
            return conn.execute("SELECT COUNT(*) FROM survey_responses").fetchone()[0]

    def _row_to_response(self, row: sqlite3.Row) -> dict:
        """Convert database row to a response dict with JSON/boolean columns decoded."""
        data = dict(row)

        if isinstance(data.get("custom_answers"), str):
            try:
                data["custom_answers"] = json.loads(data["custom_answers"])
            except ValueError:
                pass  # left as text; scoring treats it as no answers

        for col in BOOLEAN_COLUMNS:
            if col in data and data[col] is not None:
                data[col] = bool(data[col])

        return data


class SQLiteResponseStore(ResponseStore):
    """ResponseStore backed by the local SQLite Database."""

    name = "sqlite"

    def __init__(self, database: Database):
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    def query_responses(
        self,
        tenant_id: str,
        projection: Projection = Projection.BASE,
        template_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[dict]:
        try:
            return self._db.select_responses(
                projection.columns,
                tenant_id=tenant_id,
                template_id=template_id,
                start_iso=to_iso(start) if start else None,
                end_iso=to_iso(end) if end else None,
                ascending=ascending,
                limit=limit,
            )
        except sqlite3.Error as e:
            raise self._translate(e) from e

    def latest_tenant_id(self, require_rating: bool = False) -> Optional[str]:
        try:
            return self._db.latest_tenant_id(require_rating=require_rating)
        except sqlite3.Error as e:
            raise self._translate(e) from e

    @staticmethod
    def _translate(error: sqlite3.Error) -> ResponseStoreError:
        message = str(error)
        if isinstance(error, sqlite3.OperationalError) and any(
            marker in message.lower() for marker in SCHEMA_DRIFT_MARKERS
        ):
            return SchemaDriftError(message)
        return ResponseStoreError(message)
