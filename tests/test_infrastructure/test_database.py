"""
Tests for the SQLite response store.
"""

import sqlite3
from datetime import datetime, timezone

import pytest

from surveypulse.infrastructure.persistence import (
    OPTIONAL_COLUMNS,
    Database,
    Projection,
    ResponseStoreError,
    SchemaDriftError,
    SQLiteResponseStore,
)
from surveypulse.infrastructure.persistence.database import normalize_created_at


def test_init_adds_optional_columns(database):
    assert set(OPTIONAL_COLUMNS) <= database.existing_columns()


def test_legacy_schema_lacks_optional_columns(legacy_database):
    assert not set(OPTIONAL_COLUMNS) & legacy_database.existing_columns()


def test_migrate_optional_columns(legacy_database):
    legacy_database.migrate_optional_columns()
    assert set(OPTIONAL_COLUMNS) <= legacy_database.existing_columns()


def test_add_and_read_back(database):
    database.add_response(
        "t-1",
        created_at="2024-01-15T10:00:00+02:00",
        overall_rating=4,
        custom_answers={"q1": 9},
        would_recommend=1,
        google_redirect_triggered=False,
    )

    store = SQLiteResponseStore(database)
    rows = store.query_responses("t-1", Projection.EXTENDED)

    assert len(rows) == 1
    row = rows[0]
    assert row["created_at"] == "2024-01-15T08:00:00.000Z"
    assert row["custom_answers"] == {"q1": 9}
    assert row["would_recommend"] is True
    assert row["google_redirect_triggered"] is False
    assert row["followup_status"] is None


def test_query_is_tenant_scoped(seeded_database):
    store = SQLiteResponseStore(seeded_database)
    assert len(store.query_responses("t-1")) == 5
    assert len(store.query_responses("t-2")) == 1
    assert store.query_responses("t-3") == []


def test_query_filters_and_order(seeded_database):
    store = SQLiteResponseStore(seeded_database)

    rows = store.query_responses(
        "t-1",
        start=datetime(2024, 1, 15, 15, 0, tzinfo=timezone.utc),
        end=datetime(2024, 1, 16, 18, 0, tzinfo=timezone.utc),
    )
    assert [row["created_at"] for row in rows] == [
        "2024-01-15T16:00:00.000Z",
        "2024-01-16T12:00:00.000Z",
        "2024-01-16T18:00:00.000Z",
    ]

    newest = store.query_responses("t-1", ascending=False, limit=2)
    assert [row["created_at"] for row in newest] == ["2024-01-17T15:00:00.000Z", "2024-01-16T18:00:00.000Z"]

    by_template = store.query_responses("t-1", template_id="tpl-b")
    assert {row["template_id"] for row in by_template} == {"tpl-b"}


def test_live_feed_projection_columns(seeded_database):
    rows = SQLiteResponseStore(seeded_database).query_responses("t-1", Projection.LIVE_FEED, limit=1)
    assert set(rows[0]) == set(Projection.LIVE_FEED.columns)


def test_extended_projection_on_legacy_schema_is_drift(legacy_database):
    store = SQLiteResponseStore(legacy_database)
    with pytest.raises(SchemaDriftError):
        store.query_responses("t-1", Projection.EXTENDED)
    assert store.query_responses("t-1", Projection.BASE) == []


def test_missing_table_is_drift(tmp_path):
    store = SQLiteResponseStore(Database(tmp_path / "empty.db"))
    with pytest.raises(SchemaDriftError):
        store.query_responses("t-1")


def test_other_sqlite_errors_are_store_errors():
    error = SQLiteResponseStore._translate(sqlite3.DatabaseError("file is not a database"))
    assert type(error) is ResponseStoreError


def test_latest_tenant_id(seeded_database):
    store = SQLiteResponseStore(seeded_database)
    assert store.latest_tenant_id() == "t-1"
    seeded_database.add_response("t-3", created_at="2024-02-01T00:00:00Z", overall_rating=None)
    assert store.latest_tenant_id() == "t-3"
    assert store.latest_tenant_id(require_rating=True) == "t-1"


def test_bulk_add_reports_errors(legacy_database):
    result = legacy_database.bulk_add_responses("t-1", [
        {"overall_rating": 4},
        {"overall_rating": 2, "followup_status": "open"},
    ])
    assert result["added"] == 1
    assert len(result["errors"]) == 1
    assert result["errors"][0].startswith("row 2:")
    assert legacy_database.count_responses("t-1") == 1


def test_normalize_created_at():
    assert normalize_created_at(None) is None
    assert normalize_created_at("2024-01-15T10:00:00Z") == "2024-01-15T10:00:00.000Z"
    assert normalize_created_at("junk") == "junk"
