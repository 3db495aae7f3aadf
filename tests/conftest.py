"""Shared fixtures: fixed time zones, a frozen clock and a seeded SQLite store."""

from datetime import datetime, timedelta, timezone

import pytest

from surveypulse.infrastructure.persistence import Database, SQLiteResponseStore

# UTC-5, no DST, so day boundaries are predictable without tzdata
LOCAL_TZ = timezone(timedelta(hours=-5), "TEST")

# Wednesday 2024-01-17 15:30 local
NOW = datetime(2024, 1, 17, 15, 30, tzinfo=LOCAL_TZ)


@pytest.fixture
def tz():
    return LOCAL_TZ


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / "responses.db")
    db.init()
    return db


@pytest.fixture
def legacy_database(tmp_path):
    """Database without the follow-up / redirect columns."""
    db = Database(tmp_path / "legacy.db")
    db.init(include_optional=False)
    return db


@pytest.fixture
def store(database):
    return SQLiteResponseStore(database)


@pytest.fixture
def seeded_database(database):
    """Tenant t-1 with a mix of scales and dates; tenant t-2 with one row."""
    rows = [
        {"created_at": "2024-01-15T14:00:00Z", "overall_rating": 5, "template_id": "tpl-a",
         "google_redirect_triggered": True, "source": "qr"},
        {"created_at": "2024-01-15T16:00:00Z", "overall_rating": 1, "template_id": "tpl-a",
         "customer_name": "Ana", "comment": "Cold food"},
        {"created_at": "2024-01-16T12:00:00Z", "overall_rating": None,
         "custom_answers": {"q1": "fine", "q2": 70}, "template_id": "tpl-b"},
        {"created_at": "2024-01-16T18:00:00Z", "overall_rating": 2, "template_id": "tpl-b",
         "comment": "Slow"},
        {"created_at": "2024-01-17T15:00:00Z", "overall_rating": None, "custom_answers": {"q1": "n/a"},
         "template_id": "tpl-a"},
    ]
    for row in rows:
        database.add_response("t-1", **row)
    database.add_response("t-2", created_at="2024-01-10T10:00:00Z", overall_rating=4)
    return database
