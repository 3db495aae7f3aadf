"""
Unit tests for the aggregation engine.
"""

import copy

import pytest

from surveypulse.domain.aggregation import (
    ClassificationThresholds,
    aggregate,
    build_trend,
    clamp_limit,
    clamp_threshold,
    score_rows,
    select_low_ratings,
)


@pytest.fixture
def rows():
    return [
        {"id": 1, "created_at": "2024-01-15T14:00:00Z", "overall_rating": 5, "google_redirect_triggered": True},
        {"id": 2, "created_at": "2024-01-15T16:00:00Z", "overall_rating": 2, "customer_phone": "5551234"},
        {"id": 3, "created_at": "2024-01-16T12:00:00Z", "overall_rating": 6},
        {"id": 4, "created_at": "2024-01-16T18:00:00Z", "overall_rating": 1},
        {"id": 5, "created_at": "2024-01-17T15:00:00Z", "overall_rating": 150},
        {"id": 6, "created_at": "2024-01-17T16:00:00Z", "custom_answers": {"q": "n/a"},
         "google_redirect_triggered": False},
    ]


def test_classification_example(tz):
    """score10=4 is bad, 10 is good, 6 is neutral with bad=2 / good=4."""
    rows = [
        {"created_at": "2024-01-15T14:00:00Z", "overall_rating": 2},
        {"created_at": "2024-01-15T15:00:00Z", "overall_rating": 5},
        {"created_at": "2024-01-15T16:00:00Z", "overall_rating": 6},
    ]
    kpis = aggregate(rows, ClassificationThresholds(2, 4), tz=tz)["kpis"]
    assert kpis["bad_count"] == 1
    assert kpis["good_count"] == 1
    assert kpis["neutral_count"] == 1


def test_kpis(rows, tz):
    kpis = aggregate(rows, tz=tz)["kpis"]

    assert kpis["total_submissions"] == 6
    assert kpis["total_responses"] == 4
    # score10s: 10, 4, 6, 2 -> mean 5.5 -> 2.75 on the 0-5 scale
    assert kpis["avg_rating"] == 2.75
    assert kpis["good_count"] == 1
    assert kpis["bad_count"] == 2
    assert kpis["neutral_count"] == 1
    assert kpis["bad_identified_count"] == 1
    assert kpis["google_redirect_count"] == 1


def test_redirect_count_unknown_without_optional_fields(rows, tz):
    kpis = aggregate(rows, tz=tz, optional_fields_present=False)["kpis"]
    assert kpis["google_redirect_count"] is None


def test_empty_rows(tz):
    result = aggregate([], tz=tz)
    assert result["kpis"]["avg_rating"] == 0
    assert result["kpis"]["total_responses"] == 0
    assert result["trend"] == []
    assert result["low_ratings"] == []


def test_count_invariants(rows, tz):
    kpis = aggregate(rows, ClassificationThresholds(5, 1), tz=tz)["kpis"]
    # Overlapping thresholds: every rated row is both good and bad
    assert kpis["good_count"] == 4
    assert kpis["bad_count"] == 4
    assert kpis["neutral_count"] == 0


def test_trend_buckets_by_local_day(rows, tz):
    trend = aggregate(rows, tz=tz)["trend"]

    assert [day["date"] for day in trend] == ["2024-01-15", "2024-01-16", "2024-01-17"]
    assert trend[0] == {
        "date": "2024-01-15",
        "total": 2,
        "total_submissions": 2,
        "good": 1,
        "neutral": 0,
        "bad": 1,
        "avg_rating": 3.5,
    }
    assert trend[2]["total"] == 0
    assert trend[2]["total_submissions"] == 2
    assert trend[2]["avg_rating"] == 0


def test_trend_submissions_add_up(rows, tz):
    result = aggregate(rows, tz=tz)
    assert sum(day["total_submissions"] for day in result["trend"]) == result["kpis"]["total_submissions"]


def test_trend_skips_undated_rows(tz):
    scored = score_rows([
        {"created_at": None, "overall_rating": 4},
        {"created_at": "garbage", "overall_rating": 4},
        {"created_at": "2024-01-15T12:00:00Z", "overall_rating": 4},
    ])
    trend = build_trend(scored, ClassificationThresholds(), tz)
    assert len(trend) == 1
    assert trend[0]["total_submissions"] == 1


def test_trend_late_utc_row_lands_on_previous_local_day(tz):
    scored = score_rows([{"created_at": "2024-01-16T03:00:00Z", "overall_rating": 4}])
    trend = build_trend(scored, ClassificationThresholds(), tz)
    assert trend[0]["date"] == "2024-01-15"


def test_low_ratings_newest_first(rows, tz):
    low = aggregate(rows, tz=tz)["low_ratings"]

    assert [row["id"] for row in low] == [4, 2]
    assert low[0]["overall_rating"] == 1.0
    assert low[0]["overall_score10"] == 2
    assert low[0]["overall_rating_normalized"] == 1.0


def test_low_ratings_undated_last_and_stable(tz):
    rated = score_rows([
        {"id": "a", "created_at": None, "overall_rating": 1},
        {"id": "b", "created_at": "2024-01-10T00:00:00Z", "overall_rating": 1},
        {"id": "c", "created_at": None, "overall_rating": 2},
        {"id": "d", "created_at": "2024-01-12T00:00:00Z", "overall_rating": 1},
    ])
    low = select_low_ratings(rated, ClassificationThresholds(), 30, tz)
    assert [row["id"] for row in low] == ["d", "b", "a", "c"]


def test_low_ratings_limit_and_predicate(tz):
    rows = [
        {"id": i, "created_at": f"2024-01-{i + 1:02d}T00:00:00Z", "overall_rating": 1}
        for i in range(10)
    ]
    low = aggregate(rows, low_ratings_limit=3, tz=tz)["low_ratings"]
    assert len(low) == 3
    assert all(row["overall_score10"] <= 4 for row in low)

    assert aggregate(rows, low_ratings_limit=0, tz=tz)["low_ratings"] == []


def test_aggregate_is_pure(rows, tz):
    before = copy.deepcopy(rows)
    first = aggregate(rows, tz=tz)
    second = aggregate(rows, tz=tz)
    assert first == second
    assert rows == before


@pytest.mark.parametrize("value, expected", [
    (None, 2),
    ("", 2),
    ("abc", 2),
    ("3", 3),
    (0, 1),
    (9, 5),
    ("2.5", 2.5),
])
def test_clamp_threshold(value, expected):
    assert clamp_threshold(value, 2) == expected


@pytest.mark.parametrize("value, expected", [
    (None, 30),
    ("junk", 30),
    (-5, 0),
    ("10", 10),
    (500, 100),
    ("7.9", 7),
])
def test_clamp_limit(value, expected):
    assert clamp_limit(value, 30, 100) == expected


def test_thresholds_from_values():
    thresholds = ClassificationThresholds.from_values("9", None)
    assert thresholds.as_dict() == {"bad": 5, "good": 4}
    assert thresholds.bad10 == 10


def test_unusable_answers_do_not_count(tz):
    rows = [
        {"created_at": "2024-01-15T14:00:00Z", "overall_rating": None, "custom_answers": '{"q1": 4}'},
        {"created_at": "2024-01-15T15:00:00Z", "overall_rating": None, "custom_answers": {"q1": int("9" * 400)}},
        {"created_at": "2024-01-15T16:00:00Z", "overall_rating": 4},
    ]
    kpis = aggregate(rows, tz=tz)["kpis"]
    assert kpis["total_submissions"] == 3
    assert kpis["total_responses"] == 1
