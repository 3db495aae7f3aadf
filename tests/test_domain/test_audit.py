"""
Unit tests for the input-data audit.
"""

from surveypulse.domain.audit import MAX_EXAMPLES, audit_rows, summary_kpis


def test_counts_data_issues(tz):
    rows = [
        {"id": 1, "created_at": "2024-01-15T10:00:00Z", "template_id": "t", "overall_rating": 4,
         "google_redirect_triggered": False, "source": "qr"},
        {"id": 2, "created_at": None, "template_id": None, "overall_rating": None, "custom_answers": "oops"},
        {"id": 3, "created_at": "not a date", "template_id": "t", "overall_rating": 150, "source": "qr"},
        {"id": 4, "created_at": "2024-01-15T11:00:00Z", "template_id": "t", "overall_rating": 75,
         "google_redirect_triggered": True, "source": "email"},
    ]

    report = audit_rows(rows, tz)
    issues = report["issues"]

    assert issues["total"] == 4
    assert issues["missing_created_at"] == 1
    assert issues["invalid_created_at"] == 1
    assert issues["missing_template_id"] == 1
    assert issues["rating_null"] == 2
    assert issues["custom_answers_not_object"] == 1
    assert issues["google_redirect_missing_or_null"] == 2

    assert report["examples"]["missing_created_at"] == [2]
    assert report["examples"]["invalid_created_at"] == [3]
    assert report["examples"]["rating_null"] == [2, 3]

    # 4 -> 8, 75 -> 7.5 -> 8 (half up)
    assert report["rating_histogram10"] == {"8": 2}
    assert report["source_counts"] == {"qr": 2, "null": 1, "email": 1}


def test_examples_are_capped(tz):
    rows = [{"id": i, "created_at": None} for i in range(1, 20)]
    report = audit_rows(rows, tz)
    assert report["issues"]["missing_created_at"] == 19
    assert len(report["examples"]["missing_created_at"]) == MAX_EXAMPLES


def test_empty_input(tz):
    report = audit_rows([], tz)
    assert report["issues"]["total"] == 0
    assert report["rating_histogram10"] == {}


def test_summary_kpis():
    rows = [
        {"overall_rating": 5, "would_recommend": True},
        {"overall_rating": 4, "would_recommend": True},
        {"overall_rating": 7},
        {"overall_rating": 3, "would_recommend": False},
        {"overall_rating": 1},
        {"overall_rating": 85},
        {"overall_rating": None},
    ]

    summary = summary_kpis(rows)

    # score10s: 10, 8, 7, 6, 2, 8.5
    assert summary["total_responses"] == 7
    assert summary["responses_with_rating"] == 6
    assert summary["promoters"] == 1
    assert summary["passives"] == 2
    assert summary["detractors"] == 2
    assert summary["nps"] == -17
    assert summary["promoters_percent"] == 17
    assert summary["detractors_percent"] == 33
    assert summary["recommend_rate"] == 29
    assert summary["five_star_count"] == 1
    assert summary["satisfaction_buckets"] == {"rating5": 1, "rating4": 3, "rating3": 1, "rating_low": 1}
    # (5 + 4 + 3.5 + 3 + 1 + 4.3) / 6 = 3.4666...
    assert summary["avg_overall"] == 3.5


def test_summary_kpis_empty():
    summary = summary_kpis([])
    assert summary["nps"] == 0
    assert summary["recommend_rate"] == 0
    assert summary["avg_overall"] == 0


def test_summary_nps_halves_round_up():
    passives = [{"overall_rating": 7}] * 7
    assert summary_kpis([{"overall_rating": 1}] + passives)["nps"] == -12
    assert summary_kpis([{"overall_rating": 5}] + passives)["nps"] == 13
