"""
Unit tests for query parameter models.
"""

from surveypulse.application.queries import ExecutiveQuery, LiveFeedQuery


def test_executive_defaults():
    query = ExecutiveQuery()
    assert query.period is None
    assert query.template_id == "all"
    assert query.bad_threshold == 2
    assert query.good_threshold == 4
    assert query.low_ratings_limit == 30


def test_executive_clamps_instead_of_rejecting():
    query = ExecutiveQuery(bad_threshold="0", good_threshold="12", low_ratings_limit="-4")
    assert query.bad_threshold == 1
    assert query.good_threshold == 5
    assert query.low_ratings_limit == 0


def test_executive_junk_falls_back():
    query = ExecutiveQuery(bad_threshold="abc", good_threshold="", low_ratings_limit="many")
    assert query.thresholds.as_dict() == {"bad": 2, "good": 4}
    assert query.low_ratings_limit == 30


def test_low_ratings_limit_cap():
    assert ExecutiveQuery(low_ratings_limit=1000).low_ratings_limit == 100


def test_blank_strings_are_absent():
    query = ExecutiveQuery(period="  ", start="", end=None, template_id="")
    assert query.period is None
    assert query.start is None
    assert query.template_id == "all"


def test_unrelated_parameters_are_ignored():
    query = ExecutiveQuery(action="survey-executive", period="week")
    assert query.period == "week"


def test_live_feed_limit():
    assert LiveFeedQuery().limit == 20
    assert LiveFeedQuery(limit="80").limit == 50
    assert LiveFeedQuery(limit="x").limit == 20
