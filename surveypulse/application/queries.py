"""
Dashboard query parameters.

Raw query-string / CLI values go in, clamped values come out. Nothing here
rejects input: junk falls back to the default, out-of-range is clamped.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, field_validator

from ..domain.aggregation import (
    DEFAULT_BAD_THRESHOLD,
    DEFAULT_GOOD_THRESHOLD,
    DEFAULT_LOW_RATINGS_LIMIT,
    MAX_LOW_RATINGS_LIMIT,
    ClassificationThresholds,
    clamp_limit,
    clamp_threshold,
)
from .fetcher import ALL_TEMPLATES

DEFAULT_LIVE_FEED_LIMIT = 20
MAX_LIVE_FEED_LIMIT = 50


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class _PeriodQuery(BaseModel):
    period: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    template_id: str = ALL_TEMPLATES

    @field_validator("period", "start", "end", mode="before")
    @classmethod
    def _strip(cls, value):
        return _blank_to_none(value)

    @field_validator("template_id", mode="before")
    @classmethod
    def _template(cls, value):
        return _blank_to_none(value) or ALL_TEMPLATES


class ExecutiveQuery(_PeriodQuery):
    """Parameters of the executive dashboard."""

    bad_threshold: Union[int, float] = DEFAULT_BAD_THRESHOLD
    good_threshold: Union[int, float] = DEFAULT_GOOD_THRESHOLD
    low_ratings_limit: int = DEFAULT_LOW_RATINGS_LIMIT

    @field_validator("bad_threshold", mode="before")
    @classmethod
    def _bad(cls, value):
        return clamp_threshold(value, DEFAULT_BAD_THRESHOLD)

    @field_validator("good_threshold", mode="before")
    @classmethod
    def _good(cls, value):
        return clamp_threshold(value, DEFAULT_GOOD_THRESHOLD)

    @field_validator("low_ratings_limit", mode="before")
    @classmethod
    def _low_limit(cls, value):
        return clamp_limit(value, DEFAULT_LOW_RATINGS_LIMIT, MAX_LOW_RATINGS_LIMIT)

    @property
    def thresholds(self) -> ClassificationThresholds:
        return ClassificationThresholds(bad=self.bad_threshold, good=self.good_threshold)


class LiveFeedQuery(_PeriodQuery):
    """Parameters of the live feed (period defaults to today downstream)."""

    limit: int = DEFAULT_LIVE_FEED_LIMIT

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, value):
        return clamp_limit(value, DEFAULT_LIVE_FEED_LIMIT, MAX_LIVE_FEED_LIMIT)
