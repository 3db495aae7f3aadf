"""
Score Normalizer - Canonical Satisfaction Score
===============================================

Survey responses arrive with ratings on different scales:
- 1-5 stars in the ``overall_rating`` column
- 0-10 (NPS-style) or 0-100 answers inside ``custom_answers``

Everything is re-expressed on a single 0-10 scale ("score10") with a
0-5 presentation value ("score5").

KNOWN LIMITATION:
Scale detection is a magnitude heuristic. A raw ``5`` always takes the
"1-5 stars" branch and becomes 10, so a 0-10 answer of 5 ("half") cannot
be told apart from a 5-star rating. Kept as-is: dashboards and the
validation tool must agree on every historical number.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional


def is_finite_number(value: Any) -> bool:
    """True for real ints/floats that are finite. Booleans are not numbers here."""
    if isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def round_half_up(value: float, digits: int) -> float:
    """
    Round like the dashboard front-end does (``Number(x.toFixed(n))``).

    Half-up on the exact binary value of ``value``; Python's ``round`` would
    use banker's rounding on exact ties (0.125 -> 0.12 instead of 0.13).
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def extract_first_numeric_answer(custom_answers: Any) -> Optional[float]:
    """
    Return the first finite number found in a custom-answers payload.

    No question is preferred over another: iteration order decides. Anything
    that is not a mapping or a list (including JSON text) yields None.
    """
    if isinstance(custom_answers, dict):
        values = custom_answers.values()
    elif isinstance(custom_answers, list):
        values = custom_answers
    else:
        return None

    for value in values:
        if is_finite_number(value):
            return value
    return None


def normalize_to_10(raw: Any) -> Optional[float]:
    """Map a raw rating onto 0-10, or None when it fits no supported scale."""
    if not is_finite_number(raw):
        return None

    value = max(0, raw)

    if value <= 5:
        return value * 2
    if value <= 10:
        return value
    if value <= 100:
        return value / 10
    return None


def score10_for(response: dict) -> Optional[float]:
    """Unified 0-10 score of a response row."""
    rating = response.get("overall_rating") if response else None
    if is_finite_number(rating):
        raw = rating
    else:
        raw = extract_first_numeric_answer(response.get("custom_answers") if response else None)
    return normalize_to_10(raw)


def score5_from_10(score10: Optional[float]) -> Optional[float]:
    if score10 is None:
        return None
    return round_half_up(score10 / 2, 1)


def score5_for(response: dict) -> Optional[float]:
    return score5_from_10(score10_for(response))


def score_label(score5: Optional[float]) -> str:
    """Presentation bucket for a 0-5 score."""
    if score5 is None:
        return "no_score"
    if score5 <= 0.5:
        return "very_bad"
    if score5 <= 2.5:
        return "bad"
    if score5 < 3.5:
        return "neutral"
    if score5 < 4.5:
        return "good"
    return "excellent"
