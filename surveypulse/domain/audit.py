"""
Input-data audit for fetched response rows.

Counts the data-quality problems that silently lower dashboard precision
(undated rows, rows with no usable rating, ...). Used by the validation
tool next to the recomputed metrics.

``summary_kpis`` adds the survey-level counts printed beside the dashboard
KPIs: NPS split (promoters >= 9, passives 7-8, detractors <= 6 on the 0-10
scale), recommend rate, five-star count and satisfaction buckets on 0-5.
"""

import math
from collections import Counter
from datetime import tzinfo
from typing import Dict, List, Optional

from .periods import get_local_zone, parse_timestamp
from .scoring import round_half_up, score10_for, score5_from_10

MAX_EXAMPLES = 5


def audit_rows(rows: List[dict], tz: Optional[tzinfo] = None) -> dict:
    tz = tz or get_local_zone()

    issues = {
        "total": len(rows),
        "missing_created_at": 0,
        "invalid_created_at": 0,
        "missing_template_id": 0,
        "rating_null": 0,
        "rating_out_of_expected_range": 0,
        "custom_answers_not_object": 0,
        "google_redirect_missing_or_null": 0,
    }
    examples: Dict[str, list] = {
        "missing_created_at": [],
        "invalid_created_at": [],
        "rating_null": [],
    }
    histogram: Counter = Counter()
    sources: Counter = Counter()

    def note(key: str, row_id) -> None:
        if row_id and len(examples[key]) < MAX_EXAMPLES:
            examples[key].append(row_id)

    for row in rows:
        row_id = row.get("id")

        if not row.get("created_at"):
            issues["missing_created_at"] += 1
            note("missing_created_at", row_id)
        elif parse_timestamp(row["created_at"], tz) is None:
            issues["invalid_created_at"] += 1
            note("invalid_created_at", row_id)

        if not row.get("template_id"):
            issues["missing_template_id"] += 1

        answers = row.get("custom_answers")
        if answers and not isinstance(answers, (dict, list)):
            issues["custom_answers_not_object"] += 1

        score10 = score10_for(row)
        if score10 is None:
            issues["rating_null"] += 1
            note("rating_null", row_id)
        elif score10 < 0 or score10 > 10:
            issues["rating_out_of_expected_range"] += 1
        else:
            histogram[str(int(round_half_up(score10, 0)))] += 1

        if row.get("google_redirect_triggered") is None:
            issues["google_redirect_missing_or_null"] += 1

        sources[row.get("source") or "null"] += 1

    return {
        "issues": issues,
        "examples": examples,
        "rating_histogram10": dict(sorted(histogram.items(), key=lambda item: int(item[0]))),
        "source_counts": dict(sources),
    }


def _percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded towards +infinity."""
    if whole <= 0:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


def summary_kpis(rows: List[dict]) -> dict:
    total = len(rows)
    scores = []
    for row in rows:
        score10 = score10_for(row)
        if score10 is not None:
            scores.append((score10, score5_from_10(score10)))
    rated = len(scores)

    avg_overall = round_half_up(sum(score5 for _, score5 in scores) / rated, 1) if rated else 0
    recommended = sum(1 for row in rows if row.get("would_recommend"))

    buckets = {"rating5": 0, "rating4": 0, "rating3": 0, "rating_low": 0}
    promoters = passives = detractors = 0
    for score10, score5 in scores:
        if score5 >= 4.5:
            buckets["rating5"] += 1
        elif score5 >= 3.5:
            buckets["rating4"] += 1
        elif score5 >= 2.5:
            buckets["rating3"] += 1
        else:
            buckets["rating_low"] += 1

        # 8 < score10 < 9 and 6 < score10 < 7 fall in no NPS group
        if score10 >= 9:
            promoters += 1
        elif 7 <= score10 <= 8:
            passives += 1
        elif score10 <= 6:
            detractors += 1

    return {
        "total_responses": total,
        "responses_with_rating": rated,
        "avg_overall": avg_overall,
        "recommend_rate": _percent(recommended, total),
        "five_star_count": buckets["rating5"],
        "satisfaction_buckets": buckets,
        "promoters": promoters,
        "passives": passives,
        "detractors": detractors,
        "nps": _percent(promoters - detractors, rated),
        "promoters_percent": _percent(promoters, rated),
        "detractors_percent": _percent(detractors, rated),
    }
