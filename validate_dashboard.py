"""
SurveyPulse - Dashboard Validation Tool
=======================================

Recomputes a tenant's executive dashboard straight from the response
store, audits the input rows, and optionally compares the result with a
running API server.

Exit codes:
    0  recomputed (and, with --compare, no mismatches)
    1  fatal error (store unreachable, no tenant, bad configuration)
    2  the live endpoint disagrees with the recomputation
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from surveypulse.application.queries import ExecutiveQuery
from surveypulse.application.validation import ValidationError, run_validation
from surveypulse.domain.periods import get_local_zone
from surveypulse.domain.scoring import score_label
from surveypulse.infrastructure.api import AnalyticsApiClient, AnalyticsApiError
from surveypulse.infrastructure.config import get_settings
from surveypulse.infrastructure.persistence import ResponseStoreError, create_response_store

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_MISMATCH = 2


def setup_logging(log_level: str = "WARNING"):
    """Configure logging; stderr only so --json output stays clean."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SurveyPulse - recompute and validate the executive dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recompute this month's dashboard for the most recently active tenant
  python validate_dashboard.py

  # A fixed window for one tenant, as JSON
  python validate_dashboard.py --tenant t-1 --period custom \\
                               --start 2024-01-01 --end 2024-01-31 --json

  # Compare against a running server
  python validate_dashboard.py --tenant t-1 --period all \\
                               --compare --api-url http://127.0.0.1:8000
        """
    )

    parser.add_argument("--tenant", help="Tenant id (default: tenant of the latest rated response)")
    parser.add_argument("--template", default="all", help="Template id or 'all' (default: all)")
    parser.add_argument("--period", default="month", help="today | week | month | all | custom (default: month)")
    parser.add_argument("--start", help="Custom period start (ISO date or timestamp)")
    parser.add_argument("--end", help="Custom period end (ISO date or timestamp)")
    parser.add_argument("--bad-threshold", default=None, help="Bad threshold on the 1-5 scale (default: 2)")
    parser.add_argument("--good-threshold", default=None, help="Good threshold on the 1-5 scale (default: 4)")
    parser.add_argument("--low-limit", default=None, help="Max low-rating rows (default: 30, cap 100)")

    parser.add_argument("--compare", action="store_true", help="Compare with the live API")
    parser.add_argument("--api-url", help="API base URL (default: ANALYTICS_API_URL)")
    parser.add_argument("--token", help="Bearer token for the API (default: ANALYTICS_API_TOKEN)")

    parser.add_argument("--backend", choices=["sqlite", "postgrest"], help="Response store backend")
    parser.add_argument("--db", help="SQLite database file (sqlite backend)")

    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    parser.add_argument("--out", help="Also write the JSON report to this path")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def _query_from_args(args) -> ExecutiveQuery:
    values = {
        "period": args.period,
        "start": args.start,
        "end": args.end,
        "template_id": args.template,
    }
    if args.bad_threshold is not None:
        values["bad_threshold"] = args.bad_threshold
    if args.good_threshold is not None:
        values["good_threshold"] = args.good_threshold
    if args.low_limit is not None:
        values["low_ratings_limit"] = args.low_limit
    return ExecutiveQuery(**values)


def _store_settings(args, settings):
    overrides = {}
    if args.backend:
        overrides["backend"] = args.backend
    if args.db:
        overrides["database_file"] = Path(args.db)
    return dataclasses.replace(settings.store, **overrides)


def print_report(report: dict):
    computed = report["computed"]
    kpis = computed["kpis"]
    audit = report["audit"]

    print(f"tenant_id: {report['tenant_id']}")
    print(f"template_id: {report['template_id']}")
    print(f"period: {report['period']['period']} ({report['period']['start']} .. {report['period']['end']})")
    print(f"rows: {report['rows']}")
    print(f"optional_fields_present: {report['optional_fields_present']}")
    print(f"thresholds: bad<={computed['thresholds']['bad']} good>={computed['thresholds']['good']}")
    print(f"total_responses: {kpis['total_responses']} (submissions: {kpis['total_submissions']})")
    print(f"avg_rating: {kpis['avg_rating']}")
    print(f"good/neutral/bad: {kpis['good_count']}/{kpis['neutral_count']}/{kpis['bad_count']}")
    print(f"bad_identified_count: {kpis['bad_identified_count']}")
    print(f"google_redirect_count: {kpis['google_redirect_count']}")
    print(f"trend_days: {len(computed['trend'])}")
    summary = report["summary"]
    print(
        f"nps: {summary['nps']} (promoters {summary['promoters']} / passives {summary['passives']} "
        f"/ detractors {summary['detractors']})"
    )
    print(f"recommend_rate: {summary['recommend_rate']}%  five_star_count: {summary['five_star_count']}")
    print(f"satisfaction_buckets: {json.dumps(summary['satisfaction_buckets'])}")
    print(f"data_issues: {json.dumps(audit['issues'])}")

    if computed["low_ratings"]:
        print(f"\nLow ratings ({len(computed['low_ratings'])}):")
        for row in computed["low_ratings"][:10]:
            comment = (row.get("comment") or "").strip().replace("\n", " ")
            print(
                f"   {row.get('created_at') or '-'}  {row['overall_rating']}/5 "
                f"[{score_label(row['overall_rating'])}]  {comment[:60]}"
            )

    comparison = report["api_comparison"]
    if comparison is not None:
        print(f"\nAPI comparison: HTTP {comparison['http_status']}, {len(comparison['mismatches'])} mismatch(es)")
        for mismatch in comparison["mismatches"]:
            print(f"   {json.dumps(mismatch, default=str)}")


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    settings = get_settings()

    try:
        store = create_response_store(_store_settings(args, settings))

        api_client = None
        if args.compare:
            api_client = AnalyticsApiClient(
                args.api_url or settings.validation.api_url,
                token=args.token or settings.validation.api_token,
                timeout=settings.validation.timeout_seconds,
            )

        report = run_validation(
            store,
            _query_from_args(args),
            tz=get_local_zone(settings.analytics.timezone),
            tenant_id=args.tenant,
            api_client=api_client,
        )
    except (ValidationError, ResponseStoreError, AnalyticsApiError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    output = json.dumps(report, indent=2, default=str)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output)

    if args.json:
        print(output)
    else:
        print_report(report)

    comparison = report["api_comparison"]
    if comparison is not None and comparison["mismatches"]:
        return EXIT_MISMATCH
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
