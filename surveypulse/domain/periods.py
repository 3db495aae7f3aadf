"""
Period Range Resolver
=====================

Turns a logical dashboard period (today / week / month / custom / all)
into concrete start and end instants in the tenant's local time zone.

All instants produced here are timezone-aware. ``to_iso`` renders them the
way the store and the HTTP payload expect: UTC, millisecond precision,
``Z`` suffix (``2024-01-15T13:00:00.000Z``), which also sorts correctly as
plain text.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo

PERIODS = ("today", "week", "month", "custom", "all")
DEFAULT_PERIOD = "month"
LIVE_FEED_DEFAULT_PERIOD = "today"

END_OF_DAY = time(23, 59, 59, 999000)


def get_local_zone(name: str = "") -> tzinfo:
    """Zone used for day boundaries. Empty name means the host's zone."""
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


def parse_timestamp(value: Any, tz: tzinfo) -> Optional[datetime]:
    """
    Parse a store/query timestamp into an aware datetime.

    Naive values and bare dates are read as local time in ``tz``.
    Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def to_iso(moment: datetime) -> str:
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"


def date_key(moment: datetime, tz: tzinfo) -> str:
    """Tenant-local calendar day, ``YYYY-MM-DD``."""
    return moment.astimezone(tz).strftime("%Y-%m-%d")


def local_midnight(moment: datetime, tz: tzinfo) -> datetime:
    local = moment.astimezone(tz)
    return datetime(local.year, local.month, local.day, tzinfo=tz)


@dataclass(frozen=True)
class PeriodRange:
    """Resolved period. ``None`` bounds are unbounded."""
    period: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    # end is "now" rather than a caller-chosen instant
    open_ended: bool = False

    @property
    def start_iso(self) -> Optional[str]:
        return to_iso(self.start) if self.start else None

    @property
    def end_iso(self) -> Optional[str]:
        return to_iso(self.end) if self.end else None

    def as_dict(self) -> dict:
        return {"start": self.start_iso, "end": self.end_iso}


def resolve_period(
    period: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    default: str = DEFAULT_PERIOD,
) -> PeriodRange:
    """
    Resolve a period name into a PeriodRange.

    ``start``/``end`` are only consulted for ``custom``. Unknown names
    behave like ``month``.
    """
    tz = tz or get_local_zone()
    now = (now or datetime.now(tz)).astimezone(tz)
    period = period or default

    if period == "all":
        return PeriodRange(period)

    if period == "today":
        return PeriodRange(period, local_midnight(now, tz), now, open_ended=True)

    if period == "week":
        # Absolute 7x24h back, then snapped to the local midnight of that day
        week_ago = now.astimezone(timezone.utc) - timedelta(days=7)
        return PeriodRange(period, local_midnight(week_ago, tz), now, open_ended=True)

    if period == "custom":
        range_start = parse_timestamp(start, tz) if start else None
        range_end = parse_timestamp(end, tz) if end else None
        if range_end is None:
            return PeriodRange(period, range_start, now, open_ended=True)
        range_end = datetime.combine(range_end.astimezone(tz).date(), END_OF_DAY, tzinfo=tz)
        return PeriodRange(period, range_start, range_end)

    month_start = datetime(now.year, now.month, 1, tzinfo=tz)
    return PeriodRange("month", month_start, now, open_ended=True)


def resolve_live_feed_period(
    period: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> PeriodRange:
    """Same rules as ``resolve_period`` but an absent period means today."""
    return resolve_period(period, start, end, now=now, tz=tz, default=LIVE_FEED_DEFAULT_PERIOD)
