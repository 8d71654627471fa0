"""Calendar bucketing of swaps into daily, weekly and monthly volume/fee series.

All dates are UTC. Weeks are ISO weeks (Monday 00:00 through Sunday), keyed
by the Monday; months are keyed by their first day. Output series are sorted
explicitly by date key, never by dict insertion order.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import TypeVar

from uniswap_volume.models import (
    DailyBucket,
    MonthlyBucket,
    PeriodBucket,
    SwapRecord,
    WeeklyBucket,
    to_decimal,
)

BucketT = TypeVar("BucketT", bound=PeriodBucket)


def utc_date(timestamp: int) -> date:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day`` (a Sunday maps back six days)."""
    return day - timedelta(days=day.weekday())


def month_start(day: date) -> date:
    return day.replace(day=1)


def bucket_daily(swaps: Iterable[SwapRecord]) -> dict[str, DailyBucket]:
    """Fold swaps into one bucket per UTC day.

    Swaps whose USD amount is missing or zero contribute nothing (no fee can
    be inferred), although their day still gets a bucket. Volume is the
    absolute USD amount; fees are volume times the swap's fee tier in ppm.

    Returns:
        Mapping of "YYYY-MM-DD" to DailyBucket.
    """
    daily: dict[str, DailyBucket] = {}

    for swap in swaps:
        key = utc_date(swap.timestamp).isoformat()
        bucket = daily.get(key)
        if bucket is None:
            bucket = daily[key] = DailyBucket(date_key=key, timestamp=swap.timestamp)

        amount = to_decimal(swap.amount_usd)
        if amount == 0:
            continue

        volume = abs(amount)
        bucket.add(volume, volume * swap.fee_rate)

    return daily


def _roll_up(
    daily: Iterable[DailyBucket],
    period_start: Callable[[date], date],
    bucket_cls: type[BucketT],
) -> list[BucketT]:
    periods: dict[str, BucketT] = {}
    for day in daily:
        key = period_start(date.fromisoformat(day.date_key)).isoformat()
        bucket = periods.get(key)
        if bucket is None:
            bucket = periods[key] = bucket_cls(date_key=key)
        bucket.volume_usd += day.volume_usd
        bucket.fees_usd += day.fees_usd

    # ISO dates are fixed-width, so string order is chronological order
    return sorted(periods.values(), key=lambda b: b.date_key)


def aggregate_weekly(daily: dict[str, DailyBucket] | Iterable[DailyBucket]) -> list[WeeklyBucket]:
    """Sum daily buckets into Monday-keyed weeks, ascending by date."""
    days = daily.values() if isinstance(daily, dict) else daily
    return _roll_up(days, week_start, WeeklyBucket)


def aggregate_monthly(daily: dict[str, DailyBucket] | Iterable[DailyBucket]) -> list[MonthlyBucket]:
    """Sum daily buckets into calendar months keyed YYYY-MM-01, ascending."""
    days = daily.values() if isinstance(daily, dict) else daily
    return _roll_up(days, month_start, MonthlyBucket)


def total_volume(daily: dict[str, DailyBucket] | Iterable[DailyBucket]) -> Decimal:
    days = daily.values() if isinstance(daily, dict) else daily
    return sum((d.volume_usd for d in days), Decimal("0"))
