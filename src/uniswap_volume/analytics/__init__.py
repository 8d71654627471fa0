"""Volume and fee aggregation."""

from uniswap_volume.analytics.aggregator import (
    aggregate_monthly,
    aggregate_weekly,
    bucket_daily,
    total_volume,
    week_start,
)

__all__ = [
    "aggregate_monthly",
    "aggregate_weekly",
    "bucket_daily",
    "total_volume",
    "week_start",
]
