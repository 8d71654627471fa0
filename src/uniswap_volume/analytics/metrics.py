"""Cross-chain views over a snapshot.

Combines per-chain weekly or monthly series for a chain selection ("ALL" or one chain)
and computes period-over-period deltas. Inputs are snapshot dicts as read
from disk; values are lifted to Decimal before summing.
"""

from collections import defaultdict
from decimal import Decimal

from uniswap_volume.models import to_decimal

ALL_CHAINS = "ALL"

# Snapshot key holding each period's per-chain series
PERIOD_SERIES = {"weekly": "chains", "monthly": "monthly"}


def select_chains(snapshot: dict, selection: str = ALL_CHAINS) -> list[str]:
    """Resolve a selection to chain names.

    Raises:
        KeyError: The selection names a chain absent from the snapshot.
    """
    chains = snapshot.get("chains", {})
    if selection.upper() == ALL_CHAINS:
        return sorted(chains)
    if selection not in chains:
        raise KeyError(selection)
    return [selection]


def combine_chains(
    snapshot: dict, selection: str = ALL_CHAINS, period: str = "weekly"
) -> list[dict]:
    """Sum volume and fees per date key across the selected chains.

    ``period`` picks the weekly or monthly series; a chain with no series for
    the period contributes nothing.

    Returns:
        [{"date", "volume", "fees"}] with Decimal values, ascending by date.

    Raises:
        KeyError: Unknown chain selection.
        ValueError: Unknown period.
    """
    if period not in PERIOD_SERIES:
        raise ValueError(f"Unknown period: {period}")

    volume: dict[str, Decimal] = defaultdict(Decimal)
    fees: dict[str, Decimal] = defaultdict(Decimal)

    series = snapshot.get(PERIOD_SERIES[period]) or {}
    for name in select_chains(snapshot, selection):
        for item in series.get(name, []):
            volume[item["date"]] += to_decimal(item.get("volume"))
            fees[item["date"]] += to_decimal(item.get("fees"))

    return [
        {"date": key, "volume": volume[key], "fees": fees[key]}
        for key in sorted(volume)
    ]


def _percent_change(current: Decimal, previous: Decimal) -> Decimal:
    if previous == 0:
        return Decimal("0")
    return (current - previous) / previous * Decimal("100")


def period_delta(history: list[dict]) -> tuple[Decimal, Decimal]:
    """Percent change of (volume, fees) from the previous to the latest period.

    Both are 0 with fewer than two periods or a zero previous value.
    """
    if len(history) < 2:
        return Decimal("0"), Decimal("0")
    current, previous = history[-1], history[-2]
    return (
        _percent_change(current["volume"], previous["volume"]),
        _percent_change(current["fees"], previous["fees"]),
    )


def summarize(history: list[dict]) -> dict[str, Decimal]:
    """Latest-period headline figures for a combined series."""
    volume_delta, fees_delta = period_delta(history)
    latest = history[-1] if history else {"volume": Decimal("0"), "fees": Decimal("0")}
    return {
        "current_volume": latest["volume"],
        "current_fees": latest["fees"],
        "volume_delta": volume_delta,
        "fees_delta": fees_delta,
    }
