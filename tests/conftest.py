"""Shared test fixtures for the volume pipeline."""

from collections.abc import Callable

import pytest

from uniswap_volume.config import FetchSettings

# 2024-06-03 00:00:00 UTC, a Monday
MONDAY_TS = 1717372800


def _make_raw_swap(
    index: int,
    timestamp: int = MONDAY_TS,
    amount_usd: str | None = "10",
    fee_tier: str | None = "3000",
) -> dict:
    pool: dict = {"id": "0xpool", "token0": {"decimals": "18"}, "token1": {"decimals": "6"}}
    if fee_tier is not None:
        pool["feeTier"] = fee_tier
    return {
        "id": f"0xswap-{index}",
        "timestamp": str(timestamp),
        "amount0": "1.5",
        "amount1": "-3000.25",
        "amountUSD": amount_usd,
        "pool": pool,
    }


@pytest.fixture
def raw_swap() -> Callable[..., dict]:
    """Factory for swap dicts shaped like the subgraph's PoolSwaps response."""
    return _make_raw_swap


@pytest.fixture
def fetch_settings() -> FetchSettings:
    """FetchSettings with production pagination shape and no retry waits."""
    return FetchSettings(
        max_retries=0,
        retry_delay=0.0,
        transient_retry_delay=0.0,
        chain_timeout=None,
    )
