"""Swap retrieval and snapshot persistence.

Provides the FIFO concurrency limiter, the wave-based paginated swap fetcher,
and the JSON snapshot writer/reader.
"""

from uniswap_volume.data.fetcher import PaginatedSwapFetcher, SwapPage
from uniswap_volume.data.limiter import ConcurrencyLimiter
from uniswap_volume.data.snapshot import read_snapshot, write_snapshot

__all__ = [
    "ConcurrencyLimiter",
    "PaginatedSwapFetcher",
    "SwapPage",
    "read_snapshot",
    "write_snapshot",
]
