"""Paginated swap fetch pipeline with wave-based concurrency.

Swaps for one pool are pulled with skip/first pagination over a timestamp
floor (now - lookback). Page 0 is fetched alone; if it is full, further pages
are requested in waves of ``chunk_size`` through a ConcurrencyLimiter, each
wave awaited as a whole and then scanned in issue order:

- a successful page shorter than ``page_size`` means the pool is exhausted
- a failed page (after the client's retries) counts as empty and is logged
- ``empty_page_limit`` consecutive empty pages stop the fetch
Stopping returns everything accumulated so far, even mid-wave. At most
``max_waves`` waves are issued after page 0.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from uniswap_volume.config import FetchSettings
from uniswap_volume.data.limiter import ConcurrencyLimiter
from uniswap_volume.exceptions import PipelineError
from uniswap_volume.logging import get_logger
from uniswap_volume.models import ChainTarget, SwapRecord
from uniswap_volume.subgraph.client import GraphClient
from uniswap_volume.subgraph.queries import POOL_SWAPS_QUERY

logger = get_logger(__name__)

_WEEK_SECONDS = 7 * 24 * 60 * 60


@dataclass
class SwapPage:
    """One page request's outcome."""

    skip: int
    swaps: list[SwapRecord] = field(default_factory=list)
    failed: bool = False


class PaginatedSwapFetcher:
    """Fetches every swap of a pool inside the lookback window.

    Usage:
        fetcher = PaginatedSwapFetcher(graph_client, settings.fetch)
        swaps = await fetcher.fetch_swaps(target, pool_id)
    """

    def __init__(
        self,
        client: GraphClient,
        settings: FetchSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._settings = settings
        self._clock = clock

    def window_start(self) -> int:
        """Unix-seconds floor of the lookback window."""
        return int(self._clock()) - self._settings.lookback_weeks * _WEEK_SECONDS

    async def fetch_swaps(
        self, target: ChainTarget, pool_id: str | None = None
    ) -> list[SwapRecord]:
        """Return the pool's swaps in ascending timestamp order.

        An empty list means the window holds no swaps (or page 0 could not be
        fetched); the caller decides whether that is a failure.
        """
        pool_id = pool_id or target.pool_id
        since = self.window_start()
        page_size = self._settings.page_size

        first = await self._fetch_page(target, pool_id, since, 0)
        if not first.swaps:
            return []

        swaps = list(first.swaps)
        if len(first.swaps) < page_size:
            return swaps

        limiter = ConcurrencyLimiter(self._settings.max_concurrent_pages)
        next_skip = page_size
        empty_run = 0

        for wave in range(self._settings.max_waves):
            skips = [
                next_skip + i * page_size for i in range(self._settings.chunk_size)
            ]
            next_skip += self._settings.chunk_size * page_size

            pages = await asyncio.gather(
                *(
                    limiter.run(
                        lambda skip=skip: self._fetch_page(target, pool_id, since, skip)
                    )
                    for skip in skips
                )
            )

            # gather() preserves issue order, so accumulation follows ascending skip
            for page in pages:
                if page.swaps:
                    swaps.extend(page.swaps)
                    empty_run = 0
                else:
                    empty_run += 1

                if empty_run >= self._settings.empty_page_limit:
                    logger.info(
                        "swap_fetch_stopped_empty_pages",
                        skip=page.skip,
                        empty_pages=empty_run,
                        swaps=len(swaps),
                    )
                    return swaps

                if not page.failed and len(page.swaps) < page_size:
                    logger.debug(
                        "swap_fetch_exhausted",
                        skip=page.skip,
                        swaps=len(swaps),
                    )
                    return swaps

            logger.debug("swap_fetch_wave_complete", wave=wave + 1, swaps=len(swaps))

        logger.warning(
            "swap_fetch_ceiling_reached",
            waves=self._settings.max_waves,
            swaps=len(swaps),
        )
        return swaps

    async def _fetch_page(
        self, target: ChainTarget, pool_id: str, since: int, skip: int
    ) -> SwapPage:
        """Fetch one page; failures are downgraded to an empty, failed page."""
        try:
            data = await self._client.request(
                target.endpoint_url,
                POOL_SWAPS_QUERY,
                {
                    "poolId": pool_id,
                    "timestamp": since,
                    "skip": skip,
                    "first": self._settings.page_size,
                },
                max_retries=self._settings.max_retries,
            )
            raw_swaps = data.get("swaps") or []
            if not isinstance(raw_swaps, list):
                raise ValueError(f"swaps is not a list: {type(raw_swaps).__name__}")
            swaps = [SwapRecord.from_subgraph(raw) for raw in raw_swaps]
        except (PipelineError, KeyError, TypeError, ValueError) as exc:
            logger.warning("swap_page_failed", skip=skip, error=str(exc))
            return SwapPage(skip=skip, failed=True)

        return SwapPage(skip=skip, swaps=swaps)
