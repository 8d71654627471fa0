"""Pipeline orchestrator -- runs every chain concurrently and assembles the snapshot.

Each configured chain is an independent task:
  1. POOL: fetch pool details; missing pool fails the chain ("Pool not found")
  2. SWAPS: paginated fetch over the lookback window; none fails the chain
  3. AGGREGATE: daily buckets -> weekly and monthly series, total volume for the log
Any exception inside a chain task becomes that chain's failure record; no
chain can abort another. The result is assembled once, after every task has
settled, from the successful chains only.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import structlog

from uniswap_volume.analytics.aggregator import (
    aggregate_monthly,
    aggregate_weekly,
    bucket_daily,
    total_volume,
)
from uniswap_volume.config import FetchSettings
from uniswap_volume.data.fetcher import PaginatedSwapFetcher
from uniswap_volume.exceptions import EmptyResultError, PoolNotFoundError
from uniswap_volume.logging import get_logger
from uniswap_volume.models import (
    ChainResult,
    ChainTarget,
    PipelineProgress,
    PipelineResult,
    PoolMetadata,
)
from uniswap_volume.subgraph.client import GraphClient
from uniswap_volume.subgraph.queries import POOL_DETAILS_QUERY

logger = get_logger(__name__)


class PipelineOrchestrator:
    """Drives the fetch-aggregate pipeline across all chain targets.

    Args:
        client: GraphQL client shared by all chains.
        fetcher: Paginated swap fetcher (shares the same client).
        settings: Fetch settings (retry budget, optional per-chain timeout).
    """

    def __init__(
        self,
        client: GraphClient,
        fetcher: PaginatedSwapFetcher,
        settings: FetchSettings,
    ) -> None:
        self._client = client
        self._fetcher = fetcher
        self._settings = settings
        self.progress: PipelineProgress | None = None
        self.chain_results: list[ChainResult] = []

    async def run(self, targets: list[ChainTarget]) -> PipelineResult:
        """Process all targets in parallel and return the assembled result.

        Zero targets is valid and yields an empty result.
        """
        started_at = datetime.now(timezone.utc)
        progress = PipelineProgress(total=len(targets))
        self.progress = progress

        logger.info(
            "pipeline_starting",
            chains=len(targets),
            window_start=datetime.fromtimestamp(
                self._fetcher.window_start(), tz=timezone.utc
            ).isoformat(),
            max_concurrent_pages=self._settings.max_concurrent_pages,
        )

        self.chain_results = list(
            await asyncio.gather(*(self._run_chain(t, progress) for t in targets))
        )

        result = self._assemble(self.chain_results, started_at)
        logger.info(
            "pipeline_complete",
            successful=progress.successful,
            failed=progress.failed,
            total=progress.total,
        )
        return result

    async def fetch_pool(self, target: ChainTarget) -> dict:
        """Fetch pool details for a target.

        Raises:
            PoolNotFoundError: The subgraph has no pool with the configured id.
        """
        data = await self._client.request(
            target.endpoint_url,
            POOL_DETAILS_QUERY,
            {"poolId": target.pool_id},
            max_retries=self._settings.max_retries,
        )
        pool = data.get("pool")
        if not pool:
            raise PoolNotFoundError(target.name, target.pool_id)
        return pool

    async def _run_chain(
        self, target: ChainTarget, progress: PipelineProgress
    ) -> ChainResult:
        """Chain-task boundary: every failure is converted to a ChainResult."""
        start = time.monotonic()
        timeout = self._settings.chain_timeout

        with structlog.contextvars.bound_contextvars(chain=target.name):
            try:
                result = await asyncio.wait_for(self._process_chain(target), timeout)
            except Exception as exc:
                if timeout and isinstance(exc, asyncio.TimeoutError):
                    error = f"Timed out after {timeout}s"
                else:
                    error = str(exc) or exc.__class__.__name__
                result = ChainResult(chain=target.name, success=False, error=error)

            result.duration_seconds = round(time.monotonic() - start, 1)
            progress.record(result.success)

            if result.success:
                logger.info(
                    "chain_completed",
                    progress=progress.label,
                    pair=result.metadata.pair if result.metadata else None,
                    swaps=result.swap_count,
                    weeks=len(result.weekly),
                    months=len(result.monthly),
                    volume_usd=f"{result.total_volume:,.0f}",
                    duration_seconds=result.duration_seconds,
                )
            else:
                logger.warning(
                    "chain_failed",
                    progress=progress.label,
                    reason=result.error,
                    duration_seconds=result.duration_seconds,
                )
        return result

    async def _process_chain(self, target: ChainTarget) -> ChainResult:
        pool = await self.fetch_pool(target)
        metadata = PoolMetadata.from_pool(pool)

        swaps = await self._fetcher.fetch_swaps(target, metadata.pool_id)
        if not swaps:
            raise EmptyResultError(target.name)

        daily = bucket_daily(swaps)
        return ChainResult(
            chain=target.name,
            success=True,
            weekly=aggregate_weekly(daily),
            monthly=aggregate_monthly(daily),
            metadata=metadata,
            swap_count=len(swaps),
            total_volume=total_volume(daily),
        )

    @staticmethod
    def _assemble(results: list[ChainResult], started_at: datetime) -> PipelineResult:
        succeeded = [r for r in results if r.success and r.metadata is not None]
        return PipelineResult(
            chains={r.chain: r.weekly for r in succeeded},
            pool_metadata={r.chain: r.metadata for r in succeeded},
            last_updated=started_at,
            monthly={r.chain: r.monthly for r in succeeded},
        )
