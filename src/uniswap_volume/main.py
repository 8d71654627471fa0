"""Entry points for the volume pipeline.

``main`` runs one fetch: discover chains, run the orchestrator, write the
snapshot. A failure while assembling or writing the snapshot is fatal and
exits non-zero; per-chain failures never are.

``serve`` runs the read-only snapshot API under uvicorn.

Component wiring order (in run):
1. AppSettings (configuration)
2. Chain targets (V4_SUBGRAPH_URL_<NAME> / <NAME>_POOL)
3. RetryPolicy + GraphClient (shared httpx connection pool)
4. PaginatedSwapFetcher
5. PipelineOrchestrator
6. Snapshot writer
"""

import asyncio
import sys
import time

import uvicorn

from uniswap_volume.config import AppSettings, load_chain_targets
from uniswap_volume.data.fetcher import PaginatedSwapFetcher
from uniswap_volume.data.snapshot import write_snapshot
from uniswap_volume.logging import get_logger, setup_logging
from uniswap_volume.models import ChainTarget, PipelineResult
from uniswap_volume.orchestrator import PipelineOrchestrator
from uniswap_volume.subgraph.client import GraphClient
from uniswap_volume.subgraph.retry import RetryPolicy, substring_classifier


async def run(
    settings: AppSettings,
    targets: list[ChainTarget] | None = None,
    client: GraphClient | None = None,
) -> PipelineResult:
    """Run the pipeline once and write the snapshot.

    Args:
        settings: Application-wide settings.
        targets: Chains to process; discovered from the environment when None.
        client: Pre-built GraphQL client (tests); built from settings when None.

    Returns:
        The PipelineResult that was written.
    """
    logger = get_logger("uniswap_volume.main")

    if targets is None:
        targets = load_chain_targets()

    if not targets:
        logger.warning("no_chains_configured")

    if client is None:
        client = GraphClient(
            retry_policy=RetryPolicy.from_settings(settings.fetch),
            is_transient=substring_classifier(settings.fetch.transient_error_patterns),
            timeout=settings.fetch.request_timeout,
        )

    async with client:
        fetcher = PaginatedSwapFetcher(client, settings.fetch)
        orchestrator = PipelineOrchestrator(client, fetcher, settings.fetch)
        result = await orchestrator.run(targets)

    write_snapshot(result, settings.output.path, indent=settings.output.indent)
    return result


def main() -> None:
    """Synchronous entry point for a fetch run."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("uniswap_volume.main")

    start = time.monotonic()
    try:
        result = asyncio.run(run(settings))
    except Exception as exc:
        logger.exception("fatal_error", error=str(exc))
        sys.exit(1)

    logger.info(
        "fetch_run_complete",
        path=settings.output.path,
        chains=len(result.chains),
        elapsed_seconds=round(time.monotonic() - start, 1),
    )


def serve() -> None:
    """Synchronous entry point for the snapshot API server."""
    from uniswap_volume.dashboard.app import create_dashboard_app

    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("uniswap_volume.main")

    app = create_dashboard_app(settings.dashboard.snapshot_path)
    logger.info(
        "starting_dashboard_api",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        snapshot_path=settings.dashboard.snapshot_path,
    )
    uvicorn.run(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
