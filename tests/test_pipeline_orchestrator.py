"""Tests for PipelineOrchestrator.

Tests verify:
- Zero configured chains yields an empty, valid result
- Missing pool marks the chain failed and omits it from the output
- Empty swap window marks the chain failed
- An exception in one chain never affects the others
- Successful chains carry weekly and monthly series and pool metadata
- Per-chain timeout converts to a failure record
- Chains run concurrently
"""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from uniswap_volume.config import FetchSettings
from uniswap_volume.data.fetcher import PaginatedSwapFetcher
from uniswap_volume.exceptions import TransportError
from uniswap_volume.models import ChainTarget, SwapRecord
from uniswap_volume.orchestrator import PipelineOrchestrator
from uniswap_volume.subgraph.queries import POOL_DETAILS_QUERY

MONDAY_TS = 1717372800
DAY = 86_400

BASE = ChainTarget("BASE", "https://sg.example/base", "0xbase")
ARBITRUM = ChainTarget("ARBITRUM", "https://sg.example/arb", "0xarb")
MISSING = ChainTarget("X", "https://sg.example/x", "0xnothing")


def _pool(pool_id: str) -> dict:
    return {
        "id": pool_id,
        "token0": {"id": "0xa", "symbol": "ETH", "decimals": "18"},
        "token1": {"id": "0xb", "symbol": "USDC", "decimals": "6"},
        "feeTier": "3000",
        "txCount": "10",
        "totalValueLockedUSD": "1000",
    }


def _swaps(count: int = 3) -> list[SwapRecord]:
    return [
        SwapRecord(
            id=f"0x{i}",
            timestamp=MONDAY_TS + i * DAY,
            amount0="1",
            amount1="-1",
            amount_usd="100",
            fee_tier=3000,
        )
        for i in range(count)
    ]


@pytest.fixture
def client() -> AsyncMock:
    """Client answering pool-details for every target except MISSING."""

    async def request(url, query, variables, max_retries=None):
        assert query == POOL_DETAILS_QUERY
        if variables["poolId"] == MISSING.pool_id:
            return {"pool": None}
        return {"pool": _pool(variables["poolId"])}

    mock = AsyncMock()
    mock.request.side_effect = request
    return mock


@pytest.fixture
def fetcher() -> MagicMock:
    mock = MagicMock(spec=PaginatedSwapFetcher)
    mock.window_start.return_value = MONDAY_TS - 8 * 7 * DAY
    mock.fetch_swaps = AsyncMock(return_value=_swaps())
    return mock


@pytest.fixture
def orchestrator(
    client: AsyncMock, fetcher: MagicMock, fetch_settings: FetchSettings
) -> PipelineOrchestrator:
    return PipelineOrchestrator(client, fetcher, fetch_settings)


class TestRun:
    @pytest.mark.asyncio()
    async def test_zero_chains_yields_empty_result(
        self, orchestrator: PipelineOrchestrator
    ) -> None:
        result = await orchestrator.run([])

        assert result.chains == {}
        assert result.pool_metadata == {}
        assert result.last_updated is not None
        assert orchestrator.progress.total == 0
        assert orchestrator.progress.failed == 0

    @pytest.mark.asyncio()
    async def test_successful_chain_is_assembled(
        self, orchestrator: PipelineOrchestrator, fetcher: MagicMock
    ) -> None:
        result = await orchestrator.run([BASE])

        assert list(result.chains) == ["BASE"]
        weekly = result.chains["BASE"]
        assert [w.date_key for w in weekly] == ["2024-06-03"]
        assert weekly[0].volume_usd == Decimal("300")
        assert weekly[0].fees_usd == Decimal("0.9")
        monthly = result.monthly["BASE"]
        assert [m.date_key for m in monthly] == ["2024-06-01"]
        assert monthly[0].volume_usd == Decimal("300")

        meta = result.pool_metadata["BASE"]
        assert meta.pair == "ETH/USDC"
        assert meta.fee_percent == "0.300000%"

        fetcher.fetch_swaps.assert_awaited_once_with(BASE, "0xbase")
        chain_result = orchestrator.chain_results[0]
        assert chain_result.swap_count == 3
        assert chain_result.total_volume == Decimal("300")

    @pytest.mark.asyncio()
    async def test_missing_pool_marks_chain_failed(
        self, orchestrator: PipelineOrchestrator, fetcher: MagicMock
    ) -> None:
        result = await orchestrator.run([BASE, MISSING])

        assert "X" not in result.chains
        assert "X" not in result.pool_metadata
        assert "BASE" in result.chains
        assert orchestrator.progress.failed == 1
        assert orchestrator.progress.successful == 1
        failed = next(r for r in orchestrator.chain_results if r.chain == "X")
        assert failed.error == "Pool not found"
        # The missing chain never reaches the swap fetch
        assert fetcher.fetch_swaps.await_count == 1

    @pytest.mark.asyncio()
    async def test_no_swaps_marks_chain_failed(
        self, orchestrator: PipelineOrchestrator, fetcher: MagicMock
    ) -> None:
        fetcher.fetch_swaps.return_value = []

        result = await orchestrator.run([BASE])

        assert result.chains == {}
        assert orchestrator.chain_results[0].error == "No swaps in time range"
        assert orchestrator.progress.failed == 1

    @pytest.mark.asyncio()
    async def test_exception_in_one_chain_does_not_affect_others(
        self, orchestrator: PipelineOrchestrator, fetcher: MagicMock
    ) -> None:
        async def fetch_swaps(target, pool_id):
            if target.name == "ARBITRUM":
                raise TransportError("connection reset")
            return _swaps()

        fetcher.fetch_swaps.side_effect = fetch_swaps

        result = await orchestrator.run([ARBITRUM, BASE])

        assert list(result.chains) == ["BASE"]
        assert orchestrator.progress.total == 2
        assert orchestrator.progress.completed == 2
        assert orchestrator.progress.failed == 1
        failed = next(r for r in orchestrator.chain_results if r.chain == "ARBITRUM")
        assert failed.error == "connection reset"

    @pytest.mark.asyncio()
    async def test_pool_request_failure_is_contained(
        self, orchestrator: PipelineOrchestrator, client: AsyncMock
    ) -> None:
        client.request.side_effect = TransportError("dns failure")

        result = await orchestrator.run([BASE, ARBITRUM])

        assert result.chains == {}
        assert orchestrator.progress.failed == 2

    @pytest.mark.asyncio()
    async def test_chain_timeout_becomes_failure(
        self, client: AsyncMock, fetcher: MagicMock
    ) -> None:
        settings = FetchSettings(max_retries=0, chain_timeout=0.01)

        async def slow_fetch(target, pool_id):
            await asyncio.sleep(1)
            return _swaps()

        fetcher.fetch_swaps.side_effect = slow_fetch
        orchestrator = PipelineOrchestrator(client, fetcher, settings)

        result = await orchestrator.run([BASE])

        assert result.chains == {}
        assert orchestrator.chain_results[0].error == "Timed out after 0.01s"

    @pytest.mark.asyncio()
    async def test_inner_timeout_without_budget_keeps_own_reason(
        self, orchestrator: PipelineOrchestrator, fetcher: MagicMock
    ) -> None:
        async def fetch_swaps(target, pool_id):
            if target.name == "BASE":
                raise TimeoutError("read timed out")
            raise TimeoutError()

        fetcher.fetch_swaps.side_effect = fetch_swaps

        await orchestrator.run([ARBITRUM, BASE])

        errors = {r.chain: r.error for r in orchestrator.chain_results}
        assert errors == {"BASE": "read timed out", "ARBITRUM": "TimeoutError"}

    @pytest.mark.asyncio()
    async def test_chains_run_concurrently(
        self, orchestrator: PipelineOrchestrator, fetcher: MagicMock
    ) -> None:
        both_started = asyncio.Event()
        started: list[str] = []

        async def fetch_swaps(target, pool_id):
            started.append(target.name)
            if len(started) == 2:
                both_started.set()
            # Deadlocks unless both chains are in flight at once
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return _swaps()

        fetcher.fetch_swaps.side_effect = fetch_swaps

        result = await orchestrator.run([BASE, ARBITRUM])

        assert set(result.chains) == {"BASE", "ARBITRUM"}
