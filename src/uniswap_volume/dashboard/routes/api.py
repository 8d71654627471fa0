"""JSON API endpoints over the snapshot: chain list, combined history, headline summary."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from uniswap_volume.analytics import metrics as analytics_metrics
from uniswap_volume.data.snapshot import read_snapshot
from uniswap_volume.exceptions import SnapshotError

log = structlog.get_logger(__name__)

router = APIRouter()

Period = Literal["weekly", "monthly"]


def _decimal_to_float(obj: Any) -> Any:
    """Recursively convert Decimal values to floats for JSON serialization."""
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_float(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_float(item) for item in obj]
    return obj


def _load(request: Request) -> dict | JSONResponse:
    try:
        return read_snapshot(request.app.state.snapshot_path)
    except SnapshotError as e:
        log.warning("snapshot_unavailable", error=str(e))
        return JSONResponse(
            content={"error": "Snapshot not available. Run the fetcher first."},
            status_code=503,
        )


def _combined(snapshot: dict, chain: str, period: str) -> list[dict] | JSONResponse:
    try:
        return analytics_metrics.combine_chains(snapshot, chain, period)
    except KeyError:
        return JSONResponse(
            content={"error": f"Unknown chain: {chain}"}, status_code=404
        )


@router.get("/chains")
async def get_chains(request: Request) -> JSONResponse:
    """Chains present in the snapshot with their pool metadata."""
    snapshot = _load(request)
    if isinstance(snapshot, JSONResponse):
        return snapshot

    return JSONResponse(content={
        "chains": sorted(snapshot["chains"]),
        "poolMetadata": snapshot["poolMetadata"],
        "lastUpdated": snapshot.get("lastUpdated"),
    })


@router.get("/history")
async def get_history(
    request: Request,
    chain: str = analytics_metrics.ALL_CHAINS,
    period: Period = "weekly",
    limit: int = 12,
) -> JSONResponse:
    """Combined volume/fee series for a chain selection.

    Query params:
        chain: Chain name or "ALL" (default).
        period: "weekly" (default) or "monthly".
        limit: Most recent periods to return (default 12, 0 for all).
    """
    snapshot = _load(request)
    if isinstance(snapshot, JSONResponse):
        return snapshot

    history = _combined(snapshot, chain, period)
    if isinstance(history, JSONResponse):
        return history

    if limit > 0:
        history = history[-limit:]

    return JSONResponse(content=_decimal_to_float(
        {"chain": chain, "period": period, "history": history}
    ))


@router.get("/summary")
async def get_summary(
    request: Request,
    chain: str = analytics_metrics.ALL_CHAINS,
    period: Period = "weekly",
) -> JSONResponse:
    """Latest-period volume and fees with percent change vs. the prior period."""
    snapshot = _load(request)
    if isinstance(snapshot, JSONResponse):
        return snapshot

    history = _combined(snapshot, chain, period)
    if isinstance(history, JSONResponse):
        return history

    summary = analytics_metrics.summarize(history)
    return JSONResponse(content=_decimal_to_float({"chain": chain, "period": period, **summary}))
