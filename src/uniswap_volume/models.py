"""Shared data models for the volume pipeline.

Accumulators use Decimal so per-day sums are exact; values become floats only
when the snapshot is serialized. All amount parsing goes through to_decimal().
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

DEFAULT_FEE_TIER = 3000  # 0.30%, used when a swap carries no pool fee tier
FEE_TIER_DENOMINATOR = Decimal("1000000")  # fee tiers are parts-per-million


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Convert a subgraph decimal string (or number) to Decimal.

    None, empty strings and unparsable input map to ``default``. Floats are
    routed through str() so 0.1 stays 0.1 rather than its binary expansion.
    """
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


@dataclass(frozen=True)
class ChainTarget:
    """One (chain, pool) unit of work."""

    name: str
    endpoint_url: str
    pool_id: str


@dataclass(frozen=True)
class SwapRecord:
    """A single swap as returned by the subgraph."""

    id: str
    timestamp: int  # Unix seconds
    amount0: str
    amount1: str
    amount_usd: str
    fee_tier: int | None = None

    @classmethod
    def from_subgraph(cls, raw: dict) -> "SwapRecord":
        if not isinstance(raw, dict):
            raise ValueError(f"Swap entry is not an object: {raw!r}")
        pool = raw.get("pool")
        if not isinstance(pool, dict):
            pool = {}
        fee_tier = pool.get("feeTier")
        return cls(
            id=str(raw.get("id", "")),
            timestamp=int(raw["timestamp"]),
            amount0=str(raw.get("amount0") or "0"),
            amount1=str(raw.get("amount1") or "0"),
            amount_usd=str(raw.get("amountUSD") or ""),
            fee_tier=int(to_decimal(fee_tier)) if fee_tier not in (None, "") else None,
        )

    @property
    def fee_rate(self) -> Decimal:
        """Fee as a fraction of volume (3000 -> 0.003)."""
        tier = self.fee_tier if self.fee_tier is not None else DEFAULT_FEE_TIER
        return Decimal(tier) / FEE_TIER_DENOMINATOR


@dataclass
class DailyBucket:
    """Volume and fees for one UTC calendar day on one chain."""

    date_key: str  # YYYY-MM-DD
    timestamp: int  # first swap timestamp seen for the day
    volume_usd: Decimal = Decimal("0")
    fees_usd: Decimal = Decimal("0")

    def add(self, volume_usd: Decimal, fees_usd: Decimal) -> None:
        self.volume_usd += volume_usd
        self.fees_usd += fees_usd

    @property
    def day_start(self) -> int:
        """Midnight UTC of the bucket's day, in Unix seconds."""
        return (self.timestamp // 86_400) * 86_400


@dataclass
class PeriodBucket:
    """Volume and fees rolled up over a calendar period starting at date_key."""

    date_key: str
    volume_usd: Decimal = Decimal("0")
    fees_usd: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "date": self.date_key,
            "volume": float(self.volume_usd),
            "fees": float(self.fees_usd),
        }


@dataclass
class WeeklyBucket(PeriodBucket):
    """ISO week (Monday through Sunday, UTC) keyed by its Monday."""


@dataclass
class MonthlyBucket(PeriodBucket):
    """Calendar month keyed by its first day (YYYY-MM-01)."""


@dataclass(frozen=True)
class PoolMetadata:
    """Pool details captured once per chain from the pool-details query."""

    pool_id: str
    pair: str
    fee_tier: int
    fee_percent: str
    tx_count: int = 0
    tvl_usd: Decimal = Decimal("0")

    @classmethod
    def from_pool(cls, pool: dict) -> "PoolMetadata":
        token0 = pool.get("token0") or {}
        token1 = pool.get("token1") or {}
        fee_tier = int(to_decimal(pool.get("feeTier"), Decimal(DEFAULT_FEE_TIER)))
        return cls(
            pool_id=str(pool["id"]),
            pair=f"{token0.get('symbol', '?')}/{token1.get('symbol', '?')}",
            fee_tier=fee_tier,
            fee_percent=f"{Decimal(fee_tier) / Decimal(10000):.6f}%",
            tx_count=int(to_decimal(pool.get("txCount"))),
            tvl_usd=to_decimal(pool.get("totalValueLockedUSD")),
        )

    def to_dict(self) -> dict:
        return {
            "poolId": self.pool_id,
            "pair": self.pair,
            "feeTier": self.fee_tier,
            "feePercent": self.fee_percent,
        }


@dataclass
class ChainResult:
    """Outcome of one chain task. Failed chains carry only chain and error."""

    chain: str
    success: bool
    weekly: list[WeeklyBucket] = field(default_factory=list)
    monthly: list[MonthlyBucket] = field(default_factory=list)
    metadata: PoolMetadata | None = None
    error: str | None = None
    swap_count: int = 0
    total_volume: Decimal = Decimal("0")
    duration_seconds: float = 0.0


@dataclass
class PipelineProgress:
    """Per-run counters, passed explicitly to every chain task."""

    total: int
    completed: int = 0
    successful: int = 0
    failed: int = 0

    def record(self, success: bool) -> None:
        self.completed += 1
        if success:
            self.successful += 1
        else:
            self.failed += 1

    @property
    def label(self) -> str:
        return f"{self.completed}/{self.total}"


@dataclass(frozen=True)
class PipelineResult:
    """Final artifact of one run. Assembled once from successful chains."""

    chains: dict[str, list[WeeklyBucket]]
    pool_metadata: dict[str, PoolMetadata]
    last_updated: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    monthly: dict[str, list[MonthlyBucket]] | None = None

    def to_dict(self) -> dict:
        """Serialize to the snapshot contract consumed by the dashboard.

        The monthly series is an extra top-level key, present only when the
        result carries one; readers of the weekly contract ignore it.
        """
        stamp = self.last_updated.astimezone(timezone.utc)
        data = {
            "chains": {
                name: [bucket.to_dict() for bucket in history]
                for name, history in sorted(self.chains.items())
            },
            "poolMetadata": {
                name: meta.to_dict()
                for name, meta in sorted(self.pool_metadata.items())
            },
            "lastUpdated": stamp.isoformat(timespec="milliseconds").replace(
                "+00:00", "Z"
            ),
        }
        if self.monthly is not None:
            data["monthly"] = {
                name: [bucket.to_dict() for bucket in history]
                for name, history in sorted(self.monthly.items())
            }
        return data
