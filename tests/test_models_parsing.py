"""Tests for model construction from subgraph payloads and decimal parsing."""

from decimal import Decimal

import pytest

from uniswap_volume.models import (
    PipelineProgress,
    PoolMetadata,
    SwapRecord,
    to_decimal,
)


class TestToDecimal:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("123.456", Decimal("123.456")),
            ("-0.5", Decimal("-0.5")),
            (42, Decimal("42")),
            (0.1, Decimal("0.1")),
            (None, Decimal("0")),
            ("", Decimal("0")),
            ("not-a-number", Decimal("0")),
            ("NaN", Decimal("0")),
            ("Infinity", Decimal("0")),
        ],
    )
    def test_conversion(self, value, expected: Decimal) -> None:
        assert to_decimal(value) == expected

    def test_custom_default(self) -> None:
        assert to_decimal(None, Decimal("3000")) == Decimal("3000")


class TestSwapRecord:
    def test_from_subgraph(self, raw_swap) -> None:
        swap = SwapRecord.from_subgraph(raw_swap(7, timestamp=1717372800, amount_usd="99.5", fee_tier="500"))

        assert swap.id == "0xswap-7"
        assert swap.timestamp == 1717372800
        assert swap.amount_usd == "99.5"
        assert swap.fee_tier == 500
        assert swap.fee_rate == Decimal("0.0005")

    def test_missing_fee_tier_uses_default_rate(self, raw_swap) -> None:
        swap = SwapRecord.from_subgraph(raw_swap(1, fee_tier=None))

        assert swap.fee_tier is None
        assert swap.fee_rate == Decimal("0.003")

    def test_missing_timestamp_raises(self) -> None:
        with pytest.raises(KeyError):
            SwapRecord.from_subgraph({"id": "0x1", "amountUSD": "1"})

    @pytest.mark.parametrize("raw", ["garbage", 7, None, ["0x1"]])
    def test_non_object_entry_raises_value_error(self, raw) -> None:
        with pytest.raises(ValueError, match="not an object"):
            SwapRecord.from_subgraph(raw)


class TestPoolMetadata:
    def test_from_pool(self) -> None:
        pool = {
            "id": "0xpool",
            "token0": {"id": "0xa", "symbol": "ETH", "decimals": "18"},
            "token1": {"id": "0xb", "symbol": "USDC", "decimals": "6"},
            "feeTier": "3000",
            "txCount": "123456",
            "totalValueLockedUSD": "1500000.25",
        }

        meta = PoolMetadata.from_pool(pool)

        assert meta.pair == "ETH/USDC"
        assert meta.fee_tier == 3000
        assert meta.fee_percent == "0.300000%"
        assert meta.tx_count == 123456
        assert meta.tvl_usd == Decimal("1500000.25")
        assert meta.to_dict() == {
            "poolId": "0xpool",
            "pair": "ETH/USDC",
            "feeTier": 3000,
            "feePercent": "0.300000%",
        }

    @pytest.mark.parametrize(
        ("fee_tier", "label"),
        [("100", "0.010000%"), ("500", "0.050000%"), ("10000", "1.000000%"), ("8388608", "838.860800%")],
    )
    def test_fee_percent_labels(self, fee_tier: str, label: str) -> None:
        meta = PoolMetadata.from_pool(
            {"id": "0x1", "token0": {"symbol": "A"}, "token1": {"symbol": "B"}, "feeTier": fee_tier}
        )

        assert meta.fee_percent == label


class TestPipelineProgress:
    def test_record_counts(self) -> None:
        progress = PipelineProgress(total=3)

        progress.record(True)
        progress.record(False)

        assert (progress.completed, progress.successful, progress.failed) == (2, 1, 1)
        assert progress.label == "2/3"
