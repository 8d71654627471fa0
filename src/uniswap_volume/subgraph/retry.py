"""Bounded retry policy and transient-error classification for subgraph requests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uniswap_volume.config import FetchSettings

Sleep = Callable[[float], Awaitable[None]]
TransientClassifier = Callable[[Any], bool]


def substring_classifier(patterns: Iterable[str]) -> TransientClassifier:
    """Build a classifier that flags an errors payload as transient.

    The payload is matched case-insensitively against its JSON text, so both
    ``[{"message": "bad indexers: ..."}]`` and nested gateway error shapes are
    caught. Swap this for a structured error-code check if the gateway ever
    exposes one.
    """
    lowered = [p.lower() for p in patterns if p]

    def is_transient(errors: Any) -> bool:
        text = json.dumps(errors, default=str).lower()
        return any(pattern in text for pattern in lowered)

    return is_transient


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff for a single logical request.

    ``max_retries`` counts additional attempts, so the request is issued at most
    ``max_retries + 1`` times. Delays are fixed per error class unless
    ``exponential`` is set, in which case they double with every attempt.
    ``sleep`` is injectable so tests never wait on the wall clock.
    """

    max_retries: int = 2
    retry_delay: float = 2.0
    transient_retry_delay: float = 3.0
    exponential: bool = False
    sleep: Sleep = asyncio.sleep

    @classmethod
    def from_settings(
        cls, settings: FetchSettings, sleep: Sleep | None = None
    ) -> RetryPolicy:
        return cls(
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            transient_retry_delay=settings.transient_retry_delay,
            exponential=settings.exponential_backoff,
            sleep=sleep or asyncio.sleep,
        )

    def delay_for(self, attempt: int, transient: bool) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""
        base = self.transient_retry_delay if transient else self.retry_delay
        if self.exponential:
            return base * (2**attempt)
        return base

    async def wait(self, attempt: int, transient: bool) -> float:
        delay = self.delay_for(attempt, transient)
        await self.sleep(delay)
        return delay
