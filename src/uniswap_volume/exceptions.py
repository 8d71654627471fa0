"""Custom exceptions for the volume pipeline.

Transport and GraphQL failures are raised by the subgraph client; the
pool/empty-result errors are raised inside a chain task and converted into
failure records at the chain boundary by the orchestrator.
"""

from typing import Any


class PipelineError(Exception):
    """Base exception for all pipeline errors."""


class TransportError(PipelineError):
    """Raised when a request cannot be delivered or its response cannot be read."""


class GraphQLError(PipelineError):
    """Raised when a well-formed response carries an ``errors`` payload."""

    def __init__(self, errors: Any) -> None:
        self.errors = errors
        super().__init__(str(errors))


class PoolNotFoundError(PipelineError):
    """Raised when the pool-details query returns no pool."""

    def __init__(self, chain: str, pool_id: str) -> None:
        self.chain = chain
        self.pool_id = pool_id
        super().__init__("Pool not found")


class EmptyResultError(PipelineError):
    """Raised when no swaps fall inside the lookback window."""

    def __init__(self, chain: str) -> None:
        self.chain = chain
        super().__init__("No swaps in time range")


class SnapshotError(PipelineError):
    """Raised when the JSON snapshot cannot be written or read."""
