"""Subgraph access layer -- GraphQL over HTTP via httpx."""

from uniswap_volume.subgraph.client import GraphClient
from uniswap_volume.subgraph.retry import RetryPolicy, substring_classifier

__all__ = ["GraphClient", "RetryPolicy", "substring_classifier"]
