"""GraphQL client for Uniswap subgraph endpoints.

One POST per attempt with bounded retry:
- transport failures (connection errors, timeouts, HTTP errors without a
  GraphQL body, undecodable JSON) wait ``retry_delay`` and retry
- GraphQL ``errors`` payloads matching a transient pattern ("bad indexers")
  wait ``transient_retry_delay`` and retry
- any other GraphQL error is raised immediately
After the budget is spent the last error is raised.
"""

from __future__ import annotations

from typing import Any

import httpx

from uniswap_volume.exceptions import GraphQLError, TransportError
from uniswap_volume.logging import get_logger
from uniswap_volume.subgraph.retry import (
    RetryPolicy,
    TransientClassifier,
    substring_classifier,
)

logger = get_logger(__name__)


class GraphClient:
    """Issues GraphQL requests over a shared httpx.AsyncClient.

    Usage:
        async with GraphClient(RetryPolicy()) as client:
            data = await client.request(url, POOL_DETAILS_QUERY, {"poolId": pid})
    """

    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        is_transient: TransientClassifier | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._policy = retry_policy or RetryPolicy()
        self._is_transient = is_transient or substring_classifier(["bad indexers"])
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> GraphClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def request(
        self,
        url: str,
        query: str,
        variables: dict[str, Any],
        max_retries: int | None = None,
    ) -> dict:
        """Execute one GraphQL operation and return its ``data`` object.

        Args:
            url: Subgraph endpoint.
            query: GraphQL document.
            variables: Operation variables.
            max_retries: Additional attempts; defaults to the policy's budget.

        Returns:
            The response ``data`` dict ({} when the response has none).

        Raises:
            GraphQLError: Non-transient errors payload, or transient retries exhausted.
            TransportError: Transport failure on the final attempt.
        """
        retries = self._policy.max_retries if max_retries is None else max(0, max_retries)
        last_error: Exception | None = None

        for attempt in range(retries + 1):
            try:
                payload = await self._post(url, query, variables)
            except TransportError as exc:
                last_error = exc
                if attempt == retries:
                    break
                delay = await self._policy.wait(attempt, transient=False)
                logger.warning(
                    "graphql_transport_retry",
                    attempt=attempt + 1,
                    max_retries=retries,
                    delay=delay,
                    error=str(exc),
                )
                continue

            errors = payload.get("errors")
            if not errors:
                return payload.get("data") or {}

            last_error = GraphQLError(errors)
            if not self._is_transient(errors) or attempt == retries:
                raise last_error

            delay = await self._policy.wait(attempt, transient=True)
            logger.warning(
                "graphql_transient_retry",
                attempt=attempt + 1,
                max_retries=retries,
                delay=delay,
            )

        logger.error("graphql_request_failed", attempts=retries + 1, error=str(last_error))
        raise last_error  # type: ignore[misc]

    async def _post(self, url: str, query: str, variables: dict[str, Any]) -> dict:
        try:
            response = await self._http.post(
                url, json={"query": query, "variables": variables}
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {url} failed: {exc!r}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Undecodable response from {url} (HTTP {response.status_code})"
            ) from exc

        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected response shape from {url}")

        # Gateways report indexer problems with 4xx/5xx plus a GraphQL body;
        # those go through the errors path so they can be classified.
        if response.is_error and not payload.get("errors"):
            raise TransportError(f"HTTP {response.status_code} from {url}")

        return payload
