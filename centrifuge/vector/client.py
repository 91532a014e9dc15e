"""Retrying vector index client.

Transport errors and malformed responses are both retried. Once retries are
exhausted ``query`` returns an empty list: "no signal from this namespace",
never a hard failure. ``query_required`` is for callers that cannot proceed
without the signal.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from centrifuge.core.errors import VectorIndexUnavailable
from centrifuge.core.schemas import VectorMatch
from centrifuge.vector.base import VectorIndexProvider
from centrifuge.vector.retry import RetryPolicy

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class MalformedResponse(Exception):
    """The provider answered, but not with a list of matches."""


class VectorIndexClient:
    """Namespace-partitioned nearest-neighbour queries with retry."""

    def __init__(
        self,
        provider: VectorIndexProvider,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    async def query(
        self,
        namespace: str,
        vector: Sequence[float],
        top_k: int,
    ) -> list[VectorMatch]:
        """Query a namespace, returning [] once every attempt has failed."""
        matches = await self._query_with_retry(namespace, vector, top_k)
        return matches if matches is not None else []

    async def query_required(
        self,
        namespace: str,
        vector: Sequence[float],
        top_k: int,
    ) -> list[VectorMatch]:
        """Like ``query`` but raises VectorIndexUnavailable after retries."""
        matches = await self._query_with_retry(namespace, vector, top_k)
        if matches is None:
            msg = (
                f"Vector index namespace '{namespace}' unavailable after "
                f"{self._policy.max_attempts} attempts"
            )
            raise VectorIndexUnavailable(msg)
        return matches

    async def _query_with_retry(
        self,
        namespace: str,
        vector: Sequence[float],
        top_k: int,
    ) -> list[VectorMatch] | None:
        attempts = self._policy.max_attempts
        for attempt in range(1, attempts + 1):
            logger.debug(
                "Querying vector index '%s' (attempt %d/%d)", namespace, attempt, attempts,
            )
            try:
                raw = await asyncio.to_thread(self._provider.query, namespace, vector, top_k)
                return parse_matches(raw)
            except Exception as e:
                logger.warning(
                    "Vector index query failed (namespace: %s, attempt: %d/%d): %s",
                    namespace, attempt, attempts, e,
                )
            if self._policy.should_retry(attempt):
                delay = self._policy.delay_for(attempt)
                logger.info("Retrying '%s' in %.1f seconds...", namespace, delay)
                await self._sleep(delay)

        logger.error("All %d attempts failed for '%s'. Returning empty result.", attempts, namespace)
        return None


def parse_matches(raw: Any) -> list[VectorMatch]:
    """Normalize a provider response into VectorMatch objects.

    Accepts objects exposing ``matches`` or mappings with a "matches" key.

    Raises:
        MalformedResponse: If no match list can be found.
    """
    if raw is None:
        msg = "empty response"
        raise MalformedResponse(msg)

    matches = raw.get("matches") if isinstance(raw, dict) else getattr(raw, "matches", None)
    if matches is None:
        msg = f"response has no matches: {raw!r}"
        raise MalformedResponse(msg)

    return [_to_match(m) for m in matches]


def _to_match(match: Any) -> VectorMatch:
    if isinstance(match, dict):
        match_id, score, metadata = match.get("id"), match.get("score"), match.get("metadata")
    else:
        match_id = getattr(match, "id", None)
        score = getattr(match, "score", None)
        metadata = getattr(match, "metadata", None)

    if match_id is None:
        msg = f"match without id: {match!r}"
        raise MalformedResponse(msg)

    return VectorMatch(
        id=str(match_id),
        score=float(score or 0.0),
        metadata={str(k): str(v) for k, v in (metadata or {}).items()},
    )
