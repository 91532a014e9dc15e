"""Async embedding client: provider calls in threads, bounded fan-out.

Failures are wrapped into EmbeddingError and never retried here.
Identical text is re-embedded on every call (no cache).
"""

import asyncio
import logging
from collections.abc import Sequence

from centrifuge.core.errors import EmbeddingError
from centrifuge.embedding.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """Converts text to vectors through an injected EmbeddingProvider.

    Usage::

        client = EmbeddingClient(get_provider("openai"), max_concurrency=8)
        vector = await client.embed("rust")
        vectors = await client.embed_many(["rust", "go"], kind="skill")
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        model: str | None = None,
        max_concurrency: int = 8,
    ) -> None:
        self._provider = provider
        self._model = model
        self._max_concurrency = max_concurrency

    @property
    def provider_id(self) -> str:
        return self._provider.provider_id

    async def embed(self, text: str) -> list[float]:
        """Embed one text. Raises EmbeddingError on any provider failure."""
        try:
            vector = await asyncio.to_thread(self._provider.embed, text, self._model)
        except Exception as e:
            raise EmbeddingError(f"{self._provider.provider_id}: {e}") from e
        if not vector:
            raise EmbeddingError(f"{self._provider.provider_id}: empty embedding returned")
        return vector

    async def embed_many(self, texts: Sequence[str], kind: str = "text") -> list[list[float]]:
        """Embed every text concurrently, preserving input order.

        The first failure propagates; the other calls are not awaited further.
        """
        if not texts:
            return []

        logger.info("Generating %s embeddings for %d items...", kind, len(texts))
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _one(index: int, text: str) -> list[float]:
            async with semaphore:
                logger.debug("Embedding %s %d/%d", kind, index + 1, len(texts))
                return await self.embed(text)

        tasks = [asyncio.ensure_future(_one(i, t)) for i, t in enumerate(texts)]
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        logger.info("Finished generating %s embeddings", kind)
        return list(vectors)
