"""Pinecone vector index provider."""

import logging
import os
from collections.abc import Sequence
from typing import Any

from centrifuge.vector.base import VectorIndexProvider

logger = logging.getLogger(__name__)


class PineconeIndexProvider(VectorIndexProvider):
    """Queries one Pinecone index, partitioned by namespace."""

    def __init__(self, index_name: str) -> None:
        self._index_name = index_name
        self._index = None

    @property
    def provider_id(self) -> str:
        return "pinecone"

    @property
    def env_var(self) -> str:
        return "PINECONE_API_KEY"

    def query(self, namespace: str, vector: Sequence[float], top_k: int) -> Any:
        index = self._get_index()
        logger.debug(
            "Querying Pinecone index '%s' namespace '%s' (top_k=%d)",
            self._index_name, namespace, top_k,
        )
        return index.query(
            namespace=namespace,
            vector=list(vector),
            top_k=top_k,
            include_metadata=True,
            include_values=False,
        )

    def _get_index(self):  # type: ignore[no-untyped-def]
        if self._index is not None:
            return self._index

        api_key = os.environ.get("PINECONE_API_KEY")
        if not api_key:
            msg = "PINECONE_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            from pinecone import Pinecone
        except ImportError:
            msg = (
                "pinecone is required for vector search. "
                "Install with: pip install candidate-centrifuge"
            )
            raise ImportError(msg) from None

        self._index = Pinecone(api_key=api_key).Index(self._index_name)
        return self._index
