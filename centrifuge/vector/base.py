"""Abstract base class for vector index providers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class VectorIndexProvider(ABC):
    """Base class that every nearest-neighbour index provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'pinecone')."""

    @abstractmethod
    def query(self, namespace: str, vector: Sequence[float], top_k: int) -> Any:
        """Run one nearest-neighbour query.

        Returns the provider's raw response. It is expected to expose
        ``matches`` (attribute or key), each with ``id``, ``score`` and
        optional ``metadata``. Anything else is treated as malformed.
        """
