"""Vector index providers and the retrying query client."""

from centrifuge.core.config import VectorIndexConfig
from centrifuge.vector.base import VectorIndexProvider

__all__ = ["VectorIndexProvider", "get_index_provider"]


def get_index_provider(config: VectorIndexConfig) -> VectorIndexProvider:
    """Build the vector index provider named in the config.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if config.provider == "pinecone":
        from centrifuge.vector.pinecone import PineconeIndexProvider

        return PineconeIndexProvider(config.index_name)

    msg = f"Unknown vector index provider '{config.provider}'. Available: pinecone"
    raise ValueError(msg)
