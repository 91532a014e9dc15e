"""OpenAI embedding provider."""

import logging
import os

from centrifuge.embedding.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding provider using the OpenAI embeddings API."""

    def __init__(self) -> None:
        self._client = None

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "text-embedding-3-large"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def embed(self, text: str, model: str | None = None) -> list[float]:
        client = self._get_client()
        use_model = model or self.default_model

        logger.debug("Embedding %d chars with OpenAI (%s)", len(text), use_model)
        response = client.embeddings.create(
            model=use_model,
            input=text,
            encoding_format="float",
        )
        return list(response.data[0].embedding)

    def _get_client(self):  # type: ignore[no-untyped-def]
        if self._client is not None:
            return self._client

        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            msg = "OPENAI_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for OpenAI embeddings. "
                "Install with: pip install candidate-centrifuge"
            )
            raise ImportError(msg) from None

        self._client = openai.OpenAI(api_key=api_key)
        return self._client
