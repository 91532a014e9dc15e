"""Google Gemini embedding provider (google-genai SDK)."""

import logging
import os

from centrifuge.embedding.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class GeminiEmbeddingProvider(EmbeddingProvider):
    """Embedding provider using the Google Gemini API (google-genai SDK)."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "text-embedding-004"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def embed(self, text: str, model: str | None = None) -> list[float]:
        api_key = os.environ.get("GOOGLE_API_KEY")
        if not api_key:
            msg = "GOOGLE_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            from google import genai
        except ImportError:
            msg = (
                "google-genai is required for Gemini embeddings. "
                "Install with: pip install 'candidate-centrifuge[gemini]'"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model

        logger.debug("Embedding %d chars with Gemini (%s)", len(text), use_model)
        client = genai.Client(api_key=api_key)
        response = client.models.embed_content(model=use_model, contents=text)
        return list(response.embeddings[0].values)
