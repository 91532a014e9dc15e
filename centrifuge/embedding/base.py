"""Abstract base class for embedding providers."""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Base class that every embedding provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai')."""

    @abstractmethod
    def embed(self, text: str, model: str | None = None) -> list[float]:
        """Convert text into a fixed-length vector.

        Args:
            text: The text to embed (a tag, a job title, a description).
            model: Override the provider's default model. None uses default.

        Returns:
            The embedding; its length is fixed by the model.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""
