"""Error taxonomy for the ranking pipeline.

Every error carries ``failed_state``: the pipeline state it was raised in,
filled in by the orchestrator on the way to FAILED.
"""


class RankingError(Exception):
    """Base class for all ranking failures."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.failed_state: str | None = None


class InputNotFoundError(RankingError):
    """The request resolved to zero input candidates."""


class EmbeddingError(RankingError):
    """The embedding provider failed. Not retried here."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Embedding failed: {reason}")
        self.reason = reason


class VectorIndexUnavailable(RankingError):
    """Vector index retries exhausted for a caller that requires a signal."""


class StorageError(RankingError):
    """The storage collaborator failed (connection or query error)."""


class EmptyAggregationInput(RankingError):
    """An averaging step received zero embeddings."""


class RankTimeoutError(RankingError):
    """The run exceeded its configured deadline."""
