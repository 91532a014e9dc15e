"""Average several embeddings into one representative vector."""

from collections.abc import Sequence

import numpy as np

from centrifuge.core.errors import EmptyAggregationInput


def average_embeddings(embeddings: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise mean of equal-length vectors.

    Raises:
        EmptyAggregationInput: If no embeddings are given.
        ValueError: If the vectors differ in length.
    """
    if not embeddings:
        msg = "No embeddings provided to compute average"
        raise EmptyAggregationInput(msg)

    dim = len(embeddings[0])
    for vector in embeddings:
        if len(vector) != dim:
            msg = f"Embedding length mismatch: expected {dim}, got {len(vector)}"
            raise ValueError(msg)

    matrix = np.asarray(embeddings, dtype=float)
    return matrix.mean(axis=0).tolist()  # type: ignore[no-any-return]
