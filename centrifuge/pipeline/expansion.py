"""Expand filter terms into semantically similar terms via the vector index."""

import asyncio
import logging

from centrifuge.core.config import NamespaceConfig, TermExpansionConfig
from centrifuge.embedding.client import EmbeddingClient
from centrifuge.vector.client import VectorIndexClient

logger = logging.getLogger(__name__)

_TECHNOLOGY_KEY = "technology"
_JOB_TITLE_KEY = "jobTitle"


class TermExpander:
    """Looks up similar technologies and job titles for filter terms.

    The literal term is always part of its own expansion, so an empty
    vector index result degrades to exact matching.
    """

    def __init__(
        self,
        embeddings: EmbeddingClient,
        vectors: VectorIndexClient,
        namespaces: NamespaceConfig,
        config: TermExpansionConfig,
    ) -> None:
        self._embeddings = embeddings
        self._vectors = vectors
        self._namespaces = namespaces
        self._config = config

    async def expand_skills(self, skills: list[str]) -> list[set[str]]:
        """One group of similar technologies per requested skill."""
        return list(
            await asyncio.gather(
                *(
                    self._expand(
                        skill,
                        self._namespaces.technologies,
                        _TECHNOLOGY_KEY,
                        self._config.technology_top_k,
                        self._config.technology_threshold,
                    )
                    for skill in skills
                    if skill.strip()
                )
            )
        )

    async def expand_job_title(self, job_title: str) -> set[str]:
        if not job_title.strip():
            return set()
        return await self._expand(
            job_title,
            self._namespaces.job_title_terms,
            _JOB_TITLE_KEY,
            self._config.job_title_top_k,
            self._config.job_title_threshold,
        )

    async def _expand(
        self,
        term: str,
        namespace: str,
        metadata_key: str,
        top_k: int,
        threshold: float,
    ) -> set[str]:
        vector = await self._embeddings.embed(term)
        matches = await self._vectors.query(namespace, vector, top_k)
        similar = {
            m.metadata[metadata_key]
            for m in matches
            if m.score > threshold and m.metadata.get(metadata_key)
        }
        similar.add(term.strip())
        logger.info("Expanded '%s' into %d terms via '%s'", term, len(similar), namespace)
        return similar
