"""Orchestrator: drives one ranking run through its state machine.

States (each logged on entry):
  FETCH_INPUT → ANALYZE → EMBED → QUERY_VECTOR_INDEX → FETCH_POOL → COMBINE
  → SORT_TRUNCATE → DONE, with FAILED reachable from any of them.

Vector index failures never reach FAILED: the namespace just contributes
nothing. A request matching no input candidates ends in DONE with
``input_not_found`` set.
"""

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter

from centrifuge.core.config import Settings
from centrifuge.core.db import SqliteStorage, Storage, iter_pool_pages
from centrifuge.core.errors import (
    EmptyAggregationInput,
    InputNotFoundError,
    RankingError,
    RankTimeoutError,
)
from centrifuge.core.schemas import (
    Candidate,
    JobDescriptionRequest,
    PipelineState,
    ProfileUrlsRequest,
    RankedResult,
    RankOutcome,
    RankRequest,
    ScoredCandidate,
    StructuredFilterRequest,
)
from centrifuge.embedding import get_provider
from centrifuge.embedding.aggregate import average_embeddings
from centrifuge.embedding.client import EmbeddingClient
from centrifuge.pipeline.combiner import (
    MatchSet,
    ScoreCombiner,
    WeightingTables,
    build_weighting_tables,
    to_match_set,
)
from centrifuge.pipeline.experience import ExperienceAnalyzer
from centrifuge.pipeline.expansion import TermExpander
from centrifuge.pipeline.filters import (
    CompanyFilter,
    Filter,
    JobTitleFilter,
    RegionFilter,
    SkillsFilter,
    run_filter_chain,
)
from centrifuge.vector import get_index_provider
from centrifuge.vector.client import VectorIndexClient
from centrifuge.vector.retry import RetryPolicy

logger = logging.getLogger(__name__)

_request_adapter: TypeAdapter[Any] = TypeAdapter(RankRequest)


def parse_request(data: dict[str, Any]) -> ProfileUrlsRequest | StructuredFilterRequest | JobDescriptionRequest:
    """Validate a raw request payload, dispatching on its ``kind``."""
    return _request_adapter.validate_python(data)  # type: ignore[no-any-return]


class _Run:
    """Per-invocation state tracker; never shared between runs."""

    def __init__(self) -> None:
        self.state = PipelineState.FETCH_INPUT
        self.history: list[PipelineState] = []

    def enter(self, state: PipelineState) -> None:
        self.state = state
        if state not in self.history:
            self.history.append(state)
            logger.info("Pipeline state: %s", state.value)


class RelevancePipeline:
    """Ranks the candidate pool for a request.

    Clients and storage are injected so tests can run without network.

    Usage::

        pipeline = RelevancePipeline(storage, embeddings, vectors, settings)
        outcome = await pipeline.rank(ProfileUrlsRequest(urls=[...]))
    """

    def __init__(
        self,
        storage: Storage,
        embeddings: EmbeddingClient,
        vectors: VectorIndexClient,
        settings: Settings,
        analyzer: ExperienceAnalyzer | None = None,
    ) -> None:
        self._storage = storage
        self._embeddings = embeddings
        self._vectors = vectors
        self._settings = settings
        self._config = settings.pipeline
        self._namespaces = settings.vector_index.namespaces
        self._analyzer = analyzer or ExperienceAnalyzer()
        self._combiner = ScoreCombiner.from_config(self._config, self._analyzer)
        self._expander = TermExpander(
            embeddings, vectors, self._namespaces, self._config.term_expansion,
        )

    async def rank(
        self,
        request: ProfileUrlsRequest | StructuredFilterRequest | JobDescriptionRequest,
    ) -> RankOutcome:
        """Run the pipeline to DONE, or raise the error that sent it to FAILED."""
        run = _Run()
        deadline = self._config.deadline_seconds
        try:
            if deadline is None:
                return await self._dispatch(request, run)
            async with asyncio.timeout(deadline):
                return await self._dispatch(request, run)
        except TimeoutError as e:
            failed_in = run.state
            run.enter(PipelineState.FAILED)
            err = RankTimeoutError(f"Ranking exceeded {deadline}s deadline in {failed_in.value}")
            err.failed_state = failed_in.value
            raise err from e
        except RankingError as e:
            e.failed_state = run.state.value
            logger.error("Ranking failed in %s: %s", run.state.value, e)
            run.enter(PipelineState.FAILED)
            raise

    async def _dispatch(
        self,
        request: ProfileUrlsRequest | StructuredFilterRequest | JobDescriptionRequest,
        run: _Run,
    ) -> RankOutcome:
        if isinstance(request, JobDescriptionRequest):
            return await self._rank_description(request, run)

        run.enter(PipelineState.FETCH_INPUT)
        try:
            input_set = await self._fetch_input(request)
        except InputNotFoundError as e:
            logger.info("No input matched: %s", e)
            run.enter(PipelineState.DONE)
            return RankOutcome(input_not_found=True, states=list(run.history))

        return await self._rank_exemplars(input_set, run)

    # ------------------------------------------------------------------
    # Input resolution
    # ------------------------------------------------------------------

    async def _fetch_input(
        self,
        request: ProfileUrlsRequest | StructuredFilterRequest,
    ) -> list[Candidate]:
        if isinstance(request, ProfileUrlsRequest):
            input_set = self._storage.find_input_set(request.urls)
        else:
            input_set = await self._resolve_filter(request)

        if not input_set:
            msg = "No matching input candidates found in the database"
            raise InputNotFoundError(msg)
        logger.info("Found %d matching input candidates", len(input_set))
        return input_set

    async def _resolve_filter(self, request: StructuredFilterRequest) -> list[Candidate]:
        skill_groups, titles = await asyncio.gather(
            self._expander.expand_skills(request.skills),
            self._expander.expand_job_title(request.job_title),
        )
        filters: list[Filter] = [
            CompanyFilter(request.company_ids),
            RegionFilter(request.near_target_region),
            SkillsFilter(skill_groups, match_all=request.match_all_skills),
            JobTitleFilter(titles),
        ]

        limit = self._config.filter_input_limit
        matched: list[Candidate] = []
        for page in iter_pool_pages(self._storage, self._config.batch_size):
            matched.extend(run_filter_chain(page, filters))
            if len(matched) >= limit:
                break
            await asyncio.sleep(0)
        return matched[:limit]

    # ------------------------------------------------------------------
    # Exemplar ranking (profile URLs and structured filters)
    # ------------------------------------------------------------------

    async def _rank_exemplars(self, input_set: list[Candidate], run: _Run) -> RankOutcome:
        run.enter(PipelineState.ANALYZE)
        tables = build_weighting_tables(input_set, self._config, self._analyzer)
        input_ids = frozenset(c.id for c in input_set)

        run.enter(PipelineState.EMBED)
        averages = await self._average_tag_embeddings(input_set)

        run.enter(PipelineState.QUERY_VECTOR_INDEX)
        match_sets = await self._query_namespaces(averages)

        ranked = await self._score_pool(run, input_ids, match_sets, tables)

        run.enter(PipelineState.DONE)
        return RankOutcome(
            results=[RankedResult.from_scored(s) for s in ranked],
            input_count=len(input_set),
            states=list(run.history),
        )

    async def _average_tag_embeddings(self, input_set: Sequence[Candidate]) -> dict[str, list[float]]:
        """Average embedding per tag kind, keyed by namespace.

        A kind with no tags in the whole input set is skipped.
        """
        kinds = {
            self._namespaces.skills: ("skill", [t for c in input_set for t in sorted(c.top_technologies)]),
            self._namespaces.features: ("feature", [t for c in input_set for t in sorted(c.top_features)]),
            self._namespaces.job_titles: ("job title", [t for c in input_set for t in sorted(c.job_titles)]),
        }
        embedded = await asyncio.gather(
            *(self._embeddings.embed_many(texts, kind=label) for label, texts in kinds.values())
        )

        averages: dict[str, list[float]] = {}
        for (namespace, (label, _)), vectors in zip(kinds.items(), embedded):
            try:
                averages[namespace] = average_embeddings(vectors)
            except EmptyAggregationInput:
                logger.warning("Input set has no %s tags; skipping '%s'", label, namespace)
        return averages

    async def _query_namespaces(self, averages: dict[str, list[float]]) -> list[MatchSet]:
        top_k = self._settings.vector_index.top_k
        namespaces = list(averages)
        results = await asyncio.gather(
            *(self._vectors.query(ns, averages[ns], top_k) for ns in namespaces)
        )
        match_sets: list[MatchSet] = []
        for namespace, matches in zip(namespaces, results):
            if not matches:
                logger.warning("No signal from vector namespace '%s'", namespace)
            match_sets.append(to_match_set(matches))
        return match_sets

    async def _score_pool(
        self,
        run: _Run,
        input_ids: frozenset[str],
        match_sets: Sequence[MatchSet],
        tables: WeightingTables,
    ) -> list[ScoredCandidate]:
        top: list[ScoredCandidate] = []
        seen = 0
        run.enter(PipelineState.FETCH_POOL)
        for page_number, page in enumerate(iter_pool_pages(self._storage, self._config.batch_size), 1):
            run.enter(PipelineState.COMBINE)
            logger.debug("Scoring pool page %d (%d candidates)", page_number, len(page))
            top = self._combiner.merge(top, self._combiner.combine(page, input_ids, match_sets, tables))
            seen += len(page)
            run.enter(PipelineState.FETCH_POOL)
            await asyncio.sleep(0)
        logger.info("Scored %d pool candidates", seen)

        run.enter(PipelineState.SORT_TRUNCATE)
        return self._combiner.top(top)

    # ------------------------------------------------------------------
    # Job description ranking
    # ------------------------------------------------------------------

    async def _rank_description(self, request: JobDescriptionRequest, run: _Run) -> RankOutcome:
        profile = self._settings.scoring.profile(request.weight_profile)

        run.enter(PipelineState.EMBED)
        vector = await self._embeddings.embed(request.description)

        run.enter(PipelineState.QUERY_VECTOR_INDEX)
        matches = await self._vectors.query(
            self._namespaces.summaries, vector, self._settings.vector_index.top_k,
        )
        if not matches:
            logger.warning("No signal from vector namespace '%s'", self._namespaces.summaries)
        similarity = to_match_set(matches)

        top: list[ScoredCandidate] = []
        run.enter(PipelineState.FETCH_POOL)
        for page in iter_pool_pages(self._storage, self._config.batch_size):
            run.enter(PipelineState.COMBINE)
            scored = self._combiner.combine_weighted(page, similarity, profile, request.skills)
            top = self._combiner.merge(top, scored)
            run.enter(PipelineState.FETCH_POOL)
            await asyncio.sleep(0)

        run.enter(PipelineState.SORT_TRUNCATE)
        ranked = self._combiner.top(top)

        run.enter(PipelineState.DONE)
        return RankOutcome(
            results=[RankedResult.from_scored(s) for s in ranked],
            states=list(run.history),
        )


def build_pipeline(settings: Settings, conn: sqlite3.Connection) -> RelevancePipeline:
    """Wire the configured providers and SQLite storage into a pipeline."""
    embeddings = EmbeddingClient(
        get_provider(settings.embedding.provider),
        model=settings.embedding.model,
        max_concurrency=settings.embedding.max_concurrency,
    )
    vectors = VectorIndexClient(
        get_index_provider(settings.vector_index),
        RetryPolicy.from_config(settings.vector_index.retry),
    )
    return RelevancePipeline(SqliteStorage(conn), embeddings, vectors, settings)
