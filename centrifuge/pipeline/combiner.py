"""Composite scoring of pool candidates.

Per candidate (input-set members are never scored):
  1. sum of vector similarity scores across every queried namespace
  2. + experience score * experience_weight
  3. + company affinity weights of every position held
  4. + education affinity weights of every school attended
  5. * region_boost when the boost applies and the candidate lives nearby

Ordering is by combined score descending; ties keep fetch order.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

from centrifuge.core.config import PipelineConfig, WeightProfile
from centrifuge.core.schemas import Candidate, ExperienceStats, ScoredCandidate, VectorMatch
from centrifuge.pipeline.affinity import (
    analyze_companies,
    analyze_education,
    analyze_region_majority,
)
from centrifuge.pipeline.experience import ExperienceAnalyzer

logger = logging.getLogger(__name__)

# One namespace's matches keyed by candidate id.
MatchSet = Mapping[str, float]


class WeightingTables(BaseModel):
    """Everything derived from the input set, computed once per run."""

    model_config = ConfigDict(frozen=True)

    experience: ExperienceStats
    company_weights: dict[str, float]
    education_weights: dict[str, float]
    apply_region_boost: bool


def build_weighting_tables(
    input_set: Sequence[Candidate],
    config: PipelineConfig,
    analyzer: ExperienceAnalyzer,
) -> WeightingTables:
    """Derive experience stats, affinities and the region flag from the input set."""
    return WeightingTables(
        experience=analyzer.compute_bounds(input_set),
        company_weights=analyze_companies(input_set),
        education_weights=analyze_education(input_set, config.education_threshold_ratio),
        apply_region_boost=analyze_region_majority(input_set, config.region_majority_threshold),
    )


def to_match_set(matches: Iterable[VectorMatch]) -> dict[str, float]:
    """Index one namespace's matches by id."""
    return {m.id: m.score for m in matches}


class ScoreCombiner:
    """Merges vector, affinity and experience signals into one score.

    Pure: the same pool and tables always produce the same ranking.
    """

    def __init__(
        self,
        analyzer: ExperienceAnalyzer,
        experience_weight: float = 0.2,
        region_boost: float = 1.2,
        limit: int = 100,
    ) -> None:
        self._analyzer = analyzer
        self._experience_weight = experience_weight
        self._region_boost = region_boost
        self._limit = limit

    @classmethod
    def from_config(cls, config: PipelineConfig, analyzer: ExperienceAnalyzer) -> "ScoreCombiner":
        return cls(
            analyzer,
            experience_weight=config.experience_weight,
            region_boost=config.region_boost,
            limit=config.result_limit,
        )

    @property
    def limit(self) -> int:
        return self._limit

    def score(
        self,
        candidate: Candidate,
        match_sets: Sequence[MatchSet],
        tables: WeightingTables,
    ) -> ScoredCandidate:
        """Score a single pool candidate."""
        score = sum(matches.get(candidate.id, 0.0) for matches in match_sets)

        experience_score, total_years = self._analyzer.score_one(candidate, tables.experience)
        score += experience_score * self._experience_weight

        score += sum(tables.company_weights.get(c, 0.0) for c in candidate.companies)
        score += sum(tables.education_weights.get(s, 0.0) for s in candidate.schools)

        if tables.apply_region_boost and candidate.lives_near_target_region:
            score *= self._region_boost

        return ScoredCandidate(
            candidate=candidate,
            combined_score=score,
            experience_score=experience_score,
            total_experience_years=total_years,
        )

    def combine(
        self,
        pool: Iterable[Candidate],
        input_ids: frozenset[str] | set[str],
        match_sets: Sequence[MatchSet],
        tables: WeightingTables,
    ) -> list[ScoredCandidate]:
        """Score every non-input pool candidate, sort descending, truncate."""
        scored = [
            self.score(candidate, match_sets, tables)
            for candidate in pool
            if candidate.id not in input_ids
        ]
        return self.top(scored)

    def combine_weighted(
        self,
        pool: Iterable[Candidate],
        similarity: MatchSet,
        profile: WeightProfile,
        skills: Sequence[str] = (),
    ) -> list[ScoredCandidate]:
        """Score the pool with a named weight profile instead of exemplars.

        With no input set to compare against, the experience score is 1.0.
        """
        scored = [
            ScoredCandidate(
                candidate=candidate,
                combined_score=weighted_signal_score(
                    candidate, similarity.get(candidate.id, 0.0), profile, skills,
                ),
                experience_score=1.0,
                total_experience_years=self._analyzer.total_experience_years(candidate),
            )
            for candidate in pool
        ]
        return self.top(scored)

    def merge(
        self,
        current: Sequence[ScoredCandidate],
        page: Sequence[ScoredCandidate],
    ) -> list[ScoredCandidate]:
        """Merge a later page into the running top list."""
        return self.top([*current, *page])

    def top(self, scored: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
        # sorted() is stable: equal scores keep fetch order
        ranked = sorted(scored, key=lambda s: s.combined_score, reverse=True)
        return ranked[: self._limit]


def relevant_skill_ratio(candidate: Candidate, skills: Sequence[str]) -> float:
    """Share of the requested skills found among the candidate's technologies."""
    wanted = {s.lower().strip() for s in skills if s.strip()}
    if not wanted:
        return 0.0
    have = {t.lower().strip() for t in candidate.top_technologies}
    return len(wanted & have) / len(wanted)


def weighted_signal_score(
    candidate: Candidate,
    similarity: float,
    profile: WeightProfile,
    skills: Sequence[str] = (),
) -> float:
    """Flag-based score used by job-description ranking.

    Weights are applied literally; the named profiles are not normalized.
    """
    return (
        profile.similarity * similarity
        + profile.worked_in_position * float(candidate.worked_in_position)
        + profile.worked_at_relevant * float(candidate.worked_at_relevant)
        + profile.relevant_skill_ratio * relevant_skill_ratio(candidate, skills)
        + profile.worked_in_big_tech * float(candidate.worked_in_big_tech)
        + profile.lives_near_region * float(bool(candidate.lives_near_target_region))
    )
