"""Filter chain that resolves a structured filter into an input set.

Filter order:
  1. CompanyFilter  : candidate's current company in the requested ids
  2. RegionFilter   : optional, lives near the target region
  3. SkillsFilter   : technologies intersect the expanded skill terms
  4. JobTitleFilter : job titles intersect the expanded title terms

Every filter with nothing to match on is a no-op. Tag comparisons are
case-insensitive.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from centrifuge.core.schemas import Candidate

logger = logging.getLogger(__name__)

# A filter is a callable that takes candidates and returns a subset.
Filter = Callable[[list[Candidate]], list[Candidate]]


def _normalize(terms: Iterable[str]) -> set[str]:
    return {t.lower().strip() for t in terms if t.strip()}


class CompanyFilter:
    """Keep candidates whose company_id is one of the requested ids.

    An empty id list applies no company restriction rather than matching nobody.
    """

    def __init__(self, company_ids: Sequence[str]) -> None:
        self._ids = {c for c in company_ids if c}

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        if not self._ids:
            return candidates
        result = [c for c in candidates if c.company_id in self._ids]
        removed = len(candidates) - len(result)
        if removed:
            logger.debug("CompanyFilter: removed %d candidates", removed)
        return result


class RegionFilter:
    """Keep only candidates known to live near the target region, when asked to."""

    def __init__(self, near_only: bool) -> None:
        self._near_only = near_only

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        if not self._near_only:
            return candidates
        result = [c for c in candidates if c.lives_near_target_region is True]
        removed = len(candidates) - len(result)
        if removed:
            logger.debug("RegionFilter: removed %d candidates", removed)
        return result


class SkillsFilter:
    """Match technologies against per-skill groups of expanded terms.

    OR logic (default): any term of any group. AND logic: at least one term
    from every group.
    """

    def __init__(self, groups: Sequence[Iterable[str]], match_all: bool = False) -> None:
        self._groups = [g for g in (_normalize(group) for group in groups) if g]
        self._match_all = match_all

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        if not self._groups:
            return candidates
        result = [c for c in candidates if self._matches(c)]
        removed = len(candidates) - len(result)
        if removed:
            logger.debug("SkillsFilter: removed %d candidates", removed)
        return result

    def _matches(self, candidate: Candidate) -> bool:
        techs = _normalize(candidate.top_technologies)
        hits = (bool(techs & group) for group in self._groups)
        return all(hits) if self._match_all else any(hits)


class JobTitleFilter:
    """Keep candidates holding at least one of the expanded job titles."""

    def __init__(self, titles: Iterable[str]) -> None:
        self._titles = _normalize(titles)

    def __call__(self, candidates: list[Candidate]) -> list[Candidate]:
        if not self._titles:
            return candidates
        result = [c for c in candidates if _normalize(c.job_titles) & self._titles]
        removed = len(candidates) - len(result)
        if removed:
            logger.debug("JobTitleFilter: removed %d candidates", removed)
        return result


def run_filter_chain(
    candidates: list[Candidate],
    filters: Sequence[Filter],
) -> list[Candidate]:
    """Apply filters in order, returning the surviving candidates."""
    result = candidates
    for f in filters:
        result = f(result)
    return result
