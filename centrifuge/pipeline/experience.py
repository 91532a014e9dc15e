"""Years-of-experience statistics and Gaussian experience scoring.

Total experience of a candidate is the span from the earliest position
start to the latest position end (current year for open positions).
The score is a bell curve centred on the input set's mean, so it rewards
seniority similar to the exemplars, not raw seniority.
"""

import logging
import math
import statistics
from collections.abc import Sequence
from datetime import date

from centrifuge.core.schemas import Candidate, ExperienceStats

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ExperienceAnalyzer:
    """Computes experience distributions and per-candidate scores."""

    def __init__(self, current_year: int | None = None) -> None:
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or date.today().year

    def total_experience_years(self, candidate: Candidate) -> int:
        """Span of the career history in years; 0 with no dated positions."""
        positions = candidate.raw_profile_data.positions
        starts = [p.start_year for p in positions if p.start_year]
        if not starts:
            return 0
        latest_end = max(p.end_year or self.current_year for p in positions)
        return max(0, latest_end - min(starts))

    def compute_bounds(self, candidates: Sequence[Candidate]) -> ExperienceStats:
        """Mean and population standard deviation over ``candidates``."""
        if not candidates:
            return ExperienceStats(mean=0.0, std_dev=0.0, lower_bound=0, upper_bound=0)

        experiences = [self.total_experience_years(c) for c in candidates]
        mean = statistics.fmean(experiences)
        std_dev = statistics.pstdev(experiences, mu=mean)

        stats = ExperienceStats(
            mean=mean,
            std_dev=std_dev,
            lower_bound=max(0, _round_half_up(mean - 2 * std_dev)),
            upper_bound=_round_half_up(mean + 2 * std_dev),
        )
        logger.info(
            "Experience statistics: mean=%.2f, std_dev=%.2f, bounds=[%d, %d] years",
            stats.mean, stats.std_dev, stats.lower_bound, stats.upper_bound,
        )
        return stats

    def score_one(self, candidate: Candidate, stats: ExperienceStats) -> tuple[float, int]:
        """Return (experience_score, total_experience_years).

        A zero standard deviation scores every candidate 1.0.
        """
        total = self.total_experience_years(candidate)
        if stats.std_dev == 0:
            return 1.0, total
        z_score = (total - stats.mean) / stats.std_dev
        return math.exp(-(z_score * z_score) / 2), total
