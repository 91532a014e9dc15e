"""Frequency-weighted affinity tables derived from an input set.

Companies and schools are weighted differently: every company
seen gets a weight, while only schools shared by a large share of the input
set do.
"""

import logging
import math
from collections import Counter
from collections.abc import Sequence

from centrifuge.core.schemas import Candidate

logger = logging.getLogger(__name__)


def analyze_companies(candidates: Sequence[Candidate]) -> dict[str, float]:
    """Weight each company by how many input candidates worked there.

    A candidate counts once per company however many positions they held
    there. Weights sum to 1.
    """
    frequency: Counter[str] = Counter()
    for candidate in candidates:
        frequency.update({name for name in candidate.companies if name})

    total = sum(frequency.values())
    if total == 0:
        return {}

    weights = {company: count / total for company, count in frequency.most_common()}
    logger.debug("Company weights: %s", weights)
    return weights


def analyze_education(
    candidates: Sequence[Candidate],
    threshold_ratio: float = 0.75,
) -> dict[str, float]:
    """Weight the schools mentioned by at least ``threshold_ratio`` of the input set.

    Mentions are not deduplicated per candidate. Schools under the threshold
    are absent from the result. Retained weights sum to 1.
    """
    frequency: Counter[str] = Counter()
    for candidate in candidates:
        frequency.update(name for name in candidate.schools if name)

    min_frequency = math.ceil(threshold_ratio * len(candidates))
    significant = [
        (school, count) for school, count in frequency.most_common() if count >= min_frequency
    ]
    total = sum(count for _, count in significant)
    if total == 0:
        return {}

    weights = {school: count / total for school, count in significant}
    logger.debug("Education weights (minimum frequency %d): %s", min_frequency, weights)
    return weights


def analyze_region_majority(
    candidates: Sequence[Candidate],
    threshold: float = 0.5,
) -> bool:
    """True when at least ``threshold`` of the input set lives near the target region.

    Unknown counts as not near.
    """
    if not candidates:
        return False
    near = sum(1 for c in candidates if c.lives_near_target_region is True)
    ratio = near / len(candidates)
    apply_boost = ratio >= threshold
    logger.info("Region proximity ratio: %.2f (boost: %s)", ratio, apply_boost)
    return apply_boost
