"""Tests for experience statistics and Gaussian scoring."""

import math

import pytest

from centrifuge.core.schemas import Candidate, ExperienceStats, Position, RawProfileData
from centrifuge.pipeline.experience import ExperienceAnalyzer


def _candidate(*spans: tuple[int | None, int | None], cid: str = "c") -> Candidate:
    positions = tuple(Position(company_name="Acme", start_year=s, end_year=e) for s, e in spans)
    return Candidate(
        id=cid,
        profile_url=f"https://example.com/{cid}",
        raw_profile_data=RawProfileData(positions=positions),
    )


@pytest.fixture()
def analyzer() -> ExperienceAnalyzer:
    return ExperienceAnalyzer(current_year=2024)


class TestTotalExperience:
    def test_span_from_earliest_start_to_latest_end(self, analyzer: ExperienceAnalyzer) -> None:
        c = _candidate((2010, 2014), (2015, 2020))
        assert analyzer.total_experience_years(c) == 10

    def test_open_position_uses_current_year(self, analyzer: ExperienceAnalyzer) -> None:
        c = _candidate((2010, 2014), (2018, None))
        assert analyzer.total_experience_years(c) == 14

    def test_no_positions_is_zero(self, analyzer: ExperienceAnalyzer) -> None:
        assert analyzer.total_experience_years(_candidate()) == 0

    def test_undated_positions_are_zero(self, analyzer: ExperienceAnalyzer) -> None:
        assert analyzer.total_experience_years(_candidate((None, None))) == 0

    def test_never_negative(self, analyzer: ExperienceAnalyzer) -> None:
        assert analyzer.total_experience_years(_candidate((2030, 2020))) == 0

    def test_defaults_to_today(self) -> None:
        c = _candidate((2000, None))
        assert ExperienceAnalyzer().total_experience_years(c) >= 24


class TestComputeBounds:
    def test_two_candidates(self, analyzer: ExperienceAnalyzer) -> None:
        stats = analyzer.compute_bounds([
            _candidate((2012, 2024), cid="a"),
            _candidate((2016, 2024), cid="b"),
        ])
        assert stats.mean == 10.0
        assert stats.std_dev == 2.0
        assert stats.lower_bound == 6
        assert stats.upper_bound == 14

    def test_lower_bound_clamped_at_zero(self, analyzer: ExperienceAnalyzer) -> None:
        stats = analyzer.compute_bounds([
            _candidate(cid="a"),
            _candidate((2014, 2024), cid="b"),
        ])
        assert stats.mean == 5.0
        assert stats.lower_bound == 0
        assert stats.upper_bound == 15

    def test_empty_input(self, analyzer: ExperienceAnalyzer) -> None:
        stats = analyzer.compute_bounds([])
        assert stats == ExperienceStats(mean=0.0, std_dev=0.0, lower_bound=0, upper_bound=0)


class TestScoreOne:
    STATS = ExperienceStats(mean=10.0, std_dev=2.0, lower_bound=6, upper_bound=14)

    def test_at_mean_scores_one(self, analyzer: ExperienceAnalyzer) -> None:
        score, years = analyzer.score_one(_candidate((2014, 2024)), self.STATS)
        assert score == 1.0
        assert years == 10

    def test_one_std_dev_away(self, analyzer: ExperienceAnalyzer) -> None:
        score, years = analyzer.score_one(_candidate((2012, 2024)), self.STATS)
        assert years == 12
        assert score == pytest.approx(math.exp(-0.5))

    def test_far_from_mean(self, analyzer: ExperienceAnalyzer) -> None:
        score, years = analyzer.score_one(_candidate(), self.STATS)
        assert years == 0
        assert score == pytest.approx(math.exp(-12.5))

    def test_symmetric(self, analyzer: ExperienceAnalyzer) -> None:
        above, _ = analyzer.score_one(_candidate((2011, 2024)), self.STATS)
        below, _ = analyzer.score_one(_candidate((2017, 2024)), self.STATS)
        assert above == pytest.approx(below)

    def test_zero_std_dev_scores_everyone_one(self, analyzer: ExperienceAnalyzer) -> None:
        stats = ExperienceStats(mean=5.0, std_dev=0.0, lower_bound=5, upper_bound=5)
        for c in (_candidate(), _candidate((2000, 2024))):
            score, _ = analyzer.score_one(c, stats)
            assert score == 1.0
