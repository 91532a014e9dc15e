"""Tests for the structured-filter chain."""

from centrifuge.core.schemas import Candidate
from centrifuge.pipeline.filters import (
    CompanyFilter,
    JobTitleFilter,
    RegionFilter,
    SkillsFilter,
    run_filter_chain,
)


def _candidate(cid: str, **kw: object) -> Candidate:
    return Candidate(id=cid, profile_url=f"https://example.com/{cid}", **kw)  # type: ignore[arg-type]


def _ids(candidates: list[Candidate]) -> list[str]:
    return [c.id for c in candidates]


# ---------------------------------------------------------------------------
# CompanyFilter
# ---------------------------------------------------------------------------


class TestCompanyFilter:
    def test_keeps_requested_companies(self) -> None:
        cs = [
            _candidate("a", company_id="co1"),
            _candidate("b", company_id="co2"),
            _candidate("c"),
        ]
        assert _ids(CompanyFilter(["co1"])(cs)) == ["a"]

    def test_empty_ids_is_noop(self) -> None:
        cs = [_candidate("a", company_id="co1"), _candidate("b")]
        assert _ids(CompanyFilter([])(cs)) == ["a", "b"]


# ---------------------------------------------------------------------------
# RegionFilter
# ---------------------------------------------------------------------------


class TestRegionFilter:
    def test_near_only(self) -> None:
        cs = [
            _candidate("a", lives_near_target_region=True),
            _candidate("b", lives_near_target_region=False),
            _candidate("c"),
        ]
        assert _ids(RegionFilter(near_only=True)(cs)) == ["a"]

    def test_disabled(self) -> None:
        cs = [_candidate("a"), _candidate("b", lives_near_target_region=False)]
        assert len(RegionFilter(near_only=False)(cs)) == 2


# ---------------------------------------------------------------------------
# SkillsFilter
# ---------------------------------------------------------------------------


class TestSkillsFilter:
    CANDIDATES = [
        _candidate("rust", top_technologies=["Rust"]),
        _candidate("go", top_technologies=["golang"]),
        _candidate("both", top_technologies=["Rust", "Go"]),
        _candidate("none", top_technologies=["Java"]),
    ]

    def test_or_logic(self) -> None:
        f = SkillsFilter([{"rust"}, {"go", "golang"}])
        assert _ids(f(self.CANDIDATES)) == ["rust", "go", "both"]

    def test_and_logic(self) -> None:
        f = SkillsFilter([{"rust"}, {"go", "golang"}], match_all=True)
        assert _ids(f(self.CANDIDATES)) == ["both"]

    def test_case_insensitive(self) -> None:
        f = SkillsFilter([{"JAVA"}])
        assert _ids(f(self.CANDIDATES)) == ["none"]

    def test_no_groups_is_noop(self) -> None:
        assert len(SkillsFilter([])(self.CANDIDATES)) == 4
        assert len(SkillsFilter([{" "}])(self.CANDIDATES)) == 4


# ---------------------------------------------------------------------------
# JobTitleFilter
# ---------------------------------------------------------------------------


class TestJobTitleFilter:
    def test_matches_any_title(self) -> None:
        cs = [
            _candidate("a", job_titles=["Backend Engineer"]),
            _candidate("b", job_titles=["Designer"]),
        ]
        f = JobTitleFilter({"backend engineer", "server engineer"})
        assert _ids(f(cs)) == ["a"]

    def test_empty_is_noop(self) -> None:
        cs = [_candidate("a"), _candidate("b")]
        assert len(JobTitleFilter(set())(cs)) == 2


class TestRunFilterChain:
    def test_applies_in_order(self) -> None:
        cs = [
            _candidate("a", company_id="co1", lives_near_target_region=True,
                       top_technologies=["rust"]),
            _candidate("b", company_id="co1", lives_near_target_region=False,
                       top_technologies=["rust"]),
            _candidate("c", company_id="co2", lives_near_target_region=True,
                       top_technologies=["rust"]),
        ]
        chain = [CompanyFilter(["co1"]), RegionFilter(True), SkillsFilter([{"rust"}])]
        assert _ids(run_filter_chain(cs, chain)) == ["a"]

    def test_empty_chain(self) -> None:
        cs = [_candidate("a")]
        assert run_filter_chain(cs, []) == cs
