"""Tests for CLI argument parsing and request building."""

import json

import pytest

from centrifuge.core.schemas import (
    JobDescriptionRequest,
    ProfileUrlsRequest,
    RankedResult,
    RankOutcome,
    StructuredFilterRequest,
)
from main import build_request, export_outcome_json, main, parse_args


class TestParseArgs:
    def test_rank_urls(self) -> None:
        args = parse_args(["rank", "--urls", "https://a", "https://b"])
        assert args.command == "rank"
        assert args.urls == ["https://a", "https://b"]
        assert args.config == "config/settings.yaml"

    def test_rank_sources_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["rank", "--urls", "https://a", "--description", "x"])

    def test_rank_needs_a_source(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["rank"])

    def test_repeatable_options(self) -> None:
        args = parse_args([
            "rank", "--skills", "rust", "go",
            "--company-id", "co1", "--company-id", "co2",
            "--near-region", "--match-all-skills",
        ])
        assert args.company_ids == ["co1", "co2"]
        assert args.near_region is True
        assert args.match_all_skills is True

    def test_global_options(self) -> None:
        args = parse_args(["--config", "other.yaml", "-v", "dry-run"])
        assert args.config == "other.yaml"
        assert args.verbose is True
        assert args.command == "dry-run"


class TestBuildRequest:
    def test_urls(self) -> None:
        request = build_request(parse_args(["rank", "--urls", "https://a"]))
        assert request == ProfileUrlsRequest(urls=["https://a"])

    def test_structured_filter(self) -> None:
        request = build_request(parse_args([
            "rank", "--skills", "rust", "--job-title", "Backend Engineer",
            "--company-id", "co1",
        ]))
        assert isinstance(request, StructuredFilterRequest)
        assert request.skills == ["rust"]
        assert request.job_title == "Backend Engineer"
        assert request.company_ids == ["co1"]
        assert request.match_all_skills is False

    def test_job_description(self) -> None:
        request = build_request(parse_args([
            "rank", "--description", "Rust backend role",
            "--relevant-skill", "rust", "--weight-profile", "company_search",
        ]))
        assert isinstance(request, JobDescriptionRequest)
        assert request.skills == ["rust"]
        assert request.weight_profile == "company_search"


def test_export_outcome_json() -> None:
    outcome = RankOutcome(
        results=[
            RankedResult(
                candidate_id="c1",
                combined_score=1.5,
                experience_score=0.9,
                total_experience_years=8,
            ),
        ],
        input_count=2,
    )
    data = json.loads(export_outcome_json(outcome))
    assert data["input_not_found"] is False
    assert data["input_count"] == 2
    assert data["results"][0]["candidate_id"] == "c1"


class TestMain:
    def test_missing_config_exits(self, tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "missing.yaml"), "dry-run"])
        assert exc_info.value.code == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_import_then_dry_run(self, tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
        db_path = tmp_path / "candidates.db"
        config = tmp_path / "settings.yaml"
        config.write_text(f"database:\n  path: {db_path}\n")
        people = tmp_path / "people.json"
        people.write_text(json.dumps([
            {"id": "a", "profile_url": "https://example.com/a"},
            {"id": "b", "profile_url": "https://example.com/b"},
            {"id": "c", "profile_url": "https://example.com/a"},
        ]))

        main(["--config", str(config), "import-candidates", "--file", str(people)])
        assert "Imported 2 new candidates (1 duplicates skipped)" in capsys.readouterr().out

        main(["--config", str(config), "dry-run"])
        assert "Candidate pool: 2 profiles" in capsys.readouterr().out

    def test_import_missing_file(self, tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
        config = tmp_path / "settings.yaml"
        config.write_text(f"database:\n  path: {tmp_path / 'c.db'}\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config), "import-candidates", "--file", str(tmp_path / "x.json")])
        assert exc_info.value.code == 1
        assert "Candidates file not found" in capsys.readouterr().err
