"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from centrifuge.core.config import (
    COMPANY_SEARCH,
    PROFILE_SEARCH,
    DatabaseConfig,
    EmbeddingConfig,
    PipelineConfig,
    RetryConfig,
    ScoringConfig,
    Settings,
    VectorIndexConfig,
)

EXAMPLE_SETTINGS = Path(__file__).parent.parent.parent / "config" / "settings.yaml"


class TestPipelineConfig:
    def test_defaults(self) -> None:
        p = PipelineConfig()
        assert p.batch_size == 500
        assert p.result_limit == 100
        assert p.experience_weight == 0.2
        assert p.region_boost == 1.2
        assert p.education_threshold_ratio == 0.75
        assert p.deadline_seconds is None

    def test_batch_size_min(self) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(batch_size=0)

    def test_region_boost_cannot_shrink(self) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(region_boost=0.8)

    def test_expansion_thresholds(self) -> None:
        t = PipelineConfig().term_expansion
        assert t.technology_threshold == 0.7
        assert t.technology_top_k == 200
        assert t.job_title_top_k == 500


class TestRetryConfig:
    def test_defaults_are_fixed_delay(self) -> None:
        r = RetryConfig()
        assert r.max_attempts == 3
        assert r.base_delay == 5.0
        assert r.backoff_factor == 1.0

    def test_at_least_one_attempt(self) -> None:
        with pytest.raises(ValidationError):
            RetryConfig(max_attempts=0)


class TestVectorIndexConfig:
    def test_default_namespaces(self) -> None:
        v = VectorIndexConfig()
        assert v.index_name == "whop"
        assert v.top_k == 10_000
        assert v.namespaces.skills == "candidate-skill-average"
        assert v.namespaces.features == "candidate-feature-average"
        assert v.namespaces.job_titles == "candidate-job-title-average"


class TestScoringConfig:
    def test_named_profiles(self) -> None:
        s = ScoringConfig()
        assert s.profile("profile_search") == PROFILE_SEARCH
        assert s.profile("company_search") == COMPANY_SEARCH

    def test_profiles_are_not_normalized(self) -> None:
        total = sum(PROFILE_SEARCH.model_dump().values())
        assert total == pytest.approx(1.35)
        total = sum(COMPANY_SEARCH.model_dump().values())
        assert total == pytest.approx(1.0)
        assert COMPANY_SEARCH.worked_at_relevant == 0.0

    def test_unknown_profile(self) -> None:
        with pytest.raises(ValueError, match="Unknown weight profile 'nope'"):
            ScoringConfig().profile("nope")

    def test_empty_profiles_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least one weight profile"):
            ScoringConfig(profiles={})


class TestSmallConfigs:
    def test_database_default_path(self) -> None:
        assert DatabaseConfig().path == "data/candidates.db"

    def test_embedding_defaults(self) -> None:
        e = EmbeddingConfig()
        assert e.provider == "openai"
        assert e.model is None
        assert e.max_concurrency == 8


class TestSettings:
    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_content = dedent("""\
            database:
              path: data/test.db
            embedding:
              provider: gemini
            vector_index:
              top_k: 50
              retry:
                max_attempts: 5
                base_delay: 0.5
                backoff_factor: 2
            pipeline:
              batch_size: 100
            scoring:
              profiles:
                custom:
                  similarity: 1.0
        """)
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml_content)

        settings = Settings.from_yaml(config_file)

        assert settings.database.path == "data/test.db"
        assert settings.embedding.provider == "gemini"
        assert settings.vector_index.top_k == 50
        assert settings.vector_index.retry.backoff_factor == 2.0
        assert settings.pipeline.batch_size == 100
        assert settings.scoring.profile("custom").similarity == 1.0

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")
        settings = Settings.from_yaml(config_file)
        assert settings.pipeline.result_limit == 100

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml("/nonexistent/path.yaml")

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("pipeline:\n  result_limit: 0\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(config_file)

    def test_load_example_settings(self) -> None:
        """The shipped example config/settings.yaml must be valid."""
        settings = Settings.from_yaml(EXAMPLE_SETTINGS)
        assert settings.vector_index.provider == "pinecone"
        assert settings.scoring.profile("profile_search") == PROFILE_SEARCH
        assert settings.scoring.profile("company_search") == COMPANY_SEARCH

    def test_example_settings_use_provider_default_model(self) -> None:
        assert Settings.from_yaml(EXAMPLE_SETTINGS).embedding.model is None
