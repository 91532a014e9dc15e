"""Configuration models and YAML loader for the ranking pipeline."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/candidates.db"


class EmbeddingConfig(BaseModel):
    """Which embedding provider to use and how hard to drive it."""

    provider: str = "openai"
    model: str | None = None
    max_concurrency: int = Field(default=8, ge=1)


class RetryConfig(BaseModel):
    """Retry policy for vector index queries.

    backoff_factor == 1.0 keeps the delay fixed; anything above grows it
    geometrically per attempt.
    """

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=5.0, ge=0.0)
    backoff_factor: float = Field(default=1.0, ge=1.0)


class NamespaceConfig(BaseModel):
    """Vector index namespaces, one per semantic kind."""

    skills: str = "candidate-skill-average"
    features: str = "candidate-feature-average"
    job_titles: str = "candidate-job-title-average"
    technologies: str = "technologies"
    job_title_terms: str = "job-titles"
    summaries: str = "candidate-summaries"


class VectorIndexConfig(BaseModel):
    """Vector index connection and query settings."""

    provider: str = "pinecone"
    index_name: str = "whop"
    top_k: int = Field(default=10_000, ge=1)
    namespaces: NamespaceConfig = Field(default_factory=NamespaceConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)


class TermExpansionConfig(BaseModel):
    """Thresholds for expanding filter terms into similar terms."""

    technology_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    technology_top_k: int = Field(default=200, ge=1)
    job_title_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    job_title_top_k: int = Field(default=500, ge=1)


class PipelineConfig(BaseModel):
    """Fixed weights and limits of the relevance pipeline."""

    batch_size: int = Field(default=500, ge=1)
    result_limit: int = Field(default=100, ge=1)
    experience_weight: float = 0.2
    region_boost: float = Field(default=1.2, ge=1.0)
    region_majority_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    education_threshold_ratio: float = Field(default=0.75, ge=0.0, le=1.0)
    filter_input_limit: int = Field(default=100, ge=1)
    term_expansion: TermExpansionConfig = Field(default_factory=TermExpansionConfig)
    deadline_seconds: float | None = Field(default=None, gt=0.0)


class WeightProfile(BaseModel):
    """Literal weights for the flag-based scoring variants.

    Not normalized: profile_search sums to more than 1.
    """

    similarity: float = 0.0
    worked_in_position: float = 0.0
    worked_at_relevant: float = 0.0
    relevant_skill_ratio: float = 0.0
    worked_in_big_tech: float = 0.0
    lives_near_region: float = 0.0


PROFILE_SEARCH = WeightProfile(
    similarity=0.35,
    worked_in_position=0.15,
    worked_at_relevant=0.35,
    worked_in_big_tech=0.15,
    lives_near_region=0.35,
)

COMPANY_SEARCH = WeightProfile(
    similarity=0.1,
    worked_in_position=0.15,
    relevant_skill_ratio=0.3,
    worked_in_big_tech=0.15,
    lives_near_region=0.3,
)


def _default_profiles() -> dict[str, WeightProfile]:
    return {"profile_search": PROFILE_SEARCH, "company_search": COMPANY_SEARCH}


class ScoringConfig(BaseModel):
    """Named weight profiles, selectable per request."""

    profiles: dict[str, WeightProfile] = Field(default_factory=_default_profiles)

    @field_validator("profiles")
    @classmethod
    def at_least_one_profile(cls, v: dict[str, WeightProfile]) -> dict[str, WeightProfile]:
        if not v:
            msg = "at least one weight profile must be configured"
            raise ValueError(msg)
        return v

    def profile(self, name: str) -> WeightProfile:
        """Look up a weight profile by name."""
        if name not in self.profiles:
            valid = ", ".join(sorted(self.profiles))
            msg = f"Unknown weight profile '{name}'. Available: {valid}"
            raise ValueError(msg)
        return self.profiles[name]


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_index: VectorIndexConfig = Field(default_factory=VectorIndexConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
