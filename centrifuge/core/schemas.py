"""Core data models for the ranking pipeline."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Position(BaseModel):
    """One entry of a candidate's career history."""

    model_config = ConfigDict(frozen=True)

    company_name: str = ""
    title: str = ""
    start_year: int | None = None
    end_year: int | None = None


class Education(BaseModel):
    """One entry of a candidate's education history."""

    model_config = ConfigDict(frozen=True)

    school_name: str = ""


class RawProfileData(BaseModel):
    """Semi-structured career record scraped from a profile."""

    model_config = ConfigDict(frozen=True)

    positions: tuple[Position, ...] = ()
    education: tuple[Education, ...] = ()


class Candidate(BaseModel):
    """A scraped person profile.

    Frozen: tags and flags are derived inputs to scoring, never mutated here.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    profile_url: str
    company_id: str | None = None
    raw_profile_data: RawProfileData = Field(default_factory=RawProfileData)
    top_technologies: frozenset[str] = frozenset()
    top_features: frozenset[str] = frozenset()
    job_titles: frozenset[str] = frozenset()
    summary: str = ""
    lives_near_target_region: bool | None = None
    worked_in_big_tech: bool = False
    worked_in_position: bool = False
    worked_at_relevant: bool = False
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def companies(self) -> list[str]:
        return [p.company_name for p in self.raw_profile_data.positions]

    @property
    def schools(self) -> list[str]:
        return [e.school_name for e in self.raw_profile_data.education]


class VectorMatch(BaseModel):
    """One nearest-neighbour hit from the vector index."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = 0.0
    metadata: dict[str, str] = Field(default_factory=dict)


class ExperienceStats(BaseModel):
    """Years-of-experience distribution of an input set.

    The bounds are diagnostic only; nothing is filtered by them.
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    std_dev: float
    lower_bound: int
    upper_bound: int


class ScoredCandidate(BaseModel):
    """Wrapper that pairs a frozen Candidate with its composite score."""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    combined_score: float = 0.0
    experience_score: float = Field(default=1.0, ge=0.0, le=1.0)
    total_experience_years: int = 0


class RankedResult(BaseModel):
    """The projection of a ScoredCandidate returned to callers."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    combined_score: float
    experience_score: float
    total_experience_years: int

    @classmethod
    def from_scored(cls, scored: ScoredCandidate) -> "RankedResult":
        return cls(
            candidate_id=scored.candidate.id,
            combined_score=scored.combined_score,
            experience_score=scored.experience_score,
            total_experience_years=scored.total_experience_years,
        )


# Requests accept both snake_case and camelCase keys; unknown keys are rejected.
_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ProfileUrlsRequest(BaseModel):
    """Rank the pool against exemplar profiles given by URL."""

    model_config = _REQUEST_CONFIG

    kind: Literal["profileUrls"] = "profileUrls"
    urls: list[str]

    @field_validator("urls")
    @classmethod
    def urls_not_empty(cls, v: list[str]) -> list[str]:
        cleaned = [u.strip() for u in v if u.strip()]
        if not cleaned:
            msg = "urls must not be empty"
            raise ValueError(msg)
        return cleaned


class StructuredFilterRequest(BaseModel):
    """Rank the pool against the candidates matching a structured filter."""

    model_config = _REQUEST_CONFIG

    kind: Literal["structuredFilter"] = "structuredFilter"
    skills: list[str] = Field(default_factory=list)
    job_title: str = ""
    company_ids: list[str] = Field(default_factory=list)
    near_target_region: bool = False
    match_all_skills: bool = False


class JobDescriptionRequest(BaseModel):
    """Rank the pool against a free-text job description."""

    model_config = _REQUEST_CONFIG

    kind: Literal["jobDescription"] = "jobDescription"
    description: str
    skills: list[str] = Field(default_factory=list)
    weight_profile: str = "profile_search"

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "description must not be empty"
            raise ValueError(msg)
        return v.strip()


RankRequest = Annotated[
    ProfileUrlsRequest | StructuredFilterRequest | JobDescriptionRequest,
    Field(discriminator="kind"),
]


class PipelineState(str, Enum):
    """States of one ranking run."""

    FETCH_INPUT = "FETCH_INPUT"
    ANALYZE = "ANALYZE"
    EMBED = "EMBED"
    QUERY_VECTOR_INDEX = "QUERY_VECTOR_INDEX"
    FETCH_POOL = "FETCH_POOL"
    COMBINE = "COMBINE"
    SORT_TRUNCATE = "SORT_TRUNCATE"
    DONE = "DONE"
    FAILED = "FAILED"


class RankOutcome(BaseModel):
    """Terminal result of a DONE run.

    ``input_not_found`` distinguishes "nothing matched the request" from
    "matched, but zero candidates ranked".
    """

    results: list[RankedResult] = Field(default_factory=list)
    input_not_found: bool = False
    input_count: int = 0
    states: list[PipelineState] = Field(default_factory=list)
