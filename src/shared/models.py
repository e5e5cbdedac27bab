"""
Pydantic models for postings, profiles, match results and analysis sessions.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Analysis session status."""

    PROCESSING = "processing"  # Pipeline still running
    COMPLETED = "completed"  # Results available
    FAILED = "failed"  # Terminated with an error


class Operation(str, Enum):
    """Pipeline stage currently being executed."""

    FETCHING = "fetching"  # Scraping job postings
    EXTRACTING = "extracting"  # Parsing the candidate document
    MATCHING = "matching"  # Scoring postings with the LLM
    COMPLETED = "completed"


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for value in values:
        value = value.strip()
        key = value.lower()
        if value and key not in seen:
            seen.add(key)
            unique.append(value)
    return unique


class JobPosting(BaseModel):
    """One job posting scraped from a career page."""

    id: str = Field(default_factory=lambda: uuid4().hex, description="Posting ID")
    title: str = Field(..., description="Job title")
    location: str = Field(default="", description="Job location")
    required_experience: int = Field(default=0, ge=0, description="Required years of experience")
    required_skills: list[str] = Field(default_factory=list, description="Required skills")
    description: str = Field(default="", description="Full job description")
    apply_url: str = Field(default="", description="Direct application URL")
    scraped_at: datetime = Field(default_factory=utcnow)

    @field_validator("required_skills")
    @classmethod
    def dedupe_skills(cls, value: list[str]) -> list[str]:
        return _unique(value)


class CandidateProfile(BaseModel):
    """Structured summary of a candidate extracted from a resume."""

    skills: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    years_of_experience: int = Field(default=0, ge=0)
    previous_roles: list[str] = Field(default_factory=list)
    raw_text: str = Field(default="", description="Full extracted document text")
    parsed_at: datetime = Field(default_factory=utcnow)


class MatchResult(BaseModel):
    """Scoring outcome for one (profile, posting) pair."""

    job_id: str
    job_title: str = ""
    location: str = ""
    required_experience: int = 0
    apply_url: str = ""

    match_score: int = Field(..., ge=0, le=100, description="Match score (0-100)")
    suitable: bool = Field(..., description="match_score >= session threshold")
    missing_skills: list[str] = Field(default_factory=list)
    experience_gap: float = Field(
        default=0, description="Required minus actual years, negative if candidate exceeds"
    )
    reasoning: str = Field(..., min_length=1)
    analyzed_at: datetime = Field(default_factory=utcnow)


class ProgressState(BaseModel):
    """Pipeline progress snapshot."""

    current_job: int = Field(default=0, ge=0)
    total_jobs: int = Field(default=0, ge=0)
    operation: Operation = Field(default=Operation.FETCHING)
    estimated_time_remaining: float = Field(
        default=0, ge=0, description="Advisory estimate in seconds"
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "ProgressState":
        if self.current_job > self.total_jobs:
            raise ValueError(
                f"current_job ({self.current_job}) exceeds total_jobs ({self.total_jobs})"
            )
        return self


class SessionRecord(BaseModel):
    """One end-to-end analysis run."""

    session_id: str
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    threshold: int = Field(default=70, ge=0, le=100)
    status: SessionStatus = Field(default=SessionStatus.PROCESSING)
    progress: ProgressState = Field(default_factory=ProgressState)
    results: list[MatchResult] = Field(default_factory=list)
    error: Optional[str] = None
    failed_stage: Optional[Operation] = None

    @model_validator(mode="after")
    def check_error(self) -> "SessionRecord":
        if (self.status == SessionStatus.FAILED) != (self.error is not None):
            raise ValueError("error must be set if and only if status is failed")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status != SessionStatus.PROCESSING


class SummaryStats(BaseModel):
    """Aggregate statistics over a completed result set."""

    total_jobs: int = 0
    suitable_jobs: int = 0
    average_score: float = 0.0
    suitability_percentage: float = 0.0

    @classmethod
    def from_results(cls, results: list[MatchResult]) -> "SummaryStats":
        total = len(results)
        if total == 0:
            return cls()

        suitable = sum(1 for r in results if r.suitable)
        return cls(
            total_jobs=total,
            suitable_jobs=suitable,
            average_score=round(sum(r.match_score for r in results) / total, 1),
            suitability_percentage=round(suitable / total * 100, 1),
        )
