"""
LLM-based matching engine.

Scores one candidate profile against many job postings in fixed-size
concurrent batches, retrying each posting independently with a growing
backoff and degrading to a zero score when every attempt fails.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from loguru import logger

from shared.config import Settings
from shared.errors import ServiceError
from shared.models import CandidateProfile, JobPosting, MatchResult

from .llm_client import LLMClient, ModelConfig
from .validator import SERVICE_NAME, validate_response

DEGRADED_REASONING = "Analysis failed after multiple attempts. Please try again."

ProgressCallback = Callable[[int, int], Awaitable[None]]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class MatchingConfig:
    """Matching engine parameters."""

    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 1000
    batch_size: int = 3
    batch_delay: float = 2.0  # seconds between batches
    max_retries: int = 3  # attempts per job, including the first
    retry_base_delay: float = 1.0  # seconds, multiplied by the attempt number

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.batch_delay < 0 or self.retry_base_delay < 0:
            raise ValueError("delays must not be negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> "MatchingConfig":
        return cls(
            model=settings.openai_model,
            temperature=settings.matcher_temperature,
            max_tokens=settings.matcher_max_tokens,
            batch_size=settings.matcher_batch_size,
            batch_delay=settings.matcher_batch_delay,
            max_retries=settings.matcher_max_retries,
            retry_base_delay=settings.matcher_retry_base_delay,
        )

    @property
    def model_params(self) -> ModelConfig:
        return ModelConfig(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


@dataclass
class ScoringOutcome:
    """Result of all scoring attempts for one posting."""

    job: JobPosting
    result: Optional[MatchResult] = None
    errors: list[ServiceError] = field(default_factory=list)
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.result is not None


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay to wait after the given (1-based) failed attempt."""
    return base_delay * attempt


def partition(jobs: list[JobPosting], size: int) -> list[list[JobPosting]]:
    """Split jobs into consecutive batches of at most `size` items."""
    return [jobs[i : i + size] for i in range(0, len(jobs), size)]


def build_prompt(profile: CandidateProfile, job: JobPosting) -> str:
    """Build the scoring prompt for one (profile, posting) pair."""
    candidate = json.dumps(
        {
            "skills": profile.skills,
            "yearsOfExperience": profile.years_of_experience,
            "technologies": profile.technologies,
            "previousRoles": profile.previous_roles,
        },
        indent=2,
    )
    required_skills = ", ".join(job.required_skills) or "Not specified"

    return f"""Analyze the fit between this candidate and job posting.

## Candidate Profile:
{candidate}

## Job Posting:
**Title:** {job.title}
**Location:** {job.location or "Not specified"}

**Description:**
{job.description}

**Required Skills:** {required_skills}
**Required Experience:** {job.required_experience} years

## Task:
Respond in the following JSON format only:

{{
  "matchScore": <number between 0-100>,
  "suitable": <boolean>,
  "missingSkills": [<skills the candidate lacks>],
  "experienceGap": <required minus candidate years, negative if candidate exceeds requirement>,
  "reasoning": "<2-3 sentence explanation of the match assessment>"
}}"""


class MatchingEngine:
    """Matches job postings against a candidate profile using an LLM."""

    def __init__(
        self,
        llm: LLMClient,
        config: MatchingConfig,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.llm = llm
        self.config = config
        self._sleep = sleep

    async def match_jobs(
        self,
        profile: CandidateProfile,
        jobs: list[JobPosting],
        threshold: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[MatchResult]:
        """
        Score every posting and rank the results.

        Args:
            profile: Candidate profile
            jobs: Postings to score
            threshold: Minimum score for a posting to be suitable
            on_progress: Awaited with (completed, total) after each posting

        Returns:
            One MatchResult per posting, by match_score descending; ties keep
            input order
        """
        total = len(jobs)
        completed = 0

        async def run(job: JobPosting) -> MatchResult:
            nonlocal completed
            outcome = await self.score_with_retry(profile, job, threshold)
            completed += 1
            if on_progress is not None:
                await on_progress(completed, total)
            if outcome.succeeded:
                return outcome.result
            logger.error(
                f"All {outcome.attempts} attempts failed for job {job.id}, assigning score 0"
            )
            return self.degraded_result(job)

        batches = partition(jobs, self.config.batch_size)
        results: list[MatchResult] = []

        for index, batch in enumerate(batches):
            logger.info(f"[{index + 1}/{len(batches)}] Scoring batch of {len(batch)} jobs")
            results.extend(await asyncio.gather(*(run(job) for job in batch)))

            # Rate limiting - delay between batches (except last one)
            if index < len(batches) - 1:
                await self._sleep(self.config.batch_delay)

        results.sort(key=lambda r: r.match_score, reverse=True)

        suitable = sum(1 for r in results if r.suitable)
        logger.info(f"Matching complete: {total} jobs, {suitable} suitable")
        return results

    async def score_with_retry(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        threshold: int,
    ) -> ScoringOutcome:
        """Score one posting, retrying retryable failures up to max_retries attempts."""
        outcome = ScoringOutcome(job=job)

        for attempt in range(1, self.config.max_retries + 1):
            outcome.attempts = attempt
            try:
                outcome.result = await self.score_job(profile, job, threshold)
                return outcome
            except ServiceError as e:
                error = e
            except Exception as e:
                logger.exception(f"Unexpected scoring error for job {job.id}")
                error = ServiceError(str(e), SERVICE_NAME, "UNEXPECTED_ERROR", retryable=True)

            outcome.errors.append(error)
            logger.warning(
                f"Match attempt {attempt}/{self.config.max_retries} failed for job {job.id}: "
                f"{error.code} - {error.message}"
            )

            if not error.retryable:
                break
            if attempt < self.config.max_retries:
                await self._sleep(backoff_delay(attempt, self.config.retry_base_delay))

        return outcome

    async def score_job(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        threshold: int,
    ) -> MatchResult:
        """
        Perform a single scoring call.

        Raises:
            ServiceError: on an empty or invalid model response, or a client failure
        """
        content = await self.llm.complete(build_prompt(profile, job), self.config.model_params)
        if not content or not content.strip():
            raise ServiceError(
                "LLM returned an empty response",
                SERVICE_NAME,
                "EMPTY_RESPONSE",
                retryable=True,
            )

        scored = validate_response(content)
        match_score = int(round(scored.match_score))

        logger.debug(f"Scored {job.title} ({job.id}): {match_score}")
        return MatchResult(
            job_id=job.id,
            job_title=job.title,
            location=job.location,
            required_experience=job.required_experience,
            apply_url=job.apply_url,
            match_score=match_score,
            # The model's own verdict is informational only
            suitable=match_score >= threshold,
            missing_skills=list(scored.missing_skills),
            experience_gap=scored.experience_gap,
            reasoning=scored.reasoning,
        )

    @staticmethod
    def degraded_result(job: JobPosting) -> MatchResult:
        """Zero-score placeholder for a posting whose scoring failed."""
        return MatchResult(
            job_id=job.id,
            job_title=job.title,
            location=job.location,
            required_experience=job.required_experience,
            apply_url=job.apply_url,
            match_score=0,
            suitable=False,
            missing_skills=[],
            experience_gap=0,
            reasoning=DEGRADED_REASONING,
        )
