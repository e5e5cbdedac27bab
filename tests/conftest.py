"""
Pytest configuration and shared fakes for the job fit analyzer tests.
"""

import asyncio
import json
import re
from typing import Optional, Union

import pytest

from matcher.engine import MatchingConfig, MatchingEngine
from matcher.llm_client import ModelConfig
from pipeline.orchestrator import AnalysisOrchestrator
from pipeline.session_store import SessionStore
from shared.config import Settings
from shared.models import CandidateProfile, JobPosting

TITLE_LINE = re.compile(r"\*\*Title:\*\* (.+)")

Reply = Union[str, Exception]


def scoring_json(
    score=80,
    suitable=True,
    missing_skills=None,
    experience_gap=0,
    reasoning="Strong overlap with the required stack.",
) -> str:
    """Build a well-formed scoring reply."""
    return json.dumps(
        {
            "matchScore": score,
            "suitable": suitable,
            "missingSkills": missing_skills or [],
            "experienceGap": experience_gap,
            "reasoning": reasoning,
        }
    )


class FakeLLM:
    """
    Scripted LLM keyed by job title.

    Each title maps to a list of replies consumed one per call; an Exception
    reply is raised. Titles without a script get `default`.
    """

    def __init__(self, replies: Optional[dict[str, list[Reply]]] = None, default: Reply = None):
        self.replies = {title: list(items) for title, items in (replies or {}).items()}
        self.default = default if default is not None else scoring_json(50)
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.configs: list[ModelConfig] = []

    async def complete(self, prompt: str, config: ModelConfig) -> str:
        title = TITLE_LINE.search(prompt).group(1).strip()
        self.calls.append(title)
        self.configs.append(config)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

        script = self.replies.get(title)
        reply = script.pop(0) if script else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply

    def calls_for(self, title: str) -> int:
        return self.calls.count(title)


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


class FakeScraper:
    def __init__(self, postings: Optional[list[JobPosting]] = None, error: Optional[Exception] = None):
        self.postings = postings or []
        self.error = error
        self.calls: list[tuple[str, int]] = []
        self.closed = False
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self, url: str, limit: int) -> list[JobPosting]:
        self.calls.append((url, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.postings)

    async def close(self) -> None:
        self.closed = True


class FakeParser:
    def __init__(self, profile: Optional[CandidateProfile] = None, error: Optional[Exception] = None):
        self.profile = profile or make_profile()
        self.error = error
        self.documents: list[bytes] = []

    async def extract(self, buffer: bytes) -> CandidateProfile:
        self.documents.append(buffer)
        if self.error is not None:
            raise self.error
        return self.profile


def make_posting(title: str, **kwargs) -> JobPosting:
    kwargs.setdefault("id", title.lower().replace(" ", "-"))
    kwargs.setdefault("description", f"We are hiring a {title}.")
    return JobPosting(title=title, **kwargs)


def make_profile(**kwargs) -> CandidateProfile:
    kwargs.setdefault("skills", ["testing", "code review"])
    kwargs.setdefault("technologies", ["Python", "Django", "PostgreSQL"])
    kwargs.setdefault("years_of_experience", 4)
    kwargs.setdefault("previous_roles", ["Backend Engineer"])
    kwargs.setdefault("raw_text", "Backend Engineer with 4 years of experience in Python.")
    return CandidateProfile(**kwargs)


PDF_BYTES = b"%PDF-1.4\n% test document\n"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        apify_api_token="test-token",
        log_format="text",
    )


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def config():
    return MatchingConfig(batch_size=3, batch_delay=2.0, max_retries=3, retry_base_delay=1.0)


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def engine(llm, config, sleep):
    return MatchingEngine(llm, config, sleep=sleep)


@pytest.fixture
def profile():
    return make_profile()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def scraper():
    return FakeScraper([make_posting(f"Job {i}") for i in range(1, 8)])


@pytest.fixture
def parser():
    return FakeParser()


@pytest.fixture
def orchestrator(store, scraper, parser, engine, settings):
    return AnalysisOrchestrator(store, scraper, parser, engine, settings=settings)
