"""
Analysis orchestrator.

Drives one session through fetching -> extracting -> matching -> completed,
running each session as a detached asyncio task and routing every state
change through the session store so pollers see progress mid-pipeline.
"""

import asyncio
from datetime import datetime, timezone
from functools import partial
from typing import Optional
from uuid import uuid4

from loguru import logger

from matcher.engine import MatchingConfig, MatchingEngine
from matcher.llm_client import OpenAIClient
from resume import DocumentParser, ResumeParser
from scraper import ApifyScraper, Scraper
from shared.config import Settings, get_settings
from shared.errors import (
    InputError,
    ServiceError,
    SessionClosedError,
    SessionNotFoundError,
)
from shared.models import (
    JobPosting,
    MatchResult,
    Operation,
    ProgressState,
    SessionRecord,
    SessionStatus,
)
from shared.validation import validate_max_jobs, validate_threshold, validate_url

from .progress import ProgressTracker
from .session_store import SessionStore

CANCELLED_MESSAGE = "Analysis cancelled"
UNEXPECTED_MESSAGE = "Analysis failed due to an unexpected error. Please try again."


def unique_postings(postings: list[JobPosting]) -> list[JobPosting]:
    """Drop postings whose id was already seen (first one wins)."""
    seen: set[str] = set()
    unique = []
    for posting in postings:
        if posting.id in seen:
            logger.warning(f"Dropping duplicate posting id {posting.id}")
            continue
        seen.add(posting.id)
        unique.append(posting)
    return unique


class AnalysisOrchestrator:
    """
    Runs analysis sessions: scrape postings, parse the resume, score matches.

    Collaborators are injected so they can be swapped in tests.
    """

    def __init__(
        self,
        store: SessionStore,
        scraper: Scraper,
        parser: DocumentParser,
        engine: MatchingEngine,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.scraper = scraper
        self.parser = parser
        self.engine = engine
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def active_sessions(self) -> list[str]:
        return [sid for sid, task in self._tasks.items() if not task.done()]

    async def start_analysis(
        self,
        url: str,
        document: bytes,
        max_jobs: Optional[int] = None,
        threshold: Optional[int] = None,
    ) -> str:
        """
        Register a new session and start its pipeline without waiting for it.

        Returns:
            The new session id

        Raises:
            InputError: invalid URL, empty document or out-of-range parameters
        """
        url = validate_url(url, production=self.settings.is_production)
        max_jobs = validate_max_jobs(
            self.settings.default_max_jobs if max_jobs is None else max_jobs
        )
        threshold = validate_threshold(
            self.settings.default_match_threshold if threshold is None else threshold
        )
        if not document:
            raise InputError("Resume document is required", "resume", "REQUIRED_FIELD")

        session_id = uuid4().hex
        await self.store.create(session_id, threshold=threshold)

        task = asyncio.create_task(
            self.run(session_id, url, document, max_jobs, threshold),
            name=f"analysis-{session_id}",
        )
        self._tasks[session_id] = task
        task.add_done_callback(partial(self._forget, session_id))

        logger.info(
            f"Started analysis {session_id}: url={url}, max_jobs={max_jobs}, threshold={threshold}"
        )
        return session_id

    def _forget(self, session_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(session_id, None)

    async def run(
        self,
        session_id: str,
        url: str,
        document: bytes,
        max_jobs: int,
        threshold: int,
    ) -> None:
        """Execute the full pipeline for one session, ending in a terminal status."""
        stage = Operation.FETCHING
        try:
            # Stage 1: fetch postings
            logger.info(f"[{session_id}] Fetching job postings from {url}")
            postings = unique_postings(await self.scraper.fetch(url, max_jobs))[:max_jobs]
            if not postings:
                raise ServiceError(
                    "No job postings found at the provided URL",
                    "scraping",
                    "NO_JOBS_FOUND",
                    retryable=False,
                )
            total = len(postings)

            # Stage 2: extract the candidate profile
            stage = Operation.EXTRACTING
            await self._set_progress(
                session_id,
                ProgressState(total_jobs=total, operation=Operation.EXTRACTING),
            )
            logger.info(f"[{session_id}] Found {total} postings, parsing resume")
            profile = await self.parser.extract(document)
            if not profile.raw_text.strip():
                raise ServiceError(
                    "No text could be extracted from the resume",
                    "resume-parser",
                    "EMPTY_DOCUMENT",
                    retryable=False,
                )

            # Stage 3: score every posting
            stage = Operation.MATCHING
            tracker = ProgressTracker(total)
            await self._set_progress(session_id, tracker.snapshot(0))

            async def on_progress(completed: int, _total: int) -> None:
                await self._set_progress(session_id, tracker.snapshot(completed))

            results = await self.engine.match_jobs(profile, postings, threshold, on_progress)

            await self.store.update(session_id, partial(_complete, results=results))
            logger.info(f"[{session_id}] Analysis completed with {len(results)} results")

        except ServiceError as e:
            logger.error(f"[{session_id}] {stage.value} failed: {e.service}/{e.code} - {e.message}")
            await self._fail(session_id, stage, e.message)
        except asyncio.CancelledError:
            logger.warning(f"[{session_id}] Cancelled during {stage.value}")
            await self._fail(session_id, stage, CANCELLED_MESSAGE)
            raise
        except Exception:
            logger.exception(f"[{session_id}] Unexpected failure during {stage.value}")
            await self._fail(session_id, stage, UNEXPECTED_MESSAGE)

    async def _set_progress(self, session_id: str, progress: ProgressState) -> None:
        def apply(record: SessionRecord) -> None:
            # Never move backwards within the same stage
            same_stage = record.progress.operation == progress.operation
            if same_stage and progress.current_job < record.progress.current_job:
                return
            record.progress = progress

        await self.store.update(session_id, apply)

    async def _fail(self, session_id: str, stage: Operation, message: str) -> None:
        def apply(record: SessionRecord) -> None:
            record.status = SessionStatus.FAILED
            record.error = message
            record.failed_stage = stage
            record.completed_at = datetime.now(timezone.utc)

        try:
            await self.store.update(session_id, apply)
        except (SessionNotFoundError, SessionClosedError) as e:
            logger.warning(f"[{session_id}] Could not record failure: {e!r}")

    async def wait(self, session_id: str) -> Optional[SessionRecord]:
        """Wait for a running session to finish and return its final record."""
        task = self._tasks.get(session_id)
        if task is not None:
            await asyncio.wait([task])
        return await self.store.get(session_id)

    async def cancel(self, session_id: str) -> bool:
        """
        Cancel a running session. The session ends as failed.

        Returns:
            True if a running session was cancelled
        """
        task = self._tasks.get(session_id)
        if task is None or task.done():
            return False

        task.cancel()
        await asyncio.wait([task])

        # A task cancelled before its first step never recorded the failure
        record = await self.store.get(session_id)
        if record is not None and not record.is_terminal:
            await self._fail(session_id, record.progress.operation, CANCELLED_MESSAGE)

        logger.info(f"Cancelled analysis {session_id}")
        return True

    async def shutdown(self) -> None:
        """Cancel every running session and close collaborator clients."""
        for session_id in self.active_sessions:
            await self.cancel(session_id)

        for resource in (self.scraper, self.engine.llm):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()


def _complete(record: SessionRecord, results: list[MatchResult]) -> None:
    record.status = SessionStatus.COMPLETED
    record.results = list(results)
    record.progress = ProgressState(
        current_job=len(results),
        total_jobs=len(results),
        operation=Operation.COMPLETED,
        estimated_time_remaining=0,
    )
    record.completed_at = datetime.now(timezone.utc)


def create_orchestrator(
    settings: Optional[Settings] = None,
    store: Optional[SessionStore] = None,
) -> AnalysisOrchestrator:
    """Wire the default collaborators: Apify scraper, resume parser and OpenAI matcher."""
    settings = settings or get_settings()
    engine = MatchingEngine(OpenAIClient(settings), MatchingConfig.from_settings(settings))
    return AnalysisOrchestrator(
        store=store or SessionStore(),
        scraper=ApifyScraper(settings),
        parser=ResumeParser(),
        engine=engine,
        settings=settings,
    )
