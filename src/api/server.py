"""
HTTP API for job fit analysis.

POST /analyze starts a session and returns immediately; clients poll
/progress/{session_id} and fetch /results/{session_id} once it finishes.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from pipeline.orchestrator import AnalysisOrchestrator, create_orchestrator
from pipeline.session_store import SessionStore
from shared.config import Settings, get_settings
from shared.errors import InputError
from shared.models import SessionRecord, SessionStatus, SummaryStats
from shared.validation import validate_pdf

from .schemas import (
    AnalyzeResponse,
    CancelResponse,
    ErrorResponse,
    ProgressResponse,
    ResultsResponse,
)


async def sweep_expired_sessions(store: SessionStore, settings: Settings) -> None:
    """Periodically evict finished sessions older than the configured TTL."""
    ttl = timedelta(minutes=settings.session_ttl_minutes)
    while True:
        await asyncio.sleep(settings.session_sweep_interval_seconds)
        await store.sweep(ttl)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def create_app(
    orchestrator: Optional[AnalysisOrchestrator] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the FastAPI application around an orchestrator."""
    settings = settings or get_settings()
    orchestrator = orchestrator or create_orchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Job Fit Analyzer API")
        sweeper = asyncio.create_task(sweep_expired_sessions(orchestrator.store, settings))
        yield
        logger.info("Shutting down Job Fit Analyzer API")
        sweeper.cancel()
        await asyncio.wait([sweeper])
        await orchestrator.shutdown()

    app = FastAPI(
        title="Job Fit Analyzer API",
        description="Scores career page job postings against a resume",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InputError)
    async def input_error_handler(request: Request, exc: InputError):
        logger.info(f"Rejected {request.url.path}: {exc.field} - {exc.message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())

    async def load_session(session_id: str) -> SessionRecord:
        record = await orchestrator.store.get(session_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return record

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.post(
        "/analyze",
        response_model=AnalyzeResponse,
        status_code=status.HTTP_202_ACCEPTED,
        responses={400: {"model": ErrorResponse}},
    )
    async def analyze(
        url: Optional[str] = Form(None),
        resume: Optional[UploadFile] = File(None),
        max_jobs: Optional[str] = Form(None),
        threshold: Optional[str] = Form(None),
    ):
        """Validate the request and start an analysis session in the background."""
        if resume is None:
            raise InputError("Resume file is required", "resume", "REQUIRED_FIELD")

        content = await resume.read()
        validate_pdf(content, resume.content_type, max_size_mb=settings.max_upload_mb)

        session_id = await orchestrator.start_analysis(
            url,
            content,
            max_jobs=_blank_to_none(max_jobs),
            threshold=_blank_to_none(threshold),
        )
        return AnalyzeResponse(session_id=session_id)

    @app.get("/progress/{session_id}", response_model=ProgressResponse)
    async def get_progress(session_id: str):
        record = await load_session(session_id)
        return ProgressResponse(
            session_id=record.session_id,
            status=record.status,
            progress=record.progress,
            error=record.error,
            failed_stage=record.failed_stage,
        )

    @app.get("/results/{session_id}", response_model=ResultsResponse)
    async def get_results(session_id: str):
        """
        Final results of a session.

        Raises:
            HTTPException 404: Session not found
            HTTPException 409: Session still processing
        """
        record = await load_session(session_id)

        if record.status == SessionStatus.PROCESSING:
            raise HTTPException(status_code=409, detail="Analysis still in progress")

        if record.status == SessionStatus.FAILED:
            return ResultsResponse(
                session_id=record.session_id,
                status=record.status,
                error=record.error,
            )

        return ResultsResponse(
            session_id=record.session_id,
            status=record.status,
            results=record.results,
            summary=SummaryStats.from_results(record.results),
        )

    @app.post("/cancel/{session_id}", response_model=CancelResponse)
    async def cancel_analysis(session_id: str):
        await load_session(session_id)
        cancelled = await orchestrator.cancel(session_id)
        return CancelResponse(session_id=session_id, cancelled=cancelled)

    return app
