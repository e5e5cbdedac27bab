"""
Response bodies of the HTTP API.
"""

from typing import Optional

from pydantic import BaseModel

from shared.models import MatchResult, Operation, ProgressState, SessionStatus, SummaryStats


class AnalyzeResponse(BaseModel):
    session_id: str


class ProgressResponse(BaseModel):
    session_id: str
    status: SessionStatus
    progress: ProgressState
    error: Optional[str] = None
    failed_stage: Optional[Operation] = None


class ResultsResponse(BaseModel):
    """Completed sessions carry results and summary; failed ones only the error."""

    session_id: str
    status: SessionStatus
    results: list[MatchResult] = []
    summary: Optional[SummaryStats] = None
    error: Optional[str] = None


class CancelResponse(BaseModel):
    session_id: str
    cancelled: bool


class ErrorResponse(BaseModel):
    error: str
    field: Optional[str] = None
    code: Optional[str] = None
