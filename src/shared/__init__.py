# Shared module for common utilities, models, errors and configuration
from .config import Settings, get_settings
from .errors import InputError, ServiceError, SessionClosedError, SessionNotFoundError
from .models import (
    CandidateProfile,
    JobPosting,
    MatchResult,
    Operation,
    ProgressState,
    SessionRecord,
    SessionStatus,
    SummaryStats,
)

__all__ = [
    "Settings",
    "get_settings",
    "InputError",
    "ServiceError",
    "SessionClosedError",
    "SessionNotFoundError",
    "CandidateProfile",
    "JobPosting",
    "MatchResult",
    "Operation",
    "ProgressState",
    "SessionRecord",
    "SessionStatus",
    "SummaryStats",
]
