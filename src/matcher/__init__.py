"""
Matcher Service - LLM-based job-profile matching.

Scores job postings against a candidate profile with an LLM, returning
ranked 0-100 match results.
"""

from .engine import (
    DEGRADED_REASONING,
    MatchingConfig,
    MatchingEngine,
    ScoringOutcome,
    backoff_delay,
    build_prompt,
    partition,
)
from .llm_client import LLMClient, ModelConfig, OpenAIClient
from .validator import ScoringResponse, validate_response

__all__ = [
    "DEGRADED_REASONING",
    "MatchingConfig",
    "MatchingEngine",
    "ScoringOutcome",
    "backoff_delay",
    "build_prompt",
    "partition",
    "LLMClient",
    "ModelConfig",
    "OpenAIClient",
    "ScoringResponse",
    "validate_response",
]
