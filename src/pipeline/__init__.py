"""
Analysis Pipeline - session-based job fit analysis.
Fetch postings → Extract profile → Match → Rank, tracked per session.
"""

from .orchestrator import AnalysisOrchestrator, create_orchestrator
from .progress import ProgressTracker
from .session_store import SessionStore

__all__ = ["AnalysisOrchestrator", "ProgressTracker", "SessionStore", "create_orchestrator"]
