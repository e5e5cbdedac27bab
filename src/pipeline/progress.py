"""
Progress tracking for the matching stage.
"""

import time
from typing import Callable

from shared.models import Operation, ProgressState


class ProgressTracker:
    """Times completed jobs to estimate the remaining matching time."""

    def __init__(self, total_jobs: int, clock: Callable[[], float] = time.monotonic):
        self.total_jobs = total_jobs
        self._clock = clock
        self._started = clock()

    def estimate_remaining(self, completed: int) -> float:
        """Jobs remaining times the observed average seconds per job."""
        remaining = self.total_jobs - completed
        if completed <= 0 or remaining <= 0:
            return 0.0
        average = (self._clock() - self._started) / completed
        return round(remaining * average, 1)

    def snapshot(self, completed: int) -> ProgressState:
        return ProgressState(
            current_job=completed,
            total_jobs=self.total_jobs,
            operation=Operation.MATCHING,
            estimated_time_remaining=self.estimate_remaining(completed),
        )
