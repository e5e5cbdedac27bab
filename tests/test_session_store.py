"""
Test cases for the session store and progress tracker
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from pipeline.progress import ProgressTracker
from shared.errors import SessionClosedError, SessionNotFoundError
from shared.models import Operation, ProgressState, SessionStatus


def fail(record):
    record.status = SessionStatus.FAILED
    record.error = "Something went wrong"


class TestSessionStore:
    async def test_create_defaults(self, store):
        record = await store.create("abc", threshold=65)
        assert record.status == SessionStatus.PROCESSING
        assert record.threshold == 65
        assert record.progress.operation == Operation.FETCHING
        assert record.progress.current_job == 0
        assert record.results == []
        assert record.error is None
        assert len(store) == 1

    async def test_duplicate_id_rejected(self, store):
        await store.create("abc")
        with pytest.raises(ValueError):
            await store.create("abc")

    async def test_get_unknown_returns_none(self, store):
        assert await store.get("missing") is None

    async def test_get_returns_a_copy(self, store):
        await store.create("abc")
        snapshot = await store.get("abc")
        snapshot.progress.current_job = 99
        snapshot.results.append(None)
        fresh = await store.get("abc")
        assert fresh.progress.current_job == 0
        assert fresh.results == []

    async def test_update_applies_mutation(self, store):
        await store.create("abc")

        def advance(record):
            record.progress = ProgressState(current_job=2, total_jobs=5, operation=Operation.MATCHING)

        updated = await store.update("abc", advance)
        assert updated.progress.current_job == 2
        assert (await store.get("abc")).progress.operation == Operation.MATCHING

    async def test_update_unknown_session(self, store):
        with pytest.raises(SessionNotFoundError):
            await store.update("missing", fail)

    async def test_terminal_session_is_closed(self, store):
        await store.create("abc")
        await store.update("abc", fail)
        with pytest.raises(SessionClosedError):
            await store.update("abc", fail)

    async def test_invalid_mutation_leaves_record_untouched(self, store):
        await store.create("abc")

        def broken(record):
            record.status = SessionStatus.FAILED  # no error message

        with pytest.raises(ValidationError):
            await store.update("abc", broken)
        record = await store.get("abc")
        assert record.status == SessionStatus.PROCESSING
        assert record.error is None

    async def test_progress_beyond_total_rejected(self, store):
        await store.create("abc")

        def overflow(record):
            record.progress.total_jobs = 3
            record.progress.current_job = 4

        with pytest.raises(ValidationError):
            await store.update("abc", overflow)

    async def test_sweep_evicts_only_old_terminal_sessions(self, store):
        await store.create("running")
        await store.create("done")
        await store.update("done", fail)

        assert await store.sweep(timedelta(minutes=60)) == 0

        assert await store.sweep(timedelta(seconds=-1)) == 1
        assert await store.get("done") is None
        assert await store.get("running") is not None

    async def test_sweep_measures_age_from_completion(self, store):
        await store.create("long-running")

        def finish_after_two_hours(record):
            fail(record)
            record.created_at = datetime.now(timezone.utc) - timedelta(hours=2)
            record.completed_at = datetime.now(timezone.utc)

        await store.update("long-running", finish_after_two_hours)

        assert await store.sweep(timedelta(minutes=60)) == 0
        assert await store.get("long-running") is not None


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestProgressTracker:
    def test_no_estimate_before_first_job(self):
        tracker = ProgressTracker(5, clock=FakeClock())
        assert tracker.estimate_remaining(0) == 0

    def test_estimate_from_average(self):
        clock = FakeClock()
        tracker = ProgressTracker(10, clock=clock)
        clock.now += 8.0
        # 4 jobs in 8s -> 2s per job, 6 remaining
        assert tracker.estimate_remaining(4) == 12.0

    def test_no_estimate_when_done(self):
        clock = FakeClock()
        tracker = ProgressTracker(3, clock=clock)
        clock.now += 5.0
        assert tracker.estimate_remaining(3) == 0

    def test_snapshot(self):
        clock = FakeClock()
        tracker = ProgressTracker(7, clock=clock)
        clock.now += 3.0
        state = tracker.snapshot(3)
        assert state.current_job == 3
        assert state.total_jobs == 7
        assert state.operation == Operation.MATCHING
        assert state.estimated_time_remaining == 4.0
