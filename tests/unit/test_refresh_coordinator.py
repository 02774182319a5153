"""
Unit tests for RefreshCoordinator.

Tests cover:
- Staleness window boundary (119 vs 121 minutes)
- Forced refresh always runs
- Lazy load of the persisted marker
- Failure, timeout and cancellation leave the timestamp alone
- Single-flight: at most one job at a time, coalesced trailing runs
"""

import threading
import time
from datetime import timedelta

import pytest

from portfolio_tracker.services import RefreshCoordinator
from portfolio_tracker.domain.models import RefreshOutcome, RefreshPhase
from portfolio_tracker.core.exceptions import RefreshCancelled, RefreshError, RefreshTimeout

from tests.conftest import (
    BlockingRefreshJob,
    FailingRefreshJob,
    RecordingRefreshJob,
)


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def blocking_job():
    job = BlockingRefreshJob()
    yield job
    job.release.set()


@pytest.fixture
def blocking_coordinator(blocking_job, fake_clock):
    coord = RefreshCoordinator(refresh_job=blocking_job, clock=fake_clock, timeout_seconds=5)
    yield coord
    coord.shutdown()


def in_thread(target, *args, **kwargs):
    """Run ``target`` on a thread, capturing its result or exception."""
    outcome = {}

    def runner():
        try:
            outcome["result"] = target(*args, **kwargs)
        except Exception as exc:
            outcome["error"] = exc

    thread = threading.Thread(target=runner)
    thread.start()
    return thread, outcome


# =============================================================================
# STALENESS DECISIONS
# =============================================================================


class TestStalenessWindow:
    """Tests for the skip / refresh decision."""

    def test_never_refreshed_is_stale(self, coordinator: RefreshCoordinator, recording_job):
        """
        GIVEN no refresh has ever been recorded
        WHEN a plain read asks for freshness
        THEN the refresh job runs
        """
        result = coordinator.ensure_fresh()

        assert result.outcome == RefreshOutcome.REFRESHED
        assert recording_job.calls == [False]

    def test_119_minutes_skips_and_121_minutes_refreshes(
        self,
        coordinator: RefreshCoordinator,
        recording_job,
        fake_clock,
    ):
        """
        GIVEN a refresh completed at T
        WHEN a plain read happens at T+119m and then at T+121m
        THEN the first skips the job and the second runs it
        """
        coordinator.ensure_fresh(force=True)
        refreshed_at = coordinator.last_known_refresh_at
        assert refreshed_at == fake_clock.now

        fake_clock.advance(minutes=119)
        skipped = coordinator.ensure_fresh()

        assert skipped.outcome == RefreshOutcome.SKIPPED
        assert skipped.last_refreshed_at == refreshed_at
        assert recording_job.run_count == 1

        fake_clock.advance(minutes=2)
        refreshed = coordinator.ensure_fresh()

        assert refreshed.outcome == RefreshOutcome.REFRESHED
        assert refreshed.last_refreshed_at == fake_clock.now
        assert recording_job.run_count == 2

    def test_exactly_at_window_refreshes(self, coordinator: RefreshCoordinator, fake_clock):
        coordinator.ensure_fresh(force=True)
        fake_clock.advance(hours=2)

        assert coordinator.is_stale()

    def test_forced_refresh_runs_inside_window(
        self,
        coordinator: RefreshCoordinator,
        recording_job,
        fake_clock,
    ):
        coordinator.ensure_fresh(force=True)
        fake_clock.advance(minutes=1)

        result = coordinator.ensure_fresh(force=True)

        assert result.outcome == RefreshOutcome.REFRESHED
        assert recording_job.calls == [True, True]

    def test_custom_window(self, recording_job, fake_clock):
        coord = RefreshCoordinator(
            refresh_job=recording_job,
            clock=fake_clock,
            staleness_window=timedelta(minutes=5),
        )
        try:
            coord.ensure_fresh(force=True)
            fake_clock.advance(minutes=6)
            assert coord.ensure_fresh().outcome == RefreshOutcome.REFRESHED
        finally:
            coord.shutdown()

    def test_phase_returns_to_idle(self, coordinator: RefreshCoordinator):
        coordinator.ensure_fresh()
        coordinator.ensure_fresh()

        assert coordinator.phase == RefreshPhase.IDLE


class TestPersistedMarker:
    """Tests for reading back the job's own marker."""

    def test_recent_marker_skips_first_read(self, fake_clock):
        """
        GIVEN the job reports a refresh 30 minutes ago
        WHEN a fresh coordinator serves a plain read
        THEN the job is not invoked
        """
        job = RecordingRefreshJob(marker=fake_clock.now - timedelta(minutes=30))
        coord = RefreshCoordinator(refresh_job=job, clock=fake_clock)
        try:
            result = coord.ensure_fresh()

            assert result.outcome == RefreshOutcome.SKIPPED
            assert job.calls == []
            assert coord.last_global_refresh_at == job.marker
        finally:
            coord.shutdown()

    def test_old_marker_triggers_refresh(self, fake_clock):
        job = RecordingRefreshJob(marker=fake_clock.now - timedelta(hours=3))
        coord = RefreshCoordinator(refresh_job=job, clock=fake_clock)
        try:
            assert coord.ensure_fresh().outcome == RefreshOutcome.REFRESHED
            assert job.calls == [False]
        finally:
            coord.shutdown()

    def test_unreadable_marker_raises_refresh_error(self, fake_clock):
        class BrokenMarkerJob(RecordingRefreshJob):
            def last_refreshed_at(self):
                raise OSError("disk unavailable")

        coord = RefreshCoordinator(refresh_job=BrokenMarkerJob(), clock=fake_clock)
        try:
            with pytest.raises(RefreshError):
                coord.ensure_fresh()
            assert coord.phase == RefreshPhase.IDLE
        finally:
            coord.shutdown()


# =============================================================================
# FAILURE, TIMEOUT, CANCELLATION
# =============================================================================


class TestFailures:
    """Tests for unsuccessful refreshes."""

    def test_job_failure_propagates_and_keeps_timestamp(self, fake_clock):
        """
        GIVEN a job that always fails and a marker from 3 hours ago
        WHEN a forced refresh is requested
        THEN RefreshError is raised and the timestamp is unchanged
        """
        marker = fake_clock.now - timedelta(hours=3)
        job = FailingRefreshJob(marker=marker)
        coord = RefreshCoordinator(refresh_job=job, clock=fake_clock)
        try:
            assert coord.last_global_refresh_at == marker

            with pytest.raises(RefreshError) as exc_info:
                coord.ensure_fresh(force=True)

            assert "Network unavailable" in exc_info.value.message
            assert coord.last_global_refresh_at == marker
            assert coord.phase == RefreshPhase.IDLE
        finally:
            coord.shutdown()

    def test_timeout_raises_and_late_success_still_counts(
        self,
        blocking_coordinator: RefreshCoordinator,
        blocking_job,
        fake_clock,
    ):
        """
        GIVEN a job that does not finish within the caller's timeout
        WHEN the caller waits
        THEN RefreshTimeout is raised and the timestamp stays unset
        AND once the job finishes the timestamp reflects that completion
        """
        with pytest.raises(RefreshTimeout):
            blocking_coordinator.ensure_fresh(force=True, timeout=0.1)

        assert blocking_coordinator.last_known_refresh_at is None
        assert blocking_coordinator.phase == RefreshPhase.REFRESHING

        blocking_job.release.set()

        assert wait_until(lambda: blocking_coordinator.last_known_refresh_at == fake_clock.now)

    def test_cancelled_queued_run_never_executes(
        self,
        blocking_coordinator: RefreshCoordinator,
        blocking_job,
    ):
        """
        GIVEN a refresh already running
        WHEN a forced caller queues a trailing run and then cancels
        THEN the caller gets RefreshCancelled and the trailing run never starts
        """
        first, first_outcome = in_thread(blocking_coordinator.ensure_fresh, force=True)
        assert blocking_job.started.wait(timeout=5)

        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RefreshCancelled):
            blocking_coordinator.ensure_fresh(force=True, cancel_event=cancel)

        blocking_job.release.set()
        first.join(timeout=5)

        assert "error" not in first_outcome
        assert blocking_job.calls == [True]


# =============================================================================
# SINGLE-FLIGHT
# =============================================================================


class TestSingleFlight:
    """Tests for at-most-one concurrent refresh."""

    def test_forced_calls_during_a_run_share_one_trailing_run(
        self,
        blocking_coordinator: RefreshCoordinator,
        blocking_job,
    ):
        """
        GIVEN a forced refresh in progress
        WHEN two more forced refreshes arrive
        THEN they share one trailing run and no two jobs overlap
        """
        first, first_outcome = in_thread(blocking_coordinator.ensure_fresh, force=True)
        assert blocking_job.started.wait(timeout=5)

        second, second_outcome = in_thread(blocking_coordinator.ensure_fresh, force=True)
        third, third_outcome = in_thread(blocking_coordinator.ensure_fresh, force=True)
        time.sleep(0.2)

        blocking_job.release.set()
        for thread in (first, second, third):
            thread.join(timeout=5)

        assert blocking_job.calls == [True, True]
        assert blocking_job.max_running == 1
        for outcome in (first_outcome, second_outcome, third_outcome):
            assert outcome["result"].outcome == RefreshOutcome.REFRESHED

    def test_stale_read_joins_running_refresh(
        self,
        blocking_coordinator: RefreshCoordinator,
        blocking_job,
    ):
        """
        GIVEN a forced refresh in progress and no previous refresh
        WHEN a plain read arrives
        THEN it waits for the running job instead of starting another
        """
        first, _ = in_thread(blocking_coordinator.ensure_fresh, force=True)
        assert blocking_job.started.wait(timeout=5)

        reader, reader_outcome = in_thread(blocking_coordinator.ensure_fresh)
        time.sleep(0.2)

        blocking_job.release.set()
        first.join(timeout=5)
        reader.join(timeout=5)

        assert blocking_job.calls == [True]
        assert reader_outcome["result"].outcome == RefreshOutcome.REFRESHED


class TestPhase:
    """Tests for the coordinator-wide phase."""

    def test_skipped_read_does_not_hide_running_refresh(self, fake_clock):
        """
        GIVEN a fresh persisted marker and a forced refresh still running
        WHEN a plain read checks staleness and skips
        THEN the phase stays REFRESHING until the worker finishes
        """
        job = BlockingRefreshJob(marker=fake_clock.now)
        coord = RefreshCoordinator(refresh_job=job, clock=fake_clock, timeout_seconds=5)
        try:
            forced, forced_outcome = in_thread(coord.ensure_fresh, force=True)
            assert job.started.wait(timeout=5)

            result = coord.ensure_fresh()

            assert result.outcome == RefreshOutcome.SKIPPED
            assert coord.phase == RefreshPhase.REFRESHING

            job.release.set()
            forced.join(timeout=5)
            assert forced_outcome["result"].outcome == RefreshOutcome.REFRESHED
            assert wait_until(lambda: coord.phase == RefreshPhase.IDLE)
        finally:
            job.release.set()
            coord.shutdown()
