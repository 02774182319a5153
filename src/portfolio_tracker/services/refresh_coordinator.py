"""
Staleness-driven refresh coordinator.

Decides on every read whether the price cache is old enough to refresh and
makes the caller wait for the refresh before it reads aggregates.

States (see ``phase``):
    IDLE       - nothing in progress
    CHECKING   - a caller is comparing the last refresh time against the window
    REFRESHING - the refresh job is running on the worker thread

The worker's REFRESHING state wins over callers that are only checking.
A call that finds the cache fresh reports RefreshOutcome.SKIPPED.

Forced calls (after any ledger mutation) always refresh. Unforced calls
(plain reads) refresh only when the last refresh is at least
``staleness_window`` old, or when no refresh has ever been recorded.

At most one refresh job runs at a time. A forced call that arrives while a
job is already running queues one trailing run, shared by every later
forced call, so the caller always sees a refresh that started after its
own mutation.
"""

import logging
import threading
import time
from contextlib import contextmanager
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, wait
from datetime import datetime, timedelta
from typing import Optional

from portfolio_tracker.core.exceptions import RefreshCancelled, RefreshError, RefreshTimeout
from portfolio_tracker.core.timezone import Clock, now_eastern
from portfolio_tracker.domain.models import RefreshOutcome, RefreshPhase
from portfolio_tracker.domain.views import RefreshResult
from portfolio_tracker.providers.refresh_job import RefreshJob

logger = logging.getLogger(__name__)

DEFAULT_STALENESS_WINDOW = timedelta(hours=2)
DEFAULT_TIMEOUT_SECONDS = 30.0

# How often a waiter with a cancel event checks it
_CANCEL_POLL_SECONDS = 0.05


class RefreshCoordinator:
    """
    Owns the process-wide ``last_global_refresh_at`` timestamp.

    Both the clock and the refresh job are injected so staleness decisions
    can be tested without real time passing.
    """

    def __init__(
        self,
        refresh_job: RefreshJob,
        clock: Clock = now_eastern,
        staleness_window: timedelta = DEFAULT_STALENESS_WINDOW,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._job = refresh_job
        self._clock = clock
        self._window = staleness_window
        self._timeout = timeout_seconds

        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="price-refresh")
        self._refreshing = False
        self._checks = 0
        self._last_refresh_at: Optional[datetime] = None
        self._marker_loaded = False
        self._latest_run: Optional[Future] = None
        self._waiters: dict[Future, int] = {}

    @property
    def phase(self) -> RefreshPhase:
        """Current coordinator state."""
        with self._lock:
            if self._refreshing:
                return RefreshPhase.REFRESHING
            if self._checks:
                return RefreshPhase.CHECKING
            return RefreshPhase.IDLE

    @property
    def staleness_window(self) -> timedelta:
        return self._window

    @property
    def last_global_refresh_at(self) -> Optional[datetime]:
        """
        When the price cache was last known to be refreshed.

        Falls back once to the marker persisted by the refresh job.
        """
        with self._lock:
            if not self._marker_loaded:
                try:
                    self._last_refresh_at = self._job.last_refreshed_at()
                except Exception as exc:
                    raise RefreshError(f"Could not read last refresh marker: {exc}") from exc
                self._marker_loaded = True
            return self._last_refresh_at

    @property
    def last_known_refresh_at(self) -> Optional[datetime]:
        """The in-memory timestamp, without reading the persisted marker."""
        with self._lock:
            return self._last_refresh_at

    def is_stale(self) -> bool:
        """True when no refresh is recorded or the last one is outside the window."""
        last = self.last_global_refresh_at
        if last is None:
            return True
        return self._clock() - last >= self._window

    def ensure_fresh(
        self,
        force: bool = False,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RefreshResult:
        """
        Make sure the price cache is fresh before the caller reads it.

        Returns once the refresh (if one was needed) has finished.

        Raises:
            RefreshError: the refresh job failed
            RefreshTimeout: the job did not finish within ``timeout`` seconds
            RefreshCancelled: ``cancel_event`` was set while waiting
        """
        if not force:
            with self._checking():
                stale = self.is_stale()
            if not stale:
                logger.debug("Price cache is fresh (last refresh %s); skipping", self._last_refresh_at)
                return RefreshResult(
                    outcome=RefreshOutcome.SKIPPED,
                    last_refreshed_at=self.last_known_refresh_at,
                )
            logger.info("Price cache is stale (last refresh %s); refreshing", self._last_refresh_at)
        else:
            logger.info("Forced price refresh requested")

        run = self._acquire_run(force)
        try:
            self._wait(run, self._timeout if timeout is None else timeout, cancel_event)
        finally:
            self._release_run(run)

        return RefreshResult(
            outcome=RefreshOutcome.REFRESHED,
            last_refreshed_at=self.last_known_refresh_at,
        )

    def shutdown(self) -> None:
        """Stop the worker; queued runs are cancelled, a running job is not waited for."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _acquire_run(self, force: bool) -> Future:
        """Join a suitable in-flight run or submit a new one."""
        with self._lock:
            latest = self._latest_run
            if latest is not None and not latest.done() and not (force and latest.running()):
                run = latest
            else:
                run = self._executor.submit(self._run_job, force)
                self._latest_run = run
            self._waiters[run] = self._waiters.get(run, 0) + 1
            return run

    def _release_run(self, run: Future) -> None:
        with self._lock:
            remaining = self._waiters.get(run, 0) - 1
            if remaining > 0:
                self._waiters[run] = remaining
            else:
                self._waiters.pop(run, None)

    def _wait(
        self,
        run: Future,
        timeout: float,
        cancel_event: Optional[threading.Event],
    ) -> None:
        deadline = time.monotonic() + timeout
        while not run.done():
            if cancel_event is not None and cancel_event.is_set():
                self._cancel(run)
                raise RefreshCancelled()
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Price refresh exceeded %.1fs timeout", timeout)
                raise RefreshTimeout(timeout)
            if cancel_event is not None:
                remaining = min(remaining, _CANCEL_POLL_SECONDS)
            wait([run], timeout=remaining)

        try:
            run.result()
        except CancelledError:
            raise RefreshCancelled() from None

    def _cancel(self, run: Future) -> None:
        """Cancel a queued run, but only if no other caller is waiting on it."""
        with self._lock:
            if self._waiters.get(run, 0) <= 1 and run.cancel():
                logger.info("Queued price refresh cancelled")
                if self._latest_run is run:
                    self._latest_run = None

    def _run_job(self, force: bool) -> None:
        """Executed on the worker thread; only success moves the timestamp."""
        with self._lock:
            self._refreshing = True
        try:
            self._job.run(force)
        except RefreshError:
            logger.exception("Price refresh failed")
            raise
        except Exception as exc:
            logger.exception("Price refresh failed")
            raise RefreshError(f"Price refresh failed: {exc}") from exc
        finally:
            with self._lock:
                self._refreshing = False

        completed_at = self._clock()
        with self._lock:
            self._last_refresh_at = completed_at
            self._marker_loaded = True
        logger.info("Price refresh completed at %s", completed_at.isoformat())

    @contextmanager
    def _checking(self):
        with self._lock:
            self._checks += 1
        try:
            yield
        finally:
            with self._lock:
                self._checks -= 1
