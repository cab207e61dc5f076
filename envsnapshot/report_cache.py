"""Single-slot, time-boxed cache for the latest environment report."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional

from envsnapshot.app_types import CachedReport
from envsnapshot.domain import EnvironmentReport
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="report_cache")


class ReportCache:
    """Hold one report for ``ttl_seconds`` and coalesce concurrent refetches.

    ``clock`` must be monotonic; tests inject a fake one.
    """

    def __init__(self, ttl_seconds: float = 600, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._slot: Optional[CachedReport] = None
        self._in_flight: Optional[Future] = None
        # bumped on clear() so a fetch started earlier cannot repopulate the slot
        self._generation = 0
        self._lock = threading.Lock()

    def _fresh(self, entry: Optional[CachedReport]) -> bool:
        return entry is not None and (self._clock() - entry.stored_at) < self.ttl

    def get(self) -> Optional[EnvironmentReport]:
        """Return the stored report if still within TTL, else None."""
        with self._lock:
            entry = self._slot
            if not self._fresh(entry):
                return None
            return entry.report

    def store(self, report: EnvironmentReport) -> None:
        """Replace the slot with ``report``, stamped now."""
        with self._lock:
            self._slot = CachedReport(report=report, stored_at=self._clock())

    def clear(self) -> None:
        """Drop the stored report; in-flight fetches will not be cached."""
        with self._lock:
            self._slot = None
            self._in_flight = None
            self._generation += 1
        logger.debug("Report cache cleared")

    def get_or_fetch(self, fetch: Callable[[], EnvironmentReport]) -> EnvironmentReport:
        """Return the cached report, or run ``fetch`` once for all concurrent callers."""
        with self._lock:
            if self._fresh(self._slot):
                logger.debug("Serving cached report")
                return self._slot.report
            if self._in_flight is not None:
                future = self._in_flight
                leader = False
            else:
                future = Future()
                self._in_flight = future
                generation = self._generation
                leader = True

        if not leader:
            logger.debug("Joining in-flight report fetch")
            return future.result()

        try:
            report = fetch()
        except BaseException as exc:
            with self._lock:
                if self._in_flight is future:
                    self._in_flight = None
            future.set_exception(exc)
            raise

        with self._lock:
            if self._generation == generation:
                self._slot = CachedReport(report=report, stored_at=self._clock())
            else:
                logger.info("Discarding report fetched before cache was cleared")
            if self._in_flight is future:
                self._in_flight = None
        future.set_result(report)
        return report
