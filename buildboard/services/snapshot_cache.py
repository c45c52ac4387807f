"""
Time-to-live cache for buildboard snapshots.

Lifecycle:
    EXPIRED --refresh ok--> FRESH --ttl elapsed--> EXPIRED
    EXPIRED --refresh failed--> EXPIRED (error raised to the caller)

The cached Snapshot is swapped as a whole, so readers only ever hold the
previous or the next snapshot. Callers that miss while a refresh is running
wait for that refresh instead of starting their own.
"""

import logging
import threading
from concurrent.futures import Future
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from ..domain.artifact import Snapshot
from ..exit_codes import SnapshotRefreshError

logger = logging.getLogger(__name__)


class CacheState(Enum):
    FRESH = "fresh"
    EXPIRED = "expired"


class SnapshotCache:
    """
    Holds the last successfully built Snapshot.

    Example:
        cache = SnapshotCache(service.build, ttl=timedelta(hours=1))
        snapshot = cache.get_snapshot()
    """

    def __init__(
        self,
        refresh: Callable[[datetime], Snapshot],
        ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize SnapshotCache.

        Args:
            refresh: Builds a new Snapshot for the given time
            ttl: How long a snapshot is served before a refresh
            clock: Source of the current time when get_snapshot gets no 'now'
        """
        self._refresh = refresh
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[Snapshot] = None
        self._in_flight: Optional[Future] = None

    def _is_fresh(self, snapshot: Optional[Snapshot], now: datetime) -> bool:
        return snapshot is not None and now - snapshot.captured_at < self.ttl

    def state(self, now: Optional[datetime] = None) -> CacheState:
        now = now or self._clock()
        return CacheState.FRESH if self._is_fresh(self._snapshot, now) else CacheState.EXPIRED

    @property
    def captured_at(self) -> Optional[datetime]:
        snapshot = self._snapshot
        return snapshot.captured_at if snapshot else None

    def invalidate(self) -> None:
        """Drop the cached snapshot; the next call refreshes."""
        with self._lock:
            self._snapshot = None

    def get_snapshot(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Return the cached snapshot, refreshing it first if it has expired.

        Raises:
            SnapshotRefreshError: if the refresh failed; nothing is cached then
        """
        now = now or self._clock()

        snapshot = self._snapshot
        if self._is_fresh(snapshot, now):
            logger.debug("Serving snapshot from cache")
            return snapshot

        with self._lock:
            snapshot = self._snapshot
            if self._is_fresh(snapshot, now):
                return snapshot
            future = self._in_flight
            owner = future is None
            if owner:
                future = self._in_flight = Future()
                self._snapshot = None

        if not owner:
            logger.debug("Waiting for in-flight refresh")
            return future.result()

        logger.info("Cache expired or empty. Fetching new data...")
        try:
            snapshot = self._refresh(now)
        except Exception as e:
            error = e if isinstance(e, SnapshotRefreshError) else SnapshotRefreshError(f"Refresh failed: {e}")
            logger.error(f"Failed to refresh snapshot: {e}")
            with self._lock:
                self._in_flight = None
            future.set_exception(error)
            if error is e:
                raise
            raise error from e
        except BaseException as e:
            with self._lock:
                self._in_flight = None
            future.set_exception(SnapshotRefreshError(f"Refresh interrupted: {e!r}"))
            raise

        with self._lock:
            self._snapshot = snapshot
            self._in_flight = None
        future.set_result(snapshot)
        logger.info("Successfully fetched and cached new data.")
        return snapshot
