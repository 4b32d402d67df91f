"""
Bounded in-memory store for metric time series.

This module provides the SeriesStore class which holds one capacity-bounded,
append-only series of data points per SeriesKey.

Key Features:
    - Series created lazily on first append
    - Strict FIFO eviction once a series exceeds its capacity
    - Immutable snapshots for readers (never a partially appended series)
    - Age-based retention sweeps
    - Thread-safe for concurrent ingest, sweeps and queries

Example:
    >>> store = SeriesStore(capacity=1000)
    >>> key = SeriesKey(organization_id="org-1", resource_id="rpc-1", metric_name="latency")
    >>> store.append(key, 120.0)
    >>> points = store.snapshot(key)
"""

import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, List, Optional, Tuple

import structlog

from anomaly_engine.clock import ensure_utc
from anomaly_engine.models.series import DataPoint, SeriesKey

logger = structlog.get_logger(__name__)


# Default maximum number of points kept per series
DEFAULT_SERIES_CAPACITY = 1000


class SeriesStore:
    """
    Append-only, capacity-bounded store of timestamped values.

    Every mutation and every snapshot happens under a single lock, so a
    reader never observes a series mid-append or mid-eviction. The raw
    buffers are never handed out; readers get tuples.

    Attributes:
        capacity: Maximum points kept per series.
        _series: Dict mapping SeriesKey to its point buffer.
        _lock: Lock serializing all access to _series.

    Example:
        >>> store = SeriesStore(capacity=3)
        >>> for value in (1.0, 2.0, 3.0, 4.0):
        ...     store.append(key, value)
        >>> [p.value for p in store.snapshot(key)]
        [2.0, 3.0, 4.0]
    """

    def __init__(self, capacity: int = DEFAULT_SERIES_CAPACITY) -> None:
        """
        Initialize the series store.

        Args:
            capacity: Maximum points kept per series (default: 1000).

        Raises:
            ValueError: If capacity < 1.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._series: Dict[SeriesKey, Deque[DataPoint]] = {}
        self._lock = threading.Lock()

        logger.debug("series_store_initialized", capacity=capacity)

    def append(
        self,
        key: SeriesKey,
        value: float,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> DataPoint:
        """
        Append a data point to a series, creating the series if needed.

        When the series is full the oldest point is evicted.

        Args:
            key: The series to append to.
            value: Observed value.
            metadata: Optional producer metadata.
            timestamp: Observation time (defaults to now, UTC).

        Returns:
            DataPoint: The appended point.
        """
        with self._lock:
            # Stamped under the lock so concurrent appends stay chronological
            point = DataPoint(
                timestamp=ensure_utc(timestamp),
                value=value,
                metadata=metadata or {},
            )

            series = self._series.get(key)
            if series is None:
                # deque(maxlen) drops from the left on overflow
                series = deque(maxlen=self.capacity)
                self._series[key] = series
            series.append(point)

        return point

    def snapshot(self, key: SeriesKey) -> Tuple[DataPoint, ...]:
        """
        Get an immutable copy of a series.

        Args:
            key: The series to read.

        Returns:
            Tuple[DataPoint, ...]: Points in chronological order, empty if unknown.
        """
        with self._lock:
            series = self._series.get(key)
            if series is None:
                return ()
            return tuple(series)

    def length(self, key: SeriesKey) -> int:
        """Number of points currently stored for a series."""
        with self._lock:
            series = self._series.get(key)
            return len(series) if series is not None else 0

    def keys(self) -> List[SeriesKey]:
        """
        Get all known series keys.

        Returns:
            List[SeriesKey]: Keys in creation order.
        """
        with self._lock:
            return list(self._series.keys())

    def total_points(self) -> int:
        """Total number of points across all series."""
        with self._lock:
            return sum(len(series) for series in self._series.values())

    def retention_sweep(
        self,
        max_age: timedelta,
        current_time: Optional[datetime] = None,
    ) -> int:
        """
        Remove points older than max_age from every series.

        Emptied series are kept; they are only ever trimmed.

        Args:
            max_age: Maximum age of retained points.
            current_time: Reference time (defaults to now, UTC).

        Returns:
            int: Number of points removed.

        Example:
            >>> removed = store.retention_sweep(timedelta(days=30))
        """
        cutoff = ensure_utc(current_time) - max_age

        removed = 0
        with self._lock:
            for key, series in self._series.items():
                kept = [point for point in series if point.timestamp >= cutoff]
                if len(kept) != len(series):
                    removed += len(series) - len(kept)
                    self._series[key] = deque(kept, maxlen=self.capacity)

        if removed:
            logger.debug(
                "series_retention_sweep",
                removed=removed,
                cutoff=cutoff.isoformat(),
            )

        return removed
