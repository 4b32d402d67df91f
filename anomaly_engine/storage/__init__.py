"""
In-process storage for the anomaly detection engine.

Components:
    series_store: SeriesStore, bounded per-key time series
    alert_store: AlertStore, alert registry and lifecycle

Example:
    >>> from anomaly_engine.storage import SeriesStore, AlertStore
    >>> series_store = SeriesStore(capacity=1000)
    >>> alert_store = AlertStore()
"""

from anomaly_engine.storage.series_store import DEFAULT_SERIES_CAPACITY, SeriesStore
from anomaly_engine.storage.alert_store import (
    DEFAULT_ALERT_MAX_AGE,
    DEFAULT_LIST_LIMIT,
    AlertStore,
)

__all__ = [
    # Series
    "SeriesStore",
    "DEFAULT_SERIES_CAPACITY",
    # Alerts
    "AlertStore",
    "DEFAULT_ALERT_MAX_AGE",
    "DEFAULT_LIST_LIMIT",
]
