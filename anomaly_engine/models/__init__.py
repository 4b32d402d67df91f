"""
Shared Pydantic data models for the anomaly detection engine.

Modules:
    series: Data points and series keys
    detection: Detection results, models, patterns and enums
    alerts: Alert instances

Example:
    >>> from anomaly_engine.models import DataPoint, SeriesKey
    >>> from anomaly_engine.models import Alert, DetectionResult, Severity
"""

# Series models
from anomaly_engine.models.series import (
    DataPoint,
    SeriesKey,
)

# Detection models
from anomaly_engine.models.detection import (
    AnomalyKind,
    DetectionModel,
    DetectionPattern,
    DetectionResult,
    ModelKind,
    Severity,
)

# Alert models
from anomaly_engine.models.alerts import Alert

__all__ = [
    # Series
    "DataPoint",
    "SeriesKey",
    # Detection
    "AnomalyKind",
    "Severity",
    "ModelKind",
    "DetectionResult",
    "DetectionModel",
    "DetectionPattern",
    # Alerts
    "Alert",
]
