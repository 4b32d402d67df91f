import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# ensure workspace root is on sys.path so the anomaly_engine package can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from anomaly_engine.models import AnomalyKind, DataPoint, DetectionResult, Severity


BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_points(values, start=BASE_TIME, step=timedelta(seconds=30)):
    """Build a chronological series snapshot from raw values."""
    return tuple(
        DataPoint(timestamp=start + i * step, value=float(v))
        for i, v in enumerate(values)
    )


def make_result(is_anomaly=True, score=0.5, confidence=0.5, kind=AnomalyKind.SPIKE,
                severity=Severity.MEDIUM, description="test result"):
    return DetectionResult(
        is_anomaly=is_anomaly,
        score=score,
        confidence=confidence,
        kind=kind,
        severity=severity,
        actual_value=1.0,
        deviation=0.0,
        timestamp=BASE_TIME,
        description=description,
    )


@pytest.fixture
def now():
    return BASE_TIME
