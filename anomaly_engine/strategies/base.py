"""
Abstract base class for detection strategies.

This module defines the DetectionStrategy interface implemented by the
statistical, rule-based and rank-outlier strategies, plus the helpers they
share.

Strategies are stateless: they read a snapshot of a series and the
parameters of their detection model, and return a fresh DetectionResult.
A series too short for a strategy is never an error; the strategy returns
a non-anomalous, zero-score result instead.

Example:
    >>> class MyStrategy(DetectionStrategy):
    ...     model_id = "my-model"
    ...     name = "my_strategy"
    ...
    ...     def evaluate(self, points, parameters):
    ...         return no_anomaly_result(points[-1])
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from anomaly_engine.models.detection import AnomalyKind, DetectionResult, Severity
from anomaly_engine.models.series import DataPoint


def no_anomaly_result(point: Optional[DataPoint]) -> DetectionResult:
    """
    Build the non-anomalous result for the most recent point.

    Args:
        point: The evaluated point, or None for an empty series.

    Returns:
        DetectionResult: is_anomaly=False, score=0, confidence=0.
    """
    if point is None:
        actual_value = 0.0
        timestamp = datetime.now(timezone.utc)
    else:
        actual_value = point.value
        timestamp = point.timestamp

    return DetectionResult(
        is_anomaly=False,
        score=0.0,
        confidence=0.0,
        kind=AnomalyKind.OUTLIER,
        severity=Severity.LOW,
        actual_value=actual_value,
        deviation=0.0,
        timestamp=timestamp,
        description="No anomaly detected",
    )


def get_parameter(
    parameters: Mapping[str, float],
    name: str,
    default: float,
) -> float:
    """
    Read a numeric model parameter, falling back to a default.

    Args:
        parameters: The model's parameter map.
        name: Parameter name.
        default: Value used when the parameter is absent.

    Returns:
        float: The parameter value.
    """
    value = parameters.get(name)
    if value is None:
        return default
    return float(value)


class DetectionStrategy(ABC):
    """
    Abstract base class for detection strategies.

    Attributes:
        model_id: Id of the DetectionModel whose parameters the strategy reads.
        name: Short strategy name used in logs and result metadata.
    """

    model_id: str
    name: str

    @abstractmethod
    def evaluate(
        self,
        points: Sequence[DataPoint],
        parameters: Mapping[str, float],
    ) -> DetectionResult:
        """
        Evaluate the most recent point of a series.

        Args:
            points: Chronological snapshot of the series.
            parameters: Parameters of the strategy's detection model.

        Returns:
            DetectionResult: The strategy's verdict for the last point.
        """
        pass
