"""
Z-score statistical detection strategy.

The most recent point is compared with a baseline made of the points that
precede it inside a rolling window. The strategy implements two guards:

    - Warmup Guard: non-anomalous until the series holds window_size points
    - Flat Series Guard: non-anomalous when the baseline has zero std

Formula:
    z = |current - mean| / std   (population std over the baseline)

Example:
    >>> strategy = StatisticalStrategy()
    >>> result = strategy.evaluate(points, {"threshold": 2.5, "window_size": 100})
    >>> if result.is_anomaly:
    ...     print(result.description)
"""

import math
from typing import List, Mapping, Sequence, Tuple

from anomaly_engine.models.detection import AnomalyKind, DetectionResult, Severity
from anomaly_engine.models.series import DataPoint
from anomaly_engine.strategies.base import (
    DetectionStrategy,
    get_parameter,
    no_anomaly_result,
)


DEFAULT_THRESHOLD = 2.5
DEFAULT_WINDOW_SIZE = 100
MAX_CONFIDENCE = 0.95


def mean_and_std(values: List[float]) -> Tuple[float, float]:
    """
    Compute the mean and population standard deviation.

    Args:
        values: Non-empty list of values.

    Returns:
        Tuple[float, float]: (mean, std).
    """
    mean = sum(values) / len(values)
    variance = sum((x - mean) ** 2 for x in values) / len(values)
    return mean, math.sqrt(variance)


class StatisticalStrategy(DetectionStrategy):
    """
    Z-score detector over a rolling window.

    The window is the most recent ``window_size`` points. Its last point is
    the value under test; the others form the baseline. A spike therefore
    never inflates the statistics it is measured against, and a perfectly
    flat baseline is treated as degenerate whatever the current value is.

    Parameters read from the model:
        threshold: Z-score above which the value is anomalous (default 2.5).
        window_size: Points in the window (default 100).
    """

    model_id = "statistical-zscore"
    name = "statistical"

    def evaluate(
        self,
        points: Sequence[DataPoint],
        parameters: Mapping[str, float],
    ) -> DetectionResult:
        """
        Evaluate the most recent point against the window baseline.

        Args:
            points: Chronological snapshot of the series.
            parameters: Model parameters (threshold, window_size).

        Returns:
            DetectionResult: Spike or drop verdict, or non-anomalous.
        """
        current = points[-1] if points else None
        threshold = get_parameter(parameters, "threshold", DEFAULT_THRESHOLD)
        window_size = max(2, int(get_parameter(parameters, "window_size", DEFAULT_WINDOW_SIZE)))

        # Guard 1: warmup
        if len(points) < window_size:
            return no_anomaly_result(current)

        window = points[-window_size:]
        baseline = [p.value for p in window[:-1]]
        current_value = window[-1].value

        mean, std = mean_and_std(baseline)

        # Guard 2: flat series
        if std == 0:
            return no_anomaly_result(current)

        zscore = abs(current_value - mean) / std
        if zscore <= threshold:
            return no_anomaly_result(current)

        score = min(zscore / threshold, 1.0)

        return DetectionResult(
            is_anomaly=True,
            score=score,
            confidence=min(score, MAX_CONFIDENCE),
            kind=AnomalyKind.SPIKE if current_value > mean else AnomalyKind.DROP,
            severity=Severity.from_score(score),
            expected_value=mean,
            actual_value=current_value,
            deviation=abs(current_value - mean),
            timestamp=window[-1].timestamp,
            description=(
                f"Statistical anomaly detected: Z-score {zscore:.2f} "
                f"(threshold: {threshold})"
            ),
            metadata={
                "strategy": self.name,
                "z_score": zscore,
                "mean": mean,
                "std_dev": std,
            },
        )
