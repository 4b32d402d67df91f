"""
Rank-outlier detection strategy.

A lightweight stand-in for an isolation forest: the most recent value is
located in the sorted series and scored by its distance from the nearer
tail of the distribution.

Formula:
    rank = index of the first occurrence of current in sorted(values)
    distance = min(rank, n - 1 - rank)
    isolation_score = min(distance / (n / 2), 1)

Note:
    Central values score high and extreme values score low. Downstream
    fusion and alert expectations depend on this exact behavior.

    There is no expected-value baseline in this strategy, so results carry
    deviation=0 and no expected_value.
"""

from bisect import bisect_left
from typing import List, Mapping, Sequence

from anomaly_engine.models.detection import AnomalyKind, DetectionResult, Severity
from anomaly_engine.models.series import DataPoint
from anomaly_engine.strategies.base import (
    DetectionStrategy,
    get_parameter,
    no_anomaly_result,
)


DEFAULT_CONTAMINATION = 0.1
DEFAULT_MIN_DATA_POINTS = 50
MAX_CONFIDENCE = 0.9


def isolation_score(values: List[float], target: float) -> float:
    """
    Score a value by its rank distance from the nearer tail.

    Ties resolve to the first occurrence in sorted order.

    Args:
        values: All observed values (target included).
        target: The value to score.

    Returns:
        float: Score in [0, 1].

    Example:
        >>> isolation_score([1.0, 2.0, 3.0, 4.0, 5.0], 3.0)
        0.8
    """
    ordered = sorted(values)
    rank = bisect_left(ordered, target)
    n = len(ordered)
    if rank >= n or ordered[rank] != target:
        return 0.5

    distance = min(rank, n - 1 - rank)
    return min(distance / (n / 2), 1.0)


class RankOutlierStrategy(DetectionStrategy):
    """
    Rank-based outlier detector.

    Parameters read from the model:
        contamination: Firing threshold for the isolation score (0.1).
        min_data_points: Minimum series length (50).
    """

    model_id = "rank-outlier"
    name = "rank_outlier"

    def evaluate(
        self,
        points: Sequence[DataPoint],
        parameters: Mapping[str, float],
    ) -> DetectionResult:
        current = points[-1] if points else None
        contamination = get_parameter(parameters, "contamination", DEFAULT_CONTAMINATION)
        min_points = max(1, int(get_parameter(parameters, "min_data_points", DEFAULT_MIN_DATA_POINTS)))

        if current is None or len(points) < min_points:
            return no_anomaly_result(current)

        values = [p.value for p in points]
        score = isolation_score(values, current.value)

        if score <= contamination:
            return no_anomaly_result(current)

        return DetectionResult(
            is_anomaly=True,
            score=score,
            confidence=min(score, MAX_CONFIDENCE),
            kind=AnomalyKind.OUTLIER,
            severity=Severity.from_score(score),
            actual_value=current.value,
            deviation=0.0,
            timestamp=current.timestamp,
            description=f"ML anomaly detected: isolation score {score:.3f}",
            metadata={
                "strategy": self.name,
                "isolation_score": score,
                "contamination": contamination,
            },
        )
