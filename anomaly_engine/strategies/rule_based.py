"""
Rule-based ratio threshold detection strategy.

Compares the most recent value with the average of the last few points
(current included):

    - spike: current > avg * spike_threshold   -> severity high
    - drop:  current < avg * drop_threshold    -> severity medium

The spike rule is checked first. Ratios are undefined for a non-positive
average, so such windows are treated as non-anomalous.
"""

from typing import Mapping, Sequence

from anomaly_engine.models.detection import AnomalyKind, DetectionResult, Severity
from anomaly_engine.models.series import DataPoint
from anomaly_engine.strategies.base import (
    DetectionStrategy,
    get_parameter,
    no_anomaly_result,
)


DEFAULT_SPIKE_THRESHOLD = 3.0
DEFAULT_DROP_THRESHOLD = 0.3
DEFAULT_WINDOW_SIZE = 10
RULE_CONFIDENCE = 0.8


class RuleBasedStrategy(DetectionStrategy):
    """
    Ratio threshold detector.

    Parameters read from the model:
        spike_threshold: Multiple of the average counted as a spike (3.0).
        drop_threshold: Fraction of the average counted as a drop (0.3).
        window_size: Points averaged (10).
    """

    model_id = "rule-based-thresholds"
    name = "rule_based"

    def evaluate(
        self,
        points: Sequence[DataPoint],
        parameters: Mapping[str, float],
    ) -> DetectionResult:
        current = points[-1] if points else None
        spike_threshold = get_parameter(parameters, "spike_threshold", DEFAULT_SPIKE_THRESHOLD)
        drop_threshold = get_parameter(parameters, "drop_threshold", DEFAULT_DROP_THRESHOLD)
        window_size = max(1, int(get_parameter(parameters, "window_size", DEFAULT_WINDOW_SIZE)))

        if current is None or len(points) < window_size:
            return no_anomaly_result(current)

        values = [p.value for p in points[-window_size:]]
        current_value = values[-1]
        average = sum(values) / len(values)

        if average <= 0:
            return no_anomaly_result(current)

        if current_value > average * spike_threshold:
            score = min((current_value / average) / spike_threshold, 1.0)
            return DetectionResult(
                is_anomaly=True,
                score=score,
                confidence=RULE_CONFIDENCE,
                kind=AnomalyKind.SPIKE,
                severity=Severity.HIGH,
                expected_value=average,
                actual_value=current_value,
                deviation=current_value - average,
                timestamp=current.timestamp,
                description=(
                    f"Spike detected: {current_value:.2f} vs average {average:.2f}"
                ),
                metadata={
                    "strategy": self.name,
                    "spike_threshold": spike_threshold,
                    "average_value": average,
                },
            )

        if current_value < average * drop_threshold:
            if current_value > 0:
                score = min((average / current_value) / (1 / drop_threshold), 1.0)
            else:
                # ratio grows without bound as the value approaches zero
                score = 1.0
            return DetectionResult(
                is_anomaly=True,
                score=score,
                confidence=RULE_CONFIDENCE,
                kind=AnomalyKind.DROP,
                severity=Severity.MEDIUM,
                expected_value=average,
                actual_value=current_value,
                deviation=average - current_value,
                timestamp=current.timestamp,
                description=(
                    f"Drop detected: {current_value:.2f} vs average {average:.2f}"
                ),
                metadata={
                    "strategy": self.name,
                    "drop_threshold": drop_threshold,
                    "average_value": average,
                },
            )

        return no_anomaly_result(current)
