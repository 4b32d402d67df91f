"""
Fusion of per-strategy detection results.

This module provides the ResultFusion class which combines the verdicts of
several strategies for one series into a single DetectionResult.

Rules:
    - No strategy fired: the first input is returned unchanged
    - Otherwise score and confidence are weighted averages over the firing
      strategies only, renormalized by the sum of their weights
    - Descriptive fields come from the firing result with the highest score
      (ties go to the earliest strategy in evaluation order)

Example:
    >>> fusion = ResultFusion(weights=[0.4, 0.3, 0.3])
    >>> fused = fusion.fuse([statistical, rule_based, rank_outlier])
"""

from typing import List, Optional, Sequence

import structlog

from anomaly_engine.models.detection import DetectionResult
from anomaly_engine.strategies.base import no_anomaly_result

logger = structlog.get_logger(__name__)


# Weights in evaluation order: statistical, rule-based, rank-outlier
DEFAULT_WEIGHTS: List[float] = [0.4, 0.3, 0.3]


class ResultFusion:
    """
    Combines strategy verdicts using fixed per-strategy weights.

    Attributes:
        weights: One weight per strategy, in evaluation order.

    Example:
        >>> fusion = ResultFusion()
        >>> fused = fusion.fuse([not_fired, rule_fired_at_0_8, not_fired])
        >>> fused.score
        0.8
    """

    def __init__(self, weights: Optional[Sequence[float]] = None) -> None:
        """
        Initialize the fusion.

        Args:
            weights: Per-strategy weights (default: [0.4, 0.3, 0.3]).

        Raises:
            ValueError: If any weight is not positive.
        """
        self.weights = list(weights) if weights is not None else list(DEFAULT_WEIGHTS)
        if any(w <= 0 for w in self.weights):
            raise ValueError(f"Fusion weights must be positive, got {self.weights}")

    def fuse(self, results: Sequence[DetectionResult]) -> DetectionResult:
        """
        Fuse strategy results into one verdict.

        Args:
            results: One result per strategy, in evaluation order.

        Returns:
            DetectionResult: The fused verdict.

        Raises:
            ValueError: If more results than weights are supplied.
        """
        if not results:
            return no_anomaly_result(None)

        if len(results) > len(self.weights):
            raise ValueError(
                f"Got {len(results)} results but only {len(self.weights)} weights"
            )

        firing = [
            (weight, result)
            for weight, result in zip(self.weights, results)
            if result.is_anomaly
        ]
        if not firing:
            return results[0]

        if len(firing) == 1:
            # A lone weight renormalizes to 1.0
            score = firing[0][1].score
            confidence = firing[0][1].confidence
        else:
            total_weight = sum(weight for weight, _ in firing)
            score = sum(weight * r.score for weight, r in firing) / total_weight
            confidence = sum(weight * r.confidence for weight, r in firing) / total_weight

        # Strict comparison keeps the earliest result on ties
        best = firing[0][1]
        for _, result in firing[1:]:
            if result.score > best.score:
                best = result

        fused = best.model_copy(
            update={
                "score": min(score, 1.0),
                "confidence": min(confidence, 1.0),
                "description": f"Combined anomaly detection: {best.description}",
            }
        )

        logger.debug(
            "results_fused",
            firing_strategies=len(firing),
            score=fused.score,
            confidence=fused.confidence,
            kind=fused.kind.value,
        )

        return fused
