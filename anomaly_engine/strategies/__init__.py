"""
Detection strategies for the anomaly detection engine.

Each strategy is stateless and evaluates the most recent point of a series
snapshot using the parameters of its detection model.

Components:
    base: DetectionStrategy interface and shared helpers
    statistical: StatisticalStrategy (z-score)
    rule_based: RuleBasedStrategy (ratio thresholds)
    rank_outlier: RankOutlierStrategy (rank-based isolation score)
"""

from anomaly_engine.strategies.base import (
    DetectionStrategy,
    get_parameter,
    no_anomaly_result,
)
from anomaly_engine.strategies.statistical import StatisticalStrategy, mean_and_std
from anomaly_engine.strategies.rule_based import RuleBasedStrategy
from anomaly_engine.strategies.rank_outlier import RankOutlierStrategy, isolation_score

__all__: list[str] = [
    "DetectionStrategy",
    "no_anomaly_result",
    "get_parameter",
    "StatisticalStrategy",
    "mean_and_std",
    "RuleBasedStrategy",
    "RankOutlierStrategy",
    "isolation_score",
]
