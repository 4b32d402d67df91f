"""
Detection orchestration for the anomaly detection engine.

Components:
    fusion: ResultFusion, weighted combination of strategy verdicts
    registry: PatternRegistry and ModelRegistry
    dispatcher: AlertDispatcher, new-alert subscribers
    scheduler: SweepScheduler, fixed-cadence periodic sweep
    engine: AnomalyDetectionEngine facade

Example:
    >>> from anomaly_engine.detection import create_engine
    >>> engine = create_engine()
    >>> engine.add_data_point("org-1", "rpc-1", "response_time", 120.0)
"""

from anomaly_engine.detection.fusion import DEFAULT_WEIGHTS, ResultFusion
from anomaly_engine.detection.registry import (
    ModelRegistry,
    PatternRegistry,
    create_default_models,
)
from anomaly_engine.detection.dispatcher import (
    DEFAULT_SUBSCRIBER_TIMEOUT,
    AlertCallback,
    AlertDispatcher,
)
from anomaly_engine.detection.scheduler import DEFAULT_INTERVAL_SECONDS, SweepScheduler
from anomaly_engine.detection.engine import (
    AnomalyDetectionEngine,
    create_engine,
    default_strategies,
)

__all__: list[str] = [
    # Fusion
    "ResultFusion",
    "DEFAULT_WEIGHTS",
    # Registries
    "PatternRegistry",
    "ModelRegistry",
    "create_default_models",
    # Dispatcher
    "AlertDispatcher",
    "AlertCallback",
    "DEFAULT_SUBSCRIBER_TIMEOUT",
    # Scheduler
    "SweepScheduler",
    "DEFAULT_INTERVAL_SECONDS",
    # Engine
    "AnomalyDetectionEngine",
    "create_engine",
    "default_strategies",
]
