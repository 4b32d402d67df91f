"""
Anomaly detection engine.

This module provides the AnomalyDetectionEngine class which orchestrates
the complete detection pipeline: ingest, periodic evaluation, fusion,
alert creation and notification. It is the boundary surface used by the
metric pollers, the dashboard/API layer and real-time transports.

Key Features:
    - Ingests data points into bounded per-metric series
    - Sweeps every series with enough history on a fixed cadence
    - Runs the statistical, rule-based and rank-outlier strategies
    - Fuses their verdicts and creates an alert when the result is anomalous
    - Isolates per-series failures so one bad series never aborts a sweep
    - Notifies subscribers of new alerts
    - Acknowledgement, statistics, patterns, model training and retention

Example:
    >>> engine = AnomalyDetectionEngine(EngineConfig())
    >>> engine.subscribe(broadcast_alert)
    >>> await engine.start()
    >>> engine.add_data_point("org-1", "rpc-eth-main", "response_time", 182.0)
    >>> alerts = engine.list_alerts("org-1", limit=20)
    >>> await engine.stop()
"""

import asyncio
import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import structlog

from anomaly_engine.clock import ensure_utc
from anomaly_engine.config.models import EngineConfig
from anomaly_engine.detection.dispatcher import AlertCallback, AlertDispatcher
from anomaly_engine.detection.fusion import ResultFusion
from anomaly_engine.detection.registry import ModelRegistry, PatternRegistry
from anomaly_engine.detection.scheduler import SweepScheduler
from anomaly_engine.models.alerts import Alert
from anomaly_engine.models.detection import (
    DetectionModel,
    DetectionPattern,
    DetectionResult,
    Severity,
)
from anomaly_engine.models.series import DataPoint, SeriesKey
from anomaly_engine.storage.alert_store import DEFAULT_LIST_LIMIT, AlertStore
from anomaly_engine.storage.series_store import SeriesStore
from anomaly_engine.strategies.base import DetectionStrategy
from anomaly_engine.strategies.rank_outlier import RankOutlierStrategy
from anomaly_engine.strategies.rule_based import RuleBasedStrategy
from anomaly_engine.strategies.statistical import StatisticalStrategy

logger = structlog.get_logger(__name__)


def default_strategies() -> List[DetectionStrategy]:
    """Strategies in evaluation order: statistical, rule-based, rank-outlier."""
    return [StatisticalStrategy(), RuleBasedStrategy(), RankOutlierStrategy()]


class AnomalyDetectionEngine:
    """
    Orchestrates detection, fusion and alert lifecycle.

    Responsibilities:
    - Append incoming data points to the series store
    - On every sweep, evaluate each series with enough history
    - Fuse strategy verdicts and create alerts for anomalous results
    - Notify subscribers of new alerts
    - Serve queries, acknowledgements, training and retention requests

    Concurrency:
        The stores serialize their own mutation, so ingest and queries may
        be called from any thread while a sweep runs. Strategies evaluate
        immutable snapshots. Sweeps never overlap: a sweep requested while
        another is running is skipped. Subscribers are notified inline,
        between series; each async subscriber is bounded by
        ``scheduler.subscriber_timeout_seconds``.

    Attributes:
        config: Engine configuration.
        series_store: Store of per-metric series.
        alert_store: Store of alerts.
        patterns: Detection pattern registry.
        models: Detection model registry.
        dispatcher: New-alert subscribers.
        fusion: Strategy verdict fusion.
        strategies: Strategies in evaluation order.
        scheduler: Periodic sweep driver.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        series_store: Optional[SeriesStore] = None,
        alert_store: Optional[AlertStore] = None,
        patterns: Optional[PatternRegistry] = None,
        models: Optional[ModelRegistry] = None,
        dispatcher: Optional[AlertDispatcher] = None,
        strategies: Optional[Sequence[DetectionStrategy]] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Engine configuration (defaults to EngineConfig()).
            series_store: Series store (built from config if omitted).
            alert_store: Alert store (new, empty store if omitted).
            patterns: Pattern registry (seeded from config if omitted).
            models: Model registry (seeded from config if omitted).
            dispatcher: Subscriber dispatcher (new if omitted).
            strategies: Strategies in evaluation order; one fusion weight
                per strategy is required.

        Raises:
            ValueError: If there are more strategies than fusion weights.
        """
        self.config = config or EngineConfig()
        self.series_store = series_store or SeriesStore(
            capacity=self.config.retention.series_capacity,
        )
        self.alert_store = alert_store or AlertStore()
        self.patterns = patterns or PatternRegistry.from_config(self.config.patterns)
        self.models = models or ModelRegistry.from_config(self.config.detection)
        self.dispatcher = dispatcher or AlertDispatcher(
            subscriber_timeout=self.config.scheduler.subscriber_timeout_seconds,
        )
        self.fusion = ResultFusion(self.config.fusion.weights())
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.scheduler = SweepScheduler(
            self.run_detection,
            interval_seconds=self.config.scheduler.interval_seconds,
        )

        if len(self.strategies) > len(self.fusion.weights):
            raise ValueError(
                f"{len(self.strategies)} strategies but only "
                f"{len(self.fusion.weights)} fusion weights"
            )

        self._sweep_lock = asyncio.Lock()

        logger.info(
            "anomaly_detection_engine_initialized",
            strategies=[s.name for s in self.strategies],
            fusion_weights=self.fusion.weights,
            sweep_interval_seconds=self.config.scheduler.interval_seconds,
            series_capacity=self.series_store.capacity,
            models=len(self.models.list()),
            patterns=len(self.patterns.list()),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic sweep (if enabled in the configuration)."""
        if not self.config.scheduler.enabled:
            logger.info("sweep_scheduler_disabled")
            return
        self.scheduler.start()

    async def stop(self) -> None:
        """Stop the periodic sweep, letting an in-flight sweep finish."""
        await self.scheduler.stop()

    # -------------------------------------------------------------------------
    # Ingest
    # -------------------------------------------------------------------------

    def add_data_point(
        self,
        organization_id: str,
        resource_id: str,
        metric_name: str,
        value: float,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> None:
        """
        Append a value to the series of (organization, resource, metric).

        Non-finite values (NaN, infinity) carry no usable signal and are
        dropped with a warning.

        Args:
            organization_id: Owning organization.
            resource_id: Monitored resource.
            metric_name: Metric name.
            value: Observed value.
            metadata: Optional producer metadata.
            timestamp: Observation time (defaults to now, UTC).
        """
        value = float(value)
        if not math.isfinite(value):
            logger.warning(
                "non_finite_value_dropped",
                organization_id=organization_id,
                resource_id=resource_id,
                metric_name=metric_name,
            )
            return

        key = SeriesKey(
            organization_id=organization_id,
            resource_id=resource_id,
            metric_name=metric_name,
        )
        self.series_store.append(key, value, metadata=metadata, timestamp=timestamp)

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def evaluate_points(self, points: Sequence[DataPoint]) -> DetectionResult:
        """
        Run every strategy over a series snapshot and fuse the verdicts.

        Args:
            points: Chronological series snapshot.

        Returns:
            DetectionResult: The fused verdict.
        """
        results = [
            strategy.evaluate(points, self.models.parameters(strategy.model_id))
            for strategy in self.strategies
        ]
        return self.fusion.fuse(results)

    def evaluate(self, key: SeriesKey) -> DetectionResult:
        """
        Evaluate one series without creating an alert.

        Args:
            key: The series to evaluate.

        Returns:
            DetectionResult: The fused verdict for the most recent point.
        """
        return self.evaluate_points(self.series_store.snapshot(key))

    async def run_detection(self, timestamp: Optional[datetime] = None) -> List[Alert]:
        """
        Run one sweep over every series with enough history.

        Per-series failures are logged and skipped. If a sweep is already
        running this call is skipped and returns an empty list.

        Args:
            timestamp: Alert creation time (defaults to now, UTC).

        Returns:
            List[Alert]: Alerts created by this sweep.
        """
        if self._sweep_lock.locked():
            logger.warning("sweep_already_running")
            return []

        async with self._sweep_lock:
            return await self._sweep(timestamp)

    async def _sweep(self, timestamp: Optional[datetime]) -> List[Alert]:
        min_points = self.config.scheduler.min_data_points
        created: List[Alert] = []
        evaluated = 0
        failed = 0

        for key in self.series_store.keys():
            try:
                points = self.series_store.snapshot(key)
                if len(points) < min_points:
                    continue

                evaluated += 1
                result = self.evaluate_points(points)
                if not result.is_anomaly:
                    continue

                alert = self.alert_store.create(
                    organization_id=key.organization_id,
                    resource_id=key.resource_id,
                    metric_name=key.metric_name,
                    result=result,
                    timestamp=timestamp,
                )
                created.append(alert)

                await self.dispatcher.dispatch(alert)

            except Exception as e:
                failed += 1
                logger.error(
                    "sweep_key_failed",
                    series_key=key.as_string(),
                    error=str(e),
                )
                continue

            # Let ingest and queries on the loop interleave with long sweeps
            await asyncio.sleep(0)

        logger.info(
            "sweep_completed",
            series_evaluated=evaluated,
            alerts_created=len(created),
            series_failed=failed,
        )

        return created

    # -------------------------------------------------------------------------
    # Alerts
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        callback: AlertCallback,
        name: Optional[str] = None,
    ) -> Callable[[], None]:
        """
        Subscribe to new alerts.

        Args:
            callback: Called with each new Alert; may be a coroutine function.
            name: Label used in logs.

        Returns:
            Callable[[], None]: Unsubscribe handle.
        """
        return self.dispatcher.subscribe(callback, name=name)

    def list_alerts(
        self,
        organization_id: str,
        resource_id: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Alert]:
        """List an organization's alerts newest first, at most ``limit``."""
        return self.alert_store.list(organization_id, resource_id, limit)

    def acknowledge_alert(
        self,
        alert_id: str,
        acknowledged_by: str,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """
        Acknowledge an alert.

        Returns:
            bool: False if the id is unknown; True otherwise, including when
            the alert was already acknowledged (which changes nothing).
        """
        return self.alert_store.acknowledge(alert_id, acknowledged_by, timestamp)

    def get_stats(
        self,
        organization_id: str,
        days: float = 7,
        current_time: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Summarize an organization's recent alerts.

        Returns:
            Dict with total_alerts, by_severity, by_type, acknowledged,
            unacknowledged and average_score.
        """
        return self.alert_store.stats(organization_id, days, current_time)

    # -------------------------------------------------------------------------
    # Patterns and models
    # -------------------------------------------------------------------------

    def get_patterns(self) -> List[DetectionPattern]:
        """All registered detection patterns."""
        return self.patterns.list()

    def register_pattern(
        self,
        name: str,
        match_expression: str,
        severity: Union[Severity, str],
        description: str = "",
        active: bool = True,
    ) -> str:
        """
        Register a detection pattern.

        Returns:
            str: The new pattern id.
        """
        return self.patterns.register(
            name=name,
            match_expression=match_expression,
            severity=severity,
            description=description,
            active=active,
        )

    def get_models(self) -> List[DetectionModel]:
        """All registered detection models."""
        return self.models.list()

    def train_model(
        self,
        model_id: str,
        training_data: Sequence[Union[DataPoint, float]],
        parameters: Optional[Mapping[str, float]] = None,
        accuracy: Optional[float] = None,
    ) -> bool:
        """
        Train a detection model.

        Returns:
            bool: True if trained, False if the model is unknown.
        """
        return self.models.train(
            model_id,
            training_data,
            parameters=parameters,
            accuracy=accuracy,
        )

    # -------------------------------------------------------------------------
    # Statistics and retention
    # -------------------------------------------------------------------------

    def get_service_stats(self) -> Dict[str, int]:
        """
        Summarize the engine's state.

        Returns:
            Dict with total_models, trained_models, total_patterns,
            active_patterns, total_alerts and total_data_points.
        """
        models = self.models.list()
        patterns = self.patterns.list()
        return {
            "total_models": len(models),
            "trained_models": sum(1 for m in models if m.trained),
            "total_patterns": len(patterns),
            "active_patterns": sum(1 for p in patterns if p.active),
            "total_alerts": self.alert_store.count(),
            "total_data_points": self.series_store.total_points(),
        }

    def cleanup(
        self,
        max_age: Optional[timedelta] = None,
        current_time: Optional[datetime] = None,
    ) -> int:
        """
        Run the series and alert retention sweeps.

        Args:
            max_age: Retention window (defaults to retention.max_age_days).
            current_time: Reference time (defaults to now, UTC).

        Returns:
            int: Number of data points and alerts removed.
        """
        if max_age is None:
            max_age = timedelta(days=self.config.retention.max_age_days)
        now = ensure_utc(current_time)

        points_removed = self.series_store.retention_sweep(max_age, now)
        alerts_removed = self.alert_store.retention_sweep(max_age, now)
        cleaned = points_removed + alerts_removed

        if cleaned > 0:
            logger.info(
                "cleanup_completed",
                cleaned=cleaned,
                points_removed=points_removed,
                alerts_removed=alerts_removed,
            )

        return cleaned


def create_engine(config: Optional[EngineConfig] = None) -> AnomalyDetectionEngine:
    """
    Factory function to create an AnomalyDetectionEngine.

    Args:
        config: Engine configuration (defaults to EngineConfig()).

    Returns:
        AnomalyDetectionEngine: A new engine; call start() to begin sweeping.

    Example:
        >>> engine = create_engine(load_config("config"))
        >>> await engine.start()
    """
    return AnomalyDetectionEngine(config=config)
