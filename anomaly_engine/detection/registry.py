"""
Pattern and model registries.

This module provides two small, thread-safe registries:

    - PatternRegistry: named, human-authored detection patterns. Patterns
      document known anomaly shapes for operators; they never gate detection.
    - ModelRegistry: named detection models whose parameters the strategies
      read on every evaluation. Training replaces a model's parameters and
      records when it happened.

Example:
    >>> patterns = PatternRegistry.from_config(config.patterns)
    >>> pattern_id = patterns.register(
    ...     name="Latency Plateau",
    ...     match_expression="latency flat above p99 for 10m",
    ...     severity=Severity.MEDIUM,
    ... )
    >>> models = ModelRegistry.from_config(config.detection)
    >>> models.train("statistical-zscore", points, parameters={"threshold": 3.0})
    True
"""

import threading
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Union

import structlog

from anomaly_engine.clock import ensure_utc
from anomaly_engine.config.models import DetectionConfig, PatternConfig
from anomaly_engine.models.detection import (
    DetectionModel,
    DetectionPattern,
    ModelKind,
    Severity,
)
from anomaly_engine.models.series import DataPoint

logger = structlog.get_logger(__name__)


class PatternRegistry:
    """
    Registry of detection patterns, keyed by id.

    Patterns are created by explicit registration and never expire.
    """

    def __init__(self) -> None:
        self._patterns: Dict[str, DetectionPattern] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, patterns: Sequence[PatternConfig]) -> "PatternRegistry":
        """
        Build a registry seeded with configured patterns.

        Args:
            patterns: Patterns to seed.

        Returns:
            PatternRegistry: The seeded registry.
        """
        registry = cls()
        now = ensure_utc(None)
        for pattern in patterns:
            registry.add(
                DetectionPattern(
                    id=pattern.id,
                    name=pattern.name,
                    description=pattern.description,
                    match_expression=pattern.match_expression,
                    severity=pattern.severity,
                    active=pattern.active,
                    created_at=now,
                )
            )
        return registry

    def add(self, pattern: DetectionPattern) -> str:
        """
        Store a fully built pattern, replacing any pattern with the same id.

        Returns:
            str: The pattern id.
        """
        with self._lock:
            self._patterns[pattern.id] = pattern
        return pattern.id

    def register(
        self,
        name: str,
        match_expression: str,
        severity: Union[Severity, str],
        description: str = "",
        active: bool = True,
        timestamp: Optional[datetime] = None,
    ) -> str:
        """
        Register a new pattern under a generated id.

        Args:
            name: Human-readable name.
            match_expression: Free-form match expression.
            severity: Severity assigned to a match.
            description: What the pattern looks like.
            active: Whether the pattern is active.
            timestamp: Registration time (defaults to now, UTC).

        Returns:
            str: The new pattern id.

        Raises:
            ValueError: If the pattern fails validation.
        """
        pattern = DetectionPattern(
            name=name,
            description=description,
            match_expression=match_expression,
            severity=Severity(severity),
            active=active,
            created_at=ensure_utc(timestamp),
        )
        self.add(pattern)

        logger.info(
            "pattern_registered",
            pattern_id=pattern.id,
            name=pattern.name,
            severity=pattern.severity.value,
        )
        return pattern.id

    def get(self, pattern_id: str) -> Optional[DetectionPattern]:
        """Get a pattern by id, or None."""
        with self._lock:
            return self._patterns.get(pattern_id)

    def list(self) -> List[DetectionPattern]:
        """All patterns in registration order."""
        with self._lock:
            return list(self._patterns.values())


def create_default_models(detection: DetectionConfig) -> List[DetectionModel]:
    """
    Build the three built-in detection models.

    Args:
        detection: Configured model parameters.

    Returns:
        List[DetectionModel]: Statistical, rule-based and rank-outlier models.
    """
    return [
        DetectionModel(
            id="statistical-zscore",
            name="Z-Score Statistical Model",
            kind=ModelKind.STATISTICAL,
            parameters=detection.statistical.as_parameters(),
            trained=False,
        ),
        DetectionModel(
            id="rule-based-thresholds",
            name="Rule-Based Threshold Model",
            kind=ModelKind.RULE_BASED,
            parameters=detection.rule_based.as_parameters(),
            trained=True,
        ),
        DetectionModel(
            id="rank-outlier",
            name="Rank Outlier Model",
            kind=ModelKind.RANK_OUTLIER,
            parameters=detection.rank_outlier.as_parameters(),
            trained=False,
        ),
    ]


class ModelRegistry:
    """
    Registry of detection models, keyed by id.

    Strategies receive a copy of a model's parameters, so training that
    runs concurrently with a sweep never changes a map mid-evaluation.
    """

    def __init__(self, models: Optional[Sequence[DetectionModel]] = None) -> None:
        self._models: Dict[str, DetectionModel] = {}
        self._lock = threading.Lock()
        for model in models or []:
            self._models[model.id] = model

    @classmethod
    def from_config(cls, detection: DetectionConfig) -> "ModelRegistry":
        """Build a registry seeded with the built-in models."""
        return cls(create_default_models(detection))

    def register(self, model: DetectionModel) -> str:
        """
        Add or replace a model.

        Returns:
            str: The model id.
        """
        with self._lock:
            self._models[model.id] = model

        logger.info("model_registered", model_id=model.id, kind=model.kind.value)
        return model.id

    def get(self, model_id: str) -> Optional[DetectionModel]:
        """Get a model by id, or None."""
        with self._lock:
            return self._models.get(model_id)

    def list(self) -> List[DetectionModel]:
        """All models in registration order."""
        with self._lock:
            return list(self._models.values())

    def parameters(self, model_id: str) -> Dict[str, float]:
        """
        Get a copy of a model's parameters.

        Args:
            model_id: The model id.

        Returns:
            Dict[str, float]: Parameters, empty if the model is unknown.
        """
        with self._lock:
            model = self._models.get(model_id)
            return dict(model.parameters) if model is not None else {}

    def train(
        self,
        model_id: str,
        training_data: Sequence[Union[DataPoint, float]],
        parameters: Optional[Mapping[str, float]] = None,
        accuracy: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """
        Train a model.

        Training merges caller-supplied parameters into the model, marks it
        trained and records the sample count, the time and, when supplied,
        the accuracy. Repeating the same call leaves the same state apart
        from the timestamp.

        Args:
            model_id: The model to train.
            training_data: Samples the model was trained on.
            parameters: Parameter values replacing the current ones.
            accuracy: Accuracy measured by the caller, in [0, 1].
            timestamp: Training time (defaults to now, UTC).

        Returns:
            bool: True if trained, False if the model is unknown.

        Raises:
            ValueError: If parameters or accuracy are invalid. The model is
                left unchanged.
        """
        with self._lock:
            model = self._models.get(model_id)
            if model is None:
                logger.warning("model_not_found_for_training", model_id=model_id)
                return False

            merged = dict(model.parameters)
            merged.update(parameters or {})

            updated = DetectionModel.model_validate(
                {
                    **model.model_dump(),
                    "parameters": merged,
                    "trained": True,
                    "accuracy": accuracy if accuracy is not None else model.accuracy,
                    "last_trained_at": ensure_utc(timestamp),
                    "training_samples": len(training_data),
                }
            )
            self._models[model_id] = updated

        logger.info(
            "model_trained",
            model_id=model_id,
            data_points=len(training_data),
            parameters=merged,
            accuracy=updated.accuracy,
        )
        return True
