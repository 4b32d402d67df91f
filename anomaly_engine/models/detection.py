"""
Detection data models.

This module defines the detection vocabulary shared by strategies, fusion
and the registries.

Models:
    AnomalyKind: Shape of a detected anomaly
    Severity: Severity levels with the shared score ladder
    ModelKind: Detection model families
    DetectionResult: Per-strategy or fused verdict
    DetectionModel: Named, tunable parameter bundle
    DetectionPattern: Human-authored description of a known anomaly shape
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class AnomalyKind(str, Enum):
    """
    Shape of a detected anomaly.

    Attributes:
        SPIKE: Value far above its baseline.
        DROP: Value far below its baseline.
        TREND_CHANGE: Change in the direction of the series.
        PATTERN_BREAK: Departure from a known pattern.
        OUTLIER: Value isolated from the rest of the distribution.
    """

    SPIKE = "spike"
    DROP = "drop"
    TREND_CHANGE = "trend_change"
    PATTERN_BREAK = "pattern_break"
    OUTLIER = "outlier"


class Severity(str, Enum):
    """
    Severity levels.

    Attributes:
        LOW: Informational.
        MEDIUM: Worth a look.
        HIGH: Investigate soon.
        CRITICAL: Immediate attention.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_score(cls, score: float) -> "Severity":
        """
        Map an anomaly score onto the severity ladder.

        Args:
            score: Anomaly score in [0, 1].

        Returns:
            Severity: critical >= 0.9, high >= 0.7, medium >= 0.5, else low.

        Example:
            >>> Severity.from_score(0.75)
            <Severity.HIGH: 'high'>
        """
        if score >= 0.9:
            return cls.CRITICAL
        if score >= 0.7:
            return cls.HIGH
        if score >= 0.5:
            return cls.MEDIUM
        return cls.LOW


class ModelKind(str, Enum):
    """Detection model families."""

    STATISTICAL = "statistical"
    RULE_BASED = "rule_based"
    RANK_OUTLIER = "rank_outlier"


class DetectionResult(BaseModel):
    """
    Verdict produced by one strategy, or by fusing several.

    A pure value type, produced fresh on every evaluation.

    Attributes:
        is_anomaly: Whether the evaluated value is anomalous.
        score: Anomaly score in [0, 1]; 1 is most anomalous.
        confidence: Confidence in the verdict, in [0, 1].
        kind: Shape of the anomaly.
        severity: Severity level.
        expected_value: Baseline the value was compared against, if any.
        actual_value: The evaluated (most recent) value.
        deviation: Distance from the baseline (0 when there is none).
        timestamp: Timestamp of the evaluated data point.
        description: Human-readable explanation.
        metadata: Strategy-specific diagnostics.

    Example:
        >>> result = DetectionResult(
        ...     is_anomaly=True,
        ...     score=1.0,
        ...     confidence=0.8,
        ...     kind=AnomalyKind.SPIKE,
        ...     severity=Severity.HIGH,
        ...     expected_value=100.0,
        ...     actual_value=350.0,
        ...     deviation=250.0,
        ...     timestamp=datetime.now(timezone.utc),
        ...     description="Spike detected: 350.00 vs average 100.00",
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    is_anomaly: bool = Field(
        ...,
        description="Whether the evaluated value is anomalous",
    )
    score: float = Field(
        ...,
        description="Anomaly score, 1 is most anomalous",
        ge=0.0,
        le=1.0,
    )
    confidence: float = Field(
        ...,
        description="Confidence in the verdict",
        ge=0.0,
        le=1.0,
    )
    kind: AnomalyKind = Field(
        ...,
        description="Shape of the anomaly",
    )
    severity: Severity = Field(
        ...,
        description="Severity level",
    )
    expected_value: Optional[float] = Field(
        default=None,
        description="Baseline the value was compared against",
    )
    actual_value: float = Field(
        ...,
        description="The evaluated value",
    )
    deviation: float = Field(
        ...,
        description="Distance from the baseline",
    )
    timestamp: datetime = Field(
        ...,
        description="Timestamp of the evaluated data point",
    )
    description: str = Field(
        ...,
        description="Human-readable explanation",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Strategy-specific diagnostics",
    )


class DetectionModel(BaseModel):
    """
    Named parameter bundle consulted by a detection strategy.

    Attributes:
        id: Unique model identifier.
        name: Human-readable name.
        kind: Model family.
        parameters: Tunable numeric parameters.
        trained: Whether the model has been trained.
        accuracy: Caller-reported accuracy from the last training.
        last_trained_at: When the model was last trained.
        training_samples: Number of samples used in the last training.
    """

    model_config = {"extra": "forbid"}

    id: str = Field(
        ...,
        description="Unique model identifier",
        min_length=1,
    )
    name: str = Field(
        ...,
        description="Human-readable name",
        min_length=1,
    )
    kind: ModelKind = Field(
        ...,
        description="Model family",
    )
    parameters: Dict[str, float] = Field(
        default_factory=dict,
        description="Tunable numeric parameters",
    )
    trained: bool = Field(
        default=False,
        description="Whether the model has been trained",
    )
    accuracy: Optional[float] = Field(
        default=None,
        description="Caller-reported accuracy from the last training",
        ge=0.0,
        le=1.0,
    )
    last_trained_at: Optional[datetime] = Field(
        default=None,
        description="When the model was last trained",
    )
    training_samples: int = Field(
        default=0,
        description="Samples used in the last training",
        ge=0,
    )


class DetectionPattern(BaseModel):
    """
    Human-authored metadata describing a known anomaly shape.

    Patterns are documentation for operators; they do not gate detection.

    Attributes:
        id: Unique pattern identifier.
        name: Human-readable name.
        description: What the pattern looks like.
        match_expression: Free-form expression (e.g. "error_rate > 10%").
        severity: Severity operators should assign to a match.
        active: Whether the pattern is active.
        created_at: When the pattern was registered.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(
        default_factory=lambda: f"pattern_{uuid4().hex}",
        description="Unique pattern identifier",
        min_length=1,
    )
    name: str = Field(
        ...,
        description="Human-readable name",
        min_length=1,
        max_length=200,
    )
    description: str = Field(
        default="",
        description="What the pattern looks like",
    )
    match_expression: str = Field(
        ...,
        description="Free-form match expression",
    )
    severity: Severity = Field(
        ...,
        description="Severity assigned to a match",
    )
    active: bool = Field(
        default=True,
        description="Whether the pattern is active",
    )
    created_at: datetime = Field(
        ...,
        description="When the pattern was registered",
    )
