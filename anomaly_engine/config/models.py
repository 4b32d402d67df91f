"""
Pydantic models for configuration validation.

All configuration loaded from YAML files is validated against these models.
Every section has documented defaults, so ``EngineConfig()`` is a complete,
valid configuration on its own.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from anomaly_engine.models.detection import Severity


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Log output format."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(str, Enum):
    """Log level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# DETECTION MODEL CONFIGURATION
# =============================================================================


class StatisticalModelConfig(BaseModel):
    """Z-score model parameters."""

    model_config = {"frozen": True, "extra": "forbid"}

    threshold: float = Field(
        default=2.5,
        description="Z-score above which a value is anomalous",
        gt=0,
    )
    window_size: int = Field(
        default=100,
        description="Number of most recent points considered",
        ge=2,
        le=1000,
    )
    min_data_points: int = Field(
        default=20,
        description="Informational; the sweep gates on scheduler.min_data_points",
        ge=1,
    )

    def as_parameters(self) -> Dict[str, float]:
        """Return the parameters as a model parameter map."""
        return {
            "threshold": self.threshold,
            "window_size": float(self.window_size),
            "min_data_points": float(self.min_data_points),
        }


class RuleBasedModelConfig(BaseModel):
    """Ratio threshold model parameters."""

    model_config = {"frozen": True, "extra": "forbid"}

    spike_threshold: float = Field(
        default=3.0,
        description="Multiple of the recent average that counts as a spike",
        gt=1,
    )
    drop_threshold: float = Field(
        default=0.3,
        description="Fraction of the recent average that counts as a drop",
        gt=0,
        lt=1,
    )
    trend_change_threshold: float = Field(
        default=0.5,
        description="Informational; no trend rule reads it yet",
        gt=0,
    )
    window_size: int = Field(
        default=10,
        description="Number of most recent points averaged",
        ge=1,
        le=1000,
    )

    def as_parameters(self) -> Dict[str, float]:
        """Return the parameters as a model parameter map."""
        return {
            "spike_threshold": self.spike_threshold,
            "drop_threshold": self.drop_threshold,
            "trend_change_threshold": self.trend_change_threshold,
            "window_size": float(self.window_size),
        }


class RankOutlierModelConfig(BaseModel):
    """Rank-outlier model parameters."""

    model_config = {"frozen": True, "extra": "forbid"}

    contamination: float = Field(
        default=0.1,
        description="Expected proportion of anomalies; the firing threshold",
        ge=0,
        lt=1,
    )
    min_data_points: int = Field(
        default=50,
        description="Minimum data points required",
        ge=2,
    )
    n_estimators: int = Field(
        default=100,
        description="Informational; reserved for tree-based variants",
        ge=1,
    )
    max_samples: int = Field(
        default=256,
        description="Informational; reserved for tree-based variants",
        ge=1,
    )

    def as_parameters(self) -> Dict[str, float]:
        """Return the parameters as a model parameter map."""
        return {
            "contamination": self.contamination,
            "min_data_points": float(self.min_data_points),
            "n_estimators": float(self.n_estimators),
            "max_samples": float(self.max_samples),
        }


class DetectionConfig(BaseModel):
    """Parameters for the three built-in detection models."""

    model_config = {"frozen": True, "extra": "forbid"}

    statistical: StatisticalModelConfig = Field(
        default_factory=StatisticalModelConfig,
        description="Z-score model",
    )
    rule_based: RuleBasedModelConfig = Field(
        default_factory=RuleBasedModelConfig,
        description="Ratio threshold model",
    )
    rank_outlier: RankOutlierModelConfig = Field(
        default_factory=RankOutlierModelConfig,
        description="Rank-outlier model",
    )


class FusionConfig(BaseModel):
    """Strategy weights used when fusing verdicts."""

    model_config = {"frozen": True, "extra": "forbid"}

    statistical_weight: float = Field(
        default=0.4,
        description="Weight of the statistical strategy",
        gt=0,
    )
    rule_based_weight: float = Field(
        default=0.3,
        description="Weight of the rule-based strategy",
        gt=0,
    )
    rank_outlier_weight: float = Field(
        default=0.3,
        description="Weight of the rank-outlier strategy",
        gt=0,
    )

    def weights(self) -> List[float]:
        """Weights in evaluation order: statistical, rule-based, rank-outlier."""
        return [
            self.statistical_weight,
            self.rule_based_weight,
            self.rank_outlier_weight,
        ]


# =============================================================================
# SCHEDULER AND RETENTION CONFIGURATION
# =============================================================================


class SchedulerConfig(BaseModel):
    """Periodic sweep configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(
        default=True,
        description="Run the periodic sweep when the engine starts",
    )
    interval_seconds: float = Field(
        default=30.0,
        description="Seconds between sweep ticks",
        gt=0,
    )
    min_data_points: int = Field(
        default=20,
        description="Series shorter than this are skipped by the sweep",
        ge=1,
    )
    subscriber_timeout_seconds: float = Field(
        default=5.0,
        description="Longest an async alert subscriber may hold up a sweep",
        gt=0,
    )


class RetentionConfig(BaseModel):
    """Data and alert retention configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    series_capacity: int = Field(
        default=1000,
        description="Maximum points kept per series (oldest evicted first)",
        ge=1,
    )
    max_age_days: float = Field(
        default=30.0,
        description="Points and alerts older than this are removed by cleanup",
        gt=0,
    )


# =============================================================================
# PATTERN CONFIGURATION
# =============================================================================


class PatternConfig(BaseModel):
    """A detection pattern seeded at startup."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(
        ...,
        description="Unique pattern identifier",
        min_length=1,
    )
    name: str = Field(
        ...,
        description="Human-readable name",
        min_length=1,
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


DEFAULT_PATTERNS: List[PatternConfig] = [
    PatternConfig(
        id="response-time-spike",
        name="Response Time Spike",
        description="Sudden increase in response time",
        match_expression="response_time > 5000ms",
        severity=Severity.HIGH,
    ),
    PatternConfig(
        id="error-rate-surge",
        name="Error Rate Surge",
        description="Sudden increase in error rate",
        match_expression="error_rate > 10%",
        severity=Severity.CRITICAL,
    ),
    PatternConfig(
        id="throughput-drop",
        name="Throughput Drop",
        description="Significant drop in throughput",
        match_expression="throughput < 50% of average",
        severity=Severity.MEDIUM,
    ),
    PatternConfig(
        id="memory-leak",
        name="Memory Leak Pattern",
        description="Gradual increase in memory usage",
        match_expression="memory_usage increasing over 1 hour",
        severity=Severity.MEDIUM,
    ),
]


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Default log level",
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class EngineConfig(BaseModel):
    """
    Root engine configuration.

    Aggregates all configuration sections into a single validated object.

    Example:
        >>> config = EngineConfig()
        >>> config.scheduler.interval_seconds
        30.0
        >>> config.fusion.weights()
        [0.4, 0.3, 0.3]
    """

    model_config = {"frozen": True, "extra": "forbid"}

    detection: DetectionConfig = Field(
        default_factory=DetectionConfig,
        description="Built-in detection model parameters",
    )
    fusion: FusionConfig = Field(
        default_factory=FusionConfig,
        description="Fusion weights",
    )
    scheduler: SchedulerConfig = Field(
        default_factory=SchedulerConfig,
        description="Sweep scheduler",
    )
    retention: RetentionConfig = Field(
        default_factory=RetentionConfig,
        description="Retention settings",
    )
    patterns: List[PatternConfig] = Field(
        default_factory=lambda: list(DEFAULT_PATTERNS),
        description="Patterns seeded at startup",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    @field_validator("patterns")
    @classmethod
    def validate_unique_patterns(cls, v: List[PatternConfig]) -> List[PatternConfig]:
        """Reject duplicate pattern ids."""
        seen = set()
        for pattern in v:
            if pattern.id in seen:
                raise ValueError(f"Duplicate pattern id: {pattern.id}")
            seen.add(pattern.id)
        return v

    @model_validator(mode="after")
    def validate_config(self) -> "EngineConfig":
        """Validate cross-section constraints."""
        if self.retention.series_capacity < self.detection.statistical.window_size:
            raise ValueError(
                f"series_capacity ({self.retention.series_capacity}) must be >= "
                f"statistical window_size ({self.detection.statistical.window_size})"
            )
        return self
