"""
Configuration management for the anomaly detection engine.

This module handles loading and validating configuration from YAML files.
All configuration values are validated using Pydantic models to ensure
type safety and catch configuration errors early.

Configuration is loaded from YAML files in the config/ directory:
    - engine.yaml: Detection models, fusion weights, scheduler, retention
      and logging settings
    - patterns.yaml: Detection patterns seeded at startup (optional)

Environment variables can override logging settings:
    - LOG_LEVEL: Application log level
    - LOG_FORMAT: Log output format

Example:
    >>> from anomaly_engine.config import load_config, EngineConfig
    >>> config = load_config()
    >>> print(config.detection.statistical.threshold)
    2.5

Modules:
    loader: Configuration file loading utilities
    models: Pydantic models for configuration validation
"""

from anomaly_engine.config.loader import ConfigLoadError, ConfigLoader, load_config
from anomaly_engine.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    # Detection config
    DetectionConfig,
    FusionConfig,
    RankOutlierModelConfig,
    RuleBasedModelConfig,
    StatisticalModelConfig,
    # Scheduler and retention config
    RetentionConfig,
    SchedulerConfig,
    # Pattern config
    DEFAULT_PATTERNS,
    PatternConfig,
    # Logging config
    LoggingConfig,
    # Root config
    EngineConfig,
)

__all__: list[str] = [
    # Loader
    "load_config",
    "ConfigLoader",
    "ConfigLoadError",
    # Enums
    "LogFormat",
    "LogLevel",
    # Detection config
    "StatisticalModelConfig",
    "RuleBasedModelConfig",
    "RankOutlierModelConfig",
    "DetectionConfig",
    "FusionConfig",
    # Scheduler and retention config
    "SchedulerConfig",
    "RetentionConfig",
    # Pattern config
    "PatternConfig",
    "DEFAULT_PATTERNS",
    # Logging config
    "LoggingConfig",
    # Root config
    "EngineConfig",
]
