"""
Configuration loader for YAML-based engine configuration.

This module provides utilities to load and validate configuration from YAML
files. All configuration is validated using Pydantic models so that errors
surface at startup rather than during a sweep.

Configuration files expected:
    - config/engine.yaml: Detection, fusion, scheduler, retention, logging
    - config/patterns.yaml: Seeded detection patterns (optional)

Environment variables override:
    - LOG_LEVEL: Application log level
    - LOG_FORMAT: Log output format (json or console)

Example:
    >>> from anomaly_engine.config.loader import load_config
    >>> config = load_config("config")
    >>> print(config.scheduler.interval_seconds)
    30.0
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from anomaly_engine.config.models import (
    DEFAULT_PATTERNS,
    DetectionConfig,
    EngineConfig,
    FusionConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PatternConfig,
    RetentionConfig,
    SchedulerConfig,
)


class ConfigLoadError(Exception):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Loads and validates engine configuration from YAML files.

    Expects the following directory structure:
        config/
        ├── engine.yaml    - Detection, fusion, scheduler, retention, logging
        └── patterns.yaml  - Seeded detection patterns (optional)

    Example:
        >>> loader = ConfigLoader("config")
        >>> config = loader.load()
        >>> print(config.fusion.weights())
        [0.4, 0.3, 0.3]
    """

    def __init__(self, config_dir: Path | str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Path to configuration directory (default: 'config').

        Raises:
            ConfigLoadError: If config directory does not exist.
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ConfigLoadError(
                f"Configuration directory not found: {self.config_dir}",
                file_path=self.config_dir,
            )
        if not self.config_dir.is_dir():
            raise ConfigLoadError(
                f"Configuration path is not a directory: {self.config_dir}",
                file_path=self.config_dir,
            )

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        """
        Load a YAML file from the config directory.

        Args:
            filename: Name of YAML file (e.g., 'engine.yaml').

        Returns:
            Dict containing parsed YAML content.

        Raises:
            ConfigLoadError: If file not found, empty, or invalid YAML.
        """
        file_path = self.config_dir / filename
        if not file_path.exists():
            raise ConfigLoadError(
                f"Configuration file not found: {file_path}",
                file_path=file_path,
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
                if data is None:
                    raise ConfigLoadError(
                        f"Configuration file is empty: {file_path}",
                        file_path=file_path,
                    )
                if not isinstance(data, dict):
                    raise ConfigLoadError(
                        f"Configuration file must contain a mapping: {file_path}",
                        file_path=file_path,
                    )
                return data
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

    def _load_patterns(self) -> List[PatternConfig]:
        """
        Load seeded patterns from patterns.yaml.

        Falls back to the built-in defaults when the file is absent.

        Returns:
            List of PatternConfig.
        """
        if not (self.config_dir / "patterns.yaml").exists():
            return list(DEFAULT_PATTERNS)

        data = self._load_yaml("patterns.yaml")
        raw_patterns = data.get("patterns", [])
        if not isinstance(raw_patterns, list):
            raise ConfigLoadError(
                "'patterns' must be a list",
                file_path=self.config_dir / "patterns.yaml",
            )
        return [PatternConfig(**raw) for raw in raw_patterns]

    def _load_logging(self, data: Dict[str, Any]) -> LoggingConfig:
        """
        Build logging configuration, applying environment overrides.

        Environment variables:
            - LOG_LEVEL: Log level (default: from file, else INFO)
            - LOG_FORMAT: Log format (default: from file, else json)

        Args:
            data: The 'logging' section of engine.yaml.

        Returns:
            LoggingConfig object.
        """
        merged = dict(data)

        level_str = os.getenv("LOG_LEVEL")
        if level_str:
            try:
                merged["level"] = LogLevel(level_str.upper())
            except ValueError:
                merged["level"] = LogLevel.INFO

        format_str = os.getenv("LOG_FORMAT")
        if format_str:
            try:
                merged["format"] = LogFormat(format_str.lower())
            except ValueError:
                merged["format"] = LogFormat.JSON

        return LoggingConfig(**merged)

    def load(self) -> EngineConfig:
        """
        Load and validate all configuration files.

        Returns:
            EngineConfig: Validated engine configuration.

        Raises:
            ConfigLoadError: If any configuration is invalid or missing.

        Example:
            >>> loader = ConfigLoader("config")
            >>> config = loader.load()
        """
        try:
            data = self._load_yaml("engine.yaml")

            config = EngineConfig(
                detection=DetectionConfig(**data.get("detection", {})),
                fusion=FusionConfig(**data.get("fusion", {})),
                scheduler=SchedulerConfig(**data.get("scheduler", {})),
                retention=RetentionConfig(**data.get("retention", {})),
                patterns=self._load_patterns(),
                logging=self._load_logging(data.get("logging", {})),
            )

            return config

        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                cause=e,
            ) from e
        except Exception as e:
            raise ConfigLoadError(
                f"Unexpected error loading configuration: {e}",
                cause=e,
            ) from e


def load_config(config_dir: Path | str = "config") -> EngineConfig:
    """
    Convenience function to load engine configuration.

    Args:
        config_dir: Path to configuration directory (default: 'config').

    Returns:
        EngineConfig: Validated engine configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.

    Example:
        >>> from anomaly_engine.config import load_config
        >>> config = load_config()
    """
    loader = ConfigLoader(config_dir)
    return loader.load()
