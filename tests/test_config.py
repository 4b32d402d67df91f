import os

import pytest
from pydantic import ValidationError

from anomaly_engine.config import (
    ConfigLoadError,
    ConfigLoader,
    EngineConfig,
    LogFormat,
    LogLevel,
    PatternConfig,
    RetentionConfig,
    load_config,
)


CONFIG_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "config"))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)


def test_defaults():
    config = EngineConfig()
    assert config.detection.statistical.threshold == 2.5
    assert config.detection.rule_based.spike_threshold == 3.0
    assert config.detection.rank_outlier.contamination == 0.1
    assert config.fusion.weights() == [0.4, 0.3, 0.3]
    assert config.scheduler.interval_seconds == 30.0
    assert config.scheduler.min_data_points == 20
    assert config.retention.series_capacity == 1000
    assert len(config.patterns) == 4


def test_shipped_config_matches_defaults():
    config = load_config(CONFIG_DIR)
    assert config == EngineConfig()


def test_missing_directory(tmp_path):
    with pytest.raises(ConfigLoadError) as exc_info:
        ConfigLoader(tmp_path / "nope")
    assert exc_info.value.file_path == tmp_path / "nope"


def test_missing_engine_file(tmp_path):
    with pytest.raises(ConfigLoadError):
        load_config(tmp_path)


def test_empty_engine_file(tmp_path):
    (tmp_path / "engine.yaml").write_text("")
    with pytest.raises(ConfigLoadError):
        load_config(tmp_path)


def test_invalid_yaml(tmp_path):
    (tmp_path / "engine.yaml").write_text("detection: [unclosed\n")
    with pytest.raises(ConfigLoadError) as exc_info:
        load_config(tmp_path)
    assert exc_info.value.cause is not None


def test_validation_failure_is_wrapped(tmp_path):
    (tmp_path / "engine.yaml").write_text("detection:\n  statistical:\n    threshold: -1\n")
    with pytest.raises(ConfigLoadError) as exc_info:
        load_config(tmp_path)
    assert isinstance(exc_info.value.cause, ValidationError)


def test_partial_file_uses_defaults_and_default_patterns(tmp_path):
    (tmp_path / "engine.yaml").write_text("scheduler:\n  interval_seconds: 5\n")
    config = load_config(tmp_path)

    assert config.scheduler.interval_seconds == 5.0
    assert config.detection.statistical.window_size == 100
    assert [p.id for p in config.patterns] == [p.id for p in EngineConfig().patterns]


def test_patterns_file(tmp_path):
    (tmp_path / "engine.yaml").write_text("fusion:\n  statistical_weight: 0.5\n")
    (tmp_path / "patterns.yaml").write_text(
        "patterns:\n"
        "  - id: disk-full\n"
        "    name: Disk Full\n"
        "    match_expression: disk_usage > 95%\n"
        "    severity: critical\n"
    )
    config = load_config(tmp_path)

    assert config.fusion.weights() == [0.5, 0.3, 0.3]
    assert [p.id for p in config.patterns] == ["disk-full"]


def test_log_env_overrides(tmp_path, monkeypatch):
    (tmp_path / "engine.yaml").write_text("logging:\n  format: json\n  level: INFO\n")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "console")

    config = load_config(tmp_path)

    assert config.logging.level == LogLevel.DEBUG
    assert config.logging.format == LogFormat.CONSOLE


def test_invalid_log_level_env_falls_back_to_info(tmp_path, monkeypatch):
    (tmp_path / "engine.yaml").write_text("logging:\n  level: WARNING\n")
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert load_config(tmp_path).logging.level == LogLevel.INFO


def test_duplicate_pattern_ids_rejected():
    pattern = PatternConfig(id="p", name="P", match_expression="x", severity="low")
    with pytest.raises(ValidationError):
        EngineConfig(patterns=[pattern, pattern])


def test_capacity_must_hold_statistical_window():
    with pytest.raises(ValidationError):
        EngineConfig(retention=RetentionConfig(series_capacity=50))
