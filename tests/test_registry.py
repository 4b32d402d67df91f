import pytest

from anomaly_engine.config import DEFAULT_PATTERNS, DetectionConfig
from anomaly_engine.detection import ModelRegistry, PatternRegistry
from anomaly_engine.models import ModelKind, Severity

from conftest import make_points


def test_pattern_registry_seeded_with_defaults():
    registry = PatternRegistry.from_config(DEFAULT_PATTERNS)
    patterns = registry.list()

    assert [p.id for p in patterns] == [
        "response-time-spike",
        "error-rate-surge",
        "throughput-drop",
        "memory-leak",
    ]
    assert registry.get("error-rate-surge").severity == Severity.CRITICAL
    assert all(p.active for p in patterns)


def test_register_pattern(now):
    registry = PatternRegistry()
    pattern_id = registry.register(
        name="Latency Plateau",
        match_expression="latency flat above p99 for 10m",
        severity="medium",
        description="Latency stuck high",
        timestamp=now,
    )

    pattern = registry.get(pattern_id)
    assert pattern_id.startswith("pattern_")
    assert pattern.severity == Severity.MEDIUM
    assert pattern.created_at == now
    assert registry.get("missing") is None


def test_register_pattern_rejects_bad_severity():
    with pytest.raises(ValueError):
        PatternRegistry().register(name="x", match_expression="y", severity="urgent")


def test_default_models():
    registry = ModelRegistry.from_config(DetectionConfig())
    models = {m.id: m for m in registry.list()}

    assert set(models) == {"statistical-zscore", "rule-based-thresholds", "rank-outlier"}
    assert models["statistical-zscore"].kind == ModelKind.STATISTICAL
    assert models["statistical-zscore"].parameters["threshold"] == 2.5
    assert models["rule-based-thresholds"].trained
    assert not models["rank-outlier"].trained
    assert models["rank-outlier"].parameters["contamination"] == 0.1


def test_parameters_returns_a_copy():
    registry = ModelRegistry.from_config(DetectionConfig())
    params = registry.parameters("statistical-zscore")
    params["threshold"] = 99.0

    assert registry.parameters("statistical-zscore")["threshold"] == 2.5
    assert registry.parameters("unknown") == {}


def test_train_unknown_model():
    registry = ModelRegistry.from_config(DetectionConfig())
    assert registry.train("unknown", [1.0, 2.0]) is False


def test_train_merges_parameters(now):
    registry = ModelRegistry.from_config(DetectionConfig())
    points = make_points([1.0] * 30)

    assert registry.train(
        "statistical-zscore",
        points,
        parameters={"threshold": 3.0},
        accuracy=0.87,
        timestamp=now,
    ) is True

    model = registry.get("statistical-zscore")
    assert model.trained
    assert model.training_samples == 30
    assert model.accuracy == 0.87
    assert model.last_trained_at == now
    assert model.parameters["threshold"] == 3.0
    assert model.parameters["window_size"] == 100.0


def test_train_is_repeatable(now):
    registry = ModelRegistry.from_config(DetectionConfig())
    registry.train("rank-outlier", [1.0, 2.0], parameters={"contamination": 0.2}, timestamp=now)
    first = registry.get("rank-outlier")
    registry.train("rank-outlier", [1.0, 2.0], parameters={"contamination": 0.2}, timestamp=now)

    assert registry.get("rank-outlier") == first
    # accuracy is never invented
    assert first.accuracy is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"parameters": {"threshold": "high"}},
        {"accuracy": 1.5},
    ],
)
def test_train_with_invalid_input_leaves_model_unchanged(kwargs):
    registry = ModelRegistry.from_config(DetectionConfig())
    before = registry.get("statistical-zscore")

    with pytest.raises(ValueError):
        registry.train("statistical-zscore", [1.0], **kwargs)

    assert registry.get("statistical-zscore") == before
