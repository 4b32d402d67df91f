import pytest

from anomaly_engine.detection import ResultFusion
from anomaly_engine.models import AnomalyKind, Severity

from conftest import make_result


def quiet():
    return make_result(is_anomaly=False, score=0.0, confidence=0.0, kind=AnomalyKind.OUTLIER,
                       severity=Severity.LOW, description="No anomaly detected")


def test_nothing_fired_returns_first_input():
    first, second, third = quiet(), quiet(), quiet()
    assert ResultFusion().fuse([first, second, third]) is first


def test_empty_input_is_not_anomalous():
    fused = ResultFusion().fuse([])
    assert not fused.is_anomaly
    assert fused.score == 0.0


def test_single_firing_strategy_keeps_its_score():
    rule = make_result(score=0.8, confidence=0.8, description="Spike detected")
    fused = ResultFusion([0.4, 0.3, 0.3]).fuse([quiet(), rule, quiet()])

    assert fused.is_anomaly
    assert fused.score == 0.8
    assert fused.confidence == 0.8
    assert fused.description == "Combined anomaly detection: Spike detected"


def test_weighted_average_over_firing_subset():
    statistical = make_result(score=0.6, confidence=0.5, kind=AnomalyKind.DROP, description="stat")
    rule = make_result(score=1.0, confidence=0.8, kind=AnomalyKind.SPIKE,
                       severity=Severity.HIGH, description="rule")
    fused = ResultFusion([0.4, 0.3, 0.3]).fuse([statistical, rule, quiet()])

    assert fused.score == pytest.approx((0.4 * 0.6 + 0.3 * 1.0) / 0.7)
    assert fused.confidence == pytest.approx((0.4 * 0.5 + 0.3 * 0.8) / 0.7)
    # descriptive fields come from the highest scoring result
    assert fused.kind == AnomalyKind.SPIKE
    assert fused.severity == Severity.HIGH
    assert fused.description == "Combined anomaly detection: rule"


def test_ties_go_to_earliest_strategy():
    statistical = make_result(score=0.7, kind=AnomalyKind.SPIKE, description="stat")
    rank = make_result(score=0.7, kind=AnomalyKind.OUTLIER, description="rank")
    fused = ResultFusion().fuse([statistical, quiet(), rank])

    assert fused.score == pytest.approx(0.7)
    assert fused.kind == AnomalyKind.SPIKE
    assert fused.description == "Combined anomaly detection: stat"


def test_fused_score_stays_in_range():
    results = [make_result(score=1.0, confidence=1.0) for _ in range(3)]
    fused = ResultFusion().fuse(results)
    assert fused.score <= 1.0
    assert fused.confidence <= 1.0


def test_more_results_than_weights_rejected():
    with pytest.raises(ValueError):
        ResultFusion([0.5, 0.5]).fuse([quiet(), quiet(), quiet()])


def test_non_positive_weight_rejected():
    with pytest.raises(ValueError):
        ResultFusion([0.4, 0.0, 0.3])


def test_weights_follow_strategy_position():
    rule = make_result(score=1.0, confidence=0.8, kind=AnomalyKind.SPIKE, description="rule")
    rank = make_result(score=0.5, confidence=0.5, kind=AnomalyKind.OUTLIER, description="rank")
    fused = ResultFusion([0.4, 0.3, 0.3]).fuse([quiet(), rule, rank])

    # rule-based and rank-outlier both carry 0.3, whatever their firing order
    assert fused.score == pytest.approx(0.75)
    assert fused.confidence == pytest.approx(0.65)
    assert fused.description == "Combined anomaly detection: rule"


def test_unequal_weights_follow_strategy_position():
    rule = make_result(score=1.0, confidence=0.8, description="rule")
    rank = make_result(score=0.5, confidence=0.5, description="rank")
    fused = ResultFusion([0.2, 0.5, 0.3]).fuse([quiet(), rule, rank])

    assert fused.score == pytest.approx((0.5 * 1.0 + 0.3 * 0.5) / 0.8)
