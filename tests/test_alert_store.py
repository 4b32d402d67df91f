from datetime import timedelta

import pytest

from anomaly_engine.models import AnomalyKind, Severity
from anomaly_engine.storage import AlertStore

from conftest import make_result


def test_create_assigns_id_and_time(now):
    store = AlertStore()
    alert = store.create("org-1", "rpc-1", "response_time", make_result(), timestamp=now)

    assert alert.id.startswith("anomaly_")
    assert alert.created_at == now
    assert not alert.acknowledged
    assert store.get(alert.id) == alert
    assert store.count() == 1


def test_list_is_newest_first_and_limited(now):
    store = AlertStore()
    oldest = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now - timedelta(hours=2))
    newest = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now)
    middle = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now - timedelta(hours=1))

    assert [a.id for a in store.list("org-1", "rpc-1")] == [newest.id, middle.id, oldest.id]
    assert [a.id for a in store.list("org-1", "rpc-1", limit=1)] == [newest.id]
    assert store.list("org-1", "rpc-1", limit=0) == []


def test_list_without_resource_spans_all_resources(now):
    store = AlertStore()
    a = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now - timedelta(minutes=1))
    b = store.create("org-1", "rpc-2", "m", make_result(), timestamp=now)
    store.create("org-2", "rpc-1", "m", make_result(), timestamp=now)

    assert [x.id for x in store.list("org-1")] == [b.id, a.id]
    assert store.list("org-3") == []


def test_acknowledge_unknown_id():
    assert AlertStore().acknowledge("anomaly_missing", "oncall") is False


def test_acknowledge_replaces_stored_copy(now):
    store = AlertStore()
    alert = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now)

    assert store.acknowledge(alert.id, "oncall", timestamp=now + timedelta(minutes=5)) is True

    stored = store.get(alert.id)
    assert stored.acknowledged
    assert stored.acknowledged_by == "oncall"
    assert stored.acknowledged_at == now + timedelta(minutes=5)
    # instances handed out earlier never change
    assert not alert.acknowledged


def test_second_acknowledgement_is_a_no_op(now):
    store = AlertStore()
    alert = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now)
    store.acknowledge(alert.id, "first", timestamp=now + timedelta(minutes=1))

    assert store.acknowledge(alert.id, "second", timestamp=now + timedelta(minutes=9)) is True

    stored = store.get(alert.id)
    assert stored.acknowledged_by == "first"
    assert stored.acknowledged_at == now + timedelta(minutes=1)


def test_stats_cover_recent_window(now):
    store = AlertStore()
    spike = make_result(score=0.9, kind=AnomalyKind.SPIKE, severity=Severity.CRITICAL)
    drop = make_result(score=0.5, kind=AnomalyKind.DROP, severity=Severity.MEDIUM)

    first = store.create("org-1", "rpc-1", "m", spike, timestamp=now - timedelta(days=1))
    store.create("org-1", "rpc-2", "m", drop, timestamp=now - timedelta(days=2))
    store.create("org-1", "rpc-1", "m", spike, timestamp=now - timedelta(days=10))
    store.create("org-2", "rpc-1", "m", spike, timestamp=now)
    store.acknowledge(first.id, "oncall", timestamp=now)

    stats = store.stats("org-1", days=7, current_time=now)

    assert stats["total_alerts"] == 2
    assert stats["by_severity"] == {"critical": 1, "medium": 1}
    assert stats["by_type"] == {"spike": 1, "drop": 1}
    assert stats["acknowledged"] == 1
    assert stats["unacknowledged"] == 1
    assert stats["average_score"] == pytest.approx(0.7)


def test_stats_for_unknown_org(now):
    stats = AlertStore().stats("org-1", current_time=now)
    assert stats["total_alerts"] == 0
    assert stats["average_score"] == 0.0


def test_retention_sweep_ignores_acknowledgement(now):
    store = AlertStore()
    old = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now - timedelta(days=31))
    old_acked = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now - timedelta(days=35))
    recent = store.create("org-1", "rpc-1", "m", make_result(), timestamp=now - timedelta(days=29))
    store.acknowledge(old_acked.id, "oncall", timestamp=now)

    assert store.retention_sweep(timedelta(days=30), current_time=now) == 2

    assert store.get(old.id) is None
    assert store.get(old_acked.id) is None
    assert store.get(recent.id) is not None
    assert store.acknowledge(old.id, "oncall") is False
