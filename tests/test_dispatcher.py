import asyncio

import pytest

from anomaly_engine.detection import AlertDispatcher
from anomaly_engine.models import Alert

from conftest import BASE_TIME, make_result


def make_alert():
    return Alert(
        organization_id="org-1",
        resource_id="rpc-1",
        metric_name="response_time",
        result=make_result(),
        created_at=BASE_TIME,
    )


@pytest.mark.asyncio
async def test_dispatch_to_sync_and_async_subscribers():
    dispatcher = AlertDispatcher()
    received = []

    def on_alert(alert):
        received.append(("sync", alert.id))

    async def on_alert_async(alert):
        received.append(("async", alert.id))

    dispatcher.subscribe(on_alert)
    dispatcher.subscribe(on_alert_async)
    alert = make_alert()

    assert await dispatcher.dispatch(alert) == 2
    assert received == [("sync", alert.id), ("async", alert.id)]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_affect_others():
    dispatcher = AlertDispatcher()
    received = []

    def broken(alert):
        raise RuntimeError("transport down")

    async def broken_async(alert):
        raise RuntimeError("socket closed")

    dispatcher.subscribe(broken)
    dispatcher.subscribe(broken_async)
    dispatcher.subscribe(received.append)

    alert = make_alert()
    assert await dispatcher.dispatch(alert) == 1
    assert received == [alert]


@pytest.mark.asyncio
async def test_unsubscribe():
    dispatcher = AlertDispatcher()
    received = []
    unsubscribe = dispatcher.subscribe(received.append, name="collector")
    assert dispatcher.subscriber_count == 1

    unsubscribe()
    unsubscribe()

    assert dispatcher.subscriber_count == 0
    assert await dispatcher.dispatch(make_alert()) == 0
    assert received == []


@pytest.mark.asyncio
async def test_slow_async_subscriber_is_timed_out():
    dispatcher = AlertDispatcher(subscriber_timeout=0.01)
    received = []

    async def stuck(alert):
        await asyncio.sleep(1)
        received.append(("stuck", alert.id))

    dispatcher.subscribe(stuck)
    dispatcher.subscribe(received.append)

    alert = make_alert()
    assert await dispatcher.dispatch(alert) == 1
    assert received == [alert]


@pytest.mark.parametrize("timeout", [0, -1.0])
def test_invalid_subscriber_timeout_rejected(timeout):
    with pytest.raises(ValueError):
        AlertDispatcher(subscriber_timeout=timeout)
