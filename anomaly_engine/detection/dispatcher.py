"""
Alert dispatcher for notifying subscribers of new alerts.

This module provides the AlertDispatcher class, the engine's emission hook.
External transports (websocket broadcasters, notifiers) subscribe a callback
and receive every new Alert; the engine knows nothing about their wire
formats.

Key Features:
    - Plain or async callbacks
    - Unsubscribe handle returned on subscription
    - A failing subscriber never affects the others
    - Async subscribers are bounded by a timeout so a slow transport cannot
      stall the sweep that produced the alert

Example:
    >>> dispatcher = AlertDispatcher()
    >>> async def broadcast(alert):
    ...     await hub.send(alert.organization_id, alert.model_dump(mode="json"))
    >>> unsubscribe = dispatcher.subscribe(broadcast, name="websocket")
    >>> await dispatcher.dispatch(alert)
    1
"""

import asyncio
import inspect
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import structlog

from anomaly_engine.models.alerts import Alert

logger = structlog.get_logger(__name__)


AlertCallback = Callable[[Alert], Union[None, Awaitable[None]]]

# Default seconds an async subscriber may take per alert
DEFAULT_SUBSCRIBER_TIMEOUT = 5.0


class AlertDispatcher:
    """
    Fans new alerts out to subscribed callbacks.

    Subscribers run one after another on the caller's event loop. An async
    subscriber that exceeds ``subscriber_timeout`` is cancelled and logged
    as timed out. Plain callbacks cannot be interrupted and must return
    promptly.

    Attributes:
        subscriber_timeout: Seconds an async subscriber may take per alert.
        _subscribers: Dict mapping subscription id to (name, callback).
    """

    def __init__(self, subscriber_timeout: float = DEFAULT_SUBSCRIBER_TIMEOUT) -> None:
        if subscriber_timeout <= 0:
            raise ValueError(f"subscriber_timeout must be > 0, got {subscriber_timeout}")

        self.subscriber_timeout = subscriber_timeout
        self._subscribers: Dict[int, Tuple[str, AlertCallback]] = {}
        self._next_id = 0
        self._lock = threading.Lock()

    def subscribe(
        self,
        callback: AlertCallback,
        name: Optional[str] = None,
    ) -> Callable[[], None]:
        """
        Subscribe a callback to new alerts.

        Args:
            callback: Called with each new Alert; may be a coroutine function.
            name: Label used in logs (defaults to the callback's name).

        Returns:
            Callable[[], None]: Call it to unsubscribe; safe to call twice.
        """
        label = name or getattr(callback, "__name__", repr(callback))

        with self._lock:
            subscription_id = self._next_id
            self._next_id += 1
            self._subscribers[subscription_id] = (label, callback)

        logger.info("alert_subscriber_added", subscriber=label)

        def unsubscribe() -> None:
            with self._lock:
                removed = self._subscribers.pop(subscription_id, None)
            if removed is not None:
                logger.info("alert_subscriber_removed", subscriber=label)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        """Number of active subscribers."""
        with self._lock:
            return len(self._subscribers)

    async def dispatch(self, alert: Alert) -> int:
        """
        Deliver an alert to every subscriber.

        Args:
            alert: The new Alert.

        Returns:
            int: Number of subscribers that received the alert without error.
        """
        with self._lock:
            subscribers: List[Tuple[str, AlertCallback]] = list(self._subscribers.values())

        delivered = 0
        for label, callback in subscribers:
            try:
                outcome: Any = callback(alert)
                if inspect.isawaitable(outcome):
                    await asyncio.wait_for(outcome, timeout=self.subscriber_timeout)
                delivered += 1

                logger.debug(
                    "alert_dispatched_to_subscriber",
                    subscriber=label,
                    alert_id=alert.id,
                )

            except asyncio.TimeoutError:
                logger.error(
                    "alert_subscriber_timed_out",
                    subscriber=label,
                    alert_id=alert.id,
                    timeout_seconds=self.subscriber_timeout,
                )

            except Exception as e:
                logger.error(
                    "alert_subscriber_failed",
                    subscriber=label,
                    alert_id=alert.id,
                    error=str(e),
                )

        if subscribers:
            logger.debug(
                "alert_dispatch_complete",
                alert_id=alert.id,
                dispatched_to=delivered,
                total_subscribers=len(subscribers),
            )

        return delivered
