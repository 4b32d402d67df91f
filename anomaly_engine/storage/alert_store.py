"""
In-process alert store.

This module provides the AlertStore class which holds alerts created from
fused anomalous detection results and manages their lifecycle.

Key Features:
    - Per (organization, resource) alert lists
    - Acknowledgement by id across all lists
    - Newest-first queries with a result limit
    - Per-organization statistics over a recent window
    - Age-based retention sweeps regardless of acknowledgement state

Example:
    >>> store = AlertStore()
    >>> alert = store.create("org-1", "rpc-1", "latency", fused_result)
    >>> store.acknowledge(alert.id, "oncall@example.com")
    True
    >>> recent = store.list("org-1", limit=10)
"""

import threading
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import structlog

from anomaly_engine.clock import ensure_utc
from anomaly_engine.models.alerts import Alert
from anomaly_engine.models.detection import DetectionResult

logger = structlog.get_logger(__name__)


# Default retention window for alerts
DEFAULT_ALERT_MAX_AGE = timedelta(days=30)

# Default maximum number of alerts returned by list()
DEFAULT_LIST_LIMIT = 100


class AlertStore:
    """
    Registry of alerts keyed by (organization, resource).

    All mutation and reads happen under one lock. Alert instances are never
    mutated in place: acknowledgement replaces the stored alert with an
    updated copy, so callers holding earlier instances see stable values.

    Attributes:
        _alerts: Dict mapping (organization_id, resource_id) to alert lists.
        _lock: Lock serializing all access to _alerts.

    Example:
        >>> store = AlertStore()
        >>> alert = store.create(
        ...     organization_id="org-1",
        ...     resource_id="rpc-1",
        ...     metric_name="response_time",
        ...     result=result,
        ... )
        >>> store.get(alert.id) == alert
        True
    """

    def __init__(self) -> None:
        """Initialize an empty alert store."""
        self._alerts: Dict[Tuple[str, str], List[Alert]] = {}
        self._lock = threading.Lock()

        logger.debug("alert_store_initialized")

    def create(
        self,
        organization_id: str,
        resource_id: str,
        metric_name: str,
        result: DetectionResult,
        timestamp: Optional[datetime] = None,
    ) -> Alert:
        """
        Create and store an alert for an anomalous result.

        Args:
            organization_id: Organization owning the series.
            resource_id: Resource the series belongs to.
            metric_name: Metric that triggered.
            result: The fused anomalous detection result.
            timestamp: Creation time (defaults to now, UTC).

        Returns:
            Alert: The new alert.
        """
        alert = Alert(
            organization_id=organization_id,
            resource_id=resource_id,
            metric_name=metric_name,
            result=result,
            created_at=ensure_utc(timestamp),
        )

        with self._lock:
            self._alerts.setdefault((organization_id, resource_id), []).append(alert)

        logger.warning(
            "alert_created",
            alert_id=alert.id,
            organization_id=organization_id,
            resource_id=resource_id,
            metric_name=metric_name,
            anomaly_kind=result.kind.value,
            severity=result.severity.value,
            score=round(result.score, 4),
        )

        return alert

    def get(self, alert_id: str) -> Optional[Alert]:
        """
        Find an alert by id.

        Args:
            alert_id: The unique alert identifier.

        Returns:
            Optional[Alert]: The alert, or None if not found.
        """
        with self._lock:
            for alerts in self._alerts.values():
                for alert in alerts:
                    if alert.id == alert_id:
                        return alert
        return None

    def acknowledge(
        self,
        alert_id: str,
        acknowledged_by: str,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """
        Acknowledge an alert.

        Unknown ids are expected (the alert may have been removed by a
        retention sweep) and return False. Acknowledging an already
        acknowledged alert returns True and changes nothing.

        Args:
            alert_id: The unique alert identifier.
            acknowledged_by: Who acknowledges the alert.
            timestamp: Acknowledgment time (defaults to now, UTC).

        Returns:
            bool: True if the alert exists, False otherwise.
        """
        with self._lock:
            for alerts in self._alerts.values():
                for index, alert in enumerate(alerts):
                    if alert.id != alert_id:
                        continue

                    if alert.acknowledged:
                        logger.debug(
                            "alert_already_acknowledged",
                            alert_id=alert_id,
                            acknowledged_by=alert.acknowledged_by,
                        )
                        return True

                    alerts[index] = alert.acknowledge(
                        acknowledged_by=acknowledged_by,
                        timestamp=ensure_utc(timestamp),
                    )
                    logger.info(
                        "alert_acknowledged",
                        alert_id=alert_id,
                        acknowledged_by=acknowledged_by,
                    )
                    return True

        logger.warning("alert_not_found_for_acknowledgement", alert_id=alert_id)
        return False

    def list(
        self,
        organization_id: str,
        resource_id: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Alert]:
        """
        List alerts newest first.

        Args:
            organization_id: Organization to list alerts for.
            resource_id: Restrict to one resource (default: all resources).
            limit: Maximum number of alerts returned.

        Returns:
            List[Alert]: Alerts sorted by created_at descending.
        """
        with self._lock:
            if resource_id is not None:
                selected = list(self._alerts.get((organization_id, resource_id), []))
            else:
                selected = [
                    alert
                    for (org_id, _), alerts in self._alerts.items()
                    if org_id == organization_id
                    for alert in alerts
                ]

        selected.sort(key=lambda a: a.created_at, reverse=True)
        return selected[: max(limit, 0)]

    def count(self) -> int:
        """Total number of stored alerts."""
        with self._lock:
            return sum(len(alerts) for alerts in self._alerts.values())

    def stats(
        self,
        organization_id: str,
        days: float = 7,
        current_time: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Summarize an organization's alerts created in the last ``days`` days.

        Args:
            organization_id: Organization to summarize.
            days: Size of the window in days.
            current_time: Reference time (defaults to now, UTC).

        Returns:
            Dict with total_alerts, by_severity, by_type, acknowledged,
            unacknowledged and average_score.
        """
        cutoff = ensure_utc(current_time) - timedelta(days=days)

        with self._lock:
            recent = [
                alert
                for (org_id, _), alerts in self._alerts.items()
                if org_id == organization_id
                for alert in alerts
                if alert.created_at >= cutoff
            ]

        by_severity: Dict[str, int] = {}
        by_type: Dict[str, int] = {}
        total_score = 0.0
        acknowledged = 0

        for alert in recent:
            severity = alert.result.severity.value
            kind = alert.result.kind.value
            by_severity[severity] = by_severity.get(severity, 0) + 1
            by_type[kind] = by_type.get(kind, 0) + 1
            total_score += alert.result.score
            if alert.acknowledged:
                acknowledged += 1

        return {
            "total_alerts": len(recent),
            "by_severity": by_severity,
            "by_type": by_type,
            "acknowledged": acknowledged,
            "unacknowledged": len(recent) - acknowledged,
            "average_score": total_score / len(recent) if recent else 0.0,
        }

    def retention_sweep(
        self,
        max_age: timedelta = DEFAULT_ALERT_MAX_AGE,
        current_time: Optional[datetime] = None,
    ) -> int:
        """
        Remove alerts older than max_age, acknowledged or not.

        Args:
            max_age: Maximum age of retained alerts (default: 30 days).
            current_time: Reference time (defaults to now, UTC).

        Returns:
            int: Number of alerts removed.
        """
        cutoff = ensure_utc(current_time) - max_age

        removed = 0
        with self._lock:
            for key, alerts in self._alerts.items():
                kept = [alert for alert in alerts if alert.created_at >= cutoff]
                if len(kept) != len(alerts):
                    removed += len(alerts) - len(kept)
                    self._alerts[key] = kept

        if removed:
            logger.debug(
                "alert_retention_sweep",
                removed=removed,
                cutoff=cutoff.isoformat(),
            )

        return removed
