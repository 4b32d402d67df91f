"""
Alert data model.

Models:
    Alert: Durable record of a fused anomalous verdict
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from anomaly_engine.models.detection import DetectionResult


class Alert(BaseModel):
    """
    Durable record of a fused anomalous detection result.

    Lifecycle: created -> acknowledged (terminal), or created -> removed by
    a retention sweep. Acknowledgement produces an updated copy; the store
    swaps the copy in so previously returned instances never change.

    Attributes:
        id: Unique identifier for this alert.
        organization_id: Organization owning the series.
        resource_id: Resource the series belongs to.
        metric_name: Metric that triggered.
        result: The fused detection result.
        acknowledged: Whether an operator acknowledged the alert.
        acknowledged_by: Who acknowledged it.
        acknowledged_at: When it was acknowledged.
        created_at: When the alert was created.

    Example:
        >>> alert = Alert(
        ...     organization_id="org-1",
        ...     resource_id="rpc-eth-main",
        ...     metric_name="response_time",
        ...     result=fused_result,
        ...     created_at=datetime.now(timezone.utc),
        ... )
    """

    model_config = {"extra": "forbid"}

    # Identification
    id: str = Field(
        default_factory=lambda: f"anomaly_{uuid4().hex}",
        description="Unique identifier for this alert",
    )

    # Location
    organization_id: str = Field(
        ...,
        description="Organization owning the series",
    )
    resource_id: str = Field(
        ...,
        description="Resource the series belongs to",
    )
    metric_name: str = Field(
        ...,
        description="Metric that triggered",
    )

    result: DetectionResult = Field(
        ...,
        description="The fused detection result",
    )

    # Lifecycle
    acknowledged: bool = Field(
        default=False,
        description="Whether the alert was acknowledged",
    )
    acknowledged_by: Optional[str] = Field(
        default=None,
        description="Who acknowledged the alert",
    )
    acknowledged_at: Optional[datetime] = Field(
        default=None,
        description="When the alert was acknowledged",
    )
    created_at: datetime = Field(
        ...,
        description="When the alert was created",
    )

    def acknowledge(
        self,
        acknowledged_by: str,
        timestamp: Optional[datetime] = None,
    ) -> "Alert":
        """
        Mark the alert as acknowledged.

        Re-acknowledging is a no-op: an already acknowledged alert is
        returned unchanged, keeping the original acknowledger and time.

        Args:
            acknowledged_by: Who acknowledges the alert.
            timestamp: Acknowledgment time, defaults to now.

        Returns:
            Alert: Updated alert with acknowledgment.
        """
        if self.acknowledged:
            return self

        return self.model_copy(
            update={
                "acknowledged": True,
                "acknowledged_by": acknowledged_by,
                "acknowledged_at": timestamp or datetime.now(timezone.utc),
            }
        )
