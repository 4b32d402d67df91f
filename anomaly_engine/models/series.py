"""
Time series data models.

Models:
    DataPoint: A single timestamped observation
    SeriesKey: Composite identifier of one time series
"""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field


class DataPoint(BaseModel):
    """
    A single timestamped observation of a metric.

    Immutable once appended to a series.

    Attributes:
        timestamp: When the value was observed.
        value: The observed numeric value.
        metadata: Open key-value map supplied by the producer.

    Example:
        >>> point = DataPoint(timestamp=datetime.now(timezone.utc), value=120.5)
    """

    model_config = {"frozen": True, "extra": "forbid"}

    timestamp: datetime = Field(
        ...,
        description="When the value was observed",
    )
    value: float = Field(
        ...,
        description="Observed numeric value",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Producer-supplied key-value metadata",
    )


class SeriesKey(BaseModel):
    """
    Identifies one time series: a metric of a resource within an organization.

    Attributes:
        organization_id: Owning organization.
        resource_id: Monitored resource (e.g. an RPC endpoint).
        metric_name: Metric name (e.g. "response_time").

    Example:
        >>> key = SeriesKey(
        ...     organization_id="org-1",
        ...     resource_id="rpc-eth-main",
        ...     metric_name="response_time",
        ... )
        >>> key.as_string()
        'org-1:rpc-eth-main:response_time'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    organization_id: str = Field(
        ...,
        description="Owning organization",
        min_length=1,
    )
    resource_id: str = Field(
        ...,
        description="Monitored resource",
        min_length=1,
    )
    metric_name: str = Field(
        ...,
        description="Metric name",
        min_length=1,
    )

    def as_string(self) -> str:
        """Render the key as ``organization:resource:metric``."""
        return f"{self.organization_id}:{self.resource_id}:{self.metric_name}"
