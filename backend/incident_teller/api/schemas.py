"""API request/response schemas."""
from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, Field

from incident_teller.services.analysis.models import Alert, AlertStatus, ResourceType
from incident_teller.services.ingestion.netdata import NetdataAlarmLog


# ============== Analysis Schemas ==============

class AlertIn(BaseModel):
    """An alert submitted for analysis."""
    id: str = Field(..., min_length=1)
    host: str = ""
    chart: str = ""
    name: str = ""
    family: str = ""
    resource_type: ResourceType = ResourceType.UNKNOWN
    status: AlertStatus = AlertStatus.UNDEFINED
    previous_status: AlertStatus = AlertStatus.UNDEFINED
    value: float = 0.0
    occurred_at: datetime
    description: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)

    def to_alert(self) -> Alert:
        """Convert to the analysis model. Naive timestamps are taken as UTC."""
        occurred_at = self.occurred_at
        if occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=timezone.utc)
        return Alert(
            id=self.id,
            host=self.host,
            chart=self.chart,
            name=self.name,
            family=self.family,
            resource_type=self.resource_type,
            status=self.status,
            previous_status=self.previous_status,
            value=self.value,
            occurred_at=occurred_at,
            description=self.description,
            labels=dict(self.labels),
        )


class AnalyzeRequest(BaseModel):
    """Request body for batch analysis."""
    alerts: List[AlertIn] = Field(default_factory=list)


class NetdataAnalyzeRequest(BaseModel):
    """Raw Netdata alarm-log entries to analyze."""
    alarms: List[NetdataAlarmLog] = Field(default_factory=list)
    hostname: str = ""


# ============== Health Schemas ==============

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    netdata_url: str
