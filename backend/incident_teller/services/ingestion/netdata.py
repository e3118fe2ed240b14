"""Netdata alarm-log client and normalizer."""
import structlog
import httpx
from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from incident_teller.services.analysis.models import Alert, AlertStatus, ResourceType
from incident_teller.services.ingestion.base import AlertSource, AlertSourceError

logger = structlog.get_logger()


# ============== Raw payload ==============

class NetdataAlarmLog(BaseModel):
    """One entry of the Netdata `/api/v1/alarm_log` response."""
    unique_id: int = 0
    alarm_id: int = 0
    event_id: int = 0
    when: int = 0
    name: str = ""
    chart: str = ""
    family: str = ""
    status: str = "UNDEFINED"
    old_status: str = "UNDEFINED"
    value: Optional[float] = None
    old_value: Optional[float] = None
    updated: bool = False
    exec: str = ""
    recipient: str = ""
    source: str = ""
    units: str = ""
    info: str = ""
    value_string: str = ""
    hostname: str = ""


class NetdataAlarmLogResponse(BaseModel):
    """Wrapped alarm-log response format."""
    alarms: List[NetdataAlarmLog] = Field(default_factory=list)
    latest_alarm_log_unique_id: int = 0


# The endpoint returns either a bare list or the wrapped object
AlarmLogPayload = Union[List[NetdataAlarmLog], NetdataAlarmLogResponse]
_payload_adapter = TypeAdapter(AlarmLogPayload)


# ============== Normalization ==============

FAMILY_RESOURCE_TYPES = {
    "cpu": ResourceType.CPU,
    "cpufreq": ResourceType.CPU,
    "mem": ResourceType.MEMORY,
    "ram": ResourceType.MEMORY,
    "swap": ResourceType.MEMORY,
    "disk": ResourceType.DISK,
    "disk_space": ResourceType.DISK,
    "disk_ops": ResourceType.DISK,
    "disk_util": ResourceType.DISK,
    "disk_iotime": ResourceType.DISK,
    "net": ResourceType.NETWORK,
    "network": ResourceType.NETWORK,
    "ipv4": ResourceType.NETWORK,
    "ipv6": ResourceType.NETWORK,
    "apps": ResourceType.PROCESS,
    "processes": ResourceType.PROCESS,
}

# Checked in order against the chart id when the family is not recognized
CHART_HINTS = (
    (("cpu",), ResourceType.CPU),
    (("mem", "ram", "swap"), ResourceType.MEMORY),
    (("disk",), ResourceType.DISK),
    (("net", "network"), ResourceType.NETWORK),
)


def classify_resource_type(chart: str, family: str) -> ResourceType:
    """Classify an alarm by its family, falling back to chart substrings."""
    resource_type = FAMILY_RESOURCE_TYPES.get(family.lower())
    if resource_type is not None:
        return resource_type

    chart = chart.lower()
    for hints, resource_type in CHART_HINTS:
        if any(hint in chart for hint in hints):
            return resource_type
    return ResourceType.UNKNOWN


def map_status(status: str) -> AlertStatus:
    """Map a Netdata status name (e.g. "CRITICAL") to AlertStatus."""
    return AlertStatus(status or AlertStatus.UNDEFINED.value)


def normalize_alarm(log: NetdataAlarmLog, default_hostname: str) -> Alert:
    """Convert a Netdata alarm-log entry into an Alert."""
    hostname = log.hostname or default_hostname
    return Alert(
        id=f"{hostname}-{log.unique_id}",
        host=hostname,
        chart=log.chart,
        name=log.name,
        family=log.family,
        resource_type=classify_resource_type(log.chart, log.family),
        status=map_status(log.status),
        previous_status=map_status(log.old_status),
        value=log.value if log.value is not None else 0.0,
        occurred_at=datetime.fromtimestamp(log.when, tz=timezone.utc),
        description=log.info,
        labels={
            "source": log.source,
            "units": log.units,
            "exec": log.exec,
            "recipient": log.recipient,
            "alarm_id": str(log.alarm_id),
            "event_id": str(log.event_id),
        },
    )


def parse_alarm_log(payload) -> List[NetdataAlarmLog]:
    """
    Validate a decoded alarm-log payload in either supported format.

    Raises:
        ValidationError: If the payload matches neither format
    """
    parsed = _payload_adapter.validate_python(payload)
    if isinstance(parsed, NetdataAlarmLogResponse):
        return parsed.alarms
    return parsed


# ============== Client ==============

class NetdataAlertSource(AlertSource):
    """Alert source backed by the Netdata REST API."""

    def __init__(
        self,
        base_url: str,
        hostname: str,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_wait=None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the Netdata source.

        Args:
            base_url: Netdata agent URL, e.g. http://localhost:19999
            hostname: Host name used for alarms that do not carry one
            timeout: Request timeout in seconds
            retry_attempts: Attempts per fetch before giving up
            retry_wait: tenacity wait strategy between attempts
            transport: Optional httpx transport (used for testing)
        """
        self.base_url = base_url.rstrip("/")
        self.hostname = hostname
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)
        self.transport = transport

    def fetch_latest(self, last_id: int = 0) -> List[Alert]:
        """Fetch alarm-log entries after `last_id` and normalize them."""
        params = {"after": last_id} if last_id > 0 else {}

        try:
            payload = self._get_with_retry("/api/v1/alarm_log", params)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error("Netdata alarm log fetch failed", url=self.base_url, error=str(cause))
            raise AlertSourceError(f"failed to fetch alarm log: {cause}") from cause

        try:
            logs = parse_alarm_log(payload)
        except ValidationError as e:
            logger.error("Netdata alarm log parse failed", url=self.base_url, error=str(e))
            raise AlertSourceError(f"failed to parse alarm log: {e}") from e

        alerts = [normalize_alarm(log, self.hostname) for log in logs]
        logger.info("Fetched Netdata alarms", count=len(alerts), after=last_id)
        return alerts

    def _get_with_retry(self, path: str, params: dict):
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type((httpx.HTTPError, ValueError)),
        )
        for attempt in retrying:
            with attempt:
                return self._get(path, params)

    def _get(self, path: str, params: dict):
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
