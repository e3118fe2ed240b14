"""Alert ingestion adapters."""

from incident_teller.services.ingestion.base import AlertSource, AlertSourceError
from incident_teller.services.ingestion.netdata import (
    NetdataAlarmLog,
    NetdataAlarmLogResponse,
    NetdataAlertSource,
    classify_resource_type,
    map_status,
    normalize_alarm,
    parse_alarm_log,
)

__all__ = [
    "AlertSource",
    "AlertSourceError",
    "NetdataAlarmLog",
    "NetdataAlarmLogResponse",
    "NetdataAlertSource",
    "classify_resource_type",
    "map_status",
    "normalize_alarm",
    "parse_alarm_log",
]
