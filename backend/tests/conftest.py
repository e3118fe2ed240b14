"""Pytest configuration and fixtures."""
import pytest
from datetime import datetime, timedelta, timezone

from incident_teller.services.analysis.models import Alert, AlertStatus, ResourceType


BASE_TIME = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    """Fixed incident start time."""
    return BASE_TIME


@pytest.fixture
def make_alert(base_time):
    """
    Factory for alerts offset from the base time.

    Example:
        make_alert("a1", ResourceType.MEMORY, minutes=2, status=AlertStatus.CRITICAL)
    """
    def _make(
        alert_id,
        resource_type=ResourceType.CPU,
        minutes=0,
        seconds=0,
        status=AlertStatus.WARNING,
        previous_status=AlertStatus.CLEAR,
        host="web-01",
        chart=None,
        value=80.0,
        name=None,
        description="",
    ):
        return Alert(
            id=alert_id,
            host=host,
            chart=chart or f"system.{resource_type.value}",
            name=name or f"{resource_type.value}_usage",
            resource_type=resource_type,
            status=status,
            previous_status=previous_status,
            value=value,
            occurred_at=base_time + timedelta(minutes=minutes, seconds=seconds),
            description=description,
        )
    return _make


@pytest.fixture
def cascade_alerts(make_alert):
    """Memory exhaustion spreading to disk and then CPU on one host."""
    return [
        make_alert("mem-1", ResourceType.MEMORY, minutes=0,
                   status=AlertStatus.CRITICAL, value=96.0),
        make_alert("disk-1", ResourceType.DISK, minutes=1,
                   status=AlertStatus.WARNING, value=88.0),
        make_alert("cpu-1", ResourceType.CPU, minutes=3,
                   status=AlertStatus.WARNING, value=85.0),
    ]
