"""
Data models for incident analysis.

Defines alerts (the read-only input), propagation rules, and every
structure derived from one analysis run: timeline entries, alert groups,
root cause candidates, blast-radius components and the aggregate
IncidentIntelligence value.

Derived structures reference alerts by their index in the run's
time-ordered batch, never by object identity.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Any, Tuple


class AlertStatus(str, Enum):
    """State of an alert after a transition."""
    UNDEFINED = "undefined"
    CLEAR = "clear"
    WARNING = "warning"
    CRITICAL = "critical"
    REMOVED = "removed"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNDEFINED


class ResourceType(str, Enum):
    """Category of the monitored resource."""
    UNKNOWN = "unknown"
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"
    PROCESS = "process"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


# Resource types every host is expected to expose
CANONICAL_RESOURCE_TYPES: Tuple[ResourceType, ...] = (
    ResourceType.CPU,
    ResourceType.MEMORY,
    ResourceType.DISK,
    ResourceType.NETWORK,
    ResourceType.PROCESS,
)


class TimelineEventType(str, Enum):
    """Classification of a status transition on the timeline."""
    TRIGGERED = "TRIGGERED"
    ESCALATED = "ESCALATED"
    RESOLVED = "RESOLVED"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"
    UPDATE = "UPDATE"


class ComponentKind(str, Enum):
    """Kinds of blast-radius components."""
    HOST = "host"
    RESOURCE = "resource"
    CHART = "chart"


class ComponentImpact(str, Enum):
    """How a component was affected by the incident."""
    DIRECT = "direct"
    INDIRECT = "indirect"
    NONE = "none"


class GroupType(str, Enum):
    """Shape of an alert group."""
    SINGLE_HOST = "single_host"
    MULTI_HOST = "multi_host"
    CASCADING = "cascading"


class CascadeType(str, Enum):
    """Types of cascade edges between grouped alerts."""
    DEPENDENCY = "dependency"      # Known resource pair (e.g. memory -> process)
    PROPAGATION = "propagation"    # Generic escalation on the same host


@dataclass(frozen=True)
class Alert:
    """
    One reported state transition for a monitored resource on a host.

    Alerts are produced by ingestion adapters and are never mutated
    by the analysis pipeline.
    """
    id: str
    host: str
    chart: str
    name: str
    resource_type: ResourceType
    status: AlertStatus
    previous_status: AlertStatus
    value: float
    occurred_at: datetime
    description: str = ""
    family: str = ""
    labels: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def is_problem(self) -> bool:
        """True for any status other than clear."""
        return self.status != AlertStatus.CLEAR

    @property
    def is_critical(self) -> bool:
        return self.status == AlertStatus.CRITICAL

    def sort_key(self) -> Tuple[Any, ...]:
        """Content-based ordering key used to canonicalize a batch."""
        return (
            self.occurred_at,
            self.id,
            self.host,
            self.chart,
            self.name,
            self.resource_type.value,
            self.status.value,
            self.previous_status.value,
            self.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert alert to dictionary for serialization."""
        return {
            "id": self.id,
            "host": self.host,
            "chart": self.chart,
            "name": self.name,
            "family": self.family,
            "resource_type": self.resource_type.value,
            "status": self.status.value,
            "previous_status": self.previous_status.value,
            "value": self.value,
            "occurred_at": self.occurred_at.isoformat(),
            "description": self.description,
            "labels": dict(self.labels),
        }


@dataclass(frozen=True)
class PropagationRule:
    """A known failure-propagation pattern between two resource types."""
    from_type: ResourceType
    to_type: ResourceType
    max_time_window: timedelta
    description: str

    def allows(self, delay: timedelta) -> bool:
        """Check whether an observed delay falls inside the rule's window."""
        return timedelta(0) <= delay <= self.max_time_window

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_type.value,
            "to": self.to_type.value,
            "max_time_window_seconds": self.max_time_window.total_seconds(),
            "description": self.description,
        }


@dataclass
class TimelineEntry:
    """One entry per input alert on the causal timeline."""
    alert_index: int
    alert_id: str
    timestamp: datetime
    event_type: TimelineEventType
    severity: str
    resource_type: ResourceType
    duration_since_start: timedelta
    caused_by: Tuple[str, ...] = ()
    caused_by_indices: Tuple[int, ...] = ()
    message: str = ""

    @property
    def has_causes(self) -> bool:
        return bool(self.caused_by_indices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_index": self.alert_index,
            "alert_id": self.alert_id,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity,
            "resource_type": self.resource_type.value,
            "duration_since_start_seconds": self.duration_since_start.total_seconds(),
            "caused_by": list(self.caused_by),
            "message": self.message,
        }


@dataclass
class AlertCascade:
    """A detected cascade relationship between two alerts of a group."""
    source_index: int
    target_index: int
    source_id: str
    target_id: str
    delay_seconds: float
    confidence: float
    cascade_type: CascadeType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "delay_seconds": self.delay_seconds,
            "confidence": self.confidence,
            "type": self.cascade_type.value,
        }


@dataclass
class AlertGroup:
    """
    A cluster of related alerts seeded by its earliest member.

    Every alert of a grouping run belongs to exactly one group.
    """
    id: str
    seed_index: int
    start_time: datetime
    end_time: datetime
    member_indices: List[int] = field(default_factory=list)
    affected_hosts: List[str] = field(default_factory=list)
    resource_types: List[ResourceType] = field(default_factory=list)
    cascade_chain: List[AlertCascade] = field(default_factory=list)
    group_type: GroupType = GroupType.SINGLE_HOST

    @property
    def is_cascading(self) -> bool:
        return bool(self.cascade_chain)

    @property
    def primary_host(self) -> str:
        return self.affected_hosts[0] if self.affected_hosts else ""

    def __len__(self) -> int:
        return len(self.member_indices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "seed_index": self.seed_index,
            "member_indices": list(self.member_indices),
            "primary_host": self.primary_host,
            "affected_hosts": list(self.affected_hosts),
            "resource_types": [rt.value for rt in self.resource_types],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "is_cascading": self.is_cascading,
            "cascade_chain": [c.to_dict() for c in self.cascade_chain],
            "group_type": self.group_type.value,
        }


@dataclass
class RootCauseCandidate:
    """A potential root cause with its confidence score (0-100)."""
    alert_index: int
    alert: Alert
    timeline_position: int
    is_earliest: bool = False
    has_cascade: bool = False
    has_log_errors: bool = False
    confidence_score: int = 0
    evidence: List[str] = field(default_factory=list)
    reasoning: str = ""

    @property
    def resource_type(self) -> ResourceType:
        return self.alert.resource_type

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert": self.alert.to_dict(),
            "alert_index": self.alert_index,
            "confidence_score": self.confidence_score,
            "evidence": list(self.evidence),
            "reasoning": self.reasoning,
            "timeline_position": self.timeline_position,
            "is_earliest": self.is_earliest,
            "has_cascade": self.has_cascade,
            "has_log_errors": self.has_log_errors,
        }


@dataclass
class Component:
    """A unit of blast-radius accounting: a host, a resource on a host, or a chart."""
    name: str
    kind: ComponentKind
    impact: ComponentImpact
    evidence: List[str] = field(default_factory=list)
    affected_at: Optional[datetime] = None
    metric_values: List[float] = field(default_factory=list)
    host: Optional[str] = None
    resource_type: Optional[ResourceType] = None

    @property
    def key(self) -> str:
        """Composite identity used for de-duplication within one run."""
        if self.kind == ComponentKind.HOST:
            return f"host:{self.name}"
        if self.kind == ComponentKind.CHART:
            return f"chart:{self.name}"
        scope = self.host if self.host is not None else "*"
        rt = self.resource_type.value if self.resource_type else self.name
        return f"resource:{scope}:{rt}"

    @property
    def peak_value(self) -> Optional[float]:
        return max(self.metric_values) if self.metric_values else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "impact": self.impact.value,
            "evidence": list(self.evidence),
            "affected_at": self.affected_at.isoformat() if self.affected_at else None,
            "metric_values": list(self.metric_values),
            "peak_value": self.peak_value,
            "host": self.host,
            "resource_type": self.resource_type.value if self.resource_type else None,
        }


@dataclass
class BlastRadiusResult:
    """Impact scope of an incident."""
    directly_affected: List[Component] = field(default_factory=list)
    indirectly_affected: List[Component] = field(default_factory=list)
    unaffected: List[Component] = field(default_factory=list)

    affected_hosts: List[str] = field(default_factory=list)
    affected_resources: List[ResourceType] = field(default_factory=list)
    affected_charts: List[str] = field(default_factory=list)
    cascade_depth: int = 0
    total_alerts: int = 0
    critical_alerts: int = 0
    duration: timedelta = timedelta(0)

    impact_score: int = 0
    impact_description: str = ""
    simple_summary: str = ""
    recovery_estimate: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directly_affected": [c.to_dict() for c in self.directly_affected],
            "indirectly_affected": [c.to_dict() for c in self.indirectly_affected],
            "unaffected": [c.to_dict() for c in self.unaffected],
            "affected_hosts": list(self.affected_hosts),
            "affected_resources": [rt.value for rt in self.affected_resources],
            "affected_charts": list(self.affected_charts),
            "cascade_depth": self.cascade_depth,
            "total_alerts": self.total_alerts,
            "critical_alerts": self.critical_alerts,
            "duration_seconds": self.duration.total_seconds(),
            "impact_score": self.impact_score,
            "impact_description": self.impact_description,
            "simple_summary": self.simple_summary,
            "recovery_estimate": self.recovery_estimate,
        }


@dataclass
class RemediationPlan:
    """Three-tier remediation guidance for the root cause."""
    immediate: List[str] = field(default_factory=list)
    short_term: List[str] = field(default_factory=list)
    long_term: List[str] = field(default_factory=list)
    root_cause_type: Optional[ResourceType] = None
    complexity: str = ""
    estimated_time_to_resolve: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "immediate": list(self.immediate),
            "short_term": list(self.short_term),
            "long_term": list(self.long_term),
            "root_cause_type": self.root_cause_type.value if self.root_cause_type else None,
            "complexity": self.complexity,
            "estimated_time_to_resolve": self.estimated_time_to_resolve,
        }


@dataclass
class IncidentIntelligence:
    """The complete analysis package for one alert batch."""
    root_cause: Optional[RootCauseCandidate]
    alternative_causes: List[RootCauseCandidate]
    confidence_level: str
    timeline: List[TimelineEntry]
    groups: List[AlertGroup]
    blast_radius: BlastRadiusResult
    remediation: RemediationPlan

    what_happened: str = ""
    why_it_happened: str = ""
    what_broke_first: str = ""

    total_alerts: int = 0
    incident_duration: timedelta = timedelta(0)
    analyzed_at: Optional[datetime] = None

    @property
    def has_incident(self) -> bool:
        return self.root_cause is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the full analysis to a JSON-friendly dictionary."""
        return {
            "root_cause": self.root_cause.to_dict() if self.root_cause else None,
            "alternative_causes": [c.to_dict() for c in self.alternative_causes],
            "confidence_level": self.confidence_level,
            "timeline": [e.to_dict() for e in self.timeline],
            "groups": [g.to_dict() for g in self.groups],
            "blast_radius": self.blast_radius.to_dict(),
            "remediation": self.remediation.to_dict(),
            "what_happened": self.what_happened,
            "why_it_happened": self.why_it_happened,
            "what_broke_first": self.what_broke_first,
            "total_alerts": self.total_alerts,
            "incident_duration_seconds": self.incident_duration.total_seconds(),
            "analyzed_at": self.analyzed_at.isoformat() if self.analyzed_at else None,
        }
