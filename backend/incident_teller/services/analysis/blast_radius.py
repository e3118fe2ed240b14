"""
Blast-Radius Classifier.

Partitions the surface touched by an incident into three disjoint sets:

- Directly affected: problem alerts sharing the root cause's resource type,
  or any critical alert. Reported as host, resource-on-host and chart
  components.
- Indirectly affected: problem alerts of a different resource type that
  fired after the root cause, inside the cascade window. Reported as
  resource-on-host components. Components already directly affected are
  not repeated here.
- Unaffected: canonical resource types with no alert at all in the batch.

Components are de-duplicated by their composite key; the first occurrence
sets evidence and timestamp, later occurrences append metric values so the
peak can be reported.

Impact score (0-100):
    host band (1 host: 10, <=3 hosts: 20, more: 30)
    + 5 per distinct resource type      (these two terms capped at 55)
    + up to 25 scaled by critical / total alerts
    + 7 per cascade depth level
"""

from datetime import timedelta
from typing import Dict, List, Optional, Sequence

import structlog

from incident_teller.services.analysis.models import (
    Alert,
    AlertStatus,
    BlastRadiusResult,
    CANONICAL_RESOURCE_TYPES,
    Component,
    ComponentImpact,
    ComponentKind,
    RootCauseCandidate,
)

logger = structlog.get_logger()


KIND_ORDER = {ComponentKind.HOST: 0, ComponentKind.RESOURCE: 1, ComponentKind.CHART: 2}


class BlastRadiusClassifier:
    """Classifies affected and unaffected components for one incident."""

    def __init__(self, cascade_window: timedelta = timedelta(minutes=10)):
        """
        Initialize the classifier.

        Args:
            cascade_window: How long after the root cause a different
                resource type still counts as an indirect effect
        """
        self.cascade_window = cascade_window

    def classify(
        self,
        ordered: Sequence[Alert],
        root_cause: Optional[RootCauseCandidate],
    ) -> BlastRadiusResult:
        """
        Perform blast-radius analysis on a time-ordered batch.

        Args:
            ordered: Alert batch in time order
            root_cause: Top-ranked root cause, or None if there is none

        Returns:
            BlastRadiusResult with component sets, scores and estimates
        """
        if not ordered:
            return BlastRadiusResult(
                unaffected=self.identify_unaffected(ordered),
                impact_description="No alerts in batch",
                simple_summary="No impact detected",
                recovery_estimate="No recovery needed",
            )

        direct = self.identify_directly_affected(ordered, root_cause)
        direct_keys = {c.key for c in direct}
        indirect = self.identify_indirectly_affected(ordered, root_cause, direct_keys)
        unaffected = self.identify_unaffected(ordered)

        hosts = sorted({a.host for a in ordered})
        resources = sorted({a.resource_type for a in ordered}, key=lambda rt: rt.value)
        charts = sorted({a.chart for a in ordered})
        critical_count = sum(1 for a in ordered if a.status == AlertStatus.CRITICAL)

        depth = cascade_depth(len(resources))
        duration = ordered[-1].occurred_at - ordered[0].occurred_at

        impact_score = calculate_impact_score(
            host_count=len(hosts),
            resource_count=len(resources),
            critical_count=critical_count,
            total_count=len(ordered),
            depth=depth,
        )

        result = BlastRadiusResult(
            directly_affected=direct,
            indirectly_affected=indirect,
            unaffected=unaffected,
            affected_hosts=hosts,
            affected_resources=resources,
            affected_charts=charts,
            cascade_depth=depth,
            total_alerts=len(ordered),
            critical_alerts=critical_count,
            duration=duration,
            impact_score=impact_score,
            impact_description=describe_impact(len(hosts), len(resources)),
            simple_summary=summarize(direct, indirect, duration),
            recovery_estimate=estimate_recovery(impact_score, depth, duration),
        )

        logger.debug(
            "Blast radius classified",
            direct=len(direct),
            indirect=len(indirect),
            unaffected=len(unaffected),
            impact_score=impact_score,
            cascade_depth=depth,
        )
        return result

    def identify_directly_affected(
        self,
        ordered: Sequence[Alert],
        root_cause: Optional[RootCauseCandidate],
    ) -> List[Component]:
        """Components with primary failures."""
        components: Dict[str, Component] = {}
        root_type = root_cause.resource_type if root_cause else None

        for alert in ordered:
            if alert.status == AlertStatus.CLEAR:
                continue

            evidence = []
            if root_type is not None and alert.resource_type == root_type:
                evidence.append("Same resource type as root cause")
            if alert.status == AlertStatus.CRITICAL:
                evidence.append("Critical severity alert")
            if not evidence:
                continue

            for component in (
                Component(name=alert.host, kind=ComponentKind.HOST,
                          impact=ComponentImpact.DIRECT, host=alert.host),
                Component(name=f"{alert.resource_type.value} on {alert.host}",
                          kind=ComponentKind.RESOURCE, impact=ComponentImpact.DIRECT,
                          host=alert.host, resource_type=alert.resource_type),
                Component(name=alert.chart, kind=ComponentKind.CHART,
                          impact=ComponentImpact.DIRECT, host=alert.host,
                          resource_type=alert.resource_type),
            ):
                _record(components, component, alert, evidence)

        return _flatten(components)

    def identify_indirectly_affected(
        self,
        ordered: Sequence[Alert],
        root_cause: Optional[RootCauseCandidate],
        direct_keys: Optional[set] = None,
    ) -> List[Component]:
        """Resources that degraded after the root cause (cascade effects)."""
        if root_cause is None:
            return []

        direct_keys = direct_keys or set()
        components: Dict[str, Component] = {}
        root_alert = root_cause.alert

        for alert in ordered:
            if alert.status == AlertStatus.CLEAR:
                continue
            if alert.resource_type == root_alert.resource_type:
                continue

            delay = alert.occurred_at - root_alert.occurred_at
            if not timedelta(0) < delay <= self.cascade_window:
                continue

            component = Component(
                name=f"{alert.resource_type.value} on {alert.host}",
                kind=ComponentKind.RESOURCE,
                impact=ComponentImpact.INDIRECT,
                host=alert.host,
                resource_type=alert.resource_type,
            )
            if component.key in direct_keys:
                continue

            evidence = [
                f"Occurred {delay.total_seconds():.0f}s after root cause",
                "Different resource type - likely cascade effect",
            ]
            _record(components, component, alert, evidence)

        return _flatten(components)

    @staticmethod
    def identify_unaffected(ordered: Sequence[Alert]) -> List[Component]:
        """Canonical resource types with no alerts in the batch."""
        seen = {a.resource_type for a in ordered}
        return [
            Component(
                name=rt.value,
                kind=ComponentKind.RESOURCE,
                impact=ComponentImpact.NONE,
                evidence=["No alerts detected for this resource"],
                resource_type=rt,
            )
            for rt in CANONICAL_RESOURCE_TYPES
            if rt not in seen
        ]


def _record(
    components: Dict[str, Component],
    component: Component,
    alert: Alert,
    evidence: List[str],
) -> None:
    existing = components.get(component.key)
    if existing is not None:
        existing.metric_values.append(alert.value)
        return
    component.evidence = list(evidence)
    component.affected_at = alert.occurred_at
    component.metric_values = [alert.value]
    components[component.key] = component


def _flatten(components: Dict[str, Component]) -> List[Component]:
    """Components ordered by first-affected time, then kind and name."""
    return sorted(
        components.values(),
        key=lambda c: (c.affected_at, KIND_ORDER[c.kind], c.name),
    )


def cascade_depth(resource_count: int) -> int:
    return max(0, resource_count - 1)


def calculate_impact_score(
    host_count: int,
    resource_count: int,
    critical_count: int,
    total_count: int,
    depth: int,
) -> int:
    """Compute overall incident severity (0-100)."""
    if total_count == 0:
        return 0

    if host_count <= 1:
        score = 10
    elif host_count <= 3:
        score = 20
    else:
        score = 30

    score += resource_count * 5
    score = min(score, 55)

    score += int(critical_count / total_count * 25)
    score += depth * 7

    return max(0, min(100, score))


def estimate_recovery(impact_score: int, depth: int, duration: timedelta) -> str:
    """Banded recovery estimate from impact, cascade depth and elapsed time."""
    minutes = 15
    minutes += (impact_score // 10) * 5
    minutes += depth * 10

    if duration > timedelta(minutes=30):
        minutes += 30
    elif duration > timedelta(minutes=15):
        minutes += 15

    if minutes <= 30:
        return "15-30 minutes (if addressed immediately)"
    if minutes <= 60:
        return "30-60 minutes (requires investigation)"
    if minutes <= 120:
        return "1-2 hours (complex cascading failure)"
    return "2+ hours (major incident with extensive impact)"


def describe_impact(host_count: int, resource_count: int) -> str:
    if host_count == 1 and resource_count == 1:
        return "Localized to single host and resource"
    if host_count == 1:
        return f"Single host affected, cascaded across {resource_count} resource types"
    if resource_count == 1:
        return f"Widespread: {host_count} hosts affected, same resource type"
    return f"Widespread: {host_count} hosts, {resource_count} resource types affected"


def summarize(
    direct: Sequence[Component],
    indirect: Sequence[Component],
    duration: timedelta,
) -> str:
    """Plain-English blast radius summary."""
    parts = []

    direct_hosts = {c.name for c in direct if c.kind == ComponentKind.HOST}
    direct_resources = {c.name for c in direct if c.kind == ComponentKind.RESOURCE}
    indirect_resources = {c.name for c in indirect if c.kind == ComponentKind.RESOURCE}

    if len(direct_hosts) == 1:
        parts.append("one server was directly hit")
    elif direct_hosts:
        parts.append(f"{len(direct_hosts)} servers were directly hit")

    if direct_resources:
        parts.append(f"{len(direct_resources)} critical resources failed")

    if indirect_resources:
        parts.append(f"which caused {len(indirect_resources)} more resources to degrade")

    if duration > timedelta(0):
        parts.append(f"the incident lasted {format_duration(duration)}")

    if not parts:
        return "No significant impact detected"

    summary = ", ".join(parts) + "."
    return summary[0].upper() + summary[1:]


def format_duration(duration: timedelta) -> str:
    seconds = int(duration.total_seconds())
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        return f"{seconds // 60} minutes"
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if minutes == 0:
        return f"{hours} hours"
    return f"{hours} hours {minutes} minutes"
