"""
Causality Timeline Builder.

Orders an alert batch by time and attributes later alerts to earlier ones
using the time-bounded propagation rules.

Algorithm:
- Track the most recent non-clear alert per resource type ("active issues").
- For each alert, in time order, check every rule whose target is the alert's
  resource type. If an active issue of the rule's source type exists, is not
  clear, and precedes the alert by no more than the rule's window, it is
  recorded as a cause.
- Then update the active issues: a clear alert removes its resource type,
  any other status makes the alert the active issue for its type.

Causes always point from an earlier alert to a later one, so the resulting
causal relation is a DAG. An alert may have zero, one or several causes.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from incident_teller.services.analysis.models import (
    Alert,
    AlertStatus,
    PropagationRule,
    ResourceType,
    TimelineEntry,
    TimelineEventType,
)
from incident_teller.services.analysis.rules import freeze_rules, rules_targeting

logger = structlog.get_logger()


def order_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    """Sort alerts by occurrence time. Ties keep their input order."""
    return sorted(alerts, key=lambda a: a.occurred_at)


def classify_event(alert: Alert) -> TimelineEventType:
    """Categorize the status transition an alert represents."""
    if alert.previous_status == AlertStatus.CLEAR and alert.status != AlertStatus.CLEAR:
        return TimelineEventType.TRIGGERED
    if alert.previous_status == AlertStatus.WARNING and alert.status == AlertStatus.CRITICAL:
        return TimelineEventType.ESCALATED
    if alert.status == AlertStatus.CLEAR:
        return TimelineEventType.RESOLVED
    if alert.status == AlertStatus.WARNING:
        return TimelineEventType.WARNING
    if alert.status == AlertStatus.CRITICAL:
        return TimelineEventType.CRITICAL
    return TimelineEventType.UPDATE


def map_severity(status: AlertStatus) -> str:
    """Convert an alert status to a display severity."""
    if status == AlertStatus.CRITICAL:
        return "critical"
    if status == AlertStatus.WARNING:
        return "warning"
    if status == AlertStatus.CLEAR:
        return "success"
    return "info"


class CausalityTimelineBuilder:
    """
    Builds an ordered causal timeline from an alert batch.

    The builder holds only the immutable rule table, so a single instance
    can be shared across concurrent analysis runs.
    """

    def __init__(self, rules: Optional[Iterable[PropagationRule]] = None):
        """
        Initialize the builder.

        Args:
            rules: Propagation rule table (defaults to the built-in rules)
        """
        self.rules: Tuple[PropagationRule, ...] = freeze_rules(rules)

    def build(self, alerts: Sequence[Alert]) -> List[TimelineEntry]:
        """
        Build the timeline for a batch in any order.

        Returns one entry per input alert, ordered by timestamp. Entry
        `alert_index` values refer to positions in `order_alerts(alerts)`.
        """
        ordered = order_alerts(alerts)
        return self.build_ordered(ordered)

    def build_ordered(self, ordered: Sequence[Alert]) -> List[TimelineEntry]:
        """Build the timeline for a batch that is already in time order."""
        if not ordered:
            return []

        incident_start = ordered[0].occurred_at
        active_issues: Dict[ResourceType, int] = {}
        timeline: List[TimelineEntry] = []

        for index, alert in enumerate(ordered):
            cause_indices = self._detect_causes(index, ordered, active_issues)
            timeline.append(
                self._create_entry(index, ordered, incident_start, cause_indices)
            )
            self._update_active_issues(active_issues, index, alert)

        logger.debug(
            "Timeline built",
            entries=len(timeline),
            causal_links=sum(len(e.caused_by_indices) for e in timeline),
        )
        return timeline

    def _detect_causes(
        self,
        index: int,
        ordered: Sequence[Alert],
        active_issues: Dict[ResourceType, int],
    ) -> List[int]:
        """Find earlier alerts that likely caused the alert at `index`."""
        alert = ordered[index]
        causes: List[int] = []

        for rule in rules_targeting(self.rules, alert.resource_type):
            source_index = active_issues.get(rule.from_type)
            if source_index is None:
                continue

            source = ordered[source_index]
            if source.status == AlertStatus.CLEAR:
                continue

            if rule.allows(alert.occurred_at - source.occurred_at):
                if source_index not in causes:
                    causes.append(source_index)

        return causes

    @staticmethod
    def _update_active_issues(
        active_issues: Dict[ResourceType, int],
        index: int,
        alert: Alert,
    ) -> None:
        if alert.status == AlertStatus.CLEAR:
            active_issues.pop(alert.resource_type, None)
        else:
            active_issues[alert.resource_type] = index

    def _create_entry(
        self,
        index: int,
        ordered: Sequence[Alert],
        incident_start: datetime,
        cause_indices: List[int],
    ) -> TimelineEntry:
        alert = ordered[index]
        causes = [ordered[i] for i in cause_indices]
        return TimelineEntry(
            alert_index=index,
            alert_id=alert.id,
            timestamp=alert.occurred_at,
            event_type=classify_event(alert),
            severity=map_severity(alert.status),
            resource_type=alert.resource_type,
            duration_since_start=alert.occurred_at - incident_start,
            caused_by=tuple(c.id for c in causes),
            caused_by_indices=tuple(cause_indices),
            message=format_message(alert, causes),
        )


def format_message(alert: Alert, causes: Sequence[Alert]) -> str:
    """Human-readable description of an alert with its causal context."""
    scope = alert.resource_type.value.upper()
    if alert.host:
        scope = f"{scope}@{alert.host}"
    message = f"[{scope}] {alert.name} on {alert.chart} (value: {alert.value:.2f})"

    if causes:
        described = ", ".join(
            f"{cause.resource_type.value.upper()} issue "
            f"({(alert.occurred_at - cause.occurred_at).total_seconds():.1f}s earlier)"
            for cause in causes
        )
        message += f"\n  -> Likely caused by: {described}"

    if alert.description:
        message += f"\n  Info: {alert.description}"

    return message
