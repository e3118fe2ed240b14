"""Plain-English explanations of an analyzed incident."""

from collections import Counter
from typing import Optional, Sequence

from incident_teller.services.analysis.blast_radius import format_duration
from incident_teller.services.analysis.models import (
    Alert,
    RootCauseCandidate,
    TimelineEntry,
    TimelineEventType,
)


def explain_what_happened(ordered: Sequence[Alert], timeline: Sequence[TimelineEntry]) -> str:
    """Summarize the batch: how many events, over how long, which transitions."""
    if not ordered:
        return "No incident data available"

    duration = ordered[-1].occurred_at - ordered[0].occurred_at
    counts = Counter(entry.event_type for entry in timeline)

    summary = f"System experienced {len(ordered)} alert events over {format_duration(duration)}."
    if counts[TimelineEventType.TRIGGERED]:
        summary += f" {counts[TimelineEventType.TRIGGERED]} new alerts triggered."
    if counts[TimelineEventType.ESCALATED]:
        summary += f" {counts[TimelineEventType.ESCALATED]} alerts escalated to critical."
    if counts[TimelineEventType.RESOLVED]:
        summary += f" {counts[TimelineEventType.RESOLVED]} alerts resolved."

    resources = sorted({a.resource_type.value for a in ordered})
    if len(resources) > 1:
        summary += f" Multiple resources affected: {', '.join(resources)}."

    return summary


def explain_why_it_happened(root_cause: Optional[RootCauseCandidate]) -> str:
    if root_cause is None:
        return "Unable to determine root cause"

    alert = root_cause.alert
    explanation = (
        f"The incident was triggered by {alert.resource_type.value} exhaustion "
        f"on {alert.chart}."
    )
    if root_cause.reasoning:
        explanation += f" {root_cause.reasoning[0].upper()}{root_cause.reasoning[1:]}."
    if root_cause.has_cascade:
        explanation += " This caused a cascade effect, impacting other system resources."
    return explanation


def explain_what_broke_first(root_cause: Optional[RootCauseCandidate]) -> str:
    if root_cause is None:
        return "No failures detected"

    alert = root_cause.alert
    return (
        f"{alert.name} on {alert.chart}@{alert.host} "
        f"(value: {alert.value:.2f} at {alert.occurred_at.strftime('%H:%M:%S')})"
    )
