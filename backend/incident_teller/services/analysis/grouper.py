"""
Cascade Grouper.

Clusters an alert batch into groups of related alerts. Each group is
seeded by the earliest alert not yet assigned to a group and absorbs later
alerts inside the correlation window that relate to the seed by:

- the same host,
- a cascade relationship (same host, short delay, and either a
  warning -> critical escalation or a known resource pair), or
- a cross-resource dependency (CPU/memory pressure preceding
  network/disk symptoms).

Every alert ends up in exactly one group.
"""

from datetime import timedelta
from typing import Dict, FrozenSet, List, Optional, Sequence

import structlog

from incident_teller.services.analysis.models import (
    Alert,
    AlertCascade,
    AlertGroup,
    AlertStatus,
    CascadeType,
    GroupType,
    ResourceType,
)
from incident_teller.services.analysis.timeline import order_alerts

logger = structlog.get_logger()


# Source resource -> resources it is known to bring down on the same host
KNOWN_CASCADE_PAIRS: Dict[ResourceType, FrozenSet[ResourceType]] = {
    ResourceType.CPU: frozenset({ResourceType.PROCESS}),
    ResourceType.MEMORY: frozenset({ResourceType.PROCESS}),
    ResourceType.DISK: frozenset({ResourceType.PROCESS}),
}

PRESSURE_SOURCES = frozenset({ResourceType.CPU, ResourceType.MEMORY})
PRESSURE_SYMPTOMS = frozenset({ResourceType.NETWORK, ResourceType.DISK})

KNOWN_PAIR_CONFIDENCE = 0.9
PROPAGATION_CONFIDENCE = 0.7


class CascadeGrouper:
    """Groups related alerts by host, time window and cascade relationships."""

    def __init__(
        self,
        correlation_window: timedelta = timedelta(minutes=15),
        cascade_max_delay: timedelta = timedelta(seconds=30),
    ):
        """
        Initialize the grouper.

        Args:
            correlation_window: Maximum distance from the seed for group members
            cascade_max_delay: Maximum delay for a same-host cascade edge
        """
        self.correlation_window = correlation_window
        self.cascade_max_delay = cascade_max_delay

    def group(self, alerts: Sequence[Alert]) -> List[AlertGroup]:
        """Group a batch in any order. Indices refer to `order_alerts(alerts)`."""
        return self.group_ordered(order_alerts(alerts))

    def group_ordered(self, ordered: Sequence[Alert]) -> List[AlertGroup]:
        """Group a batch that is already in time order."""
        groups: List[AlertGroup] = []
        processed = [False] * len(ordered)

        for i, seed in enumerate(ordered):
            if processed[i]:
                continue
            processed[i] = True

            group = AlertGroup(
                id=seed.id,
                seed_index=i,
                start_time=seed.occurred_at,
                end_time=seed.occurred_at,
                member_indices=[i],
                affected_hosts=[seed.host],
                resource_types=[seed.resource_type],
            )

            for j in range(i + 1, len(ordered)):
                if processed[j]:
                    continue

                candidate = ordered[j]
                # Sorted by time, nothing later can fall inside the window
                if candidate.occurred_at - seed.occurred_at > self.correlation_window:
                    break

                if not self.is_related(seed, candidate):
                    continue

                processed[j] = True
                self._absorb(group, j, candidate)

                cascade = self.detect_cascade(i, j, seed, candidate)
                if cascade is not None:
                    group.cascade_chain.append(cascade)

            group.group_type = self.determine_group_type(group)
            groups.append(group)

        logger.debug(
            "Alerts grouped",
            alert_count=len(ordered),
            group_count=len(groups),
            cascading_groups=sum(1 for g in groups if g.is_cascading),
        )
        return groups

    @staticmethod
    def _absorb(group: AlertGroup, index: int, alert: Alert) -> None:
        group.member_indices.append(index)
        group.end_time = alert.occurred_at
        if alert.host not in group.affected_hosts:
            group.affected_hosts.append(alert.host)
        if alert.resource_type not in group.resource_types:
            group.resource_types.append(alert.resource_type)

    def is_related(self, seed: Alert, candidate: Alert) -> bool:
        """Check whether a later alert belongs with the seed."""
        if seed.host == candidate.host:
            return True
        if self.is_cascading(seed, candidate):
            return True
        return self.has_resource_dependency(seed, candidate)

    def is_cascading(self, source: Alert, target: Alert) -> bool:
        """Check whether `target` is likely a same-host cascade of `source`."""
        if source.host != target.host:
            return False

        delay = target.occurred_at - source.occurred_at
        if delay < timedelta(0) or delay > self.cascade_max_delay:
            return False

        if source.status == AlertStatus.WARNING and target.status == AlertStatus.CRITICAL:
            return True

        return is_known_pair(source.resource_type, target.resource_type)

    @staticmethod
    def has_resource_dependency(source: Alert, target: Alert) -> bool:
        """CPU/memory pressure preceding network/disk symptoms."""
        return (
            source.resource_type in PRESSURE_SOURCES
            and target.resource_type in PRESSURE_SYMPTOMS
        )

    def detect_cascade(
        self,
        source_index: int,
        target_index: int,
        source: Alert,
        target: Alert,
    ) -> Optional[AlertCascade]:
        """Build a cascade edge if the two alerts form a cascade."""
        if not self.is_cascading(source, target):
            return None

        if is_known_pair(source.resource_type, target.resource_type):
            cascade_type, confidence = CascadeType.DEPENDENCY, KNOWN_PAIR_CONFIDENCE
        else:
            cascade_type, confidence = CascadeType.PROPAGATION, PROPAGATION_CONFIDENCE

        return AlertCascade(
            source_index=source_index,
            target_index=target_index,
            source_id=source.id,
            target_id=target.id,
            delay_seconds=(target.occurred_at - source.occurred_at).total_seconds(),
            confidence=confidence,
            cascade_type=cascade_type,
        )

    @staticmethod
    def determine_group_type(group: AlertGroup) -> GroupType:
        if group.is_cascading:
            return GroupType.CASCADING
        if len(group.affected_hosts) > 1:
            return GroupType.MULTI_HOST
        return GroupType.SINGLE_HOST


def is_known_pair(source: ResourceType, target: ResourceType) -> bool:
    return target in KNOWN_CASCADE_PAIRS.get(source, frozenset())


def group_membership(groups: Sequence[AlertGroup]) -> Dict[int, AlertGroup]:
    """Map every alert index to the group that holds it."""
    membership: Dict[int, AlertGroup] = {}
    for group in groups:
        for index in group.member_indices:
            membership[index] = group
    return membership
