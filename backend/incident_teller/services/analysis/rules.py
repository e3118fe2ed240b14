"""
Default failure-propagation rules.

Each rule asserts that a problem in one resource type can cause a problem
in another within a maximum delay. The table is an immutable tuple that is
handed to the analyzers at construction time and shared across runs.
"""

from datetime import timedelta
from typing import Iterable, Optional, Tuple

from incident_teller.services.analysis.models import PropagationRule, ResourceType


DEFAULT_PROPAGATION_RULES: Tuple[PropagationRule, ...] = (
    PropagationRule(
        from_type=ResourceType.MEMORY,
        to_type=ResourceType.DISK,
        max_time_window=timedelta(minutes=5),
        description="Memory pressure can cause swap/disk thrashing",
    ),
    PropagationRule(
        from_type=ResourceType.DISK,
        to_type=ResourceType.CPU,
        max_time_window=timedelta(minutes=5),
        description="Disk saturation causes CPU iowait",
    ),
    PropagationRule(
        from_type=ResourceType.MEMORY,
        to_type=ResourceType.CPU,
        max_time_window=timedelta(minutes=10),
        description="Memory pressure can indirectly cause CPU issues",
    ),
    PropagationRule(
        from_type=ResourceType.NETWORK,
        to_type=ResourceType.MEMORY,
        max_time_window=timedelta(minutes=3),
        description="Network buffer exhaustion affects memory",
    ),
    PropagationRule(
        from_type=ResourceType.PROCESS,
        to_type=ResourceType.MEMORY,
        max_time_window=timedelta(minutes=2),
        description="Process leak causes memory pressure",
    ),
    PropagationRule(
        from_type=ResourceType.PROCESS,
        to_type=ResourceType.CPU,
        max_time_window=timedelta(minutes=2),
        description="Runaway process consumes CPU",
    ),
)


def freeze_rules(rules: Optional[Iterable[PropagationRule]] = None) -> Tuple[PropagationRule, ...]:
    """Return an immutable copy of a rule table, defaulting to the built-in rules."""
    if rules is None:
        return DEFAULT_PROPAGATION_RULES
    return tuple(rules)


def rules_targeting(
    rules: Iterable[PropagationRule],
    resource_type: ResourceType,
) -> Tuple[PropagationRule, ...]:
    """Rules whose effect side is the given resource type, in table order."""
    return tuple(rule for rule in rules if rule.to_type == resource_type)
