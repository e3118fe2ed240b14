"""
Incident Analysis Pipeline.

Turns a batch of infrastructure alerts into incident intelligence: a causal
timeline built from propagation rules, cascade-aware alert groups, ranked
root cause candidates, a blast-radius classification and a remediation plan.
"""

from incident_teller.services.analysis.models import (
    Alert,
    AlertCascade,
    AlertGroup,
    AlertStatus,
    BlastRadiusResult,
    CANONICAL_RESOURCE_TYPES,
    CascadeType,
    Component,
    ComponentImpact,
    ComponentKind,
    GroupType,
    IncidentIntelligence,
    PropagationRule,
    RemediationPlan,
    ResourceType,
    RootCauseCandidate,
    TimelineEntry,
    TimelineEventType,
)
from incident_teller.services.analysis.rules import DEFAULT_PROPAGATION_RULES, freeze_rules
from incident_teller.services.analysis.timeline import CausalityTimelineBuilder, order_alerts
from incident_teller.services.analysis.grouper import CascadeGrouper
from incident_teller.services.analysis.scorer import (
    RootCauseScorer,
    ScoringConfig,
    confidence_level,
)
from incident_teller.services.analysis.blast_radius import BlastRadiusClassifier
from incident_teller.services.analysis.remediation import FixRecommender
from incident_teller.services.analysis.analyzer import (
    IncidentAnalyzer,
    analyze_incident,
    canonical_order,
)

__all__ = [
    # Models
    "Alert",
    "AlertCascade",
    "AlertGroup",
    "AlertStatus",
    "BlastRadiusResult",
    "CANONICAL_RESOURCE_TYPES",
    "CascadeType",
    "Component",
    "ComponentImpact",
    "ComponentKind",
    "GroupType",
    "IncidentIntelligence",
    "PropagationRule",
    "RemediationPlan",
    "ResourceType",
    "RootCauseCandidate",
    "TimelineEntry",
    "TimelineEventType",
    # Rules
    "DEFAULT_PROPAGATION_RULES",
    "freeze_rules",
    # Components
    "CausalityTimelineBuilder",
    "order_alerts",
    "CascadeGrouper",
    "RootCauseScorer",
    "ScoringConfig",
    "confidence_level",
    "BlastRadiusClassifier",
    "FixRecommender",
    # Orchestration
    "IncidentAnalyzer",
    "analyze_incident",
    "canonical_order",
]
