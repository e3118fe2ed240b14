"""
Incident Analyzer.

Composes the analysis pipeline for one alert batch:

    timeline -> groups -> ranked root causes -> blast radius
             -> remediation -> narrative -> IncidentIntelligence

The batch is first put in canonical order (time, then alert content) so
that the same alerts always produce the same result regardless of the
order they arrived in. Each stage only reads the outputs of earlier
stages; nothing is mutated across stages.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Sequence

import structlog

from incident_teller.services.analysis.blast_radius import BlastRadiusClassifier
from incident_teller.services.analysis.grouper import CascadeGrouper
from incident_teller.services.analysis.models import (
    Alert,
    IncidentIntelligence,
    PropagationRule,
)
from incident_teller.services.analysis.narrative import (
    explain_what_broke_first,
    explain_what_happened,
    explain_why_it_happened,
)
from incident_teller.services.analysis.remediation import FixRecommender
from incident_teller.services.analysis.rules import freeze_rules
from incident_teller.services.analysis.scorer import (
    RootCauseScorer,
    ScoringConfig,
    confidence_level,
)
from incident_teller.services.analysis.timeline import CausalityTimelineBuilder

logger = structlog.get_logger()


def canonical_order(alerts: Iterable[Alert]) -> List[Alert]:
    """Order alerts by time, breaking ties on alert content."""
    return sorted(alerts, key=lambda a: a.sort_key())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentAnalyzer:
    """
    Orchestrates all analysis components.

    Holds only immutable configuration, so one instance can serve
    concurrent analysis calls as long as each call owns its input batch.
    """

    def __init__(
        self,
        rules: Optional[Iterable[PropagationRule]] = None,
        scoring_config: Optional[ScoringConfig] = None,
        correlation_window: timedelta = timedelta(minutes=15),
        cascade_window: timedelta = timedelta(minutes=10),
        max_alternatives: Optional[int] = None,
        fix_recommender: Optional[FixRecommender] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the analyzer.

        Args:
            rules: Propagation rule table (defaults to the built-in rules)
            scoring_config: Root cause scoring weights
            correlation_window: Window for grouping related alerts
            cascade_window: Window for indirect (cascade) blast-radius effects
            max_alternatives: Limit on alternative causes returned (None = all)
            fix_recommender: Remediation playbook lookup
            clock: Source of the analysis timestamp
        """
        self.rules = freeze_rules(rules)
        self.timeline_builder = CausalityTimelineBuilder(self.rules)
        self.grouper = CascadeGrouper(correlation_window=correlation_window)
        self.scorer = RootCauseScorer(scoring_config)
        self.classifier = BlastRadiusClassifier(cascade_window=cascade_window)
        self.fix_recommender = fix_recommender or FixRecommender()
        self.max_alternatives = max_alternatives
        self.clock = clock

    def analyze(self, alerts: Sequence[Alert]) -> IncidentIntelligence:
        """
        Perform complete incident analysis on one batch.

        Args:
            alerts: Alert batch in any order; not modified

        Returns:
            IncidentIntelligence for the batch. An empty batch yields an
            empty timeline, no root cause and confidence level "N/A".
        """
        analyzed_at = self.clock()
        ordered = canonical_order(alerts)

        timeline = self.timeline_builder.build_ordered(ordered)
        groups = self.grouper.group_ordered(ordered)
        ranked = self.scorer.rank(ordered, groups)

        root_cause = ranked[0] if ranked else None
        alternatives = ranked[1:]
        if self.max_alternatives is not None:
            alternatives = alternatives[:self.max_alternatives]

        blast_radius = self.classifier.classify(ordered, root_cause)
        remediation = self.fix_recommender.recommend(root_cause, blast_radius)

        duration = ordered[-1].occurred_at - ordered[0].occurred_at if ordered else timedelta(0)

        intelligence = IncidentIntelligence(
            root_cause=root_cause,
            alternative_causes=alternatives,
            confidence_level=confidence_level(root_cause.confidence_score if root_cause else None),
            timeline=timeline,
            groups=groups,
            blast_radius=blast_radius,
            remediation=remediation,
            what_happened=explain_what_happened(ordered, timeline),
            why_it_happened=explain_why_it_happened(root_cause),
            what_broke_first=explain_what_broke_first(root_cause),
            total_alerts=len(ordered),
            incident_duration=duration,
            analyzed_at=analyzed_at,
        )

        logger.info(
            "Incident analysis complete",
            alert_count=len(ordered),
            group_count=len(groups),
            root_cause=root_cause.alert.id if root_cause else None,
            confidence_score=root_cause.confidence_score if root_cause else None,
            impact_score=blast_radius.impact_score,
        )
        return intelligence


def analyze_incident(
    alerts: Sequence[Alert],
    rules: Optional[Iterable[PropagationRule]] = None,
    scoring_config: Optional[ScoringConfig] = None,
) -> IncidentIntelligence:
    """
    Convenience function to analyze a batch with default settings.

    Example:
        >>> intelligence = analyze_incident(alerts)
        >>> print(intelligence.root_cause.alert.id, intelligence.confidence_level)
        "mem-1" "Very High"
    """
    analyzer = IncidentAnalyzer(rules=rules, scoring_config=scoring_config)
    return analyzer.analyze(alerts)
