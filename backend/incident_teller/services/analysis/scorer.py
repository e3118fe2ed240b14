"""
Root Cause Scorer for alert batches.

Assigns every non-clear alert a confidence score (0-100) that it is the
incident's root cause. The score sums independent, capped terms:

- Position: the earliest alert gets the full bonus, later alerts decay
  linearly with their timeline position.
- Cascade: the alert is followed, within the cascade window, by alerts of
  at least two other resource types.
- Severity: critical and warning alerts earn fixed bonuses.
- Log correlation: critical alerts stand in for correlated error logs
  until a log source is wired in.
- Resource impact: a static weight per resource type.

This is the single scoring strategy used by the analyzer. All weights
live in ScoringConfig so alternatives can be evaluated without a second,
divergent implementation.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

import structlog

from incident_teller.services.analysis.models import (
    Alert,
    AlertGroup,
    AlertStatus,
    ResourceType,
    RootCauseCandidate,
)
from incident_teller.services.analysis.grouper import group_membership

logger = structlog.get_logger()


NO_CONFIDENCE = "N/A"


@dataclass
class ScoringConfig:
    """Weights for the root cause scoring rules."""

    # Position (max 40 points)
    earliest_bonus: int = 40
    position_step: int = 5
    max_position_penalty: int = 30

    # Cascading resource exhaustion (30 points)
    cascade_bonus: int = 30
    cascade_window: timedelta = timedelta(minutes=10)
    cascade_min_resource_types: int = 2

    # Severity
    critical_bonus: int = 15
    warning_bonus: int = 7

    # Log correlation stand-in
    log_error_bonus: int = 15

    # Static resource impact weights
    resource_weights: Dict[ResourceType, int] = field(default_factory=lambda: {
        ResourceType.MEMORY: 10,   # Memory issues often cascade
        ResourceType.PROCESS: 9,   # Process issues are frequent root causes
        ResourceType.DISK: 8,
        ResourceType.NETWORK: 7,
        ResourceType.CPU: 6,       # Common, usually a symptom
        ResourceType.UNKNOWN: 0,
    })

    max_score: int = 100


def confidence_level(score: Optional[int]) -> str:
    """Convert a confidence score into a display band."""
    if score is None:
        return NO_CONFIDENCE
    if score >= 80:
        return "Very High"
    if score >= 60:
        return "High"
    if score >= 40:
        return "Medium"
    return "Low"


class RootCauseScorer:
    """
    Identifies and ranks root cause candidates in a time-ordered batch.

    Scores are a pure function of the batch: no randomness, no wall-clock
    reads, so identical batches always produce identical rankings.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the scorer.

        Args:
            config: Scoring weights (defaults to ScoringConfig())
        """
        self.config = config or ScoringConfig()

    def rank(
        self,
        ordered: Sequence[Alert],
        groups: Optional[Sequence[AlertGroup]] = None,
    ) -> List[RootCauseCandidate]:
        """
        Score every candidate and sort by confidence.

        Args:
            ordered: Alert batch in time order
            groups: Optional alert groups for auxiliary evidence

        Returns:
            Candidates sorted by score (highest first), ties broken by
            earlier timeline position
        """
        candidates = self.identify_candidates(ordered)
        self.score(candidates)
        if groups:
            self._add_group_evidence(candidates, groups)

        ranked = sorted(
            candidates,
            key=lambda c: (-c.confidence_score, c.timeline_position),
        )

        if ranked:
            logger.debug(
                "Root cause candidates ranked",
                candidate_count=len(ranked),
                top_alert=ranked[0].alert.id,
                top_score=ranked[0].confidence_score,
            )
        return ranked

    def identify_candidates(self, ordered: Sequence[Alert]) -> List[RootCauseCandidate]:
        """Build one unscored candidate per non-clear alert."""
        candidates = []
        for position, alert in enumerate(ordered):
            if alert.status == AlertStatus.CLEAR:
                continue
            candidates.append(RootCauseCandidate(
                alert_index=position,
                alert=alert,
                timeline_position=position,
                is_earliest=position == 0,
                has_cascade=self.has_cascading_effects(position, ordered),
                has_log_errors=self.has_related_log_errors(alert),
            ))
        return candidates

    def score(self, candidates: Sequence[RootCauseCandidate]) -> None:
        """Fill in confidence score, evidence and reasoning for each candidate."""
        cfg = self.config

        for candidate in candidates:
            alert = candidate.alert
            score = 0
            evidence: List[str] = []
            reasons: List[str] = []

            if candidate.is_earliest:
                score += cfg.earliest_bonus
                evidence.append("First alert in the incident timeline")
                reasons.append("This was the earliest anomaly detected")
            else:
                penalty = min(cfg.max_position_penalty, candidate.timeline_position * cfg.position_step)
                score += cfg.earliest_bonus - penalty
                evidence.append(
                    f"Alert appeared at position {candidate.timeline_position + 1} in timeline"
                )

            if candidate.has_cascade:
                score += cfg.cascade_bonus
                evidence.append("Led to cascading failures in other resources")
                reasons.append("triggered resource exhaustion cascade")

            if alert.status == AlertStatus.CRITICAL:
                score += cfg.critical_bonus
                evidence.append("Alert reached CRITICAL severity")
            elif alert.status == AlertStatus.WARNING:
                score += cfg.warning_bonus
                evidence.append("Alert at WARNING severity")

            if candidate.has_log_errors:
                score += cfg.log_error_bonus
                evidence.append("Related error logs detected")
                reasons.append("correlated with error log spikes")

            impact = cfg.resource_weights.get(alert.resource_type, 0)
            score += impact
            if impact > 0:
                evidence.append(f"{alert.resource_type.value.upper()} is a high-impact resource")

            candidate.confidence_score = max(0, min(cfg.max_score, score))
            candidate.evidence = evidence
            candidate.reasoning = "; ".join(reasons)

    def has_cascading_effects(self, position: int, ordered: Sequence[Alert]) -> bool:
        """Check if later alerts of enough other resource types followed this one."""
        alert = ordered[position]
        later_types = set()

        for other in ordered:
            if other.resource_type == alert.resource_type:
                continue
            delay = other.occurred_at - alert.occurred_at
            if timedelta(0) < delay <= self.config.cascade_window:
                later_types.add(other.resource_type)

        return len(later_types) >= self.config.cascade_min_resource_types

    @staticmethod
    def has_related_log_errors(alert: Alert) -> bool:
        # No log source is queried yet; critical severity stands in for
        # correlated error logs.
        return alert.status == AlertStatus.CRITICAL

    @staticmethod
    def _add_group_evidence(
        candidates: Sequence[RootCauseCandidate],
        groups: Sequence[AlertGroup],
    ) -> None:
        membership = group_membership(groups)
        for candidate in candidates:
            group = membership.get(candidate.alert_index)
            if group is None or group.seed_index != candidate.alert_index:
                continue
            if group.is_cascading:
                candidate.evidence.append(
                    f"Seeded a cascading alert group ({len(group)} alerts, "
                    f"{len(group.cascade_chain)} cascade links)"
                )
