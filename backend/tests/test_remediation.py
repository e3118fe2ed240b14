"""Tests for remediation playbooks and the narrative helpers."""

import pytest

from incident_teller.services.analysis.blast_radius import BlastRadiusClassifier
from incident_teller.services.analysis.models import (
    AlertStatus,
    BlastRadiusResult,
    ResourceType,
)
from incident_teller.services.analysis.narrative import (
    explain_what_broke_first,
    explain_what_happened,
    explain_why_it_happened,
)
from incident_teller.services.analysis.remediation import (
    COMPLEX,
    MODERATE,
    PLAYBOOKS,
    SIMPLE,
    FixRecommender,
    determine_complexity,
)
from incident_teller.services.analysis.scorer import RootCauseScorer
from incident_teller.services.analysis.timeline import CausalityTimelineBuilder


@pytest.fixture
def analyzed_cascade(cascade_alerts):
    root = RootCauseScorer().rank(cascade_alerts)[0]
    blast = BlastRadiusClassifier().classify(cascade_alerts, root)
    return root, blast


class TestFixRecommender:
    """Tests for remediation plans."""

    def test_every_resource_type_has_a_playbook(self):
        for resource_type in ResourceType:
            immediate, short_term, long_term = PLAYBOOKS[resource_type]
            assert immediate and short_term and long_term

    def test_no_root_cause(self):
        plan = FixRecommender().recommend(None, BlastRadiusResult())

        assert plan.immediate == []
        assert plan.root_cause_type is None

    def test_cascade_plan(self, analyzed_cascade):
        root, blast = analyzed_cascade
        plan = FixRecommender().recommend(root, blast)

        assert plan.root_cause_type == ResourceType.MEMORY
        assert plan.immediate[:4] == [
            "CRITICAL: MEMORY at 96.0% - IMMEDIATE action required",
            "Target host: web-01",
            "CASCADE DETECTED (2 levels) - prioritize root cause",
            "Monitor CPU recovery after root cause fix",
        ]
        assert plan.immediate[4] == PLAYBOOKS[ResourceType.MEMORY][0][0]
        assert plan.short_term[-1] == "Monitor all 5 affected components for recovery"
        assert plan.long_term == list(PLAYBOOKS[ResourceType.MEMORY][2])

    def test_high_value_without_cascade(self, make_alert):
        alerts = [make_alert("disk", ResourceType.DISK, value=88.5)]
        root = RootCauseScorer().rank(alerts)[0]
        blast = BlastRadiusClassifier().classify(alerts, root)
        plan = FixRecommender().recommend(root, blast)

        assert plan.immediate[0] == "HIGH: DISK at 88.5% - act within 5 minutes"
        assert not any("CASCADE" in action for action in plan.immediate)
        assert plan.complexity == SIMPLE
        assert plan.estimated_time_to_resolve == "5-15 minutes (if playbook followed)"

    def test_playbooks_are_not_mutated(self, analyzed_cascade):
        root, blast = analyzed_cascade
        before = PLAYBOOKS[ResourceType.MEMORY]
        FixRecommender().recommend(root, blast)
        assert PLAYBOOKS[ResourceType.MEMORY] == before

    def test_complexity(self):
        assert determine_complexity(BlastRadiusResult()) == SIMPLE
        assert determine_complexity(BlastRadiusResult(
            affected_hosts=["a", "b"], cascade_depth=1,
        )) == MODERATE
        assert determine_complexity(BlastRadiusResult(
            affected_hosts=["a", "b"], cascade_depth=2, critical_alerts=3, impact_score=80,
        )) == COMPLEX


class TestNarrative:
    """Tests for plain-English explanations."""

    def test_what_happened(self, cascade_alerts):
        timeline = CausalityTimelineBuilder().build_ordered(cascade_alerts)
        text = explain_what_happened(cascade_alerts, timeline)

        assert text.startswith("System experienced 3 alert events over 3 minutes.")
        assert "3 new alerts triggered." in text
        assert "Multiple resources affected: cpu, disk, memory." in text

    def test_what_happened_empty(self):
        assert explain_what_happened([], []) == "No incident data available"

    def test_why_and_first(self, analyzed_cascade):
        root, _ = analyzed_cascade

        why = explain_why_it_happened(root)
        assert why.startswith("The incident was triggered by memory exhaustion on system.memory.")
        assert "This caused a cascade effect" in why

        assert explain_what_broke_first(root) == (
            "memory_usage on system.memory@web-01 (value: 96.00 at 10:00:00)"
        )

    def test_without_root_cause(self):
        assert explain_why_it_happened(None) == "Unable to determine root cause"
        assert explain_what_broke_first(None) == "No failures detected"

    def test_escalations_counted(self, make_alert):
        alerts = [
            make_alert("a", status=AlertStatus.WARNING),
            make_alert("b", minutes=1, status=AlertStatus.CRITICAL,
                       previous_status=AlertStatus.WARNING),
        ]
        timeline = CausalityTimelineBuilder().build_ordered(alerts)
        assert "1 alerts escalated to critical." in explain_what_happened(alerts, timeline)
