"""
Tests for the Root Cause Scorer.

Tests cover:
- Candidate identification (clear alerts excluded)
- Individual scoring terms and score bounds
- Ranking and tie breaking
- Confidence level bands
"""

import pytest
from datetime import timedelta

from incident_teller.services.analysis.grouper import CascadeGrouper
from incident_teller.services.analysis.models import AlertStatus, ResourceType
from incident_teller.services.analysis.scorer import (
    RootCauseScorer,
    ScoringConfig,
    confidence_level,
)


@pytest.fixture
def scorer():
    return RootCauseScorer()


class TestCandidates:
    """Tests for candidate identification."""

    def test_clear_alerts_are_not_candidates(self, scorer, make_alert):
        ordered = [
            make_alert("clear", status=AlertStatus.CLEAR, previous_status=AlertStatus.WARNING),
            make_alert("warn", minutes=1),
        ]
        ranked = scorer.rank(ordered)

        assert [c.alert.id for c in ranked] == ["warn"]
        assert ranked[0].timeline_position == 1
        assert not ranked[0].is_earliest

    def test_empty(self, scorer):
        assert scorer.rank([]) == []

    def test_cascading_effects_need_two_other_types(self, scorer, make_alert):
        ordered = [
            make_alert("mem", ResourceType.MEMORY, minutes=0),
            make_alert("disk", ResourceType.DISK, minutes=1),
            make_alert("cpu", ResourceType.CPU, minutes=3),
        ]
        assert scorer.has_cascading_effects(0, ordered)
        assert not scorer.has_cascading_effects(1, ordered)

    def test_cascading_effects_window(self, scorer, make_alert):
        ordered = [
            make_alert("mem", ResourceType.MEMORY, minutes=0),
            make_alert("disk", ResourceType.DISK, minutes=1),
            make_alert("cpu", ResourceType.CPU, minutes=11),
        ]
        assert not scorer.has_cascading_effects(0, ordered)


class TestScoring:
    """Tests for individual scoring terms."""

    def test_cascade_scenario_scores(self, scorer, cascade_alerts):
        ranked = scorer.rank(cascade_alerts)
        scores = {c.alert.id: c.confidence_score for c in ranked}

        # 40 + 30 + 15 + 15 + 10, capped
        assert scores["mem-1"] == 100
        # (40 - 5) + 7 + 8
        assert scores["disk-1"] == 50
        # (40 - 10) + 7 + 6
        assert scores["cpu-1"] == 43
        assert [c.alert.id for c in ranked] == ["mem-1", "disk-1", "cpu-1"]

    def test_evidence_and_reasoning(self, scorer, cascade_alerts):
        top = scorer.rank(cascade_alerts)[0]

        assert "First alert in the incident timeline" in top.evidence
        assert "Led to cascading failures in other resources" in top.evidence
        assert "Alert reached CRITICAL severity" in top.evidence
        assert "MEMORY is a high-impact resource" in top.evidence
        assert top.reasoning == (
            "This was the earliest anomaly detected; "
            "triggered resource exhaustion cascade; "
            "correlated with error log spikes"
        )

    def test_position_penalty_is_capped(self, scorer, make_alert):
        ordered = [
            make_alert(f"a{i}", ResourceType.UNKNOWN, minutes=i * 20,
                       status=AlertStatus.UNDEFINED)
            for i in range(10)
        ]
        ranked = scorer.rank(ordered)
        scores = {c.timeline_position: c.confidence_score for c in ranked}

        assert scores[0] == 40
        assert scores[1] == 35
        assert scores[6] == 10
        assert scores[9] == 10

    def test_scores_within_bounds(self, make_alert):
        scorer = RootCauseScorer(ScoringConfig(earliest_bonus=500, critical_bonus=-1000))
        ordered = [
            make_alert("a", ResourceType.MEMORY, status=AlertStatus.WARNING),
            make_alert("b", ResourceType.CPU, minutes=1, status=AlertStatus.CRITICAL),
        ]
        for candidate in scorer.rank(ordered):
            assert 0 <= candidate.confidence_score <= 100

    def test_custom_resource_weights(self, make_alert):
        config = ScoringConfig(resource_weights={ResourceType.CPU: 0})
        candidate = RootCauseScorer(config).rank([make_alert("a", ResourceType.CPU)])[0]
        # 40 + 7, no resource impact evidence
        assert candidate.confidence_score == 47
        assert not any("high-impact" in e for e in candidate.evidence)

    def test_ties_broken_by_position(self, make_alert):
        config = ScoringConfig(earliest_bonus=0, position_step=0)
        ordered = [
            make_alert("first", ResourceType.CPU, minutes=0),
            make_alert("second", ResourceType.CPU, minutes=20),
        ]
        ranked = RootCauseScorer(config).rank(ordered)
        assert ranked[0].confidence_score == ranked[1].confidence_score
        assert [c.alert.id for c in ranked] == ["first", "second"]

    def test_group_evidence_does_not_change_score(self, scorer, make_alert):
        ordered = [
            make_alert("mem", ResourceType.MEMORY, seconds=0),
            make_alert("proc", ResourceType.PROCESS, seconds=10),
        ]
        groups = CascadeGrouper().group_ordered(ordered)

        plain = scorer.rank(ordered)
        grouped = scorer.rank(ordered, groups)

        assert [c.confidence_score for c in plain] == [c.confidence_score for c in grouped]
        assert any("cascading alert group" in e for e in grouped[0].evidence)
        assert not any("cascading alert group" in e for e in plain[0].evidence)


class TestConfidenceLevel:
    """Tests for confidence bands."""

    @pytest.mark.parametrize("score,expected", [
        (100, "Very High"),
        (80, "Very High"),
        (79, "High"),
        (60, "High"),
        (59, "Medium"),
        (40, "Medium"),
        (39, "Low"),
        (0, "Low"),
        (None, "N/A"),
    ])
    def test_bands(self, score, expected):
        assert confidence_level(score) == expected

    def test_default_cascade_window(self):
        assert ScoringConfig().cascade_window == timedelta(minutes=10)
