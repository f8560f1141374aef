"""Tests for the naive ERC-8004 engine and its helpers."""

from __future__ import annotations

from clawmon.core.scoring.engine import (
    compute_all_naive_summaries,
    compute_naive_summary,
    group_by_agent,
    rank_summaries,
)
from clawmon.core.scoring.models import AccessDecision, TrustTier, build_summary


class TestComputeNaiveSummary:
    """Tests for the plain arithmetic mean."""

    def test_mean_of_active_feedback(self, make_feedback) -> None:
        feedback = [
            make_feedback(value=90.0),
            make_feedback(value=80.0),
            make_feedback(value=70.0),
        ]
        summary = compute_naive_summary(feedback)
        assert summary.summary_value == 80.0
        assert summary.feedback_count == 3
        assert summary.tier is TrustTier.AA
        assert summary.access_decision is AccessDecision.FULL_ACCESS

    def test_revoked_feedback_is_ignored(self, make_feedback) -> None:
        feedback = [
            make_feedback(value=90.0),
            make_feedback(value=0.0, revoked=True),
        ]
        summary = compute_naive_summary(feedback)
        assert summary.summary_value == 90.0
        assert summary.feedback_count == 1

    def test_empty_input_yields_unknown_agent(self) -> None:
        summary = compute_naive_summary([])
        assert summary.agent_id == "unknown"
        assert summary.tier is TrustTier.C

    def test_all_revoked_keeps_agent_id(self, make_feedback) -> None:
        feedback = [make_feedback(agent_id="skill-a", revoked=True)]
        summary = compute_naive_summary(feedback)
        assert summary.agent_id == "skill-a"
        assert summary.feedback_count == 0
        assert summary.access_decision is AccessDecision.DENIED

    def test_client_address_filter(self, make_feedback) -> None:
        """Only feedback from the listed submitters is counted."""
        feedback = [
            make_feedback(submitter="0xa", value=100.0),
            make_feedback(submitter="0xb", value=20.0),
            make_feedback(submitter="0xc", value=60.0),
        ]
        summary = compute_naive_summary(feedback, client_addresses=["0xa", "0xc"])
        assert summary.summary_value == 80.0
        assert summary.feedback_count == 2

    def test_empty_client_address_filter_counts_everyone(self, make_feedback) -> None:
        feedback = [make_feedback(value=100.0), make_feedback(value=50.0)]
        assert compute_naive_summary(feedback, client_addresses=[]).feedback_count == 2

    def test_sybil_ring_games_naive_score(self, sybil_ring_feedback) -> None:
        """The unprotected mean is trivially inflated by colluding reviews."""
        targeted = [fb for fb in sybil_ring_feedback if fb.agent_id == "sybil-1"]
        summary = compute_naive_summary(targeted)
        assert summary.summary_value == 92.2
        assert summary.tier is TrustTier.AAA

    def test_tier_boundary_uses_unrounded_mean(self, make_feedback) -> None:
        feedback = [make_feedback(value=v) for v in (79.99, 80.0, 80.0)]
        summary = compute_naive_summary(feedback)
        assert summary.summary_value == 80.0
        assert summary.tier is TrustTier.A


class TestGroupingAndRanking:
    """Tests for multi-agent helpers."""

    def test_group_by_agent_preserves_entries(self, make_feedback) -> None:
        a1 = make_feedback(agent_id="a")
        b1 = make_feedback(agent_id="b")
        a2 = make_feedback(agent_id="a")
        groups = group_by_agent([a1, b1, a2])
        assert groups == {"a": [a1, a2], "b": [b1]}

    def test_compute_all_naive_summaries(self, make_feedback) -> None:
        corpus = [
            make_feedback(agent_id="a", value=90.0),
            make_feedback(agent_id="b", value=40.0),
        ]
        summaries = compute_all_naive_summaries(corpus)
        assert set(summaries) == {"a", "b"}
        assert summaries["b"].tier is TrustTier.B

    def test_rank_summaries_breaks_ties_by_agent_id(self) -> None:
        ranked = rank_summaries([
            build_summary("zeta", 1, 70.0),
            build_summary("alpha", 1, 70.0),
            build_summary("mid", 1, 95.0),
        ])
        assert [s.agent_id for s in ranked] == ["mid", "alpha", "zeta"]
