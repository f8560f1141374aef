"""Property-based tests for tier mapping and the access gate.

Verifies:
- Monotonicity: a higher score never maps to a lower tier.
- Clamping: out-of-range scores map to the end tiers.
- Consistency: the access decision is a function of the tier alone.
- Summary invariants: values are clamped and rounded to two decimals.
"""
from __future__ import annotations

from hypothesis import assume, given
from hypothesis import strategies as st

from clawmon.core.scoring.models import (
    AccessDecision,
    TrustTier,
    build_summary,
    score_to_tier,
    tier_to_access_decision,
)

scores = st.floats(min_value=0.0, max_value=100.0, allow_nan=False)
any_scores = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False)


class TestTierMonotonicity:
    """A higher score never yields a lower tier."""

    @given(a=scores, b=scores)
    def test_tier_rank_is_monotone(self, a: float, b: float) -> None:
        assume(a <= b)
        assert score_to_tier(a).rank <= score_to_tier(b).rank

    @given(a=scores, b=scores)
    def test_access_is_monotone(self, a: float, b: float) -> None:
        order = [AccessDecision.DENIED, AccessDecision.THROTTLED, AccessDecision.FULL_ACCESS]
        assume(a <= b)
        low = tier_to_access_decision(score_to_tier(a))
        high = tier_to_access_decision(score_to_tier(b))
        assert order.index(low) <= order.index(high)


class TestClamping:
    """Out-of-range scores behave like the nearest bound."""

    @given(score=any_scores)
    def test_clamped_equivalence(self, score: float) -> None:
        clamped = max(0.0, min(100.0, score))
        assert score_to_tier(score) is score_to_tier(clamped)

    @given(score=st.floats(min_value=100.0, max_value=1e9, allow_nan=False))
    def test_high_scores_are_aaa(self, score: float) -> None:
        assert score_to_tier(score) is TrustTier.AAA


class TestSummaryInvariants:
    """build_summary always yields a self-consistent summary."""

    @given(score=any_scores, count=st.integers(min_value=0, max_value=1000))
    def test_summary_is_consistent(self, score: float, count: int) -> None:
        summary = build_summary("agent", count, score)
        assert 0.0 <= summary.summary_value <= 100.0
        assert summary.summary_value == round(summary.summary_value, 2)
        assert summary.tier is score_to_tier(max(0.0, min(100.0, score)))
        assert summary.access_decision is tier_to_access_decision(summary.tier)
