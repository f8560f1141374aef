"""Trust scoring for registry agents.

Submodules:
    models    -- Feedback, FeedbackSummary, TrustTier, AccessDecision
    weights   -- Weights accumulator, weighted_average
    engine    -- Naive ERC-8004 mean, grouping and ranking helpers
    hardened  -- HardenedEngine and mitigation composition
    api       -- compute_summary / compute_all_summaries dispatch

The data-model names are re-exported here. ``hardened`` and ``api`` depend
on the mitigation package, which itself depends on ``models``; import them
from their modules (``from clawmon.core.scoring.api import compute_summary``)
or from :mod:`clawmon.core`.
"""

from clawmon.core.scoring.models import (
    MIN_FEEDBACK_COUNT,
    TIER_THRESHOLDS,
    UNKNOWN_AGENT,
    AccessDecision,
    Feedback,
    FeedbackSummary,
    TrustTier,
    active_feedback,
    build_summary,
    empty_summary,
    score_to_tier,
    tier_description,
    tier_to_access_decision,
)
from clawmon.core.scoring.weights import Weights, weighted_average
from clawmon.core.scoring.engine import (
    compute_all_naive_summaries,
    compute_naive_summary,
    group_by_agent,
    rank_summaries,
)

__all__ = [
    "MIN_FEEDBACK_COUNT",
    "TIER_THRESHOLDS",
    "UNKNOWN_AGENT",
    "AccessDecision",
    "Feedback",
    "FeedbackSummary",
    "TrustTier",
    "Weights",
    "active_feedback",
    "build_summary",
    "compute_all_naive_summaries",
    "compute_naive_summary",
    "empty_summary",
    "group_by_agent",
    "rank_summaries",
    "score_to_tier",
    "tier_description",
    "tier_to_access_decision",
    "weighted_average",
]
