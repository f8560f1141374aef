"""Scoring and mitigation core.

The host-facing operations are re-exported here:

    from clawmon.core import compute_summary, compute_all_summaries
"""

from clawmon.core.scoring.api import (
    compute_all_summaries,
    compute_summary,
    rank_agents,
)
from clawmon.core.scoring.hardened import (
    HardenedEngine,
    ScoreBreakdown,
    ScoreComparison,
    compare_scoring,
    compute_all_hardened_summaries,
    compute_hardened_summary,
    score_breakdown,
)

__all__ = [
    "HardenedEngine",
    "ScoreBreakdown",
    "ScoreComparison",
    "compare_scoring",
    "compute_all_hardened_summaries",
    "compute_all_summaries",
    "compute_hardened_summary",
    "compute_summary",
    "rank_agents",
    "score_breakdown",
]
