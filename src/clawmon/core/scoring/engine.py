"""Naive scoring engine: the registry's plain arithmetic mean.

Mirrors the ERC-8004 ``getSummary`` computation with no mitigations at
all: revoked entries are dropped, the remaining values are averaged, and
the mean is mapped to a tier. This baseline is deliberately gameable; the
hardened engine layers the Sybil-resistance mitigations on top of the same
data model.

References:
    ERC-8004 ReputationRegistry: ``getSummary(agentId, clientAddresses)``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from clawmon.core.scoring.models import (
    UNKNOWN_AGENT,
    Feedback,
    FeedbackSummary,
    active_feedback,
    build_summary,
    empty_summary,
)

logger = logging.getLogger(__name__)


def group_by_agent(feedback: list[Feedback]) -> dict[str, list[Feedback]]:
    """Group entries by ``agent_id``, preserving first-seen agent order."""
    groups: dict[str, list[Feedback]] = {}
    for fb in feedback:
        groups.setdefault(fb.agent_id, []).append(fb)
    return groups


def compute_naive_summary(
    feedback: list[Feedback],
    client_addresses: Iterable[str] | None = None,
) -> FeedbackSummary:
    """Compute an agent's summary as the mean of its active feedback.

    Args:
        feedback: Entries for a single agent.
        client_addresses: If given and non-empty, only entries from these
            submitters count.

    Returns:
        The summary; ``empty_summary`` when nothing active remains.
    """
    if not feedback:
        return empty_summary(UNKNOWN_AGENT)

    agent_id = feedback[0].agent_id
    active = active_feedback(feedback)

    allowed = set(client_addresses) if client_addresses is not None else set()
    if allowed:
        active = [f for f in active if f.submitter_address in allowed]

    if not active:
        return empty_summary(agent_id)

    # Summation order is fixed so the mean never depends on input order.
    ordered = sorted(active, key=lambda f: (f.timestamp, f.id))
    mean = sum(f.value for f in ordered) / len(ordered)
    return build_summary(agent_id, len(ordered), mean)


def compute_all_naive_summaries(
    corpus: list[Feedback],
    client_addresses: Iterable[str] | None = None,
) -> dict[str, FeedbackSummary]:
    """Compute a naive summary for every agent present in ``corpus``."""
    allowed = list(client_addresses) if client_addresses is not None else None
    return {
        agent_id: compute_naive_summary(entries, allowed)
        for agent_id, entries in group_by_agent(corpus).items()
    }


def rank_summaries(summaries: Iterable[FeedbackSummary]) -> list[FeedbackSummary]:
    """Order summaries by score, highest first; ties by agent id."""
    return sorted(summaries, key=lambda s: (-s.summary_value, s.agent_id))
