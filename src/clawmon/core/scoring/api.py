"""Host-facing scoring operations.

``compute_summary`` and ``compute_all_summaries`` pick the engine from the
configuration: no configuration, or one with every mitigation disabled,
yields the naive ERC-8004 mean; anything else runs the hardened engine.
"""

from __future__ import annotations

from clawmon.core.mitigations.config import MitigationConfig
from clawmon.core.scoring.engine import (
    compute_all_naive_summaries,
    compute_naive_summary,
    rank_summaries,
)
from clawmon.core.scoring.hardened import HardenedEngine
from clawmon.core.scoring.models import Feedback, FeedbackSummary


def _is_hardened(config: MitigationConfig | None) -> bool:
    return config is not None and config.any_enabled


def compute_summary(
    feedback: list[Feedback],
    config: MitigationConfig | None = None,
    corpus: list[Feedback] | None = None,
    now: int | None = None,
) -> FeedbackSummary:
    """Score one agent's feedback.

    Args:
        feedback: Entries for a single agent.
        config: Mitigation configuration; None means naive scoring.
        corpus: Full corpus for corpus-wide mitigations.
        now: Reference time in milliseconds for temporal decay.

    Returns:
        The agent's summary.
    """
    if not _is_hardened(config):
        return compute_naive_summary(feedback)
    return HardenedEngine(config, now).summarize(feedback, corpus)


def compute_all_summaries(
    corpus: list[Feedback],
    config: MitigationConfig | None = None,
    now: int | None = None,
) -> dict[str, FeedbackSummary]:
    """Score every agent in ``corpus`` against the full corpus."""
    if not _is_hardened(config):
        return compute_all_naive_summaries(corpus)
    return HardenedEngine(config, now).summarize_all(corpus)


def rank_agents(
    corpus: list[Feedback],
    config: MitigationConfig | None = None,
    now: int | None = None,
) -> list[FeedbackSummary]:
    """Return every agent's summary, highest score first (ties by agent id)."""
    return rank_summaries(compute_all_summaries(corpus, config, now).values())
