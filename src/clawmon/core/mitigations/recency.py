"""Recency mitigations: temporal decay and new-submitter weighting.

Temporal Decay Model:
    w(f) = 0.5 ** (age(f) / half_life),  age(f) = max(0, now - timestamp)

The weight is monotonically decreasing in age and never reaches zero. It
is always computed against a caller-supplied ``now`` so repeated scoring
of the same snapshot is reproducible.

Submitter weighting ranks every distinct submitter in the corpus by its
first-seen timestamp and discounts the most recent ``recent_threshold``
fraction, penalizing mass-created fresh identities without any external
identity check.
"""

from __future__ import annotations

import logging
import math
import sys

from clawmon.core.mitigations.config import (
    SubmitterWeightingConfig,
    TemporalDecayConfig,
)
from clawmon.core.mitigations.models import (
    MitigationFlag,
    MitigationResult,
    flat_discount,
)
from clawmon.core.scoring.models import Feedback, active_feedback

logger = logging.getLogger(__name__)

# Decay weights below this mark an entry as stale.
STALE_WEIGHT: float = 0.5


def first_seen_timestamps(corpus: list[Feedback]) -> dict[str, int]:
    """Map every submitter to the timestamp of its earliest active entry."""
    first_seen: dict[str, int] = {}
    for fb in active_feedback(corpus):
        existing = first_seen.get(fb.submitter_address)
        if existing is None or fb.timestamp < existing:
            first_seen[fb.submitter_address] = fb.timestamp
    return first_seen


# ---------------------------------------------------------------------------
# Temporal decay
# ---------------------------------------------------------------------------


def decay_weight(age_ms: float, half_life_ms: float) -> float:
    """Return ``0.5 ** (age / half_life)`` with negative ages treated as 0.

    Floored at the smallest positive normal float, so an entry thousands
    of half-lives old still carries weight.
    """
    return max(math.pow(0.5, max(0.0, age_ms) / half_life_ms), sys.float_info.min)


def apply_temporal_decay(
    feedback: list[Feedback],
    config: TemporalDecayConfig,
    now: int,
) -> list[MitigationResult]:
    """Weight each entry by its age relative to ``now``.

    Entries whose weight falls below 0.5 (older than one half-life) carry
    the ``temporal_decay`` flag.

    Args:
        feedback: Active feedback for the target agent.
        config: Decay parameters.
        now: Reference time in milliseconds.

    Returns:
        One result per entry.
    """
    results: list[MitigationResult] = []
    for fb in feedback:
        weight = decay_weight(now - fb.timestamp, config.half_life_ms)
        flags = (
            frozenset({MitigationFlag.TEMPORAL_DECAY})
            if weight < STALE_WEIGHT
            else frozenset()
        )
        results.append(MitigationResult(fb.id, weight, flags))
    return results


# ---------------------------------------------------------------------------
# Submitter weighting
# ---------------------------------------------------------------------------


def identify_new_submitters(
    corpus: list[Feedback],
    recent_threshold: float,
    first_seen: dict[str, int] | None = None,
) -> frozenset[str]:
    """Return the most recently joined ``recent_threshold`` share of submitters.

    Submitters are ordered by ``(first_seen, address)``; everyone from index
    ``floor(n * (1 - recent_threshold))`` onwards is new.

    Args:
        corpus: Full feedback corpus.
        recent_threshold: Fraction of submitters considered new.
        first_seen: Precomputed first-seen map, if available.

    Returns:
        Addresses of the new submitters.
    """
    if first_seen is None:
        first_seen = first_seen_timestamps(corpus)
    ordered = sorted(first_seen, key=lambda addr: (first_seen[addr], addr))
    cutoff = math.floor(len(ordered) * (1.0 - recent_threshold))
    return frozenset(ordered[cutoff:])


def apply_submitter_weighting(
    feedback: list[Feedback],
    corpus: list[Feedback],
    config: SubmitterWeightingConfig,
    new_submitters: frozenset[str] | None = None,
) -> list[MitigationResult]:
    """Discount feedback written by recently joined submitters."""
    if new_submitters is None:
        new_submitters = identify_new_submitters(corpus, config.recent_threshold)
    logger.debug("Submitter weighting: %d new submitters", len(new_submitters))
    return flat_discount(
        feedback,
        lambda fb: fb.submitter_address in new_submitters,
        config.discount_factor,
        MitigationFlag.NEW_SUBMITTER,
    )
