"""Temporal correlation: lockstep timing and machine-regular intervals.

Velocity only looks at the rate of feedback for one agent. This module
looks at *when* each submitter acts across the whole corpus:

1. **Lockstep** -- two submitters repeatedly acting within a few seconds
   of each other, the signature of a bot network firing in batches.
2. **Regularity** -- one submitter acting at near-constant intervals.
   Human timing is noisy; a coefficient of variation (stddev / mean of
   the inter-event intervals) below the threshold is suspicious.

The union of both signals is flagged, and every entry written by a flagged
submitter receives a flat discount.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from clawmon.core.mitigations.config import TemporalCorrelationConfig
from clawmon.core.mitigations.models import (
    MitigationFlag,
    MitigationResult,
    flat_discount,
)
from clawmon.core.scoring.models import Feedback, active_feedback

logger = logging.getLogger(__name__)

# Share of the shorter timeline that must coincide for a lockstep pair.
MIN_LOCKSTEP_RATE: float = 0.5


@dataclass(frozen=True)
class LockstepPair:
    """Two submitters whose activity repeatedly coincides."""

    address_a: str
    address_b: str
    coincidences: int


@dataclass(frozen=True)
class RegularSubmitter:
    """A submitter whose inter-event intervals are nearly constant."""

    address: str
    cv: float
    avg_interval_ms: float


@dataclass(frozen=True)
class TemporalCorrelationResult:
    """Outcome of temporal correlation analysis over a corpus."""

    lockstep_pairs: tuple[LockstepPair, ...] = ()
    regular_addresses: tuple[RegularSubmitter, ...] = ()
    flagged_addresses: frozenset[str] = frozenset()


def submitter_timelines(corpus: list[Feedback]) -> dict[str, list[int]]:
    """Map each submitter to the sorted timestamps of its active entries."""
    timelines: dict[str, list[int]] = {}
    for fb in active_feedback(corpus):
        timelines.setdefault(fb.submitter_address, []).append(fb.timestamp)
    for timestamps in timelines.values():
        timestamps.sort()
    return timelines


def count_coincidences(ts_a: list[int], ts_b: list[int], window_ms: int) -> int:
    """Count ``(a, b)`` timestamp pairs with ``|a - b| <= window_ms``.

    Both lists must be sorted. A sorted merge keeps a lower bound into
    ``ts_b`` so each ``a`` only scans the entries inside its window.
    """
    coincidences = 0
    low = 0
    for a in ts_a:
        while low < len(ts_b) and ts_b[low] < a - window_ms:
            low += 1
        j = low
        while j < len(ts_b) and ts_b[j] <= a + window_ms:
            coincidences += 1
            j += 1
    return coincidences


def detect_lockstep_pairs(
    timelines: dict[str, list[int]],
    config: TemporalCorrelationConfig,
) -> list[LockstepPair]:
    """Find submitter pairs acting in lockstep.

    Only submitters with at least ``min_lockstep_events`` entries are
    compared. A pair is reported when its coincidence count reaches
    ``min_lockstep_events`` and exceeds half the length of the shorter
    timeline.
    """
    eligible = sorted(
        addr for addr, ts in timelines.items()
        if len(ts) >= config.min_lockstep_events
    )
    pairs: list[LockstepPair] = []
    for i, addr_a in enumerate(eligible):
        ts_a = timelines[addr_a]
        for addr_b in eligible[i + 1:]:
            ts_b = timelines[addr_b]
            shorter = min(len(ts_a), len(ts_b))
            if shorter == 0:
                continue
            hits = count_coincidences(ts_a, ts_b, config.lockstep_window_ms)
            if hits >= config.min_lockstep_events and hits / shorter > MIN_LOCKSTEP_RATE:
                pairs.append(LockstepPair(addr_a, addr_b, hits))
    return pairs


def interval_cv(timestamps: list[int]) -> tuple[float, float] | None:
    """Return ``(cv, mean_interval)`` of a sorted timeline.

    Uses the population standard deviation. Returns None when there are
    fewer than two intervals or the mean interval is zero.
    """
    intervals = [b - a for a, b in zip(timestamps, timestamps[1:])]
    if len(intervals) < 2:
        return None
    mean = sum(intervals) / len(intervals)
    if mean == 0:
        return None
    variance = sum((x - mean) ** 2 for x in intervals) / len(intervals)
    return math.sqrt(variance) / mean, mean


def detect_regular_intervals(
    timelines: dict[str, list[int]],
    config: TemporalCorrelationConfig,
) -> list[RegularSubmitter]:
    """Find submitters whose interval CV is below ``regularity_threshold``."""
    regular: list[RegularSubmitter] = []
    for addr in sorted(timelines):
        timestamps = timelines[addr]
        if len(timestamps) < config.min_feedback_for_regularity:
            continue
        measured = interval_cv(timestamps)
        if measured is None:
            continue
        cv, mean = measured
        if cv < config.regularity_threshold:
            regular.append(RegularSubmitter(addr, cv, mean))
    return regular


def detect_temporal_correlation(
    corpus: list[Feedback],
    config: TemporalCorrelationConfig,
) -> TemporalCorrelationResult:
    """Run lockstep and regularity detection over the full corpus."""
    timelines = submitter_timelines(corpus)
    lockstep = detect_lockstep_pairs(timelines, config)
    regular = detect_regular_intervals(timelines, config)

    flagged: set[str] = set()
    for pair in lockstep:
        flagged.add(pair.address_a)
        flagged.add(pair.address_b)
    flagged.update(r.address for r in regular)

    logger.debug(
        "Temporal correlation: %d lockstep pairs, %d regular submitters",
        len(lockstep), len(regular),
    )
    return TemporalCorrelationResult(
        lockstep_pairs=tuple(lockstep),
        regular_addresses=tuple(regular),
        flagged_addresses=frozenset(flagged),
    )


def apply_temporal_correlation(
    feedback: list[Feedback],
    corpus: list[Feedback],
    config: TemporalCorrelationConfig,
    result: TemporalCorrelationResult | None = None,
) -> list[MitigationResult]:
    """Discount feedback from submitters with correlated timing."""
    if result is None:
        result = detect_temporal_correlation(corpus, config)
    return flat_discount(
        feedback,
        lambda fb: fb.submitter_address in result.flagged_addresses,
        config.discount_factor,
        MitigationFlag.TEMPORAL_CORRELATION,
    )
