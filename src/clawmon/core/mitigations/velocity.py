"""Velocity and anomaly mitigations: burst and sign-up-wave detection.

- **Velocity** -- too many entries for one agent inside a sliding window.
- **Anomaly** -- too many *brand-new* submitters (first seen anywhere in the
  corpus inside the same window) rating one agent, the signature of a
  coordinated sign-up wave.
- **Behavioral shift** -- recent ratings deviating sharply from the agent's
  historical mean (laundering signal). Reported for inspection only.

Entries are ordered by ``(timestamp, id)`` so results do not depend on the
order feedback arrives in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clawmon.core.mitigations.config import AnomalyConfig, VelocityConfig
from clawmon.core.mitigations.models import (
    MitigationFlag,
    MitigationResult,
    flat_discount,
)
from clawmon.core.mitigations.recency import first_seen_timestamps
from clawmon.core.scoring.models import Feedback, active_feedback

logger = logging.getLogger(__name__)


def _chronological(feedback: list[Feedback]) -> list[Feedback]:
    return sorted(active_feedback(feedback), key=lambda f: (f.timestamp, f.id))


# ---------------------------------------------------------------------------
# Velocity spikes
# ---------------------------------------------------------------------------


def detect_velocity_spikes(
    feedback: list[Feedback],
    max_in_window: int,
    window_ms: int,
) -> set[str]:
    """Find entries that sit inside an over-full time window.

    A two-pointer scan over the sorted timestamps keeps the window
    ``[start, end]`` no wider than ``window_ms``. Whenever the window holds
    more than ``max_in_window`` entries, every entry in it is flagged. Each
    entry is flagged at most once, so the scan is O(n) after sorting.

    Args:
        feedback: One agent's feedback. Revoked entries are ignored.
        max_in_window: Largest count allowed inside one window.
        window_ms: Window width in milliseconds (inclusive).

    Returns:
        Ids of flagged entries.
    """
    ordered = _chronological(feedback)
    flagged: set[str] = set()
    start = 0
    next_unflagged = 0

    for end in range(len(ordered)):
        while (
            start < end
            and ordered[end].timestamp - ordered[start].timestamp > window_ms
        ):
            start += 1
        if end - start + 1 > max_in_window:
            for i in range(max(start, next_unflagged), end + 1):
                flagged.add(ordered[i].id)
            next_unflagged = end + 1

    return flagged


def apply_velocity_check(
    feedback: list[Feedback],
    config: VelocityConfig,
) -> list[MitigationResult]:
    """Discount entries submitted in a rapid burst."""
    flagged = detect_velocity_spikes(feedback, config.max_in_window, config.window_ms)
    logger.debug("Velocity check: %d of %d entries in bursts", len(flagged), len(feedback))
    return flat_discount(
        feedback,
        lambda fb: fb.id in flagged,
        config.discount_factor,
        MitigationFlag.VELOCITY_BURST,
    )


# ---------------------------------------------------------------------------
# New-submitter bursts
# ---------------------------------------------------------------------------


def detect_new_submitter_burst(
    feedback: list[Feedback],
    corpus: list[Feedback],
    max_new_in_window: int,
    window_ms: int,
    first_seen: dict[str, int] | None = None,
) -> set[str]:
    """Find entries from a wave of new submitters.

    For every entry, the window ``[t - window_ms, t]`` ending at it is
    examined. A submitter is *new* in that window when its first-ever
    timestamp across the corpus falls inside it (submitters absent from the
    corpus count from their own timestamp). If more than
    ``max_new_in_window`` distinct new submitters appear, all of their
    entries in the window are flagged.

    Args:
        feedback: One agent's feedback.
        corpus: Full corpus used for first-seen timestamps.
        max_new_in_window: Largest count of distinct new submitters allowed.
        window_ms: Window width in milliseconds.
        first_seen: Precomputed first-seen map, if available.

    Returns:
        Ids of flagged entries.
    """
    if first_seen is None:
        first_seen = first_seen_timestamps(corpus)
    ordered = _chronological(feedback)
    flagged: set[str] = set()
    start = 0

    for end in range(len(ordered)):
        window_begin = ordered[end].timestamp - window_ms
        while start < end and ordered[start].timestamp < window_begin:
            start += 1

        newcomers = [
            fb for fb in ordered[start:end + 1]
            if first_seen.get(fb.submitter_address, fb.timestamp) >= window_begin
        ]
        distinct = {fb.submitter_address for fb in newcomers}
        if len(distinct) > max_new_in_window:
            flagged.update(fb.id for fb in newcomers)

    return flagged


def apply_anomaly_detection(
    feedback: list[Feedback],
    corpus: list[Feedback],
    config: AnomalyConfig,
    first_seen: dict[str, int] | None = None,
) -> list[MitigationResult]:
    """Discount entries from a burst of brand-new submitters."""
    flagged = detect_new_submitter_burst(
        feedback, corpus, config.max_new_in_window, config.window_ms, first_seen
    )
    logger.debug("Anomaly detection: %d entries in new-submitter bursts", len(flagged))
    return flat_discount(
        feedback,
        lambda fb: fb.id in flagged,
        config.discount_factor,
        MitigationFlag.ANOMALY_BURST,
    )


# ---------------------------------------------------------------------------
# Behavioral shift (laundering signal)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BehavioralShift:
    """Recent-versus-historical deviation of an agent's ratings.

    Attributes:
        shifted: True if the deviation reached the threshold.
        magnitude: Absolute difference of the two means.
        historical_mean: Mean of the older entries.
        recent_mean: Mean of the recent entries.
        recent_feedback_ids: Ids of the entries in the recent slice.
    """

    shifted: bool
    magnitude: float
    historical_mean: float = 0.0
    recent_mean: float = 0.0
    recent_feedback_ids: frozenset[str] = frozenset()


NO_SHIFT = BehavioralShift(shifted=False, magnitude=0.0)

# Minimum active entries before a shift can be judged.
MIN_SHIFT_SAMPLE: int = 5


def detect_behavioral_shift(
    feedback: list[Feedback],
    deviation_threshold: float = 30.0,
    recent_fraction: float = 0.3,
) -> BehavioralShift:
    """Compare the most recent slice of ratings against the older ones.

    A previously trusted skill that suddenly collects very different
    ratings is a laundering candidate.

    Args:
        feedback: One agent's feedback. Revoked entries are ignored.
        deviation_threshold: Mean difference (0-100 scale) that counts
            as a shift.
        recent_fraction: Share of the newest entries treated as recent.

    Returns:
        The measured shift; ``NO_SHIFT`` when fewer than five active
        entries exist or either slice is empty.
    """
    ordered = _chronological(feedback)
    if len(ordered) < MIN_SHIFT_SAMPLE:
        return NO_SHIFT

    split = int(len(ordered) * (1.0 - recent_fraction))
    historical = ordered[:split]
    recent = ordered[split:]
    if not historical or not recent:
        return NO_SHIFT

    historical_mean = sum(f.value for f in historical) / len(historical)
    recent_mean = sum(f.value for f in recent) / len(recent)
    magnitude = abs(recent_mean - historical_mean)

    return BehavioralShift(
        shifted=magnitude >= deviation_threshold,
        magnitude=magnitude,
        historical_mean=historical_mean,
        recent_mean=recent_mean,
        recent_feedback_ids=frozenset(f.id for f in recent),
    )
