"""Mitigation output contract: reason flags and per-feedback results.

Every mitigation algorithm, whatever it detects, reports one
``MitigationResult`` per active feedback entry. The uniform shape is what
lets the hardened engine fold independently coded detectors into a single
weight per entry.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from clawmon.core.scoring.models import Feedback


class MitigationFlag(str, Enum):
    """Reason codes attached to discounted feedback."""

    SYBIL_MUTUAL_FEEDBACK = "sybil_mutual_feedback"
    VELOCITY_BURST = "velocity_burst"
    TEMPORAL_DECAY = "temporal_decay"
    NEW_SUBMITTER = "new_submitter"
    ANOMALY_BURST = "anomaly_burst"
    SYBILRANK_LOW_TRUST = "sybilrank_low_trust"
    JACCARD_COORDINATED = "jaccard_coordinated"
    TEMPORAL_CORRELATION = "temporal_correlation"


@dataclass(frozen=True)
class MitigationResult:
    """Weight and reasons one mitigation assigns to one feedback entry.

    Attributes:
        feedback_id: Id of the feedback entry.
        weight: Multiplier in [0, 1]; 1.0 means no penalty.
        flags: Reason codes explaining the discount. Empty when the
            entry was not flagged.
    """

    feedback_id: str
    weight: float = 1.0
    flags: frozenset[MitigationFlag] = field(default_factory=frozenset)

    @property
    def flagged(self) -> bool:
        """True if this result carries at least one flag."""
        return bool(self.flags)


def flat_discount(
    feedback: Iterable[Feedback],
    is_flagged: Callable[[Feedback], bool],
    discount_factor: float,
    flag: MitigationFlag,
) -> list[MitigationResult]:
    """Build results that apply ``discount_factor`` to flagged entries.

    Args:
        feedback: Entries to report on, in order.
        is_flagged: Predicate selecting the entries to discount.
        discount_factor: Weight given to flagged entries.
        flag: Reason code attached to flagged entries.

    Returns:
        One result per entry; unflagged entries keep weight 1.0.
    """
    results: list[MitigationResult] = []
    for fb in feedback:
        if is_flagged(fb):
            results.append(
                MitigationResult(fb.id, discount_factor, frozenset({flag}))
            )
        else:
            results.append(MitigationResult(fb.id))
    return results
