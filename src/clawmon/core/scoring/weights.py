"""Per-feedback weight accumulator for the hardened engine.

Weights start at 1.0 for every tracked entry. Folding a mitigation's
results multiplies each entry's weight by the reported weight and unions
its flags, so the order mitigations run in never changes the product.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from clawmon.core.scoring.models import Feedback

if TYPE_CHECKING:
    from clawmon.core.mitigations.models import MitigationFlag, MitigationResult


def weighted_average(feedback: list[Feedback], weights: Mapping[str, float]) -> float:
    """Return ``sum(value * weight) / sum(weight)``.

    Entries missing from ``weights`` count with weight 1.0. Returns 0.0
    when the total weight is zero (every entry fully discounted or no
    entries at all). Weights are rescaled by the largest one first, so
    uniformly tiny weights still cancel to the plain mean.
    """
    raw = [weights.get(fb.id, 1.0) for fb in feedback]
    scale = max(raw, default=0.0)
    if scale <= 0.0:
        return 0.0
    total_weight = 0.0
    weighted_sum = 0.0
    for fb, w in zip(feedback, raw):
        w /= scale
        weighted_sum += fb.value * w
        total_weight += w
    return weighted_sum / total_weight


class Weights:
    """Weights and flags keyed by feedback id.

    Results for ids the accumulator does not track are ignored, so a
    mitigation that reports on a wider set than the target agent's
    feedback cannot introduce foreign entries.
    """

    def __init__(self, feedback_ids: Iterable[str]) -> None:
        self._weights: dict[str, float] = {}
        self._flags: dict[str, set[MitigationFlag]] = {}
        for fid in feedback_ids:
            self._weights[fid] = 1.0
            self._flags[fid] = set()

    def __len__(self) -> int:
        return len(self._weights)

    def __contains__(self, feedback_id: object) -> bool:
        return feedback_id in self._weights

    def fold(self, results: Iterable[MitigationResult]) -> None:
        """Multiply in one mitigation's weights and union its flags."""
        for result in results:
            if result.feedback_id not in self._weights:
                continue
            self._weights[result.feedback_id] *= result.weight
            self._flags[result.feedback_id].update(result.flags)

    def weight(self, feedback_id: str) -> float:
        """Return the composed weight of an entry (1.0 if untracked)."""
        return self._weights.get(feedback_id, 1.0)

    def flags(self, feedback_id: str) -> frozenset[MitigationFlag]:
        """Return the union of flags raised against an entry."""
        return frozenset(self._flags.get(feedback_id, ()))

    def as_dict(self) -> dict[str, float]:
        """Return a copy of the weight map."""
        return dict(self._weights)

    def flagged_fraction(self, flag: MitigationFlag) -> float:
        """Share of tracked entries carrying ``flag`` (0.0 when empty)."""
        if not self._weights:
            return 0.0
        hits = sum(1 for flags in self._flags.values() if flag in flags)
        return hits / len(self._weights)

    def weighted_mean(self, feedback: list[Feedback]) -> float:
        """Weighted mean of ``feedback`` values under these weights."""
        return weighted_average(feedback, self._weights)
