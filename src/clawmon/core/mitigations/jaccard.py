"""Jaccard clustering: reviewers that rate the same agents the same way.

Coordinated review rings tend to target an identical set of agents and
hand out near-identical scores. For every pair of active reviewers (those
who rated at least ``min_agents_reviewed`` distinct agents):

    J(A, B)        = |targets(A) & targets(B)| / |targets(A) | targets(B)|
    alignment(A,B) = 1 - mean(|avg_A(x) - avg_B(x)| / 100) over common x
    combined       = 0.6 * J + 0.4 * alignment

A pair is similar when both ``J`` and ``combined`` reach the threshold.
Connected components of similar pairs with at least ``min_cluster_size``
members are coordinated clusters, and all feedback written by their members
is discounted.

Pairwise comparison is O(n^2) in the number of active reviewers, which is
acceptable for registry-sized corpora.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clawmon.core.mitigations.address_graph import AddressGraph
from clawmon.core.mitigations.config import JaccardConfig
from clawmon.core.mitigations.models import (
    MitigationFlag,
    MitigationResult,
    flat_discount,
)
from clawmon.core.scoring.models import Feedback, active_feedback

logger = logging.getLogger(__name__)

JACCARD_WEIGHT: float = 0.6
ALIGNMENT_WEIGHT: float = 0.4


@dataclass(frozen=True)
class JaccardCluster:
    """A group of reviewers with overlapping, aligned review behaviour.

    Attributes:
        addresses: Member addresses, sorted.
        common_agents: Agents every member has rated, sorted.
        avg_similarity: Mean pairwise Jaccard index inside the cluster.
    """

    addresses: tuple[str, ...]
    common_agents: tuple[str, ...]
    avg_similarity: float


@dataclass(frozen=True)
class SimilarPair:
    """Two reviewers whose target sets and scores line up."""

    address_a: str
    address_b: str
    jaccard: float
    value_alignment: float

    @property
    def combined(self) -> float:
        return JACCARD_WEIGHT * self.jaccard + ALIGNMENT_WEIGHT * self.value_alignment


@dataclass(frozen=True)
class JaccardResult:
    """Outcome of Jaccard clustering over a corpus."""

    clusters: tuple[JaccardCluster, ...] = ()
    flagged_addresses: frozenset[str] = frozenset()
    similar_pairs: tuple[SimilarPair, ...] = ()


def jaccard(a: set[str] | frozenset[str], b: set[str] | frozenset[str]) -> float:
    """Return ``|a & b| / |a | b|``, or 0.0 when both sets are empty."""
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def value_alignment(
    values_a: dict[str, list[float]],
    values_b: dict[str, list[float]],
) -> float:
    """Score how closely two reviewers agree on the agents they share.

    Args:
        values_a: Ratings of reviewer A keyed by agent id.
        values_b: Ratings of reviewer B keyed by agent id.

    Returns:
        ``1 - mean(|mean_A - mean_B| / 100)`` over common agents, or 0.0
        when the reviewers share no agent.
    """
    common = sorted(values_a.keys() & values_b.keys())
    if not common:
        return 0.0
    total = 0.0
    for agent in common:
        mean_a = sum(values_a[agent]) / len(values_a[agent])
        mean_b = sum(values_b[agent]) / len(values_b[agent])
        total += abs(mean_a - mean_b) / 100.0
    return 1.0 - total / len(common)


def _reviewer_profiles(corpus: list[Feedback]) -> dict[str, dict[str, list[float]]]:
    profiles: dict[str, dict[str, list[float]]] = {}
    for fb in sorted(active_feedback(corpus), key=lambda f: (f.timestamp, f.id)):
        profiles.setdefault(fb.submitter_address, {}).setdefault(
            fb.agent_id, []
        ).append(fb.value)
    return profiles


def detect_jaccard_clusters(
    corpus: list[Feedback],
    config: JaccardConfig,
) -> JaccardResult:
    """Find clusters of reviewers with near-identical review behaviour.

    Args:
        corpus: Full feedback corpus. Revoked entries are ignored.
        config: Thresholds and minimum sizes.

    Returns:
        Clusters, flagged addresses, and every similar pair found.
    """
    profiles = _reviewer_profiles(corpus)
    reviewers = sorted(
        addr for addr, rated in profiles.items()
        if len(rated) >= config.min_agents_reviewed
    )
    targets = {addr: frozenset(profiles[addr]) for addr in reviewers}

    graph = AddressGraph()
    pairs: list[SimilarPair] = []
    for i, addr_a in enumerate(reviewers):
        for addr_b in reviewers[i + 1:]:
            sim = jaccard(targets[addr_a], targets[addr_b])
            if sim < config.similarity_threshold:
                continue
            pair = SimilarPair(
                addr_a, addr_b, sim,
                value_alignment(profiles[addr_a], profiles[addr_b]),
            )
            if pair.combined >= config.similarity_threshold:
                pairs.append(pair)
                graph.add_edge(addr_a, addr_b)

    clusters: list[JaccardCluster] = []
    flagged: set[str] = set()
    for members in graph.connected_components(min_size=max(config.min_cluster_size, 1)):
        common = frozenset.intersection(*(targets[m] for m in members))
        clusters.append(
            JaccardCluster(
                addresses=tuple(members),
                common_agents=tuple(sorted(common)),
                avg_similarity=_mean_pairwise_jaccard(members, targets),
            )
        )
        flagged.update(members)

    logger.debug(
        "Jaccard clustering: %d reviewers, %d similar pairs, %d clusters",
        len(reviewers), len(pairs), len(clusters),
    )
    return JaccardResult(
        clusters=tuple(clusters),
        flagged_addresses=frozenset(flagged),
        similar_pairs=tuple(pairs),
    )


def _mean_pairwise_jaccard(
    members: list[str],
    targets: dict[str, frozenset[str]],
) -> float:
    total = 0.0
    count = 0
    for i, a in enumerate(members):
        for b in members[i + 1:]:
            total += jaccard(targets[a], targets[b])
            count += 1
    return total / count if count else 0.0


def apply_jaccard_mitigation(
    feedback: list[Feedback],
    corpus: list[Feedback],
    config: JaccardConfig,
    result: JaccardResult | None = None,
) -> list[MitigationResult]:
    """Discount feedback written by members of a coordinated cluster.

    Only the submitter decides: an agent that happens to be rated by a
    cluster is not itself penalized beyond the discounted entries.
    """
    if result is None:
        result = detect_jaccard_clusters(corpus, config)
    return flat_discount(
        feedback,
        lambda fb: fb.submitter_address in result.flagged_addresses,
        config.discount_factor,
        MitigationFlag.JACCARD_COORDINATED,
    )
