"""Graph analysis mitigation: mutual-feedback pairs and Sybil clusters.

A mutual pair exists when address A rated the agent keyed by B *and*
address B rated the agent keyed by A. Agent ids double as the publisher's
address, so two publishers whose skills rate each other form a pair. A
self-rating (submitter equals agent id) is a degenerate pair of one.

Detection runs at two levels:

1. **Pair level** -- every entry belonging to a mutual pair is flagged.
2. **Cluster level** -- connected components (BFS) over mutual edges with
   two or more members are Sybil clusters. Every entry whose agent *or*
   submitter is a cluster member is flagged, which catches secondary
   "alt" addresses that rate a known-Sybil agent without forming a pair.

References:
    Crapis, Bankless (Feb 2025): batch-minted ERC-8004 identities gaming
    trust scores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clawmon.core.mitigations.address_graph import AddressGraph
from clawmon.core.mitigations.config import GraphAnalysisConfig
from clawmon.core.mitigations.models import (
    MitigationFlag,
    MitigationResult,
    flat_discount,
)
from clawmon.core.scoring.models import Feedback, active_feedback

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutualPair:
    """Two addresses that have each rated an agent keyed by the other.

    Attributes:
        address_a: Lexicographically smaller address of the pair.
        address_b: Larger address (equal to ``address_a`` for self-ratings).
        feedback_ids: Ids of the A->B and B->A entries.
    """

    address_a: str
    address_b: str
    feedback_ids: tuple[str, ...]

    @property
    def is_self_rating(self) -> bool:
        """True when an address rated its own agent."""
        return self.address_a == self.address_b


@dataclass(frozen=True)
class GraphAnalysisResult:
    """Corpus-wide outcome of mutual-feedback analysis.

    Attributes:
        pairs: All mutual pairs, sorted by address.
        clusters: Sybil clusters (components of size >= 2), sorted.
        mutual_feedback_ids: Ids of every entry in a mutual pair.
        sybil_addresses: Union of all cluster members.
    """

    pairs: tuple[MutualPair, ...]
    clusters: tuple[frozenset[str], ...]
    mutual_feedback_ids: frozenset[str]
    sybil_addresses: frozenset[str]

    def is_flagged(self, fb: Feedback) -> bool:
        """True if ``fb`` is in a pair or touches a Sybil cluster."""
        return (
            fb.id in self.mutual_feedback_ids
            or fb.agent_id in self.sybil_addresses
            or fb.submitter_address in self.sybil_addresses
        )


def _ratings_by_submitter(corpus: list[Feedback]) -> dict[str, dict[str, list[str]]]:
    rated: dict[str, dict[str, list[str]]] = {}
    for fb in active_feedback(corpus):
        rated.setdefault(fb.submitter_address, {}).setdefault(
            fb.agent_id, []
        ).append(fb.id)
    return rated


def detect_mutual_feedback(corpus: list[Feedback]) -> list[MutualPair]:
    """Detect mutual feedback pairs in a corpus.

    Revoked entries are ignored.

    Args:
        corpus: Full feedback corpus.

    Returns:
        Mutual pairs sorted by ``(address_a, address_b)``.
    """
    rated = _ratings_by_submitter(corpus)
    pairs: dict[tuple[str, str], MutualPair] = {}

    for addr_a in sorted(rated):
        for agent_b, ids_a_to_b in rated[addr_a].items():
            back = rated.get(agent_b)
            if back is None or addr_a not in back:
                continue
            key = (min(addr_a, agent_b), max(addr_a, agent_b))
            if key in pairs:
                continue
            if addr_a == agent_b:
                ids = tuple(ids_a_to_b)
            else:
                ids = tuple(ids_a_to_b) + tuple(back[addr_a])
            pairs[key] = MutualPair(key[0], key[1], ids)

    return [pairs[key] for key in sorted(pairs)]


def _clusters_from_pairs(pairs: list[MutualPair]) -> list[frozenset[str]]:
    graph = AddressGraph.from_edges(
        (p.address_a, p.address_b) for p in pairs if not p.is_self_rating
    )
    return [frozenset(c) for c in graph.connected_components(min_size=2)]


def detect_sybil_clusters(corpus: list[Feedback]) -> list[frozenset[str]]:
    """Detect groups of addresses densely linked by mutual feedback.

    Args:
        corpus: Full feedback corpus.

    Returns:
        Connected components of the mutual-pair graph with at least two
        members.
    """
    return _clusters_from_pairs(detect_mutual_feedback(corpus))


def analyze_graph(corpus: list[Feedback]) -> GraphAnalysisResult:
    """Run pair and cluster detection once over the whole corpus."""
    pairs = detect_mutual_feedback(corpus)
    clusters = _clusters_from_pairs(pairs)
    mutual_ids = frozenset(i for p in pairs for i in p.feedback_ids)
    sybil_addresses = frozenset(a for c in clusters for a in c)
    logger.debug(
        "Graph analysis: %d mutual pairs, %d sybil clusters, %d sybil addresses",
        len(pairs), len(clusters), len(sybil_addresses),
    )
    return GraphAnalysisResult(
        pairs=tuple(pairs),
        clusters=tuple(sorted(clusters, key=sorted)),
        mutual_feedback_ids=mutual_ids,
        sybil_addresses=sybil_addresses,
    )


def apply_graph_analysis(
    feedback: list[Feedback],
    corpus: list[Feedback],
    config: GraphAnalysisConfig,
    analysis: GraphAnalysisResult | None = None,
) -> list[MitigationResult]:
    """Discount feedback tied to mutual pairs or Sybil clusters.

    Args:
        feedback: Active feedback for the target agent.
        corpus: Full corpus (ignored when ``analysis`` is given).
        config: Graph analysis parameters.
        analysis: Precomputed corpus analysis, if available.

    Returns:
        One result per entry; flagged entries weigh ``discount_factor``.
    """
    if analysis is None:
        analysis = analyze_graph(corpus)
    return flat_discount(
        feedback,
        analysis.is_flagged,
        config.discount_factor,
        MitigationFlag.SYBIL_MUTUAL_FEEDBACK,
    )
