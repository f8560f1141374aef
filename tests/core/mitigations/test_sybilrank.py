"""Tests for SybilRank seed selection, propagation, and discounting.

The eight-node fixture below is small enough to follow by hand: three
long-lived honest reviewers (h1..h3) rate three agents over two days, and
a two-node Sybil pair (s1, s2) rates each other with a single attack edge
from s1 into the honest region at a1. After four rounds of propagation the
honest reviewers hold all the trust, s1 keeps 15/31 of it through the
attack edge, and s2 is left with none.
"""

from __future__ import annotations

import pytest

from clawmon.core.mitigations.config import SeedStrategy, SybilRankConfig
from clawmon.core.mitigations.models import MitigationFlag
from clawmon.core.mitigations.sybilrank import (
    SybilRankResult,
    apply_sybil_rank,
    build_feedback_graph,
    compute_sybil_rank,
    graduated_weight,
    seed_scores,
    select_seeds,
)

T0 = 1_700_000_000_000
SECOND = 1_000
HOUR = 3_600_000


@pytest.fixture
def attack_edge_corpus(make_feedback) -> list:
    """Honest region h1..h3/a1..a3 plus a Sybil pair with one attack edge."""
    corpus = []
    for offset, honest in enumerate(("h1", "h2", "h3")):
        for day, agent in enumerate(("a1", "a2", "a3")):
            corpus.append(make_feedback(
                agent_id=agent,
                submitter=honest,
                timestamp=T0 + day * 24 * HOUR + offset * HOUR,
            ))
    corpus.append(make_feedback(
        agent_id="s2", submitter="s1", timestamp=T0 + 100 * HOUR, fid="s1-s2",
    ))
    corpus.append(make_feedback(
        agent_id="s1", submitter="s2", timestamp=T0 + 100 * HOUR + 30 * SECOND,
        fid="s2-s1",
    ))
    corpus.append(make_feedback(
        agent_id="a1", submitter="s1", timestamp=T0 + 100 * HOUR + 60 * SECOND,
        fid="s1-a1",
    ))
    return corpus


@pytest.fixture
def seed_corpus(make_feedback) -> list:
    """p rates three agents and q two agents over two days; r, s, t once."""
    corpus = []
    for i, agent in enumerate(("a1", "a2", "a3")):
        corpus.append(make_feedback(agent_id=agent, submitter="p", timestamp=T0 + i * 24 * HOUR))
    for i, agent in enumerate(("a1", "a2")):
        corpus.append(make_feedback(agent_id=agent, submitter="q", timestamp=T0 + i * 48 * HOUR))
    for name in ("r", "s", "t"):
        corpus.append(make_feedback(agent_id="a1", submitter=name, timestamp=T0))
    return corpus


# ===========================================================================
# Category 1: Graph and seeds
# ===========================================================================


class TestGraphAndSeeds:
    """Tests for graph construction and seed selection."""

    def test_graph_size(self, attack_edge_corpus) -> None:
        graph = build_feedback_graph(attack_edge_corpus)
        assert graph.node_count == 8
        assert graph.edge_count == 11

    def test_reciprocal_feedback_doubles_edge_weight(self, attack_edge_corpus) -> None:
        graph = build_feedback_graph(attack_edge_corpus)
        s1 = graph.node_id("s1")
        s2 = graph.node_id("s2")
        assert graph.neighbours(s1)[s2] == 2.0

    def test_single_entry_submitters_score_zero(self, seed_corpus) -> None:
        scores = seed_scores(seed_corpus)
        assert scores["r"] == 0.0
        assert scores["p"] > scores["q"] > 0.0

    def test_top_quartile_become_seeds(self, attack_edge_corpus) -> None:
        assert select_seeds(attack_edge_corpus) == ["h1", "h2"]

    def test_at_least_one_seed(self, make_feedback) -> None:
        assert select_seeds([make_feedback(submitter="solo")]) == ["solo"]


# ===========================================================================
# Category 2: Propagation
# ===========================================================================


class TestComputeSybilRank:
    """Tests for power iteration and normalization."""

    def test_attack_edge_scenario(self, attack_edge_corpus) -> None:
        result = compute_sybil_rank(attack_edge_corpus, SybilRankConfig())
        assert result.seeds == ("h1", "h2")
        assert result.iterations_run == 4
        assert result.node_count == 8
        assert result.edge_count == 11
        for honest in ("h1", "h2", "h3"):
            assert result.trust(honest) == pytest.approx(1.0)
        assert result.trust("s1") == pytest.approx(15 / 31)
        assert result.trust("s2") == 0.0
        assert result.flagged_addresses == {"a1", "a2", "a3", "s2"}

    def test_iterations_capped_by_config(self, attack_edge_corpus) -> None:
        result = compute_sybil_rank(attack_edge_corpus, SybilRankConfig(iterations=2))
        assert result.iterations_run == 2

    def test_degree_weighted_seeds(self, seed_corpus) -> None:
        config = SybilRankConfig(iterations=0)
        result = compute_sybil_rank(seed_corpus, config)
        assert result.seeds == ("p", "q")
        assert result.trust("p") == pytest.approx(1.0)
        assert result.trust("q") == pytest.approx(2 / 3)
        assert result.trust("r") == 0.0

    def test_uniform_seeds(self, seed_corpus) -> None:
        config = SybilRankConfig(iterations=0, seed_strategy=SeedStrategy.UNIFORM)
        result = compute_sybil_rank(seed_corpus, config)
        assert result.trust("p") == pytest.approx(1.0)
        assert result.trust("q") == pytest.approx(1.0)

    def test_self_rating_only(self, make_feedback) -> None:
        corpus = [make_feedback(agent_id="m", submitter="m")]
        result = compute_sybil_rank(corpus, SybilRankConfig())
        assert result.node_count == 1
        assert result.edge_count == 1
        assert result.trust("m") == pytest.approx(1.0)
        assert result.flagged_addresses == frozenset()

    def test_empty_corpus(self) -> None:
        assert compute_sybil_rank([], SybilRankConfig()) == SybilRankResult()

    def test_unknown_address_has_zero_trust(self) -> None:
        assert SybilRankResult().trust("nobody") == 0.0

    def test_scenario_corpus_shape(self, scenario_corpus) -> None:
        result = compute_sybil_rank(scenario_corpus, SybilRankConfig())
        assert result.node_count == 37
        assert result.iterations_run == 6
        assert set(result.seeds) == {
            "sybil-1", "sybil-2", "sybil-3", "sybil-4", "sybil-5",
            "c00", "c01", "c02", "c03",
        }

    def test_scores_are_normalized(self, scenario_corpus) -> None:
        result = compute_sybil_rank(scenario_corpus, SybilRankConfig())
        assert max(result.trust_scores.values()) == pytest.approx(1.0)
        assert min(result.trust_scores.values()) >= 0.0


# ===========================================================================
# Category 3: Discounting
# ===========================================================================


class TestApplySybilRank:
    """Tests for graduated per-entry weights."""

    def test_graduated_weight_endpoints(self) -> None:
        config = SybilRankConfig()
        assert graduated_weight(0.0, config) == pytest.approx(0.1)
        assert graduated_weight(0.1, config) == pytest.approx(0.55)
        assert graduated_weight(0.9, config) == pytest.approx(1.0)

    def test_weights_in_attack_edge_scenario(self, attack_edge_corpus) -> None:
        config = SybilRankConfig()
        results = {
            r.feedback_id: r
            for r in apply_sybil_rank(attack_edge_corpus, attack_edge_corpus, config)
        }
        # s2 has no trust left, so its rating of s1 gets the full discount.
        assert results["s2-s1"].weight == pytest.approx(0.1)
        # s1 is above the cutoff; its entry is flagged via the agent only.
        assert results["s1-s2"].weight == pytest.approx(1.0)
        assert results["s1-s2"].flags == {MitigationFlag.SYBILRANK_LOW_TRUST}
        honest = [r for r in results.values() if r.feedback_id.startswith("fb-")]
        assert all(r.weight == pytest.approx(1.0) and r.flagged for r in honest)

    def test_precomputed_rank_is_used(self, make_feedback) -> None:
        fb = make_feedback(submitter="x", agent_id="y")
        rank = SybilRankResult(
            trust_scores={"x": 0.0, "y": 1.0}, flagged_addresses=frozenset({"x"})
        )
        results = apply_sybil_rank([fb], [], SybilRankConfig(), rank)
        assert results[0].weight == pytest.approx(0.1)
