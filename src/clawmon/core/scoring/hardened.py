"""Hardened scoring engine: mitigations composed over the naive mean.

Each enabled mitigation reports one weight per active entry. Weights are
folded multiplicatively in a fixed order:

    graph analysis -> velocity -> temporal decay -> submitter recency
    -> anomaly -> SybilRank -> Jaccard -> temporal correlation

Flags are unioned. The score is the weighted mean ``sum(v * w) / sum(w)``
(0 when every weight is zero). A uniform discount cancels out of that
ratio, so when graph analysis is enabled and a fraction ``f`` of the
entries carries ``sybil_mutual_feedback`` the mean is multiplied by
``1 - f * (1 - discount_factor)``.

Attack vector coverage:
    Sybil farming          -- graph analysis, SybilRank, Jaccard
    Reputation laundering  -- temporal decay
    Attestation poisoning  -- submitter recency
    Burst attacks          -- velocity, anomaly, temporal correlation

References:
    Douceur, "The Sybil Attack" (IPTPS 2002).
    ERC-8004 ReputationRegistry: ``getSummary``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property

from clawmon.core.mitigations.config import (
    DEFAULT_MITIGATION_CONFIG,
    MitigationConfig,
)
from clawmon.core.mitigations.graph import (
    GraphAnalysisResult,
    analyze_graph,
    apply_graph_analysis,
)
from clawmon.core.mitigations.jaccard import (
    JaccardResult,
    apply_jaccard_mitigation,
    detect_jaccard_clusters,
)
from clawmon.core.mitigations.models import MitigationFlag
from clawmon.core.mitigations.recency import (
    apply_submitter_weighting,
    apply_temporal_decay,
    first_seen_timestamps,
    identify_new_submitters,
)
from clawmon.core.mitigations.sybilrank import (
    SybilRankResult,
    apply_sybil_rank,
    compute_sybil_rank,
)
from clawmon.core.mitigations.temporal import (
    TemporalCorrelationResult,
    apply_temporal_correlation,
    detect_temporal_correlation,
)
from clawmon.core.mitigations.velocity import (
    apply_anomaly_detection,
    apply_velocity_check,
)
from clawmon.core.scoring.engine import compute_naive_summary, group_by_agent
from clawmon.core.scoring.models import (
    UNKNOWN_AGENT,
    Feedback,
    FeedbackSummary,
    active_feedback,
    build_summary,
    empty_summary,
)
from clawmon.core.scoring.weights import Weights

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Corpus-wide analyses
# ---------------------------------------------------------------------------


class CorpusAnalysis:
    """Corpus-wide detector outputs for one snapshot, computed on first use.

    Only the analyses whose mitigation is actually consulted are ever
    computed. The object holds a reference to the corpus and must be
    discarded when the snapshot changes.
    """

    def __init__(self, corpus: list[Feedback], config: MitigationConfig) -> None:
        self.corpus = corpus
        self.config = config

    @cached_property
    def latest_timestamp(self) -> int | None:
        """Newest active timestamp in the corpus, or None if empty."""
        active = active_feedback(self.corpus)
        if not active:
            return None
        return max(f.timestamp for f in active)

    @cached_property
    def graph(self) -> GraphAnalysisResult:
        return analyze_graph(self.corpus)

    @cached_property
    def first_seen(self) -> dict[str, int]:
        return first_seen_timestamps(self.corpus)

    @cached_property
    def new_submitters(self) -> frozenset[str]:
        return identify_new_submitters(
            self.corpus,
            self.config.submitter_weighting.recent_threshold,
            self.first_seen,
        )

    @cached_property
    def sybil_rank(self) -> SybilRankResult:
        return compute_sybil_rank(self.corpus, self.config.sybil_rank)

    @cached_property
    def jaccard(self) -> JaccardResult:
        return detect_jaccard_clusters(self.corpus, self.config.jaccard_similarity)

    @cached_property
    def temporal(self) -> TemporalCorrelationResult:
        return detect_temporal_correlation(
            self.corpus, self.config.temporal_correlation
        )


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreBreakdown:
    """A hardened summary together with the weights that produced it.

    Attributes:
        summary: The final summary.
        weights: Composed weight per active feedback id.
        flags: Union of flags per active feedback id.
        weighted_mean: Weighted mean before the Sybil-fraction penalty.
        sybil_fraction: Share of entries flagged by graph analysis.
        penalty: Multiplier applied to the weighted mean (1.0 = none).
        now: Reference time used for temporal decay.
    """

    summary: FeedbackSummary
    weights: dict[str, float] = field(default_factory=dict)
    flags: dict[str, frozenset[MitigationFlag]] = field(default_factory=dict)
    weighted_mean: float = 0.0
    sybil_fraction: float = 0.0
    penalty: float = 1.0
    now: int | None = None


@dataclass(frozen=True)
class ScoreComparison:
    """Naive versus hardened summaries for one agent.

    ``delta`` is ``naive - hardened`` summary value; positive when the
    mitigations pulled the score down.
    """

    naive: FeedbackSummary
    hardened: FeedbackSummary
    delta: float


# ---------------------------------------------------------------------------
# HardenedEngine
# ---------------------------------------------------------------------------


class HardenedEngine:
    """Score agents with every enabled mitigation applied.

    The engine binds a validated configuration and an optional reference
    time. Corpus-wide analyses (mutual pairs, first-seen maps, SybilRank,
    Jaccard, temporal correlation) are computed once per corpus and reused
    while the same corpus object is passed in, so scoring every agent of a
    snapshot costs one analysis pass.

    Thread safety: This class is NOT thread-safe. Use one engine per
    snapshot and per thread.

    Args:
        config: Mitigation configuration. Defaults to
            ``DEFAULT_MITIGATION_CONFIG``.
        now: Reference time in milliseconds for temporal decay. When None,
            the newest active timestamp in the corpus is used, which keeps
            results reproducible for a given snapshot.

    Raises:
        ConfigError: If ``config`` fails validation.
    """

    def __init__(
        self,
        config: MitigationConfig | None = None,
        now: int | None = None,
    ) -> None:
        self._config = config if config is not None else DEFAULT_MITIGATION_CONFIG
        self._config.validate()
        self._now = now
        self._analysis: CorpusAnalysis | None = None

    @property
    def config(self) -> MitigationConfig:
        """Return the mitigation configuration."""
        return self._config

    def analysis_for(self, corpus: list[Feedback]) -> CorpusAnalysis:
        """Return the cached analysis for ``corpus``, building it if needed."""
        if self._analysis is None or self._analysis.corpus is not corpus:
            self._analysis = CorpusAnalysis(corpus, self._config)
        return self._analysis

    def resolve_now(self, analysis: CorpusAnalysis, active: list[Feedback]) -> int:
        """Return the configured ``now``, or the snapshot's newest timestamp."""
        if self._now is not None:
            return self._now
        latest = analysis.latest_timestamp
        if latest is not None:
            return latest
        return max(f.timestamp for f in active)

    def _fold(
        self,
        active: list[Feedback],
        analysis: CorpusAnalysis,
        now: int,
    ) -> Weights:
        cfg = self._config
        corpus = analysis.corpus
        weights = Weights(f.id for f in active)

        if cfg.graph_analysis.enabled:
            weights.fold(apply_graph_analysis(
                active, corpus, cfg.graph_analysis, analysis.graph
            ))
        if cfg.velocity_check.enabled:
            weights.fold(apply_velocity_check(active, cfg.velocity_check))
        if cfg.temporal_decay.enabled:
            weights.fold(apply_temporal_decay(active, cfg.temporal_decay, now))
        if cfg.submitter_weighting.enabled:
            weights.fold(apply_submitter_weighting(
                active, corpus, cfg.submitter_weighting, analysis.new_submitters
            ))
        if cfg.anomaly_detection.enabled:
            weights.fold(apply_anomaly_detection(
                active, corpus, cfg.anomaly_detection, analysis.first_seen
            ))
        if cfg.sybil_rank.enabled:
            weights.fold(apply_sybil_rank(
                active, corpus, cfg.sybil_rank, analysis.sybil_rank
            ))
        if cfg.jaccard_similarity.enabled:
            weights.fold(apply_jaccard_mitigation(
                active, corpus, cfg.jaccard_similarity, analysis.jaccard
            ))
        if cfg.temporal_correlation.enabled:
            weights.fold(apply_temporal_correlation(
                active, corpus, cfg.temporal_correlation, analysis.temporal
            ))
        return weights

    def breakdown(
        self,
        feedback: list[Feedback],
        corpus: list[Feedback] | None = None,
    ) -> ScoreBreakdown:
        """Score one agent and return the per-entry weights behind it.

        Args:
            feedback: Entries for a single agent.
            corpus: Full corpus for corpus-wide mitigations. Defaults to
                ``feedback`` itself.

        Returns:
            The summary plus composed weights and flags.
        """
        if not feedback:
            return ScoreBreakdown(summary=empty_summary(UNKNOWN_AGENT))

        agent_id = feedback[0].agent_id
        active = sorted(active_feedback(feedback), key=lambda f: (f.timestamp, f.id))
        if not active:
            return ScoreBreakdown(summary=empty_summary(agent_id))

        analysis = self.analysis_for(corpus if corpus is not None else feedback)
        now = self.resolve_now(analysis, active)
        weights = self._fold(active, analysis, now)

        mean = weights.weighted_mean(active)
        sybil_fraction = 0.0
        penalty = 1.0
        if self._config.graph_analysis.enabled:
            sybil_fraction = weights.flagged_fraction(
                MitigationFlag.SYBIL_MUTUAL_FEEDBACK
            )
            if sybil_fraction > 0.0:
                discount = self._config.graph_analysis.discount_factor
                penalty = 1.0 - sybil_fraction * (1.0 - discount)

        summary = build_summary(agent_id, len(active), mean * penalty)
        logger.debug(
            "Hardened score for %s: mean=%.4f sybil_fraction=%.3f -> %.2f (%s)",
            agent_id, mean, sybil_fraction, summary.summary_value, summary.tier.value,
        )
        return ScoreBreakdown(
            summary=summary,
            weights=weights.as_dict(),
            flags={f.id: weights.flags(f.id) for f in active},
            weighted_mean=mean,
            sybil_fraction=sybil_fraction,
            penalty=penalty,
            now=now,
        )

    def summarize(
        self,
        feedback: list[Feedback],
        corpus: list[Feedback] | None = None,
    ) -> FeedbackSummary:
        """Return the hardened summary for one agent's feedback."""
        return self.breakdown(feedback, corpus).summary

    def compare(
        self,
        feedback: list[Feedback],
        corpus: list[Feedback] | None = None,
    ) -> ScoreComparison:
        """Score one agent naively and hardened, and report the difference."""
        naive = compute_naive_summary(feedback)
        hardened = self.summarize(feedback, corpus)
        return ScoreComparison(
            naive=naive,
            hardened=hardened,
            delta=round(naive.summary_value - hardened.summary_value, 2),
        )

    def summarize_all(self, corpus: list[Feedback]) -> dict[str, FeedbackSummary]:
        """Return a hardened summary for every agent in ``corpus``.

        Every agent is scored against the full corpus, sharing one
        analysis pass.
        """
        return {
            agent_id: self.summarize(entries, corpus)
            for agent_id, entries in group_by_agent(corpus).items()
        }


# ---------------------------------------------------------------------------
# Functional entry points
# ---------------------------------------------------------------------------


def compute_hardened_summary(
    feedback: list[Feedback],
    config: MitigationConfig | None = None,
    corpus: list[Feedback] | None = None,
    now: int | None = None,
) -> FeedbackSummary:
    """Compute one agent's hardened summary.

    Args:
        feedback: Entries for a single agent.
        config: Mitigation configuration (default: all enabled).
        corpus: Full corpus; defaults to ``feedback``.
        now: Reference time in milliseconds; defaults to the newest
            timestamp in the corpus.
    """
    return HardenedEngine(config, now).summarize(feedback, corpus)


def compute_all_hardened_summaries(
    corpus: list[Feedback],
    config: MitigationConfig | None = None,
    now: int | None = None,
) -> dict[str, FeedbackSummary]:
    """Compute hardened summaries for every agent in ``corpus``."""
    return HardenedEngine(config, now).summarize_all(corpus)


def score_breakdown(
    feedback: list[Feedback],
    config: MitigationConfig | None = None,
    corpus: list[Feedback] | None = None,
    now: int | None = None,
) -> ScoreBreakdown:
    """Return one agent's hardened summary with its per-entry weights."""
    return HardenedEngine(config, now).breakdown(feedback, corpus)


def compare_scoring(
    feedback: list[Feedback],
    config: MitigationConfig | None = None,
    corpus: list[Feedback] | None = None,
    now: int | None = None,
) -> ScoreComparison:
    """Score one agent naively and hardened, and report the difference."""
    return HardenedEngine(config, now).compare(feedback, corpus)
