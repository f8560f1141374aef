"""Sybil-resistance mitigations for the hardened scoring engine.

Every mitigation consumes one agent's feedback (plus, where it needs
corpus-wide context, the full corpus) and returns one ``MitigationResult``
per entry. Corpus-wide detectors expose their analysis separately so a
single pass can be shared across agents.

Submodules:
    config         -- MitigationConfig and per-mitigation records
    models         -- MitigationFlag, MitigationResult
    address_graph  -- Index-based undirected address graph
    graph          -- Mutual-feedback pairs and Sybil clusters
    velocity       -- Velocity spikes, new-submitter bursts, behavioral shift
    recency        -- Temporal decay and new-submitter weighting
    sybilrank      -- Seed-trust propagation
    jaccard        -- Coordinated reviewer clusters
    temporal       -- Lockstep and regular-interval timing
"""

from clawmon.core.mitigations.config import (
    DEFAULT_MITIGATION_CONFIG,
    DISABLED_MITIGATION_CONFIG,
    MITIGATION_NAMES,
    AnomalyConfig,
    GraphAnalysisConfig,
    JaccardConfig,
    MitigationConfig,
    SeedStrategy,
    SubmitterWeightingConfig,
    SybilRankConfig,
    TemporalCorrelationConfig,
    TemporalDecayConfig,
    VelocityConfig,
)
from clawmon.core.mitigations.models import MitigationFlag, MitigationResult
from clawmon.core.mitigations.address_graph import AddressGraph
from clawmon.core.mitigations.graph import (
    GraphAnalysisResult,
    MutualPair,
    analyze_graph,
    apply_graph_analysis,
    detect_mutual_feedback,
    detect_sybil_clusters,
)
from clawmon.core.mitigations.velocity import (
    BehavioralShift,
    apply_anomaly_detection,
    apply_velocity_check,
    detect_behavioral_shift,
    detect_new_submitter_burst,
    detect_velocity_spikes,
)
from clawmon.core.mitigations.recency import (
    apply_submitter_weighting,
    apply_temporal_decay,
    decay_weight,
    first_seen_timestamps,
    identify_new_submitters,
)
from clawmon.core.mitigations.sybilrank import (
    SybilRankResult,
    apply_sybil_rank,
    compute_sybil_rank,
)
from clawmon.core.mitigations.jaccard import (
    JaccardCluster,
    JaccardResult,
    apply_jaccard_mitigation,
    detect_jaccard_clusters,
)
from clawmon.core.mitigations.temporal import (
    TemporalCorrelationResult,
    apply_temporal_correlation,
    detect_temporal_correlation,
)

__all__ = [
    "DEFAULT_MITIGATION_CONFIG",
    "DISABLED_MITIGATION_CONFIG",
    "MITIGATION_NAMES",
    "AddressGraph",
    "AnomalyConfig",
    "BehavioralShift",
    "GraphAnalysisConfig",
    "GraphAnalysisResult",
    "JaccardCluster",
    "JaccardConfig",
    "JaccardResult",
    "MitigationConfig",
    "MitigationFlag",
    "MitigationResult",
    "MutualPair",
    "SeedStrategy",
    "SubmitterWeightingConfig",
    "SybilRankConfig",
    "SybilRankResult",
    "TemporalCorrelationConfig",
    "TemporalCorrelationResult",
    "TemporalDecayConfig",
    "VelocityConfig",
    "analyze_graph",
    "apply_anomaly_detection",
    "apply_graph_analysis",
    "apply_jaccard_mitigation",
    "apply_submitter_weighting",
    "apply_sybil_rank",
    "apply_temporal_correlation",
    "apply_temporal_decay",
    "apply_velocity_check",
    "compute_sybil_rank",
    "decay_weight",
    "detect_behavioral_shift",
    "detect_jaccard_clusters",
    "detect_mutual_feedback",
    "detect_new_submitter_burst",
    "detect_sybil_clusters",
    "detect_temporal_correlation",
    "detect_velocity_spikes",
    "first_seen_timestamps",
    "identify_new_submitters",
]
