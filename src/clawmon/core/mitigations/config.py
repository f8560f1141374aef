"""Mitigation configuration: one frozen record per detection algorithm.

Each mitigation can be enabled or disabled independently. Two named
configurations make naive and hardened behaviour reproducible:

- ``DEFAULT_MITIGATION_CONFIG`` -- every mitigation on, recommended values.
- ``DISABLED_MITIGATION_CONFIG`` -- every mitigation off (naive baseline).

Configurations are immutable; derive variants with :meth:`MitigationConfig.only`,
:meth:`MitigationConfig.without`, or :func:`dataclasses.replace`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

from clawmon.exceptions import ConfigError

MS_PER_SECOND: int = 1_000
MS_PER_HOUR: int = 3_600_000
MS_PER_DAY: int = 86_400_000


class SeedStrategy(str, Enum):
    """How SybilRank distributes the initial trust budget over seeds."""

    UNIFORM = "uniform"
    DEGREE_WEIGHTED = "degree_weighted"


def _check_unit(owner: str, name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConfigError(
            f"{owner}.{name} must be numeric, got {type(value).__name__}"
        )
    if value < 0.0 or value > 1.0:
        raise ConfigError(f"{owner}.{name} must be in [0, 1], got {value}")


def _check_positive(owner: str, name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConfigError(
            f"{owner}.{name} must be numeric, got {type(value).__name__}"
        )
    if value <= 0:
        raise ConfigError(f"{owner}.{name} must be positive, got {value}")


def _check_count(owner: str, name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(
            f"{owner}.{name} must be an integer, got {type(value).__name__}"
        )
    if value < 0:
        raise ConfigError(f"{owner}.{name} must be non-negative, got {value}")


# ---------------------------------------------------------------------------
# Per-mitigation records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GraphAnalysisConfig:
    """Mutual-feedback pair and Sybil cluster detection.

    Attributes:
        enabled: Whether the mitigation runs.
        discount_factor: Weight given to flagged feedback (0.1 = 90% off).
            Also drives the post-hoc Sybil-fraction penalty.
    """

    enabled: bool = True
    discount_factor: float = 0.1

    def validate(self) -> None:
        _check_unit("graph_analysis", "discount_factor", self.discount_factor)


@dataclass(frozen=True)
class VelocityConfig:
    """Sliding-window burst detection on one agent's feedback."""

    enabled: bool = True
    max_in_window: int = 10
    window_ms: int = 60 * MS_PER_SECOND
    discount_factor: float = 0.5

    def validate(self) -> None:
        _check_count("velocity_check", "max_in_window", self.max_in_window)
        _check_positive("velocity_check", "window_ms", self.window_ms)
        _check_unit("velocity_check", "discount_factor", self.discount_factor)


@dataclass(frozen=True)
class TemporalDecayConfig:
    """Exponential recency weighting with a configurable half-life."""

    enabled: bool = True
    half_life_ms: int = MS_PER_DAY

    def validate(self) -> None:
        _check_positive("temporal_decay", "half_life_ms", self.half_life_ms)


@dataclass(frozen=True)
class SubmitterWeightingConfig:
    """Discount for the most recently joined fraction of submitters."""

    enabled: bool = True
    recent_threshold: float = 0.2
    discount_factor: float = 0.2

    def validate(self) -> None:
        _check_unit("submitter_weighting", "recent_threshold", self.recent_threshold)
        _check_unit("submitter_weighting", "discount_factor", self.discount_factor)


@dataclass(frozen=True)
class AnomalyConfig:
    """Burst of brand-new submitters inside a short window."""

    enabled: bool = True
    max_new_in_window: int = 5
    window_ms: int = 60 * MS_PER_SECOND
    discount_factor: float = 0.1

    def validate(self) -> None:
        _check_count("anomaly_detection", "max_new_in_window", self.max_new_in_window)
        _check_positive("anomaly_detection", "window_ms", self.window_ms)
        _check_unit("anomaly_detection", "discount_factor", self.discount_factor)


@dataclass(frozen=True)
class SybilRankConfig:
    """Seed-trust power iteration over the feedback graph."""

    enabled: bool = True
    iterations: int = 10
    trust_threshold: float = 0.2
    discount_factor: float = 0.1
    seed_strategy: SeedStrategy = SeedStrategy.DEGREE_WEIGHTED

    def validate(self) -> None:
        _check_count("sybil_rank", "iterations", self.iterations)
        _check_positive("sybil_rank", "trust_threshold", self.trust_threshold)
        _check_unit("sybil_rank", "trust_threshold", self.trust_threshold)
        _check_unit("sybil_rank", "discount_factor", self.discount_factor)
        if not isinstance(self.seed_strategy, SeedStrategy):
            raise ConfigError(
                f"sybil_rank.seed_strategy must be one of "
                f"{[s.value for s in SeedStrategy]}, got {self.seed_strategy!r}"
            )


@dataclass(frozen=True)
class JaccardConfig:
    """Behavioural-overlap clustering of reviewers."""

    enabled: bool = True
    similarity_threshold: float = 0.7
    min_cluster_size: int = 3
    min_agents_reviewed: int = 2
    discount_factor: float = 0.15

    def validate(self) -> None:
        _check_unit("jaccard_similarity", "similarity_threshold", self.similarity_threshold)
        _check_count("jaccard_similarity", "min_cluster_size", self.min_cluster_size)
        _check_count("jaccard_similarity", "min_agents_reviewed", self.min_agents_reviewed)
        _check_unit("jaccard_similarity", "discount_factor", self.discount_factor)


@dataclass(frozen=True)
class TemporalCorrelationConfig:
    """Lockstep timing and regular-interval bot detection."""

    enabled: bool = True
    lockstep_window_ms: int = 5 * MS_PER_SECOND
    min_lockstep_events: int = 3
    regularity_threshold: float = 0.15
    min_feedback_for_regularity: int = 5
    discount_factor: float = 0.2

    def validate(self) -> None:
        owner = "temporal_correlation"
        _check_count(owner, "lockstep_window_ms", self.lockstep_window_ms)
        _check_count(owner, "min_lockstep_events", self.min_lockstep_events)
        _check_unit(owner, "regularity_threshold", self.regularity_threshold)
        _check_count(owner, "min_feedback_for_regularity", self.min_feedback_for_regularity)
        _check_unit(owner, "discount_factor", self.discount_factor)


# ---------------------------------------------------------------------------
# MitigationConfig: the full toggle set
# ---------------------------------------------------------------------------

MITIGATION_NAMES: tuple[str, ...] = (
    "graph_analysis",
    "velocity_check",
    "temporal_decay",
    "submitter_weighting",
    "anomaly_detection",
    "sybil_rank",
    "jaccard_similarity",
    "temporal_correlation",
)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    """Convert camelCase (as used by the dashboard) to snake_case."""
    return _CAMEL_RE.sub("_", name).lower()


@dataclass(frozen=True)
class MitigationConfig:
    """Which mitigations run in the hardened engine, and their parameters.

    Attributes:
        graph_analysis: Sybil farming defense (mutual pairs, clusters).
        velocity_check: General burst defense.
        temporal_decay: Reputation laundering defense.
        submitter_weighting: Attestation poisoning defense.
        anomaly_detection: Sign-up wave defense.
        sybil_rank: Seed-trust propagation.
        jaccard_similarity: Coordinated reviewer-set detection.
        temporal_correlation: Scripted timing detection.
    """

    graph_analysis: GraphAnalysisConfig = GraphAnalysisConfig()
    velocity_check: VelocityConfig = VelocityConfig()
    temporal_decay: TemporalDecayConfig = TemporalDecayConfig()
    submitter_weighting: SubmitterWeightingConfig = SubmitterWeightingConfig()
    anomaly_detection: AnomalyConfig = AnomalyConfig()
    sybil_rank: SybilRankConfig = SybilRankConfig()
    jaccard_similarity: JaccardConfig = JaccardConfig()
    temporal_correlation: TemporalCorrelationConfig = TemporalCorrelationConfig()

    @property
    def any_enabled(self) -> bool:
        """True if at least one mitigation is enabled."""
        return any(getattr(self, name).enabled for name in MITIGATION_NAMES)

    @property
    def enabled_names(self) -> list[str]:
        """Names of the enabled mitigations, in composition order."""
        return [name for name in MITIGATION_NAMES if getattr(self, name).enabled]

    def validate(self) -> None:
        """Raise ``ConfigError`` if any mitigation's parameters are invalid."""
        for name in MITIGATION_NAMES:
            getattr(self, name).validate()

    def _toggled(self, enabled_for: set[str]) -> MitigationConfig:
        changes = {
            name: replace(getattr(self, name), enabled=name in enabled_for)
            for name in MITIGATION_NAMES
        }
        return replace(self, **changes)

    def only(self, *names: str) -> MitigationConfig:
        """Return a copy with only the named mitigations enabled.

        Names may be snake_case or camelCase.

        Raises:
            ConfigError: If a name is not a known mitigation.
        """
        return self._toggled(_resolve_names(names))

    def without(self, *names: str) -> MitigationConfig:
        """Return a copy with the named mitigations disabled."""
        disabled = _resolve_names(names)
        keep = {n for n in MITIGATION_NAMES if getattr(self, n).enabled}
        return self._toggled(keep - disabled)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Return a nested, JSON/YAML-serializable dict."""
        out: dict[str, dict[str, Any]] = {}
        for name in MITIGATION_NAMES:
            section = getattr(self, name)
            entry: dict[str, Any] = {}
            for f in fields(section):
                value = getattr(section, f.name)
                entry[f.name] = value.value if isinstance(value, Enum) else value
            out[name] = entry
        return out

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        base: MitigationConfig | None = None,
    ) -> MitigationConfig:
        """Build a config by overlaying ``data`` on ``base``.

        ``data`` maps mitigation names to parameter mappings. Keys may use
        snake_case or the dashboard's camelCase (``graphAnalysis``,
        ``discountFactor``). Omitted mitigations and parameters keep the
        values from ``base`` (default: ``DEFAULT_MITIGATION_CONFIG``).

        Raises:
            ConfigError: On unknown mitigation or parameter names, or if
                the resulting configuration fails validation.
        """
        config = base if base is not None else cls()
        changes: dict[str, Any] = {}
        for raw_name, params in data.items():
            name = _snake(str(raw_name))
            if name not in MITIGATION_NAMES:
                raise ConfigError(f"Unknown mitigation '{raw_name}'")
            if not isinstance(params, dict):
                raise ConfigError(
                    f"Mitigation '{raw_name}' must map to a table of parameters"
                )
            section = getattr(config, name)
            known = {f.name for f in fields(section)}
            updates: dict[str, Any] = {}
            for raw_key, value in params.items():
                key = _snake(str(raw_key))
                if key not in known:
                    raise ConfigError(f"Unknown parameter '{raw_key}' for '{name}'")
                if key == "seed_strategy":
                    try:
                        value = SeedStrategy(value)
                    except ValueError as exc:
                        raise ConfigError(
                            f"Unknown seed strategy '{value}'"
                        ) from exc
                updates[key] = value
            changes[name] = replace(section, **updates)
        result = replace(config, **changes)
        result.validate()
        return result


def _resolve_names(names: tuple[str, ...] | list[str]) -> set[str]:
    resolved: set[str] = set()
    for raw in names:
        name = _snake(raw).replace("-", "_")
        if name not in MITIGATION_NAMES:
            raise ConfigError(
                f"Unknown mitigation '{raw}'. Valid names: {list(MITIGATION_NAMES)}"
            )
        resolved.add(name)
    return resolved


DEFAULT_MITIGATION_CONFIG: MitigationConfig = MitigationConfig()

DISABLED_MITIGATION_CONFIG: MitigationConfig = DEFAULT_MITIGATION_CONFIG.only()
