"""Scoring data models: feedback, summaries, tiers, and access decisions.

Defines the core data structures shared by the naive and hardened engines:

- ``Feedback`` -- One immutable rating event from the registry's event log.
- ``FeedbackSummary`` -- Derived per-agent score, tier, and access decision.
- ``TrustTier`` -- Credit-rating-style nine-level ordinal scale (AAA..C).
- ``AccessDecision`` -- Gate derived from the tier.

Tier Mapping:
    score >= 90 -> AAA, >= 80 -> AA, >= 70 -> A, >= 60 -> BBB, >= 50 -> BB,
    >= 40 -> B, >= 30 -> CCC, >= 20 -> CC, otherwise C.

References:
    ERC-8004 ReputationRegistry: ``giveFeedback`` / ``getSummary`` shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# TrustTier and AccessDecision
# ---------------------------------------------------------------------------


class TrustTier(str, Enum):
    """Credit-rating-style trust tiers, AAA (highest) to C (lowest).

    The string value is the tier label so tiers serialize naturally. Use
    :attr:`rank` for ordinal comparisons: C has rank 0 and AAA rank 8.
    """

    AAA = "AAA"
    AA = "AA"
    A = "A"
    BBB = "BBB"
    BB = "BB"
    B = "B"
    CCC = "CCC"
    CC = "CC"
    C = "C"

    @property
    def rank(self) -> int:
        """Ordinal position of the tier (C = 0 ... AAA = 8)."""
        return _TIER_RANKS[self]


class AccessDecision(str, Enum):
    """Access gate derived from a trust tier."""

    FULL_ACCESS = "full_access"
    THROTTLED = "throttled"
    DENIED = "denied"


_TIER_RANKS: dict[TrustTier, int] = {
    TrustTier.C: 0,
    TrustTier.CC: 1,
    TrustTier.CCC: 2,
    TrustTier.B: 3,
    TrustTier.BB: 4,
    TrustTier.BBB: 5,
    TrustTier.A: 6,
    TrustTier.AA: 7,
    TrustTier.AAA: 8,
}


# ---------------------------------------------------------------------------
# Tier boundary constants
# ---------------------------------------------------------------------------

TIER_THRESHOLDS: tuple[tuple[float, TrustTier], ...] = (
    (90.0, TrustTier.AAA),
    (80.0, TrustTier.AA),
    (70.0, TrustTier.A),
    (60.0, TrustTier.BBB),
    (50.0, TrustTier.BB),
    (40.0, TrustTier.B),
    (30.0, TrustTier.CCC),
    (20.0, TrustTier.CC),
    (0.0, TrustTier.C),
)

SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0

# Minimum non-revoked feedback count a host should require before listing.
MIN_FEEDBACK_COUNT: int = 5

# Placeholder agent id used when an empty feedback list carries no agent.
UNKNOWN_AGENT: str = "unknown"

_TIER_DESCRIPTIONS: dict[TrustTier, str] = {
    TrustTier.AAA: "Highest trust, extensively validated",
    TrustTier.AA: "Very high trust, well established",
    TrustTier.A: "High trust, reliable track record",
    TrustTier.BBB: "Moderate trust, generally acceptable",
    TrustTier.BB: "Below average, use with caution",
    TrustTier.B: "Low trust, limited validation",
    TrustTier.CCC: "Very low trust, significant concerns",
    TrustTier.CC: "Near-minimum trust, likely problematic",
    TrustTier.C: "Minimum trust, insufficient data or confirmed issues",
}


def clamp_score(score: float) -> float:
    """Clamp a score into the closed interval [0, 100]."""
    return max(SCORE_MIN, min(SCORE_MAX, score))


def score_to_tier(score: float) -> TrustTier:
    """Map a 0-100 score to a ``TrustTier``.

    The input is clamped to [0, 100] first, so out-of-range values map
    to AAA or C rather than raising.

    Args:
        score: Numeric summary score.

    Returns:
        The highest tier whose threshold the clamped score reaches.
    """
    clamped = clamp_score(score)
    for minimum, tier in TIER_THRESHOLDS:
        if clamped >= minimum:
            return tier
    return TrustTier.C


def tier_to_access_decision(tier: TrustTier) -> AccessDecision:
    """Map a ``TrustTier`` to its ``AccessDecision``.

    AAA/AA/A grant full access, BBB/BB/B are throttled, and CCC/CC/C
    are denied.
    """
    if tier in (TrustTier.AAA, TrustTier.AA, TrustTier.A):
        return AccessDecision.FULL_ACCESS
    if tier in (TrustTier.BBB, TrustTier.BB, TrustTier.B):
        return AccessDecision.THROTTLED
    return AccessDecision.DENIED


def tier_description(tier: TrustTier) -> str:
    """Return a human-readable description of a trust tier."""
    return _TIER_DESCRIPTIONS[tier]


# ---------------------------------------------------------------------------
# Feedback: one rating event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Feedback:
    """A single piece of feedback submitted for an agent or skill.

    Feedback is produced by the ingestion layer and only read by the
    engine. The record is immutable; revocation yields a copy via
    :meth:`with_revoked`.

    Attributes:
        id: Unique feedback identifier.
        agent_id: The rated agent. Agent ids double as the owning
            publisher's address for mutual-rating detection.
        submitter_address: Address of the reviewer (not necessarily
            cryptographically verified).
        value: Rating on a 0-100 scale.
        timestamp: Event time in milliseconds since the epoch.
        revoked: Revoked feedback is excluded from every computation.
        tag1: Optional category tag.
        tag2: Optional secondary tag.
        endpoint: Optional endpoint the feedback relates to.
        sequence_number: Optional position in the source event log.
    """

    id: str
    agent_id: str
    submitter_address: str
    value: float
    timestamp: int
    revoked: bool = False
    tag1: str | None = None
    tag2: str | None = None
    endpoint: str | None = None
    sequence_number: int | None = None

    def with_revoked(self, revoked: bool = True) -> Feedback:
        """Return a copy of this feedback with the revoked flag set."""
        return replace(self, revoked=revoked)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dict using snake_case keys."""
        data: dict[str, Any] = {
            "id": self.id,
            "agent_id": self.agent_id,
            "submitter_address": self.submitter_address,
            "value": self.value,
            "timestamp": self.timestamp,
            "revoked": self.revoked,
        }
        for key in ("tag1", "tag2", "endpoint", "sequence_number"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Feedback:
        """Build a ``Feedback`` from a dict.

        Accepts snake_case keys as produced by :meth:`to_dict` as well as
        the camelCase keys of the on-chain event log (``agentId``,
        ``clientAddress`` or ``submitterAddress``, ``sequenceNumber``).

        Raises:
            KeyError: If a required field is missing.
            ValueError: If ``value`` or ``timestamp`` is not numeric.
        """
        submitter = _first_present(
            data, "submitter_address", "submitterAddress", "clientAddress"
        )
        sequence = _first_present(
            data, "sequence_number", "sequenceNumber", required=False
        )
        return cls(
            id=str(data["id"]),
            agent_id=str(_first_present(data, "agent_id", "agentId")),
            submitter_address=str(submitter),
            value=float(data["value"]),
            timestamp=int(data["timestamp"]),
            revoked=bool(data.get("revoked", False)),
            tag1=data.get("tag1"),
            tag2=data.get("tag2"),
            endpoint=data.get("endpoint"),
            sequence_number=int(sequence) if sequence is not None else None,
        )


def _first_present(
    data: dict[str, Any], *keys: str, required: bool = True
) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    if required:
        raise KeyError(keys[0])
    return None


def active_feedback(feedback: list[Feedback]) -> list[Feedback]:
    """Return the non-revoked entries of ``feedback`` in input order."""
    return [f for f in feedback if not f.revoked]


# ---------------------------------------------------------------------------
# FeedbackSummary: derived per-agent output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeedbackSummary:
    """Aggregated feedback summary for one agent.

    Summaries are derived on demand and never persisted as a source of
    truth. ``summary_value`` is rounded to two decimal places.

    Attributes:
        agent_id: The agent this summary describes.
        feedback_count: Number of non-revoked entries considered.
        summary_value: Score on a 0-100 scale.
        tier: Trust tier derived from ``summary_value``.
        access_decision: Access gate derived from ``tier``.
        summary_value_decimals: Decimal precision of ``summary_value``.
    """

    agent_id: str
    feedback_count: int
    summary_value: float
    tier: TrustTier
    access_decision: AccessDecision
    summary_value_decimals: int = 2

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dict of the summary."""
        return {
            "agent_id": self.agent_id,
            "feedback_count": self.feedback_count,
            "summary_value": self.summary_value,
            "summary_value_decimals": self.summary_value_decimals,
            "tier": self.tier.value,
            "access_decision": self.access_decision.value,
        }


def empty_summary(agent_id: str = UNKNOWN_AGENT) -> FeedbackSummary:
    """Return the canonical summary for an agent with no active feedback."""
    return FeedbackSummary(
        agent_id=agent_id,
        feedback_count=0,
        summary_value=0.0,
        tier=TrustTier.C,
        access_decision=AccessDecision.DENIED,
    )


def build_summary(agent_id: str, feedback_count: int, score: float) -> FeedbackSummary:
    """Clamp, tier, and round a raw score into a ``FeedbackSummary``."""
    clamped = clamp_score(score)
    value = round(clamped, 2)
    # Tier from the unrounded score: 79.996 is A, not AA.
    tier = score_to_tier(clamped)
    return FeedbackSummary(
        agent_id=agent_id,
        feedback_count=feedback_count,
        summary_value=value,
        tier=tier,
        access_decision=tier_to_access_decision(tier),
    )
