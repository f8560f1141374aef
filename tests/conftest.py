"""Shared fixtures for ClawMon tests.

Provides a feedback factory plus the two reference scenarios used across
the scoring, integration, and CLI suites:

- ``gmail_feedback`` -- 30 independent community reviews of one skill,
  spread over a week. Every review comes from a distinct submitter who
  rates nothing else.
- ``sybil_ring_feedback`` -- five colluding publishers (``sybil-1`` ..
  ``sybil-5``) rating each other inside two hours, plus ``sybil-1-alt``
  rating ``sybil-1``.
"""

from __future__ import annotations

import itertools
import json
from collections.abc import Callable
from pathlib import Path

import pytest

from clawmon.core.scoring.models import Feedback

T0 = 1_700_000_000_000
MINUTE = 60_000
DAY = 86_400_000

# Spacing between consecutive gmail review pairs (~11.2 hours).
GMAIL_PAIR_SPACING = 40_320_000
SYBIL_START = T0 + 7 * DAY


@pytest.fixture
def make_feedback() -> Callable[..., Feedback]:
    """Return a factory building ``Feedback`` with sequential ids."""
    counter = itertools.count(1)

    def _make(
        agent_id: str = "agent-x",
        submitter: str = "0xreviewer",
        value: float = 80.0,
        timestamp: int = T0,
        revoked: bool = False,
        fid: str | None = None,
    ) -> Feedback:
        return Feedback(
            id=fid or f"fb-{next(counter):04d}",
            agent_id=agent_id,
            submitter_address=submitter,
            value=value,
            timestamp=timestamp,
            revoked=revoked,
        )

    return _make


@pytest.fixture
def gmail_feedback() -> list[Feedback]:
    """Thirty honest reviews of ``gmail-integration`` with a mean of 82.5.

    Reviews come in 15 pairs ten minutes apart whose values sum to 165,
    so every mitigation treats both members of a pair alike.
    """
    feedback: list[Feedback] = []
    for j in range(15):
        base = T0 + j * GMAIL_PAIR_SPACING
        feedback.append(Feedback(
            id=f"gmail-{2 * j:02d}",
            agent_id="gmail-integration",
            submitter_address=f"c{2 * j:02d}",
            value=float(70 + j),
            timestamp=base,
        ))
        feedback.append(Feedback(
            id=f"gmail-{2 * j + 1:02d}",
            agent_id="gmail-integration",
            submitter_address=f"c{2 * j + 1:02d}",
            value=float(95 - j),
            timestamp=base + 10 * MINUTE,
        ))
    return feedback


@pytest.fixture
def sybil_ring_feedback() -> list[Feedback]:
    """Five Sybils rating every other member once, plus one alt account."""
    members = [f"sybil-{i}" for i in range(1, 6)]
    feedback: list[Feedback] = []
    k = 0
    for submitter in members:
        for agent in members:
            if agent == submitter:
                continue
            feedback.append(Feedback(
                id=f"ring-{k:02d}",
                agent_id=agent,
                submitter_address=submitter,
                value=float(85 + k % 14),
                timestamp=SYBIL_START + k * 5 * MINUTE,
            ))
            k += 1
    feedback.append(Feedback(
        id="ring-alt",
        agent_id="sybil-1",
        submitter_address="sybil-1-alt",
        value=95.0,
        timestamp=SYBIL_START + 100 * MINUTE,
    ))
    return feedback


@pytest.fixture
def scenario_corpus(
    gmail_feedback: list[Feedback],
    sybil_ring_feedback: list[Feedback],
) -> list[Feedback]:
    """The gmail reviews and the Sybil ring in one corpus."""
    return gmail_feedback + sybil_ring_feedback


@pytest.fixture
def snapshot_file(tmp_path: Path, scenario_corpus: list[Feedback]) -> Path:
    """Write the scenario corpus to a JSON snapshot file."""
    path = tmp_path / "feedback.json"
    payload = {"feedback": [fb.to_dict() for fb in scenario_corpus]}
    path.write_text(json.dumps(payload))
    return path
