"""Tests for lockstep timing and regular-interval detection."""

from __future__ import annotations

import pytest

from clawmon.core.mitigations.config import TemporalCorrelationConfig
from clawmon.core.mitigations.models import MitigationFlag
from clawmon.core.mitigations.temporal import (
    apply_temporal_correlation,
    count_coincidences,
    detect_lockstep_pairs,
    detect_regular_intervals,
    detect_temporal_correlation,
    interval_cv,
    submitter_timelines,
)

T0 = 1_700_000_000_000
SECOND = 1_000
HOUR = 3_600_000


def _timeline(make_feedback, submitter: str, offsets_ms: list[int]) -> list:
    return [
        make_feedback(agent_id=f"agent-{i}", submitter=submitter, timestamp=T0 + off)
        for i, off in enumerate(offsets_ms)
    ]


class TestPrimitives:
    """Tests for timelines, coincidence counting, and the interval CV."""

    def test_timelines_are_sorted_and_skip_revoked(self, make_feedback) -> None:
        corpus = [
            make_feedback(submitter="a", timestamp=T0 + 5),
            make_feedback(submitter="a", timestamp=T0 + 1),
            make_feedback(submitter="a", timestamp=T0 + 3, revoked=True),
        ]
        assert submitter_timelines(corpus) == {"a": [T0 + 1, T0 + 5]}

    def test_count_coincidences(self) -> None:
        assert count_coincidences([0, 10], [3, 4, 100], 5) == 2
        assert count_coincidences([0], [5], 5) == 1
        assert count_coincidences([0], [6], 5) == 0

    def test_interval_cv_of_constant_spacing(self) -> None:
        cv, mean = interval_cv([0, 60, 120, 180])
        assert cv == 0.0
        assert mean == 60.0

    def test_interval_cv_of_human_timing(self) -> None:
        cv, _ = interval_cv([h * HOUR for h in (0, 1, 5, 6, 20)])
        assert cv == pytest.approx(1.0677, abs=1e-3)

    def test_interval_cv_needs_two_intervals(self) -> None:
        assert interval_cv([0, 10]) is None

    def test_interval_cv_of_simultaneous_events(self) -> None:
        assert interval_cv([5, 5, 5]) is None


class TestLockstep:
    """Tests for pairs acting within the lockstep window."""

    def test_batch_fired_pair_is_lockstep(self, make_feedback) -> None:
        corpus = (
            _timeline(make_feedback, "b1", [0, 60 * SECOND, 120 * SECOND])
            + _timeline(make_feedback, "b2", [SECOND, 61 * SECOND, 121 * SECOND])
        )
        pairs = detect_lockstep_pairs(
            submitter_timelines(corpus), TemporalCorrelationConfig()
        )
        assert len(pairs) == 1
        assert (pairs[0].address_a, pairs[0].address_b) == ("b1", "b2")
        assert pairs[0].coincidences == 3

    def test_occasional_overlap_is_not_lockstep(self, make_feedback) -> None:
        b1 = [h * HOUR for h in (0, 1, 5, 6, 20, 21, 30, 50)]
        b2 = [HOUR * h + SECOND for h in (0, 1, 5)]
        b2 += [h * HOUR for h in (10, 13, 27, 40, 60)]
        corpus = _timeline(make_feedback, "b1", b1) + _timeline(make_feedback, "b2", b2)
        result = detect_temporal_correlation(corpus, TemporalCorrelationConfig())
        assert result.lockstep_pairs == ()
        assert result.flagged_addresses == frozenset()

    def test_short_timelines_are_not_compared(self, make_feedback) -> None:
        corpus = (
            _timeline(make_feedback, "b1", [0, 60 * SECOND])
            + _timeline(make_feedback, "b2", [SECOND, 61 * SECOND])
        )
        pairs = detect_lockstep_pairs(
            submitter_timelines(corpus), TemporalCorrelationConfig()
        )
        assert pairs == []


class TestRegularity:
    """Tests for machine-regular interval detection."""

    def test_metronome_submitter_is_flagged(self, make_feedback) -> None:
        corpus = _timeline(make_feedback, "bot", [i * 60 * SECOND for i in range(6)])
        regular = detect_regular_intervals(
            submitter_timelines(corpus), TemporalCorrelationConfig()
        )
        assert len(regular) == 1
        assert regular[0].address == "bot"
        assert regular[0].cv == 0.0
        assert regular[0].avg_interval_ms == 60_000

    def test_human_timing_is_not_flagged(self, make_feedback) -> None:
        corpus = _timeline(make_feedback, "human", [h * HOUR for h in (0, 1, 5, 6, 20)])
        regular = detect_regular_intervals(
            submitter_timelines(corpus), TemporalCorrelationConfig()
        )
        assert regular == []

    def test_too_few_entries_for_regularity(self, make_feedback) -> None:
        corpus = _timeline(make_feedback, "bot", [i * 60 * SECOND for i in range(4)])
        regular = detect_regular_intervals(
            submitter_timelines(corpus), TemporalCorrelationConfig()
        )
        assert regular == []


class TestApplyTemporalCorrelation:
    """Tests for the per-entry discount."""

    def test_flagged_submitter_entries_are_discounted(self, make_feedback) -> None:
        corpus = _timeline(make_feedback, "bot", [i * 60 * SECOND for i in range(6)])
        human = make_feedback(submitter="human", timestamp=T0 + 7 * HOUR)
        corpus.append(human)

        results = {
            r.feedback_id: r
            for r in apply_temporal_correlation(corpus, corpus, TemporalCorrelationConfig())
        }
        assert results[human.id].weight == 1.0
        bot_results = [r for fid, r in results.items() if fid != human.id]
        assert all(r.weight == pytest.approx(0.2) for r in bot_results)
        assert all(r.flags == {MitigationFlag.TEMPORAL_CORRELATION} for r in bot_results)
