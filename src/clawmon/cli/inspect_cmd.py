"""``clawmon inspect <snapshot> <agent-id>`` -- Explain one agent's score.

Prints the hardened summary with the composed weight and flags of every
active feedback entry, plus the recent-versus-historical behavioral shift
used to spot reputation laundering.

Exit Codes:
    0 -- Breakdown displayed.
    2 -- Snapshot or configuration could not be loaded, or the agent has
         no feedback in the snapshot.
"""

from __future__ import annotations

import json
import sys

import click

from clawmon.cli.common import (
    config_option,
    fail,
    format_option,
    now_option,
    read_config,
    read_snapshot,
)
from clawmon.core.mitigations.velocity import BehavioralShift, detect_behavioral_shift
from clawmon.core.scoring.engine import compute_naive_summary
from clawmon.core.scoring.hardened import HardenedEngine, ScoreBreakdown
from clawmon.core.scoring.models import Feedback, active_feedback


def _shift_to_json(shift: BehavioralShift) -> dict:
    return {
        "shifted": shift.shifted,
        "magnitude": round(shift.magnitude, 2),
        "historical_mean": round(shift.historical_mean, 2),
        "recent_mean": round(shift.recent_mean, 2),
    }


def _breakdown_to_json(
    breakdown: ScoreBreakdown,
    entries: list[Feedback],
) -> dict:
    return {
        "summary": breakdown.summary.to_dict(),
        "weighted_mean": round(breakdown.weighted_mean, 4),
        "sybil_fraction": round(breakdown.sybil_fraction, 4),
        "penalty": round(breakdown.penalty, 4),
        "now": breakdown.now,
        "entries": [
            {
                "id": fb.id,
                "submitter_address": fb.submitter_address,
                "value": fb.value,
                "timestamp": fb.timestamp,
                "weight": round(breakdown.weights.get(fb.id, 1.0), 6),
                "flags": sorted(f.value for f in breakdown.flags.get(fb.id, ())),
            }
            for fb in entries
        ],
    }


@click.command("inspect")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.argument("agent_id")
@config_option
@now_option
@format_option
def inspect_command(
    snapshot: str,
    agent_id: str,
    config_path: str | None,
    now: int | None,
    output_format: str,
) -> None:
    """Show per-feedback weights and flags behind AGENT_ID's score.

    Exit code 0 on success, 2 if the agent is not in SNAPSHOT.
    """
    corpus = read_snapshot(snapshot, output_format)
    config = read_config(config_path, output_format)

    feedback = [fb for fb in corpus if fb.agent_id == agent_id]
    if not feedback:
        fail(f"Unknown agent: {agent_id}", output_format)

    breakdown = HardenedEngine(config, now).breakdown(feedback, corpus)
    naive = compute_naive_summary(feedback)
    shift = detect_behavioral_shift(feedback)
    entries = sorted(active_feedback(feedback), key=lambda f: (f.timestamp, f.id))

    if output_format == "json":
        payload = _breakdown_to_json(breakdown, entries)
        payload["naive"] = naive.to_dict()
        payload["behavioral_shift"] = _shift_to_json(shift)
        click.echo(json.dumps(payload, indent=2))
    else:
        from clawmon.cli.output import print_breakdown
        print_breakdown(breakdown, naive, entries, shift)

    sys.exit(0)
