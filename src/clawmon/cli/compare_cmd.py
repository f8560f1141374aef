"""``clawmon compare <snapshot>`` -- Naive versus hardened score per agent.

Shows how much the mitigations move each agent's score. Agents are listed
by delta, largest drop first.

Exit Codes:
    0 -- Comparison computed and displayed.
    2 -- Snapshot or configuration could not be loaded.
"""

from __future__ import annotations

import json
import sys

import click

from clawmon.cli.common import (
    config_option,
    format_option,
    now_option,
    read_config,
    read_snapshot,
)
from clawmon.core.scoring.engine import group_by_agent
from clawmon.core.scoring.hardened import HardenedEngine, ScoreComparison


def _comparison_to_json(comparison: ScoreComparison) -> dict:
    return {
        "agent_id": comparison.naive.agent_id,
        "naive": comparison.naive.to_dict(),
        "hardened": comparison.hardened.to_dict(),
        "delta": comparison.delta,
    }


@click.command("compare")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@config_option
@now_option
@format_option
def compare_command(
    snapshot: str,
    config_path: str | None,
    now: int | None,
    output_format: str,
) -> None:
    """Compare naive and hardened scores for every agent in SNAPSHOT.

    Exit code 0 on success, 2 if the snapshot or config cannot be loaded.
    """
    corpus = read_snapshot(snapshot, output_format)
    config = read_config(config_path, output_format)
    engine = HardenedEngine(config, now)

    comparisons = [
        engine.compare(entries, corpus)
        for entries in group_by_agent(corpus).values()
    ]
    comparisons.sort(key=lambda c: (-c.delta, c.naive.agent_id))

    if output_format == "json":
        click.echo(json.dumps([_comparison_to_json(c) for c in comparisons], indent=2))
    else:
        from clawmon.cli.output import print_comparisons
        print_comparisons(comparisons)

    sys.exit(0)
