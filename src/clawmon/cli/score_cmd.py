"""``clawmon score <snapshot>`` -- Score and rank every agent in a snapshot.

Runs the hardened engine with the default (or ``--config``) mitigations, or
the naive ERC-8004 mean with ``--naive``, and prints agents ranked by score.

Exit Codes:
    0 -- Scores computed and displayed.
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
from clawmon.core.mitigations.config import MITIGATION_NAMES
from clawmon.core.scoring.api import rank_agents


@click.command("score")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@config_option
@click.option(
    "--naive", is_flag=True, default=False,
    help="Use the unprotected arithmetic mean (no mitigations).",
)
@click.option(
    "--only", "only", multiple=True, metavar="NAME",
    help=f"Enable only this mitigation (repeatable). One of: {', '.join(MITIGATION_NAMES)}.",
)
@now_option
@format_option
def score_command(
    snapshot: str,
    config_path: str | None,
    naive: bool,
    only: tuple[str, ...],
    now: int | None,
    output_format: str,
) -> None:
    """Score and rank every agent in SNAPSHOT.

    SNAPSHOT is a JSON file holding a list of feedback records (or an
    object with a ``feedback`` list).

    Exit code 0 on success, 2 if the snapshot or config cannot be loaded.
    """
    corpus = read_snapshot(snapshot, output_format)
    config = None if naive else read_config(config_path, output_format, only)
    mode = "hardened" if config is not None and config.any_enabled else "naive"
    ranked = rank_agents(corpus, config, now)

    if output_format == "json":
        payload = {
            "mode": mode,
            "mitigations": config.enabled_names if config is not None else [],
            "agents": [s.to_dict() for s in ranked],
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        from clawmon.cli.output import print_summaries
        print_summaries(ranked, mode)

    sys.exit(0)
