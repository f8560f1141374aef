"""ClawMon CLI -- Sybil-resistant trust scoring for skill registries.

Entry point for the ``clawmon`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    score    -- Score and rank every agent in a feedback snapshot.
    compare  -- Naive versus hardened score per agent.
    inspect  -- Per-feedback weights and flags behind one agent's score.
    detect   -- Corpus-wide Sybil cluster and coordination report.

Usage::

    clawmon score feedback.json
    clawmon score feedback.json --naive
    clawmon score feedback.json --only graph_analysis --only sybil_rank
    clawmon compare feedback.json --config mitigations.yaml
    clawmon inspect feedback.json gmail-integration --format json
    clawmon detect feedback.json
"""

from __future__ import annotations

import logging

import click

from clawmon import __version__
from clawmon.cli.compare_cmd import compare_command
from clawmon.cli.detect_cmd import detect_command
from clawmon.cli.inspect_cmd import inspect_command
from clawmon.cli.score_cmd import score_command


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose", "-v", is_flag=True, default=False,
    help="Log mitigation details to stderr.",
)
def cli(verbose: bool) -> None:
    """ClawMon: Sybil-resistant trust scoring for agent skill registries.

    Scores registry feedback with the naive ERC-8004 mean or the hardened
    engine, and reports Sybil clusters, coordinated reviewers, and
    scripted submission timing.
    """
    if verbose:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger("clawmon").setLevel(logging.DEBUG)


# Register all subcommands
cli.add_command(score_command)
cli.add_command(compare_command)
cli.add_command(inspect_command)
cli.add_command(detect_command)
