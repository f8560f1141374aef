"""``clawmon detect <snapshot>`` -- Corpus-wide Sybil detection report.

Runs the corpus-level detectors without scoring: mutual-feedback pairs and
clusters, SybilRank trust, Jaccard reviewer clusters, and temporal
correlation (lockstep pairs, machine-regular submitters).

Exit Codes:
    0 -- Report displayed (whether or not anything was flagged).
    2 -- Snapshot or configuration could not be loaded.
"""

from __future__ import annotations

import json
import sys

import click

from clawmon.cli.common import config_option, format_option, read_config, read_snapshot
from clawmon.core.scoring.hardened import CorpusAnalysis


def _analysis_to_json(analysis: CorpusAnalysis) -> dict:
    graph = analysis.graph
    rank = analysis.sybil_rank
    jaccard = analysis.jaccard
    temporal = analysis.temporal
    return {
        "mutual_pairs": [
            {
                "address_a": p.address_a,
                "address_b": p.address_b,
                "feedback_ids": list(p.feedback_ids),
            }
            for p in graph.pairs
        ],
        "sybil_clusters": [sorted(c) for c in graph.clusters],
        "sybil_rank": {
            "seeds": list(rank.seeds),
            "flagged_addresses": sorted(rank.flagged_addresses),
            "iterations_run": rank.iterations_run,
            "node_count": rank.node_count,
            "edge_count": rank.edge_count,
        },
        "jaccard": {
            "clusters": [
                {
                    "addresses": list(c.addresses),
                    "common_agents": list(c.common_agents),
                    "avg_similarity": round(c.avg_similarity, 4),
                }
                for c in jaccard.clusters
            ],
            "flagged_addresses": sorted(jaccard.flagged_addresses),
        },
        "temporal": {
            "lockstep_pairs": [
                {
                    "address_a": p.address_a,
                    "address_b": p.address_b,
                    "coincidences": p.coincidences,
                }
                for p in temporal.lockstep_pairs
            ],
            "regular_addresses": [
                {
                    "address": r.address,
                    "cv": round(r.cv, 4),
                    "avg_interval_ms": r.avg_interval_ms,
                }
                for r in temporal.regular_addresses
            ],
            "flagged_addresses": sorted(temporal.flagged_addresses),
        },
    }


@click.command("detect")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@config_option
@format_option
def detect_command(
    snapshot: str,
    config_path: str | None,
    output_format: str,
) -> None:
    """Report Sybil clusters and coordinated behaviour in SNAPSHOT.

    Exit code 0 on success, 2 if the snapshot or config cannot be loaded.
    """
    corpus = read_snapshot(snapshot, output_format)
    config = read_config(config_path, output_format)
    analysis = CorpusAnalysis(corpus, config)

    if output_format == "json":
        click.echo(json.dumps(_analysis_to_json(analysis), indent=2))
    else:
        from clawmon.cli.output import print_detection
        print_detection(
            analysis.graph, analysis.sybil_rank, analysis.jaccard, analysis.temporal
        )

    sys.exit(0)
