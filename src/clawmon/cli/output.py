"""Rich output formatting helpers for the ClawMon CLI.

Tier Color Mapping (by access decision):
    full_access = green, throttled = yellow, denied = bold red
"""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from clawmon.core.mitigations.jaccard import JaccardResult
from clawmon.core.mitigations.graph import GraphAnalysisResult
from clawmon.core.mitigations.sybilrank import SybilRankResult
from clawmon.core.mitigations.temporal import TemporalCorrelationResult
from clawmon.core.mitigations.velocity import BehavioralShift
from clawmon.core.scoring.hardened import ScoreBreakdown, ScoreComparison
from clawmon.core.scoring.models import (
    AccessDecision,
    Feedback,
    FeedbackSummary,
    TrustTier,
    tier_description,
    tier_to_access_decision,
)

_ACCESS_STYLES: dict[AccessDecision, str] = {
    AccessDecision.FULL_ACCESS: "green",
    AccessDecision.THROTTLED: "yellow",
    AccessDecision.DENIED: "bold red",
}

console = Console()


def tier_style(tier: TrustTier) -> str:
    """Return the Rich style string for a trust tier."""
    return _ACCESS_STYLES.get(tier_to_access_decision(tier), "white")


def _tier_text(tier: TrustTier) -> Text:
    return Text(tier.value, style=tier_style(tier))


def _format_time(ms: int | None) -> str:
    if ms is None:
        return "-"
    stamp = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return stamp.strftime("%Y-%m-%d %H:%M:%S UTC")


def print_summaries(summaries: list[FeedbackSummary], mode: str) -> None:
    """Print a ranked table of agent summaries.

    Args:
        summaries: Summaries, already ranked.
        mode: ``"naive"`` or ``"hardened"``, shown in the title.
    """
    if not summaries:
        console.print("[dim]No feedback in snapshot.[/dim]")
        return

    table = Table(title=f"Trust Scores ({mode})", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Agent", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Tier", justify="center")
    table.add_column("Access", justify="center")
    table.add_column("Feedback", justify="right")

    for rank, summary in enumerate(summaries, start=1):
        table.add_row(
            str(rank),
            summary.agent_id,
            f"{summary.summary_value:.2f}",
            _tier_text(summary.tier),
            summary.access_decision.value,
            str(summary.feedback_count),
        )
    console.print(table)

    denied = sum(1 for s in summaries if s.access_decision is AccessDecision.DENIED)
    parts = [f"[bold]{len(summaries)}[/bold] agents scored"]
    if denied:
        parts.append(f"[red]{denied} denied[/red]")
    console.print(" | ".join(parts))


def print_comparisons(comparisons: list[ScoreComparison]) -> None:
    """Print naive versus hardened scores side by side."""
    if not comparisons:
        console.print("[dim]No feedback in snapshot.[/dim]")
        return

    table = Table(title="Naive vs Hardened", show_header=True, header_style="bold")
    table.add_column("Agent", style="bold")
    table.add_column("Naive", justify="right")
    table.add_column("Tier", justify="center")
    table.add_column("Hardened", justify="right")
    table.add_column("Tier", justify="center")
    table.add_column("Delta", justify="right")

    for c in comparisons:
        delta_style = "red" if c.delta > 0 else "dim"
        table.add_row(
            c.naive.agent_id,
            f"{c.naive.summary_value:.2f}",
            _tier_text(c.naive.tier),
            f"{c.hardened.summary_value:.2f}",
            _tier_text(c.hardened.tier),
            Text(f"{c.delta:+.2f}", style=delta_style),
        )
    console.print(table)


def print_breakdown(
    breakdown: ScoreBreakdown,
    naive: FeedbackSummary,
    entries: list[Feedback],
    shift: BehavioralShift,
) -> None:
    """Print one agent's hardened score with per-entry weights and flags."""
    summary = breakdown.summary
    header = Text.assemble(
        ("Agent: ", "bold"), (summary.agent_id, ""),
        ("  Tier: ", "bold"), _tier_text(summary.tier),
        ("  Access: ", "bold"), (summary.access_decision.value, ""),
    )
    console.print(Panel(header, title="Hardened Score"))
    console.print(f"  Hardened Score:  [bold]{summary.summary_value:.2f}[/bold]")
    console.print(f"  Naive Score:     {naive.summary_value:.2f} ({naive.tier.value})")
    console.print(f"  Weighted Mean:   {breakdown.weighted_mean:.2f}")
    console.print(f"  Sybil Fraction:  {breakdown.sybil_fraction:.1%}")
    console.print(f"  Penalty:         x{breakdown.penalty:.3f}")
    console.print(f"  Reference Time:  {_format_time(breakdown.now)}")
    console.print(f"  [dim]{tier_description(summary.tier)}[/dim]")

    table = Table(title="Feedback Weights", show_header=True)
    table.add_column("Feedback", style="bold")
    table.add_column("Submitter")
    table.add_column("Value", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Flags", style="dim")
    for fb in entries:
        flags = breakdown.flags.get(fb.id, frozenset())
        table.add_row(
            fb.id,
            fb.submitter_address,
            f"{fb.value:g}",
            f"{breakdown.weights.get(fb.id, 1.0):.4f}",
            ", ".join(sorted(f.value for f in flags)) or "-",
        )
    console.print(table)

    if shift.shifted:
        console.print(
            f"[yellow]Behavioral shift:[/yellow] recent mean {shift.recent_mean:.1f} "
            f"vs historical {shift.historical_mean:.1f} "
            f"(delta {shift.magnitude:.1f})"
        )
    else:
        console.print("[green]No behavioral shift detected.[/green]")


def print_detection(
    graph: GraphAnalysisResult,
    rank: SybilRankResult,
    jaccard: JaccardResult,
    temporal: TemporalCorrelationResult,
) -> None:
    """Print corpus-wide Sybil detection findings."""
    console.print(Panel("[bold]Corpus-wide Sybil detection[/bold]", title="Detect"))

    if graph.clusters:
        table = Table(title="Mutual-Feedback Clusters", show_header=True)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Members", style="bold red")
        for i, cluster in enumerate(graph.clusters, start=1):
            table.add_row(str(i), ", ".join(sorted(cluster)))
        console.print(table)
    else:
        console.print("[green]No mutual-feedback clusters.[/green]")
    console.print(f"  Mutual pairs: {len(graph.pairs)}")

    console.print(
        f"  SybilRank: {rank.node_count} nodes, {rank.edge_count} edges, "
        f"{rank.iterations_run} rounds, seeds: {', '.join(rank.seeds) or '-'}"
    )
    if rank.flagged_addresses:
        console.print(
            "  Low-trust addresses: "
            f"[red]{', '.join(sorted(rank.flagged_addresses))}[/red]"
        )

    if jaccard.clusters:
        table = Table(title="Coordinated Reviewer Clusters", show_header=True)
        table.add_column("Members", style="bold red")
        table.add_column("Common Agents")
        table.add_column("Similarity", justify="right")
        for cluster in jaccard.clusters:
            table.add_row(
                ", ".join(cluster.addresses),
                ", ".join(cluster.common_agents) or "-",
                f"{cluster.avg_similarity:.2f}",
            )
        console.print(table)
    else:
        console.print("[green]No coordinated reviewer clusters.[/green]")

    for pair in temporal.lockstep_pairs:
        console.print(
            f"  [yellow]Lockstep:[/yellow] {pair.address_a} / {pair.address_b} "
            f"({pair.coincidences} coincidences)"
        )
    for regular in temporal.regular_addresses:
        console.print(
            f"  [yellow]Regular intervals:[/yellow] {regular.address} "
            f"(cv {regular.cv:.3f}, every {regular.avg_interval_ms / 1000:.0f}s)"
        )
    if not temporal.flagged_addresses:
        console.print("[green]No correlated submission timing.[/green]")
