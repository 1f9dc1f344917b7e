"""Stats command - summarize a payload by type, risk and connectivity."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..adapter import load_payload
from ..analysis import GraphStats, graph_stats


def _stats_to_markdown(stats: GraphStats, *, title: str) -> str:
    lines = [f"# {title}", ""]
    lines.append(f"- Nodes: {stats.node_count}")
    lines.append(f"- Edges: {stats.edge_count}")
    lines.append(f"- Average strength: {stats.average_strength:.3f}")
    lines.append(f"- Isolated nodes: {stats.isolated_nodes}")
    lines.append("")

    for heading, counts in (
        ("Node types", stats.node_types),
        ("Edge types", stats.edge_types),
        ("Risk levels", stats.risk_levels),
    ):
        lines.append(f"## {heading}")
        lines.append("")
        lines.append("| Value | Count |")
        lines.append("|---|---:|")
        for key, count in counts.items():
            lines.append(f"| {key} | {count} |")
        lines.append("")

    if stats.top_degree:
        lines.append("## Most connected")
        lines.append("")
        lines.append("| Node | Degree |")
        lines.append("|---|---:|")
        for node_id, name, degree in stats.top_degree:
            lines.append(f"| {name} (`{node_id}`) | {degree} |")
        lines.append("")
    return "\n".join(lines)


def _print_rich(stats: GraphStats, *, title: str) -> None:
    console = Console()
    console.print(f"[bold]{title}[/bold]")
    console.print(
        f"{stats.node_count} nodes, {stats.edge_count} edges, "
        f"avg strength {stats.average_strength:.3f}, {stats.isolated_nodes} isolated"
    )

    for heading, counts in (
        ("Node types", stats.node_types),
        ("Edge types", stats.edge_types),
        ("Risk levels", stats.risk_levels),
    ):
        table = Table(title=heading)
        table.add_column("Value", style="cyan")
        table.add_column("Count", justify="right")
        for key, count in counts.items():
            table.add_row(key, str(count))
        console.print(table)

    if stats.top_degree:
        table = Table(title="Most connected")
        table.add_column("Node", style="cyan")
        table.add_column("Id", style="dim")
        table.add_column("Degree", justify="right")
        for node_id, name, degree in stats.top_degree:
            table.add_row(name, node_id, str(degree))
        console.print(table)


def run_stats(
    payload_path: Path,
    *,
    fmt: str = "md",
    out: Path | None = None,
    top: int = 10,
    strict: bool = False,
) -> int:
    console = Console(stderr=True)
    graph = load_payload(payload_path, strict=strict)
    stats = graph_stats(graph, top=top)
    title = f"Graph stats: {payload_path.name}"

    if fmt == "rich":
        _print_rich(stats, title=title)
        return 0

    if fmt == "json":
        text = json.dumps(stats.to_dict(), indent=2, sort_keys=True) + "\n"
    else:
        text = _stats_to_markdown(stats, title=title)

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote stats to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    return 0
