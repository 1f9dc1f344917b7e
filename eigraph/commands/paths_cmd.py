"""Path and ego commands - relationship queries around specific entities."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..adapter import load_payload
from ..analysis import ego_subgraph, find_paths
from ..interaction import UnknownNodeError


def run_paths(
    payload_path: Path,
    source: str,
    target: str,
    *,
    max_depth: int = 3,
    fmt: str = "rich",
    strict: bool = False,
) -> int:
    """List simple paths; exit code 1 when none exist within `max_depth`."""
    graph = load_payload(payload_path, strict=strict)
    try:
        paths = find_paths(graph, source, target, max_depth=max_depth)
    except KeyError as e:
        raise UnknownNodeError(e.args[0]) from None

    if fmt == "json":
        print(json.dumps([p.to_dict() for p in paths], indent=2))
        return 0 if paths else 1

    console = Console()
    if not paths:
        console.print(f"[yellow]No path from {source} to {target} within {max_depth} hops[/yellow]")
        return 1

    names = {n.id: n.name for n in graph.nodes}
    table = Table(title=f"Paths {names[source]} → {names[target]}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Hops", justify="right")
    table.add_column("Path")
    table.add_column("Relations", style="cyan")
    table.add_column("Min strength", justify="right")
    for i, path in enumerate(paths, start=1):
        table.add_row(
            str(i),
            str(path.length),
            " → ".join(names[n] for n in path.node_ids),
            ", ".join(e.type for e in path.edges),
            f"{path.weakest_strength:.2f}",
        )
    console.print(table)
    return 0


def run_ego(
    payload_path: Path,
    center: str,
    *,
    depth: int = 1,
    out: Path | None = None,
    strict: bool = False,
) -> int:
    """Write the ego subgraph around `center` as a payload."""
    console = Console(stderr=True)
    graph = load_payload(payload_path, strict=strict)
    try:
        ego = ego_subgraph(graph, center, depth=depth)
    except KeyError as e:
        raise UnknownNodeError(e.args[0]) from None

    text = json.dumps(ego.to_dict(), indent=2, ensure_ascii=False) + "\n"
    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote {len(ego.nodes)} nodes, {len(ego.edges)} edges to {out}", style="green")
    else:
        print(text, end="")
    return 0
