"""Render command - lay out a payload and write it as svg, html, text or json."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console

from ..adapter import load_payload
from ..config import ExplorerConfig
from ..events import EventBus, SessionLog
from ..explorer import GraphExplorer
from ..render import HtmlSurface, SvgSurface, TerminalSurface

FORMATS = ("svg", "html", "txt", "json")


def make_bus(event_log: Path | None) -> EventBus:
    bus = EventBus()
    if event_log is not None:
        bus.subscribe(SessionLog(event_log))
    return bus


def layout_payload(explorer: GraphExplorer) -> dict[str, Any]:
    sel = explorer.interaction.selection
    return {
        "layout": explorer.layout.to_dict(),
        "color_scheme": explorer.colors.scheme,
        "filters": explorer.filters.to_dict(),
        "size": {"width": explorer.config.width, "height": explorer.config.height},
        "nodes": [
            {
                "id": n.id,
                "name": n.name,
                "type": n.type,
                "x": round(float(n.x or 0.0), 2),
                "y": round(float(n.y or 0.0), 2),
                "color": explorer.colors.node_color(n),
                "pinned": n.is_pinned,
            }
            for n in explorer.visible.visible_nodes
        ],
        "edges": [e.to_dict() for e in explorer.visible.visible_edges],
        "selection": {
            "node": sel.selected_node_id,
            "highlighted_nodes": sorted(sel.highlighted_node_ids),
            "highlighted_edges": sorted(sel.highlighted_edge_ids),
        },
    }


def render_text(
    payload_path: Path,
    config: ExplorerConfig,
    *,
    fmt: str = "svg",
    select: str | None = None,
    strict: bool = False,
    event_log: Path | None = None,
) -> str:
    """Run the full pipeline once and return the rendered document."""
    if fmt not in FORMATS:
        raise ValueError(f"format must be one of: {', '.join(FORMATS)}")

    graph = load_payload(payload_path, strict=strict)
    surface = {"svg": SvgSurface, "html": HtmlSurface, "txt": TerminalSurface}.get(fmt)
    explorer = GraphExplorer(
        config,
        surface=surface() if surface else None,
        bus=make_bus(event_log),
        title=payload_path.stem,
    )
    try:
        explorer.load(graph)
        if select:
            explorer.interaction.click_node(select)

        if fmt == "json":
            return json.dumps(layout_payload(explorer), indent=2, sort_keys=True) + "\n"
        if fmt == "txt":
            return explorer.surface.export_text()  # type: ignore[union-attr]
        return explorer.surface.document  # type: ignore[union-attr]
    finally:
        explorer.destroy()


def run_render(
    payload_path: Path,
    config: ExplorerConfig,
    *,
    fmt: str = "svg",
    out: Path | None = None,
    select: str | None = None,
    strict: bool = False,
    event_log: Path | None = None,
) -> int:
    console = Console(stderr=True)
    text = render_text(payload_path, config, fmt=fmt, select=select, strict=strict, event_log=event_log)

    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote {fmt} to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    return 0
