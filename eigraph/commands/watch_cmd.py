"""Watch command - re-render a payload every time it changes on disk."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..adapter import PayloadError
from ..config import ExplorerConfig
from ..interaction import UnknownNodeError
from ..watcher import run_watch_loop
from .render_cmd import render_text


def run_watch(
    payload_path: Path,
    config: ExplorerConfig,
    *,
    out: Path,
    fmt: str = "html",
    debounce: float | None = None,
    select: str | None = None,
    strict: bool = False,
    event_log: Path | None = None,
) -> int:
    """
    Render once, then again after every debounced change.

    This is a blocking command that runs until interrupted (Ctrl+C). A payload
    that fails to parse mid-edit is reported and the previous output is kept.
    """
    console = Console(stderr=True)
    renders = 0

    def render(path: Path) -> None:
        nonlocal renders
        timestamp = datetime.now().strftime("%H:%M:%S")
        try:
            text = render_text(path, config, fmt=fmt, select=select, strict=strict, event_log=event_log)
        except (PayloadError, UnknownNodeError) as e:
            console.print(f"[dim]{timestamp}[/dim] [red]skipped:[/red] {e}")
            return
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        renders += 1
        console.print(f"[dim]{timestamp}[/dim] rendered {out}")

    render(payload_path)

    console.print(f"[bold]Watching[/bold] {payload_path}")
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    run_watch_loop(payload_path, render, debounce=debounce)

    console.print()
    console.print(f"[bold]Stopped.[/bold] Rendered {renders} times.")
    return 0
