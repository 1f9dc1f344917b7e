"""Live command - animate the layout in the terminal until it settles."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.live import Live

from ..adapter import load_payload
from ..config import ExplorerConfig
from ..events import Event, EventKind
from ..explorer import GraphExplorer
from ..render import TerminalSurface
from ..scheduler import RealtimeFrameScheduler
from .render_cmd import make_bus


def run_live(
    payload_path: Path,
    config: ExplorerConfig,
    *,
    fps: float = 30.0,
    max_frames: int | None = None,
    select: str | None = None,
    cols: int = 100,
    rows: int = 30,
    strict: bool = False,
    event_log: Path | None = None,
    console: Console | None = None,
    scheduler: RealtimeFrameScheduler | None = None,
) -> int:
    """
    Run the simulation against the wall clock, repainting once per tick.

    Blocks until the layout settles, `max_frames` is reached, or Ctrl+C.
    The explorer is destroyed on the way out, cancelling any queued frame.
    """
    console = console or Console()
    graph = load_payload(payload_path, strict=strict)
    scheduler = scheduler or RealtimeFrameScheduler(fps=fps)
    surface = TerminalSurface(cols=cols, rows=rows, console=console)
    explorer = GraphExplorer(
        config,
        surface=surface,
        scheduler=scheduler,
        bus=make_bus(event_log),
        title=payload_path.stem,
    )
    explorer.mount()

    frames = 0
    with Live(surface.renderable, console=console, auto_refresh=False, transient=False) as live:

        def repaint(_event: Event) -> None:
            live.update(surface.renderable, refresh=True)

        explorer.bus.subscribe(repaint, EventKind.POSITIONS_UPDATED)
        explorer.bus.subscribe(repaint, EventKind.SIMULATION_SETTLED)

        try:
            explorer.load(graph)
            if select:
                explorer.interaction.click_node(select)
            live.update(surface.renderable, refresh=True)
            frames = scheduler.run(max_frames=max_frames)
        except KeyboardInterrupt:
            scheduler.stop()
        finally:
            ticks = explorer.simulation.tick_count if explorer.simulation else 0
            explorer.destroy()

    Console(stderr=True).print(f"[dim]{frames} frames, {ticks} ticks[/dim]")
    return 0
