"""CLI entrypoint for eigraph."""

import functools
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .adapter import PayloadError
from .config import ConfigError, ExplorerConfig, load_config
from .interaction import UnknownNodeError
from .models import COLOR_SCHEMES, EDGE_TYPES, LAYOUT_TYPES

PAYLOAD = click.Path(exists=True, dir_okay=False, path_type=Path)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _guard(fn: Callable[..., int]) -> Callable[..., int]:
    """Turn library errors into a one-line CLI failure (exit code 1)."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> int:
        try:
            return fn(*args, **kwargs)
        except (PayloadError, ConfigError, UnknownNodeError) as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def _view_options(fn: Callable) -> Callable:
    options = [
        click.option("--layout", type=click.Choice(LAYOUT_TYPES), default=None, help="Layout algorithm"),
        click.option("--color-scheme", type=click.Choice(COLOR_SCHEMES), default=None, help="Node coloring"),
        click.option(
            "--node-type",
            "node_types",
            multiple=True,
            help="Show only these node types (repeatable)",
        ),
        click.option(
            "--link-type",
            "link_types",
            type=click.Choice(EDGE_TYPES),
            multiple=True,
            help="Show only these relationship types (repeatable)",
        ),
        click.option("--min-strength", type=click.FloatRange(0, 1), default=None, help="Minimum link strength"),
        click.option("--max-strength", type=click.FloatRange(0, 1), default=None, help="Maximum link strength"),
        click.option("--search", default=None, help="Case-insensitive name filter"),
        click.option("--labels/--no-labels", "show_labels", default=None, help="Draw node labels"),
        click.option("--legend/--no-legend", "show_legend", default=None, help="Draw the color legend"),
        click.option("--width", type=float, default=None, help="Surface width"),
        click.option("--height", type=float, default=None, help="Surface height"),
        click.option("--select", default=None, metavar="NODE_ID", help="Select a node (highlights its neighbors)"),
        click.option(
            "--event-log",
            type=click.Path(dir_okay=False, path_type=Path),
            default=None,
            help="Append explorer events to this JSON Lines file",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _view_config(ctx: click.Context, opts: dict[str, Any]) -> ExplorerConfig:
    base: ExplorerConfig = ctx.obj["config"]
    try:
        return base.with_overrides(
            layout=opts.get("layout"),
            color_scheme=opts.get("color_scheme"),
            node_types=opts.get("node_types") or None,
            link_types=opts.get("link_types") or None,
            min_link_strength=opts.get("min_strength"),
            max_link_strength=opts.get("max_strength"),
            search_query=opts.get("search"),
            show_labels=opts.get("show_labels"),
            show_legend=opts.get("show_legend"),
            width=opts.get("width"),
            height=opts.get("height"),
        )
    except ConfigError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
@click.version_option(__version__, prog_name="eigraph")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Explorer settings file (.toml or .yaml)",
)
@click.option("--verbose", is_flag=True, help="Debug logging on stderr")
@click.option("--strict", is_flag=True, help="Reject payloads with duplicate node ids")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool, strict: bool) -> None:
    """eigraph - Explore enterprise relationship graphs.

    Filter, lay out, color and render node/link payloads as SVG, HTML,
    terminal views or JSON positions.
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path) if config_path else ExplorerConfig()
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e
    ctx.obj["strict"] = strict


@cli.command()
@click.argument("payload", type=PAYLOAD)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["svg", "html", "txt", "json"]),
    default="svg",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@_view_options
@click.pass_context
def render(ctx: click.Context, payload: Path, fmt: str, out: Path | None, **opts: Any) -> None:
    """Lay out a payload and render it.

    Examples:

        eigraph render graph.json --format html --out graph.html

        eigraph render graph.json --layout circular --node-type enterprise

        eigraph render graph.json --format json --select e1
    """
    from .commands.render_cmd import run_render

    config = _view_config(ctx, opts)
    sys.exit(
        _guard(run_render)(
            payload,
            config,
            fmt=fmt,
            out=out,
            select=opts.get("select"),
            strict=ctx.obj["strict"],
            event_log=opts.get("event_log"),
        )
    )


@cli.command()
@click.argument("payload", type=PAYLOAD)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json"]),
    default="md",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option("--top", type=int, default=10, show_default=True, help="How many nodes in the most-connected list")
@click.pass_context
def stats(ctx: click.Context, payload: Path, fmt: str, out: Path | None, top: int) -> None:
    """Summarize node/edge types, risk levels and connectivity."""
    from .commands.stats_cmd import run_stats

    sys.exit(_guard(run_stats)(payload, fmt=fmt, out=out, top=top, strict=ctx.obj["strict"]))


@cli.command()
@click.argument("payload", type=PAYLOAD)
@click.argument("source")
@click.argument("target")
@click.option("--max-depth", type=click.IntRange(1, 6), default=3, show_default=True, help="Maximum hops")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def paths(ctx: click.Context, payload: Path, source: str, target: str, max_depth: int, output_json: bool) -> None:
    """List relationship paths between two entities."""
    from .commands.paths_cmd import run_paths

    fmt = "json" if output_json else "rich"
    sys.exit(_guard(run_paths)(payload, source, target, max_depth=max_depth, fmt=fmt, strict=ctx.obj["strict"]))


@cli.command()
@click.argument("payload", type=PAYLOAD)
@click.argument("center")
@click.option("--depth", type=click.IntRange(1, 5), default=1, show_default=True, help="Hops from the center")
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write payload to a file")
@click.pass_context
def ego(ctx: click.Context, payload: Path, center: str, depth: int, out: Path | None) -> None:
    """Extract the neighborhood of one entity as a new payload."""
    from .commands.paths_cmd import run_ego

    sys.exit(_guard(run_ego)(payload, center, depth=depth, out=out, strict=ctx.obj["strict"]))


@cli.command()
@click.argument("payload", type=PAYLOAD)
@click.option("--fps", type=click.FloatRange(1, 120), default=30.0, show_default=True, help="Frames per second")
@click.option("--max-frames", type=int, default=None, help="Stop after this many frames")
@click.option("--cols", type=int, default=100, show_default=True, help="Canvas columns")
@click.option("--rows", type=int, default=30, show_default=True, help="Canvas rows")
@_view_options
@click.pass_context
def live(
    ctx: click.Context,
    payload: Path,
    fps: float,
    max_frames: int | None,
    cols: int,
    rows: int,
    **opts: Any,
) -> None:
    """Animate the layout in the terminal until it settles."""
    from .commands.live_cmd import run_live

    config = _view_config(ctx, opts)
    sys.exit(
        _guard(run_live)(
            payload,
            config,
            fps=fps,
            max_frames=max_frames,
            select=opts.get("select"),
            cols=cols,
            rows=rows,
            strict=ctx.obj["strict"],
            event_log=opts.get("event_log"),
        )
    )


@cli.command()
@click.argument("payload", type=PAYLOAD)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), required=True, help="Output file")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["svg", "html", "txt", "json"]),
    default="html",
    show_default=True,
    help="Output format",
)
@click.option("--debounce", type=float, default=None, help="Seconds to wait for writes to settle")
@_view_options
@click.pass_context
def watch(ctx: click.Context, payload: Path, out: Path, fmt: str, debounce: float | None, **opts: Any) -> None:
    """Re-render whenever the payload file changes.

    This command runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    config = _view_config(ctx, opts)
    sys.exit(
        _guard(run_watch)(
            payload,
            config,
            out=out,
            fmt=fmt,
            debounce=debounce,
            select=opts.get("select"),
            strict=ctx.obj["strict"],
            event_log=opts.get("event_log"),
        )
    )


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
