"""Character-cell surface rendered with rich (static print or `rich.live.Live`)."""

from __future__ import annotations

import io
import math

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .surface import STATUS_EMPTY, STATUS_LOADING, BaseSurface, Scene

NODE_CHAR = "●"
PINNED_CHAR = "◆"
EDGE_CHAR = "·"
ARROW_CHAR = "▸"

_INSIDE, _LEFT, _RIGHT, _BOTTOM, _TOP = 0, 1, 2, 4, 8

Point = tuple[float, float]


def _outcode(x: float, y: float, xmax: float, ymax: float) -> int:
    code = _INSIDE
    if x < 0:
        code |= _LEFT
    elif x > xmax:
        code |= _RIGHT
    if y < 0:
        code |= _TOP
    elif y > ymax:
        code |= _BOTTOM
    return code


def clip_segment(p0: Point, p1: Point, xmax: float, ymax: float) -> tuple[Point, Point] | None:
    """Cohen-Sutherland clip of a segment to [0, xmax] x [0, ymax]; None when it misses."""
    (x0, y0), (x1, y1) = p0, p1
    code0 = _outcode(x0, y0, xmax, ymax)
    code1 = _outcode(x1, y1, xmax, ymax)
    while True:
        if not (code0 | code1):
            return (x0, y0), (x1, y1)
        if code0 & code1:
            return None
        out = code0 or code1
        if out & _TOP:
            x, y = x0 + (x1 - x0) * (0 - y0) / (y1 - y0), 0.0
        elif out & _BOTTOM:
            x, y = x0 + (x1 - x0) * (ymax - y0) / (y1 - y0), ymax
        elif out & _RIGHT:
            x, y = xmax, y0 + (y1 - y0) * (xmax - x0) / (x1 - x0)
        else:
            x, y = 0.0, y0 + (y1 - y0) * (0 - x0) / (x1 - x0)
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        if out == code0:
            x0, y0 = x, y
            code0 = _outcode(x0, y0, xmax, ymax)
        else:
            x1, y1 = x, y
            code1 = _outcode(x1, y1, xmax, ymax)


class _Canvas:
    def __init__(self, cols: int, rows: int) -> None:
        self.cols = cols
        self.rows = rows
        self.cells: list[list[tuple[str, Style] | None]] = [[None] * cols for _ in range(rows)]

    def put(self, col: int, row: int, ch: str, style: Style) -> None:
        if 0 <= col < self.cols and 0 <= row < self.rows:
            self.cells[row][col] = (ch, style)

    def put_if_empty(self, col: int, row: int, ch: str, style: Style) -> None:
        if 0 <= col < self.cols and 0 <= row < self.rows and self.cells[row][col] is None:
            self.cells[row][col] = (ch, style)

    def line(self, c0: int, r0: int, c1: int, r1: int, ch: str, style: Style) -> None:
        dc, dr = abs(c1 - c0), -abs(r1 - r0)
        sc = 1 if c0 < c1 else -1
        sr = 1 if r0 < r1 else -1
        err = dc + dr
        while True:
            self.put_if_empty(c0, r0, ch, style)
            if c0 == c1 and r0 == r1:
                break
            e2 = 2 * err
            if e2 >= dr:
                err += dr
                c0 += sc
            if e2 <= dc:
                err += dc
                r0 += sr

    def to_text(self) -> Text:
        text = Text()
        for i, row in enumerate(self.cells):
            for cell in row:
                if cell is None:
                    text.append(" ")
                else:
                    text.append(cell[0], style=cell[1])
            if i < self.rows - 1:
                text.append("\n")
        return text


def _style(color: str, opacity: float, *, bold: bool = False) -> Style:
    return Style(color=color, dim=opacity < 0.5, bold=bold)


def scene_to_renderable(scene: Scene, cols: int = 100, rows: int = 30) -> RenderableType:
    title = scene.title or "Relationship graph"
    if scene.status == STATUS_LOADING:
        return Panel(Text("Loading graph…", style="italic"), title=title)
    if scene.status == STATUS_EMPTY:
        return Panel(Text("No data to display", style="yellow"), title=title)

    canvas = _Canvas(cols, rows)
    t = scene.transform
    sx = cols / scene.size.width
    sy = rows / scene.size.height

    def point(x: float, y: float) -> Point | None:
        px, py = t.apply(x, y)
        px, py = px * sx, py * sy
        if not (math.isfinite(px) and math.isfinite(py)):
            return None
        return px, py

    def cell(p: Point) -> tuple[int, int]:
        return math.floor(p[0]), math.floor(p[1])

    # a diverged layout can leave coordinates at nan/inf or far off screen
    for e in scene.edges:
        p0, p1 = point(e.x1, e.y1), point(e.x2, e.y2)
        if p0 is None or p1 is None:
            continue
        style = _style(e.color, e.opacity)
        clipped = clip_segment(p0, p1, cols - 1, rows - 1)
        if clipped is not None:
            canvas.line(*cell(clipped[0]), *cell(clipped[1]), EDGE_CHAR, style)
        if e.arrow and clipped is not None and clipped[1] == p1:
            canvas.put(*cell(p1), ARROW_CHAR, style)

    points = [(n, point(n.x, n.y)) for n in scene.nodes]
    placed = [(n, cell(p)) for n, p in points if p is not None]

    # labels cover edges, nodes cover labels
    if scene.show_labels:
        for n, (c, r) in placed:
            for i, ch in enumerate(n.label[:16]):
                canvas.put(c + 2 + i, r, ch, _style("white", n.opacity, bold=n.selected))

    for n, (c, r) in placed:
        canvas.put(c, r, PINNED_CHAR if n.pinned else NODE_CHAR, _style(n.fill, n.opacity, bold=n.selected))

    parts: list[RenderableType] = [canvas.to_text()]

    if scene.legend:
        legend = Table.grid(padding=(0, 2))
        legend.add_row(*[Text(f"{NODE_CHAR} {label}", style=color) for label, color in scene.legend])
        parts.append(legend)

    if scene.tooltip is not None:
        parts.append(Text(" | ".join(scene.tooltip.lines), style="bold"))

    state = "running" if scene.running else "settled"
    parts.append(
        Text(
            f"{len(scene.nodes)} nodes · {len(scene.edges)} edges · zoom {t.k:.2f}x · {state}",
            style="dim",
        )
    )
    return Panel(Group(*parts), title=title)


class TerminalSurface(BaseSurface):
    """Draws into a rich renderable; printable directly or via `rich.live.Live`."""

    def __init__(self, *, cols: int = 100, rows: int = 30, console: Console | None = None) -> None:
        super().__init__()
        self.cols = cols
        self.rows = rows
        self.console = console
        self.renderable: RenderableType = Text("")

    def render(self, scene: Scene) -> None:
        self.renderable = scene_to_renderable(scene, self.cols, self.rows)

    def __rich__(self) -> RenderableType:
        return self.renderable

    def print(self) -> None:
        (self.console or Console()).print(self.renderable)

    def export_text(self) -> str:
        console = Console(record=True, width=self.cols + 4, color_system=None, file=io.StringIO())
        console.print(self.renderable)
        return console.export_text()

