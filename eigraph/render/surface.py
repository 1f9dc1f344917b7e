"""
Scene model shared by every render surface.

The explorer turns its current state (visible set, positions, colors,
highlight, transform) into a `Scene`; surfaces only draw scenes. Opacity and
sizing rules live here so every surface dims and scales the same way.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Protocol

from ..colors import ColorMapper
from ..interaction import IDENTITY, Tooltip, ZoomTransform
from ..models import Edge, Node, SelectionState, SurfaceSize, edge_width, node_radius

NODE_OPACITY_DIM = 0.3
EDGE_OPACITY_HIGHLIGHT = 0.8
EDGE_OPACITY_DIM = 0.1
EDGE_OPACITY_DEFAULT = 0.6
STROKE_SELECTED = 4.0
STROKE_DEFAULT = 1.5
ARROW_SIZE = 6.0

STATUS_LOADING = "loading"
STATUS_EMPTY = "empty"
STATUS_READY = "ready"


@dataclass
class NodeSprite:
    id: str
    label: str
    x: float
    y: float
    r: float
    fill: str
    opacity: float = 1.0
    stroke_width: float = STROKE_DEFAULT
    selected: bool = False
    pinned: bool = False


@dataclass
class EdgeSprite:
    id: str
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float
    opacity: float = EDGE_OPACITY_DEFAULT
    arrow: bool = False


@dataclass
class Scene:
    size: SurfaceSize
    status: str = STATUS_READY
    nodes: list[NodeSprite] = field(default_factory=list)
    edges: list[EdgeSprite] = field(default_factory=list)
    show_labels: bool = True
    legend: list[tuple[str, str]] = field(default_factory=list)
    tooltip: Tooltip | None = None
    transform: ZoomTransform = IDENTITY
    running: bool = False
    title: str = ""

    @classmethod
    def loading(cls, size: SurfaceSize, title: str = "") -> "Scene":
        return cls(size=size, status=STATUS_LOADING, title=title)


def build_scene(
    nodes: list[Node],
    edges: list[Edge],
    colors: ColorMapper,
    selection: SelectionState,
    size: SurfaceSize,
    *,
    show_labels: bool = True,
    show_legend: bool = True,
    tooltip: Tooltip | None = None,
    transform: ZoomTransform = IDENTITY,
    running: bool = False,
    title: str = "",
) -> Scene:
    scene = Scene(
        size=size,
        status=STATUS_READY if nodes else STATUS_EMPTY,
        show_labels=show_labels,
        legend=colors.legend() if show_legend else [],
        tooltip=tooltip,
        transform=transform,
        running=running,
        title=title,
    )
    if not nodes:
        return scene

    dimming = selection.has_selection
    hl_nodes = selection.highlighted_node_ids
    hl_edges = selection.highlighted_edge_ids

    index: dict[str, NodeSprite] = {}
    for n in nodes:
        sprite = NodeSprite(
            id=n.id,
            label=n.name,
            x=float(n.x or 0.0),
            y=float(n.y or 0.0),
            r=node_radius(n),
            fill=colors.node_color(n),
            opacity=1.0 if not dimming or n.id in hl_nodes else NODE_OPACITY_DIM,
            selected=n.id == selection.selected_node_id,
            pinned=n.is_pinned,
        )
        if sprite.selected:
            sprite.stroke_width = STROKE_SELECTED
        index[n.id] = sprite
        scene.nodes.append(sprite)

    for e in edges:
        a = index.get(e.source)
        b = index.get(e.target)
        if a is None or b is None:
            continue
        if not dimming:
            opacity = EDGE_OPACITY_DEFAULT
        else:
            opacity = EDGE_OPACITY_HIGHLIGHT if e.id in hl_edges else EDGE_OPACITY_DIM
        x2, y2 = b.x, b.y
        if e.is_directional:
            # stop at the target's rim so the arrowhead stays visible
            x2, y2 = _shorten(a.x, a.y, b.x, b.y, b.r + 2)
        scene.edges.append(
            EdgeSprite(
                id=e.id,
                source=e.source,
                target=e.target,
                x1=a.x,
                y1=a.y,
                x2=x2,
                y2=y2,
                color=colors.edge_color(e),
                width=edge_width(e),
                opacity=opacity,
                arrow=e.is_directional,
            )
        )
    return scene


def _shorten(x1: float, y1: float, x2: float, y2: float, by: float) -> tuple[float, float]:
    dx, dy = x2 - x1, y2 - y1
    dist = math.hypot(dx, dy)
    if dist <= by or dist == 0:
        return x2, y2
    t = (dist - by) / dist
    return x1 + dx * t, y1 + dy * t


def scene_bounds(scene: Scene, pad: float = 0.0) -> tuple[float, float, float, float]:
    """(min_x, min_y, max_x, max_y) over node discs, or the surface when empty."""
    if not scene.nodes:
        return (0.0, 0.0, scene.size.width, scene.size.height)
    return (
        min(s.x - s.r for s in scene.nodes) - pad,
        min(s.y - s.r for s in scene.nodes) - pad,
        max(s.x + s.r for s in scene.nodes) + pad,
        max(s.y + s.r for s in scene.nodes) + pad,
    )


class Overlay:
    """Tooltip and legend layer owned by one surface.

    Created with the surface and removed with it; there is no shared,
    process-wide overlay.
    """

    def __init__(self) -> None:
        self.tooltip: Tooltip | None = None
        self.legend: list[tuple[str, str]] = []
        self.attached = True

    def update(self, scene: Scene) -> None:
        if not self.attached:
            return
        self.tooltip = scene.tooltip
        self.legend = list(scene.legend)

    def remove(self) -> None:
        self.tooltip = None
        self.legend = []
        self.attached = False


class RenderSurface(Protocol):
    overlay: Overlay

    @property
    def alive(self) -> bool:
        ...

    def draw(self, scene: Scene) -> None:
        ...

    def destroy(self) -> None:
        ...


class BaseSurface:
    """Liveness and overlay bookkeeping; subclasses implement `render`."""

    def __init__(self) -> None:
        self.overlay = Overlay()
        self.frames_drawn = 0
        self.last_scene: Scene | None = None
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def draw(self, scene: Scene) -> None:
        # ticks delivered after teardown are dropped
        if not self._alive:
            return
        self.overlay.update(scene)
        self.last_scene = scene
        self.render(scene)
        self.frames_drawn += 1

    def render(self, scene: Scene) -> None:
        raise NotImplementedError

    def destroy(self) -> None:
        if not self._alive:
            return
        self._alive = False
        self.overlay.remove()
