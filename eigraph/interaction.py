"""
Pointer interaction: selection, hover tooltip, drag/pin and zoom/pan.

The controller owns the transient UI state of one explorer instance. It
reads the visible node/edge sets (rebound on every filter or layout change)
and writes only selection state, node pins and the view transform.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from .events import Event, EventBus, EventKind
from .layout.simulation import Simulation
from .models import Edge, Node, SelectionState, SurfaceSize, clamp
from .scheduler import FrameScheduler

logger = logging.getLogger(__name__)

SCALE_MIN = 0.1
SCALE_MAX = 10.0
ZOOM_STEP = 1.5
TRANSITION_FRAMES = 20
DRAG_ALPHA_TARGET = 0.3


class UnknownNodeError(KeyError):
    """Interaction addressed a node or edge id that is not currently visible."""

    def __str__(self) -> str:
        return f"not a visible node or edge: {self.args[0]}"


@dataclass(frozen=True)
class ZoomTransform:
    """Scene transform: screen = scene * k + (x, y)."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, px: float, py: float) -> tuple[float, float]:
        return (px * self.k + self.x, py * self.k + self.y)

    def invert(self, sx: float, sy: float) -> tuple[float, float]:
        return ((sx - self.x) / self.k, (sy - self.y) / self.k)

    def scaled_about(self, factor: float, cx: float, cy: float) -> "ZoomTransform":
        """Scale by `factor` keeping the screen point (cx, cy) fixed."""
        k = clamp(self.k * factor, SCALE_MIN, SCALE_MAX)
        ratio = k / self.k
        return ZoomTransform(k, cx - (cx - self.x) * ratio, cy - (cy - self.y) * ratio)

    def to_dict(self) -> dict[str, float]:
        return {"k": self.k, "x": self.x, "y": self.y}


IDENTITY = ZoomTransform()


def _lerp(a: ZoomTransform, b: ZoomTransform, t: float) -> ZoomTransform:
    return ZoomTransform(a.k + (b.k - a.k) * t, a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


def _ease(t: float) -> float:
    # cubic in-out
    return 4 * t**3 if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


@dataclass
class Tooltip:
    node_id: str
    x: float
    y: float
    lines: list[str] = field(default_factory=list)


def tooltip_lines(node: Node) -> list[str]:
    lines = [node.name, f"type: {node.type}", f"degree: {node.degree}"]
    if node.risk_level:
        lines.append(f"risk: {node.risk_level}")
    return lines


NodeCallback = Callable[[Node], None]
HoverCallback = Callable[[Node | None], None]
SelectionCallback = Callable[[list[Node], list[Edge]], None]


class InteractionController:
    def __init__(
        self,
        *,
        bus: EventBus | None = None,
        size: SurfaceSize = SurfaceSize(),
        scheduler: FrameScheduler | None = None,
        on_node_click: NodeCallback | None = None,
        on_node_hover: HoverCallback | None = None,
        on_selection_change: SelectionCallback | None = None,
    ) -> None:
        self.bus = bus or EventBus()
        self.size = size
        self.scheduler = scheduler
        self.on_node_click = on_node_click
        self.on_node_hover = on_node_hover
        self.on_selection_change = on_selection_change

        self.selection = SelectionState()
        self.tooltip: Tooltip | None = None
        self.transform = IDENTITY
        self.simulation: Simulation | None = None

        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._incident: dict[str, list[Edge]] = {}
        self._dragging: str | None = None

        self._transition: tuple[ZoomTransform, ZoomTransform, int] | None = None
        self._transition_step = 0
        self._transition_frame: int | None = None

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, nodes: list[Node], edges: list[Edge], simulation: Simulation | None = None) -> None:
        """Attach to a new visible set; drops selection/hover on ids that disappeared."""
        self._nodes = {n.id: n for n in nodes}
        self._edges = {e.id: e for e in edges}
        self._incident = {n.id: [] for n in nodes}
        for e in edges:
            self._incident[e.source].append(e)
            if e.target != e.source:
                self._incident[e.target].append(e)
        self.simulation = simulation
        self._dragging = None

        sel = self.selection
        if sel.selected_node_id is not None and sel.selected_node_id not in self._nodes:
            self._set_selection(None, None)
        elif sel.selected_edge_id is not None and sel.selected_edge_id not in self._edges:
            self._set_selection(None, None)
        else:
            self._recompute_highlight()
        if sel.hovered_node_id is not None and sel.hovered_node_id not in self._nodes:
            self.pointer_out()

    def node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def edge(self, edge_id: str) -> Edge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise UnknownNodeError(edge_id) from None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def click_node(self, node_id: str) -> None:
        node = self.node(node_id)
        self._set_selection(node_id, None)
        if self.on_node_click:
            self.on_node_click(node)

    def click_edge(self, edge_id: str) -> None:
        self.edge(edge_id)
        self._set_selection(None, edge_id)

    def click_background(self) -> None:
        if self.selection.has_selection:
            self._set_selection(None, None)

    def _set_selection(self, node_id: str | None, edge_id: str | None) -> None:
        self.selection.selected_node_id = node_id
        self.selection.selected_edge_id = edge_id
        self._recompute_highlight()

        nodes = [self._nodes[i] for i in sorted(self.selection.highlighted_node_ids)]
        edges = [self._edges[i] for i in sorted(self.selection.highlighted_edge_ids)]
        self.bus.emit(
            Event(
                EventKind.SELECTION_CHANGED,
                {
                    "node_id": node_id,
                    "edge_id": edge_id,
                    "highlighted_nodes": [n.id for n in nodes],
                    "highlighted_edges": [e.id for e in edges],
                },
            )
        )
        if self.on_selection_change:
            self.on_selection_change(nodes, edges)

    def _recompute_highlight(self) -> None:
        sel = self.selection
        node_ids: set[str] = set()
        edge_ids: set[str] = set()
        if sel.selected_node_id is not None:
            node_ids.add(sel.selected_node_id)
            for e in self._incident.get(sel.selected_node_id, []):
                edge_ids.add(e.id)
                node_ids.add(e.other_end(sel.selected_node_id))
        elif sel.selected_edge_id is not None:
            e = self._edges[sel.selected_edge_id]
            edge_ids.add(e.id)
            node_ids.update((e.source, e.target))
        sel.highlighted_node_ids = node_ids
        sel.highlighted_edge_ids = edge_ids

    # ------------------------------------------------------------------
    # Hover
    # ------------------------------------------------------------------

    def pointer_over(self, node_id: str, x: float, y: float) -> Tooltip:
        node = self.node(node_id)
        self.selection.hovered_node_id = node_id
        self.tooltip = Tooltip(node_id, x, y, tooltip_lines(node))
        self.bus.emit(Event(EventKind.HOVER_CHANGED, {"node_id": node_id}))
        if self.on_node_hover:
            self.on_node_hover(node)
        return self.tooltip

    def pointer_move(self, x: float, y: float) -> None:
        if self.tooltip is not None:
            self.tooltip.x = x
            self.tooltip.y = y

    def pointer_out(self) -> None:
        if self.selection.hovered_node_id is None and self.tooltip is None:
            return
        self.selection.hovered_node_id = None
        self.tooltip = None
        self.bus.emit(Event(EventKind.HOVER_CHANGED, {"node_id": None}))
        if self.on_node_hover:
            self.on_node_hover(None)

    # ------------------------------------------------------------------
    # Drag / pin
    # ------------------------------------------------------------------

    def drag_start(self, node_id: str) -> None:
        node = self.node(node_id)
        self._dragging = node_id
        if self.simulation is not None:
            self.simulation.alpha_target = DRAG_ALPHA_TARGET
            self.simulation.restart()
        node.pin(node.x if node.x is not None else 0.0, node.y if node.y is not None else 0.0)

    def drag_move(self, node_id: str, x: float, y: float) -> None:
        """Move to scene coordinates (x, y)."""
        node = self.node(node_id)
        node.pin(x, y)
        node.x, node.y = x, y

    def drag_end(self, node_id: str, *, double: bool = False) -> None:
        node = self.node(node_id)
        self._dragging = None
        if self.simulation is not None:
            self.simulation.alpha_target = 0.0
        if double:
            self.release(node_id)
        else:
            logger.debug("Pinned %s at (%.1f, %.1f)", node_id, node.fx, node.fy)

    def release(self, node_id: str) -> None:
        """Double-click: hand the node back to the simulation."""
        node = self.node(node_id)
        node.unpin()
        if self.simulation is not None and self.simulation.settled:
            self.simulation.restart(alpha=DRAG_ALPHA_TARGET)

    @property
    def dragging(self) -> str | None:
        return self._dragging

    # ------------------------------------------------------------------
    # Zoom / pan
    # ------------------------------------------------------------------

    def pan(self, dx: float, dy: float) -> None:
        self._cancel_transition()
        self._set_transform(replace(self.transform, x=self.transform.x + dx, y=self.transform.y + dy))

    def zoom_at(self, factor: float, cx: float, cy: float) -> None:
        """Immediate zoom around a screen point (wheel/pinch)."""
        self._cancel_transition()
        self._set_transform(self.transform.scaled_about(factor, cx, cy))

    def zoom_in(self) -> None:
        self._animate_to(self._target().scaled_about(ZOOM_STEP, *self.size.center))

    def zoom_out(self) -> None:
        self._animate_to(self._target().scaled_about(1 / ZOOM_STEP, *self.size.center))

    def reset_zoom(self) -> None:
        self._animate_to(IDENTITY)

    def _target(self) -> ZoomTransform:
        return self._transition[1] if self._transition else self.transform

    def _set_transform(self, transform: ZoomTransform) -> None:
        self.transform = transform
        self.bus.emit(Event(EventKind.VIEW_TRANSFORM_CHANGED, transform.to_dict()))

    def _animate_to(self, target: ZoomTransform) -> None:
        if self.scheduler is None:
            self._set_transform(target)
            return
        self._cancel_transition()
        self._transition = (self.transform, target, TRANSITION_FRAMES)
        self._transition_step = 0
        self._transition_frame = self.scheduler.request_frame(self._on_transition_frame)

    def _on_transition_frame(self) -> None:
        self._transition_frame = None
        if self._transition is None:
            return
        start, end, frames = self._transition
        self._transition_step += 1
        t = min(1.0, self._transition_step / frames)
        self._set_transform(end if t >= 1.0 else _lerp(start, end, _ease(t)))
        if t >= 1.0:
            self._transition = None
        elif self.scheduler is not None:
            self._transition_frame = self.scheduler.request_frame(self._on_transition_frame)

    def _cancel_transition(self) -> None:
        if self._transition_frame is not None and self.scheduler is not None:
            self.scheduler.cancel(self._transition_frame)
        self._transition_frame = None
        self._transition = None

    @property
    def transitioning(self) -> bool:
        return self._transition is not None

    def teardown(self) -> None:
        self._cancel_transition()
        self.tooltip = None
        self.simulation = None
        self.on_node_click = self.on_node_hover = self.on_selection_change = None
