"""
Layout strategies: one per layout type, looked up by name.

Every strategy receives the visible nodes/edges, the layout settings and the
surface size, and returns a configured `Simulation`. Static layouts (circular,
grid) pin every node, so their simulation only keeps positions in place.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections import defaultdict, deque

from ..events import EventBus
from ..models import Edge, LayoutSettings, Node, SurfaceSize, node_radius
from .simulation import (
    CenterForce,
    CollideForce,
    LinkForce,
    ManyBodyForce,
    PositionForce,
    Simulation,
)

# Link force kept by static layouts; it cannot move pinned nodes.
STATIC_LINK_DISTANCE = 50.0
LINK_STRENGTH = 0.1
COLLIDE_PADDING = 2.0


def release_pins(nodes: list[Node]) -> None:
    """Clear fixed positions left over from a previous layout or drag."""
    for node in nodes:
        node.unpin()


class LayoutStrategy(ABC):
    name: str = ""
    static: bool = False

    @abstractmethod
    def configure(
        self,
        simulation: Simulation,
        nodes: list[Node],
        edges: list[Edge],
        settings: LayoutSettings,
        size: SurfaceSize,
    ) -> None:
        """Pre-position nodes and install forces."""

    def compute(
        self,
        nodes: list[Node],
        edges: list[Edge],
        settings: LayoutSettings,
        size: SurfaceSize,
        *,
        bus: EventBus | None = None,
    ) -> Simulation:
        simulation = Simulation(
            nodes,
            center=size.center,
            alpha_decay=settings.alpha_decay,
            velocity_decay=settings.velocity_decay,
            bus=bus,
        )
        if nodes:
            self.configure(simulation, nodes, edges, settings, size)
        return simulation


class ForceLayout(LayoutStrategy):
    name = "force"

    def configure(self, simulation, nodes, edges, settings, size) -> None:
        cx, cy = size.center
        simulation.force("link", LinkForce(edges, distance=settings.link_distance, strength=LINK_STRENGTH))
        simulation.force("charge", ManyBodyForce(settings.charge_strength))
        simulation.force("center", CenterForce(cx, cy))
        simulation.force("collision", CollideForce(lambda n: node_radius(n) + COLLIDE_PADDING))


class HierarchicalLayout(LayoutStrategy):
    """Levels from directed edges: sources on top, each hop one level lower."""

    name = "hierarchical"

    def configure(self, simulation, nodes, edges, settings, size) -> None:
        levels = hierarchy_levels(nodes, edges)
        deepest = max(levels.values(), default=0)
        margin = min(size.height * 0.1, 60.0)
        span = max(1.0, size.height - 2 * margin)
        step = span / deepest if deepest else 0.0

        def level_y(node: Node) -> float:
            if not deepest:
                return size.height / 2
            return margin + levels.get(node.id, 0) * step

        simulation.force("link", LinkForce(edges, distance=settings.link_distance))
        simulation.force("charge", ManyBodyForce(-100.0))
        simulation.force("y", PositionForce("y", level_y, strength=0.3))
        simulation.force("x", PositionForce("x", lambda n: size.width / 2, strength=0.1))


class CircularLayout(LayoutStrategy):
    name = "circular"
    static = True

    def configure(self, simulation, nodes, edges, settings, size) -> None:
        cx, cy = size.center
        radius = min(size.width, size.height) / 3
        count = len(nodes)
        for i, node in enumerate(nodes):
            angle = 2 * math.pi * i / count
            x = cx + radius * math.cos(angle)
            y = cy + radius * math.sin(angle)
            node.pin(x, y)
            node.x, node.y = x, y
        simulation.force("link", LinkForce(edges, distance=STATIC_LINK_DISTANCE, strength=LINK_STRENGTH))


class GridLayout(LayoutStrategy):
    name = "grid"
    static = True

    def configure(self, simulation, nodes, edges, settings, size) -> None:
        cols, rows = grid_shape(len(nodes))
        cell_w = size.width / cols
        cell_h = size.height / rows
        for i, node in enumerate(nodes):
            x = (i % cols) * cell_w + cell_w / 2
            y = (i // cols) * cell_h + cell_h / 2
            node.pin(x, y)
            node.x, node.y = x, y
        simulation.force("link", LinkForce(edges, distance=STATIC_LINK_DISTANCE, strength=LINK_STRENGTH))


def grid_shape(count: int) -> tuple[int, int]:
    """(cols, rows) of the smallest near-square grid holding `count` cells."""
    if count <= 0:
        return (1, 1)
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    return (cols, rows)


def hierarchy_levels(nodes: list[Node], edges: list[Edge]) -> dict[str, int]:
    """BFS depth along edge direction, starting from nodes with no incoming edge.

    Nodes only reachable through cycles are seeded in input order.
    """
    ids = [n.id for n in nodes]
    known = set(ids)
    children: dict[str, list[str]] = defaultdict(list)
    indegree: dict[str, int] = {i: 0 for i in ids}
    for e in edges:
        if e.source in known and e.target in known and e.source != e.target:
            children[e.source].append(e.target)
            indegree[e.target] += 1

    levels: dict[str, int] = {}

    def bfs(roots: list[str]) -> None:
        queue = deque(roots)
        for r in roots:
            levels[r] = 0
        while queue:
            cur = queue.popleft()
            for child in children.get(cur, []):
                if child not in levels:
                    levels[child] = levels[cur] + 1
                    queue.append(child)

    bfs([i for i in ids if indegree[i] == 0])
    for i in ids:
        if i not in levels:
            bfs([i])
    return levels


_LAYOUTS: dict[str, LayoutStrategy] = {}


def register_layout(strategy: LayoutStrategy) -> None:
    _LAYOUTS[strategy.name] = strategy


def get_layout(name: str) -> LayoutStrategy:
    try:
        return _LAYOUTS[name]
    except KeyError:
        raise ValueError(f"unknown layout: {name} (expected one of: {', '.join(list_layouts())})") from None


def list_layouts() -> list[str]:
    return list(_LAYOUTS.keys())


for _strategy in (ForceLayout(), HierarchicalLayout(), CircularLayout(), GridLayout()):
    register_layout(_strategy)


def apply_layout(
    nodes: list[Node],
    edges: list[Edge],
    settings: LayoutSettings,
    size: SurfaceSize,
    *,
    bus: EventBus | None = None,
) -> Simulation:
    """Reset pins, then hand the nodes to the strategy for `settings.type`.

    Circular/grid pins must not leak into force/hierarchical after a switch,
    and a switch also forgets user drags.
    """
    release_pins(nodes)
    return get_layout(settings.type).compute(nodes, edges, settings, size, bus=bus)


def compute_positions(
    nodes: list[Node],
    edges: list[Edge],
    settings: LayoutSettings,
    size: SurfaceSize,
    *,
    max_ticks: int = 300,
) -> dict[str, tuple[float, float]]:
    """One-shot layout: run the simulation to rest and return final positions."""
    simulation = apply_layout(nodes, edges, settings, size)
    if nodes and not get_layout(settings.type).static:
        simulation.run(max_ticks=max_ticks)
    return simulation.positions()
