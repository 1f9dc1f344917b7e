"""
Force simulation for node positioning.

A velocity-Verlet style integrator: each tick cools `alpha`, lets every force
nudge node velocities (scaled by alpha), then moves unpinned nodes and snaps
pinned ones to their fixed coordinates. Forces are small callables so layouts
can compose them.
"""

from __future__ import annotations

import logging
import math
import random
from collections import Counter
from typing import Callable, Iterable, Protocol

from ..events import (
    Event,
    EventBus,
    EventKind,
    positions_updated,
    simulation_settled,
)
from ..models import Edge, Node
from ..scheduler import FrameScheduler

logger = logging.getLogger(__name__)

ALPHA_MIN = 0.001
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


class Force(Protocol):
    def initialize(self, nodes: list[Node], jiggle: Callable[[], float]) -> None:
        ...

    def __call__(self, alpha: float) -> None:
        ...


class LinkForce:
    """Springs along edges toward `distance`.

    Each endpoint takes a share of the correction inversely proportional to its
    degree, so hubs move less than leaves.
    """

    def __init__(self, edges: Iterable[Edge], *, distance: float = 30.0, strength: float | None = None) -> None:
        self.edges = list(edges)
        self.distance = distance
        self.strength = strength
        self._links: list[tuple[Node, Node, float, float]] = []
        self._jiggle: Callable[[], float] = lambda: 1e-6

    def initialize(self, nodes: list[Node], jiggle: Callable[[], float]) -> None:
        self._jiggle = jiggle
        by_id = {n.id: n for n in nodes}
        count: Counter[str] = Counter()
        for e in self.edges:
            if e.source in by_id and e.target in by_id:
                count[e.source] += 1
                count[e.target] += 1

        self._links = []
        for e in self.edges:
            source = by_id.get(e.source)
            target = by_id.get(e.target)
            if source is None or target is None:
                continue
            bias = count[e.source] / (count[e.source] + count[e.target])
            strength = self.strength
            if strength is None:
                strength = 1.0 / min(count[e.source], count[e.target])
            self._links.append((source, target, bias, strength))

    def __call__(self, alpha: float) -> None:
        for source, target, bias, strength in self._links:
            x = target.x + target.vx - source.x - source.vx  # type: ignore[operator]
            y = target.y + target.vy - source.y - source.vy  # type: ignore[operator]
            if x == 0:
                x = self._jiggle()
            if y == 0:
                y = self._jiggle()
            length = math.sqrt(x * x + y * y)
            length = (length - self.distance) / length * alpha * strength
            x *= length
            y *= length
            target.vx -= x * bias
            target.vy -= y * bias
            source.vx += x * (1 - bias)
            source.vy += y * (1 - bias)


class ManyBodyForce:
    """Pairwise charge between every node pair; negative strength repels."""

    def __init__(self, strength: float = -30.0, *, distance_min: float = 1.0) -> None:
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self._nodes: list[Node] = []
        self._jiggle: Callable[[], float] = lambda: 1e-6

    def initialize(self, nodes: list[Node], jiggle: Callable[[], float]) -> None:
        self._nodes = nodes
        self._jiggle = jiggle

    def __call__(self, alpha: float) -> None:
        nodes = self._nodes
        n = len(nodes)
        for i in range(n):
            a = nodes[i]
            for j in range(i + 1, n):
                b = nodes[j]
                dx = b.x - a.x  # type: ignore[operator]
                dy = b.y - a.y  # type: ignore[operator]
                if dx == 0:
                    dx = self._jiggle()
                if dy == 0:
                    dy = self._jiggle()
                l2 = dx * dx + dy * dy
                if l2 < self.distance_min2:
                    l2 = math.sqrt(self.distance_min2 * l2)
                w = self.strength * alpha / l2
                a.vx += dx * w
                a.vy += dy * w
                b.vx -= dx * w
                b.vy -= dy * w


class CenterForce:
    """Translates the centroid onto (x, y); acts on positions, not velocities."""

    def __init__(self, x: float, y: float, strength: float = 1.0) -> None:
        self.x = x
        self.y = y
        self.strength = strength
        self._nodes: list[Node] = []

    def initialize(self, nodes: list[Node], jiggle: Callable[[], float]) -> None:
        self._nodes = nodes

    def __call__(self, alpha: float) -> None:
        if not self._nodes:
            return
        n = len(self._nodes)
        sx = sum(node.x for node in self._nodes) / n  # type: ignore[misc]
        sy = sum(node.y for node in self._nodes) / n  # type: ignore[misc]
        sx = (sx - self.x) * self.strength
        sy = (sy - self.y) * self.strength
        for node in self._nodes:
            node.x -= sx  # type: ignore[operator]
            node.y -= sy  # type: ignore[operator]


class CollideForce:
    """Keeps circles of `radius(node)` from overlapping."""

    def __init__(self, radius: Callable[[Node], float], *, strength: float = 1.0, iterations: int = 1) -> None:
        self.radius = radius
        self.strength = strength
        self.iterations = max(1, iterations)
        self._nodes: list[Node] = []
        self._radii: list[float] = []
        self._jiggle: Callable[[], float] = lambda: 1e-6

    def initialize(self, nodes: list[Node], jiggle: Callable[[], float]) -> None:
        self._nodes = nodes
        self._radii = [self.radius(n) for n in nodes]
        self._jiggle = jiggle

    def __call__(self, alpha: float) -> None:
        nodes = self._nodes
        radii = self._radii
        n = len(nodes)
        for _ in range(self.iterations):
            for i in range(n):
                a = nodes[i]
                ri = radii[i]
                xi = a.x + a.vx  # type: ignore[operator]
                yi = a.y + a.vy  # type: ignore[operator]
                for j in range(i + 1, n):
                    b = nodes[j]
                    rj = radii[j]
                    r = ri + rj
                    x = xi - b.x - b.vx  # type: ignore[operator]
                    y = yi - b.y - b.vy  # type: ignore[operator]
                    l2 = x * x + y * y
                    if l2 >= r * r:
                        continue
                    if x == 0:
                        x = self._jiggle()
                        l2 += x * x
                    if y == 0:
                        y = self._jiggle()
                        l2 += y * y
                    length = math.sqrt(l2)
                    length = (r - length) / length * self.strength
                    x *= length
                    y *= length
                    share = (rj * rj) / (ri * ri + rj * rj)
                    a.vx += x * share
                    a.vy += y * share
                    b.vx -= x * (1 - share)
                    b.vy -= y * (1 - share)


class PositionForce:
    """Pulls each node toward a per-node target along one axis."""

    def __init__(self, axis: str, target: Callable[[Node], float], strength: float = 0.1) -> None:
        if axis not in ("x", "y"):
            raise ValueError("axis must be 'x' or 'y'")
        self.axis = axis
        self.target = target
        self.strength = strength
        self._nodes: list[Node] = []
        self._targets: list[float] = []

    def initialize(self, nodes: list[Node], jiggle: Callable[[], float]) -> None:
        self._nodes = nodes
        self._targets = [self.target(n) for n in nodes]

    def __call__(self, alpha: float) -> None:
        k = self.strength * alpha
        if self.axis == "x":
            for node, tx in zip(self._nodes, self._targets):
                node.vx += (tx - node.x) * k  # type: ignore[operator]
        else:
            for node, ty in zip(self._nodes, self._targets):
                node.vy += (ty - node.y) * k  # type: ignore[operator]


class Simulation:
    """Iterative layout over a node list, driven one tick per frame.

    Nodes are mutated in place. The simulation is "running" while it has a
    frame outstanding; it stops requesting frames once alpha falls below
    `alpha_min`, unless something raised `alpha_target` (a drag in progress).
    """

    def __init__(
        self,
        nodes: list[Node],
        *,
        center: tuple[float, float] = (0.0, 0.0),
        alpha: float = 1.0,
        alpha_min: float = ALPHA_MIN,
        alpha_decay: float | None = None,
        alpha_target: float = 0.0,
        velocity_decay: float = 0.4,
        seed: int = 0x5EED,
        bus: EventBus | None = None,
    ) -> None:
        self.nodes = nodes
        self.alpha = alpha
        self.alpha_min = alpha_min
        self.alpha_decay = (
            alpha_decay if alpha_decay is not None else 1 - math.pow(alpha_min, 1 / 300)
        )
        self.alpha_target = alpha_target
        self.velocity_decay = velocity_decay
        self.bus = bus or EventBus()
        self.forces: dict[str, Force] = {}
        self.tick_count = 0

        self._rng = random.Random(seed)
        self._scheduler: FrameScheduler | None = None
        self._frame: int | None = None
        self._active = False
        self._destroyed = False

        self._place_unpositioned(center)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def jiggle(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6

    def force(self, name: str, force: Force | None) -> "Simulation":
        """Install (or remove, with None) a named force."""
        if force is None:
            self.forces.pop(name, None)
        else:
            force.initialize(self.nodes, self.jiggle)
            self.forces[name] = force
        return self

    def _place_unpositioned(self, center: tuple[float, float]) -> None:
        cx, cy = center
        for i, node in enumerate(self.nodes):
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if node.x is None or node.y is None:
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                node.x = cx + radius * math.cos(angle)
                node.y = cy + radius * math.sin(angle)
            node.vx = 0.0
            node.vy = 0.0

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    @property
    def settled(self) -> bool:
        return self.alpha < self.alpha_min

    @property
    def is_running(self) -> bool:
        return self._active

    def tick(self, iterations: int = 1) -> "Simulation":
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

            for force in self.forces.values():
                force(self.alpha)

            keep = 1 - self.velocity_decay
            for node in self.nodes:
                if node.fx is None:
                    node.vx *= keep
                    node.x += node.vx  # type: ignore[operator]
                else:
                    node.x = node.fx
                    node.vx = 0.0
                if node.fy is None:
                    node.vy *= keep
                    node.y += node.vy  # type: ignore[operator]
                else:
                    node.y = node.fy
                    node.vy = 0.0
            self.tick_count += 1
        return self

    def positions(self) -> dict[str, tuple[float, float]]:
        return {n.id: (float(n.x or 0.0), float(n.y or 0.0)) for n in self.nodes}

    def run(self, max_ticks: int = 300) -> int:
        """Tick synchronously until settled or `max_ticks`; returns ticks taken."""
        ticks = 0
        while not self.settled and ticks < max_ticks:
            self.tick()
            ticks += 1
        return ticks

    # ------------------------------------------------------------------
    # Frame-driven lifecycle
    # ------------------------------------------------------------------

    def start(self, scheduler: FrameScheduler) -> "Simulation":
        if self._destroyed:
            return self
        self._scheduler = scheduler
        self._active = True
        if self._frame is None:
            self._frame = scheduler.request_frame(self._on_frame)
        return self

    def restart(self, alpha: float | None = None) -> "Simulation":
        if alpha is not None:
            self.alpha = alpha
        if self._scheduler is not None:
            self.start(self._scheduler)
        return self

    def stop(self) -> "Simulation":
        if self._frame is not None and self._scheduler is not None:
            self._scheduler.cancel(self._frame)
        was_running = self._active
        self._frame = None
        self._active = False
        if was_running:
            self.bus.emit(Event(EventKind.SIMULATION_STOPPED, {"tick": self.tick_count}))
        return self

    def destroy(self) -> None:
        """Stop for good; later frame callbacks become no-ops."""
        self.stop()
        self._destroyed = True
        self._scheduler = None

    def _on_frame(self) -> None:
        self._frame = None
        if self._destroyed or not self._active:
            return

        self.tick()
        self.bus.emit(positions_updated(self.tick_count, self.alpha, self.positions()))

        if self.settled:
            logger.debug("Simulation settled after %d ticks", self.tick_count)
            self._active = False
            self.bus.emit(simulation_settled(self.tick_count, self.alpha))
            return

        if self._active and self._scheduler is not None:
            self._frame = self._scheduler.request_frame(self._on_frame)
