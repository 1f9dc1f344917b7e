"""Data models for the relationship graph explorer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

# Node types shipped by the data layer; the set is open, unknown types render gray.
NodeType = Literal["enterprise", "person", "product", "other"]

NODE_TYPES: tuple[str, ...] = ("enterprise", "person", "product")

EdgeType = Literal[
    "investment",
    "guarantee",
    "supply",
    "partnership",
    "ownership",
    "employment",
    "risk",
    "other",
]

EDGE_TYPES: tuple[str, ...] = (
    "investment",
    "guarantee",
    "supply",
    "partnership",
    "ownership",
    "employment",
    "risk",
    "other",
)

# Relationship types drawn with an arrowhead.
DIRECTIONAL_EDGE_TYPES: frozenset[str] = frozenset(
    {"investment", "guarantee", "supply", "ownership", "employment"}
)

RiskLevel = Literal["low", "medium", "high", "critical"]

RISK_LEVELS: tuple[str, ...] = ("low", "medium", "high", "critical")

LayoutType = Literal["force", "hierarchical", "circular", "grid"]

LAYOUT_TYPES: tuple[str, ...] = ("force", "hierarchical", "circular", "grid")

ColorScheme = Literal["type", "centrality", "cluster", "risk"]

COLOR_SCHEMES: tuple[str, ...] = ("type", "centrality", "cluster", "risk")

DEFAULT_STRENGTH = 0.5


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


NODE_RADIUS_MIN = 5.0
NODE_RADIUS_MAX = 25.0
EDGE_WIDTH_MIN = 1.0
EDGE_WIDTH_MAX = 8.0


def node_radius(node: "Node") -> float:
    """Drawn radius: scaled by `value` when present, else by degree."""
    if node.value is not None:
        r = 10.0 * math.sqrt(node.value / 100.0)
    else:
        r = 8.0 + 3.0 * math.sqrt(max(1, node.degree))
    return clamp(r, NODE_RADIUS_MIN, NODE_RADIUS_MAX)


def edge_width(edge: "Edge") -> float:
    return clamp(edge.strength * 2.0, EDGE_WIDTH_MIN, EDGE_WIDTH_MAX)


@dataclass
class Node:
    """A graph entity: enterprise, person or product.

    Position fields are session state owned by the layout and interaction code.
    They are never serialized back into a payload.
    """

    id: str
    name: str
    type: str = "other"
    value: float | None = None
    risk_level: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    x: float | None = None  # unset until a layout places the node
    y: float | None = None
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None  # pinned x
    fy: float | None = None  # pinned y

    @property
    def degree(self) -> int:
        try:
            return int(self.metadata.get("degree") or 0)
        except (TypeError, ValueError):
            return 0

    @property
    def cluster(self) -> int:
        try:
            return int(self.metadata.get("cluster") or 0)
        except (TypeError, ValueError):
            return 0

    @property
    def is_pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def pin(self, x: float, y: float) -> None:
        self.fx = x
        self.fy = y

    def unpin(self) -> None:
        self.fx = None
        self.fy = None

    def to_dict(self) -> dict[str, Any]:
        """Payload form (no positions)."""
        d: dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if self.value is not None:
            d["value"] = self.value
        if self.risk_level:
            d["riskLevel"] = self.risk_level
        if self.metadata:
            d["metadata"] = dict(self.metadata)
        return d


@dataclass
class Edge:
    """A typed relationship between two node ids."""

    id: str
    source: str
    target: str
    type: str = "other"
    strength: float = DEFAULT_STRENGTH
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_directional(self) -> bool:
        return self.type in DIRECTIONAL_EDGE_TYPES

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def other_end(self, node_id: str) -> str:
        return self.target if self.source == node_id else self.source

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "strength": self.strength,
        }
        if self.metadata:
            d["metadata"] = dict(self.metadata)
        return d


@dataclass
class GraphData:
    """Canonical nodes and edges; every edge resolves to two nodes."""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def node_index(self) -> dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.edges],
        }


@dataclass
class FilterState:
    """User-controlled visibility criteria.

    `min_link_strength <= max_link_strength` is kept by whoever edits the state;
    the filter trusts it.
    """

    node_types: set[str] = field(default_factory=lambda: set(NODE_TYPES) | {"other"})
    link_types: set[str] = field(default_factory=lambda: set(EDGE_TYPES))
    min_link_strength: float = 0.0
    max_link_strength: float = 1.0
    search_query: str = ""
    show_labels: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_types": sorted(self.node_types),
            "link_types": sorted(self.link_types),
            "min_link_strength": self.min_link_strength,
            "max_link_strength": self.max_link_strength,
            "search_query": self.search_query,
            "show_labels": self.show_labels,
        }


@dataclass
class LayoutSettings:
    """Layout selection; the numeric knobs only apply to the force layout."""

    type: str = "force"
    link_distance: float = 100.0
    charge_strength: float = -300.0
    velocity_decay: float = 0.4
    alpha_decay: float = 0.01

    def __post_init__(self) -> None:
        if self.type not in LAYOUT_TYPES:
            raise ValueError(f"layout type must be one of: {', '.join(LAYOUT_TYPES)}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "link_distance": self.link_distance,
            "charge_strength": self.charge_strength,
            "velocity_decay": self.velocity_decay,
            "alpha_decay": self.alpha_decay,
        }


@dataclass(frozen=True)
class SurfaceSize:
    width: float = 1000.0
    height: float = 700.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)


@dataclass
class SelectionState:
    """Transient selection/hover state plus its derived highlight sets."""

    selected_node_id: str | None = None
    selected_edge_id: str | None = None
    hovered_node_id: str | None = None
    highlighted_node_ids: set[str] = field(default_factory=set)
    highlighted_edge_ids: set[str] = field(default_factory=set)

    @property
    def has_selection(self) -> bool:
        return self.selected_node_id is not None or self.selected_edge_id is not None

    def clear(self) -> None:
        self.selected_node_id = None
        self.selected_edge_id = None
        self.highlighted_node_ids = set()
        self.highlighted_edge_ids = set()
