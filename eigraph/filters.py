"""Visible-subset computation for a filter state."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import DEFAULT_STRENGTH, Edge, FilterState, Node, clamp


@dataclass
class FilterResult:
    visible_nodes: list[Node] = field(default_factory=list)
    visible_edges: list[Edge] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.visible_nodes

    def node_ids(self) -> set[str]:
        return {n.id for n in self.visible_nodes}


def node_matches(node: Node, state: FilterState, query: str | None = None) -> bool:
    if node.type not in state.node_types:
        return False
    q = state.search_query.lower() if query is None else query
    return not q or q in node.name.lower()


def edge_strength(edge: Edge) -> float:
    strength = edge.strength if edge.strength is not None else DEFAULT_STRENGTH
    return clamp(strength, 0.0, 1.0)


def filter_graph(nodes: list[Node], edges: list[Edge], state: FilterState) -> FilterResult:
    """Return the nodes and edges visible under `state`.

    Pure and order-preserving: one pass over nodes, one pass over edges.
    """
    if not state.node_types:
        return FilterResult()

    query = state.search_query.lower()
    visible_nodes = [n for n in nodes if node_matches(n, state, query)]
    visible_ids = {n.id for n in visible_nodes}

    lo = state.min_link_strength
    hi = state.max_link_strength
    visible_edges = [
        e
        for e in edges
        if e.source in visible_ids
        and e.target in visible_ids
        and e.type in state.link_types
        and lo <= edge_strength(e) <= hi
    ]
    return FilterResult(visible_nodes=visible_nodes, visible_edges=visible_edges)
