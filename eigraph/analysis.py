"""
Graph analytics over a loaded payload.

- degree/cluster enrichment for the centrality and cluster color schemes
- ego subgraph around one node
- simple path search between two nodes
- summary statistics
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Iterable

from .models import Edge, GraphData, Node

logger = logging.getLogger(__name__)


def adjacency(nodes: Iterable[Node], edges: Iterable[Edge]) -> dict[str, set[str]]:
    """Undirected neighbor sets; self-loops are ignored."""
    adj: dict[str, set[str]] = {n.id: set() for n in nodes}
    for e in edges:
        if e.source == e.target or e.source not in adj or e.target not in adj:
            continue
        adj[e.source].add(e.target)
        adj[e.target].add(e.source)
    return adj


def compute_degrees(nodes: list[Node], edges: list[Edge]) -> dict[str, int]:
    """Incident edge count per node (parallel edges each count)."""
    degree: Counter[str] = Counter({n.id: 0 for n in nodes})
    for e in edges:
        degree[e.source] += 1
        if e.target != e.source:
            degree[e.target] += 1
    return dict(degree)


def label_propagation_clusters(nodes: list[Node], edges: list[Edge], *, max_iter: int = 20) -> dict[str, int]:
    """Deterministic label propagation on the undirected graph.

    Returns node id -> cluster index; cluster 0 is the largest community.
    """
    adj = adjacency(nodes, edges)
    order = sorted(adj)
    labels: dict[str, str] = {n: n for n in order}

    for _ in range(max(1, max_iter)):
        changed = 0
        for n in order:
            nbrs = adj[n]
            if not nbrs:
                continue
            counts: Counter[str] = Counter(labels[x] for x in nbrs)
            best_count = max(counts.values())
            best = min(lab for lab, c in counts.items() if c == best_count)
            if best != labels[n]:
                labels[n] = best
                changed += 1
        if changed == 0:
            break

    groups: dict[str, list[str]] = defaultdict(list)
    for node_id, lab in labels.items():
        groups[lab].append(node_id)

    ordered = sorted(groups.values(), key=lambda ns: (-len(ns), ns[0]))
    return {node_id: idx for idx, members in enumerate(ordered) for node_id in members}


def annotate(graph: GraphData) -> GraphData:
    """Fill `metadata.degree` / `metadata.cluster` where the payload left them out.

    Values already present in the payload win.
    """
    need_degree = any("degree" not in n.metadata for n in graph.nodes)
    need_cluster = any("cluster" not in n.metadata for n in graph.nodes)
    degrees = compute_degrees(graph.nodes, graph.edges) if need_degree else {}
    clusters = label_propagation_clusters(graph.nodes, graph.edges) if need_cluster else {}

    for node in graph.nodes:
        if need_degree:
            node.metadata.setdefault("degree", degrees.get(node.id, 0))
        if need_cluster:
            node.metadata.setdefault("cluster", clusters.get(node.id, 0))
    if need_cluster:
        logger.debug("Computed %d clusters", len(set(clusters.values())))
    return graph


def ego_subgraph(graph: GraphData, center: str, depth: int = 1) -> GraphData:
    """Nodes within `depth` hops of `center` (either direction) and the edges between them."""
    index = graph.node_index()
    if center not in index:
        raise KeyError(center)

    adj = adjacency(graph.nodes, graph.edges)
    dist = {center: 0}
    queue = deque([center])
    while queue:
        cur = queue.popleft()
        if dist[cur] >= depth:
            continue
        for nbr in sorted(adj[cur]):
            if nbr not in dist:
                dist[nbr] = dist[cur] + 1
                queue.append(nbr)

    nodes = [n for n in graph.nodes if n.id in dist]
    edges = [e for e in graph.edges if e.source in dist and e.target in dist]
    return GraphData(nodes=nodes, edges=edges)


@dataclass
class GraphPath:
    node_ids: list[str]
    edges: list[Edge]

    @property
    def length(self) -> int:
        return len(self.edges)

    @property
    def weakest_strength(self) -> float:
        return min((e.strength for e in self.edges), default=0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": self.node_ids,
            "edges": [e.id for e in self.edges],
            "length": self.length,
            "min_strength": self.weakest_strength,
        }


def find_paths(graph: GraphData, source: str, target: str, *, max_depth: int = 3) -> list[GraphPath]:
    """All simple paths from `source` to `target` with at most `max_depth` edges.

    Edges are walked in either direction. Shortest paths first, then by node ids.
    """
    index = graph.node_index()
    for node_id in (source, target):
        if node_id not in index:
            raise KeyError(node_id)
    if source == target:
        return [GraphPath([source], [])]

    incident: dict[str, list[Edge]] = defaultdict(list)
    for e in graph.edges:
        if e.source == e.target:
            continue
        incident[e.source].append(e)
        incident[e.target].append(e)

    found: list[GraphPath] = []

    def walk(cur: str, trail: list[str], used: list[Edge]) -> None:
        if len(used) >= max_depth:
            return
        for e in incident.get(cur, []):
            nxt = e.other_end(cur)
            if nxt in trail:
                continue
            if nxt == target:
                found.append(GraphPath(trail + [nxt], used + [e]))
                continue
            walk(nxt, trail + [nxt], used + [e])

    walk(source, [source], [])
    found.sort(key=lambda p: (p.length, p.node_ids, [e.id for e in p.edges]))
    return found


@dataclass
class GraphStats:
    node_count: int = 0
    edge_count: int = 0
    node_types: dict[str, int] = field(default_factory=dict)
    edge_types: dict[str, int] = field(default_factory=dict)
    risk_levels: dict[str, int] = field(default_factory=dict)
    average_strength: float = 0.0
    isolated_nodes: int = 0
    top_degree: list[tuple[str, str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "node_types": self.node_types,
            "edge_types": self.edge_types,
            "risk_levels": self.risk_levels,
            "average_strength": round(self.average_strength, 3),
            "isolated_nodes": self.isolated_nodes,
            "top_degree": [{"id": i, "name": n, "degree": d} for i, n, d in self.top_degree],
        }


def graph_stats(graph: GraphData, *, top: int = 10) -> GraphStats:
    degrees = compute_degrees(graph.nodes, graph.edges)
    names = {n.id: n.name for n in graph.nodes}
    ranked = sorted(degrees.items(), key=lambda kv: (-kv[1], kv[0]))

    strengths = [e.strength for e in graph.edges]
    return GraphStats(
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        node_types=dict(sorted(Counter(n.type for n in graph.nodes).items())),
        edge_types=dict(sorted(Counter(e.type for e in graph.edges).items())),
        risk_levels=dict(sorted(Counter(n.risk_level or "low" for n in graph.nodes).items())),
        average_strength=(sum(strengths) / len(strengths)) if strengths else 0.0,
        isolated_nodes=sum(1 for d in degrees.values() if d == 0),
        top_degree=[(i, names[i], d) for i, d in ranked[: max(0, top)] if d > 0],
    )
