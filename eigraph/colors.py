"""Node and edge color schemes."""

from __future__ import annotations

from typing import Iterable

from .models import COLOR_SCHEMES, Edge, Node

NEUTRAL_GRAY = "#6b7280"

NODE_TYPE_COLORS = {
    "enterprise": "#3b82f6",
    "person": "#10b981",
    "product": "#f59e0b",
    "other": NEUTRAL_GRAY,
}

RISK_COLORS = {
    "low": "#10b981",
    "medium": "#f59e0b",
    "high": "#ef4444",
    "critical": "#991b1b",
}

EDGE_TYPE_COLORS = {
    "investment": "#ef4444",
    "guarantee": "#f59e0b",
    "supply": "#3b82f6",
    "partnership": "#10b981",
    "ownership": "#ec4899",
    "employment": "#8b5cf6",
    "risk": "#f97316",
    "other": NEUTRAL_GRAY,
}

# Categorical palette for clusters (wraps modulo its length).
CATEGORY10 = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

# Sequential red ramp, light to saturated.
_REDS = (
    (0xFF, 0xF5, 0xF0),
    (0xFE, 0xE0, 0xD2),
    (0xFC, 0xBB, 0xA1),
    (0xFC, 0x92, 0x72),
    (0xFB, 0x6A, 0x4A),
    (0xEF, 0x3B, 0x2C),
    (0xCB, 0x18, 0x1D),
    (0xA5, 0x0F, 0x15),
    (0x67, 0x00, 0x0D),
)


def _hex(rgb: tuple[float, float, float]) -> str:
    return "#" + "".join(f"{max(0, min(255, round(c))):02x}" for c in rgb)


def interpolate_reds(t: float) -> str:
    """Piecewise-linear sample of the red ramp at t in [0, 1]."""
    t = max(0.0, min(1.0, t))
    n = len(_REDS) - 1
    pos = t * n
    i = min(int(pos), n - 1)
    frac = pos - i
    a, b = _REDS[i], _REDS[i + 1]
    return _hex(tuple(a[k] + (b[k] - a[k]) * frac for k in range(3)))  # type: ignore[arg-type]


def max_degree(nodes: Iterable[Node]) -> int:
    return max((max(1, n.degree) for n in nodes), default=1)


class ColorMapper:
    """Maps nodes to colors under a scheme.

    Centrality is normalized against every loaded node, not just the visible
    ones, so colors stay put while filters change. The context is cached and
    must be refreshed with `set_context` when the payload changes.
    """

    def __init__(self, scheme: str = "type", context: Iterable[Node] = ()) -> None:
        if scheme not in COLOR_SCHEMES:
            raise ValueError(f"color scheme must be one of: {', '.join(COLOR_SCHEMES)}")
        self.scheme = scheme
        self._max_degree = max_degree(context)

    def set_context(self, nodes: Iterable[Node]) -> None:
        self._max_degree = max_degree(nodes)

    def node_color(self, node: Node) -> str:
        return color_of(node, self.scheme, max_degree_hint=self._max_degree)

    def edge_color(self, edge: Edge) -> str:
        return edge_color(edge)

    def legend(self) -> list[tuple[str, str]]:
        return legend_entries(self.scheme)


def color_of(
    node: Node,
    scheme: str,
    all_nodes: Iterable[Node] | None = None,
    *,
    max_degree_hint: int | None = None,
) -> str:
    if scheme == "type":
        return NODE_TYPE_COLORS.get(node.type, NEUTRAL_GRAY)

    if scheme == "centrality":
        top = max_degree_hint if max_degree_hint is not None else max_degree(all_nodes or [node])
        intensity = min(max(1, node.degree) / max(1, top), 1.0)
        return interpolate_reds(0.3 + intensity * 0.7)

    if scheme == "cluster":
        return CATEGORY10[node.cluster % len(CATEGORY10)]

    if scheme == "risk":
        return RISK_COLORS.get(node.risk_level or "low", RISK_COLORS["low"])

    raise ValueError(f"unknown color scheme: {scheme}")


def edge_color(edge: Edge) -> str:
    return EDGE_TYPE_COLORS.get(edge.type, NEUTRAL_GRAY)


def legend_entries(scheme: str) -> list[tuple[str, str]]:
    """(label, color) rows for a scheme's legend."""
    if scheme == "type":
        return [(t, NODE_TYPE_COLORS[t]) for t in ("enterprise", "person", "product")]
    if scheme == "risk":
        return [(r, c) for r, c in RISK_COLORS.items()]
    if scheme == "centrality":
        return [("low degree", interpolate_reds(0.3)), ("high degree", interpolate_reds(1.0))]
    if scheme == "cluster":
        return [(f"cluster {i}", c) for i, c in enumerate(CATEGORY10[:5])]
    return []
