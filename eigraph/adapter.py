"""Normalize raw graph payloads into canonical nodes and edges."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Iterable

from .models import DEFAULT_STRENGTH, EDGE_TYPES, Edge, GraphData, Node, clamp

logger = logging.getLogger(__name__)


class PayloadError(ValueError):
    """The payload could not be read or has the wrong shape."""


class DuplicateNodeError(PayloadError):
    """Two input nodes share an id (strict mode only)."""


def _endpoint_id(value: Any) -> str | None:
    # Endpoints arrive as ids, or as node objects once a renderer has bound them.
    if isinstance(value, dict):
        value = value.get("id")
    if value is None:
        return None
    return str(value)


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def _node_from_raw(raw: dict[str, Any]) -> Node | None:
    node_id = raw.get("id")
    if node_id is None or str(node_id).strip() == "":
        return None
    node_id = str(node_id)

    value = _as_float(raw.get("value"))
    if value is not None and value < 0:
        value = 0.0

    metadata = raw.get("metadata")
    if not isinstance(metadata, dict):
        metadata = raw.get("properties")
    metadata = dict(metadata) if isinstance(metadata, dict) else {}

    risk = raw.get("riskLevel", raw.get("risk_level"))
    risk = str(risk).strip().lower() if risk else None

    node_type = str(raw.get("type") or "other").strip().lower() or "other"
    name = raw.get("name")
    return Node(
        id=node_id,
        name=str(name) if name not in (None, "") else node_id,
        type=node_type,
        value=value,
        risk_level=risk,
        metadata=metadata,
    )


def _strength_from_raw(raw: dict[str, Any]) -> float:
    strength = _as_float(raw.get("strength"))
    if strength is None:
        strength = _as_float(raw.get("value"))
    if strength is None:
        return DEFAULT_STRENGTH
    return clamp(strength, 0.0, 1.0)


def normalize(
    raw_nodes: Iterable[dict[str, Any]],
    raw_edges: Iterable[dict[str, Any]],
    *,
    strict: bool = False,
) -> GraphData:
    """Build canonical graph data from loosely-typed node/edge records.

    - Missing `type` becomes "other".
    - Duplicate node ids: the first occurrence wins (or `DuplicateNodeError` if strict).
    - Edges whose source or target is not a known node are dropped silently;
      paginated fetches legitimately reference entities outside the page.
    """
    nodes: list[Node] = []
    seen: set[str] = set()

    for raw in raw_nodes or []:
        if not isinstance(raw, dict):
            continue
        node = _node_from_raw(raw)
        if node is None:
            continue
        if node.id in seen:
            if strict:
                raise DuplicateNodeError(f"duplicate node id: {node.id}")
            logger.debug("Ignoring duplicate node id %s", node.id)
            continue
        seen.add(node.id)
        nodes.append(node)

    edges: list[Edge] = []
    edge_ids: set[str] = set()
    dropped = 0

    for raw in raw_edges or []:
        if not isinstance(raw, dict):
            continue
        source = _endpoint_id(raw.get("source"))
        target = _endpoint_id(raw.get("target"))
        if source not in seen or target not in seen:
            dropped += 1
            logger.debug("Dropping edge with missing endpoint: %s -> %s", source, target)
            continue

        edge_type = str(raw.get("type") or "other").strip().lower()
        if edge_type not in EDGE_TYPES:
            edge_type = "other"

        base_id = raw.get("id")
        edge_id = str(base_id) if base_id not in (None, "") else f"{source}->{target}:{edge_type}"
        if edge_id in edge_ids:
            n = 2
            while f"{edge_id}#{n}" in edge_ids:
                n += 1
            edge_id = f"{edge_id}#{n}"
        edge_ids.add(edge_id)

        metadata = raw.get("metadata", raw.get("properties"))
        edges.append(
            Edge(
                id=edge_id,
                source=source,  # type: ignore[arg-type]
                target=target,  # type: ignore[arg-type]
                type=edge_type,
                strength=_strength_from_raw(raw),
                metadata=dict(metadata) if isinstance(metadata, dict) else {},
            )
        )

    if dropped:
        logger.debug("Dropped %d edge(s) referencing nodes outside the payload", dropped)

    return GraphData(nodes=nodes, edges=edges)


def parse_payload(data: Any, *, strict: bool = False) -> GraphData:
    """Normalize a decoded payload.

    Accepts `{nodes, links}`, `{nodes, edges}` or the API envelope
    `{success, data: {nodes, links}}`.
    """
    if isinstance(data, dict) and isinstance(data.get("data"), dict) and "nodes" not in data:
        if data.get("success") is False:
            raise PayloadError(str(data.get("message") or "upstream reported failure"))
        data = data["data"]

    if not isinstance(data, dict):
        raise PayloadError("payload must be a JSON object with a 'nodes' list")

    raw_nodes = data.get("nodes")
    if not isinstance(raw_nodes, list):
        raise PayloadError("payload must be a JSON object with a 'nodes' list")

    raw_edges = data.get("links")
    if raw_edges is None:
        raw_edges = data.get("edges")
    if raw_edges is None:
        raw_edges = []
    if not isinstance(raw_edges, list):
        raise PayloadError("'links' must be a list")

    return normalize(raw_nodes, raw_edges, strict=strict)


def load_payload(path: Path, *, strict: bool = False) -> GraphData:
    """Read and normalize a JSON payload file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PayloadError(f"cannot read payload {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadError(f"invalid JSON in {path}: {e}") from e
    return parse_payload(data, strict=strict)
