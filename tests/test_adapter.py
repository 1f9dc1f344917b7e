import json
from pathlib import Path

import pytest

from eigraph.adapter import DuplicateNodeError, PayloadError, load_payload, normalize, parse_payload


def test_dangling_edge_is_dropped() -> None:
    graph = normalize(
        [{"id": "a"}, {"id": "b"}],
        [{"source": "a", "target": "b"}, {"source": "a", "target": "c"}],
    )
    assert [(e.source, e.target) for e in graph.edges] == [("a", "b")]


def test_defaults_for_missing_fields() -> None:
    graph = normalize([{"id": 7}], [])
    node = graph.nodes[0]
    assert node.id == "7"
    assert node.name == "7"
    assert node.type == "other"
    assert node.value is None
    assert node.risk_level is None


def test_edge_strength_defaults_and_clamps() -> None:
    graph = normalize(
        [{"id": "a"}, {"id": "b"}],
        [
            {"source": "a", "target": "b", "type": "supply"},
            {"source": "a", "target": "b", "type": "supply", "strength": 3},
            {"source": "a", "target": "b", "type": "supply", "strength": -1},
            {"source": "a", "target": "b", "type": "supply", "strength": "n/a"},
        ],
    )
    assert [e.strength for e in graph.edges] == [0.5, 1.0, 0.0, 0.5]


def test_strength_preferred_over_value() -> None:
    graph = normalize(
        [{"id": "a"}, {"id": "b"}],
        [{"source": "a", "target": "b", "strength": 0.7, "value": 70}],
    )
    assert graph.edges[0].strength == 0.7


def test_duplicate_ids_first_wins() -> None:
    graph = normalize([{"id": "a", "name": "first"}, {"id": "a", "name": "second"}], [])
    assert [n.name for n in graph.nodes] == ["first"]


def test_duplicate_ids_strict_raises() -> None:
    with pytest.raises(DuplicateNodeError):
        normalize([{"id": "a"}, {"id": "a"}], [], strict=True)


def test_edge_ids_are_unique_and_stable() -> None:
    nodes = [{"id": "a"}, {"id": "b"}]
    edges = [{"source": "a", "target": "b", "type": "supply"}, {"source": "a", "target": "b", "type": "supply"}]
    first = normalize(nodes, edges)
    second = normalize(nodes, edges)
    assert [e.id for e in first.edges] == ["a->b:supply", "a->b:supply#2"]
    assert [e.id for e in first.edges] == [e.id for e in second.edges]


def test_unknown_edge_type_maps_to_other_and_node_type_is_kept() -> None:
    graph = normalize(
        [{"id": "a", "type": "fund"}, {"id": "b"}],
        [{"source": {"id": "a"}, "target": "b", "type": "loan"}],
    )
    assert graph.nodes[0].type == "fund"
    assert graph.edges[0].type == "other"
    assert graph.edges[0].source == "a"


def test_aliases_and_negative_value() -> None:
    graph = normalize([{"id": "a", "risk_level": "HIGH", "properties": {"degree": 3}, "value": -5}], [])
    node = graph.nodes[0]
    assert node.risk_level == "high"
    assert node.degree == 3
    assert node.value == 0.0


def test_parse_payload_accepts_envelope_and_edges_key() -> None:
    enveloped = parse_payload({"success": True, "data": {"nodes": [{"id": "a"}, {"id": "b"}], "links": [{"source": "a", "target": "b"}]}})
    plain = parse_payload({"nodes": [{"id": "a"}, {"id": "b"}], "edges": [{"source": "a", "target": "b"}]})
    assert len(enveloped.edges) == 1
    assert len(plain.edges) == 1


def test_parse_payload_rejects_bad_shapes() -> None:
    with pytest.raises(PayloadError):
        parse_payload([])
    with pytest.raises(PayloadError):
        parse_payload({"nodes": "nope"})
    with pytest.raises(PayloadError):
        parse_payload({"success": False, "data": {}, "message": "boom"})


def test_load_payload_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PayloadError):
        load_payload(path)


def test_load_payload_round_trips_through_to_dict(tmp_path: Path, sample_graph) -> None:
    path = tmp_path / "copy.json"
    path.write_text(json.dumps(sample_graph.to_dict()), encoding="utf-8")
    again = load_payload(path)
    assert [n.id for n in again.nodes] == [n.id for n in sample_graph.nodes]
    assert [e.id for e in again.edges] == [e.id for e in sample_graph.edges]
