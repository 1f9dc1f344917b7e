"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from eigraph.adapter import normalize
from eigraph.models import GraphData


def _payload() -> dict:
    """3 enterprises, 2 persons, 4 edges of mixed types."""
    return {
        "nodes": [
            {"id": "e1", "name": "Acme Holdings", "type": "enterprise", "value": 80, "riskLevel": "high"},
            {"id": "e2", "name": "Beacon Supply", "type": "enterprise", "value": 40},
            {"id": "e3", "name": "Crest Bank", "type": "enterprise", "riskLevel": "critical"},
            {"id": "p1", "name": "Dana Li", "type": "person"},
            {"id": "p2", "name": "Eli Park", "type": "person", "riskLevel": "low"},
        ],
        "links": [
            {"source": "e1", "target": "e2", "type": "investment", "strength": 0.8},
            {"source": "e2", "target": "e3", "type": "supply", "strength": 0.4},
            {"source": "p1", "target": "e1", "type": "employment", "strength": 0.6},
            {"source": "p2", "target": "e3", "type": "ownership"},
        ],
    }


@pytest.fixture
def sample_payload() -> dict:
    return _payload()


@pytest.fixture
def sample_graph() -> GraphData:
    data = _payload()
    return normalize(data["nodes"], data["links"])


@pytest.fixture
def payload_file(tmp_path: Path) -> Path:
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(_payload()), encoding="utf-8")
    return path


@pytest.fixture
def chain_graph() -> GraphData:
    """A - B - C, no A - C."""
    return normalize(
        [
            {"id": "A", "name": "A", "type": "enterprise"},
            {"id": "B", "name": "B", "type": "enterprise"},
            {"id": "C", "name": "C", "type": "enterprise"},
        ],
        [
            {"id": "A-B", "source": "A", "target": "B", "type": "partnership"},
            {"id": "B-C", "source": "B", "target": "C", "type": "partnership"},
        ],
    )
