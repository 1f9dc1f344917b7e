from eigraph.adapter import normalize
from eigraph.filters import filter_graph
from eigraph.models import FilterState


def test_filter_is_idempotent(sample_graph) -> None:
    state = FilterState(search_query="a", min_link_strength=0.3)
    first = filter_graph(sample_graph.nodes, sample_graph.edges, state)
    second = filter_graph(sample_graph.nodes, sample_graph.edges, state)
    assert [n.id for n in first.visible_nodes] == [n.id for n in second.visible_nodes]
    assert [e.id for e in first.visible_edges] == [e.id for e in second.visible_edges]


def test_visible_sets_are_subsets_with_resolved_edges(sample_graph) -> None:
    for state in (
        FilterState(),
        FilterState(node_types={"person"}),
        FilterState(search_query="e"),
        FilterState(link_types={"supply", "employment"}),
        FilterState(min_link_strength=0.5, max_link_strength=0.7),
    ):
        result = filter_graph(sample_graph.nodes, sample_graph.edges, state)
        ids = result.node_ids()
        assert all(n in sample_graph.nodes for n in result.visible_nodes)
        assert all(e in sample_graph.edges for e in result.visible_edges)
        assert all(e.source in ids and e.target in ids for e in result.visible_edges)


def test_strength_bounds_are_inclusive() -> None:
    graph = normalize(
        [{"id": "a"}, {"id": "b"}],
        [
            {"id": "low", "source": "a", "target": "b", "strength": 0.3},
            {"id": "below", "source": "a", "target": "b", "strength": 0.2999},
            {"id": "high", "source": "a", "target": "b", "strength": 0.7},
            {"id": "above", "source": "a", "target": "b", "strength": 0.7001},
        ],
    )
    state = FilterState(min_link_strength=0.3, max_link_strength=0.7)
    result = filter_graph(graph.nodes, graph.edges, state)
    assert [e.id for e in result.visible_edges] == ["low", "high"]


def test_missing_strength_filters_as_default() -> None:
    graph = normalize([{"id": "a"}, {"id": "b"}], [{"source": "a", "target": "b"}])
    assert filter_graph(graph.nodes, graph.edges, FilterState(min_link_strength=0.5)).visible_edges
    assert not filter_graph(graph.nodes, graph.edges, FilterState(min_link_strength=0.51)).visible_edges


def test_empty_node_types_shows_nothing(sample_graph) -> None:
    result = filter_graph(sample_graph.nodes, sample_graph.edges, FilterState(node_types=set()))
    assert result.visible_nodes == []
    assert result.visible_edges == []
    assert result.is_empty


def test_search_is_case_insensitive_substring(sample_graph) -> None:
    result = filter_graph(sample_graph.nodes, sample_graph.edges, FilterState(search_query="BANK"))
    assert [n.id for n in result.visible_nodes] == ["e3"]


def test_enterprise_only_keeps_enterprise_edges(sample_graph) -> None:
    result = filter_graph(sample_graph.nodes, sample_graph.edges, FilterState(node_types={"enterprise"}))
    assert len(result.visible_nodes) == 3
    assert [(e.source, e.target) for e in result.visible_edges] == [("e1", "e2"), ("e2", "e3")]


def test_show_labels_does_not_affect_filtering(sample_graph) -> None:
    on = filter_graph(sample_graph.nodes, sample_graph.edges, FilterState(show_labels=True))
    off = filter_graph(sample_graph.nodes, sample_graph.edges, FilterState(show_labels=False))
    assert on == off
