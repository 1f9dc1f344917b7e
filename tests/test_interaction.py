import pytest

from eigraph.events import EventBus, EventKind
from eigraph.interaction import (
    SCALE_MAX,
    SCALE_MIN,
    InteractionController,
    UnknownNodeError,
    ZoomTransform,
)
from eigraph.layout import apply_layout
from eigraph.models import LayoutSettings, SurfaceSize
from eigraph.scheduler import ManualFrameScheduler

SIZE = SurfaceSize(1000, 700)


def _bound(graph, **kwargs) -> InteractionController:
    controller = InteractionController(size=SIZE, **kwargs)
    controller.bind(graph.nodes, graph.edges)
    return controller


def test_selecting_a_highlights_direct_neighbors_only(chain_graph) -> None:
    controller = _bound(chain_graph)
    controller.click_node("A")
    sel = controller.selection
    assert sel.highlighted_node_ids == {"A", "B"}
    assert sel.highlighted_edge_ids == {"A-B"}


def test_selecting_another_node_replaces_highlight(chain_graph) -> None:
    controller = _bound(chain_graph)
    controller.click_node("A")
    controller.click_node("C")
    assert controller.selection.selected_node_id == "C"
    assert controller.selection.highlighted_node_ids == {"B", "C"}
    assert controller.selection.highlighted_edge_ids == {"B-C"}


def test_background_click_clears_selection(chain_graph) -> None:
    controller = _bound(chain_graph)
    controller.click_node("B")
    controller.click_background()
    assert not controller.selection.has_selection
    assert controller.selection.highlighted_node_ids == set()
    assert controller.selection.highlighted_edge_ids == set()


def test_edge_click_highlights_edge_and_endpoints(chain_graph) -> None:
    changes = []
    controller = _bound(chain_graph, on_selection_change=lambda ns, es: changes.append(([n.id for n in ns], [e.id for e in es])))
    controller.click_edge("B-C")
    assert controller.selection.highlighted_node_ids == {"B", "C"}
    assert changes == [(["B", "C"], ["B-C"])]


def test_callbacks_and_events_fire(chain_graph) -> None:
    bus = EventBus()
    kinds = []
    bus.subscribe(lambda e: kinds.append(e.kind))
    clicked, hovered = [], []
    controller = _bound(
        chain_graph,
        bus=bus,
        on_node_click=lambda n: clicked.append(n.id),
        on_node_hover=lambda n: hovered.append(n.id if n else None),
    )
    controller.click_node("A")
    controller.pointer_over("B", 10, 20)
    controller.pointer_out()

    assert clicked == ["A"]
    assert hovered == ["B", None]
    assert kinds == [EventKind.SELECTION_CHANGED, EventKind.HOVER_CHANGED, EventKind.HOVER_CHANGED]


def test_tooltip_follows_pointer_and_hides(sample_graph) -> None:
    controller = _bound(sample_graph)
    tip = controller.pointer_over("e1", 5, 5)
    assert tip.lines[0] == "Acme Holdings"
    assert "risk: high" in tip.lines
    controller.pointer_move(40, 50)
    assert (controller.tooltip.x, controller.tooltip.y) == (40, 50)
    controller.pointer_out()
    assert controller.tooltip is None
    assert controller.selection.hovered_node_id is None


def test_unknown_ids_raise(chain_graph) -> None:
    controller = _bound(chain_graph)
    with pytest.raises(UnknownNodeError):
        controller.click_node("Z")
    with pytest.raises(UnknownNodeError):
        controller.click_edge("A-C")


def test_rebind_drops_selection_of_hidden_node(chain_graph) -> None:
    controller = _bound(chain_graph)
    controller.click_node("C")
    controller.bind(chain_graph.nodes[:2], chain_graph.edges[:1])
    assert not controller.selection.has_selection


def test_drag_pins_and_double_click_releases(sample_graph) -> None:
    nodes, edges = sample_graph.nodes, sample_graph.edges
    scheduler = ManualFrameScheduler()
    sim = apply_layout(nodes, edges, LayoutSettings(), SIZE)
    sim.start(scheduler)
    controller = InteractionController(size=SIZE, scheduler=scheduler)
    controller.bind(nodes, edges, sim)

    controller.drag_start("e2")
    assert sim.alpha_target == pytest.approx(0.3)
    controller.drag_move("e2", 100, 100)
    controller.drag_end("e2")
    assert sim.alpha_target == 0.0

    node = next(n for n in nodes if n.id == "e2")
    for _ in range(10):
        scheduler.run_frame()
    assert (node.x, node.y) == (100, 100)

    controller.drag_start("e2")
    controller.drag_end("e2", double=True)
    assert not node.is_pinned
    for _ in range(3):
        scheduler.run_frame()
    assert (node.x, node.y) != (100, 100)


def test_release_restarts_a_settled_simulation(chain_graph) -> None:
    scheduler = ManualFrameScheduler()
    sim = apply_layout(chain_graph.nodes, chain_graph.edges, LayoutSettings(), SIZE)
    sim.start(scheduler)
    scheduler.run_until_idle(max_frames=2000)
    assert sim.settled

    controller = InteractionController(size=SIZE)
    controller.bind(chain_graph.nodes, chain_graph.edges, sim)
    controller.drag_move("A", 10, 10)
    controller.release("A")
    assert sim.is_running
    assert sim.alpha == pytest.approx(0.3)


def test_zoom_scale_is_clamped(chain_graph) -> None:
    controller = _bound(chain_graph)
    for _ in range(20):
        controller.zoom_in()
    assert controller.transform.k == SCALE_MAX
    for _ in range(40):
        controller.zoom_out()
    assert controller.transform.k == SCALE_MIN


def test_zoom_keeps_center_fixed_and_reset_restores_identity(chain_graph) -> None:
    controller = _bound(chain_graph)
    controller.zoom_in()
    t = controller.transform
    assert t.k == pytest.approx(1.5)
    assert t.apply(500, 350) == pytest.approx((500, 350))
    controller.pan(10, -5)
    assert controller.transform.x == pytest.approx(t.x + 10)
    controller.reset_zoom()
    assert controller.transform == ZoomTransform()


def test_zoom_transition_runs_over_frames(chain_graph) -> None:
    scheduler = ManualFrameScheduler()
    controller = _bound(chain_graph, scheduler=scheduler)
    controller.zoom_in()
    assert controller.transitioning
    assert controller.transform.k == 1.0

    scheduler.run_frame()
    assert 1.0 < controller.transform.k < 1.5
    scheduler.run_until_idle()
    assert not controller.transitioning
    assert controller.transform.k == pytest.approx(1.5)


def test_teardown_cancels_transition(chain_graph) -> None:
    scheduler = ManualFrameScheduler()
    controller = _bound(chain_graph, scheduler=scheduler)
    controller.zoom_out()
    controller.teardown()
    assert scheduler.pending == 0
