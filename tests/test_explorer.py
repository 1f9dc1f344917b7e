from pathlib import Path

from eigraph.config import ExplorerConfig
from eigraph.events import EventKind
from eigraph.explorer import GraphExplorer
from eigraph.models import FilterState
from eigraph.render import STATUS_EMPTY, STATUS_LOADING, STATUS_READY, SvgSurface
from eigraph.scheduler import ManualFrameScheduler


def test_mount_shows_loading_until_payload_arrives(sample_payload) -> None:
    surface = SvgSurface()
    explorer = GraphExplorer(surface=surface)
    explorer.mount()
    assert surface.last_scene.status == STATUS_LOADING

    explorer.load(sample_payload)
    assert surface.last_scene.status == STATUS_READY


def test_empty_payload_renders_empty_state() -> None:
    surface = SvgSurface()
    explorer = GraphExplorer(surface=surface)
    explorer.load({"nodes": [], "links": []})
    assert surface.last_scene.status == STATUS_EMPTY
    assert explorer.simulation is not None
    assert not explorer.running


def test_enterprise_filter_end_to_end(sample_payload) -> None:
    explorer = GraphExplorer(surface=SvgSurface())
    explorer.load(sample_payload)
    explorer.set_filters(node_types={"enterprise"})

    assert len(explorer.visible.visible_nodes) == 3
    assert {(e.source, e.target) for e in explorer.visible.visible_edges} == {("e1", "e2"), ("e2", "e3")}
    assert len(explorer.surface.last_scene.nodes) == 3


def test_load_enriches_degree_and_cluster(sample_payload) -> None:
    explorer = GraphExplorer()
    graph = explorer.load(sample_payload)
    degrees = {n.id: n.degree for n in graph.nodes}
    assert degrees == {"e1": 2, "e2": 2, "e3": 2, "p1": 1, "p2": 1}
    assert all("cluster" in n.metadata for n in graph.nodes)


def test_layout_switch_resets_pins(sample_payload) -> None:
    explorer = GraphExplorer()
    explorer.load(sample_payload)
    explorer.set_layout("circular")
    assert all(n.is_pinned for n in explorer.visible.visible_nodes)

    explorer.set_layout("force")
    assert not any(n.is_pinned for n in explorer.visible.visible_nodes)


def test_simulation_ticks_drive_redraws(sample_payload) -> None:
    scheduler = ManualFrameScheduler()
    surface = SvgSurface()
    explorer = GraphExplorer(surface=surface, scheduler=scheduler)
    explorer.load(sample_payload)
    assert explorer.running

    drawn = surface.frames_drawn
    scheduler.run_frame()
    scheduler.run_frame()
    assert surface.frames_drawn == drawn + 2


def test_pause_and_play(sample_payload) -> None:
    scheduler = ManualFrameScheduler()
    explorer = GraphExplorer(scheduler=scheduler)
    explorer.load(sample_payload)

    explorer.pause()
    assert not explorer.running
    assert scheduler.pending == 0

    explorer.play()
    assert explorer.running
    assert explorer.simulation.alpha == 0.3


def test_destroy_stops_everything(sample_payload) -> None:
    scheduler = ManualFrameScheduler()
    surface = SvgSurface()
    explorer = GraphExplorer(surface=surface, scheduler=scheduler)
    explorer.load(sample_payload)
    explorer.interaction.zoom_in()
    assert scheduler.pending == 2

    explorer.destroy()
    assert scheduler.pending == 0
    assert not surface.alive
    assert not surface.overlay.attached

    drawn = surface.frames_drawn
    explorer.render()
    explorer.set_filters(FilterState())
    assert surface.frames_drawn == drawn


def test_selection_survives_color_change_and_logs_events(sample_payload) -> None:
    explorer = GraphExplorer(surface=SvgSurface())
    seen = []
    explorer.bus.subscribe(lambda e: seen.append(e.kind))
    explorer.load(sample_payload)
    explorer.interaction.click_node("e2")
    explorer.set_color_scheme("risk")

    assert explorer.interaction.selection.highlighted_node_ids == {"e1", "e2", "e3"}
    assert EventKind.SELECTION_CHANGED in seen
    assert explorer.surface.last_scene.legend[0][0] == "low"


def test_filter_hiding_selected_node_clears_selection(sample_payload) -> None:
    explorer = GraphExplorer()
    explorer.load(sample_payload)
    explorer.interaction.click_node("p1")
    explorer.set_filters(node_types={"enterprise"})
    assert not explorer.interaction.selection.has_selection


def test_hit_test_uses_view_transform(sample_payload) -> None:
    explorer = GraphExplorer(ExplorerConfig())
    explorer.load(sample_payload)
    explorer.set_layout("grid")
    node = explorer.visible.visible_nodes[0]
    assert explorer.hit_test(node.x, node.y) is node

    explorer.interaction.pan(50, 0)
    assert explorer.hit_test(node.x + 50, node.y) is node
    assert explorer.hit_test(-500, -500) is None


def test_export_svg(tmp_path: Path, sample_payload) -> None:
    explorer = GraphExplorer(title="demo")
    explorer.load(sample_payload)
    path = explorer.export_svg(tmp_path / "out" / "graph.svg")
    text = path.read_text(encoding="utf-8")
    assert text.startswith("<svg")
    assert "demo" in text
