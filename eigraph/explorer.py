"""
GraphExplorer: owns one explorer instance end to end.

payload -> adapter -> filter -> layout -> colors -> surface

Filter/layout changes rebind the whole visible set (new simulation, pins
released); color/label changes only redraw. Redraws are driven by events on
the explorer's bus, so a running simulation paints once per tick.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from .adapter import parse_payload
from .analysis import annotate
from .colors import ColorMapper
from .config import ExplorerConfig
from .events import Event, EventBus, EventKind
from .filters import FilterResult, filter_graph
from .interaction import HoverCallback, InteractionController, NodeCallback, SelectionCallback
from .layout import Simulation, apply_layout, get_layout
from .models import COLOR_SCHEMES, FilterState, GraphData, LayoutSettings, Node, node_radius
from .render.surface import RenderSurface, Scene, build_scene
from .render.svg import scene_to_svg
from .scheduler import FrameScheduler

logger = logging.getLogger(__name__)

PLAY_ALPHA = 0.3

_REDRAW_EVENTS = (
    EventKind.POSITIONS_UPDATED,
    EventKind.SIMULATION_SETTLED,
    EventKind.SIMULATION_STOPPED,
    EventKind.SELECTION_CHANGED,
    EventKind.HOVER_CHANGED,
    EventKind.VIEW_TRANSFORM_CHANGED,
)


class GraphExplorer:
    def __init__(
        self,
        config: ExplorerConfig | None = None,
        *,
        surface: RenderSurface | None = None,
        scheduler: FrameScheduler | None = None,
        bus: EventBus | None = None,
        title: str = "",
        on_node_click: NodeCallback | None = None,
        on_node_hover: HoverCallback | None = None,
        on_selection_change: SelectionCallback | None = None,
    ) -> None:
        self.config = config or ExplorerConfig()
        self.surface = surface
        self.scheduler = scheduler
        self.bus = bus or EventBus()
        self.title = title

        self.filters: FilterState = self.config.filters
        self.layout: LayoutSettings = self.config.layout
        self.colors = ColorMapper(self.config.color_scheme)

        self.graph: GraphData | None = None
        self.visible = FilterResult([], [])
        self.simulation: Simulation | None = None
        self.interaction = InteractionController(
            bus=self.bus,
            size=self.config.size,
            scheduler=scheduler,
            on_node_click=on_node_click,
            on_node_hover=on_node_hover,
            on_selection_change=on_selection_change,
        )

        self._destroyed = False
        self._unsubscribe: list[Callable[[], None]] = [
            self.bus.subscribe(self._on_redraw_event, kind) for kind in _REDRAW_EVENTS
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self.graph is None

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def mount(self) -> None:
        """Show the loading state until `load` delivers a payload."""
        self.render()

    def load(self, payload: GraphData | dict[str, Any]) -> GraphData:
        graph = payload if isinstance(payload, GraphData) else parse_payload(payload)
        annotate(graph)
        self.graph = graph
        self.colors.set_context(graph.nodes)
        logger.info("Loaded %d nodes, %d edges", len(graph.nodes), len(graph.edges))
        self._rebind()
        return graph

    def destroy(self) -> None:
        """Stop the simulation, cancel pending frames and drop the surface."""
        if self._destroyed:
            return
        self._destroyed = True
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        if self.simulation is not None:
            self.simulation.destroy()
            self.simulation = None
        self.interaction.teardown()
        if self.surface is not None:
            self.surface.destroy()

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def set_filters(self, state: FilterState | None = None, **changes: Any) -> None:
        """Replace the filter state, or patch fields of the current one."""
        if state is not None:
            self.filters = state
        for key, value in changes.items():
            if not hasattr(self.filters, key):
                raise AttributeError(f"unknown filter field: {key}")
            setattr(self.filters, key, set(value) if key in ("node_types", "link_types") else value)
        self.bus.emit(Event(EventKind.FILTER_CHANGED, self.filters.to_dict()))
        self._rebind()

    def set_show_labels(self, show: bool) -> None:
        self.filters.show_labels = show
        self.render()

    def set_layout(self, layout: LayoutSettings | str) -> None:
        if isinstance(layout, str):
            layout = LayoutSettings(
                type=layout,
                link_distance=self.layout.link_distance,
                charge_strength=self.layout.charge_strength,
                velocity_decay=self.layout.velocity_decay,
                alpha_decay=self.layout.alpha_decay,
            )
        self.layout = layout
        self.bus.emit(Event(EventKind.LAYOUT_CHANGED, layout.to_dict()))
        self._rebind()

    def set_color_scheme(self, scheme: str) -> None:
        if scheme not in COLOR_SCHEMES:
            raise ValueError(f"color scheme must be one of: {', '.join(COLOR_SCHEMES)}")
        self.colors.scheme = scheme
        self.render()

    def play(self) -> None:
        if self.simulation is None or self.scheduler is None:
            return
        self.simulation.alpha = PLAY_ALPHA
        self.simulation.start(self.scheduler)

    def pause(self) -> None:
        if self.simulation is not None:
            self.simulation.stop()

    @property
    def running(self) -> bool:
        return self.simulation is not None and self.simulation.is_running

    def reset_view(self) -> None:
        self.interaction.reset_zoom()
        if self.simulation is None:
            return
        self.simulation.alpha = 1.0
        if self.scheduler is not None:
            self.simulation.start(self.scheduler)
        elif not get_layout(self.layout.type).static:
            self.simulation.run(max_ticks=self.config.max_ticks)
            self.render()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _rebind(self) -> None:
        if self._destroyed or self.graph is None:
            return
        if self.simulation is not None:
            self.simulation.destroy()
            self.simulation = None

        self.visible = filter_graph(self.graph.nodes, self.graph.edges, self.filters)
        nodes, edges = self.visible.visible_nodes, self.visible.visible_edges
        logger.debug("Visible: %d nodes, %d edges (%s layout)", len(nodes), len(edges), self.layout.type)

        simulation = apply_layout(nodes, edges, self.layout, self.config.size, bus=self.bus)
        self.simulation = simulation
        self.interaction.bind(nodes, edges, simulation)

        if nodes:
            if self.scheduler is not None:
                simulation.start(self.scheduler)
            elif not get_layout(self.layout.type).static:
                simulation.run(max_ticks=self.config.max_ticks)
        self.render()

    def scene(self) -> Scene:
        if self.graph is None:
            return Scene.loading(self.config.size, self.title)
        return build_scene(
            self.visible.visible_nodes,
            self.visible.visible_edges,
            self.colors,
            self.interaction.selection,
            self.config.size,
            show_labels=self.filters.show_labels,
            show_legend=self.config.show_legend,
            tooltip=self.interaction.tooltip,
            transform=self.interaction.transform,
            running=self.running,
            title=self.title,
        )

    def render(self) -> None:
        if self._destroyed or self.surface is None or not self.surface.alive:
            return
        self.surface.draw(self.scene())

    def _on_redraw_event(self, event: Event) -> None:
        self.render()

    def export_svg(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(scene_to_svg(self.scene()), encoding="utf-8")
        return path

    def positions(self) -> dict[str, tuple[float, float]]:
        return {n.id: (float(n.x or 0.0), float(n.y or 0.0)) for n in self.visible.visible_nodes}

    def hit_test(self, sx: float, sy: float) -> Node | None:
        """Topmost visible node under a screen point."""
        x, y = self.interaction.transform.invert(sx, sy)
        for node in reversed(self.visible.visible_nodes):
            if node.x is None or node.y is None:
                continue
            r = node_radius(node)
            if (node.x - x) ** 2 + (node.y - y) ** 2 <= r * r:
                return node
        return None
