"""Node positioning: force simulation plus one strategy per layout type."""

from .simulation import (
    ALPHA_MIN,
    CenterForce,
    CollideForce,
    LinkForce,
    ManyBodyForce,
    PositionForce,
    Simulation,
)
from .strategies import (
    LayoutStrategy,
    apply_layout,
    compute_positions,
    get_layout,
    grid_shape,
    hierarchy_levels,
    list_layouts,
    register_layout,
    release_pins,
)

__all__ = [
    "ALPHA_MIN",
    "CenterForce",
    "CollideForce",
    "LinkForce",
    "ManyBodyForce",
    "PositionForce",
    "Simulation",
    "LayoutStrategy",
    "apply_layout",
    "compute_positions",
    "get_layout",
    "grid_shape",
    "hierarchy_levels",
    "list_layouts",
    "register_layout",
    "release_pins",
]
