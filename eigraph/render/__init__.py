"""Render surfaces: SVG/HTML documents and a rich terminal canvas."""

from .surface import (
    STATUS_EMPTY,
    STATUS_LOADING,
    STATUS_READY,
    BaseSurface,
    EdgeSprite,
    NodeSprite,
    Overlay,
    RenderSurface,
    Scene,
    build_scene,
)
from .svg import HtmlSurface, SvgSurface, scene_to_svg, wrap_html
from .terminal import TerminalSurface, scene_to_renderable

__all__ = [
    "STATUS_EMPTY",
    "STATUS_LOADING",
    "STATUS_READY",
    "BaseSurface",
    "EdgeSprite",
    "NodeSprite",
    "Overlay",
    "RenderSurface",
    "Scene",
    "build_scene",
    "HtmlSurface",
    "SvgSurface",
    "scene_to_svg",
    "wrap_html",
    "TerminalSurface",
    "scene_to_renderable",
]
