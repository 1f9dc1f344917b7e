"""SVG and standalone-HTML surfaces (no external deps)."""

from __future__ import annotations

import html
from pathlib import Path

from .surface import STATUS_EMPTY, STATUS_LOADING, BaseSurface, Scene

BG = "#0f1115"
TEXT_COLOR = "#e6e6e6"
MUTED = "#9aa4b2"
BORDER = "#3a4154"
SELECTED_STROKE = "#fbbf24"


def esc(s: str) -> str:
    return html.escape(s, quote=True)


def _marker_id(color: str) -> str:
    return "arrow-" + color.lstrip("#")


def _state_message(scene: Scene, parts: list[str]) -> None:
    w, h = scene.size.width, scene.size.height
    if scene.status == STATUS_LOADING:
        msg, cls = "Loading graph…", "loading"
    else:
        msg, cls = "No data to display", "empty"
    parts.append(
        f'<text class="{cls}" x="{w / 2:.1f}" y="{h / 2:.1f}" fill="{MUTED}" font-family="Helvetica" '
        f'font-size="16" text-anchor="middle">{esc(msg)}</text>'
    )


def scene_to_svg(scene: Scene) -> str:
    w, h = scene.size.width, scene.size.height
    parts: list[str] = []
    parts.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{w:.0f}" height="{h:.0f}" '
        f'viewBox="0 0 {w:.0f} {h:.0f}" style="background:{BG}" data-status="{scene.status}">'
    )
    if scene.title:
        parts.append(
            f'<text x="16" y="24" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="16">{esc(scene.title)}</text>'
        )

    if scene.status in (STATUS_LOADING, STATUS_EMPTY):
        _state_message(scene, parts)
        parts.append("</svg>")
        return "\n".join(parts) + "\n"

    arrow_colors = sorted({e.color for e in scene.edges if e.arrow})
    if arrow_colors:
        parts.append("<defs>")
        for color in arrow_colors:
            parts.append(
                f'<marker id="{_marker_id(color)}" viewBox="0 -5 10 10" refX="10" refY="0" '
                f'markerWidth="6" markerHeight="6" orient="auto">'
                f'<path d="M0,-5L10,0L0,5" fill="{color}"/></marker>'
            )
        parts.append("</defs>")

    t = scene.transform
    parts.append(f'<g id="scene" transform="translate({t.x:.2f},{t.y:.2f}) scale({t.k:.4f})">')

    # Edges first (under nodes)
    parts.append('<g id="edges" stroke-linecap="round" fill="none">')
    for e in scene.edges:
        marker = f' marker-end="url(#{_marker_id(e.color)})"' if e.arrow else ""
        parts.append(
            f'<line data-id="{esc(e.id)}" x1="{e.x1:.1f}" y1="{e.y1:.1f}" x2="{e.x2:.1f}" y2="{e.y2:.1f}" '
            f'stroke="{e.color}" stroke-width="{e.width:.1f}" opacity="{e.opacity}"{marker}/>'
        )
    parts.append("</g>")

    parts.append('<g id="nodes">')
    for n in scene.nodes:
        stroke = SELECTED_STROKE if n.selected else BG
        parts.append(
            f'<circle data-id="{esc(n.id)}" cx="{n.x:.1f}" cy="{n.y:.1f}" r="{n.r:.1f}" fill="{n.fill}" '
            f'stroke="{stroke}" stroke-width="{n.stroke_width}" opacity="{n.opacity}"/>'
        )
    parts.append("</g>")

    if scene.show_labels:
        parts.append('<g id="labels">')
        for n in scene.nodes:
            parts.append(
                f'<text x="{n.x:.1f}" y="{(n.y + n.r + 12):.1f}" fill="{TEXT_COLOR}" font-family="Helvetica" '
                f'font-size="11" text-anchor="middle" opacity="{n.opacity}">{esc(n.label)}</text>'
            )
        parts.append("</g>")
    parts.append("</g>")

    # Fixed overlay: play/pause state top-right, legend bottom-left, tooltip near the pointer.
    state, icon = ("running", "❚❚") if scene.running else ("settled", "▶")
    parts.append(
        f'<text id="sim-status" data-state="{state}" x="{w - 16:.0f}" y="24" fill="{MUTED}" '
        f'font-family="Helvetica" font-size="12" text-anchor="end">{icon} {state}</text>'
    )

    if scene.legend:
        parts.append('<g id="legend">')
        ly = h - 16 - 16 * (len(scene.legend) - 1)
        for i, (label, color) in enumerate(scene.legend):
            y = ly + i * 16
            parts.append(f'<rect x="16" y="{y - 10}" width="10" height="10" fill="{color}" stroke="{BORDER}"/>')
            parts.append(
                f'<text x="32" y="{y}" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="11">{esc(label)}</text>'
            )
        parts.append("</g>")

    if scene.tooltip is not None:
        tip = scene.tooltip
        box_h = 8 + 14 * len(tip.lines)
        box_w = 12 + 7 * max((len(line) for line in tip.lines), default=0)
        x, y = tip.x + 12, tip.y + 12
        parts.append(f'<g id="tooltip" transform="translate({x:.1f},{y:.1f})">')
        parts.append(f'<rect width="{box_w}" height="{box_h}" rx="6" fill="#1b1f2a" stroke="{BORDER}"/>')
        for i, line in enumerate(tip.lines):
            parts.append(
                f'<text x="6" y="{16 + i * 14}" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="11">{esc(line)}</text>'
            )
        parts.append("</g>")

    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def wrap_html(svg: str, *, title: str) -> str:
    """Wrap SVG in a standalone HTML page with pan/zoom and ×1.5 zoom buttons."""
    t = esc(title)
    return (
        "<!doctype html>\n"
        "<html>\n"
        "<head>\n"
        f"  <meta charset=\"utf-8\" />\n  <title>{t}</title>\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />\n"
        "  <style>\n"
        "    html, body { height: 100%; }\n"
        "    body { margin: 0; background: #0f1115; color: #e6e6e6; font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; }\n"
        "    .wrap { padding: 12px; height: 100vh; box-sizing: border-box; display: flex; flex-direction: column; }\n"
        "    .toolbar { display: flex; gap: 8px; align-items: center; margin: 0 0 10px 0; }\n"
        "    .btn { background: #1b1f2a; color: #e6e6e6; border: 1px solid #3a4154; border-radius: 8px; padding: 6px 10px; cursor: pointer; }\n"
        "    .btn:hover { border-color: #5b6782; }\n"
        "    .hint { color: #9aa4b2; font-size: 12px; }\n"
        "    .viewport { border: 1px solid #3a4154; border-radius: 10px; overflow: hidden; flex: 1; min-height: 0; }\n"
        "    svg { width: 100%; height: 100%; display: block; touch-action: none; user-select: none; }\n"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        "  <div class=\"wrap\">\n"
        "    <div class=\"toolbar\">\n"
        "      <button class=\"btn\" id=\"zoomInBtn\" type=\"button\">Zoom +</button>\n"
        "      <button class=\"btn\" id=\"zoomOutBtn\" type=\"button\">Zoom -</button>\n"
        "      <button class=\"btn\" id=\"resetBtn\" type=\"button\">Reset</button>\n"
        "      <span class=\"hint\">Drag to pan • Scroll to zoom</span>\n"
        "    </div>\n"
        "    <div class=\"viewport\" id=\"viewport\">\n"
        f"{svg}\n"
        "    </div>\n"
        "  </div>\n"
        "  <script>\n"
        "    (function () {\n"
        "      const svg = document.getElementById('viewport').querySelector('svg');\n"
        "      const scene = svg && svg.querySelector('#scene');\n"
        "      if (!scene) return;\n"
        "      const clamp = (v, min, max) => Math.max(min, Math.min(max, v));\n"
        "      const vb = svg.viewBox.baseVal;\n"
        "      let t = { k: 1, x: 0, y: 0 };\n"
        "      const apply = () => scene.setAttribute('transform', `translate(${t.x},${t.y}) scale(${t.k})`);\n"
        "      const zoomAt = (cx, cy, factor) => {\n"
        "        const k = clamp(t.k * factor, 0.1, 10);\n"
        "        const r = k / t.k;\n"
        "        t = { k, x: cx - (cx - t.x) * r, y: cy - (cy - t.y) * r };\n"
        "        apply();\n"
        "      };\n"
        "      const toScene = (e) => {\n"
        "        const rect = svg.getBoundingClientRect();\n"
        "        return [(e.clientX - rect.left) * (vb.width / rect.width), (e.clientY - rect.top) * (vb.height / rect.height)];\n"
        "      };\n"
        "\n"
        "      let panning = false;\n"
        "      let start = { x: 0, y: 0, tx: 0, ty: 0 };\n"
        "      svg.addEventListener('pointerdown', (e) => {\n"
        "        panning = true;\n"
        "        svg.setPointerCapture(e.pointerId);\n"
        "        const [x, y] = toScene(e);\n"
        "        start = { x, y, tx: t.x, ty: t.y };\n"
        "      });\n"
        "      svg.addEventListener('pointerup', () => { panning = false; });\n"
        "      svg.addEventListener('pointercancel', () => { panning = false; });\n"
        "      svg.addEventListener('pointermove', (e) => {\n"
        "        if (!panning) return;\n"
        "        const [x, y] = toScene(e);\n"
        "        t = { k: t.k, x: start.tx + (x - start.x), y: start.ty + (y - start.y) };\n"
        "        apply();\n"
        "      });\n"
        "      svg.addEventListener('wheel', (e) => {\n"
        "        e.preventDefault();\n"
        "        const [x, y] = toScene(e);\n"
        "        zoomAt(x, y, e.deltaY > 0 ? 1 / 1.15 : 1.15);\n"
        "      }, { passive: false });\n"
        "\n"
        "      const center = () => [vb.width / 2, vb.height / 2];\n"
        "      document.getElementById('zoomInBtn')?.addEventListener('click', () => zoomAt(...center(), 1.5));\n"
        "      document.getElementById('zoomOutBtn')?.addEventListener('click', () => zoomAt(...center(), 1 / 1.5));\n"
        "      document.getElementById('resetBtn')?.addEventListener('click', () => { t = { k: 1, x: 0, y: 0 }; apply(); });\n"
        "    })();\n"
        "  </script>\n"
        "</body>\n"
        "</html>\n"
    )


class SvgSurface(BaseSurface):
    """Keeps the latest frame as an SVG document string."""

    def __init__(self) -> None:
        super().__init__()
        self.document = ""

    def render(self, scene: Scene) -> None:
        self.document = scene_to_svg(scene)

    def write(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.document, encoding="utf-8")
        return path


class HtmlSurface(SvgSurface):
    def render(self, scene: Scene) -> None:
        self.document = wrap_html(scene_to_svg(scene), title=scene.title or "Relationship graph")
