"""RiserRenderer: geometry → SVG → PNG / PDF.

Draws a compiled ``DiagramGeometry``: polylines for every path (circuit
colour, dashed for notification circuits) under symbol glyphs at node
positions, plus the sheet title. PNG and PDF go through CairoSVG.
"""

from __future__ import annotations

import logging

from riser.diagram.reconcile import DiagramGeometry, NodeGeometry, PathGeometry
from riser.diagram.style import (
    CANVAS_MARGIN,
    COLOR_BG,
    COLOR_BLACK,
    COLOR_DEBUG,
    DASH_PATTERN,
    FONT_DEVICE,
    FONT_FAMILY,
    FONT_TITLE,
    HIRES_SCALE,
    STROKE_WIRE,
    SVG_SCALE,
)
from riser.diagram.symbols import SYMBOL_REGISTRY, SymbolKind, escape_xml, kind_for
from riser.types import NodeKind

log = logging.getLogger(__name__)

TITLE_BAND = FONT_TITLE + 6


class RiserRenderer:
    """Renders a DiagramGeometry into SVG, PNG and PDF."""

    def __init__(self, geometry: DiagramGeometry, debug: bool = False):
        self.geometry = geometry
        self.debug = debug

    # ------------------------------------------------------------------
    # Canvas
    # ------------------------------------------------------------------

    def view_box(self) -> tuple[float, float, float, float]:
        """(x, y, width, height) in drawing units, margin and title band included."""
        min_x, min_y, max_x, max_y = self.geometry.extent()
        x = min_x - CANVAS_MARGIN
        y = min_y - CANVAS_MARGIN
        w = (max_x - min_x) + 2 * CANVAS_MARGIN
        h = (max_y - min_y) + 2 * CANVAS_MARGIN
        if self.geometry.title:
            h += TITLE_BAND
        return (x, y, w, h)

    def pixel_size(self, scale: float = SVG_SCALE) -> tuple[int, int]:
        _, _, w, h = self.view_box()
        return (max(1, round(w * scale)), max(1, round(h * scale)))

    # ------------------------------------------------------------------
    # SVG
    # ------------------------------------------------------------------

    def render_svg(self) -> str:
        """Generate the complete SVG document."""
        vx, vy, vw, vh = self.view_box()
        pw, ph = self.pixel_size()

        svg_lines = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{pw}" height="{ph}" '
            f'viewBox="{vx} {vy} {vw} {vh}" style="font-family: {FONT_FAMILY};">',
            f'<rect x="{vx}" y="{vy}" width="{vw}" height="{vh}" fill="{COLOR_BG}"/>',
        ]

        # Wires under symbols
        for path_id, path in self.geometry.paths.items():
            svg_lines.append(self._draw_path(path_id, path))

        for node_id, node in self.geometry.nodes.items():
            if node.kind == NodeKind.BUS:
                if self.debug:
                    svg_lines.append(self._draw_debug_box(node_id, node))
                continue
            svg_lines.append(self._draw_node(node_id, node))

        if self.geometry.title:
            svg_lines.append(self._draw_title(vx, vy + vh))

        svg_lines.append("</svg>")
        return "\n".join(svg_lines)

    def _draw_path(self, path_id: str, path: PathGeometry) -> str:
        if not path.points:
            return ""
        pts = " ".join(f"{x},{y}" for x, y in path.points)
        dash = f' stroke-dasharray="{DASH_PATTERN}"' if path.dashed else ""
        return (
            f'<polyline id="{escape_xml(path_id)}" points="{pts}" fill="none" '
            f'stroke="{escape_xml(path.color)}" stroke-width="{STROKE_WIRE}"{dash} '
            f'vector-effect="non-scaling-stroke"/>'
        )

    def _draw_node(self, node_id: str, node: NodeGeometry) -> str:
        kind = SymbolKind.PANEL if node.kind == NodeKind.PANEL else kind_for(node.symbol)
        draw_fn = SYMBOL_REGISTRY[kind]
        if kind == SymbolKind.PANEL:
            label = node.label
        elif kind == SymbolKind.GENERIC:
            label = node.symbol
        else:
            label = ""
        parts = [draw_fn(node.x, node.y, node.width, node.height, label)]

        # Device and EOL captions sit just below the glyph
        if node.label and kind != SymbolKind.PANEL:
            parts.append(
                f'<text x="{node.x + node.width / 2}" y="{node.y + node.height + FONT_DEVICE}" '
                f'font-size="{FONT_DEVICE}" text-anchor="middle" fill="{COLOR_BLACK}">'
                f'{escape_xml(node.label)}</text>'
            )
        if self.debug:
            parts.append(self._draw_debug_box(node_id, node))
        return f'<g id="node-{escape_xml(node_id)}">\n' + "\n".join(parts) + "\n</g>"

    def _draw_debug_box(self, node_id: str, node: NodeGeometry) -> str:
        return (
            f'<rect x="{node.x}" y="{node.y}" width="{node.width}" height="{node.height}" '
            f'fill="none" stroke="{COLOR_DEBUG}" stroke-width="0.3" stroke-dasharray="1,1">'
            f'<title>{escape_xml(node_id)}</title></rect>'
        )

    def _draw_title(self, x: float, bottom: float) -> str:
        return (
            f'<text x="{x + CANVAS_MARGIN / 2}" y="{bottom - CANVAS_MARGIN / 2}" '
            f'font-size="{FONT_TITLE}" fill="{COLOR_BLACK}">{escape_xml(self.geometry.title)}</text>'
        )

    # ------------------------------------------------------------------
    # Raster / print
    # ------------------------------------------------------------------

    def render_png(self, hires: bool = False) -> bytes:
        """Generate PNG bytes via CairoSVG."""
        try:
            import cairosvg
        except ImportError:
            raise RuntimeError(
                "cairosvg required for PNG output: pip install cairosvg"
            )

        width, height = self.pixel_size(HIRES_SCALE if hires else SVG_SCALE)
        return cairosvg.svg2png(
            bytestring=self.render_svg().encode("utf-8"),
            output_width=width,
            output_height=height,
            background_color=COLOR_BG,
        )

    def render_pdf(self) -> bytes:
        """Generate a print-ready PDF via CairoSVG."""
        try:
            import cairosvg
        except ImportError:
            raise RuntimeError(
                "cairosvg required for PDF output: pip install cairosvg"
            )

        return cairosvg.svg2pdf(bytestring=self.render_svg().encode("utf-8"))

    def render_png_to_file(self, path: str, hires: bool = False) -> None:
        png_bytes = self.render_png(hires=hires)
        with open(path, "wb") as f:
            f.write(png_bytes)
        log.info("PNG written to %s (%d bytes)", path, len(png_bytes))

    def render_pdf_to_file(self, path: str) -> None:
        pdf_bytes = self.render_pdf()
        with open(path, "wb") as f:
            f.write(pdf_bytes)
        log.info("PDF written to %s (%d bytes)", path, len(pdf_bytes))
