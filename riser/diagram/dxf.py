"""DXF (R14, AC1014) writer for compiled riser geometry.

Emits plain tag/value text: HEADER, TABLES (line types and one layer per
circuit), BLOCKS (one unit-sized block per symbol kind in use) and
ENTITIES (a LINE per path segment, an INSERT per node, TEXT for captions
and the title). Geometry is y-down; DXF is y-up, so every y is negated
here and nowhere else.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from riser.diagram.reconcile import DiagramGeometry, NodeGeometry
from riser.diagram.style import (
    DXF_COLORS,
    FONT_DEVICE,
    FONT_PANEL,
    FONT_TITLE,
)
from riser.diagram.symbols import SymbolKind, eol_points, kind_for
from riser.types import NodeKind

log = logging.getLogger(__name__)

ACAD_VERSION = "AC1014"
DEFAULT_ACI = 7
SYMBOL_LAYER = "SYMBOLS"
TEXT_LAYER = "TEXT"

# Glyph letters drawn on top of the block outline
_GLYPH_TEXT = {
    SymbolKind.CELL: "CELL",
    SymbolKind.SMOKE: "S",
    SymbolKind.PULL: "F",
}

Segment = tuple[tuple[float, float], tuple[float, float]]


def _fmt(value: float) -> str:
    s = f"{float(value):.6f}".rstrip("0")
    if s.endswith("."):
        s += "0"
    return "0.0" if s == "-0.0" else s


def layer_name(circuit_id: str | None) -> str:
    """DXF-safe layer name for a circuit's wiring."""
    cid = circuit_id or "0"
    return "CIRCUIT-" + re.sub(r"[^A-Za-z0-9_-]", "_", cid)


def _unit_outline(kind: SymbolKind) -> tuple[list[Segment], list[tuple[float, float, float]]]:
    """Unit-box outline of a symbol kind as (lines, circles), y already negated."""
    box = [((0.0, 0.0), (1.0, 0.0)), ((1.0, 0.0), (1.0, -1.0)),
           ((1.0, -1.0), (0.0, -1.0)), ((0.0, -1.0), (0.0, 0.0))]
    if kind == SymbolKind.SMOKE:
        return [], [(0.5, -0.5, 0.5)]
    if kind == SymbolKind.EOL:
        pts = [(x, -y) for x, y in eol_points(0.0, 0.0, 1.0, 1.0)]
        return list(zip(pts, pts[1:])), []
    if kind == SymbolKind.HORN_STROBE:
        flare = [(0.2, -0.35), (0.45, -0.35), (0.7, -0.15), (0.7, -0.85),
                 (0.45, -0.65), (0.2, -0.65), (0.2, -0.35)]
        return box + list(zip(flare, flare[1:])), []
    return box, []


class DxfWriter:
    """Serialises a DiagramGeometry as R14 DXF text."""

    def __init__(self, geometry: DiagramGeometry, scale: float = 1.0):
        self.geometry = geometry
        self.scale = scale
        self._out: list[str] = []

    # ------------------------------------------------------------------
    # Low-level emit helpers
    # ------------------------------------------------------------------

    def _tag(self, code: int, value) -> None:
        self._out.append(str(code))
        self._out.append(value if isinstance(value, str) else _fmt(value))

    def _xy(self, x: float, y: float, base: int = 10) -> None:
        self._tag(base, x * self.scale)
        self._tag(base + 10, -y * self.scale)
        self._tag(base + 20, 0.0)

    def _line(self, layer: str, p1: tuple[float, float], p2: tuple[float, float]) -> None:
        self._tag(0, "LINE")
        self._tag(8, layer)
        self._xy(*p1)
        self._xy(*p2, base=11)

    def _text(self, layer: str, x: float, y: float, height: float, text: str, centered: bool = True) -> None:
        self._tag(0, "TEXT")
        self._tag(8, layer)
        self._xy(x, y)
        self._tag(40, height * self.scale)
        self._tag(1, text)
        if centered:
            self._tag(72, "1")
            self._xy(x, y, base=11)
            self._tag(73, "2")

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _circuit_layers(self) -> dict[str, tuple[int, bool]]:
        """Layer name → (colour index, dashed), in first-use order."""
        layers: dict[str, tuple[int, bool]] = {}
        for path in self.geometry.paths.values():
            name = layer_name(path.circuit_id)
            if name not in layers:
                aci = DXF_COLORS.get(path.color.lower(), DEFAULT_ACI)
                layers[name] = (aci, path.dashed)
        return layers

    def _symbol_kinds(self) -> list[SymbolKind]:
        kinds: list[SymbolKind] = []
        for node in self.geometry.visible_nodes().values():
            kind = self._kind(node)
            if kind not in kinds:
                kinds.append(kind)
        return kinds

    @staticmethod
    def _kind(node: NodeGeometry) -> SymbolKind:
        return SymbolKind.PANEL if node.kind == NodeKind.PANEL else kind_for(node.symbol)

    def _header(self) -> None:
        min_x, min_y, max_x, max_y = self.geometry.extent()
        self._tag(0, "SECTION")
        self._tag(2, "HEADER")
        self._tag(9, "$ACADVER")
        self._tag(1, ACAD_VERSION)
        self._tag(9, "$INSBASE")
        self._xy(0.0, 0.0)
        self._tag(9, "$EXTMIN")
        self._xy(min_x, max_y)
        self._tag(9, "$EXTMAX")
        self._xy(max_x, min_y)
        self._tag(0, "ENDSEC")

    def _tables(self, layers: dict[str, tuple[int, bool]]) -> None:
        self._tag(0, "SECTION")
        self._tag(2, "TABLES")

        self._tag(0, "TABLE")
        self._tag(2, "LTYPE")
        self._tag(70, "2")
        self._tag(0, "LTYPE")
        self._tag(2, "CONTINUOUS")
        self._tag(70, "0")
        self._tag(3, "Solid line")
        self._tag(72, "65")
        self._tag(73, "0")
        self._tag(40, 0.0)
        self._tag(0, "LTYPE")
        self._tag(2, "DASHED")
        self._tag(70, "0")
        self._tag(3, "Dashed __ __ __")
        self._tag(72, "65")
        self._tag(73, "2")
        self._tag(40, 5.0 * self.scale)
        self._tag(49, 3.0 * self.scale)
        self._tag(49, -2.0 * self.scale)
        self._tag(0, "ENDTAB")

        all_layers = {"0": (DEFAULT_ACI, False), SYMBOL_LAYER: (DEFAULT_ACI, False),
                      TEXT_LAYER: (DEFAULT_ACI, False), **layers}
        self._tag(0, "TABLE")
        self._tag(2, "LAYER")
        self._tag(70, str(len(all_layers)))
        for name, (aci, dashed) in all_layers.items():
            self._tag(0, "LAYER")
            self._tag(2, name)
            self._tag(70, "0")
            self._tag(62, str(aci))
            self._tag(6, "DASHED" if dashed else "CONTINUOUS")
        self._tag(0, "ENDTAB")

        self._tag(0, "ENDSEC")

    def _blocks(self, kinds: list[SymbolKind]) -> None:
        self._tag(0, "SECTION")
        self._tag(2, "BLOCKS")
        for kind in kinds:
            self._tag(0, "BLOCK")
            self._tag(8, "0")
            self._tag(2, kind.value.upper())
            self._tag(70, "0")
            self._tag(10, 0.0)
            self._tag(20, 0.0)
            self._tag(30, 0.0)
            self._tag(3, kind.value.upper())
            lines, circles = _unit_outline(kind)
            for (x1, y1), (x2, y2) in lines:
                # Block geometry is unit-sized; INSERT scales it
                self._tag(0, "LINE")
                self._tag(8, "0")
                for code, v in ((10, x1), (20, y1), (30, 0.0), (11, x2), (21, y2), (31, 0.0)):
                    self._tag(code, v)
            for cx, cy, r in circles:
                self._tag(0, "CIRCLE")
                self._tag(8, "0")
                for code, v in ((10, cx), (20, cy), (30, 0.0), (40, r)):
                    self._tag(code, v)
            self._tag(0, "ENDBLK")
            self._tag(8, "0")
        self._tag(0, "ENDSEC")

    def _entities(self) -> None:
        self._tag(0, "SECTION")
        self._tag(2, "ENTITIES")

        for path in self.geometry.paths.values():
            layer = layer_name(path.circuit_id)
            for p1, p2 in zip(path.points, path.points[1:]):
                # Zero-length segments from repeated points are not emitted
                if p1 == p2:
                    continue
                self._line(layer, p1, p2)

        for node in self.geometry.visible_nodes().values():
            kind = self._kind(node)
            self._tag(0, "INSERT")
            self._tag(8, SYMBOL_LAYER)
            self._tag(2, kind.value.upper())
            self._xy(node.x, node.y)
            self._tag(41, node.width * self.scale)
            self._tag(42, node.height * self.scale)

            cx, cy = node.x + node.width / 2, node.y + node.height / 2
            if kind == SymbolKind.PANEL:
                self._text(TEXT_LAYER, cx, cy, FONT_PANEL, node.label or "FACP")
            elif kind == SymbolKind.GENERIC:
                self._text(TEXT_LAYER, cx, cy, FONT_DEVICE, node.symbol[:4])
            elif kind in _GLYPH_TEXT:
                self._text(TEXT_LAYER, cx, cy, FONT_DEVICE, _GLYPH_TEXT[kind])
            if node.label and kind != SymbolKind.PANEL:
                self._text(TEXT_LAYER, cx, node.y + node.height + FONT_DEVICE, FONT_DEVICE, node.label)

        if self.geometry.title:
            min_x, _, _, max_y = self.geometry.extent()
            self._text(TEXT_LAYER, min_x, max_y + FONT_TITLE + 4, FONT_TITLE, self.geometry.title, centered=False)

        self._tag(0, "ENDSEC")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self) -> str:
        """Return the complete DXF document."""
        self._out = []
        self._header()
        self._tables(self._circuit_layers())
        self._blocks(self._symbol_kinds())
        self._entities()
        self._tag(0, "EOF")
        return "\n".join(self._out) + "\n"

    def write(self, path: str | Path) -> None:
        text = self.render()
        Path(path).write_text(text, encoding="utf-8")
        log.info("DXF written to %s (%d bytes)", path, len(text))


def geometry_to_dxf(geometry: DiagramGeometry, scale: float = 1.0) -> str:
    return DxfWriter(geometry, scale).render()
