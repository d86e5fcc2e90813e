"""Riser symbol library: the size table and the SVG glyph for each symbol kind.

Every glyph is drawn from the node's top-left corner (x, y) so the same
node geometry feeds the canvas renderer and the DXF writer. Unknown device
types fall back to a 20x20 generic box instead of failing, so specs that
name newer device types still compile.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from riser.diagram.style import (
    COLOR_BLACK,
    FONT_DEVICE,
    FONT_PANEL,
    STROKE_EOL,
    STROKE_SYMBOL,
)


class SymbolKind(str, Enum):
    PANEL = "panel"
    CELL = "cell"
    SMOKE = "smoke"
    PULL = "pull"
    HORN_STROBE = "horn_strobe"
    EOL = "eol"
    GENERIC = "generic"


@dataclass(frozen=True)
class SymbolSpec:
    """Footprint of one symbol type.

    ``bottom_offset`` is the y distance from the node's top edge to the
    visual frame a wire must stop flush against.
    """

    kind: SymbolKind
    width: float
    height: float
    bottom_offset: float


DEFAULT_SIZE = (20.0, 20.0)

_KIND_BY_NAME = {
    "FACP": SymbolKind.PANEL,
    "Cell": SymbolKind.CELL,
    "Smoke": SymbolKind.SMOKE,
    "Pull": SymbolKind.PULL,
    "HornStrobe": SymbolKind.HORN_STROBE,
    "EOL": SymbolKind.EOL,
}

DEFAULT_SYMBOLS: dict[str, SymbolSpec] = {
    "FACP": SymbolSpec(SymbolKind.PANEL, 40, 20, 20),
    "Cell": SymbolSpec(SymbolKind.CELL, 30, 15, 15),
    "Smoke": SymbolSpec(SymbolKind.SMOKE, 14, 14, 14),
    "Pull": SymbolSpec(SymbolKind.PULL, 12, 12, 12),
    "HornStrobe": SymbolSpec(SymbolKind.HORN_STROBE, 22, 16, 16),
    "EOL": SymbolSpec(SymbolKind.EOL, 12, 6, 0),
}


def kind_for(type_name: str) -> SymbolKind:
    return _KIND_BY_NAME.get(type_name, SymbolKind.GENERIC)


class SymbolTable(Mapping[str, SymbolSpec]):
    """Read-only symbol size table.

    Per-spec overrides produce a new table; the process-wide default is
    never mutated.
    """

    def __init__(self, entries: Mapping[str, SymbolSpec] | None = None) -> None:
        self._entries = MappingProxyType(dict(DEFAULT_SYMBOLS if entries is None else entries))

    def __getitem__(self, key: str) -> SymbolSpec:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, type_name: str) -> SymbolSpec:
        spec = self._entries.get(type_name)
        if spec is None:
            w, h = DEFAULT_SIZE
            spec = SymbolSpec(kind_for(type_name), w, h, h)
        return spec

    def size(self, type_name: str) -> tuple[float, float]:
        spec = self.lookup(type_name)
        return spec.width, spec.height

    def bottom_offset(self, type_name: str) -> float:
        return self.lookup(type_name).bottom_offset

    def with_overrides(self, sizes: Mapping[str, tuple[float, float]]) -> SymbolTable:
        """Return a new table with (width, height) overrides applied."""
        entries = dict(self._entries)
        for name, (w, h) in sizes.items():
            kind = entries[name].kind if name in entries else kind_for(name)
            # EOL wires attach at the glyph's centre line, not a bottom frame
            offset = 0.0 if kind == SymbolKind.EOL else float(h)
            entries[name] = SymbolSpec(kind, float(w), float(h), offset)
        return SymbolTable(entries)


DEFAULT_TABLE = SymbolTable()


# ---------------------------------------------------------------------------
# SVG primitives
# ---------------------------------------------------------------------------

def _rect(x: float, y: float, w: float, h: float, dashed: bool = False) -> str:
    dash = ' stroke-dasharray="2,1"' if dashed else ""
    return (
        f'<rect x="{x}" y="{y}" width="{w}" height="{h}" '
        f'fill="none" stroke="{COLOR_BLACK}" stroke-width="{STROKE_SYMBOL}"{dash}/>'
    )


def _circle(cx: float, cy: float, r: float) -> str:
    return (
        f'<circle cx="{cx}" cy="{cy}" r="{r}" '
        f'fill="none" stroke="{COLOR_BLACK}" stroke-width="{STROKE_SYMBOL}"/>'
    )


def escape_xml(text: str) -> str:
    """Escape special XML characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _text(x: float, y: float, txt: str, size: float = FONT_DEVICE) -> str:
    return (
        f'<text x="{x}" y="{y}" font-size="{size}" text-anchor="middle" '
        f'dominant-baseline="central" fill="{COLOR_BLACK}">{escape_xml(txt)}</text>'
    )


# ---------------------------------------------------------------------------
# Glyphs
# ---------------------------------------------------------------------------

def panel(x: float, y: float, w: float, h: float, label: str = "FACP") -> str:
    """Fire alarm control panel: labelled frame."""
    return "\n".join([_rect(x, y, w, h), _text(x + w / 2, y + h / 2, label or "FACP", FONT_PANEL)])


def cell(x: float, y: float, w: float, h: float, label: str = "") -> str:
    """Cellular communicator: small labelled frame."""
    return "\n".join([_rect(x, y, w, h), _text(x + w / 2, y + h / 2, "CELL")])


def smoke(x: float, y: float, w: float, h: float, label: str = "") -> str:
    """Smoke detector: circle with an S."""
    r = min(w, h) / 2
    return "\n".join([_circle(x + w / 2, y + h / 2, r), _text(x + w / 2, y + h / 2, "S")])


def pull(x: float, y: float, w: float, h: float, label: str = "") -> str:
    """Manual pull station: square with an F."""
    return "\n".join([_rect(x, y, w, h), _text(x + w / 2, y + h / 2, "F")])


def horn_strobe(x: float, y: float, w: float, h: float, label: str = "") -> str:
    """Horn/strobe notification appliance: frame with a horn flare."""
    flare = (
        f'<polyline points="{x + w * 0.2},{y + h * 0.35} {x + w * 0.45},{y + h * 0.35} '
        f'{x + w * 0.7},{y + h * 0.15} {x + w * 0.7},{y + h * 0.85} '
        f'{x + w * 0.45},{y + h * 0.65} {x + w * 0.2},{y + h * 0.65} '
        f'{x + w * 0.2},{y + h * 0.35}" fill="none" stroke="{COLOR_BLACK}" '
        f'stroke-width="{STROKE_SYMBOL}"/>'
    )
    return "\n".join([_rect(x, y, w, h), flare])


def eol_points(x: float, y: float, w: float, h: float) -> list[tuple[float, float]]:
    """Zig-zag resistor vertices centred on the node's horizontal mid-line."""
    mid = y + h / 2
    pts = [(x, mid)]
    for i in range(1, 6):
        pts.append((x + w * i / 6, mid - h / 2 if i % 2 else mid + h / 2))
    pts.append((x + w, mid))
    return pts


def eol(x: float, y: float, w: float, h: float, label: str = "") -> str:
    """End-of-line resistor."""
    pts = " ".join(f"{px},{py}" for px, py in eol_points(x, y, w, h))
    return (
        f'<polyline points="{pts}" fill="none" stroke="{COLOR_BLACK}" '
        f'stroke-width="{STROKE_EOL}"/>'
    )


def generic(x: float, y: float, w: float, h: float, label: str = "") -> str:
    """Unknown device type: dashed box with the type name."""
    return "\n".join([_rect(x, y, w, h, dashed=True), _text(x + w / 2, y + h / 2, label[:4])])


# ---------------------------------------------------------------------------
# Glyph registry: maps symbol kinds to drawing functions
# ---------------------------------------------------------------------------

SYMBOL_REGISTRY: dict[SymbolKind, callable] = {
    SymbolKind.PANEL: panel,
    SymbolKind.CELL: cell,
    SymbolKind.SMOKE: smoke,
    SymbolKind.PULL: pull,
    SymbolKind.HORN_STROBE: horn_strobe,
    SymbolKind.EOL: eol,
    SymbolKind.GENERIC: generic,
}
