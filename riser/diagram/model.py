"""Canonical in-memory spec model.

Both accepted input shapes normalise into these frozen dataclasses, so the
graph builder and both routing strategies see a single representation. A
``SpecModel`` is immutable input for exactly one compile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from riser.diagram.style import DEFAULT_EOL_DROP, DEFAULT_LANE_GAP, PANEL_SYMBOL
from riser.diagram.symbols import DEFAULT_TABLE, SymbolTable
from riser.types import LineStyle, Orientation, Side, SpecShape


@dataclass(frozen=True)
class Port:
    id: str
    side: Side
    label: str = ""


@dataclass(frozen=True)
class Panel:
    id: str
    x: float = 0.0
    y: float = 0.0
    ports: tuple[Port, ...] = ()
    symbol: str = PANEL_SYMBOL
    label: str = "FACP"

    @property
    def has_ports(self) -> bool:
        return bool(self.ports)

    def port(self, port_id: str) -> Optional[Port]:
        for port in self.ports:
            if port.id == port_id:
                return port
        return None

    def ports_on(self, side: Side) -> list[Port]:
        return [p for p in self.ports if p.side == side]


@dataclass(frozen=True)
class Device:
    type: str
    circuit_id: str
    index: int
    x: Optional[float] = None
    y: Optional[float] = None
    label: str = ""

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None


@dataclass(frozen=True)
class Eol:
    circuit_id: str
    type: str = "EOL"
    x: Optional[float] = None
    drop: float = DEFAULT_EOL_DROP
    value: str = ""


@dataclass(frozen=True)
class Circuit:
    id: str
    circuit_class: str = ""
    color: Optional[str] = None
    orientation: Optional[Orientation] = None
    port_id: Optional[str] = None
    panel_ref: Optional[str] = None
    spacing: Optional[float] = None
    line_style: Optional[LineStyle] = None
    devices: tuple[Device, ...] = ()
    eol: Optional[Eol] = None

    @property
    def is_empty(self) -> bool:
        return not self.devices


@dataclass(frozen=True)
class SpecModel:
    """One riser sheet: a panel, its circuits and panel-local equipment."""

    panel: Panel
    circuits: tuple[Circuit, ...] = ()
    panel_devices: tuple[Device, ...] = ()
    symbols: SymbolTable = field(default_factory=lambda: DEFAULT_TABLE, compare=False)
    title: str = ""
    lane_gap: float = DEFAULT_LANE_GAP
    shape: SpecShape = SpecShape.LEGACY

    def circuit(self, circuit_id: str) -> Optional[Circuit]:
        for circ in self.circuits:
            if circ.id == circuit_id:
                return circ
        return None

    @property
    def active_circuits(self) -> list[Circuit]:
        """Circuits that carry at least one device; the rest draw nothing."""
        return [c for c in self.circuits if not c.is_empty]

    @property
    def has_explicit_positions(self) -> bool:
        devices = [d for c in self.circuits for d in c.devices] + list(self.panel_devices)
        return bool(devices) and all(d.has_position for d in devices)
