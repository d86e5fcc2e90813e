"""Layout result types and deterministic placement.

Both routing strategies and the external solver adapter produce a
``LayoutResult``: positioned nodes plus ordered polylines. Placement fills
in coordinates the spec leaves out so the manual router, the direct
fallback and the star-from-bus graph all agree on where things sit.

Coordinates use one convention throughout: x grows right, y grows down,
nodes are addressed by their top-left corner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from riser.diagram.model import Circuit, Device, SpecModel
from riser.diagram.style import (
    BUS_CLEARANCE,
    DEFAULT_CIRCUIT_COLOR,
    DEFAULT_DEVICE_SPACING,
    NOTIFICATION_PREFIX,
    PORT_ESCAPE,
)
from riser.types import NodeKind, Orientation, Point, Side, Strategy

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stable identifiers shared by every strategy
# ---------------------------------------------------------------------------

def device_node_id(circuit_id: str, index: int) -> str:
    return f"circuit-{circuit_id}-device-{index}"


def eol_node_id(circuit_id: str) -> str:
    return f"circuit-{circuit_id}-eol"


def bus_node_id(circuit_id: str) -> str:
    return f"bus-{circuit_id}"


def panel_device_node_id(index: int) -> str:
    return f"panel-device-{index}"


def port_ref(panel_id: str, port_id: str) -> str:
    return f"{panel_id}.{port_id}"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class PlacedNode:
    """A node with resolved position and size."""

    id: str
    x: float
    y: float
    width: float
    height: float
    kind: NodeKind = NodeKind.DEVICE
    symbol: str = ""
    label: str = ""

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class RoutedPath:
    """An ordered polyline between two nodes.

    Consecutive duplicate points are legal and must be tolerated.
    """

    id: str
    source: str
    target: str
    points: list[Point] = field(default_factory=list)
    circuit_id: Optional[str] = None


@dataclass
class LayoutResult:
    """Output of one layout strategy run."""

    nodes: dict[str, PlacedNode] = field(default_factory=dict)
    paths: list[RoutedPath] = field(default_factory=list)
    strategy: Strategy = Strategy.MANUAL
    # Strategies that were attempted and abandoned, in order
    fallbacks: list[Strategy] = field(default_factory=list)

    def add_node(self, node: PlacedNode) -> None:
        self.nodes[node.id] = node


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoutingSettings:
    """Tunables for placement, manual routing and style resolution."""

    bus_clearance: float = BUS_CLEARANCE
    port_escape: float = PORT_ESCAPE
    device_spacing: float = DEFAULT_DEVICE_SPACING
    notification_prefix: str = NOTIFICATION_PREFIX
    default_color: str = DEFAULT_CIRCUIT_COLOR

    @classmethod
    def from_config(cls, config) -> RoutingSettings:
        if config is None:
            return cls()
        return cls(
            bus_clearance=config.bus_clearance,
            port_escape=config.port_escape,
            device_spacing=config.device_spacing,
            notification_prefix=config.notification_prefix,
            default_color=config.default_color,
        )


DEFAULT_SETTINGS = RoutingSettings()


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

def resolve_orientation(spec: SpecModel, circuit: Circuit) -> Orientation:
    """Declared orientation, else the bound port's side, else EAST."""
    if circuit.orientation is not None:
        return circuit.orientation
    if circuit.port_id:
        port = spec.panel.port(circuit.port_id)
        if port is not None and port.side == Side.WEST:
            return Orientation.WEST
    return Orientation.EAST


@dataclass
class CircuitPlacement:
    circuit: Circuit
    orientation: Orientation
    # Declaration order, paired with the resolved box
    devices: list[tuple[Device, Box]]
    bus_y: float
    escape: float
    eol: Optional[Box] = None
    eol_x: Optional[float] = None
    eol_attach_y: Optional[float] = None

    def by_x(self) -> list[tuple[Device, Box]]:
        """Devices left to right; ties keep declaration order."""
        return sorted(self.devices, key=lambda pair: pair[1].x)

    @property
    def min_x(self) -> float:
        return min(box.x for _, box in self.devices)

    @property
    def max_x(self) -> float:
        return max(box.x for _, box in self.devices)


@dataclass
class Placement:
    panel: Box
    circuits: dict[str, CircuitPlacement] = field(default_factory=dict)
    panel_devices: list[tuple[Device, Box]] = field(default_factory=list)


def place(spec: SpecModel, settings: RoutingSettings | None = None) -> Placement:
    """Resolve every box on the sheet.

    Explicit coordinates are kept verbatim. Missing ones are filled
    deterministically: WEST circuits extend left of the panel and EAST
    circuits right, one row per circuit stacked below the panel, rows
    separated by the lane gap. Circuits with no devices are skipped.
    """
    settings = settings or DEFAULT_SETTINGS
    symbols = spec.symbols
    pw, ph = symbols.size(spec.panel.symbol)
    panel = Box(spec.panel.x, spec.panel.y, pw, ph)
    placement = Placement(panel=panel)

    active = spec.active_circuits
    orientations = {c.id: resolve_orientation(spec, c) for c in active}
    per_side = {o: [c.id for c in active if orientations[c.id] == o] for o in Orientation}

    # Rows stacked deeper on a side get the shallower escape so the
    # vertical runs down to each bus never cross an earlier bus.
    cursor = {o: panel.bottom + spec.lane_gap for o in Orientation}

    for circuit in active:
        orientation = orientations[circuit.id]
        side_ids = per_side[orientation]
        escape = settings.port_escape * (len(side_ids) - side_ids.index(circuit.id))
        spacing = circuit.spacing or settings.device_spacing
        row_y = cursor[orientation]

        def slot_x(i: int) -> float:
            if orientation == Orientation.WEST:
                return panel.x - escape - spacing * (i + 1)
            return panel.right + escape + spacing * (i + 1)

        devices: list[tuple[Device, Box]] = []
        for dev in circuit.devices:
            w, h = symbols.size(dev.type)
            x = dev.x if dev.x is not None else slot_x(dev.index)
            y = dev.y if dev.y is not None else row_y
            devices.append((dev, Box(x, y, w, h)))

        lowest = max(box.y + symbols.bottom_offset(dev.type) for dev, box in devices)
        bus_y = lowest + settings.bus_clearance

        cp = CircuitPlacement(
            circuit=circuit,
            orientation=orientation,
            devices=devices,
            bus_y=bus_y,
            escape=escape,
        )

        if circuit.eol is not None:
            eol = circuit.eol
            ew, eh = symbols.size(eol.type)
            if eol.x is not None:
                eol_x = eol.x
            elif orientation == Orientation.WEST:
                eol_x = cp.min_x - spacing
            else:
                eol_x = cp.max_x + spacing
            attach_y = bus_y + eol.drop
            cp.eol_x = eol_x
            cp.eol_attach_y = attach_y
            cp.eol = Box(eol_x - ew / 2, attach_y - eh / 2, ew, eh)

        bottom = max(bus_y, cp.eol.bottom if cp.eol else bus_y)
        cursor[orientation] = max(cursor[orientation], bottom + spec.lane_gap)
        placement.circuits[circuit.id] = cp

    for k, dev in enumerate(spec.panel_devices):
        w, h = symbols.size(dev.type)
        x = dev.x if dev.x is not None else panel.right + settings.port_escape + settings.device_spacing * k
        y = dev.y if dev.y is not None else panel.y - spec.lane_gap
        placement.panel_devices.append((dev, Box(x, y, w, h)))

    log.debug(
        "Placed %d circuits and %d panel devices",
        len(placement.circuits), len(placement.panel_devices),
    )
    return placement
