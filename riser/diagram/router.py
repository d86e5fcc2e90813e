"""Manual router: the deterministic reference layout.

Given the same spec it always produces the same geometry. Per circuit with
at least one device:

1. bus elevation = lowest symbol frame + clearance
2. devices sorted left to right (stable on declaration order)
3. one continuous polyline: panel attach → bus → drop to each device and
   back → EOL x → drop to the EOL
4. ``PANEL`` devices get a three-point stub instead of a bus

``route_direct`` is the last-resort layout: straight lines from the panel
centre to every device centre.
"""

from __future__ import annotations

import logging

from riser.diagram.layout import (
    Box,
    CircuitPlacement,
    LayoutResult,
    PlacedNode,
    Placement,
    RoutedPath,
    RoutingSettings,
    bus_node_id,
    device_node_id,
    eol_node_id,
    panel_device_node_id,
    place,
)
from riser.diagram.model import SpecModel
from riser.diagram.style import BUS_NODE_HEIGHT, BUS_NODE_OVERHANG, PANEL_CIRCUIT_ID
from riser.types import NodeKind, Orientation, Point, Side, Strategy

log = logging.getLogger(__name__)


def _side_point(box: Box, side: Side, k: int = 0, n: int = 1) -> Point:
    """Attachment point for the k-th of n ports sharing one panel side."""
    frac = (k + 1) / (n + 1)
    if side == Side.WEST:
        return (box.x, box.y + box.height * frac)
    if side == Side.EAST:
        return (box.right, box.y + box.height * frac)
    if side == Side.NORTH:
        return (box.x + box.width * frac, box.y)
    return (box.x + box.width * frac, box.bottom)


def lead_in(spec: SpecModel, panel: Box, cp: CircuitPlacement) -> list[Point]:
    """Points from the panel attachment down to the circuit's bus.

    The first bend is the first point after the attachment whose x differs
    from it; it always lies toward the circuit's orientation. West and east
    ports bend on the first hop. North and south ports first escape straight
    out of the panel, then step sideways past the panel edge before dropping
    to the bus, so their first bend is the third point.
    """
    circ = cp.circuit
    side = None
    port = spec.panel.port(circ.port_id) if circ.port_id else None
    if port is not None:
        same_side = spec.panel.ports_on(port.side)
        side = port.side
        attach = _side_point(panel, side, same_side.index(port), len(same_side))
    elif circ.orientation is not None:
        side = Side(circ.orientation.value)
        attach = _side_point(panel, side)
    else:
        attach = (panel.cx, panel.y + spec.symbols.bottom_offset(spec.panel.symbol))
        return [attach, (attach[0], cp.bus_y)]

    ax, ay = attach
    e = cp.escape
    pts = [attach]
    if side == Side.WEST:
        pts.append((ax - e, ay))
    elif side == Side.EAST:
        pts.append((ax + e, ay))
    else:
        outer = panel.x - e if cp.orientation == Orientation.WEST else panel.right + e
        ey = ay + e if side == Side.SOUTH else ay - e
        pts.extend([(ax, ey), (outer, ey)])
    pts.append((pts[-1][0], cp.bus_y))
    return pts


def bus_polyline(spec: SpecModel, panel: Box, cp: CircuitPlacement) -> list[Point]:
    pts = lead_in(spec, panel, cp)
    ordered = cp.by_x()
    bus_y = cp.bus_y
    for idx, (dev, box) in enumerate(ordered):
        bottom = box.y + spec.symbols.bottom_offset(dev.type)
        pts.append((box.x, bus_y))
        pts.append((box.x, bottom))
        if idx < len(ordered) - 1 or cp.eol is not None:
            pts.append((box.x, bus_y))
    if cp.eol is not None:
        pts.append((cp.eol_x, bus_y))
        pts.append((cp.eol_x, cp.eol_attach_y))
    return pts


def _place_nodes(spec: SpecModel, placement: Placement, result: LayoutResult, with_bus: bool) -> None:
    panel = placement.panel
    result.add_node(PlacedNode(
        id=spec.panel.id, x=panel.x, y=panel.y, width=panel.width, height=panel.height,
        kind=NodeKind.PANEL, symbol=spec.panel.symbol, label=spec.panel.label,
    ))
    for cid, cp in placement.circuits.items():
        if with_bus:
            result.add_node(PlacedNode(
                id=bus_node_id(cid),
                x=cp.min_x - BUS_NODE_OVERHANG,
                y=cp.bus_y,
                width=cp.max_x - cp.min_x + 2 * BUS_NODE_OVERHANG,
                height=BUS_NODE_HEIGHT,
                kind=NodeKind.BUS,
            ))
        for dev, box in cp.devices:
            result.add_node(PlacedNode(
                id=device_node_id(cid, dev.index), x=box.x, y=box.y,
                width=box.width, height=box.height, symbol=dev.type, label=dev.label,
            ))
        if cp.eol is not None:
            eol = cp.circuit.eol
            result.add_node(PlacedNode(
                id=eol_node_id(cid), x=cp.eol.x, y=cp.eol.y,
                width=cp.eol.width, height=cp.eol.height,
                kind=NodeKind.EOL, symbol=eol.type, label=eol.value,
            ))
    for i, (dev, box) in enumerate(placement.panel_devices):
        result.add_node(PlacedNode(
            id=panel_device_node_id(i), x=box.x, y=box.y,
            width=box.width, height=box.height, symbol=dev.type, label=dev.label,
        ))


def route_manually(spec: SpecModel, settings: RoutingSettings | None = None) -> LayoutResult:
    placement = place(spec, settings)
    panel = placement.panel
    result = LayoutResult(strategy=Strategy.MANUAL)
    _place_nodes(spec, placement, result, with_bus=True)

    for cid, cp in placement.circuits.items():
        if cp.eol is not None:
            target = eol_node_id(cid)
        else:
            last, _ = cp.by_x()[-1]
            target = device_node_id(cid, last.index)
        result.paths.append(RoutedPath(
            id=f"{cid}-bus",
            source=spec.panel.id,
            target=target,
            points=bus_polyline(spec, panel, cp),
            circuit_id=cid,
        ))

    ax = panel.cx
    for i, (dev, box) in enumerate(placement.panel_devices):
        bottom = box.y + spec.symbols.bottom_offset(dev.type)
        result.paths.append(RoutedPath(
            id=f"panel-stub-{i}",
            source=spec.panel.id,
            target=panel_device_node_id(i),
            points=[(ax, panel.y), (ax, bottom), (box.cx, bottom)],
            circuit_id=PANEL_CIRCUIT_ID,
        ))

    log.debug("Manual route: %d nodes, %d paths", len(result.nodes), len(result.paths))
    return result


def route_direct(spec: SpecModel, settings: RoutingSettings | None = None) -> LayoutResult:
    placement = place(spec, settings)
    result = LayoutResult(strategy=Strategy.DIRECT)
    _place_nodes(spec, placement, result, with_bus=False)
    origin = result.nodes[spec.panel.id].center

    for cid, cp in placement.circuits.items():
        for dev, _ in cp.devices:
            node = result.nodes[device_node_id(cid, dev.index)]
            result.paths.append(RoutedPath(
                id=f"direct-{node.id}", source=spec.panel.id, target=node.id,
                points=[origin, node.center], circuit_id=cid,
            ))
    for i in range(len(placement.panel_devices)):
        node = result.nodes[panel_device_node_id(i)]
        result.paths.append(RoutedPath(
            id=f"direct-{node.id}", source=spec.panel.id, target=node.id,
            points=[origin, node.center], circuit_id=PANEL_CIRCUIT_ID,
        ))
    return result
