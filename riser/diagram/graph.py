"""Graph builder: spec model → abstract node/edge graph.

The graph is what the external solver sees. Two topologies exist:

* chained: Panel → D1 → … → Dn → EOL per circuit, the physical series
  wiring of a loop. Used when device positions are left to the solver.
* star: one invisible bus node per circuit with every device and the EOL
  hanging off it. Used when the spec pins every device in place.

Devices on the reserved ``PANEL`` circuit always get a direct stub edge.
Circuit styles are resolved here, once, and carried on the graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from riser.diagram.layout import (
    RoutingSettings,
    bus_node_id,
    device_node_id,
    eol_node_id,
    panel_device_node_id,
    place,
    port_ref,
    resolve_orientation,
)
from riser.diagram.model import SpecModel
from riser.diagram.style import (
    BUS_NODE_HEIGHT,
    BUS_NODE_OVERHANG,
    PANEL_CIRCUIT_ID,
    PANEL_STUB_COLOR,
    PARTITION_EAST,
    PARTITION_PANEL,
    PARTITION_WEST,
)
from riser.errors import ConfigurationError, MissingPortError
from riser.types import GraphMode, LineStyle, NodeKind, Orientation, Side

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CircuitStyle:
    color: str
    dashed: bool = False


@dataclass
class NodePort:
    id: str
    port_id: str
    side: Side
    label: str = ""


@dataclass
class GraphNode:
    id: str
    kind: NodeKind
    width: float
    height: float
    symbol: str = ""
    label: str = ""
    circuit_id: Optional[str] = None
    partition: int = PARTITION_PANEL
    x: Optional[float] = None
    y: Optional[float] = None
    ports: list[NodePort] = field(default_factory=list)

    @property
    def fixed(self) -> bool:
        return self.x is not None and self.y is not None


@dataclass
class GraphEdge:
    id: str
    source: str
    target: str
    circuit_id: Optional[str] = None
    # Only set on the first hop out of a ported panel
    source_port: Optional[str] = None


@dataclass
class Graph:
    spec: SpecModel
    mode: GraphMode
    panel_id: str
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)
    styles: dict[str, CircuitStyle] = field(default_factory=dict)
    orientations: dict[str, Orientation] = field(default_factory=dict)

    def add_node(self, node: GraphNode) -> GraphNode:
        self.nodes[node.id] = node
        return node

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        self.edges.append(edge)
        return edge

    def edge(self, edge_id: str) -> Optional[GraphEdge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    @property
    def explicit_positions(self) -> bool:
        return self.mode == GraphMode.STAR

    def summary(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "nodes": len(self.nodes),
            "edges": len(self.edges),
            "circuits": sorted(self.orientations),
        }


def circuit_styles(
    spec: SpecModel, settings: RoutingSettings | None = None,
) -> dict[str, CircuitStyle]:
    """Resolve colour and dash for every circuit, plus the panel stubs.

    An explicit ``style`` wins; otherwise notification circuits (id prefix)
    draw dashed and everything else solid.
    """
    settings = settings or RoutingSettings()
    styles = {PANEL_CIRCUIT_ID: CircuitStyle(PANEL_STUB_COLOR, False)}
    for circ in spec.circuits:
        if circ.line_style is not None:
            dashed = circ.line_style == LineStyle.DASHED
        else:
            dashed = circ.id.startswith(settings.notification_prefix)
        styles[circ.id] = CircuitStyle(circ.color or settings.default_color, dashed)
    return styles


def _check_ports(spec: SpecModel) -> None:
    panel = spec.panel
    for circ in spec.circuits:
        if circ.panel_ref is not None and circ.panel_ref != panel.id:
            raise ConfigurationError(
                f"Circuit {circ.id!r} is wired from panel {circ.panel_ref!r}, "
                f"but the sheet's panel is {panel.id!r}"
            )
        if circ.port_id is not None and panel.port(circ.port_id) is None:
            raise MissingPortError(circ.id, circ.port_id, panel.id)


def _partition(orientation: Orientation) -> int:
    return PARTITION_WEST if orientation == Orientation.WEST else PARTITION_EAST


def build_graph(spec: SpecModel, settings: RoutingSettings | None = None) -> Graph:
    """Build the node/edge graph for one compile.

    Raises ``ConfigurationError`` (``MissingPortError`` for an undeclared
    port) before any node is created; nothing partial is returned.
    """
    _check_ports(spec)

    mode = GraphMode.STAR if spec.has_explicit_positions else GraphMode.CHAINED
    panel = spec.panel
    graph = Graph(
        spec=spec,
        mode=mode,
        panel_id=panel.id,
        styles=circuit_styles(spec, settings),
    )

    pw, ph = spec.symbols.size(panel.symbol)
    graph.add_node(GraphNode(
        id=panel.id,
        kind=NodeKind.PANEL,
        width=pw,
        height=ph,
        symbol=panel.symbol,
        label=panel.label,
        x=panel.x,
        y=panel.y,
        ports=[
            NodePort(id=port_ref(panel.id, p.id), port_id=p.id, side=p.side, label=p.label)
            for p in panel.ports
        ],
    ))

    for circ in spec.active_circuits:
        graph.orientations[circ.id] = resolve_orientation(spec, circ)

    if mode == GraphMode.STAR:
        _build_star(graph, settings)
    else:
        _build_chained(graph)

    for i, dev in enumerate(spec.panel_devices):
        w, h = spec.symbols.size(dev.type)
        node = graph.add_node(GraphNode(
            id=panel_device_node_id(i),
            kind=NodeKind.DEVICE,
            width=w,
            height=h,
            symbol=dev.type,
            label=dev.label,
            circuit_id=PANEL_CIRCUIT_ID,
            x=dev.x,
            y=dev.y,
        ))
        graph.add_edge(GraphEdge(
            id=f"panel-stub-{i}", source=panel.id, target=node.id, circuit_id=PANEL_CIRCUIT_ID,
        ))

    log.debug(
        "Built %s graph: %d nodes, %d edges", mode.value, len(graph.nodes), len(graph.edges),
    )
    return graph


def _source_port(graph: Graph, circuit) -> Optional[str]:
    if circuit.port_id is None:
        return None
    return port_ref(graph.panel_id, circuit.port_id)


def _build_chained(graph: Graph) -> None:
    spec = graph.spec
    for circ in spec.active_circuits:
        partition = _partition(graph.orientations[circ.id])
        prev = graph.panel_id
        for i, dev in enumerate(circ.devices):
            w, h = spec.symbols.size(dev.type)
            node = graph.add_node(GraphNode(
                id=device_node_id(circ.id, dev.index),
                kind=NodeKind.DEVICE,
                width=w,
                height=h,
                symbol=dev.type,
                label=dev.label,
                circuit_id=circ.id,
                partition=partition,
                x=dev.x,
                y=dev.y,
            ))
            graph.add_edge(GraphEdge(
                id=f"edge-{circ.id}-{i}",
                source=prev,
                target=node.id,
                circuit_id=circ.id,
                source_port=_source_port(graph, circ) if i == 0 else None,
            ))
            prev = node.id

        if circ.eol is not None:
            w, h = spec.symbols.size(circ.eol.type)
            node = graph.add_node(GraphNode(
                id=eol_node_id(circ.id),
                kind=NodeKind.EOL,
                width=w,
                height=h,
                symbol=circ.eol.type,
                label=circ.eol.value,
                circuit_id=circ.id,
                partition=partition,
            ))
            graph.add_edge(GraphEdge(
                id=f"edge-{circ.id}-eol", source=prev, target=node.id, circuit_id=circ.id,
            ))


def _build_star(graph: Graph, settings: RoutingSettings | None) -> None:
    spec = graph.spec
    placement = place(spec, settings)
    for cid, cp in placement.circuits.items():
        circ = cp.circuit
        partition = _partition(cp.orientation)

        bus = graph.add_node(GraphNode(
            id=bus_node_id(cid),
            kind=NodeKind.BUS,
            width=cp.max_x - cp.min_x + 2 * BUS_NODE_OVERHANG,
            height=BUS_NODE_HEIGHT,
            circuit_id=cid,
            partition=partition,
            x=cp.min_x - BUS_NODE_OVERHANG,
            y=cp.bus_y,
        ))
        graph.add_edge(GraphEdge(
            id=f"{cid}-panel-to-bus",
            source=graph.panel_id,
            target=bus.id,
            circuit_id=cid,
            source_port=_source_port(graph, circ),
        ))

        for dev, box in cp.devices:
            graph.add_node(GraphNode(
                id=device_node_id(cid, dev.index),
                kind=NodeKind.DEVICE,
                width=box.width,
                height=box.height,
                symbol=dev.type,
                label=dev.label,
                circuit_id=cid,
                partition=partition,
                x=box.x,
                y=box.y,
            ))
        for dev, _ in cp.by_x():
            graph.add_edge(GraphEdge(
                id=f"{cid}-bus-to-dev-{dev.index}",
                source=bus.id,
                target=device_node_id(cid, dev.index),
                circuit_id=cid,
            ))

        if cp.eol is not None:
            graph.add_node(GraphNode(
                id=eol_node_id(cid),
                kind=NodeKind.EOL,
                width=cp.eol.width,
                height=cp.eol.height,
                symbol=circ.eol.type,
                label=circ.eol.value,
                circuit_id=cid,
                partition=partition,
                x=cp.eol.x,
                y=cp.eol.y,
            ))
            graph.add_edge(GraphEdge(
                id=f"{cid}-bus-to-eol", source=bus.id, target=eol_node_id(cid), circuit_id=cid,
            ))
