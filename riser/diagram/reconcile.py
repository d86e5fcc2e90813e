"""Geometry reconciler: one result shape for every layout strategy.

Merges positioned nodes and routed paths into ``DiagramGeometry``, the sole
contract consumed by the canvas renderer and the export writers. Every
node and path of the layout result is carried over; a path whose endpoint
node is missing is recorded as a data-integrity fault and still rendered.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from riser.diagram.graph import CircuitStyle, circuit_styles
from riser.diagram.layout import LayoutResult, RoutingSettings
from riser.diagram.model import SpecModel
from riser.types import NodeKind, Point, Strategy

log = logging.getLogger(__name__)

ORIGIN: Point = (0.0, 0.0)


class NodeGeometry(BaseModel):
    x: float
    y: float
    width: float
    height: float
    kind: NodeKind = NodeKind.DEVICE
    symbol: str = ""
    label: str = ""


class PathGeometry(BaseModel):
    points: list[tuple[float, float]] = Field(default_factory=list)
    circuit_id: Optional[str] = None
    color: str = "black"
    dashed: bool = False
    source: str = ""
    target: str = ""


class Fault(BaseModel):
    kind: str = "data_integrity"
    path_id: str
    node_id: str
    message: str


class DiagramGeometry(BaseModel):
    """Positioned nodes and styled polylines for one sheet (y grows down)."""

    title: str = ""
    strategy: Strategy = Strategy.MANUAL
    fallbacks: list[Strategy] = Field(default_factory=list)
    nodes: dict[str, NodeGeometry] = Field(default_factory=dict)
    paths: dict[str, PathGeometry] = Field(default_factory=dict)
    faults: list[Fault] = Field(default_factory=list)

    def visible_nodes(self) -> dict[str, NodeGeometry]:
        """Every node except the invisible bus helpers."""
        return {k: n for k, n in self.nodes.items() if n.kind != NodeKind.BUS}

    def circuit_paths(self, circuit_id: str) -> dict[str, PathGeometry]:
        return {k: p for k, p in self.paths.items() if p.circuit_id == circuit_id}

    def extent(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over visible nodes and all path points."""
        xs: list[float] = []
        ys: list[float] = []
        for n in self.visible_nodes().values():
            xs.extend((n.x, n.x + n.width))
            ys.extend((n.y, n.y + n.height))
        for p in self.paths.values():
            for x, y in p.points:
                xs.append(x)
                ys.append(y)
        if not xs:
            return (0.0, 0.0, 0.0, 0.0)
        return (min(xs), min(ys), max(xs), max(ys))


def _norm(value: float) -> float:
    v = round(float(value), 6)
    # Fold -0.0 into 0.0 so identical layouts serialise identically
    return 0.0 if v == 0 else v


def reconcile(
    result: LayoutResult,
    spec: SpecModel,
    styles: dict[str, CircuitStyle] | None = None,
    settings: RoutingSettings | None = None,
) -> DiagramGeometry:
    """Merge a layout result into renderer-ready geometry.

    A path whose source or target node is missing is always recorded as a
    fault. The origin stands in for the missing end only when the path has
    no points of its own; a routed path keeps its points unchanged.
    """
    settings = settings or RoutingSettings()
    styles = styles if styles is not None else circuit_styles(spec, settings)
    default_style = CircuitStyle(settings.default_color, False)

    geometry = DiagramGeometry(
        title=spec.title,
        strategy=result.strategy,
        fallbacks=list(result.fallbacks),
    )

    for node_id, node in result.nodes.items():
        geometry.nodes[node_id] = NodeGeometry(
            x=_norm(node.x),
            y=_norm(node.y),
            width=_norm(node.width),
            height=_norm(node.height),
            kind=node.kind,
            symbol=node.symbol,
            label=node.label,
        )

    for path in result.paths:
        points = [(_norm(x), _norm(y)) for x, y in path.points]

        ends: list[Point] = []
        for node_id in (path.source, path.target):
            node = result.nodes.get(node_id)
            if node is None:
                msg = f"Path {path.id!r} references missing node {node_id!r}"
                log.warning("%s, rendering that end at the origin", msg)
                geometry.faults.append(Fault(path_id=path.id, node_id=node_id, message=msg))
                ends.append(ORIGIN)
            else:
                cx, cy = node.center
                ends.append((_norm(cx), _norm(cy)))
        if not points:
            points = ends

        style = styles.get(path.circuit_id, default_style) if path.circuit_id else default_style

        path_id = path.id
        if path_id in geometry.paths:
            n = 2
            while f"{path.id}#{n}" in geometry.paths:
                n += 1
            path_id = f"{path.id}#{n}"
            log.warning("Duplicate path id %s kept as %s", path.id, path_id)

        geometry.paths[path_id] = PathGeometry(
            points=points,
            circuit_id=path.circuit_id,
            color=style.color,
            dashed=style.dashed,
            source=path.source,
            target=path.target,
        )

    log.debug(
        "Reconciled %d nodes, %d paths, %d faults",
        len(geometry.nodes), len(geometry.paths), len(geometry.faults),
    )
    return geometry
