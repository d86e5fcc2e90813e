"""External layout adapter: ELK (Eclipse Layout Kernel) via elkjs.

Translates a riser ``Graph`` into ELK JSON, runs it through a layout engine
and reads positioned nodes and routed edge sections back. Two engines are
provided: an HTTP layout service and a local ``node`` subprocess driving
elkjs directly. Any failure surfaces as ``SolverError`` with the ELK graph
attached, so the caller can fall back to the manual router.
"""

from __future__ import annotations

import abc
import asyncio
import json
import logging
import os
import shutil
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from riser.diagram.graph import Graph, GraphNode
from riser.diagram.layout import LayoutResult, PlacedNode, RoutedPath
from riser.diagram.style import EDGE_NODE_SPACING, LAYER_SPACING
from riser.errors import SolverError
from riser.types import GraphMode, NodeKind, Point, Strategy

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_NODE_SIZE = (20.0, 20.0)
PORT_SIZE = 1.0

# Crossing, placement and compaction strategies for the layered algorithm
LAYERED_TUNING = {
    "elk.layered.crossingMinimization.strategy": "LAYER_SWEEP",
    "elk.layered.nodePlacement.strategy": "BRANDES_KOEPF",
    "elk.layered.compaction.strategy": "EDGE_LENGTH",
}


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutOptions:
    algorithm: str = "layered"
    direction: str = "RIGHT"
    edge_routing: str = "ORTHOGONAL"
    node_spacing: float = 28.0
    layer_spacing: float = LAYER_SPACING
    edge_node_spacing: float = EDGE_NODE_SPACING
    partitioning: bool = True

    @classmethod
    def for_graph(cls, graph: Graph, config=None) -> LayoutOptions:
        """Fixed algorithm for pinned (star) graphs, layered otherwise."""
        kwargs: dict[str, Any] = {
            "algorithm": "fixed" if graph.mode == GraphMode.STAR else "layered",
            "node_spacing": graph.spec.lane_gap,
        }
        if config is not None:
            kwargs["layer_spacing"] = config.layer_spacing
            kwargs["edge_node_spacing"] = config.edge_node_spacing
        return cls(**kwargs)

    def to_elk(self) -> dict[str, str]:
        opts = {
            "elk.algorithm": self.algorithm,
            "elk.direction": self.direction,
            "elk.edgeRouting": self.edge_routing,
            "elk.spacing.nodeNode": str(self.node_spacing),
            "elk.layered.spacing.nodeNodeBetweenLayers": str(self.layer_spacing),
            "elk.spacing.edgeNode": str(self.edge_node_spacing),
        }
        if self.partitioning:
            opts["elk.partitioning.activate"] = "true"
        if self.algorithm == "layered":
            opts.update(LAYERED_TUNING)
        return opts


# ---------------------------------------------------------------------------
# Graph → ELK JSON
# ---------------------------------------------------------------------------

def _elk_node(node: GraphNode, options: LayoutOptions) -> dict[str, Any]:
    child: dict[str, Any] = {
        "id": node.id,
        "width": node.width,
        "height": node.height,
        "layoutOptions": {},
    }
    if options.partitioning:
        child["layoutOptions"]["elk.partitioning.partition"] = str(node.partition)
    if node.fixed:
        child["x"] = node.x
        child["y"] = node.y
        if options.algorithm == "fixed":
            child["layoutOptions"]["elk.position"] = f"({node.x}, {node.y})"
    if node.ports:
        child["layoutOptions"]["elk.portConstraints"] = "FIXED_SIDE"
        child["ports"] = [
            {
                "id": port.id,
                "width": PORT_SIZE,
                "height": PORT_SIZE,
                "layoutOptions": {"elk.port.side": port.side.value},
            }
            for port in node.ports
        ]
    return child


def to_elk_graph(graph: Graph, options: LayoutOptions | None = None) -> dict[str, Any]:
    options = options or LayoutOptions.for_graph(graph)
    return {
        "id": "root",
        "layoutOptions": options.to_elk(),
        "children": [_elk_node(n, options) for n in graph.nodes.values()],
        "edges": [
            {
                "id": e.id,
                "sources": [e.source_port or e.source],
                "targets": [e.target],
            }
            for e in graph.edges
        ],
    }


# ---------------------------------------------------------------------------
# ELK JSON → LayoutResult
# ---------------------------------------------------------------------------

def _point(raw: Any) -> Point:
    if not isinstance(raw, dict):
        raise ValueError(f"ELK point must be an object, got {type(raw).__name__}")
    return (float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))


def section_points(edge: dict[str, Any]) -> list[Point]:
    """Concatenate start, bends and end of every section, in order.

    Points are neither reordered nor de-duplicated. A section that is not
    an object, or a point that is not one, raises ``ValueError``.
    """
    pts: list[Point] = []
    for section in edge.get("sections") or []:
        if not isinstance(section, dict):
            raise ValueError(f"ELK edge section must be an object, got {type(section).__name__}")
        if "startPoint" in section:
            pts.append(_point(section["startPoint"]))
        pts.extend(_point(bp) for bp in section.get("bendPoints") or [])
        if "endPoint" in section:
            pts.append(_point(section["endPoint"]))
    return pts


def parse_elk_result(raw: dict[str, Any], graph: Graph) -> LayoutResult:
    """Read positioned nodes and routed edges from an ELK layout result."""
    if not isinstance(raw, dict):
        raise TypeError(f"ELK result must be an object, got {type(raw).__name__}")

    result = LayoutResult(strategy=Strategy.SOLVER)
    port_owner = {p.id: n.id for n in graph.nodes.values() for p in n.ports}
    dw, dh = DEFAULT_NODE_SIZE

    for child in raw.get("children") or []:
        node_id = child["id"]
        meta = graph.nodes.get(node_id)
        result.add_node(PlacedNode(
            id=node_id,
            x=float(child.get("x", 0.0)),
            y=float(child.get("y", 0.0)),
            width=float(child.get("width", dw)),
            height=float(child.get("height", dh)),
            kind=meta.kind if meta else NodeKind.DEVICE,
            symbol=meta.symbol if meta else "",
            label=meta.label if meta else "",
        ))

    for edge in raw.get("edges") or []:
        edge_id = edge["id"]
        meta = graph.edge(edge_id)
        if meta is not None:
            source, target, circuit_id = meta.source, meta.target, meta.circuit_id
        else:
            sources = edge.get("sources") or [""]
            targets = edge.get("targets") or [""]
            source = port_owner.get(sources[0], sources[0])
            target = port_owner.get(targets[0], targets[0])
            circuit_id = None
        result.paths.append(RoutedPath(
            id=edge_id,
            source=source,
            target=target,
            points=section_points(edge),
            circuit_id=circuit_id,
        ))
    return result


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------

class LayoutEngine(abc.ABC):
    """An external graph layout service."""

    @abc.abstractmethod
    async def layout(self, elk_graph: dict[str, Any]) -> dict[str, Any]:
        """Lay out an ELK JSON graph and return the positioned graph."""

    @abc.abstractmethod
    def name(self) -> str:
        """Engine identifier."""

    def is_available(self) -> bool:
        return True

    async def health_check(self) -> dict:
        return {"status": "healthy" if self.is_available() else "unavailable"}

    async def connect(self) -> None:
        """Establish connection (optional override)."""

    async def disconnect(self) -> None:
        """Teardown (optional override)."""


class ElkHttpEngine(LayoutEngine):
    """ELK layout served over HTTP: ``POST {url}/layout`` with the graph JSON."""

    def __init__(self, url: str = "http://localhost:8351", timeout: float = DEFAULT_TIMEOUT) -> None:
        self._url = url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        self._client = httpx.AsyncClient(base_url=self._url, timeout=self._timeout)

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if not self._client:
            self._client = httpx.AsyncClient(base_url=self._url, timeout=self._timeout)
        return self._client

    async def layout(self, elk_graph: dict[str, Any]) -> dict[str, Any]:
        client = self._get_client()
        resp = await client.post("/layout", json=elk_graph)
        resp.raise_for_status()
        return resp.json()

    async def health_check(self) -> dict:
        try:
            client = self._get_client()
            resp = await client.get("/health")
            return {"status": "healthy", "code": resp.status_code}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}

    def name(self) -> str:
        return "elk-http"


_NODE_SCRIPT = """
const ELK = require(process.env.RISER_ELK_MODULE);
let buf = '';
process.stdin.setEncoding('utf8');
process.stdin.on('data', (d) => { buf += d; });
process.stdin.on('end', () => {
  new ELK().layout(JSON.parse(buf))
    .then((r) => process.stdout.write(JSON.stringify(r)))
    .catch((e) => { process.stderr.write(String((e && e.stack) || e)); process.exit(1); });
});
"""


class ElkNodeEngine(LayoutEngine):
    """Runs elkjs in a short-lived ``node`` process, one per layout.

    The graph goes in on stdin and the laid-out graph comes back on stdout.
    Cancelling the awaiting task kills the process.
    """

    def __init__(self, node_binary: str = "node", elk_module: str = "elkjs/lib/elk.bundled.js") -> None:
        self._node = node_binary
        self._module = elk_module

    def is_available(self) -> bool:
        return shutil.which(self._node) is not None

    async def layout(self, elk_graph: dict[str, Any]) -> dict[str, Any]:
        env = dict(os.environ, RISER_ELK_MODULE=self._module)
        proc = await asyncio.create_subprocess_exec(
            self._node, "-e", _NODE_SCRIPT,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await proc.communicate(json.dumps(elk_graph).encode("utf-8"))
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise
        if proc.returncode != 0:
            raise RuntimeError(
                f"elkjs exited with {proc.returncode}: {stderr.decode('utf-8', 'replace').strip()}"
            )
        return json.loads(stdout)

    async def health_check(self) -> dict:
        if not self.is_available():
            return {"status": "unavailable", "binary": self._node}
        return {"status": "healthy", "binary": shutil.which(self._node)}

    def name(self) -> str:
        return "elk-node"


def create_engine(config) -> Optional[LayoutEngine]:
    """Build the layout engine named by ``config.elk_engine``, if any."""
    kind = (config.elk_engine or "none").lower()
    if kind == "http":
        return ElkHttpEngine(config.elk_url, config.elk_timeout)
    if kind == "node":
        return ElkNodeEngine(config.node_binary, config.elk_module)
    if kind != "none":
        log.warning("Unknown layout engine %r, solver disabled", config.elk_engine)
    return None


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------

async def layout_via_solver(
    graph: Graph,
    engine: LayoutEngine,
    options: LayoutOptions | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> LayoutResult:
    """Run the solver on ``graph``; every failure becomes ``SolverError``."""
    elk_graph = to_elk_graph(graph, options)
    try:
        raw = await asyncio.wait_for(engine.layout(elk_graph), timeout)
    except asyncio.TimeoutError as e:
        raise SolverError(f"Layout engine {engine.name()} timed out after {timeout}s", elk_graph) from e
    except Exception as e:
        raise SolverError(f"Layout engine {engine.name()} failed: {e}", elk_graph) from e

    try:
        return parse_elk_result(raw, graph)
    except Exception as e:
        raise SolverError(f"Layout engine {engine.name()} returned a malformed result: {e}", elk_graph) from e
