"""Fake layout engines standing in for an ELK service."""

from __future__ import annotations

import asyncio

from riser.diagram.elk import LayoutEngine


def echo_layout(elk_graph: dict) -> dict:
    """A stand-in solver: stacks nodes diagonally, routes every edge with one bend."""
    children = []
    for i, child in enumerate(elk_graph["children"]):
        placed = dict(child)
        placed.setdefault("x", 10.0 * i)
        placed.setdefault("y", 5.0 * i)
        children.append(placed)
    edges = []
    for i, edge in enumerate(elk_graph["edges"]):
        routed = dict(edge)
        routed["sections"] = [{
            "startPoint": {"x": 0.0, "y": float(i)},
            "bendPoints": [{"x": 5.0, "y": float(i)}],
            "endPoint": {"x": 5.0, "y": float(i) + 10.0},
        }]
        edges.append(routed)
    return {**elk_graph, "children": children, "edges": edges}


class EchoEngine(LayoutEngine):
    def __init__(self) -> None:
        self.calls = 0
        self.last_graph: dict | None = None

    async def layout(self, elk_graph: dict) -> dict:
        self.calls += 1
        self.last_graph = elk_graph
        return echo_layout(elk_graph)

    def name(self) -> str:
        return "echo"


class FailingEngine(LayoutEngine):
    def __init__(self) -> None:
        self.calls = 0

    async def layout(self, elk_graph: dict) -> dict:
        self.calls += 1
        raise RuntimeError("solver exploded")

    def name(self) -> str:
        return "failing"


class SlowEngine(LayoutEngine):
    def __init__(self, delay: float = 5.0) -> None:
        self.delay = delay

    async def layout(self, elk_graph: dict) -> dict:
        await asyncio.sleep(self.delay)
        return echo_layout(elk_graph)

    def name(self) -> str:
        return "slow"


class GatedEngine(LayoutEngine):
    """Blocks inside layout() until released, so a test can supersede it."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def layout(self, elk_graph: dict) -> dict:
        self.started.set()
        await self.release.wait()
        return echo_layout(elk_graph)

    def name(self) -> str:
        return "gated"

