"""Layout strategy selection with a fallback chain.

solver → manual → direct. A solver fault (error or timeout) is logged and
recovered by the manual router; should the manual router itself fail, the
straight-line direct layout is used. Solver faults never reach the caller.
"""

from __future__ import annotations

import abc
import logging
from typing import Optional

from riser.diagram.elk import DEFAULT_TIMEOUT, LayoutEngine, LayoutOptions, layout_via_solver
from riser.diagram.graph import Graph
from riser.diagram.layout import LayoutResult, RoutingSettings
from riser.diagram.router import route_direct, route_manually
from riser.errors import SolverError
from riser.types import Strategy

logger = logging.getLogger(__name__)


class LayoutStrategy(abc.ABC):
    kind: Strategy

    @abc.abstractmethod
    async def run(self, graph: Graph) -> LayoutResult:
        """Produce positioned nodes and routed paths for ``graph``."""


class SolverStrategy(LayoutStrategy):
    kind = Strategy.SOLVER

    def __init__(
        self,
        engine: LayoutEngine,
        options: LayoutOptions | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        config=None,
    ) -> None:
        self.engine = engine
        self.options = options
        self.timeout = timeout
        self.config = config

    async def run(self, graph: Graph) -> LayoutResult:
        options = self.options or LayoutOptions.for_graph(graph, self.config)
        return await layout_via_solver(graph, self.engine, options, self.timeout)


class ManualStrategy(LayoutStrategy):
    kind = Strategy.MANUAL

    def __init__(self, settings: RoutingSettings | None = None) -> None:
        self.settings = settings

    async def run(self, graph: Graph) -> LayoutResult:
        return route_manually(graph.spec, self.settings)


class DirectStrategy(LayoutStrategy):
    kind = Strategy.DIRECT

    def __init__(self, settings: RoutingSettings | None = None) -> None:
        self.settings = settings

    async def run(self, graph: Graph) -> LayoutResult:
        return route_direct(graph.spec, self.settings)


def select_strategy(
    graph: Graph,
    engine: Optional[LayoutEngine] = None,
    preference: str = "auto",
) -> Strategy:
    """Pick solver or manual for ``graph``.

    An explicit preference wins. Otherwise pinned positions go to the
    manual router so they are kept verbatim, and free positions go to the
    solver when an engine is available.
    """
    pref = (preference or "auto").lower()
    if pref == Strategy.MANUAL.value:
        return Strategy.MANUAL
    if pref == Strategy.SOLVER.value:
        if engine is not None:
            return Strategy.SOLVER
        logger.info("Solver layout requested but no engine is configured")
        return Strategy.MANUAL
    if graph.explicit_positions:
        return Strategy.MANUAL
    if engine is None or not engine.is_available():
        return Strategy.MANUAL
    return Strategy.SOLVER


async def run_layout(
    graph: Graph,
    engine: Optional[LayoutEngine] = None,
    preference: str = "auto",
    settings: RoutingSettings | None = None,
    options: LayoutOptions | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    config=None,
) -> LayoutResult:
    """Lay out ``graph`` with the selected strategy and the fallback chain."""
    chosen = select_strategy(graph, engine, preference)
    logger.info(
        "Layout: %s graph, %d circuits, strategy=%s",
        graph.mode.value, len(graph.orientations), chosen.value,
    )

    fallbacks: list[Strategy] = []
    if chosen == Strategy.SOLVER:
        try:
            result = await SolverStrategy(engine, options, timeout, config).run(graph)
            result.fallbacks = fallbacks
            return result
        except SolverError as e:
            logger.warning("Solver fault, falling back to manual routing: %s", e)
            fallbacks.append(Strategy.SOLVER)

    try:
        result = await ManualStrategy(settings).run(graph)
    except Exception:
        logger.exception("Manual router failed, falling back to direct layout")
        fallbacks.append(Strategy.MANUAL)
        result = await DirectStrategy(settings).run(graph)

    result.fallbacks = fallbacks
    return result
