"""Compile pipeline: raw spec → DiagramGeometry.

parse → build graph → layout (solver / manual / direct) → reconcile.

Input-shape and configuration faults propagate to the caller. Solver
faults are absorbed by the layout fallback chain. ``CompileSession`` adds
last-write-wins semantics for interactive editing: a newer submission
cancels the one in flight and stale results are never applied.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Union

from riser.diagram.elk import DEFAULT_TIMEOUT, LayoutEngine
from riser.diagram.graph import build_graph
from riser.diagram.layout import RoutingSettings
from riser.diagram.model import SpecModel
from riser.diagram.reconcile import DiagramGeometry, reconcile
from riser.diagram.schema import parse_spec, parse_spec_text
from riser.diagram.strategy import run_layout
from riser.errors import RiserError

log = logging.getLogger(__name__)

RawSpec = Union[str, dict, SpecModel]


def _parse(raw: RawSpec) -> SpecModel:
    if isinstance(raw, str):
        return parse_spec_text(raw)
    return parse_spec(raw)


async def compile_spec(
    raw: RawSpec,
    engine: Optional[LayoutEngine] = None,
    config: Any = None,
    metrics: Any = None,
) -> DiagramGeometry:
    """Compile one spec into geometry.

    Args:
        raw: JSON text, a decoded spec mapping, or an already parsed model.
        engine: external layout engine; ``None`` means manual routing only.
        config: a ``RiserConfig`` supplying strategy preference and tunables.
        metrics: optional ``MetricsCollector``.
    """
    start = time.monotonic()
    settings = RoutingSettings.from_config(config)
    try:
        spec = _parse(raw)
        graph = build_graph(spec, settings)
    except RiserError as e:
        if metrics is not None:
            metrics.record_error(type(e).__name__)
        raise

    preference = config.layout_strategy if config is not None else "auto"
    timeout = config.elk_timeout if config is not None else DEFAULT_TIMEOUT
    result = await run_layout(
        graph, engine, preference, settings=settings, timeout=timeout, config=config,
    )
    geometry = reconcile(result, spec, graph.styles, settings)

    latency_ms = int((time.monotonic() - start) * 1000)
    if metrics is not None:
        metrics.record_compile(
            geometry.strategy.value,
            [fb.value for fb in geometry.fallbacks],
            faults=len(geometry.faults),
            latency_ms=latency_ms,
        )
    log.info(
        "Compiled %s spec: strategy=%s nodes=%d paths=%d faults=%d (%dms)",
        spec.shape.value, geometry.strategy.value,
        len(geometry.nodes), len(geometry.paths), len(geometry.faults), latency_ms,
    )
    return geometry


def compile_spec_sync(
    raw: RawSpec,
    engine: Optional[LayoutEngine] = None,
    config: Any = None,
    metrics: Any = None,
) -> DiagramGeometry:
    """Blocking wrapper for callers outside an event loop."""
    return asyncio.run(compile_spec(raw, engine, config, metrics))


class CompileSession:
    """Last-write-wins compile state for one editing surface.

    ``current`` is the last geometry that compiled cleanly. A failed compile
    leaves it untouched and exposes the fault as ``last_error`` so the
    caller can show an error marker over the old drawing.
    """

    def __init__(
        self,
        engine: Optional[LayoutEngine] = None,
        config: Any = None,
        metrics: Any = None,
    ) -> None:
        self.engine = engine
        self.config = config
        self.metrics = metrics
        self.current: Optional[DiagramGeometry] = None
        self.last_error: Optional[RiserError] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def submit(self, raw: RawSpec) -> Optional[DiagramGeometry]:
        """Compile ``raw``, superseding any compile still in flight.

        Returns the new geometry, ``None`` if this submission was superseded,
        or the previous geometry if the compile failed.
        """
        self._generation += 1
        generation = self._generation
        self.cancel()

        task = asyncio.ensure_future(compile_spec(raw, self.engine, self.config, self.metrics))
        self._task = task
        try:
            geometry = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                log.debug("Compile #%d superseded by #%d", generation, self._generation)
                return None
            raise
        except RiserError as e:
            if generation != self._generation:
                return None
            self.last_error = e
            log.warning("Compile #%d failed, keeping previous geometry: %s", generation, e)
            return self.current

        if generation != self._generation:
            log.debug("Discarding stale compile #%d", generation)
            return None
        self.current = geometry
        self.last_error = None
        return geometry
