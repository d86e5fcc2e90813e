"""FastAPI application factory: wires everything together."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from riser import __version__
from riser.config import RiserConfig
from riser.diagram.compiler import compile_spec
from riser.diagram.elk import LayoutEngine, create_engine
from riser.gateway.http_api import router as api_router, set_compiler
from riser.observability.health import aggregate_health
from riser.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def create_app(config: RiserConfig | None = None, engine: LayoutEngine | None = _UNSET) -> FastAPI:
    """Build and return the FastAPI application.

    ``engine`` defaults to the one named in the config; pass ``None`` to run
    with the manual router only.
    """
    if config is None:
        config = RiserConfig.from_yaml()

    app = FastAPI(title="Riser", version=__version__, docs_url="/docs")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    # -- Layout engine --
    if engine is _UNSET:
        engine = create_engine(config)
    engines: dict[str, LayoutEngine] = {engine.name(): engine} if engine else {}

    # -- Metrics --
    metrics = MetricsCollector()

    async def compile_fn(raw):
        return await compile_spec(raw, engine, config, metrics)

    # -- Wire HTTP API --
    set_compiler(compile_fn)
    app.include_router(api_router)

    @app.get("/health")
    async def health():
        return await aggregate_health(engines)

    @app.get("/metrics")
    async def get_metrics():
        return metrics.summary()

    @app.get("/")
    async def root():
        return {
            "name": "Riser",
            "version": __version__,
            "layout_strategy": config.layout_strategy,
            "engines": list(engines.keys()),
        }

    # -- Lifecycle --
    @app.on_event("startup")
    async def startup():
        for eng in engines.values():
            try:
                await eng.connect()
            except Exception:
                logger.exception("Failed to connect layout engine %s", eng.name())
        logger.info("Riser %s started on %s:%d", __version__, config.host, config.port)
        logger.info("Layout engines: %s", ", ".join(engines.keys()) or "none (manual routing)")

    @app.on_event("shutdown")
    async def shutdown():
        for eng in engines.values():
            await eng.disconnect()

    # Store references for testing
    app.state.config = config
    app.state.engine = engine
    app.state.metrics = metrics
    app.state.compile = compile_fn

    return app
