"""Aggregated health check across layout engines."""

from __future__ import annotations

from riser.diagram.elk import LayoutEngine


async def aggregate_health(engines: dict[str, LayoutEngine]) -> dict:
    results = {}
    all_healthy = True
    for name, engine in engines.items():
        health = await engine.health_check()
        results[name] = health
        if health.get("status") not in ("healthy", "connected", "disabled"):
            all_healthy = False
    return {
        "status": "healthy" if all_healthy else "degraded",
        "engines": results,
        "manual_router": "healthy",
    }
