"""Test metrics collection and health aggregation."""

import asyncio

from riser.diagram.elk import ElkNodeEngine
from riser.observability.health import aggregate_health
from riser.observability.metrics import MetricsCollector

from tests.fakes import EchoEngine


def test_metrics_summary():
    m = MetricsCollector()
    m.record_compile("solver", latency_ms=30)
    m.record_compile("manual", ["solver"], faults=2, latency_ms=10)
    m.record_error("MissingPortError")

    s = m.summary()
    assert s["total_compiles"] == 2
    assert s["strategies"] == {"solver": 1, "manual": 1}
    assert s["fallbacks"] == {"solver": 1}
    assert s["data_integrity_faults"] == 2
    assert s["errors"] == {"MissingPortError": 1}
    assert s["avg_latency_ms"] == 20


def test_health_degraded_when_engine_unavailable():
    engines = {
        "echo": EchoEngine(),
        "elk-node": ElkNodeEngine(node_binary="riser-no-such-node-binary"),
    }
    health = asyncio.run(aggregate_health(engines))
    assert health["status"] == "degraded"
    assert health["engines"]["echo"] == {"status": "healthy"}
    assert health["manual_router"] == "healthy"
