"""Test the compile pipeline and last-write-wins sessions."""

import asyncio
import json

import pytest

from riser.config import RiserConfig
from riser.diagram.compiler import CompileSession, compile_spec, compile_spec_sync
from riser.errors import ConfigurationError, InputShapeError
from riser.observability.metrics import MetricsCollector
from riser.types import Strategy

from tests.fakes import EchoEngine, FailingEngine, GatedEngine, SlowEngine


def test_compile_legacy(legacy_raw):
    geometry = compile_spec_sync(legacy_raw)
    assert geometry.strategy == Strategy.MANUAL
    assert set(geometry.paths) == {"SLC-bus", "NAC1-bus", "panel-stub-0"}


def test_compile_from_text(declarative_raw):
    geometry = compile_spec_sync(json.dumps(declarative_raw))
    assert geometry.title == "TEST FLOOR"
    assert "circuit-SLC-eol" in geometry.nodes


def test_compile_is_deterministic(declarative_raw):
    first = compile_spec_sync(declarative_raw)
    second = compile_spec_sync(declarative_raw)
    assert first.model_dump_json() == second.model_dump_json()


def test_compile_with_solver(declarative_raw):
    engine = EchoEngine()
    geometry = compile_spec_sync(declarative_raw, engine)
    assert engine.calls == 1
    assert geometry.strategy == Strategy.SOLVER
    assert "edge-SLC-0" in geometry.paths


def test_solver_fault_never_reaches_caller(declarative_raw):
    metrics = MetricsCollector()
    geometry = compile_spec_sync(declarative_raw, FailingEngine(), metrics=metrics)
    assert geometry.strategy == Strategy.MANUAL
    assert geometry.fallbacks == [Strategy.SOLVER]
    assert metrics.summary()["fallbacks"] == {"solver": 1}


def test_config_timeout_applies(declarative_raw):
    config = RiserConfig(elk_timeout=0.05)
    geometry = compile_spec_sync(declarative_raw, SlowEngine(), config)
    assert geometry.fallbacks == [Strategy.SOLVER]


def test_config_strategy_applies(declarative_raw):
    engine = EchoEngine()
    geometry = compile_spec_sync(declarative_raw, engine, RiserConfig(layout_strategy="manual"))
    assert engine.calls == 0
    assert geometry.strategy == Strategy.MANUAL


def test_configuration_fault_propagates(declarative_raw):
    declarative_raw["circuits"][0]["from"]["port"] = "SLC9"
    metrics = MetricsCollector()
    with pytest.raises(ConfigurationError):
        compile_spec_sync(declarative_raw, metrics=metrics)
    assert metrics.summary()["errors"] == {"MissingPortError": 1}


def test_input_shape_fault_propagates():
    with pytest.raises(InputShapeError):
        compile_spec_sync("[]")


def test_session_keeps_last_good_geometry(legacy_raw, declarative_raw):
    async def run():
        session = CompileSession()
        good = await session.submit(legacy_raw)
        declarative_raw["circuits"][0]["from"]["port"] = "SLC9"
        after = await session.submit(declarative_raw)
        return session, good, after

    session, good, after = asyncio.run(run())
    assert after is good
    assert session.current is good
    assert isinstance(session.last_error, ConfigurationError)


def test_session_clears_error_on_success(legacy_raw):
    async def run():
        session = CompileSession()
        await session.submit("{broken")
        assert session.last_error is not None
        await session.submit(legacy_raw)
        return session

    session = asyncio.run(run())
    assert session.last_error is None
    assert session.current is not None


def test_session_last_write_wins(legacy_raw, declarative_raw):
    async def run():
        engine = GatedEngine()
        session = CompileSession(engine=engine)
        first = asyncio.ensure_future(session.submit(declarative_raw))
        await engine.started.wait()
        # Pinned positions route manually and never touch the gated engine
        second = await session.submit(legacy_raw)
        return await first, second, session

    first, second, session = asyncio.run(run())
    assert first is None
    assert second is not None
    assert session.current is second
    assert session.current.title == "FIRST FLOOR"
    assert session.generation == 2


def test_compile_spec_is_awaitable(legacy_raw):
    geometry = asyncio.run(compile_spec(legacy_raw))
    assert geometry.nodes["panel"].x == 100
