"""Test strategy selection and the solver → manual → direct fallback chain."""

import asyncio

from riser.diagram import strategy
from riser.diagram.elk import ElkNodeEngine
from riser.diagram.graph import build_graph
from riser.diagram.schema import parse_spec
from riser.diagram.strategy import run_layout, select_strategy
from riser.types import Strategy

from tests.fakes import EchoEngine, FailingEngine, SlowEngine


def test_free_positions_with_engine_use_solver(declarative_raw):
    graph = build_graph(parse_spec(declarative_raw))
    assert select_strategy(graph, EchoEngine()) == Strategy.SOLVER


def test_pinned_positions_use_manual(legacy_raw):
    graph = build_graph(parse_spec(legacy_raw))
    assert select_strategy(graph, EchoEngine()) == Strategy.MANUAL


def test_no_engine_uses_manual(declarative_raw):
    graph = build_graph(parse_spec(declarative_raw))
    assert select_strategy(graph, None) == Strategy.MANUAL
    assert select_strategy(graph, None, "solver") == Strategy.MANUAL


def test_unavailable_engine_uses_manual(declarative_raw):
    graph = build_graph(parse_spec(declarative_raw))
    engine = ElkNodeEngine(node_binary="riser-no-such-node-binary")
    assert select_strategy(graph, engine) == Strategy.MANUAL


def test_preference_overrides(declarative_raw, legacy_raw):
    free = build_graph(parse_spec(declarative_raw))
    pinned = build_graph(parse_spec(legacy_raw))
    assert select_strategy(free, EchoEngine(), "manual") == Strategy.MANUAL
    assert select_strategy(pinned, EchoEngine(), "SOLVER") == Strategy.SOLVER


def test_solver_result_passes_through(declarative_raw):
    graph = build_graph(parse_spec(declarative_raw))
    result = asyncio.run(run_layout(graph, EchoEngine()))
    assert result.strategy == Strategy.SOLVER
    assert result.fallbacks == []


def test_solver_failure_falls_back_to_manual(declarative_raw):
    graph = build_graph(parse_spec(declarative_raw))
    engine = FailingEngine()
    result = asyncio.run(run_layout(graph, engine))
    assert engine.calls == 1
    assert result.strategy == Strategy.MANUAL
    assert result.fallbacks == [Strategy.SOLVER]
    assert {p.id for p in result.paths} == {"SLC-bus", "NAC1-bus"}


def test_solver_timeout_falls_back_to_manual(declarative_raw):
    graph = build_graph(parse_spec(declarative_raw))
    result = asyncio.run(run_layout(graph, SlowEngine(), timeout=0.05))
    assert result.strategy == Strategy.MANUAL
    assert result.fallbacks == [Strategy.SOLVER]


def test_manual_failure_falls_back_to_direct(legacy_raw, monkeypatch):
    def broken(spec, settings=None):
        raise RuntimeError("router bug")

    monkeypatch.setattr(strategy, "route_manually", broken)
    graph = build_graph(parse_spec(legacy_raw))
    result = asyncio.run(run_layout(graph, None))
    assert result.strategy == Strategy.DIRECT
    assert result.fallbacks == [Strategy.MANUAL]
    assert len(result.paths) == 4


def test_full_chain(declarative_raw, monkeypatch):
    def broken(spec, settings=None):
        raise RuntimeError("router bug")

    monkeypatch.setattr(strategy, "route_manually", broken)
    graph = build_graph(parse_spec(declarative_raw))
    result = asyncio.run(run_layout(graph, FailingEngine()))
    assert result.strategy == Strategy.DIRECT
    assert result.fallbacks == [Strategy.SOLVER, Strategy.MANUAL]
