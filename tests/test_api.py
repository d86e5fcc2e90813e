"""Test the HTTP API and service endpoints."""

import pytest
from fastapi.testclient import TestClient

from riser.app import create_app
from riser.config import RiserConfig

from tests.fakes import FailingEngine


@pytest.fixture
def client():
    app = create_app(RiserConfig(), engine=None)
    with TestClient(app) as c:
        yield c


def test_root(client):
    body = client.get("/").json()
    assert body["name"] == "Riser"
    assert body["engines"] == []


def test_health_without_engine(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["manual_router"] == "healthy"
    assert body["engines"] == {}


def test_compile_endpoint(client, legacy_raw):
    resp = client.post("/api/v1/compile", json=legacy_raw)
    assert resp.status_code == 200
    body = resp.json()
    assert body["strategy"] == "manual"
    assert body["paths"]["NAC1-bus"]["dashed"] is True
    assert body["paths"]["SLC-bus"]["points"][0] == [120.0, 60.0]


def test_compile_configuration_fault(client, declarative_raw):
    declarative_raw["circuits"][0]["from"]["port"] = "SLC9"
    resp = client.post("/api/v1/compile", json=declarative_raw)
    assert resp.status_code == 422
    assert "SLC9" in resp.json()["detail"]


def test_compile_input_shape_fault(client):
    resp = client.post("/api/v1/compile", json={"panel": {"id": "F", "ports": []},
                                                "circuits": [{"id": "A", "from": {"panel": "F", "port": "P"},
                                                              "devices": [{"x": 1}]}]})
    assert resp.status_code == 422


def test_detect(client, declarative_raw, legacy_raw):
    assert client.post("/api/v1/detect", json=declarative_raw).json() == {"shape": "declarative"}
    assert client.post("/api/v1/detect", json=legacy_raw).json() == {"shape": "legacy"}


def test_render_svg(client, legacy_raw):
    resp = client.post("/api/v1/render/svg", json=legacy_raw)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert "<polyline" in resp.text


def test_render_dxf(client, legacy_raw):
    resp = client.post("/api/v1/render/dxf?scale=2", json=legacy_raw)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/dxf")
    assert resp.text.endswith("EOF\n")


def test_metrics_count_compiles(client, legacy_raw):
    client.post("/api/v1/compile", json=legacy_raw)
    client.post("/api/v1/compile", json=legacy_raw)
    body = client.get("/metrics").json()
    assert body["total_compiles"] == 2
    assert body["strategies"] == {"manual": 2}


def test_solver_fault_served_by_manual(declarative_raw):
    app = create_app(RiserConfig(), engine=FailingEngine())
    with TestClient(app) as c:
        body = c.post("/api/v1/compile", json=declarative_raw).json()
        assert body["strategy"] == "manual"
        assert body["fallbacks"] == ["solver"]
        health = c.get("/health").json()
        assert health["engines"] == {"failing": {"status": "healthy"}}
