"""Test geometry reconciliation."""

from riser.diagram.graph import circuit_styles
from riser.diagram.layout import LayoutResult, PlacedNode, RoutedPath
from riser.diagram.reconcile import reconcile
from riser.diagram.router import route_manually
from riser.diagram.schema import parse_spec
from riser.types import NodeKind, Strategy


def test_manual_result_carried_over(legacy_raw):
    spec = parse_spec(legacy_raw)
    result = route_manually(spec)
    geometry = reconcile(result, spec)

    assert geometry.title == "FIRST FLOOR"
    assert geometry.strategy == Strategy.MANUAL
    assert set(geometry.nodes) == set(result.nodes)
    assert set(geometry.paths) == {"SLC-bus", "NAC1-bus", "panel-stub-0"}
    assert geometry.faults == []

    nac = geometry.paths["NAC1-bus"]
    assert nac.color == "red"
    assert nac.dashed
    assert nac.circuit_id == "NAC1"
    assert not geometry.paths["SLC-bus"].dashed


def test_visible_nodes_hide_bus(legacy_raw):
    spec = parse_spec(legacy_raw)
    geometry = reconcile(route_manually(spec), spec)
    assert "bus-SLC" in geometry.nodes
    assert "bus-SLC" not in geometry.visible_nodes()
    assert geometry.nodes["bus-SLC"].kind == NodeKind.BUS


def test_missing_node_recorded_as_fault(legacy_raw):
    spec = parse_spec(legacy_raw)
    result = LayoutResult()
    result.add_node(PlacedNode(id="panel", x=100, y=40, width=40, height=20, kind=NodeKind.PANEL))
    result.paths.append(RoutedPath(id="SLC-bus", source="panel", target="ghost", circuit_id="SLC"))

    geometry = reconcile(result, spec, circuit_styles(spec))
    assert len(geometry.faults) == 1
    fault = geometry.faults[0]
    assert fault.kind == "data_integrity"
    assert fault.node_id == "ghost"
    assert fault.path_id == "SLC-bus"
    # Still rendered: panel centre to the origin
    assert geometry.paths["SLC-bus"].points == [(120.0, 50.0), (0.0, 0.0)]


def test_negative_zero_normalised(legacy_raw):
    spec = parse_spec(legacy_raw)
    result = LayoutResult()
    result.add_node(PlacedNode(id="panel", x=-0.0, y=0.0, width=40, height=20))
    result.paths.append(RoutedPath(id="p", source="panel", target="panel", points=[(-0.0, 1e-9)]))
    geometry = reconcile(result, spec)
    assert geometry.model_dump_json() == reconcile(result, spec).model_dump_json()
    assert '"x":0.0' in geometry.model_dump_json()
    assert "-0.0" not in geometry.model_dump_json()


def test_duplicate_path_ids_kept(legacy_raw):
    spec = parse_spec(legacy_raw)
    result = LayoutResult()
    result.add_node(PlacedNode(id="panel", x=0, y=0, width=40, height=20))
    for _ in range(3):
        result.paths.append(RoutedPath(id="p", source="panel", target="panel", points=[(0, 0), (1, 1)]))
    geometry = reconcile(result, spec)
    assert list(geometry.paths) == ["p", "p#2", "p#3"]


def test_unknown_circuit_gets_default_style(legacy_raw):
    spec = parse_spec(legacy_raw)
    result = LayoutResult()
    result.add_node(PlacedNode(id="panel", x=0, y=0, width=40, height=20))
    result.paths.append(RoutedPath(id="p", source="panel", target="panel", points=[(0, 0)], circuit_id="X"))
    path = reconcile(result, spec).paths["p"]
    assert path.color == "black"
    assert not path.dashed


def test_extent(legacy_raw):
    spec = parse_spec(legacy_raw)
    geometry = reconcile(route_manually(spec), spec)
    min_x, min_y, max_x, max_y = geometry.extent()
    assert min_x == 30
    assert min_y == 20
    assert max_x == 161
    assert max_y == 126


def test_routed_path_with_missing_node_keeps_its_points(legacy_raw):
    spec = parse_spec(legacy_raw)
    result = LayoutResult()
    result.add_node(PlacedNode(id="panel", x=100, y=40, width=40, height=20, kind=NodeKind.PANEL))
    result.paths.append(RoutedPath(
        id="SLC-bus", source="panel", target="ghost", circuit_id="SLC",
        points=[(120, 60), (120, 119), (30, 119)],
    ))

    geometry = reconcile(result, spec)
    assert [f.node_id for f in geometry.faults] == ["ghost"]
    assert geometry.paths["SLC-bus"].points == [(120.0, 60.0), (120.0, 119.0), (30.0, 119.0)]
