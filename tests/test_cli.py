"""Test the riser CLI."""

import json

import pytest

from riser import cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)


@pytest.fixture
def spec_file(tmp_path, legacy_raw):
    path = tmp_path / "first-floor.json"
    path.write_text(json.dumps(legacy_raw), encoding="utf-8")
    return path


def _run(tmp_path, *args):
    cli.main(["--config", str(tmp_path / "absent.yaml"), *args])


def test_compile_to_file(tmp_path, spec_file):
    out = tmp_path / "geometry.json"
    _run(tmp_path, "compile", str(spec_file), "-o", str(out))
    geometry = json.loads(out.read_text(encoding="utf-8"))
    assert geometry["strategy"] == "manual"
    assert "panel-stub-0" in geometry["paths"]


def test_svg_to_stdout(tmp_path, spec_file, capsys):
    _run(tmp_path, "svg", str(spec_file))
    assert capsys.readouterr().out.startswith("<svg ")


def test_dxf_to_file(tmp_path, spec_file):
    out = tmp_path / "riser.dxf"
    _run(tmp_path, "dxf", str(spec_file), "-o", str(out))
    assert out.read_text(encoding="utf-8").endswith("EOF\n")


def test_check(tmp_path, spec_file, capsys):
    _run(tmp_path, "check", str(spec_file))
    out = capsys.readouterr().out
    assert "Shape: legacy" in out
    assert "Graph: star, 9 nodes, 8 edges" in out
    assert "Strategy: manual" in out
    assert "NAC1: 1 devices, EOL, EAST, red dashed" in out


def test_configuration_fault_exits_2(tmp_path, declarative_raw, capsys):
    declarative_raw["circuits"][0]["from"]["port"] = "SLC9"
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(declarative_raw), encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        _run(tmp_path, "compile", str(path))
    assert exc.value.code == 2
    assert "SLC9" in capsys.readouterr().err


def test_missing_file_exits_1(tmp_path):
    with pytest.raises(SystemExit) as exc:
        _run(tmp_path, "compile", str(tmp_path / "nope.json"))
    assert exc.value.code == 1
