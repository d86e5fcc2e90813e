"""Test configuration loading."""

from riser.config import RiserConfig, _flatten_yaml
from riser.diagram.layout import RoutingSettings


def test_default_config():
    config = RiserConfig()
    assert config.port == 8350
    assert config.layout_strategy == "auto"
    assert config.elk_engine == "none"
    assert config.elk_timeout == 10.0


def test_routing_defaults():
    config = RiserConfig()
    assert config.bus_clearance == 5.0
    assert config.port_escape == 10.0
    assert config.device_spacing == 36.0
    assert config.notification_prefix == "NAC"
    assert config.default_color == "black"


def test_flatten_nested_elk_block():
    flat = _flatten_yaml({"port": 9000, "elk": {"engine": "http", "url": "http://elk:1"}})
    assert flat == {"port": 9000, "elk_engine": "http", "elk_url": "http://elk:1"}


def test_from_yaml(tmp_path):
    path = tmp_path / "riser.yaml"
    path.write_text(
        "riser:\n"
        "  port: 9123\n"
        "  layout_strategy: manual\n"
        "  elk:\n"
        "    engine: node\n"
        "    timeout: 2.5\n"
        "  bus_clearance: 8\n",
        encoding="utf-8",
    )
    config = RiserConfig.from_yaml(path)
    assert config.port == 9123
    assert config.layout_strategy == "manual"
    assert config.elk_engine == "node"
    assert config.elk_timeout == 2.5
    assert config.bus_clearance == 8.0


def test_from_yaml_missing_file_uses_defaults(tmp_path):
    config = RiserConfig.from_yaml(tmp_path / "absent.yaml")
    assert config.port == 8350


def test_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("RISER_ELK_ENGINE", "http")
    monkeypatch.setenv("RISER_PORT", "9999")
    config = RiserConfig.from_yaml(tmp_path / "absent.yaml")
    assert config.elk_engine == "http"
    assert config.port == 9999


def test_routing_settings_from_config():
    settings = RoutingSettings.from_config(RiserConfig(bus_clearance=7.5, notification_prefix="HS"))
    assert settings.bus_clearance == 7.5
    assert settings.notification_prefix == "HS"
    assert RoutingSettings.from_config(None) == RoutingSettings()
