"""Configuration loading from YAML + environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from riser.diagram.style import (
    BUS_CLEARANCE,
    DEFAULT_CIRCUIT_COLOR,
    DEFAULT_DEVICE_SPACING,
    EDGE_NODE_SPACING,
    LAYER_SPACING,
    NOTIFICATION_PREFIX,
    PORT_ESCAPE,
)


class RiserConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RISER_")

    # Server
    host: str = "0.0.0.0"
    port: int = 8350
    log_level: str = "INFO"

    # Layout strategy: auto | solver | manual
    layout_strategy: str = "auto"

    # External layout engine: none | http | node
    elk_engine: str = "none"
    elk_url: str = "http://localhost:8351"
    elk_timeout: float = 10.0
    node_binary: str = "node"
    elk_module: str = "elkjs/lib/elk.bundled.js"

    # Solver spacing
    layer_spacing: float = LAYER_SPACING
    edge_node_spacing: float = EDGE_NODE_SPACING

    # Manual routing
    device_spacing: float = DEFAULT_DEVICE_SPACING
    port_escape: float = PORT_ESCAPE
    bus_clearance: float = BUS_CLEARANCE

    # Styling
    notification_prefix: str = NOTIFICATION_PREFIX
    default_color: str = DEFAULT_CIRCUIT_COLOR

    # Export
    dxf_scale: float = 1.0

    @classmethod
    def from_yaml(cls, path: str | Path = "riser.yaml") -> RiserConfig:
        """Load config from a YAML file; keys it omits come from env vars or defaults."""
        yaml_path = Path(path)
        yaml_data: dict[str, Any] = {}

        if yaml_path.exists():
            with yaml_path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            yaml_data = _flatten_yaml(raw.get("riser", {}))

        return cls(**yaml_data)


def _flatten_yaml(data: dict, prefix: str = "") -> dict:
    """Flatten nested YAML into flat key-value pairs for Pydantic.

    ``elk: {engine: http}`` becomes ``elk_engine``.
    """
    flat: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}_{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten_yaml(value, full_key))
        else:
            flat[full_key] = value
    return flat
