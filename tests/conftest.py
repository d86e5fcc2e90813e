"""Shared spec fixtures."""

from __future__ import annotations

import copy

import pytest

# The live editor's starter sheet: explicit coordinates everywhere.
LEGACY_SPEC = {
    "sheet": {"title": "FIRST FLOOR"},
    "panel": {"x": 100, "y": 40},
    "circuits": [
        {"id": "SLC", "class": "B", "color": "black"},
        {"id": "NAC1", "class": "B", "color": "red"},
    ],
    "devices": [
        {"type": "Cell", "circuit": "PANEL", "x": 130, "y": 20},
        {"type": "Smoke", "circuit": "SLC", "x": 30, "y": 100},
        {"type": "Pull", "circuit": "SLC", "x": 60, "y": 100},
        {"type": "Pull", "circuit": "NAC1", "x": 140, "y": 100},
    ],
    "eols": [
        {"circuit": "SLC", "x": 60},
        {"circuit": "NAC1", "x": 155},
    ],
}

# Ported panel at the origin, one west and one east circuit, no coordinates.
DECLARATIVE_SPEC = {
    "sheet": {"title": "TEST FLOOR", "laneGap": 28},
    "panel": {
        "id": "FACP",
        "ports": [
            {"id": "SLC", "side": "WEST", "label": "SLC"},
            {"id": "NAC1", "side": "EAST", "label": "NAC 1"},
        ],
    },
    "circuits": [
        {
            "id": "SLC",
            "from": {"panel": "FACP", "port": "SLC"},
            "orientation": "WEST",
            "spacing": 36,
            "devices": [{"type": "Smoke"}, {"type": "Smoke"}, {"type": "Pull"}],
            "endcap": {"type": "EOL", "value": "75Ω"},
        },
        {
            "id": "NAC1",
            "from": {"panel": "FACP", "port": "NAC1"},
            "orientation": "EAST",
            "spacing": 36,
            "devices": [{"type": "HornStrobe"}, {"type": "HornStrobe"}],
            "endcap": {"type": "EOL", "value": "75Ω"},
        },
    ],
    "symbols": {
        "Smoke": {"w": 18, "h": 18},
        "Pull": {"w": 14, "h": 14},
        "HornStrobe": {"w": 22, "h": 16},
        "EOL": {"w": 18, "h": 12},
    },
}


@pytest.fixture
def legacy_raw() -> dict:
    return copy.deepcopy(LEGACY_SPEC)


@pytest.fixture
def declarative_raw() -> dict:
    return copy.deepcopy(DECLARATIVE_SPEC)

