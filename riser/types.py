"""Shared enums and type aliases."""

from enum import Enum

Point = tuple[float, float]


class SpecShape(str, Enum):
    LEGACY = "legacy"
    DECLARATIVE = "declarative"


class Side(str, Enum):
    WEST = "WEST"
    EAST = "EAST"
    NORTH = "NORTH"
    SOUTH = "SOUTH"


class Orientation(str, Enum):
    WEST = "WEST"
    EAST = "EAST"


class LineStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"


class NodeKind(str, Enum):
    PANEL = "panel"
    DEVICE = "device"
    EOL = "eol"
    BUS = "bus"


class GraphMode(str, Enum):
    CHAINED = "chained"
    STAR = "star"


class Strategy(str, Enum):
    SOLVER = "solver"
    MANUAL = "manual"
    DIRECT = "direct"
