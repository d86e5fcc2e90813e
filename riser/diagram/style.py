"""Visual style and routing constants for riser diagrams."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Canvas (drawing units; one unit is one millimetre on the printed sheet)
# ---------------------------------------------------------------------------
CANVAS_MARGIN = 20      # units around the geometry extent
HIRES_SCALE = 4         # px per unit for high-res PNG output
SVG_SCALE = 2           # px per unit for on-screen SVG

# ---------------------------------------------------------------------------
# Reserved identifiers
# ---------------------------------------------------------------------------
PANEL_SYMBOL = "FACP"
PANEL_CIRCUIT_ID = "PANEL"    # devices wired straight to the panel
LEGACY_PANEL_ID = "panel"
NOTIFICATION_PREFIX = "NAC"   # notification appliance circuits draw dashed

# ---------------------------------------------------------------------------
# Manual routing
# ---------------------------------------------------------------------------
BUS_CLEARANCE = 5.0        # bus line sits this far below the lowest symbol frame
DEFAULT_EOL_DROP = 4.0     # EOL stub length below the bus
PORT_ESCAPE = 10.0         # first hop out of a panel port before turning
DEFAULT_DEVICE_SPACING = 36.0
BUS_NODE_OVERHANG = 50.0   # invisible bus node extends this far past the outer devices
BUS_NODE_HEIGHT = 1.0

# ---------------------------------------------------------------------------
# Solver spacing (ELK layered)
# ---------------------------------------------------------------------------
DEFAULT_LANE_GAP = 28.0
LAYER_SPACING = 36.0
EDGE_NODE_SPACING = 20.0

# Partition indices force left / centre / right lanes
PARTITION_WEST = 0
PARTITION_PANEL = 1
PARTITION_EAST = 2

# ---------------------------------------------------------------------------
# Line weights and colours
# ---------------------------------------------------------------------------
STROKE_WIRE = 0.6
STROKE_SYMBOL = 0.6
STROKE_EOL = 0.6
DASH_PATTERN = "3,2"

COLOR_BLACK = "black"
COLOR_BG = "#FFFFFF"
COLOR_DEBUG = "#3366CC"
DEFAULT_CIRCUIT_COLOR = COLOR_BLACK
PANEL_STUB_COLOR = COLOR_BLACK

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------
FONT_FAMILY = "Arial, Helvetica, Liberation Sans, sans-serif"
FONT_PANEL = 9
FONT_DEVICE = 7
FONT_TITLE = 11

# AutoCAD colour index for named stroke colours
DXF_COLORS = {
    "red": 1,
    "yellow": 2,
    "green": 3,
    "cyan": 4,
    "blue": 5,
    "magenta": 6,
    "black": 7,
    "white": 7,
    "gray": 8,
    "grey": 8,
}
