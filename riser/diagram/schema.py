"""Pydantic models for the two accepted riser spec shapes.

* legacy: flat ``devices`` / ``circuits`` / ``eols`` lists with explicit
  coordinates, as produced by the live editor.
* declarative: a panel with named ports, circuits bound to a port with
  ordered device lists and an endcap, plus a per-sheet symbol size table.

``parse_spec`` detects the shape, validates it and normalises it into the
canonical ``SpecModel``. Every failure here is an ``InputShapeError`` and
happens before any graph is built.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from riser.diagram.model import Circuit, Device, Eol, Panel, Port, SpecModel
from riser.diagram.style import (
    DEFAULT_EOL_DROP,
    DEFAULT_LANE_GAP,
    LEGACY_PANEL_ID,
    PANEL_CIRCUIT_ID,
)
from riser.diagram.symbols import DEFAULT_TABLE, SymbolTable
from riser.errors import InputShapeError
from riser.types import LineStyle, Orientation, Side, SpecShape

log = logging.getLogger(__name__)


class _SpecBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

class Sheet(_SpecBase):
    title: str = Field(default="", description="Sheet title printed under the riser")
    lane_gap: Optional[float] = Field(
        default=None, alias="laneGap", gt=0, description="Gap between parallel lanes",
    )


def _drop_or_default(value: Optional[float]) -> float:
    """Unspecified or falsy drops fall back to the default stub length."""
    return float(value) if value else DEFAULT_EOL_DROP


# ---------------------------------------------------------------------------
# Legacy shape
# ---------------------------------------------------------------------------

class LegacyPanel(_SpecBase):
    x: float = 0.0
    y: float = 0.0


class LegacyCircuit(_SpecBase):
    id: str = Field(..., min_length=1)
    circuit_class: str = Field(default="", alias="class", description="Wiring class (A/B)")
    color: Optional[str] = Field(default=None, description="Stroke colour for the circuit's wiring")
    orientation: Optional[Orientation] = None
    style: Optional[LineStyle] = None


class LegacyDevice(_SpecBase):
    type: str = Field(..., min_length=1, description="Symbol type key (Smoke, Pull, Cell, ...)")
    circuit: str = Field(..., min_length=1, description="Owning circuit id, or PANEL")
    x: Optional[float] = None
    y: Optional[float] = None
    label: str = ""


class LegacyEol(_SpecBase):
    circuit: str = Field(..., min_length=1)
    x: Optional[float] = None
    drop: Optional[float] = Field(default=None, ge=0, description="Stub length below the bus")


class LegacySpec(_SpecBase):
    sheet: Sheet = Field(default_factory=Sheet)
    panel: LegacyPanel = Field(default_factory=LegacyPanel)
    circuits: list[LegacyCircuit] = Field(default_factory=list)
    devices: list[LegacyDevice] = Field(default_factory=list)
    eols: list[LegacyEol] = Field(default_factory=list)

    def to_model(self) -> SpecModel:
        declared = {c.id for c in self.circuits}
        by_circuit: dict[str, list[LegacyDevice]] = {}
        panel_devices: list[Device] = []

        for dev in self.devices:
            if dev.circuit == PANEL_CIRCUIT_ID:
                panel_devices.append(Device(
                    type=dev.type, circuit_id=PANEL_CIRCUIT_ID, index=len(panel_devices),
                    x=dev.x, y=dev.y, label=dev.label,
                ))
            elif dev.circuit in declared:
                by_circuit.setdefault(dev.circuit, []).append(dev)
            else:
                log.warning("Device %s references undeclared circuit %s, ignored", dev.type, dev.circuit)

        eols: dict[str, Eol] = {}
        for e in self.eols:
            if e.circuit in eols:
                log.warning("Circuit %s has more than one EOL, keeping the first", e.circuit)
                continue
            eols[e.circuit] = Eol(circuit_id=e.circuit, x=e.x, drop=_drop_or_default(e.drop))

        circuits = []
        for c in self.circuits:
            if c.id == PANEL_CIRCUIT_ID:
                log.warning("Circuit id %s is reserved for panel devices, declaration ignored", c.id)
                continue
            devs = tuple(
                Device(type=d.type, circuit_id=c.id, index=i, x=d.x, y=d.y, label=d.label)
                for i, d in enumerate(by_circuit.get(c.id, []))
            )
            circuits.append(Circuit(
                id=c.id,
                circuit_class=c.circuit_class,
                color=c.color,
                orientation=c.orientation,
                line_style=c.style,
                devices=devs,
                eol=eols.get(c.id),
            ))

        return SpecModel(
            panel=Panel(id=LEGACY_PANEL_ID, x=self.panel.x, y=self.panel.y),
            circuits=tuple(circuits),
            panel_devices=tuple(panel_devices),
            symbols=DEFAULT_TABLE,
            title=self.sheet.title,
            lane_gap=self.sheet.lane_gap or DEFAULT_LANE_GAP,
            shape=SpecShape.LEGACY,
        )


# ---------------------------------------------------------------------------
# Declarative shape
# ---------------------------------------------------------------------------

class DeclPort(_SpecBase):
    id: str = Field(..., min_length=1)
    side: Side
    label: str = ""

    @field_validator("side", mode="before")
    @classmethod
    def _upper_side(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class DeclPanel(_SpecBase):
    id: str = Field(..., min_length=1)
    x: float = 0.0
    y: float = 0.0
    label: str = "FACP"
    ports: list[DeclPort] = Field(default_factory=list)


class CircuitSource(_SpecBase):
    panel: str = Field(..., min_length=1)
    port: str = Field(..., min_length=1)


class DeclDevice(_SpecBase):
    type: str = Field(..., min_length=1)
    x: Optional[float] = None
    y: Optional[float] = None
    label: str = ""


class Endcap(_SpecBase):
    type: str = "EOL"
    value: str = ""
    x: Optional[float] = None
    drop: Optional[float] = Field(default=None, ge=0)


class DeclCircuit(_SpecBase):
    id: str = Field(..., min_length=1)
    source: CircuitSource = Field(..., alias="from")
    orientation: Optional[Orientation] = None
    spacing: Optional[float] = Field(default=None, gt=0, description="Horizontal device pitch")
    color: Optional[str] = None
    circuit_class: str = Field(default="", alias="class")
    style: Optional[LineStyle] = None
    devices: list[DeclDevice] = Field(default_factory=list)
    endcap: Optional[Endcap] = None

    @field_validator("orientation", mode="before")
    @classmethod
    def _upper_orientation(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class SymbolSize(_SpecBase):
    w: float = Field(..., gt=0)
    h: float = Field(..., gt=0)


class DeclarativeSpec(_SpecBase):
    sheet: Sheet = Field(default_factory=Sheet)
    panel: DeclPanel
    circuits: list[DeclCircuit] = Field(..., min_length=1)
    symbols: dict[str, SymbolSize] = Field(default_factory=dict)

    def to_model(self) -> SpecModel:
        table: SymbolTable = DEFAULT_TABLE
        if self.symbols:
            table = DEFAULT_TABLE.with_overrides({k: (v.w, v.h) for k, v in self.symbols.items()})

        circuits = []
        panel_devices: list[Device] = []
        for c in self.circuits:
            if c.id == PANEL_CIRCUIT_ID:
                # Panel-local equipment is stubbed to the panel, never bussed
                for d in c.devices:
                    panel_devices.append(Device(
                        type=d.type, circuit_id=PANEL_CIRCUIT_ID, index=len(panel_devices),
                        x=d.x, y=d.y, label=d.label,
                    ))
                if c.endcap is not None:
                    log.warning("Endcap on circuit %s ignored", PANEL_CIRCUIT_ID)
                continue
            devs = tuple(
                Device(type=d.type, circuit_id=c.id, index=i, x=d.x, y=d.y, label=d.label)
                for i, d in enumerate(c.devices)
            )
            eol = None
            if c.endcap is not None:
                eol = Eol(
                    circuit_id=c.id,
                    type=c.endcap.type,
                    x=c.endcap.x,
                    drop=_drop_or_default(c.endcap.drop),
                    value=c.endcap.value,
                )
            circuits.append(Circuit(
                id=c.id,
                circuit_class=c.circuit_class,
                color=c.color,
                orientation=c.orientation,
                port_id=c.source.port,
                panel_ref=c.source.panel,
                spacing=c.spacing,
                line_style=c.style,
                devices=devs,
                eol=eol,
            ))

        panel = Panel(
            id=self.panel.id,
            x=self.panel.x,
            y=self.panel.y,
            label=self.panel.label,
            ports=tuple(Port(id=p.id, side=p.side, label=p.label) for p in self.panel.ports),
        )
        return SpecModel(
            panel=panel,
            circuits=tuple(circuits),
            panel_devices=tuple(panel_devices),
            symbols=table,
            title=self.sheet.title,
            lane_gap=self.sheet.lane_gap or DEFAULT_LANE_GAP,
            shape=SpecShape.DECLARATIVE,
        )


# ---------------------------------------------------------------------------
# Detection and parsing
# ---------------------------------------------------------------------------

def detect_shape(raw: Any) -> SpecShape:
    """Classify a raw spec mapping as declarative or legacy.

    Declarative iff the panel declares a ``ports`` list and the first circuit
    names both a panel and a port in its ``from`` block.
    """
    if not isinstance(raw, dict):
        raise InputShapeError(f"Spec must be a JSON object, got {type(raw).__name__}")

    panel = raw.get("panel")
    circuits = raw.get("circuits")
    if not isinstance(panel, dict) or not isinstance(panel.get("ports"), list):
        return SpecShape.LEGACY
    if not isinstance(circuits, list) or not circuits or not isinstance(circuits[0], dict):
        return SpecShape.LEGACY
    source = circuits[0].get("from")
    if isinstance(source, dict) and source.get("panel") and source.get("port"):
        return SpecShape.DECLARATIVE
    return SpecShape.LEGACY


def parse_spec(raw: Union[dict, SpecModel]) -> SpecModel:
    """Validate a raw spec of either shape and normalise it."""
    if isinstance(raw, SpecModel):
        return raw

    shape = detect_shape(raw)
    model_cls = DeclarativeSpec if shape == SpecShape.DECLARATIVE else LegacySpec
    try:
        parsed = model_cls.model_validate(raw)
    except ValidationError as e:
        raise InputShapeError(f"Invalid {shape.value} spec: {e}") from e

    spec = parsed.to_model()
    log.debug(
        "Parsed %s spec: %d circuits, %d panel devices",
        shape.value, len(spec.circuits), len(spec.panel_devices),
    )
    return spec


def parse_spec_text(text: str) -> SpecModel:
    """Parse JSON text (as typed into the editor) into a spec model."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputShapeError(f"Spec is not valid JSON: {e}") from e
    return parse_spec(raw)
