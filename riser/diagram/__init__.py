"""Riser diagram compiler: spec → graph → layout → geometry → SVG / DXF."""

from riser.diagram.compiler import CompileSession, compile_spec, compile_spec_sync
from riser.diagram.dxf import DxfWriter
from riser.diagram.reconcile import DiagramGeometry
from riser.diagram.renderer import RiserRenderer
from riser.diagram.schema import parse_spec

__all__ = [
    "CompileSession",
    "DiagramGeometry",
    "DxfWriter",
    "RiserRenderer",
    "compile_spec",
    "compile_spec_sync",
    "parse_spec",
]
