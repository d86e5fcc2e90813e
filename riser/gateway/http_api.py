"""HTTP REST API adapter: compile and export riser specs."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from riser.diagram.dxf import DxfWriter
from riser.diagram.reconcile import DiagramGeometry
from riser.diagram.renderer import RiserRenderer
from riser.diagram.schema import detect_shape
from riser.errors import RiserError

router = APIRouter(prefix="/api/v1", tags=["api"])


class ShapeResponse(BaseModel):
    shape: str


# The compile function is injected at app startup
_compile_fn = None


def set_compiler(fn):
    global _compile_fn
    _compile_fn = fn


async def _compile(spec: dict[str, Any]) -> DiagramGeometry:
    if not _compile_fn:
        raise HTTPException(503, "Compiler not initialized")
    try:
        return await _compile_fn(spec)
    except RiserError as e:
        raise HTTPException(422, str(e))


@router.post("/compile", response_model=DiagramGeometry)
async def compile_endpoint(spec: dict[str, Any] = Body(...)):
    return await _compile(spec)


@router.post("/detect", response_model=ShapeResponse)
async def detect(spec: dict[str, Any] = Body(...)):
    try:
        return ShapeResponse(shape=detect_shape(spec).value)
    except RiserError as e:
        raise HTTPException(422, str(e))


@router.post("/render/svg")
async def render_svg(spec: dict[str, Any] = Body(...), debug: bool = Query(False)):
    geometry = await _compile(spec)
    svg = RiserRenderer(geometry, debug=debug).render_svg()
    return Response(content=svg, media_type="image/svg+xml")


@router.post("/render/dxf")
async def render_dxf(spec: dict[str, Any] = Body(...), scale: float = Query(1.0, gt=0)):
    geometry = await _compile(spec)
    dxf = DxfWriter(geometry, scale=scale).render()
    return Response(
        content=dxf,
        media_type="application/dxf",
        headers={"Content-Disposition": 'attachment; filename="riser.dxf"'},
    )
