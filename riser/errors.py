"""Fault taxonomy for a compile.

Input-shape and configuration faults fail the whole compile. Solver faults
are recovered by the layout fallback chain and never reach the caller.
"""

from __future__ import annotations

from typing import Any


class RiserError(Exception):
    """Base class for every compile fault."""


class InputShapeError(RiserError):
    """The spec is malformed or unparseable; no graph was built."""


class ConfigurationError(RiserError):
    """The spec is well-formed but internally inconsistent."""


class MissingPortError(ConfigurationError):
    def __init__(self, circuit_id: str, port_id: str, panel_id: str) -> None:
        self.circuit_id = circuit_id
        self.port_id = port_id
        self.panel_id = panel_id
        super().__init__(
            f"Circuit {circuit_id!r} references missing port {port_id!r} on panel {panel_id!r}"
        )


class SolverError(RiserError):
    """The external layout engine failed, timed out, or returned garbage."""

    def __init__(self, message: str, snapshot: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.snapshot = snapshot or {}
