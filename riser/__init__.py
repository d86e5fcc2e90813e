"""Riser: fire-alarm riser diagram layout and routing compiler."""

__version__ = "0.3.0"
