"""CLI for the riser compiler.

Usage:
    riser compile first-floor.json [-o geometry.json] [--strategy manual]
    riser svg first-floor.json -o riser.svg [--debug]
    riser dxf first-floor.json -o riser.dxf [--scale 1.0]
    riser png first-floor.json -o riser.png [--hires]
    riser pdf first-floor.json -o riser.pdf
    riser check first-floor.json

SPEC may be ``-`` to read JSON from stdin.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from riser.config import RiserConfig
from riser.diagram.compiler import compile_spec_sync
from riser.diagram.dxf import DxfWriter
from riser.diagram.elk import create_engine
from riser.diagram.graph import build_graph
from riser.diagram.layout import RoutingSettings
from riser.diagram.reconcile import DiagramGeometry
from riser.diagram.renderer import RiserRenderer
from riser.diagram.schema import parse_spec_text
from riser.diagram.strategy import select_strategy
from riser.errors import RiserError
from riser.observability.logging import setup_logging


def _read_spec(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        print(f"File not found: {source}", file=sys.stderr)
        sys.exit(1)
    return path.read_text(encoding="utf-8")


def _load_config(args: argparse.Namespace) -> RiserConfig:
    config = RiserConfig.from_yaml(args.config)
    if getattr(args, "strategy", None):
        config = config.model_copy(update={"layout_strategy": args.strategy})
    return config


def _compile(args: argparse.Namespace) -> DiagramGeometry:
    """Compile the spec named on the command line or exit with the fault."""
    config = _load_config(args)
    text = _read_spec(args.spec)
    try:
        return compile_spec_sync(text, create_engine(config), config)
    except RiserError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)


def _write(output: str | None, content: str) -> None:
    if output:
        Path(output).write_text(content, encoding="utf-8")
        print(f"Written: {output}")
    else:
        sys.stdout.write(content)


def cmd_compile(args: argparse.Namespace) -> None:
    """Print or save the compiled geometry as JSON."""
    geometry = _compile(args)
    _write(args.output, geometry.model_dump_json(indent=2) + "\n")
    for fault in geometry.faults:
        print(f"warning: {fault.message}", file=sys.stderr)


def cmd_svg(args: argparse.Namespace) -> None:
    geometry = _compile(args)
    _write(args.output, RiserRenderer(geometry, debug=args.debug).render_svg())


def cmd_dxf(args: argparse.Namespace) -> None:
    config = _load_config(args)
    geometry = _compile(args)
    scale = args.scale if args.scale is not None else config.dxf_scale
    _write(args.output, DxfWriter(geometry, scale=scale).render())


def cmd_png(args: argparse.Namespace) -> None:
    geometry = _compile(args)
    try:
        RiserRenderer(geometry).render_png_to_file(args.output, hires=args.hires)
    except RuntimeError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    print(f"Written: {args.output}")


def cmd_pdf(args: argparse.Namespace) -> None:
    geometry = _compile(args)
    try:
        RiserRenderer(geometry).render_pdf_to_file(args.output)
    except RuntimeError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    print(f"Written: {args.output}")


def cmd_check(args: argparse.Namespace) -> None:
    """Validate a spec and report how it would be laid out, without routing."""
    config = _load_config(args)
    text = _read_spec(args.spec)
    try:
        spec = parse_spec_text(text)
        graph = build_graph(spec, RoutingSettings.from_config(config))
    except RiserError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)

    strategy = select_strategy(graph, create_engine(config), config.layout_strategy)
    print(f"Shape: {spec.shape.value}")
    print(f"Title: {spec.title or '(none)'}")
    print(f"Graph: {graph.mode.value}, {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    print(f"Strategy: {strategy.value}")
    for circ in spec.circuits:
        style = graph.styles[circ.id]
        if circ.is_empty:
            print(f"  {circ.id}: no devices (skipped)")
            continue
        eol = "EOL" if circ.eol else "no EOL"
        line = "dashed" if style.dashed else "solid"
        print(
            f"  {circ.id}: {len(circ.devices)} devices, {eol}, "
            f"{graph.orientations[circ.id].value}, {style.color} {line}"
        )
    if spec.panel_devices:
        print(f"  PANEL: {len(spec.panel_devices)} direct devices")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="riser",
        description="Fire-alarm riser layout and routing compiler",
    )
    parser.add_argument("--config", default="riser.yaml", help="Path to riser.yaml")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    def spec_parser(name: str, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("spec", help="Spec JSON file, or - for stdin")
        p.add_argument(
            "--strategy", choices=["auto", "solver", "manual"], default=None,
            help="Override the configured layout strategy",
        )
        return p

    # compile
    p_compile = spec_parser("compile", "Compile a spec to geometry JSON")
    p_compile.add_argument("--output", "-o", default=None, help="Output file path")

    # svg
    p_svg = spec_parser("svg", "Render a spec to SVG")
    p_svg.add_argument("--output", "-o", default=None, help="Output file path")
    p_svg.add_argument("--debug", action="store_true", help="Outline node boxes")

    # dxf
    p_dxf = spec_parser("dxf", "Export a spec to DXF (R14)")
    p_dxf.add_argument("--output", "-o", default=None, help="Output file path")
    p_dxf.add_argument("--scale", type=float, default=None, help="Drawing units per geometry unit")

    # png
    p_png = spec_parser("png", "Render a spec to PNG")
    p_png.add_argument("--output", "-o", required=True, help="Output file path")
    p_png.add_argument("--hires", action="store_true", help="High-resolution output")

    # pdf
    p_pdf = spec_parser("pdf", "Render a spec to print PDF")
    p_pdf.add_argument("--output", "-o", required=True, help="Output file path")

    # check
    spec_parser("check", "Validate a spec and show the layout plan")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the `riser` CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(args.log_level or "WARNING")

    commands = {
        "compile": cmd_compile,
        "svg": cmd_svg,
        "dxf": cmd_dxf,
        "png": cmd_png,
        "pdf": cmd_pdf,
        "check": cmd_check,
    }

    fn = commands.get(args.command)
    if fn:
        fn(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
