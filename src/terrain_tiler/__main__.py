"""
Command line entry point for terrain_tiler.
Usage: python -m terrain_tiler <command> --grid GRID.json [--assets ASSETS.json]
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import orjson

from . import __version__
from .config import EngineConfig
from .diagnostics.overlay import save_debug_map
from .grid.loaders import load_grid, load_updates
from .service import TilingService
from .settings import AppSettings
from .sprites.index import AssetIndex, load_asset_index
from .utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terrain-tiler",
        description="Terrain autotiling and coastal adjacency classification",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--settings", type=Path, help="INI settings file (default: platform store)")
    parser.add_argument("--profile", default="default", help="Settings profile name")
    parser.add_argument("--plane", help="Override the world plane")
    parser.add_argument("--base-source", choices=("lo", "hi", "lo_nibble", "hi_nibble"),
                        help="Force the base source instead of detecting it")
    parser.add_argument("--coast-audit", action="store_true", help="Enable coverage audit logging")
    parser.add_argument("--output", "-o", type=Path, help="Write output to this file instead of stdout")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_inputs(sub: argparse.ArgumentParser, assets_required: bool = False) -> None:
        sub.add_argument("--grid", type=Path, required=True, help="Grid snapshot JSON")
        sub.add_argument("--assets", type=Path, required=assets_required, help="Asset index JSON")

    render = subparsers.add_parser("render", help="Resolve every cell and print a summary")
    add_inputs(render)
    render.add_argument("--phase", type=int, help="Animation phase index")
    render.add_argument("--use-phase", action="store_true", help="Select variants by phase")
    render.add_argument("--cells", action="store_true", help="Include every cell decision")

    update = subparsers.add_parser("update", help="Apply a delta file and print recomputed cells")
    add_inputs(update)
    update.add_argument("--updates", type=Path, required=True, help="Delta JSON")

    audit = subparsers.add_parser("audit", help="Coast audit report for one cell")
    add_inputs(audit)
    audit.add_argument("x", type=int)
    audit.add_argument("y", type=int)

    phase_loop = subparsers.add_parser("phase-loop", help="Detect the animation loop length")
    add_inputs(phase_loop, assets_required=True)
    phase_loop.add_argument("--max-phases", type=int, default=32)
    phase_loop.add_argument("--threshold", type=int, default=0)
    phase_loop.add_argument("--fallback", type=int, default=8)

    debug_map = subparsers.add_parser("debug-map", help="Write a classification map PNG")
    add_inputs(debug_map)
    debug_map.add_argument("--image", type=Path, required=True, help="PNG output path")
    debug_map.add_argument("--tile-size", type=int, default=16)
    debug_map.add_argument("--shore-semantics", action="store_true", help="Tint shore cells by semantic class")
    debug_map.add_argument("--no-labels", action="store_true")

    detect = subparsers.add_parser("detect-base", help="Report base source candidate scores")
    add_inputs(detect)

    return parser


def engine_config(settings: AppSettings, args: argparse.Namespace) -> EngineConfig:
    """Engine config from settings with command line overrides applied."""
    config = settings.engine_config()
    overrides: dict[str, Any] = {}
    if args.plane:
        overrides["plane"] = args.plane
    if args.base_source:
        overrides["base_source"] = args.base_source
    if args.coast_audit:
        overrides["coast_audit"] = True
    return dataclasses.replace(config, **overrides) if overrides else config


def write_output(payload: Any, output: Optional[Path]) -> None:
    data = orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS)
    if output is None:
        sys.stdout.write(data.decode("utf-8") + "\n")
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(data)


def run_command(args: argparse.Namespace, config: EngineConfig) -> Any:
    """Execute one subcommand and return its JSON-serializable result."""
    logger = logging.getLogger(f"{__name__}.run_command")
    grid = load_grid(args.grid)
    assets = load_asset_index(args.assets) if args.assets else AssetIndex()
    service = TilingService(grid, assets, config)

    if args.command == "detect-base":
        return service.base_source_report

    if args.command == "render":
        render = service.render_pass(phase_index=args.phase, use_phase=args.use_phase or None)
        result: dict[str, Any] = {
            "width": render.width,
            "height": render.height,
            "phase_index": render.phase_index,
            "base_source": service.base_source,
            "missing": render.missing_count,
            "fallback_steps": render.fallback_counts(),
            "audit": service.audit.summary(),
        }
        if args.cells:
            result["cells"] = list(render)
        return result

    if args.command == "update":
        decisions = service.apply_updates(load_updates(args.updates))
        logger.info(f"Recomputed {len(decisions)} cells")
        return [decisions[coords] for coords in sorted(decisions, key=lambda c: (c[1], c[0]))]

    if args.command == "audit":
        report = service.coast_audit(args.x, args.y)
        if report is None:
            raise ValueError(f"Cell ({args.x},{args.y}) is outside the {grid.width}x{grid.height} grid")
        return report

    if args.command == "phase-loop":
        return service.detect_phase_loop(args.max_phases, args.threshold, args.fallback)

    if args.command == "debug-map":
        render = service.render_pass()
        path = save_debug_map(
            render,
            args.image,
            tile_size=args.tile_size,
            show_shore_semantics=args.shore_semantics,
            show_labels=not args.no_labels,
        )
        return {"image": str(path), "width": render.width, "height": render.height}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main application entry point."""
    logger = logging.getLogger(f"{__name__}.main")
    args = build_parser().parse_args(argv)
    try:
        settings = AppSettings(profile=args.profile, settings_path=args.settings)
        setup_logging(settings)

        logger.debug(f"Configuration loaded from {settings.get_settings_file_path()}")

        validation = settings.validate()
        if validation.warnings:
            logger.warning("Configuration warnings detected:")
            for warning in validation.warnings:
                logger.warning(f"  {warning}")

        if not validation.is_valid:
            logger.error("Configuration validation failed:")
            for error in validation.errors:
                logger.error(f"  {error}")
            return 1

        config = engine_config(settings, args)
        write_output(run_command(args, config), args.output)
        return 0

    except Exception:
        logger.exception("Unhandled exception in main")
        return 1


if __name__ == "__main__":
    sys.exit(main())
