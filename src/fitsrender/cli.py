"""
Command-line interface for fitsrender.

Usage:
    python -m fitsrender render <input.fits> [options]
    fitsrender header <input.fits> [--filter TEXT]

Author: fitsrender contributors
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .cli_output import (
    StageProgress,
    Symbols,
    print_card,
    print_error,
    print_header,
    print_log_line,
    print_metric,
    print_path,
    print_success,
    print_warning,
    setup_terminal,
)
from .config import RenderConfig
from .io import filter_cards, header_cards, read_fits_image, write_raster
from .render import RasterTooLargeError, render_image
from .utils import get_platform_info, get_version, get_version_banner

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%H:%M:%S",
    )


def default_output_path(input_path: Path, auto_stretch: bool) -> Path:
    """Preview path next to the input, e.g. M42.fits -> M42_stretched.png."""
    suffix = "_stretched" if auto_stretch else "_linear"
    return input_path.with_name(input_path.stem + suffix + ".png")


def run_render(args: argparse.Namespace) -> int:
    """Render one FITS file to a PNG preview."""
    input_path = Path(args.input)
    if not input_path.exists():
        print_error(f"Input file not found: {input_path}")
        return 1

    config = RenderConfig(
        auto_stretch=not args.linear,
        workers=args.workers,
        show_progress=args.progress and not args.quiet,
    )
    output_path = Path(args.out) if args.out else default_output_path(input_path, config.auto_stretch)
    progress = StageProgress(total_stages=3, quiet=args.quiet)

    if not args.quiet:
        print_header(f"Render: {input_path.name}")
        print_metric("Stretch", "auto" if config.auto_stretch else "linear")

    progress.start_stage(1, "Loading FITS", Symbols.LOAD)
    try:
        image = read_fits_image(input_path)
    except (OSError, ValueError) as e:
        progress.fail_stage(str(e))
        print_error(f"Could not read {input_path.name}: {e}")
        return 1
    progress.update_detail(f"HDU: {image.hdu_name}")
    progress.update_detail(f"Axes: {image.axes}")
    progress.update_detail(f"Dtype: {image.data.dtype}")
    progress.complete_stage()

    progress.start_stage(2, "Rendering", Symbols.RENDER)
    sink = print_log_line if args.show_log and not args.quiet else None
    try:
        result = render_image(image.data, image.axes, image.header, config=config, on_log=sink)
    except RasterTooLargeError as e:
        progress.fail_stage("Out of Memory")
        print_error(f"Out of Memory: {e}")
        return 1

    if result is None:
        progress.fail_stage("Render failed (returned None)")
        print_error("Error rendering image.")
        return 1
    progress.update_detail(f"Mode: {result.label}")
    if result.sample_factor > 1:
        progress.update_detail(f"Downsample: {result.sample_factor}x")
    progress.complete_stage(f"Rendered {result.width}x{result.height}")

    progress.start_stage(3, "Writing Output", Symbols.SAVE)
    write_raster(output_path, result.raster)
    progress.complete_stage()

    if not args.quiet:
        print_path("Preview", str(output_path))
        print_success(f"{result.width}x{result.height} {result.label}")
    return 0


def run_header(args: argparse.Namespace) -> int:
    """Print the header cards of the image HDU."""
    input_path = Path(args.input)
    try:
        image = read_fits_image(input_path)
    except (OSError, ValueError) as e:
        print_error(f"Could not read {input_path.name}: {e}")
        return 1

    cards = filter_cards(header_cards(image.header), args.filter or "")
    title = f"{input_path.name} [{image.hdu_name}]: {len(cards)} cards"
    if args.filter:
        title += f" matching '{args.filter}'"
    print_header(title)
    if not cards:
        print_warning("No matching header cards")
    for card in cards:
        print_card(card)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="fitsrender",
        description="Render FITS images to 8-bit previews with auto-stretch",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fitsrender {get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render_parser = subparsers.add_parser(
        "render",
        help="Render a FITS image to PNG",
    )
    render_parser.add_argument(
        "input",
        type=str,
        help="Path to the FITS file",
    )
    render_parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Output image path (default: <input>_stretched.png)",
    )
    render_parser.add_argument(
        "--linear",
        action="store_true",
        help="Fixed linear range instead of auto-stretch",
    )
    render_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Render threads (default: CPU count)",
    )
    render_parser.add_argument(
        "--show-log",
        action="store_true",
        help="Stream the render log",
    )
    render_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while rendering",
    )
    render_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    render_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress styled output",
    )

    header_parser = subparsers.add_parser(
        "header",
        help="Print FITS header cards",
    )
    header_parser.add_argument(
        "input",
        type=str,
        help="Path to the FITS file",
    )
    header_parser.add_argument(
        "--filter",
        type=str,
        default=None,
        help="Only show cards containing TEXT (case-insensitive)",
        metavar="TEXT",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_terminal()

    if args.command == "render":
        setup_logging(args.verbose)
        logger.debug("%s (%s)", get_version_banner(), get_platform_info())
        try:
            return run_render(args)
        except Exception as e:
            print_error(f"Rendering failed: {e}")
            logger.exception("Rendering failed: %s", e)
            return 1

    if args.command == "header":
        setup_logging()
        return run_header(args)

    print_warning(f"Unknown command: {args.command}")
    return 1
