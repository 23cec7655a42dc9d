"""Command-line interface for pbnvec."""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pbnvec.types import Complexity, PaintByNumbersError
from pbnvec.presets import PRESETS, DEFAULT_PRESET, get_preset
from pbnvec.batch import BatchProcessor, get_image_files, COMPLETED


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="pbnvec",
        description="Turn photos into paint-by-numbers templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pbnvec photo.jpg -o out/
  pbnvec photo.jpg --preset kids --show-colors
  pbnvec photos/ -o out/ --colors 12 --complexity medium --seed 42
        """,
    )

    parser.add_argument("input", help="Input image file or folder of images")

    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output folder (default: folder of the input)",
    )

    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default=DEFAULT_PRESET,
        help=f"Parameter preset (default: {DEFAULT_PRESET})",
    )

    parser.add_argument(
        "--colors",
        "-c",
        type=int,
        default=None,
        help="Number of palette colors, 6-16 (default: from preset)",
    )

    parser.add_argument(
        "--complexity",
        choices=[c.value for c in Complexity],
        default=None,
        help="Detail level (default: from preset)",
    )

    parser.add_argument(
        "--min-region",
        type=int,
        default=None,
        help="Minimum region size in pixels, 50-500 (default: from preset)",
    )

    parser.add_argument(
        "--max-size",
        type=int,
        default=1024,
        help="Maximum working dimension in pixels (default: 1024)",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible palettes",
    )

    parser.add_argument(
        "--show-colors", action="store_true", help="Fill regions with their colors"
    )

    parser.add_argument(
        "--no-numbers", action="store_true", help="Do not draw region numbers"
    )

    parser.add_argument(
        "--line-width",
        type=float,
        default=None,
        help="Outline width (default: from preset)",
    )

    parser.add_argument(
        "--number-size",
        type=int,
        default=None,
        help="Number font size (default: from preset)",
    )

    parser.add_argument(
        "--json", action="store_true", help="Also write pbnvec_summary.json with per-image outcomes"
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log pipeline stages"
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 if every image succeeded, 1 otherwise)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.INFO if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(parsed.input)
    if not input_path.exists():
        print(f"Error: Input not found: {input_path}", file=sys.stderr)
        return 1

    if input_path.is_dir():
        files = get_image_files(input_path)
        default_output = input_path
    else:
        files = [input_path]
        default_output = input_path.parent
    output_dir = Path(parsed.output) if parsed.output else default_output

    if not files:
        print(f"Error: No images found in {input_path}", file=sys.stderr)
        return 1

    preset = get_preset(parsed.preset)
    overrides = {"max_dimension": parsed.max_size, "random_state": parsed.seed}
    if parsed.colors is not None:
        overrides["n_colors"] = parsed.colors
    if parsed.complexity is not None:
        overrides["complexity"] = parsed.complexity
    if parsed.min_region is not None:
        overrides["min_region_size"] = parsed.min_region

    try:
        config = preset.to_config(**overrides).validate()
    except PaintByNumbersError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    render_options = {
        "show_numbers": not parsed.no_numbers,
        "show_colors": parsed.show_colors,
        "line_width": parsed.line_width if parsed.line_width is not None else preset.line_width,
        "number_size": parsed.number_size if parsed.number_size is not None else preset.number_size,
    }

    print(f"Processing {len(files)} image(s)")
    print(f"  Colors: {config.n_colors}")
    print(f"  Complexity: {config.complexity.value}")
    print(f"  Min region: {config.min_region_size} px")

    processor = BatchProcessor(config, render_options)
    if processor.add_files(files) == 0:
        print(f"Error: Not a supported image: {input_path}", file=sys.stderr)
        return 1

    def report(item, index):
        if item.status == COMPLETED:
            print(f"  [{index + 1}/{len(processor.items)}] {item.path.name}: "
                  f"{item.region_count} regions -> {item.svg_path}")
            if item.region_count == 0:
                print("    No regions found; try a smaller --min-region or more colors")
        elif item.error:
            print(f"  [{index + 1}/{len(processor.items)}] {item.path.name}: {item.error}",
                  file=sys.stderr)

    processor.process(output_dir, on_item_complete=report)

    if parsed.json:
        _write_summary(processor, output_dir)

    status = processor.status()
    print(f"Done: {status[COMPLETED]} of {status['total']} succeeded")
    return 0 if status[COMPLETED] == status["total"] else 1


def _write_summary(processor: BatchProcessor, output_dir: Path) -> None:
    summary = [
        {
            "input": str(item.path),
            "status": item.status,
            "error": item.error,
            "svg": str(item.svg_path) if item.svg_path else None,
            "legend": str(item.legend_path) if item.legend_path else None,
            "regions": item.region_count,
            "colors": item.color_count,
        }
        for item in processor.items
    ]
    summary_path = output_dir / "pbnvec_summary.json"
    summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(f"  Summary saved: {summary_path}")


if __name__ == "__main__":
    sys.exit(main())
