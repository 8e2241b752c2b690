"""
Curve Digitizer - XY Chart Data Extraction

Extract calibrated (x, y) data points from fan performance curve images
using computer vision.

Usage:
    python main.py <image_path> [--x-range MIN MAX] [--y-range MIN MAX] [--output out.json|out.csv]

Examples:
    python main.py data/raw/fan_curves/curve_0001.png
    python main.py curve.png --x-range 0 40 --y-range 0 10 -o result.json
    python main.py curve.png --sample-count 20 -o result.csv
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from curve_digitizer.config import DEFAULT_CHART
from curve_digitizer.export.table_export import TableExporter
from curve_digitizer.extraction.chart_digitizer import ChartDigitizer, DigitizeOptions
from curve_digitizer.models.validation import ensure_exportable
from curve_digitizer.preprocessing.detector_config import DigitizationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract data from XY chart images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py curve.png                              # Print JSON to stdout
  python main.py curve.png -o result.json               # Save JSON to file
  python main.py curve.png -o result.csv --converted    # CFM, m3/min, inch-H2O, mm-H2O table
  python main.py curve.png --threshold 100              # Darker binarization threshold
        """
    )
    parser.add_argument(
        "image",
        type=str,
        help="Path to chart image (PNG, JPG, JPEG, BMP, TIFF)"
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file path, .json or .csv (default: print JSON to stdout)"
    )
    parser.add_argument(
        "--x-range",
        type=float,
        nargs=2,
        metavar=("MIN", "MAX"),
        default=(DEFAULT_CHART.X_MIN, DEFAULT_CHART.X_MAX),
        help=f"Declared x-axis range (default: {DEFAULT_CHART.X_MIN} {DEFAULT_CHART.X_MAX})"
    )
    parser.add_argument(
        "--y-range",
        type=float,
        nargs=2,
        metavar=("MIN", "MAX"),
        default=(DEFAULT_CHART.Y_MIN, DEFAULT_CHART.Y_MAX),
        help=f"Declared y-axis range (default: {DEFAULT_CHART.Y_MIN} {DEFAULT_CHART.Y_MAX})"
    )
    parser.add_argument("--x-unit", default=DEFAULT_CHART.X_UNIT, help="X-axis unit (default: CFM)")
    parser.add_argument("--y-unit", default=DEFAULT_CHART.Y_UNIT, help="Y-axis unit (default: inch-H2O)")
    parser.add_argument(
        "--threshold",
        type=int,
        default=DEFAULT_CHART.BINARY_THRESHOLD,
        help="Binarization threshold 0-255 (default: 128)"
    )
    parser.add_argument(
        "--smoothing-window",
        type=int,
        default=DEFAULT_CHART.SMOOTHING_WINDOW,
        help="Odd smoothing window size (default: 5)"
    )
    parser.add_argument(
        "--sample-count",
        type=int,
        default=None,
        help="Resample the curve to exactly N points"
    )
    parser.add_argument(
        "--converted",
        action="store_true",
        help="CSV output with CFM, m3/min, inch-H2O and mm-H2O columns"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main() -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validate input file exists
    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: Image not found: {args.image}", file=sys.stderr)
        return 1

    # Validate image format
    supported_formats = DEFAULT_CHART.SUPPORTED_IMAGE_FORMATS
    if image_path.suffix.lower() not in supported_formats:
        print(
            f"Error: Unsupported image format: {image_path.suffix}\n"
            f"Supported formats: {', '.join(supported_formats)}",
            file=sys.stderr
        )
        return 1

    try:
        options = DigitizeOptions(
            threshold=args.threshold,
            smoothing_window=args.smoothing_window,
            sample_count=args.sample_count,
            x_min=args.x_range[0],
            x_max=args.x_range[1],
            y_min=args.y_range[0],
            y_max=args.y_range[1],
            x_unit=args.x_unit,
            y_unit=args.y_unit,
        )
        options.check()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Extract data from chart
    try:
        result = asyncio.run(ChartDigitizer().digitize_file(image_path, options))
    except DigitizationError as e:
        print(f"Error [{e.stage}]: {e}", file=sys.stderr)
        return 1

    for diagnostic in result.diagnostics:
        print(f"Warning [{diagnostic.stage}]: {diagnostic.message}", file=sys.stderr)

    # Block export of invalid data
    try:
        ensure_exportable(result.chart_data)
    except DigitizationError as e:
        print(f"Error [{e.stage}]: {e}", file=sys.stderr)
        return 1

    output_path = Path(args.output) if args.output else None
    try:
        if output_path is not None and output_path.suffix.lower() == ".csv":
            TableExporter().write_csv(output_path, result.chart_data, converted=args.converted)
            print(f"Result saved to: {args.output}")
            return 0

        output_json = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
        if output_path is not None:
            output_path.write_text(output_json, encoding="utf-8")
            print(f"Result saved to: {args.output}")
        else:
            print(output_json)
    except (IOError, DigitizationError, ValueError) as e:
        print(f"Error: Failed to write output: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
