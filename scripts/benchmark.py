#!/usr/bin/env python3
"""
Benchmarking script for the curve digitizer.

Evaluates extraction accuracy against ground truth annotations produced by
scripts/generate_dataset.py.

Usage:
    python scripts/benchmark.py [--limit N] [--output results.csv] [--verbose]

Example:
    python scripts/benchmark.py --limit 10 --verbose
    python scripts/benchmark.py --output benchmark_results.csv
"""
import argparse
import asyncio
import csv
import json
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from curve_digitizer.extraction.chart_digitizer import ChartDigitizer, DigitizeOptions
from curve_digitizer.models.validation import validate
from curve_digitizer.preprocessing.detector_config import DigitizationError


@dataclass
class BenchmarkResult:
    """Result for a single image benchmark."""
    image_path: str
    success: bool = False
    error_message: Optional[str] = None
    processing_time_ms: float = 0.0

    # Ground truth
    gt_points: List[Tuple[float, float]] = field(default_factory=list)
    y_span: float = 1.0

    # Predicted
    pred_points: List[Tuple[float, float]] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    valid: bool = False

    # Metrics
    value_mae: Optional[float] = None
    value_nmae: Optional[float] = None  # MAE as % of the y-axis span
    coverage: Optional[float] = None    # % of the ground truth x range covered


@dataclass
class BenchmarkSummary:
    """Summary statistics for benchmark run."""
    total_images: int = 0
    successful_extractions: int = 0
    failed_extractions: int = 0

    valid_rate: float = 0.0
    degraded_rate: float = 0.0
    avg_value_mae: float = 0.0
    avg_value_nmae: float = 0.0
    avg_coverage: float = 0.0

    avg_processing_time_ms: float = 0.0
    total_processing_time_s: float = 0.0


def load_annotations(annotations_path: Path) -> List[Dict[str, Any]]:
    """Load ground truth annotations from JSON file."""
    with open(annotations_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def calculate_mae(
    gt_points: List[Tuple[float, float]],
    pred_points: List[Tuple[float, float]]
) -> Optional[float]:
    """
    Mean absolute y error at the ground truth x positions.

    Predicted y is linearly interpolated; ground truth points outside the
    predicted x range are ignored.
    """
    if not gt_points or len(pred_points) < 2:
        return None

    pred_x = np.array([p[0] for p in pred_points])
    pred_y = np.array([p[1] for p in pred_points])

    errors = [
        abs(np.interp(x, pred_x, pred_y) - y)
        for x, y in gt_points
        if pred_x[0] <= x <= pred_x[-1]
    ]
    return float(np.mean(errors)) if errors else None


def calculate_coverage(
    gt_points: List[Tuple[float, float]],
    pred_points: List[Tuple[float, float]]
) -> Optional[float]:
    """Share of the ground truth x range spanned by the prediction, in percent."""
    if not gt_points or not pred_points:
        return None

    gt_lo, gt_hi = gt_points[0][0], gt_points[-1][0]
    if gt_hi <= gt_lo:
        return None

    lo = max(gt_lo, pred_points[0][0])
    hi = min(gt_hi, pred_points[-1][0])
    return max(0.0, hi - lo) / (gt_hi - gt_lo) * 100


def options_from_annotation(metadata: Dict[str, Any]) -> DigitizeOptions:
    """Declare the annotated axis ranges and units for the request."""
    x_axis = metadata['x_axis']
    y_axis = metadata['y_axis']
    return DigitizeOptions(
        x_min=x_axis['min'],
        x_max=x_axis['max'],
        y_min=y_axis['min'],
        y_max=y_axis['max'],
        x_unit=x_axis.get('unit', 'CFM'),
        y_unit=y_axis.get('unit', 'inch-H2O'),
    )


def benchmark_single_image(
    digitizer: ChartDigitizer,
    image_path: Path,
    annotation: Dict[str, Any],
    verbose: bool = False
) -> BenchmarkResult:
    """Benchmark extraction on a single image."""
    result = BenchmarkResult(image_path=str(image_path))

    # Extract ground truth
    metadata = annotation.get('metadata', {})
    result.gt_points = [(p['x'], p['y']) for p in metadata.get('points', [])]
    y_axis = metadata.get('y_axis', {})
    result.y_span = float(y_axis.get('max', 1.0)) - float(y_axis.get('min', 0.0))

    # Run extraction
    start_time = time.perf_counter()
    try:
        output = asyncio.run(
            digitizer.digitize_file(image_path, options_from_annotation(metadata))
        )
        result.success = True

        result.pred_points = [p.as_tuple() for p in output.chart_data.points]
        result.diagnostics = [d.code for d in output.diagnostics]
        result.valid = validate(output.chart_data)

    except (DigitizationError, ValueError) as e:
        result.success = False
        result.error_message = str(e)
        if verbose:
            print(f"  ERROR: {e}")

    end_time = time.perf_counter()
    result.processing_time_ms = (end_time - start_time) * 1000

    # Calculate metrics if successful
    if result.success:
        result.value_mae = calculate_mae(result.gt_points, result.pred_points)
        if result.value_mae is not None and result.y_span > 0:
            result.value_nmae = result.value_mae / result.y_span * 100
        result.coverage = calculate_coverage(result.gt_points, result.pred_points)

    return result


def run_benchmark(
    annotations_path: Path,
    data_dir: Path,
    limit: Optional[int] = None,
    verbose: bool = False
) -> Tuple[List[BenchmarkResult], BenchmarkSummary]:
    """Run benchmark on all annotated images."""
    annotations = load_annotations(annotations_path)
    if limit:
        annotations = annotations[:limit]

    print(f"Loaded {len(annotations)} annotations")
    print(f"Data directory: {data_dir}")
    print("-" * 60)

    digitizer = ChartDigitizer()

    results: List[BenchmarkResult] = []

    for i, annotation in enumerate(annotations):
        image_rel_path = annotation.get('image', '')
        image_path = data_dir / image_rel_path

        if not image_path.exists():
            if verbose:
                print(f"[{i+1}/{len(annotations)}] SKIP: {image_rel_path} (not found)")
            continue

        if verbose:
            print(f"[{i+1}/{len(annotations)}] Processing: {image_rel_path}")

        result = benchmark_single_image(digitizer, image_path, annotation, verbose)
        results.append(result)

        if verbose:
            status = "OK" if result.success else "FAIL"
            points = f"points: {len(result.pred_points)}"
            mae = f"mae: {result.value_mae:.3f}" if result.value_mae is not None else "mae: -"
            time_str = f"{result.processing_time_ms:.0f}ms"
            flags = f" [{', '.join(result.diagnostics)}]" if result.diagnostics else ""
            print(f"  [{status}] {points}, {mae}, {time_str}{flags}")

    summary = calculate_summary(results)

    return results, summary


def calculate_summary(results: List[BenchmarkResult]) -> BenchmarkSummary:
    """Calculate summary statistics from results."""
    summary = BenchmarkSummary()
    summary.total_images = len(results)

    if not results:
        return summary

    successful = [r for r in results if r.success]
    summary.successful_extractions = len(successful)
    summary.failed_extractions = summary.total_images - summary.successful_extractions

    if successful:
        summary.valid_rate = sum(1 for r in successful if r.valid) / len(successful) * 100
        summary.degraded_rate = sum(1 for r in successful if r.diagnostics) / len(successful) * 100

        maes = [r.value_mae for r in successful if r.value_mae is not None]
        summary.avg_value_mae = sum(maes) / len(maes) if maes else 0.0

        nmaes = [r.value_nmae for r in successful if r.value_nmae is not None]
        summary.avg_value_nmae = sum(nmaes) / len(nmaes) if nmaes else 0.0

        coverages = [r.coverage for r in successful if r.coverage is not None]
        summary.avg_coverage = sum(coverages) / len(coverages) if coverages else 0.0

        times = [r.processing_time_ms for r in successful]
        summary.avg_processing_time_ms = sum(times) / len(times)
        summary.total_processing_time_s = sum(times) / 1000

    return summary


def print_summary(summary: BenchmarkSummary) -> None:
    """Print benchmark summary to console."""
    print("\n" + "=" * 60)
    print("BENCHMARK SUMMARY")
    print("=" * 60)

    print(f"\nImages processed: {summary.total_images}")
    print(f"  Successful: {summary.successful_extractions}")
    print(f"  Failed: {summary.failed_extractions}")

    if summary.successful_extractions > 0:
        print(f"\nAccuracy Metrics:")
        print(f"  Valid output rate: {summary.valid_rate:.1f}%")
        print(f"  Degraded rate: {summary.degraded_rate:.1f}%")
        print(f"  Value MAE: {summary.avg_value_mae:.3f}")
        print(f"  Value MAE (% of y span): {summary.avg_value_nmae:.2f}%")
        print(f"  X coverage: {summary.avg_coverage:.1f}%")

        print(f"\nPerformance:")
        print(f"  Avg processing time: {summary.avg_processing_time_ms:.0f}ms")
        print(f"  Total time: {summary.total_processing_time_s:.1f}s")

    print("=" * 60)


def export_results_csv(results: List[BenchmarkResult], output_path: Path) -> None:
    """Export detailed results to CSV file."""
    fieldnames = [
        'image_path', 'success', 'error_message', 'processing_time_ms',
        'gt_points', 'pred_points', 'valid', 'diagnostics',
        'value_mae', 'value_nmae', 'coverage'
    ]

    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for r in results:
            writer.writerow({
                'image_path': r.image_path,
                'success': r.success,
                'error_message': r.error_message or '',
                'processing_time_ms': f"{r.processing_time_ms:.1f}",
                'gt_points': len(r.gt_points),
                'pred_points': len(r.pred_points),
                'valid': r.valid,
                'diagnostics': ';'.join(r.diagnostics),
                'value_mae': f"{r.value_mae:.4f}" if r.value_mae is not None else '',
                'value_nmae': f"{r.value_nmae:.2f}" if r.value_nmae is not None else '',
                'coverage': f"{r.coverage:.1f}" if r.coverage is not None else '',
            })

    print(f"\nResults exported to: {output_path}")


def main():
    parser = argparse.ArgumentParser(
        description='Benchmark the curve digitizer against ground truth'
    )
    parser.add_argument(
        '--annotations',
        type=Path,
        default=Path('data/annotations/fan_curves.json'),
        help='Path to annotations JSON file'
    )
    parser.add_argument(
        '--data-dir',
        type=Path,
        default=Path('.'),
        help='Base directory for image paths'
    )
    parser.add_argument(
        '--limit',
        type=int,
        default=None,
        help='Limit number of images to process'
    )
    parser.add_argument(
        '--output',
        type=Path,
        default=None,
        help='Output CSV file for detailed results'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print verbose output'
    )

    args = parser.parse_args()

    if not args.annotations.exists():
        print(f"Error: Annotations file not found: {args.annotations}")
        sys.exit(1)

    results, summary = run_benchmark(
        annotations_path=args.annotations,
        data_dir=args.data_dir,
        limit=args.limit,
        verbose=args.verbose
    )

    print_summary(summary)

    if args.output:
        export_results_csv(results, args.output)


if __name__ == '__main__':
    main()
