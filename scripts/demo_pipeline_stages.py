"""Demo script to visualize the intermediate stages of the digitizer.

This script:
- Takes the first 10 images in `data/raw/fan_curves`
- Runs preprocessing, axis calibration and curve extraction
- Saves into the project's `temp` directory:
  * `binary_*.png`: Binary edge map (ink = white) the detectors consume
  * `edges_*.png`: Canny edges (debug output)
  * `overlay_*.png`: Input with the chosen axis lines (green, red when
    synthesized) and the extracted curve points (blue)
"""

from __future__ import annotations

from pathlib import Path
import sys

import cv2
import numpy as np


# Make the `curve_digitizer` package importable when run from `scripts`
CURRENT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = CURRENT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from curve_digitizer.extraction.chart_digitizer import ChartDigitizer, DigitizeOptions
from curve_digitizer.models.data_types import DigitizationResult, LineSegment
from curve_digitizer.preprocessing.detector_config import DigitizationError
from curve_digitizer.preprocessing.image_utils import ImagePreprocessor


def ensure_temp_dir(base_dir: Path) -> Path:
    """Create the `temp` directory under the project root."""
    temp_dir = base_dir / "temp"
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def get_first_n_images(images_dir: Path, n: int = 10) -> list[Path]:
    """First N images (sorted by file name) in a directory."""
    all_pngs = sorted(images_dir.glob("curve_*.png"))
    return all_pngs[:n]


def _draw_line(canvas: np.ndarray, line: LineSegment, degraded: bool) -> None:
    color = (0, 0, 255) if degraded else (0, 200, 0)
    cv2.line(canvas, (line.x1, line.y1), (line.x2, line.y2), color, 2)


def draw_overlay(image_rgba: np.ndarray, result: DigitizationResult) -> np.ndarray:
    """BGR copy of the input with axis lines and curve points drawn on top."""
    canvas = cv2.cvtColor(image_rgba, cv2.COLOR_RGBA2BGR)

    axis_lines = result.axis_lines
    _draw_line(canvas, axis_lines.x_axis_line, axis_lines.x_degraded)
    _draw_line(canvas, axis_lines.y_axis_line, axis_lines.y_degraded)

    for point in result.pixel_points:
        cv2.circle(canvas, (int(round(point.x)), int(round(point.y))), 3, (255, 0, 0), -1)

    return canvas


def main() -> None:
    curves_dir = PROJECT_ROOT / "data" / "raw" / "fan_curves"
    temp_dir = ensure_temp_dir(PROJECT_ROOT)

    print(f"Input folder : {curves_dir}")
    print(f"Output folder: {temp_dir}")

    image_paths = get_first_n_images(curves_dir, n=10)
    if not image_paths:
        print("No images found in fan_curves. Run scripts/generate_dataset.py first.")
        return

    preprocessor = ImagePreprocessor()
    digitizer = ChartDigitizer()
    options = DigitizeOptions(include_edges=True)

    for idx, img_path in enumerate(image_paths, start=1):
        print(f"[{idx:02d}] Processing {img_path.name}...")

        try:
            image = preprocessor.load_image(str(img_path))
            binary = preprocessor.preprocess(image)
            result = digitizer.digitize(image, options)
        except DigitizationError as exc:
            print(f"  Failed at stage '{exc.stage}': {exc}")
            continue

        binary_path = temp_dir / f"binary_{img_path.name}"
        cv2.imwrite(str(binary_path), binary)
        print(f"  -> Saved binary image: {binary_path.name}")

        edges_path = temp_dir / f"edges_{img_path.name}"
        cv2.imwrite(str(edges_path), result.edges)
        print(f"  -> Saved edges image: {edges_path.name}")

        overlay_path = temp_dir / f"overlay_{img_path.name}"
        cv2.imwrite(str(overlay_path), draw_overlay(image, result))
        print(f"  -> Saved overlay: {overlay_path.name} ({len(result.pixel_points)} points)")

        for diagnostic in result.diagnostics:
            print(f"  !! {diagnostic.code}: {diagnostic.message}")

    print("\n" + "=" * 60)
    print(f"Done. Files written to: {temp_dir}")
    print("  - binary_*.png: Binary edge map")
    print("  - edges_*.png: Canny edges")
    print("  - overlay_*.png: Axis lines and extracted curve points")
    print("=" * 60)


if __name__ == "__main__":
    main()
