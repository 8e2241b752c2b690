"""
Synthetic fan curve dataset generator for curve-digitizer.

Usage (from the project root):
    python -m scripts.generate_dataset [--count N] [--seed S]

Generates fan performance curves (airflow vs static pressure) and stores:
- Images: data/raw/fan_curves/curve_0001.png, ...
- JSON:   data/annotations/fan_curves.json
"""

from __future__ import annotations

import argparse
import json
import random
import sys
from pathlib import Path
from typing import Any, Dict, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np


PROJECT_ROOT = Path(__file__).resolve().parents[1]
CURVE_DIR = PROJECT_ROOT / "data" / "raw" / "fan_curves"
ANNOTATION_DIR = PROJECT_ROOT / "data" / "annotations"
ANNOTATION_FILE = ANNOTATION_DIR / "fan_curves.json"


TITLES = [
    "Fan Performance",
    "Static Pressure vs Airflow",
    "Blower Curve",
    "Axial Fan",
    "Centrifugal Fan",
]

# (x unit, x max choices, y unit, y max choices)
UNIT_SETS = [
    ("CFM", [20.0, 40.0, 60.0, 100.0], "inch-H2O", [1.0, 2.5, 5.0, 10.0]),
    ("m3/min", [1.0, 1.4, 2.0, 3.0], "mm-H2O", [8.0, 25.0, 50.0, 100.0]),
]

LINE_COLORS = ["black", "tab:blue", "tab:red", "tab:green", "navy"]

GROUND_TRUTH_SAMPLES = 50


def _fan_curve(x: np.ndarray, free_air: float, shutoff: float, exponent: float) -> np.ndarray:
    """Static pressure falling from ``shutoff`` at zero flow to 0 at ``free_air``."""
    return shutoff * (1.0 - (x / free_air) ** exponent)


def _generate_single_curve(index: int, total: int) -> Dict[str, Any]:
    """
    Draw one fan curve and return its annotation.

    May raise; the caller records the error and continues.
    """
    x_unit, x_maxes, y_unit, y_maxes = random.choice(UNIT_SETS)
    x_max = random.choice(x_maxes)
    y_max = random.choice(y_maxes)

    free_air = x_max * random.uniform(0.75, 0.95)
    shutoff = y_max * random.uniform(0.6, 0.9)
    exponent = random.uniform(1.5, 3.0)

    # Start slightly right of the y-axis so the stroke never touches it
    x_start = x_max * random.uniform(0.03, 0.08)
    xs = np.linspace(x_start, free_air * 0.95, 200)
    ys = _fan_curve(xs, free_air, shutoff, exponent)

    title = random.choice(TITLES)
    color = random.choice(LINE_COLORS)
    linewidth = random.uniform(2.0, 3.5)
    show_grid = bool(random.getrandbits(1))

    filename = f"curve_{index:04d}.png"
    rel_image_path = Path("data") / "raw" / "fan_curves" / filename
    abs_image_path = CURVE_DIR / filename

    plt.style.use("default")
    fig, ax = plt.subplots(figsize=(6, 4), dpi=120)

    ax.plot(xs, ys, color=color, linewidth=linewidth)
    ax.set_xlim(0, x_max)
    ax.set_ylim(0, y_max)
    ax.set_title(title)
    ax.set_xlabel(f"Airflow ({x_unit})")
    ax.set_ylabel(f"Static pressure ({y_unit})")

    # Only the two axis spines remain
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.spines["left"].set_linewidth(1.5)
    ax.spines["bottom"].set_linewidth(1.5)

    if show_grid:
        ax.grid(True, linestyle="--", alpha=0.3)

    fig.tight_layout()
    abs_image_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(abs_image_path)
    plt.close(fig)

    gt_x = np.linspace(xs[0], xs[-1], GROUND_TRUTH_SAMPLES)
    gt_y = _fan_curve(gt_x, free_air, shutoff, exponent)

    annotation: Dict[str, Any] = {
        "image": str(rel_image_path.as_posix()),
        "metadata": {
            "type": "fan_curve",
            "title": title,
            "x_axis": {"min": 0.0, "max": x_max, "unit": x_unit},
            "y_axis": {"min": 0.0, "max": y_max, "unit": y_unit},
            "curve": {
                "free_air": round(free_air, 6),
                "shutoff": round(shutoff, 6),
                "exponent": round(exponent, 6),
            },
            "points": [
                {"x": round(float(x), 6), "y": round(float(y), 6)} for x, y in zip(gt_x, gt_y)
            ],
            "options": {
                "grid": show_grid,
                "color": color,
                "linewidth": round(linewidth, 2),
            },
        },
    }

    print(f"[{index}/{total}] Generated {rel_image_path}", flush=True)

    return annotation


def generate_fan_curve_dataset(num_charts: int = 200) -> None:
    """Generate the whole synthetic fan curve dataset."""
    CURVE_DIR.mkdir(parents=True, exist_ok=True)
    ANNOTATION_DIR.mkdir(parents=True, exist_ok=True)

    annotations: List[Dict[str, Any]] = []
    errors: List[str] = []

    print(f"Generating {num_charts} fan curves into {CURVE_DIR} ...")

    for i in range(1, num_charts + 1):
        try:
            annotations.append(_generate_single_curve(i, num_charts))
        except (ValueError, OSError) as exc:
            msg = f"Error generating curve {i}: {exc}"
            errors.append(msg)
            print(msg, file=sys.stderr, flush=True)

    with ANNOTATION_FILE.open("w", encoding="utf-8") as f:
        json.dump(annotations, f, indent=2, ensure_ascii=False)
    print(f"\nSaved annotations to {ANNOTATION_FILE}")

    if errors:
        print(f"\nCompleted with {len(errors)} error(s). See stderr for details.")
    else:
        print("\nCompleted without errors.")


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate synthetic fan curve charts")
    parser.add_argument("--count", type=int, default=200, help="Number of charts (default: 200)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    args = parser.parse_args(argv)

    if args.seed is not None:
        random.seed(args.seed)
        np.random.seed(args.seed)

    generate_fan_curve_dataset(num_charts=args.count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
