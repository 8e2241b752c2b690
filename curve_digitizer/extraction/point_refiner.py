"""Point refinement for pixel-space curve samples.

Turns the raw contour samples into a clean, strictly x-ascending sequence:

1. deduplicate near-equal x positions
2. reject isolated outliers
3. smooth with a centered weighted moving average
4. optionally resample onto a fixed grid

Every step is pure and deterministic.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
from scipy.stats import zscore

from ..models.data_types import Point


logger = logging.getLogger(__name__)


class PointRefiner:
    """Refines an ordered pixel-point sequence.

    Parameters
    ----------
    dedupe_epsilon:
        Points whose x lies within this distance of a cluster's first x are
        merged into that cluster. The cluster keeps its first-seen x and the
        mean y of its members.
    z_threshold:
        Interior points whose y z-score exceeds this are checked against the
        linear expectation of their neighbours.
    smoothing_window:
        Odd moving-average window. 1 disables smoothing.
    """

    def __init__(
        self,
        dedupe_epsilon: float = 0.5,
        z_threshold: float = 3.0,
        smoothing_window: int = 5,
    ) -> None:
        if dedupe_epsilon < 0:
            raise ValueError(f"dedupe_epsilon must be >= 0, got {dedupe_epsilon}")
        self._check_window(smoothing_window)
        self.dedupe_epsilon = dedupe_epsilon
        self.z_threshold = z_threshold
        self.smoothing_window = smoothing_window

    @staticmethod
    def _check_window(window: int) -> None:
        if window < 1 or window % 2 == 0:
            raise ValueError(f"Smoothing window must be a positive odd integer, got {window}")

    def refine(
        self,
        points: Sequence[Point],
        target_count: int | None = None,
        x_step: float | None = None,
    ) -> list[Point]:
        """Run deduplication, outlier rejection, smoothing and optional resampling.

        Parameters
        ----------
        points:
            Pixel points, expected in ascending x order.
        target_count:
            Resample to exactly this many evenly spaced x positions.
        x_step:
            Resample to a grid starting at the first x with this spacing.

        Returns
        -------
        list[Point]
            Strictly x-ascending points.

        Raises
        ------
        ValueError
            If both ``target_count`` and ``x_step`` are given, or either is not
            positive.
        """
        if target_count is not None and x_step is not None:
            raise ValueError("Pass either target_count or x_step, not both")

        refined = self.deduplicate(points)
        refined = self.reject_outliers(refined)
        refined = self.smooth(refined)

        logger.debug(f"Refined {len(points)} -> {len(refined)} points before resampling")

        if target_count is not None:
            return self.resample(refined, self.count_grid(refined, target_count))
        if x_step is not None:
            return self.resample(refined, self.step_grid(refined, x_step))
        return refined

    def deduplicate(self, points: Sequence[Point]) -> list[Point]:
        """Merge points sharing (within ``dedupe_epsilon``) an x coordinate.

        Each cluster is represented by its first-seen x and the mean y of
        its members, so the result is strictly increasing in x.
        """
        if not points:
            return []

        ordered = sorted(points, key=lambda p: p.x)
        result: list[Point] = []
        cluster_x = ordered[0].x
        cluster_ys = [ordered[0].y]

        for point in ordered[1:]:
            if point.x - cluster_x <= self.dedupe_epsilon:
                cluster_ys.append(point.y)
                continue
            result.append(Point(cluster_x, float(np.mean(cluster_ys))))
            cluster_x = point.x
            cluster_ys = [point.y]

        result.append(Point(cluster_x, float(np.mean(cluster_ys))))
        return result

    def reject_outliers(self, points: Sequence[Point]) -> list[Point]:
        """Drop isolated interior spikes.

        An interior point is dropped when its y z-score exceeds
        ``z_threshold`` and it deviates from the straight line through its
        two neighbours by more than the neighbours differ from each other.
        Endpoints are always kept. Decisions use the original neighbours.
        """
        if len(points) < 3:
            return list(points)

        ys = np.array([p.y for p in points], dtype=float)
        if np.std(ys) == 0:
            return list(points)

        scores = np.abs(zscore(ys))
        kept = [points[0]]

        for i in range(1, len(points) - 1):
            point = points[i]
            if scores[i] <= self.z_threshold:
                kept.append(point)
                continue

            prev_point, next_point = points[i - 1], points[i + 1]
            dx = next_point.x - prev_point.x
            ratio = (point.x - prev_point.x) / dx if dx else 0.5
            expected = prev_point.y + (next_point.y - prev_point.y) * ratio
            neighbour_delta = abs(next_point.y - prev_point.y)

            if abs(point.y - expected) > neighbour_delta:
                logger.debug(
                    f"Dropped outlier at x={point.x:.1f}, y={point.y:.1f} "
                    f"(z={scores[i]:.2f}, expected y={expected:.1f})"
                )
                continue
            kept.append(point)

        kept.append(points[-1])
        return kept

    def smooth(self, points: Sequence[Point], window: int | None = None) -> list[Point]:
        """Centered weighted moving average of y.

        Weights decay as ``1 / (1 + |offset|)``. The window is clipped at the
        sequence boundaries (no wrap-around, no padding). x is left as is.
        """
        window = self.smoothing_window if window is None else window
        self._check_window(window)
        if window == 1 or len(points) < 2:
            return list(points)

        half = window // 2
        ys = np.array([p.y for p in points], dtype=float)
        n = len(ys)
        smoothed: list[Point] = []

        for i, point in enumerate(points):
            lo = max(0, i - half)
            hi = min(n, i + half + 1)
            offsets = np.arange(lo, hi) - i
            weights = 1.0 / (1.0 + np.abs(offsets))
            y = float(np.dot(weights, ys[lo:hi]) / weights.sum())
            smoothed.append(Point(point.x, y))

        return smoothed

    @staticmethod
    def count_grid(points: Sequence[Point], target_count: int) -> np.ndarray:
        """``target_count`` evenly spaced x positions over the observed range."""
        if target_count <= 0:
            raise ValueError(f"target_count must be positive, got {target_count}")
        if not points:
            return np.array([], dtype=float)
        x_min, x_max = points[0].x, points[-1].x
        if target_count > 1 and x_max <= x_min:
            raise ValueError(
                f"Cannot resample a single x position to {target_count} distinct points"
            )
        return np.linspace(x_min, x_max, target_count)

    @staticmethod
    def step_grid(points: Sequence[Point], x_step: float) -> np.ndarray:
        """x positions from the first observed x up to the last, ``x_step`` apart."""
        if x_step <= 0:
            raise ValueError(f"x_step must be positive, got {x_step}")
        if not points:
            return np.array([], dtype=float)
        x_min, x_max = points[0].x, points[-1].x
        count = int(np.floor((x_max - x_min) / x_step + 1e-9)) + 1
        return x_min + x_step * np.arange(count)

    @staticmethod
    def resample(points: Sequence[Point], x_targets) -> list[Point]:
        """Linearly interpolate y at each target x.

        Targets outside the observed x range take the nearest endpoint's y
        instead of extrapolating.
        """
        targets = np.asarray(x_targets, dtype=float)
        if not points or targets.size == 0:
            return []

        xs = np.array([p.x for p in points], dtype=float)
        ys = np.array([p.y for p in points], dtype=float)
        values = np.interp(targets, xs, ys, left=ys[0], right=ys[-1])
        return [Point(float(x), float(y)) for x, y in zip(targets, values)]
