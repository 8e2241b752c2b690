"""
Tests for PointRefiner.

Tests cover:
- Deduplication of near-equal x
- Outlier rejection of isolated spikes
- Weighted moving-average smoothing
- Resampling onto count / step grids
"""
import sys
from pathlib import Path

import pytest
import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from curve_digitizer.models.data_types import Point
from curve_digitizer.extraction.point_refiner import PointRefiner


def pts(*pairs):
    return [Point(float(x), float(y)) for x, y in pairs]


@pytest.fixture
def refiner():
    return PointRefiner()


# ==================== TestConstructor ====================

class TestConstructor:

    @pytest.mark.parametrize("window", [0, 2, 4, -1])
    def test_rejects_bad_window(self, window):
        with pytest.raises(ValueError, match="odd"):
            PointRefiner(smoothing_window=window)

    def test_rejects_negative_epsilon(self):
        with pytest.raises(ValueError):
            PointRefiner(dedupe_epsilon=-0.1)


# ==================== TestDeduplicate ====================

class TestDeduplicate:
    """Test deduplicate."""

    def test_merges_equal_x(self, refiner):
        result = refiner.deduplicate(pts((1, 10), (1, 20), (2, 5)))
        assert result == pts((1, 15), (2, 5))

    def test_merges_within_epsilon(self, refiner):
        result = refiner.deduplicate(pts((1.0, 10), (1.4, 20), (3, 0)))
        assert result == pts((1.0, 15), (3, 0))

    def test_cluster_anchored_at_first_x(self, refiner):
        # 1.8 is within 0.5 of 1.4 but not of the cluster start 1.0
        result = refiner.deduplicate(pts((1.0, 0), (1.4, 0), (1.8, 6)))
        assert [p.x for p in result] == [1.0, 1.8]

    def test_sorts_input(self, refiner):
        result = refiner.deduplicate(pts((3, 1), (1, 2), (2, 3)))
        assert [p.x for p in result] == [1, 2, 3]

    def test_output_strictly_ascending(self, refiner):
        rng = np.random.default_rng(0)
        raw = [Point(float(x), float(y)) for x, y in zip(rng.integers(0, 50, 200), rng.random(200))]

        result = refiner.deduplicate(raw)

        assert all(b.x > a.x for a, b in zip(result, result[1:]))

    def test_empty(self, refiner):
        assert refiner.deduplicate([]) == []


# ==================== TestRejectOutliers ====================

class TestRejectOutliers:
    """Test reject_outliers."""

    def test_drops_isolated_spike(self, refiner):
        points = [Point(float(x), 100.0 + 0.1 * x) for x in range(20)]
        spiked = list(points)
        spiked[10] = Point(10.0, 400.0)

        result = refiner.reject_outliers(spiked)

        assert len(result) == 19
        assert Point(10.0, 400.0) not in result

    def test_keeps_endpoints(self, refiner):
        points = [Point(float(x), 100.0) for x in range(20)]
        points[0] = Point(0.0, 500.0)

        result = refiner.reject_outliers(points)

        assert result[0] == Point(0.0, 500.0)
        assert len(result) == 20

    def test_keeps_smooth_curve(self, refiner, mock_pixel_points):
        assert refiner.reject_outliers(mock_pixel_points) == mock_pixel_points

    def test_constant_and_short_inputs(self, refiner):
        flat = pts((0, 5), (1, 5), (2, 5), (3, 5))
        assert refiner.reject_outliers(flat) == flat
        assert refiner.reject_outliers(pts((0, 1), (1, 900))) == pts((0, 1), (1, 900))


# ==================== TestSmooth ====================

class TestSmooth:
    """Test smooth."""

    def test_window_one_is_identity(self, refiner, mock_pixel_points):
        assert refiner.smooth(mock_pixel_points, window=1) == mock_pixel_points

    def test_constant_is_unchanged(self, refiner):
        flat = [Point(float(x), 7.0) for x in range(10)]
        result = refiner.smooth(flat)
        assert [p.y for p in result] == pytest.approx([7.0] * 10)

    def test_x_unchanged(self, refiner, mock_pixel_points):
        result = refiner.smooth(mock_pixel_points)
        assert [p.x for p in result] == [p.x for p in mock_pixel_points]

    def test_weights_decay_with_distance(self, refiner):
        # Single spike at the center of five points, window 5
        points = pts((0, 0), (1, 0), (2, 10), (3, 0), (4, 0))

        result = refiner.smooth(points)

        # weights 1/3, 1/2, 1, 1/2, 1/3 -> 10 / (8/3)
        assert result[2].y == pytest.approx(3.75)
        # Boundary window is clipped to offsets 0..2: weights 1, 1/2, 1/3
        assert result[0].y == pytest.approx((10 / 3) / (11 / 6))

    def test_linear_interior_preserved(self, refiner, mock_pixel_points):
        result = refiner.smooth(mock_pixel_points)
        for original, smoothed in list(zip(mock_pixel_points, result))[2:-2]:
            assert smoothed.y == pytest.approx(original.y)

    def test_idempotent_on_gentle_slope(self, refiner):
        points = [Point(float(x), 50.0 + 0.01 * x) for x in range(30)]

        once = refiner.smooth(points)
        twice = refiner.smooth(once)

        for a, b in zip(once, twice):
            assert b.y == pytest.approx(a.y, abs=0.01)

    def test_rejects_even_window(self, refiner, mock_pixel_points):
        with pytest.raises(ValueError):
            refiner.smooth(mock_pixel_points, window=4)


# ==================== TestResample ====================

class TestResample:
    """Test grids and interpolation."""

    def test_count_grid_exact_count(self, refiner, mock_pixel_points):
        result = refiner.resample(mock_pixel_points, refiner.count_grid(mock_pixel_points, 7))

        assert len(result) == 7
        assert result[0].x == mock_pixel_points[0].x
        assert result[-1].x == mock_pixel_points[-1].x

    def test_interpolation_is_linear(self, refiner):
        result = refiner.resample(pts((0, 0), (10, 100)), [2.5, 5.0])
        assert [p.y for p in result] == pytest.approx([25.0, 50.0])

    def test_no_overshoot(self, refiner):
        points = pts((0, 0), (1, 10), (2, 0), (3, 10), (4, 0))

        result = refiner.resample(points, np.linspace(0, 4, 41))

        assert min(p.y for p in result) >= 0
        assert max(p.y for p in result) <= 10

    def test_targets_outside_range_clamp(self, refiner):
        result = refiner.resample(pts((1, 5), (2, 8)), [0.0, 3.0])
        assert [p.y for p in result] == [5.0, 8.0]

    def test_step_grid(self, refiner):
        grid = refiner.step_grid(pts((0, 0), (10, 0)), 2.5)
        np.testing.assert_allclose(grid, [0, 2.5, 5, 7.5, 10])

    def test_invalid_grids(self, refiner):
        with pytest.raises(ValueError):
            refiner.count_grid(pts((0, 0), (1, 1)), 0)
        with pytest.raises(ValueError):
            refiner.step_grid(pts((0, 0), (1, 1)), 0)
        with pytest.raises(ValueError):
            refiner.count_grid(pts((3, 0)), 5)

    def test_empty(self, refiner):
        assert refiner.resample([], [1.0, 2.0]) == []
        assert refiner.count_grid([], 5).size == 0


# ==================== TestRefine ====================

class TestRefine:
    """Test the full refine chain."""

    def test_output_strictly_ascending(self, refiner):
        raw = pts((5, 10), (1, 3), (1, 4), (3, 6), (3.2, 7), (9, 12))
        result = refiner.refine(raw)
        assert all(b.x > a.x for a, b in zip(result, result[1:]))

    def test_target_count(self, refiner, mock_pixel_points):
        assert len(refiner.refine(mock_pixel_points, target_count=12)) == 12

    def test_x_step(self, refiner, mock_pixel_points):
        result = refiner.refine(mock_pixel_points, x_step=50)
        assert [p.x for p in result] == [100.0, 150.0, 200.0, 250.0]

    def test_both_grids_rejected(self, refiner, mock_pixel_points):
        with pytest.raises(ValueError, match="either"):
            refiner.refine(mock_pixel_points, target_count=5, x_step=1.0)
