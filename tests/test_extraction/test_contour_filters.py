"""
Tests for contour filters.

Tests cover:
- AreaFilter: Noise specks and frame-sized contours
- PerimeterRatioFilter: Thin lines vs thick strokes
- CircularityFilter: Blob-like shapes
- ContourFilterPipeline: Chaining and early exit
"""
import math
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from curve_digitizer.models.data_types import Contour
from curve_digitizer.extraction.contour_filters import (
    AreaFilter,
    CircularityFilter,
    ContourFilterPipeline,
    PerimeterRatioFilter,
)


def contour(area, perimeter):
    return Contour(points=((0, 0), (1, 1)), area=float(area), perimeter=float(perimeter))


# ==================== TestAreaFilter ====================

class TestAreaFilter:
    """Test AreaFilter."""

    def test_removes_small_and_large(self):
        contours = [contour(50, 10), contour(500, 100), contour(90000, 1200)]
        result = AreaFilter(min_area=100, max_area=72000).filter(contours)
        assert result == [contours[1]]

    def test_bounds_are_exclusive(self):
        contours = [contour(100, 10), contour(72000, 10)]
        assert AreaFilter(min_area=100, max_area=72000).filter(contours) == []

    def test_unbounded_max(self):
        contours = [contour(1e9, 10)]
        assert AreaFilter(min_area=100).filter(contours) == contours

    def test_preserves_order(self):
        contours = [contour(300, 1), contour(200, 1), contour(400, 1)]
        assert AreaFilter().filter(contours) == contours


# ==================== TestPerimeterRatioFilter ====================

class TestPerimeterRatioFilter:
    """Test PerimeterRatioFilter."""

    def test_removes_thin_lines(self):
        stroke = contour(area=1800, perimeter=900)  # ratio 0.5
        line = contour(area=500, perimeter=1000)    # ratio 2.0
        assert PerimeterRatioFilter(max_ratio=1.0).filter([stroke, line]) == [stroke]

    def test_ratio_bound_is_exclusive(self):
        assert PerimeterRatioFilter(max_ratio=1.0).filter([contour(500, 500)]) == []

    def test_zero_area_is_rejected(self):
        assert PerimeterRatioFilter().filter([contour(0, 10)]) == []


# ==================== TestCircularityFilter ====================

class TestCircularityFilter:
    """Test CircularityFilter."""

    def test_removes_circle_and_square(self):
        radius = 20
        circle = contour(math.pi * radius ** 2, 2 * math.pi * radius)  # 1.0
        square = contour(400, 80)                                       # ~0.785
        stroke = contour(1800, 900)                                     # ~0.028

        result = CircularityFilter(max_circularity=0.5).filter([circle, square, stroke])

        assert result == [stroke]

    def test_min_bound(self):
        stroke = contour(1800, 900)
        assert CircularityFilter(min_circularity=0.05).filter([stroke]) == []

    def test_zero_perimeter_has_zero_circularity(self):
        speck = contour(10, 0)
        assert speck.circularity == 0.0
        assert CircularityFilter().filter([speck]) == [speck]


# ==================== TestContourFilterPipeline ====================

class TestContourFilterPipeline:
    """Test filter chaining."""

    def test_applies_filters_in_order(self, mock_contours):
        pipeline = ContourFilterPipeline([
            AreaFilter(min_area=100, max_area=72000),
            PerimeterRatioFilter(max_ratio=1.0),
        ])

        result = pipeline.filter(mock_contours)

        assert result == [mock_contours[3]]

    def test_empty_input(self):
        assert ContourFilterPipeline([AreaFilter()]).filter([]) == []

    def test_early_exit(self):
        class Exploding(PerimeterRatioFilter):
            def filter(self, contours):
                raise AssertionError("should not run on empty input")

        pipeline = ContourFilterPipeline([AreaFilter(min_area=1e6), Exploding()])
        assert pipeline.filter([contour(500, 100)]) == []

    def test_get_names(self):
        pipeline = ContourFilterPipeline([AreaFilter(), PerimeterRatioFilter(), CircularityFilter()])
        assert pipeline.get_names() == ["AreaFilter", "PerimeterRatioFilter", "CircularityFilter"]
