"""
Tests for CoordinateTransformer.

Tests cover:
- Linear pixel-to-value mapping (normal and inverted axes)
- Clamping and dropping of out-of-range points
- Degenerate calibrations
- Post-calibration unit conversion
"""
import sys
from dataclasses import replace
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from curve_digitizer.models.data_types import AxisLines, LineSegment, PixelRange, Point, Series
from curve_digitizer.extraction.coordinate_transformer import AxisCalibration, CoordinateTransformer
from curve_digitizer.preprocessing.detector_config import ChartDetectionError


@pytest.fixture
def transformer():
    return CoordinateTransformer()


@pytest.fixture
def calibration(fan_axes):
    """x-axis along row 180 over px 0-400, y-axis over rows 0-180."""
    x_axis, y_axis = fan_axes
    axis_lines = AxisLines(
        x_axis_line=LineSegment(0, 180, 400, 180),
        y_axis_line=LineSegment(0, 0, 0, 200),
    )
    return AxisCalibration.from_axis_lines(x_axis, y_axis, axis_lines)


# ==================== TestPixelToValue ====================

class TestPixelToValue:
    """Test the linear mapping."""

    def test_reference_point(self, transformer, calibration):
        result = transformer.to_value_space([Point(220, 90)], calibration)

        assert len(result) == 1
        assert result[0].x == pytest.approx(22.0)
        assert result[0].y == pytest.approx(5.0)

    def test_y_range_clipped_at_x_axis_row(self, calibration):
        assert calibration.y_range == PixelRange(0, 180)

    def test_origin_and_extremes(self, transformer, calibration):
        x_axis, y_axis = calibration.x_axis, calibration.y_axis

        assert transformer.pixel_to_value(0, x_axis, calibration.x_range) == 0.0
        assert transformer.pixel_to_value(400, x_axis, calibration.x_range) == pytest.approx(40.0)
        # Inverted: top row is the maximum value
        assert transformer.pixel_to_value(0, y_axis, calibration.y_range) == 10.0
        assert transformer.pixel_to_value(180, y_axis, calibration.y_range) == pytest.approx(0.0)

    def test_axis_scale(self, transformer, calibration):
        assert transformer.axis_scale(calibration.x_axis, calibration.x_range) == pytest.approx(0.1)
        assert transformer.axis_scale(calibration.y_axis, calibration.y_range) == pytest.approx(10 / 180)


# ==================== TestToValueSpace ====================

class TestToValueSpace:
    """Test clamping, dropping and ordering."""

    def test_clamps_single_axis_overflow(self, transformer, calibration):
        # x beyond the axis end, y inside
        result = transformer.to_value_space([Point(450, 90)], calibration)
        assert len(result) == 1
        assert result[0].as_tuple() == pytest.approx((40.0, 5.0))

    def test_drops_points_outside_both_axes(self, transformer, calibration):
        result = transformer.to_value_space([Point(-50, 300), Point(100, 90)], calibration)

        assert len(result) == 1
        assert result[0].x == pytest.approx(10.0)

    def test_result_sorted_with_unique_x(self, transformer, calibration):
        raw = [Point(300, 50), Point(100, 90), Point(450, 80), Point(500, 60)]

        result = transformer.to_value_space(raw, calibration)

        # 450 and 500 both clamp to x=40; the first one is kept
        assert [p.x for p in result] == pytest.approx([10.0, 30.0, 40.0])
        assert result[-1].y == pytest.approx(10 - 80 * 10 / 180)

    def test_all_points_within_bounds(self, transformer, calibration):
        raw = [Point(float(x), float(y)) for x, y in [(-5, 10), (50, -20), (390, 170), (420, 100)]]

        for point in transformer.to_value_space(raw, calibration):
            assert calibration.x_axis.contains(point.x)
            assert calibration.y_axis.contains(point.y)

    def test_empty(self, transformer, calibration):
        assert transformer.to_value_space([], calibration) == []


# ==================== TestDegenerateCalibration ====================

class TestDegenerateCalibration:
    """Test rejection of unusable calibrations."""

    def test_zero_pixel_span(self, transformer, calibration):
        bad = AxisCalibration(
            calibration.x_axis, calibration.y_axis, PixelRange(100, 100), calibration.y_range
        )
        with pytest.raises(ChartDetectionError, match="zero width") as exc_info:
            transformer.to_value_space([Point(1, 1)], bad)
        assert exc_info.value.stage == "transform"

    def test_inverted_bounds(self, transformer, calibration, fan_axes):
        x_axis, _ = fan_axes

        bad = replace(calibration, x_axis=replace(x_axis, min=40.0, max=0.0))
        with pytest.raises(ChartDetectionError, match="min < max"):
            transformer.to_value_space([Point(1, 1)], bad)


# ==================== TestBuildChartData ====================

class TestBuildChartData:
    """Test packaging into ChartData."""

    def test_axes_carry_scale(self, transformer, calibration):
        chart_data = transformer.build_chart_data([Point(220, 90)], calibration)

        assert chart_data.x_axis.scale == pytest.approx(0.1)
        assert chart_data.y_axis.scale == pytest.approx(10 / 180)
        assert chart_data.x_axis.unit == "CFM"
        assert chart_data.points[0].as_tuple() == pytest.approx((22.0, 5.0))

    def test_series_passed_through(self, transformer, calibration):
        series = (Series(name="fan A", points=(Point(1.0, 2.0),)),)
        chart_data = transformer.build_chart_data([], calibration, series=series)
        assert chart_data.series == series


# ==================== TestConvertUnits ====================

class TestConvertUnits:
    """Test post-calibration unit conversion."""

    def test_converts_points_and_axes(self, transformer, calibration):
        chart_data = transformer.build_chart_data([Point(220, 90)], calibration)

        converted = transformer.convert_units(chart_data, x_unit="m3/min", y_unit="mm-H2O")

        assert converted.x_axis.unit == "m3/min"
        assert converted.y_axis.unit == "mm-H2O"
        assert converted.x_axis.max == pytest.approx(40 * 0.028316847)
        assert converted.points[0].x == pytest.approx(22.0 * 0.028316847)
        assert converted.points[0].y == pytest.approx(5.0 * 25.4)

    def test_calibration_untouched(self, transformer, calibration):
        chart_data = transformer.build_chart_data([Point(220, 90)], calibration)

        transformer.convert_units(chart_data, x_unit="m3/min")

        assert chart_data.points[0].x == pytest.approx(22.0)
        assert calibration.x_axis.unit == "CFM"

    def test_round_trip(self, transformer, calibration):
        chart_data = transformer.build_chart_data([Point(220, 90), Point(330, 40)], calibration)

        there = transformer.convert_units(chart_data, x_unit="m3/min", y_unit="mm-H2O")
        back = transformer.convert_units(there, x_unit="CFM", y_unit="inch-H2O")

        for original, restored in zip(chart_data.points, back.points):
            assert restored.x == pytest.approx(original.x, abs=1e-6)
            assert restored.y == pytest.approx(original.y, abs=1e-6)

    def test_no_units_is_identity(self, transformer, calibration):
        chart_data = transformer.build_chart_data([Point(220, 90)], calibration)
        assert transformer.convert_units(chart_data) == chart_data
