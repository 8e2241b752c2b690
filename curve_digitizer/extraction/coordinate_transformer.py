"""
Pixel-space to value-space coordinate transform.

This is the only place where pixel points become calibrated values.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models.data_types import Axis, AxisLines, ChartData, PixelRange, Point, Series
from ..preprocessing.detector_config import ChartDetectionError
from .units import conversion_factor, convert_axis, convert_points


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AxisCalibration:
    """Declared axes plus the pixel extent each one maps onto."""

    x_axis: Axis
    y_axis: Axis
    x_range: PixelRange
    y_range: PixelRange

    @classmethod
    def from_axis_lines(cls, x_axis: Axis, y_axis: Axis, axis_lines: AxisLines) -> "AxisCalibration":
        """Build a calibration from detected (or synthesized) axis lines."""
        return cls(
            x_axis=x_axis,
            y_axis=y_axis,
            x_range=axis_lines.pixel_range_x,
            y_range=axis_lines.pixel_range_y,
        )


class CoordinateTransformer:
    """
    Maps pixel points onto calibrated axes.

    For each axis ``scale = (max - min) / (pixel_max - pixel_min)``:
    - normal axis:   value = min + (pixel - pixel_min) * scale
    - inverted axis: value = max - (pixel - pixel_min) * scale
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def axis_scale(axis: Axis, pixel_range: PixelRange) -> float:
        """
        Value units per pixel.

        Raises:
            ChartDetectionError: If the axis or pixel range is degenerate
        """
        if not axis.is_well_ordered():
            raise ChartDetectionError(
                f"Axis '{axis.label or axis.unit}' must satisfy min < max, got [{axis.min}, {axis.max}]",
                stage="transform",
            )
        if pixel_range.span <= 0:
            raise ChartDetectionError(
                f"Pixel range has zero width: [{pixel_range.min}, {pixel_range.max}]",
                stage="transform",
            )
        return axis.span / pixel_range.span

    def pixel_to_value(self, pixel: float, axis: Axis, pixel_range: PixelRange) -> float:
        """Transform one coordinate (no clamping)."""
        scale = self.axis_scale(axis, pixel_range)
        if axis.is_inverted:
            return axis.max - (pixel - pixel_range.min) * scale
        return axis.min + (pixel - pixel_range.min) * scale

    def to_value_space(self, pixel_points: Sequence[Point], calibration: AxisCalibration) -> List[Point]:
        """
        Transform pixel points into value space.

        Every coordinate is clamped into its axis bounds. Points whose raw
        transform falls outside both axis ranges are dropped, since clamping
        would pin them to a corner. The result is sorted by x and keeps the
        first point of any equal-x run.

        Args:
            pixel_points: Pixel-space points
            calibration: Declared axes and their pixel ranges

        Returns:
            Value-space points, strictly ascending in x
        """
        x_axis, y_axis = calibration.x_axis, calibration.y_axis
        x_scale = self.axis_scale(x_axis, calibration.x_range)
        y_scale = self.axis_scale(y_axis, calibration.y_range)

        self.logger.debug(
            f"Transforming {len(pixel_points)} points: "
            f"x scale={x_scale:.5f}/px over {calibration.x_range}, "
            f"y scale={y_scale:.5f}/px over {calibration.y_range}"
        )

        converted: List[Point] = []
        dropped = 0

        for point in pixel_points:
            x = self.pixel_to_value(point.x, x_axis, calibration.x_range)
            y = self.pixel_to_value(point.y, y_axis, calibration.y_range)

            if not x_axis.contains(x) and not y_axis.contains(y):
                dropped += 1
                continue

            converted.append(Point(x_axis.clamp(x), y_axis.clamp(y)))

        if dropped:
            self.logger.debug(f"Dropped {dropped} points outside both axis ranges")

        converted.sort(key=lambda p: p.x)
        unique: List[Point] = []
        for point in converted:
            if unique and point.x <= unique[-1].x:
                continue
            unique.append(point)

        return unique

    def build_chart_data(
        self,
        pixel_points: Sequence[Point],
        calibration: AxisCalibration,
        series: Sequence[Series] = (),
    ) -> ChartData:
        """Transform points and package them with scale-annotated axes."""
        points = self.to_value_space(pixel_points, calibration)
        x_axis = calibration.x_axis.with_scale(self.axis_scale(calibration.x_axis, calibration.x_range))
        y_axis = calibration.y_axis.with_scale(self.axis_scale(calibration.y_axis, calibration.y_range))
        return ChartData(x_axis=x_axis, y_axis=y_axis, points=tuple(points), series=tuple(series))

    @staticmethod
    def convert_units(
        chart_data: ChartData,
        x_unit: Optional[str] = None,
        y_unit: Optional[str] = None,
    ) -> ChartData:
        """
        Re-express calibrated chart data in other units.

        Applied after calibration as a pure per-axis multiply; the
        calibration itself is untouched.
        """
        x_axis, y_axis = chart_data.x_axis, chart_data.y_axis
        x_factor = y_factor = 1.0

        if x_unit is not None and x_unit != x_axis.unit:
            x_factor = conversion_factor(x_axis.unit, x_unit)
            x_axis = convert_axis(x_axis, x_unit)
        if y_unit is not None and y_unit != y_axis.unit:
            y_factor = conversion_factor(y_axis.unit, y_unit)
            y_axis = convert_axis(y_axis, y_unit)

        series = tuple(
            Series(name=s.name, points=tuple(convert_points(s.points, x_factor, y_factor)), color=s.color)
            for s in chart_data.series
        )
        return ChartData(
            x_axis=x_axis,
            y_axis=y_axis,
            points=tuple(convert_points(chart_data.points, x_factor, y_factor)),
            series=series,
        )
