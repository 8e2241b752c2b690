"""
Chart data validation.

Validation runs before any export. A failing result blocks the export step
(the session continues, the caller may pick another image and retry).
"""

import logging
from typing import List, Optional

from ..preprocessing.detector_config import NoDataExtractedError, ValidationFailedError
from .data_types import Axis, ChartData


logger = logging.getLogger(__name__)


def _axis_violations(name: str, axis: Optional[Axis]) -> List[str]:
    if axis is None:
        return [f"{name} is missing"]

    violations = []
    if not axis.is_well_ordered():
        violations.append(f"{name} must satisfy min < max, got [{axis.min}, {axis.max}]")
        return violations

    for value in axis.grid_lines or ():
        if not axis.contains(value):
            violations.append(
                f"{name} grid line {value} outside [{axis.min}, {axis.max}]"
            )
    return violations


def collect_violations(chart_data: ChartData) -> List[str]:
    """
    List every invariant the chart data violates.

    Checks:
    - both axes present and well-ordered (min < max)
    - declared grid lines within their axis bounds
    - points non-empty
    - every point within [x_min, x_max] x [y_min, y_max]
    - points strictly ascending in x

    Returns:
        Human-readable messages; empty when the data is valid
    """
    if chart_data is None:
        return ["chart data is missing"]

    violations = _axis_violations("x_axis", chart_data.x_axis)
    violations += _axis_violations("y_axis", chart_data.y_axis)
    if violations:
        return violations

    points = chart_data.points
    if not points:
        return ["no data points extracted"]

    x_axis, y_axis = chart_data.x_axis, chart_data.y_axis
    for i, point in enumerate(points):
        if not x_axis.contains(point.x) or not y_axis.contains(point.y):
            violations.append(
                f"point {i} ({point.x}, {point.y}) outside axis bounds"
            )
        if i > 0 and point.x <= points[i - 1].x:
            violations.append(
                f"point {i} x={point.x} not greater than previous x={points[i - 1].x}"
            )

    return violations


def validate(chart_data: ChartData) -> bool:
    """Return True when the chart data satisfies every output invariant."""
    violations = collect_violations(chart_data)
    if violations:
        logger.debug(f"Validation failed: {violations[0]} ({len(violations)} violation(s))")
        return False
    return True


def ensure_exportable(chart_data: ChartData) -> ChartData:
    """
    Gate export on validation.

    Returns:
        The chart data unchanged when valid

    Raises:
        NoDataExtractedError: If no points were extracted
        ValidationFailedError: If any other invariant is violated
    """
    violations = collect_violations(chart_data)
    if not violations:
        return chart_data

    if chart_data is not None and not chart_data.points and violations == ["no data points extracted"]:
        logger.error("Export blocked: no data points extracted")
        raise NoDataExtractedError(
            "No curve data was extracted; try adjusting the threshold or use manual axes"
        )

    logger.error(f"Export blocked: {len(violations)} validation violation(s)")
    raise ValidationFailedError("; ".join(violations))
