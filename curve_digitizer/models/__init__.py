"""Models package for curve-digitizer.

This package contains the data types produced by each pipeline stage
and the chart data validator that gates export.
"""
from .data_types import (
    Point,
    Axis,
    Series,
    ChartData,
    LineSegment,
    Contour,
    PixelRange,
    AxisLines,
    Diagnostic,
    DigitizationResult,
)

__all__ = [
    # Data types
    "Point",
    "Axis",
    "Series",
    "ChartData",
    "LineSegment",
    "Contour",
    "PixelRange",
    "AxisLines",
    "Diagnostic",
    "DigitizationResult",
    # Modules
    "validation",
]
