"""Extraction package for curve-digitizer.

This package contains curve extraction, point refinement, the
pixel-to-value transform and the pipeline that wires them together.
"""

__all__ = [
    "chart_digitizer",
    "contour_filters",
    "coordinate_transformer",
    "curve_extractor",
    "point_refiner",
    "units",
]
