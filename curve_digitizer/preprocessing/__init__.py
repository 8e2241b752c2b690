"""Preprocessing package for curve-digitizer.

This package contains image utilities, the vision engine capability and
axis calibration components.
"""

__all__ = [
    "axis_calibrator",
    "detector_config",
    "image_utils",
    "vision_engine",
]
