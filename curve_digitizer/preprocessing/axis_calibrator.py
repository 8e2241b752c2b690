"""
Axis calibration from detected line geometry.

Runs the probabilistic line detector over the binary edge map, classifies
segments into horizontal/vertical axis candidates, and picks one line per
axis. When an axis has too few qualifying candidates a synthetic line is
placed at a fixed inset so every request still gets a calibration.
"""

import logging
from typing import Optional, Tuple, List

import numpy as np

from ..models.data_types import AxisLines, Diagnostic, LineSegment
from .detector_config import (
    AXIS_CALIBRATION_DEGRADED,
    DetectorConfig,
    InvalidImageError,
)
from .vision_engine import LineDetectionParams, OpenCVVisionEngine, VisionEngine


logger = logging.getLogger(__name__)


class AxisCalibrator:
    """
    Detects the x- and y-axis lines of a chart.

    Candidates must be nearly horizontal/vertical, sit in the plausible part
    of the image (x-axis low, y-axis left) and span enough of it; the longest
    survivor wins.
    """

    def __init__(self, engine: Optional[VisionEngine] = None, config: Optional[DetectorConfig] = None):
        """
        Initialize calibrator with optional engine and configuration.

        Args:
            engine: VisionEngine providing line detection
            config: DetectorConfig for tolerances and adaptive thresholds
        """
        self.engine = engine or OpenCVVisionEngine()
        self.config = config or DetectorConfig()
        self.logger = logging.getLogger(__name__)

    def detect_axes(self, edge_map: np.ndarray) -> Tuple[AxisLines, List[Diagnostic]]:
        """
        Detect X and Y axes from a binary edge map.

        Args:
            edge_map: Binary edge map (uint8, H x W)

        Returns:
            Tuple of (AxisLines, diagnostics). Diagnostics are non-empty when an
            axis fell back to a synthetic line.

        Raises:
            InvalidImageError: If the edge map has zero width or height
            ChartDetectionError: If the line detector fails
        """
        if edge_map is None or edge_map.ndim != 2 or 0 in edge_map.shape:
            raise InvalidImageError("Edge map must be a non-empty 2D array", stage="axes")

        h, w = edge_map.shape[:2]
        config = self.config.for_image(h, w)

        self.logger.info(f"Detecting axes for image size: {h}x{w}")
        self.logger.debug(f"Using config: {config}")

        params = LineDetectionParams(
            rho=config.hough_rho,
            theta=config.hough_theta,
            threshold=config.hough_threshold,
            min_line_length=config.min_line_length,
            max_line_gap=config.max_line_gap,
        )
        segments = self.engine.detect_lines(edge_map, params)
        self.logger.debug(f"Detected {len(segments)} line segments")

        h_lines, v_lines = self.classify_segments(segments, config)
        self.logger.debug(
            f"Classified: {len(h_lines)} horizontal, {len(v_lines)} vertical"
        )

        x_candidates = self._x_axis_candidates(h_lines, h, w, config)
        y_candidates = self._y_axis_candidates(v_lines, h, w, config)

        diagnostics: List[Diagnostic] = []

        x_degraded = len(x_candidates) < config.min_axis_candidates
        if x_degraded:
            x_axis = self._fallback_x_axis(h, w, config.fallback_inset)
            diagnostics.append(self._degraded("x", len(x_candidates), x_axis))
        else:
            x_axis = self._longest(x_candidates)

        y_degraded = len(y_candidates) < config.min_axis_candidates
        if y_degraded:
            y_axis = self._fallback_y_axis(h, w, config.fallback_inset)
            diagnostics.append(self._degraded("y", len(y_candidates), y_axis))
        else:
            y_axis = self._longest(y_candidates)

        self.logger.debug(f"X-axis line: {x_axis.as_tuple()}, Y-axis line: {y_axis.as_tuple()}")

        return AxisLines(x_axis, y_axis, x_degraded=x_degraded, y_degraded=y_degraded), diagnostics

    def classify_segments(
        self, segments: List[LineSegment], config: Optional[DetectorConfig] = None
    ) -> Tuple[List[LineSegment], List[LineSegment]]:
        """
        Split segments into horizontal and vertical candidates by angle.

        Returns:
            Tuple of (horizontal, vertical); segments matching neither are dropped
        """
        config = config or self.config
        h_lines = []
        v_lines = []

        for segment in segments:
            angle = segment.angle
            if angle <= config.horizontal_tolerance_deg or angle >= 180.0 - config.horizontal_tolerance_deg:
                h_lines.append(segment)
            elif abs(angle - 90.0) <= config.vertical_tolerance_deg:
                v_lines.append(segment)

        return h_lines, v_lines

    def _x_axis_candidates(
        self, h_lines: List[LineSegment], img_height: int, img_width: int, config: DetectorConfig
    ) -> List[LineSegment]:
        """
        Keep horizontal segments that can be the x-axis.

        Validates that the line is:
        - In the lower part of the image (below x_axis_min_y_ratio)
        - Long enough (axis_min_span_ratio of image width)
        """
        min_y = config.x_axis_min_y_ratio * img_height
        min_length = config.axis_min_span_ratio * img_width

        candidates = [
            line for line in h_lines
            if line.mid_y >= min_y and line.length >= min_length
        ]

        if not candidates:
            self.logger.debug(
                f"No valid X-axis candidates found among {len(h_lines)} horizontal lines"
            )
        return candidates

    def _y_axis_candidates(
        self, v_lines: List[LineSegment], img_height: int, img_width: int, config: DetectorConfig
    ) -> List[LineSegment]:
        """
        Keep vertical segments that can be the y-axis.

        Validates that the line is:
        - In the left part of the image (left of y_axis_max_x_ratio)
        - Long enough (axis_min_span_ratio of image height)
        """
        max_x = config.y_axis_max_x_ratio * img_width
        min_length = config.axis_min_span_ratio * img_height

        candidates = [
            line for line in v_lines
            if line.mid_x <= max_x and line.length >= min_length
        ]

        if not candidates:
            self.logger.debug(
                f"No valid Y-axis candidates found among {len(v_lines)} vertical lines"
            )
        return candidates

    @staticmethod
    def _longest(candidates: List[LineSegment]) -> LineSegment:
        # max() keeps the first of equally long segments
        return max(candidates, key=lambda line: line.length)

    @staticmethod
    def _fallback_x_axis(img_height: int, img_width: int, inset: int) -> LineSegment:
        """Synthetic x-axis spanning the full width, ``inset`` pixels above the bottom."""
        y = max(0, img_height - inset)
        return LineSegment(0, y, img_width, y)

    @staticmethod
    def _fallback_y_axis(img_height: int, img_width: int, inset: int) -> LineSegment:
        """Synthetic y-axis spanning the full height, ``inset`` pixels right of the left edge."""
        x = min(inset, max(0, img_width - 1))
        return LineSegment(x, 0, x, img_height)

    def _degraded(self, axis_name: str, found: int, line: LineSegment) -> Diagnostic:
        message = (
            f"{axis_name.upper()}-axis: {found} qualifying line(s) found, "
            f"using synthetic line {line.as_tuple()}"
        )
        self.logger.warning(f"Axis calibration degraded. {message}")
        return Diagnostic(code=AXIS_CALIBRATION_DEGRADED, stage="axes", message=message)
