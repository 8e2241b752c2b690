# curve_digitizer/preprocessing/detector_config.py
"""
Configuration system for axis and curve detection with adaptive thresholds.
"""
import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..config import DEFAULT_CHART


# ==================== CUSTOM EXCEPTIONS ====================

class DigitizationError(Exception):
    """Base exception for digitization failures.

    ``stage`` names the pipeline stage that failed so callers can choose
    between retry, reconfiguration or a manual fallback.
    """

    def __init__(self, message: str, stage: str = "pipeline"):
        super().__init__(message)
        self.stage = stage

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "stage": self.stage, "message": str(self)}


class ChartDetectionError(DigitizationError):
    """Raised when a detection primitive fails (OpenCV errors etc)"""
    pass


class InvalidImageError(ChartDetectionError):
    """Raised when image is invalid (None, undecodable, zero width or height)"""

    def __init__(self, message: str, stage: str = "preprocess"):
        super().__init__(message, stage=stage)


class EngineUnavailableError(DigitizationError):
    """Raised when the vision engine does not become ready within the timeout"""

    def __init__(self, message: str):
        super().__init__(f"{message}. Retry once the vision engine has loaded.", stage="engine")


class ValidationFailedError(DigitizationError):
    """Raised when chart data violates an output invariant; blocks export only"""

    def __init__(self, message: str):
        super().__init__(message, stage="validation")


class NoDataExtractedError(ValidationFailedError):
    """Raised when no curve points survived the pipeline"""
    pass


# ==================== DIAGNOSTIC CODES ====================

AXIS_CALIBRATION_DEGRADED = "axis_calibration_degraded"
CURVE_NOT_FOUND = "curve_not_found"


# ==================== CONFIGURATION CLASS ====================

@dataclass
class DetectorConfig:
    """
    Adaptive configuration for axis and curve detection.

    All thresholds are adaptive based on image size unless explicitly overridden.
    Tunables that earlier heuristics hard-coded are named here instead.

    Attributes:
        image_size: Tuple of (height, width) for adaptive thresholds

        # Preprocessing
        threshold: Binarization intensity threshold (0-255)
        blur_ksize: Gaussian blur kernel (fixed radius)
        invert: Treat dark ink on light paper as foreground

        # Hough Line Transform parameters (for axis detection)
        hough_threshold_override: Override adaptive vote threshold
        min_line_length_override: Override adaptive minimum segment length
        min_line_length_ratio: Minimum segment length as ratio of image dimension
        max_line_gap: Maximum gap between collinear segments

        # Axis classification
        horizontal_tolerance_deg: Max deviation from 0/180 degrees for x candidates
        vertical_tolerance_deg: Max deviation from 90 degrees for y candidates
        x_axis_min_y_ratio: X-axis midpoint must be below this fraction of height
        y_axis_max_x_ratio: Y-axis midpoint must be left of this fraction of width
        axis_min_span_ratio: Axis must span this fraction of width/height
        min_axis_candidates: Fewer qualifying segments triggers the fallback
        fallback_inset: Pixel inset of synthesized axis lines

        # Curve contour filtering
        min_contour_area: Absolute area floor (noise specks)
        max_contour_area_ratio: Area ceiling as fraction of image area (frames)
        max_perimeter_area_ratio: Reject contours with perimeter/area above this
        min_circularity / max_circularity: Accepted circularity band
        selection_heuristic: "perimeter_ratio", "circularity" or "both"
        contour_sample_count: Number of points sampled from the winning contour
    """

    # Basic properties
    image_size: Optional[Tuple[int, int]] = None

    # Preprocessing
    threshold: int = DEFAULT_CHART.BINARY_THRESHOLD
    blur_ksize: Tuple[int, int] = (5, 5)
    invert: bool = True

    # Hough parameters
    hough_rho: float = 1.0
    hough_theta: float = math.pi / 180
    hough_threshold_override: Optional[int] = None
    min_line_length_override: Optional[int] = None
    min_line_length_ratio: float = 0.25
    max_line_gap: int = 10

    # Axis classification
    horizontal_tolerance_deg: float = 10.0
    vertical_tolerance_deg: float = 10.0
    x_axis_min_y_ratio: float = 0.5   # Lower half
    y_axis_max_x_ratio: float = 0.2   # Left 20%
    axis_min_span_ratio: float = 0.3  # 30% of width / height
    min_axis_candidates: int = 2
    fallback_inset: int = DEFAULT_CHART.FALLBACK_AXIS_INSET

    # Curve contour filtering
    min_contour_area: float = 100.0
    max_contour_area_ratio: float = 0.3
    max_perimeter_area_ratio: float = 1.0
    min_circularity: float = 0.0
    max_circularity: float = 0.5
    selection_heuristic: str = "perimeter_ratio"
    contour_sample_count: int = DEFAULT_CHART.CONTOUR_SAMPLE_COUNT

    # ==================== ADAPTIVE PROPERTIES ====================

    @property
    def hough_threshold(self) -> int:
        """
        Adaptive Hough vote threshold based on image size.

        Returns 15% of the minimum image dimension (at least 20):
        - 200x400 image -> threshold = 30
        - 600x800 image -> threshold = 90

        Falls back to 100 when the image size is unknown.
        """
        if self.hough_threshold_override is not None:
            return self.hough_threshold_override

        if self.image_size is not None:
            min_dim = min(self.image_size)
            return max(20, int(min_dim * 0.15))

        # Default fallback
        return 100

    @property
    def min_line_length(self) -> int:
        """
        Adaptive minimum segment length for the Hough transform.

        Returns min_line_length_ratio * min dimension; axes are long, so a
        quarter of the smaller side keeps tick marks and text strokes out.
        """
        if self.min_line_length_override is not None:
            return self.min_line_length_override

        if self.image_size is not None:
            min_dim = min(self.image_size)
            return max(10, int(min_dim * self.min_line_length_ratio))

        # Default fallback
        return 100

    @property
    def max_contour_area(self) -> float:
        """
        Area ceiling for curve candidates.

        Contours covering more than max_contour_area_ratio of the image are
        the chart frame, not the plotted curve.
        """
        if self.image_size is not None:
            total_area = self.image_size[0] * self.image_size[1]
            return total_area * self.max_contour_area_ratio

        return math.inf

    def for_image(self, height: int, width: int) -> "DetectorConfig":
        """
        Copy of this config sized for one image.

        Each request gets its own copy so adaptive thresholds never leak
        between concurrent requests.
        """
        return replace(self, image_size=(height, width))

    def __repr__(self) -> str:
        """String representation for debugging"""
        return (
            f"DetectorConfig(\n"
            f"  image_size={self.image_size},\n"
            f"  threshold={self.threshold},\n"
            f"  hough_threshold={self.hough_threshold},\n"
            f"  min_line_length={self.min_line_length},\n"
            f"  max_contour_area={self.max_contour_area},\n"
            f"  selection_heuristic='{self.selection_heuristic}'\n"
            f")"
        )
