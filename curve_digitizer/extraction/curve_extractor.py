"""
Curve extraction from binary edge map contours.

Scores every contour by area and shape, drops noise specks, frame
rectangles and blob-like shapes, then samples the largest survivor into an
ordered sequence of pixel points.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..models.data_types import Contour, Diagnostic, Point
from ..preprocessing.detector_config import (
    CURVE_NOT_FOUND,
    DetectorConfig,
    InvalidImageError,
)
from ..preprocessing.vision_engine import OpenCVVisionEngine, VisionEngine
from .contour_filters import (
    AreaFilter,
    CircularityFilter,
    ContourFilterPipeline,
    PerimeterRatioFilter,
)


logger = logging.getLogger(__name__)

SELECTION_HEURISTICS = ("perimeter_ratio", "circularity", "both")


class CurveExtractor:
    """
    Detects the plotted curve as the largest plausible contour.

    ``config.selection_heuristic`` chooses the shape test:
    - "perimeter_ratio": reject contours with perimeter/area >= max_perimeter_area_ratio
    - "circularity": reject contours outside [min_circularity, max_circularity]
    - "both": apply both tests
    """

    def __init__(self, engine: Optional[VisionEngine] = None, config: Optional[DetectorConfig] = None):
        self.engine = engine or OpenCVVisionEngine()
        self.config = config or DetectorConfig()
        if self.config.selection_heuristic not in SELECTION_HEURISTICS:
            raise ValueError(
                f"Unsupported selection heuristic: {self.config.selection_heuristic}. "
                f"Expected one of {SELECTION_HEURISTICS}"
            )
        self.logger = logging.getLogger(__name__)

    def build_filter_pipeline(self, config: DetectorConfig) -> ContourFilterPipeline:
        """
        Create the filter pipeline for one image.

        Returns:
            ContourFilterPipeline with the area filter first
        """
        filters = [AreaFilter(min_area=config.min_contour_area, max_area=config.max_contour_area)]

        if config.selection_heuristic in ("perimeter_ratio", "both"):
            filters.append(PerimeterRatioFilter(max_ratio=config.max_perimeter_area_ratio))
        if config.selection_heuristic in ("circularity", "both"):
            filters.append(
                CircularityFilter(
                    min_circularity=config.min_circularity,
                    max_circularity=config.max_circularity,
                )
            )
        return ContourFilterPipeline(filters)

    def detect_curve(self, edge_map: np.ndarray) -> Tuple[List[Point], List[Diagnostic]]:
        """
        Detect the plotted curve and sample it into pixel points.

        Args:
            edge_map: Binary edge map (uint8, H x W)

        Returns:
            Tuple of (points sorted by x, diagnostics). An empty
            point list with a ``curve_not_found`` diagnostic means no contour
            passed the filters.

        Raises:
            InvalidImageError: If the edge map has zero width or height
            ChartDetectionError: If contour detection fails
        """
        if edge_map is None or edge_map.ndim != 2 or 0 in edge_map.shape:
            raise InvalidImageError("Edge map must be a non-empty 2D array", stage="curve")

        h, w = edge_map.shape[:2]
        config = self.config.for_image(h, w)
        self.logger.info(f"Detecting curve for image size: {h}x{w}")

        contours = self.engine.detect_contours(edge_map)
        self.logger.debug(f"Detected {len(contours)} contours")

        candidates = self.build_filter_pipeline(config).filter(contours)
        best = self.select_contour(candidates)

        if best is None:
            message = f"No contour out of {len(contours)} passed the curve filters"
            self.logger.warning(f"Curve not found. {message}")
            return [], [Diagnostic(code=CURVE_NOT_FOUND, stage="curve", message=message)]

        self.logger.debug(
            f"Selected contour: area={best.area:.1f}, perimeter={best.perimeter:.1f}, "
            f"circularity={best.circularity:.3f}, {len(best)} vertices"
        )

        points = self.sample_contour(best, config.contour_sample_count)
        self.logger.info(f"Extracted {len(points)} curve points")
        return points, []

    @staticmethod
    def select_contour(candidates: List[Contour]) -> Optional[Contour]:
        """
        Pick the contour with maximum area.

        Ties keep the first-encountered contour so selection is deterministic.
        """
        best = None
        for contour in candidates:
            if best is None or contour.area > best.area:
                best = contour
        return best

    @staticmethod
    def sample_contour(contour: Contour, sample_count: int) -> List[Point]:
        """
        Sample a contour at a fixed stride and order the samples by x.

        The stride keeps at most about ``sample_count`` vertices. Samples
        sharing an x coordinate (both edges of a thick stroke) are all kept;
        the refiner merges them.
        """
        if sample_count <= 0:
            raise ValueError(f"sample_count must be positive, got {sample_count}")

        step = max(1, len(contour.points) // sample_count)
        sampled = contour.points[::step]

        # sorted() is stable, so equal x keeps contour order
        ordered = sorted(sampled, key=lambda p: p[0])
        return [Point(float(x), float(y)) for x, y in ordered]
