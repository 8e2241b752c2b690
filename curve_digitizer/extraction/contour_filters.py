# curve_digitizer/extraction/contour_filters.py
"""
Filter pipeline for curve contour candidates using Chain of Responsibility pattern.

Each filter is independent, testable, and can be composed into a pipeline.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import List

from ..models.data_types import Contour


logger = logging.getLogger(__name__)


# ==================== BASE FILTER ====================


class ContourFilter(ABC):
    """
    Abstract base class for contour filters.

    Each filter implements a single shape concern and can be chained
    together in a ContourFilterPipeline.
    """

    @abstractmethod
    def filter(self, contours: List[Contour]) -> List[Contour]:
        """
        Filter contours, preserving their order.

        Args:
            contours: Contours annotated with area and perimeter

        Returns:
            Contours that pass the filter
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return filter name for logging"""
        pass


# ==================== INDIVIDUAL FILTERS ====================


class AreaFilter(ContourFilter):
    """
    Rejects contours that are too small or too large.

    Tiny contours are noise specks; contours covering a large share of the
    image are the chart's outer border rectangle.
    """

    def __init__(self, min_area: float = 100.0, max_area: float = math.inf):
        """
        Args:
            min_area: Absolute area floor in pixels (exclusive)
            max_area: Area ceiling in pixels (exclusive)
        """
        self.min_area = min_area
        self.max_area = max_area

    def get_name(self) -> str:
        return "AreaFilter"

    def filter(self, contours: List[Contour]) -> List[Contour]:
        filtered = [c for c in contours if self.min_area < c.area < self.max_area]

        removed = len(contours) - len(filtered)
        if removed > 0:
            logger.debug(
                f"{self.get_name()}: Removed {removed} contours. "
                f"Valid area range: ({self.min_area:.1f}, {self.max_area:.1f})"
            )
        return filtered


class PerimeterRatioFilter(ContourFilter):
    """
    Rejects contours whose perimeter/area ratio is too high.

    Thin frame lines and jagged noise have long perimeters for little
    enclosed area; plotted curve strokes stay below the ratio.
    """

    def __init__(self, max_ratio: float = 1.0):
        """
        Args:
            max_ratio: Maximum perimeter/area (exclusive)
        """
        self.max_ratio = max_ratio

    def get_name(self) -> str:
        return "PerimeterRatioFilter"

    def filter(self, contours: List[Contour]) -> List[Contour]:
        filtered = [c for c in contours if c.perimeter_area_ratio < self.max_ratio]

        removed = len(contours) - len(filtered)
        if removed > 0:
            logger.debug(
                f"{self.get_name()}: Removed {removed} contours "
                f"with perimeter/area >= {self.max_ratio}"
            )
        return filtered


class CircularityFilter(ContourFilter):
    """
    Rejects near-rectangular and near-circular shapes.

    Circularity is 4*pi*area/perimeter^2: 1.0 for a circle, ~0.785 for a
    square, close to 0 for a thin plotted stroke.
    """

    def __init__(self, min_circularity: float = 0.0, max_circularity: float = 0.5):
        """
        Args:
            min_circularity: Lowest accepted circularity (inclusive)
            max_circularity: Highest accepted circularity (inclusive)
        """
        self.min_circularity = min_circularity
        self.max_circularity = max_circularity

    def get_name(self) -> str:
        return "CircularityFilter"

    def filter(self, contours: List[Contour]) -> List[Contour]:
        filtered = [
            c for c in contours
            if self.min_circularity <= c.circularity <= self.max_circularity
        ]

        removed = len(contours) - len(filtered)
        if removed > 0:
            logger.debug(
                f"{self.get_name()}: Removed {removed} contours. "
                f"Valid circularity range: [{self.min_circularity}, {self.max_circularity}]"
            )
        return filtered


# ==================== FILTER PIPELINE ====================


class ContourFilterPipeline:
    """
    Chains multiple filters together.

    Filters are applied in sequence with early exit once nothing remains.
    Each step is logged for debugging.
    """

    def __init__(self, filters: List[ContourFilter]):
        """
        Args:
            filters: List of filters to apply in sequence
        """
        self.filters = filters
        self.logger = logging.getLogger(__name__)

    def filter(self, contours: List[Contour]) -> List[Contour]:
        """
        Apply all filters in sequence.

        Args:
            contours: Candidate contours

        Returns:
            Contours that pass every filter, in original order
        """
        if not contours:
            self.logger.debug("ContourFilterPipeline: No contours to filter")
            return contours

        initial_count = len(contours)
        current = contours

        for i, contour_filter in enumerate(self.filters, 1):
            before_count = len(current)
            current = contour_filter.filter(current)

            self.logger.debug(
                f"ContourFilterPipeline: Step {i}/{len(self.filters)} - "
                f"{contour_filter.get_name()}: {before_count} -> {len(current)} contours"
            )

            if not current:
                self.logger.debug("ContourFilterPipeline: Early exit - no contours remaining")
                break

        self.logger.debug(
            f"ContourFilterPipeline: {len(current)}/{initial_count} contours remaining"
        )
        return current

    def get_names(self) -> List[str]:
        """Names of the chained filters, in order"""
        return [f.get_name() for f in self.filters]
