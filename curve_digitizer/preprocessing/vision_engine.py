"""
Vision engine capability for line and contour detection.

Axis calibration and curve extraction only depend on :class:`VisionEngine`,
so any native or pure implementation can be substituted. The OpenCV engine
is the default.
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

import cv2
import numpy as np

from ..config import DEFAULT_CHART
from ..models.data_types import Contour, LineSegment
from .detector_config import ChartDetectionError, EngineUnavailableError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineDetectionParams:
    """Parameters of the probabilistic Hough line detector."""

    rho: float = 1.0
    theta: float = math.pi / 180
    threshold: int = 100
    min_line_length: int = 100
    max_line_gap: int = 10


# ==================== BASE ENGINE ====================


class VisionEngine(ABC):
    """
    Abstract detection primitives.

    Engines may need asynchronous initialization; callers await
    :func:`wait_for_engine` before invoking the detectors.
    """

    @abstractmethod
    def is_ready(self) -> bool:
        """Return True once the detection primitives can be used"""
        pass

    @abstractmethod
    def detect_lines(self, edge_map: np.ndarray, params: LineDetectionParams) -> List[LineSegment]:
        """
        Detect line segments in a binary edge map.

        Args:
            edge_map: Single channel uint8 image (foreground = 255)
            params: Hough parameters

        Returns:
            Detected segments in detector order
        """
        pass

    @abstractmethod
    def detect_contours(self, edge_map: np.ndarray) -> List[Contour]:
        """
        Extract all contours from a binary edge map.

        Returns:
            Contours in detector order, annotated with area and perimeter
        """
        pass

    def get_name(self) -> str:
        """Return engine name for logging"""
        return type(self).__name__


# ==================== OPENCV ENGINE ====================


class OpenCVVisionEngine(VisionEngine):
    """Detection primitives backed by OpenCV (HoughLinesP + findContours)."""

    def is_ready(self) -> bool:
        # cv2 is loaded at import time
        return True

    def detect_lines(self, edge_map: np.ndarray, params: LineDetectionParams) -> List[LineSegment]:
        try:
            lines = cv2.HoughLinesP(
                edge_map,
                rho=params.rho,
                theta=params.theta,
                threshold=params.threshold,
                minLineLength=params.min_line_length,
                maxLineGap=params.max_line_gap,
            )
        except cv2.error as e:
            logger.error(f"OpenCV error in line detection: {e}")
            raise ChartDetectionError(f"Line detection failed: {e}", stage="axes") from e

        if lines is None:
            return []
        return [LineSegment.from_tuple(line[0]) for line in lines]

    def detect_contours(self, edge_map: np.ndarray) -> List[Contour]:
        try:
            contours, _ = cv2.findContours(
                edge_map, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE
            )
            result = []
            for cnt in contours:
                pts = cnt.reshape(-1, 2)
                result.append(
                    Contour(
                        points=tuple((int(x), int(y)) for x, y in pts),
                        area=float(cv2.contourArea(cnt)),
                        perimeter=float(cv2.arcLength(cnt, False)),
                    )
                )
            return result
        except cv2.error as e:
            logger.error(f"OpenCV error in contour detection: {e}")
            raise ChartDetectionError(f"Contour detection failed: {e}", stage="curve") from e


# ==================== READINESS ====================


async def wait_for_engine(
    engine: VisionEngine,
    timeout: float = DEFAULT_CHART.ENGINE_READY_TIMEOUT_S,
    poll_interval: float = DEFAULT_CHART.ENGINE_POLL_INTERVAL_S,
) -> VisionEngine:
    """
    Await engine readiness with a bounded number of polls.

    Args:
        engine: Engine to wait for
        timeout: Seconds before giving up
        poll_interval: Seconds between readiness checks

    Returns:
        The ready engine

    Raises:
        EngineUnavailableError: If the engine is not ready within ``timeout``
    """
    deadline = time.monotonic() + timeout
    attempts = 0

    while True:
        attempts += 1
        if engine.is_ready():
            logger.debug(f"{engine.get_name()} ready after {attempts} check(s)")
            return engine

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.error(
                f"{engine.get_name()} not ready after {timeout:.1f}s ({attempts} checks)"
            )
            raise EngineUnavailableError(
                f"{engine.get_name()} did not become ready within {timeout:.1f}s"
            )

        await asyncio.sleep(min(poll_interval, remaining))
