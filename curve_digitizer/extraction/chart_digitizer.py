"""Chart digitization pipeline.

raw image -> preprocess -> {axis calibration, curve extraction}
          -> point refinement -> coordinate transform -> ChartData
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import cv2
import numpy as np

from ..config import DEFAULT_CHART
from ..models.data_types import Axis, AxisLines, DigitizationResult
from ..preprocessing.axis_calibrator import AxisCalibrator
from ..preprocessing.detector_config import ChartDetectionError, DetectorConfig
from ..preprocessing.image_utils import ImagePreprocessor
from ..preprocessing.vision_engine import OpenCVVisionEngine, VisionEngine, wait_for_engine
from .coordinate_transformer import AxisCalibration, CoordinateTransformer
from .curve_extractor import CurveExtractor
from .point_refiner import PointRefiner
from .units import conversion_factor

if TYPE_CHECKING:
    from pathlib import Path


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DigitizeOptions:
    """Per-request calibration configuration.

    ``axis_mode="manual"`` skips line detection; the caller passes the axis
    lines to :meth:`ChartDigitizer.digitize`.
    """

    threshold: int = DEFAULT_CHART.BINARY_THRESHOLD
    smoothing_window: int = DEFAULT_CHART.SMOOTHING_WINDOW
    sample_count: int | None = None
    axis_mode: str = "auto"

    x_min: float = DEFAULT_CHART.X_MIN
    x_max: float = DEFAULT_CHART.X_MAX
    y_min: float = DEFAULT_CHART.Y_MIN
    y_max: float = DEFAULT_CHART.Y_MAX
    x_unit: str = DEFAULT_CHART.X_UNIT
    y_unit: str = DEFAULT_CHART.Y_UNIT
    x_label: str = DEFAULT_CHART.X_LABEL
    y_label: str = DEFAULT_CHART.Y_LABEL
    x_grid_lines: tuple[float, ...] | None = None
    y_grid_lines: tuple[float, ...] | None = None

    # Presentation units, applied after calibration
    output_x_unit: str | None = None
    output_y_unit: str | None = None

    include_edges: bool = False
    max_image_size: int | None = None

    def check(self) -> None:
        """Raise ``ValueError`` for options no request can honour."""
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be within 0-255, got {self.threshold}")
        if self.smoothing_window < 1 or self.smoothing_window % 2 == 0:
            raise ValueError(
                f"smoothing_window must be a positive odd integer, got {self.smoothing_window}"
            )
        if self.sample_count is not None and self.sample_count <= 0:
            raise ValueError(f"sample_count must be positive, got {self.sample_count}")
        if self.axis_mode not in DEFAULT_CHART.VALID_AXIS_MODES:
            raise ValueError(
                f"Invalid axis_mode: {self.axis_mode}. "
                f"Supported modes: {', '.join(DEFAULT_CHART.VALID_AXIS_MODES)}"
            )
        if not self.x_min < self.x_max:
            raise ValueError(f"x range must satisfy min < max, got [{self.x_min}, {self.x_max}]")
        if not self.y_min < self.y_max:
            raise ValueError(f"y range must satisfy min < max, got [{self.y_min}, {self.y_max}]")
        if self.output_x_unit is not None and self.output_x_unit != self.x_unit:
            conversion_factor(self.x_unit, self.output_x_unit)
        if self.output_y_unit is not None and self.output_y_unit != self.y_unit:
            conversion_factor(self.y_unit, self.output_y_unit)

    def x_axis(self) -> Axis:
        return Axis(
            min=self.x_min,
            max=self.x_max,
            unit=self.x_unit,
            label=self.x_label,
            grid_lines=self.x_grid_lines,
            is_inverted=False,
        )

    def y_axis(self) -> Axis:
        # Image rows grow downward while chart values grow upward
        return Axis(
            min=self.y_min,
            max=self.y_max,
            unit=self.y_unit,
            label=self.y_label,
            grid_lines=self.y_grid_lines,
            is_inverted=True,
        )


class ChartDigitizer:
    """Extract calibrated (x, y) data from XY chart images.

    Each call owns its image, edge map and point sequences; nothing is
    shared between requests. The async entry points are serialized per
    instance so two overlapping requests never race.
    """

    def __init__(
        self,
        engine: VisionEngine | None = None,
        config: DetectorConfig | None = None,
        transformer: CoordinateTransformer | None = None,
        engine_timeout: float = DEFAULT_CHART.ENGINE_READY_TIMEOUT_S,
    ) -> None:
        self.engine = engine or OpenCVVisionEngine()
        self.config = config or DetectorConfig()
        self.transformer = transformer or CoordinateTransformer()
        self.engine_timeout = engine_timeout
        self._lock = asyncio.Lock()

    def digitize(
        self,
        image: np.ndarray,
        options: DigitizeOptions | None = None,
        axis_lines: AxisLines | None = None,
    ) -> DigitizationResult:
        """Run the synchronous pipeline on a decoded image.

        Parameters
        ----------
        image:
            Decoded raster (RGBA, RGB or grayscale).
        options:
            Calibration configuration. Defaults to :class:`DigitizeOptions`.
        axis_lines:
            Required when ``options.axis_mode == "manual"``.

        Returns
        -------
        DigitizationResult
            Chart data plus diagnostics for locally recovered conditions
            (degraded axis calibration, curve not found).

        Raises
        ------
        InvalidImageError
            If the image is empty or malformed.
        ChartDetectionError
            If a detection primitive fails.
        ValueError
            If the options are inconsistent.
        """
        options = options or DigitizeOptions()
        options.check()
        if options.axis_mode == "manual" and axis_lines is None:
            raise ValueError("axis_mode='manual' requires axis_lines")

        config = replace(self.config, threshold=options.threshold)
        preprocessor = ImagePreprocessor(
            threshold=config.threshold, blur_ksize=config.blur_ksize, invert=config.invert
        )

        # Step 1: Preprocess
        preprocessor.validate_image(image)
        if options.max_image_size is not None:
            h, w = image.shape[:2]
            image = preprocessor.normalize_size(image, max_size=options.max_image_size)
            new_h, new_w = image.shape[:2]
            # Manual lines are in the caller's pixels; curve points in the resized ones
            if axis_lines is not None and (new_h, new_w) != (h, w):
                axis_lines = axis_lines.scaled(new_w / w, new_h / h)
                logger.debug(f"Scaled manual axis lines to {new_w}x{new_h}")
        try:
            edge_map = preprocessor.preprocess(image)
        except cv2.error as e:
            logger.error(f"OpenCV error in preprocessing: {e}")
            raise ChartDetectionError(f"Preprocessing failed: {e}", stage="preprocess") from e

        diagnostics = []

        # Step 2: Axes
        if options.axis_mode == "auto":
            axis_lines, axis_diagnostics = AxisCalibrator(self.engine, config).detect_axes(edge_map)
            diagnostics.extend(axis_diagnostics)
        else:
            logger.info(f"Using manual axis lines: {axis_lines.to_dict()}")

        # Step 3: Curve
        pixel_points, curve_diagnostics = CurveExtractor(self.engine, config).detect_curve(edge_map)
        diagnostics.extend(curve_diagnostics)

        # Step 4: Refine
        refiner = PointRefiner(smoothing_window=options.smoothing_window)
        refined = refiner.refine(pixel_points)
        if options.sample_count is not None:
            if len(refined) >= 2:
                refined = refiner.resample(refined, refiner.count_grid(refined, options.sample_count))
            else:
                logger.debug(f"Skipping resampling: only {len(refined)} refined point(s)")

        # Step 5: Transform
        calibration = AxisCalibration.from_axis_lines(options.x_axis(), options.y_axis(), axis_lines)
        chart_data = self.transformer.build_chart_data(refined, calibration)
        if options.output_x_unit or options.output_y_unit:
            chart_data = self.transformer.convert_units(
                chart_data, x_unit=options.output_x_unit, y_unit=options.output_y_unit
            )

        logger.info(
            f"Digitized {len(chart_data.points)} points "
            f"({len(pixel_points)} raw, {len(diagnostics)} diagnostic(s))"
        )

        return DigitizationResult(
            chart_data=chart_data,
            axis_lines=axis_lines,
            pixel_points=refined,
            diagnostics=diagnostics,
            edges=preprocessor.detect_edges(image) if options.include_edges else None,
        )

    async def digitize_async(
        self,
        image: np.ndarray,
        options: DigitizeOptions | None = None,
        axis_lines: AxisLines | None = None,
    ) -> DigitizationResult:
        """Await engine readiness, then digitize an already decoded image.

        Raises
        ------
        EngineUnavailableError
            If the engine is not ready within ``engine_timeout`` seconds.
        """
        async with self._lock:
            await wait_for_engine(self.engine, timeout=self.engine_timeout)
            return self.digitize(image, options, axis_lines)

    async def digitize_file(
        self,
        image_path: str | Path,
        options: DigitizeOptions | None = None,
        axis_lines: AxisLines | None = None,
    ) -> DigitizationResult:
        """Decode an image file and digitize it.

        Decoding and engine readiness are awaited together; the pipeline
        starts only after both complete.

        Raises
        ------
        InvalidImageError
            If the file cannot be decoded.
        EngineUnavailableError
            If the engine is not ready within ``engine_timeout`` seconds.
        """
        async with self._lock:
            image, _ = await asyncio.gather(
                ImagePreprocessor().load_image_async(str(image_path)),
                wait_for_engine(self.engine, timeout=self.engine_timeout),
            )
            return self.digitize(image, options, axis_lines)
