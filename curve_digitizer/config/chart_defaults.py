"""
Default chart configuration for digitization requests.

Centralizes the constants that the pipeline falls back to when a request
does not declare them.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ChartDefaults:
    """
    Defaults for axis declaration, engine readiness and export.

    Axis ranges describe a fan performance curve: airflow (CFM) on the
    x-axis against static pressure (inch-H2O) on the y-axis.
    """

    # ==================== Declared Axis Ranges ====================
    X_MIN: float = 0.0
    X_MAX: float = 40.0
    Y_MIN: float = 0.0
    Y_MAX: float = 10.0
    X_UNIT: str = "CFM"
    Y_UNIT: str = "inch-H2O"
    X_LABEL: str = "Airflow"
    Y_LABEL: str = "Static pressure"

    # ==================== Axis Fallback ====================
    FALLBACK_AXIS_INSET: int = 20  # Pixels from the bottom / left edge

    # ==================== Curve Sampling ====================
    CONTOUR_SAMPLE_COUNT: int = 100
    SMOOTHING_WINDOW: int = 5
    BINARY_THRESHOLD: int = 128

    # ==================== Vision Engine ====================
    ENGINE_READY_TIMEOUT_S: float = 30.0
    ENGINE_POLL_INTERVAL_S: float = 0.1

    # ==================== Export ====================
    EXPORT_DECIMALS: int = 2
    CONVERTED_FLOW_DECIMALS: int = 4  # m3/min values are small
    PREVIEW_ROWS: int = 5

    # ==================== Supported Inputs ====================
    SUPPORTED_IMAGE_FORMATS: tuple = ('.png', '.jpg', '.jpeg', '.bmp', '.tiff')
    VALID_AXIS_MODES: tuple = ('auto', 'manual')


# Default configuration instance
DEFAULT_CHART = ChartDefaults()
