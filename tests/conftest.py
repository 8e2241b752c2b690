"""
Pytest fixtures for Curve Digitizer tests.

Provides:
- Synthetic fan curve chart images (generated programmatically)
- A fake vision engine returning canned segments and contours
- Mock pixel points and chart data for refiner / validator testing
"""
import sys
from pathlib import Path

import pytest
import numpy as np
import cv2

sys.path.insert(0, str(Path(__file__).parent.parent))

from curve_digitizer.models.data_types import (
    Axis,
    ChartData,
    Contour,
    LineSegment,
    Point,
)
from curve_digitizer.preprocessing.vision_engine import VisionEngine


# ==================== CHART GEOMETRY ====================

# 600x400 chart: x-axis row 340 from px 60 to 560, y-axis column 60 from row 40 to 340.
# Declared ranges are 0-40 CFM and 0-10 inch-H2O, so 12.5 px per CFM and 30 px per inch.
CHART_WIDTH = 600
CHART_HEIGHT = 400
ORIGIN = (60, 340)
X_AXIS_END = 560
Y_AXIS_TOP = 40
PX_PER_X = 12.5
PX_PER_Y = 30.0


def fan_curve(x):
    """Ground-truth static pressure (inch-H2O) for an airflow (CFM)."""
    return 9.0 * (1.0 - (x / 40.0) ** 2)


def draw_fan_chart(curve_thickness=5, with_curve=True):
    """
    Draw axes and a fan curve on a white RGB canvas.

    The curve spans 1.6-35.2 CFM and never touches the axes.
    """
    img = np.full((CHART_HEIGHT, CHART_WIDTH, 3), 255, dtype=np.uint8)

    # Axes: exactly 2 px wide bands so their contours stay thin after blurring
    cv2.rectangle(img, ORIGIN, (X_AXIS_END, ORIGIN[1] + 1), (0, 0, 0), -1)
    cv2.rectangle(img, (ORIGIN[0], Y_AXIS_TOP), (ORIGIN[0] + 1, ORIGIN[1] + 1), (0, 0, 0), -1)

    if with_curve:
        xs = np.linspace(1.6, 35.2, 200)
        pts = np.array(
            [
                (int(round(ORIGIN[0] + x * PX_PER_X)), int(round(ORIGIN[1] - fan_curve(x) * PX_PER_Y)))
                for x in xs
            ],
            dtype=np.int32,
        )
        cv2.polylines(img, [pts.reshape(-1, 1, 2)], False, (30, 30, 200), curve_thickness)

    return img


# ==================== IMAGE FIXTURES ====================

@pytest.fixture
def sample_chart_image():
    """
    Synthetic fan curve chart.

    Returns:
        RGB numpy array (400, 600, 3) with both axes and one curve
    """
    return draw_fan_chart()


@pytest.fixture
def sample_rgba_chart_image(sample_chart_image):
    """Same chart as RGBA (the layout canvas pixel buffers use)."""
    return cv2.cvtColor(sample_chart_image, cv2.COLOR_RGB2RGBA)


@pytest.fixture
def sample_axes_only_image():
    """Axes without a curve."""
    return draw_fan_chart(with_curve=False)


@pytest.fixture
def sample_blank_image():
    """Plain white image: no axes, no curve."""
    return np.full((CHART_HEIGHT, CHART_WIDTH, 3), 255, dtype=np.uint8)


@pytest.fixture
def sample_grayscale_image():
    """Single-channel mid-gray image."""
    return np.ones((400, 600), dtype=np.uint8) * 128


@pytest.fixture
def sample_empty_image():
    """Create an empty (zero-size) image."""
    return np.array([])


@pytest.fixture
def temp_image_file(tmp_path, sample_chart_image):
    """
    Save the synthetic chart to a temp file for file-based tests.

    Returns:
        Path object to temporary PNG file
    """
    file_path = tmp_path / "fan_curve.png"
    # Convert RGB to BGR for cv2.imwrite
    cv2.imwrite(str(file_path), cv2.cvtColor(sample_chart_image, cv2.COLOR_RGB2BGR))
    return file_path


@pytest.fixture
def temp_invalid_image_file(tmp_path):
    """A .png file that is not an image."""
    file_path = tmp_path / "broken.png"
    file_path.write_text("This is not an image")
    return file_path


# ==================== FAKE ENGINE ====================

class FakeVisionEngine(VisionEngine):
    """Vision engine returning canned detections and recording its calls."""

    def __init__(self, segments=None, contours=None, ready=True):
        self.segments = list(segments or [])
        self.contours = list(contours or [])
        self.ready = ready
        self.line_params = []
        self.ready_checks = 0

    def is_ready(self):
        self.ready_checks += 1
        return self.ready

    def detect_lines(self, edge_map, params):
        self.line_params.append(params)
        return list(self.segments)

    def detect_contours(self, edge_map):
        return list(self.contours)


@pytest.fixture
def fake_engine_factory():
    """Build a FakeVisionEngine with the given segments / contours."""
    return FakeVisionEngine


@pytest.fixture
def edge_map():
    """Empty 400x600 binary edge map (fake engines ignore its content)."""
    return np.zeros((CHART_HEIGHT, CHART_WIDTH), dtype=np.uint8)


# ==================== MOCK SEGMENTS / CONTOURS ====================

@pytest.fixture
def mock_axis_segments():
    """
    Two x-axis and two y-axis candidates plus distractors for a 400x600 map.

    The longest candidate on each axis is the one that should be picked.
    """
    return [
        LineSegment(60, 340, 560, 340),   # x-axis, longest
        LineSegment(60, 341, 500, 341),   # x-axis, shorter duplicate
        LineSegment(60, 40, 60, 340),     # y-axis, longest
        LineSegment(61, 60, 61, 340),     # y-axis, shorter duplicate
        LineSegment(100, 60, 500, 60),    # horizontal, upper half (gridline)
        LineSegment(400, 40, 400, 340),   # vertical, right side (gridline)
        LineSegment(100, 100, 300, 300),  # diagonal
    ]


def make_contour(points, area, perimeter):
    return Contour(points=tuple(points), area=float(area), perimeter=float(perimeter))


@pytest.fixture
def mock_contours():
    """
    Curve-like contour, frame rectangle, thin line and noise speck.

    Only the curve contour passes the default filters.
    """
    curve_points = [(x, 100 + x // 4) for x in range(80, 480, 2)]
    return [
        make_contour([(1, 1), (3, 1), (3, 3)], area=4, perimeter=8),                 # noise
        make_contour([(0, 0), (599, 0), (599, 399), (0, 399)], area=239000, perimeter=1996),  # frame
        make_contour([(60, 340), (560, 340)], area=500, perimeter=1000),             # thin line
        make_contour(curve_points, area=1800, perimeter=900),                        # curve
    ]


# ==================== MOCK POINT / CHART DATA ====================

@pytest.fixture
def mock_pixel_points():
    """20 pixel points on a gentle line, ascending x."""
    return [Point(float(x), 300.0 - 0.5 * x) for x in range(100, 300, 10)]


@pytest.fixture
def fan_axes():
    """Declared fan curve axes (0-40 CFM, 0-10 inch-H2O)."""
    x_axis = Axis(min=0.0, max=40.0, unit="CFM", label="Airflow")
    y_axis = Axis(min=0.0, max=10.0, unit="inch-H2O", label="Static pressure", is_inverted=True)
    return x_axis, y_axis


@pytest.fixture
def valid_chart_data(fan_axes):
    """Valid fan curve chart data with 6 points."""
    x_axis, y_axis = fan_axes
    points = tuple(Point(float(x), round(fan_curve(x), 4)) for x in (0, 5, 10, 20, 30, 40))
    return ChartData(x_axis=x_axis, y_axis=y_axis, points=points)


@pytest.fixture
def empty_chart_data(fan_axes):
    """Chart data without points."""
    x_axis, y_axis = fan_axes
    return ChartData(x_axis=x_axis, y_axis=y_axis, points=())
