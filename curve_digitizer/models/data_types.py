"""
Data types for Curve Digitizer.

Provides type-safe dataclasses for:
- Point: (x, y) sample in pixel space or value space
- Axis: Calibrated axis bounds, unit and label
- Series: Named point sequence
- ChartData: Final structured output
- LineSegment: Detected line with derived angle and length
- Contour: Detected edge boundary with area and perimeter
- PixelRange / AxisLines: Calibration geometry in pixel space
- Diagnostic / DigitizationResult: Pipeline output with recovered conditions
"""

import math
from dataclasses import dataclass, field, replace
from typing import Tuple, List, Optional, Any, Dict

import numpy as np


@dataclass(frozen=True)
class Point:
    """Single (x, y) sample. Pixel and value space are never mixed."""

    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        """Convert to (x, y) tuple."""
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Point":
        """Create from dictionary."""
        return cls(x=float(d["x"]), y=float(d["y"]))


@dataclass(frozen=True)
class Axis:
    """Calibrated axis.

    ``is_inverted`` marks axes whose pixel coordinate grows opposite to the
    value coordinate (image rows grow downward, chart values grow upward).
    """

    min: float
    max: float
    scale: float = 1.0
    unit: str = ""
    label: str = ""
    grid_lines: Optional[Tuple[float, ...]] = None
    is_inverted: bool = False

    @property
    def span(self) -> float:
        """Value range covered by the axis."""
        return self.max - self.min

    def is_well_ordered(self) -> bool:
        """True when ``min < max``."""
        return self.min < self.max

    def contains(self, value: float) -> bool:
        """True when ``value`` lies within [min, max]."""
        return self.min <= value <= self.max

    def clamp(self, value: float) -> float:
        """Clamp ``value`` into [min, max]."""
        return min(self.max, max(self.min, value))

    def with_scale(self, scale: float) -> "Axis":
        """Copy of this axis with a new pixel-to-value scale."""
        return replace(self, scale=scale)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "min": self.min,
            "max": self.max,
            "scale": self.scale,
            "unit": self.unit,
            "label": self.label,
            "grid_lines": list(self.grid_lines) if self.grid_lines is not None else None,
            "is_inverted": self.is_inverted,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Axis":
        """Create from dictionary."""
        grid = d.get("grid_lines")
        return cls(
            min=float(d["min"]),
            max=float(d["max"]),
            scale=float(d.get("scale", 1.0)),
            unit=d.get("unit", ""),
            label=d.get("label", ""),
            grid_lines=tuple(float(g) for g in grid) if grid is not None else None,
            is_inverted=bool(d.get("is_inverted", False)),
        )


@dataclass(frozen=True)
class Series:
    """Named point sequence (additional curves carried alongside ``points``)."""

    name: str
    points: Tuple[Point, ...] = ()
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "points": [p.to_dict() for p in self.points],
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Series":
        """Create from dictionary."""
        return cls(
            name=d["name"],
            points=tuple(Point.from_dict(p) for p in d.get("points", [])),
            color=d.get("color"),
        )


@dataclass(frozen=True)
class ChartData:
    """Structured output of a digitization request."""

    x_axis: Axis
    y_axis: Axis
    points: Tuple[Point, ...] = ()
    series: Tuple[Series, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (main output format)."""
        return {
            "x_axis": self.x_axis.to_dict(),
            "y_axis": self.y_axis.to_dict(),
            "points": [p.to_dict() for p in self.points],
            "series": [s.to_dict() for s in self.series],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ChartData":
        """Create from dictionary."""
        return cls(
            x_axis=Axis.from_dict(d["x_axis"]),
            y_axis=Axis.from_dict(d["y_axis"]),
            points=tuple(Point.from_dict(p) for p in d.get("points", [])),
            series=tuple(Series.from_dict(s) for s in d.get("series", [])),
        )


@dataclass(frozen=True)
class LineSegment:
    """Detected line segment in pixel space."""

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def angle(self) -> float:
        """Orientation in degrees, folded into [0, 180)."""
        angle = math.degrees(math.atan2(self.y2 - self.y1, self.x2 - self.x1))
        return angle % 180.0

    @property
    def length(self) -> float:
        """Euclidean length in pixels."""
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    @property
    def mid_x(self) -> float:
        """Midpoint x coordinate."""
        return (self.x1 + self.x2) / 2

    @property
    def mid_y(self) -> float:
        """Midpoint y coordinate."""
        return (self.y1 + self.y2) / 2

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """Convert to (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_tuple(cls, t) -> "LineSegment":
        """Create from (x1, y1, x2, y2) sequence."""
        return cls(x1=int(t[0]), y1=int(t[1]), x2=int(t[2]), y2=int(t[3]))

    def scaled(self, fx: float, fy: float) -> "LineSegment":
        """Same segment in an image resized by (fx, fy)."""
        return LineSegment(
            x1=int(round(self.x1 * fx)),
            y1=int(round(self.y1 * fy)),
            x2=int(round(self.x2 * fx)),
            y2=int(round(self.y2 * fy)),
        )


@dataclass(frozen=True)
class Contour:
    """Connected edge boundary extracted from a binary edge map."""

    points: Tuple[Tuple[int, int], ...]
    area: float
    perimeter: float

    @property
    def circularity(self) -> float:
        """Roundness score 4*pi*area/perimeter^2 (1.0 for a circle)."""
        if self.perimeter <= 0:
            return 0.0
        return 4.0 * math.pi * self.area / (self.perimeter ** 2)

    @property
    def perimeter_area_ratio(self) -> float:
        """Perimeter divided by area (inf for zero-area contours)."""
        if self.area <= 0:
            return math.inf
        return self.perimeter / self.area

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class PixelRange:
    """Pixel extent of an axis line."""

    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class AxisLines:
    """One representative line per axis plus whether each was synthesized."""

    x_axis_line: LineSegment
    y_axis_line: LineSegment
    x_degraded: bool = False
    y_degraded: bool = False

    @property
    def degraded(self) -> bool:
        return self.x_degraded or self.y_degraded

    @property
    def pixel_range_x(self) -> PixelRange:
        """Horizontal extent of the x-axis line."""
        line = self.x_axis_line
        return PixelRange(min(line.x1, line.x2), max(line.x1, line.x2))

    @property
    def pixel_range_y(self) -> PixelRange:
        """Vertical extent of the y-axis line, ending at the x-axis row.

        The x-axis row is the value origin, so a y-axis line that overshoots
        below it is clipped there.
        """
        line = self.y_axis_line
        top = min(line.y1, line.y2)
        bottom = max(line.y1, line.y2)
        origin_row = self.x_axis_line.mid_y
        if top < origin_row < bottom:
            bottom = origin_row
        return PixelRange(top, bottom)

    def scaled(self, fx: float, fy: float) -> "AxisLines":
        return replace(
            self,
            x_axis_line=self.x_axis_line.scaled(fx, fy),
            y_axis_line=self.y_axis_line.scaled(fx, fy),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "x_axis_line": list(self.x_axis_line.as_tuple()),
            "y_axis_line": list(self.y_axis_line.as_tuple()),
            "x_degraded": self.x_degraded,
            "y_degraded": self.y_degraded,
        }


@dataclass(frozen=True)
class Diagnostic:
    """Locally recovered condition reported alongside a result."""

    code: str
    stage: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "stage": self.stage, "message": self.message}


@dataclass
class DigitizationResult:
    """Everything a digitization request produced."""

    chart_data: ChartData
    axis_lines: AxisLines
    pixel_points: List[Point] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    edges: Optional[np.ndarray] = None

    @property
    def degraded(self) -> bool:
        """True when any stage fell back to a recovery policy."""
        return bool(self.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (the debug edge buffer is omitted)."""
        return {
            "chart_data": self.chart_data.to_dict(),
            "axis_lines": self.axis_lines.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
