"""Unit conversion for value-space points.

Conversion is a pure scalar multiply applied after calibration. It is kept
separate from the calibration scale so both can be tested independently.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from ..models.data_types import Axis, Point


# 1 CFM = 0.028316847 m3/min, 1 inch = 25.4 mm
CFM_TO_M3_MIN = 0.028316847
INCH_TO_MM = 25.4

# Canonical unit names and the factor that converts them to the base unit
# of their quantity (CFM for airflow, inch-H2O for pressure).
_FLOW_UNITS = {
    "CFM": 1.0,
    "m3/min": 1.0 / CFM_TO_M3_MIN,
}
_PRESSURE_UNITS = {
    "inch-H2O": 1.0,
    "mm-H2O": 1.0 / INCH_TO_MM,
}

_ALIASES = {
    "cfm": "CFM",
    "m3/min": "m3/min",
    "m³/min": "m3/min",
    "cmm": "m3/min",
    "inch-h2o": "inch-H2O",
    "inch-h₂o": "inch-H2O",
    "inh2o": "inch-H2O",
    "in-h2o": "inch-H2O",
    "mm-h2o": "mm-H2O",
    "mm-h₂o": "mm-H2O",
    "mmh2o": "mm-H2O",
}


class UnitConversionError(ValueError):
    """Raised for unknown units or conversions across quantities."""


def normalize_unit(unit: str) -> str:
    """Map a unit spelling (``m³/min``, ``mmH2O``...) to its canonical name."""
    key = unit.strip().lower().replace(" ", "")
    if key not in _ALIASES:
        raise UnitConversionError(f"Unknown unit: {unit!r}")
    return _ALIASES[key]


def conversion_factor(from_unit: str, to_unit: str) -> float:
    """Multiplier converting a value in ``from_unit`` to ``to_unit``.

    Raises
    ------
    UnitConversionError
        If either unit is unknown or the units measure different quantities.
    """
    src = normalize_unit(from_unit)
    dst = normalize_unit(to_unit)
    for table in (_FLOW_UNITS, _PRESSURE_UNITS):
        if src in table and dst in table:
            return table[src] / table[dst]
    raise UnitConversionError(f"Cannot convert {from_unit!r} to {to_unit!r}")


def convert_value(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a single value between units."""
    return value * conversion_factor(from_unit, to_unit)


def convert_points(
    points: Sequence[Point], x_factor: float = 1.0, y_factor: float = 1.0
) -> list[Point]:
    """Scale value-space points per axis."""
    return [Point(p.x * x_factor, p.y * y_factor) for p in points]


def convert_axis(axis: Axis, to_unit: str) -> Axis:
    """Re-express an axis (bounds, grid lines, unit) in another unit.

    The pixel scale is converted too so ``scale`` still maps one pixel to
    one step in the new unit.
    """
    if not axis.unit:
        raise UnitConversionError("Axis has no unit to convert from")
    factor = conversion_factor(axis.unit, to_unit)
    grid = tuple(g * factor for g in axis.grid_lines) if axis.grid_lines is not None else None
    return replace(
        axis,
        min=axis.min * factor,
        max=axis.max * factor,
        scale=axis.scale * factor,
        unit=normalize_unit(to_unit),
        grid_lines=grid,
    )
