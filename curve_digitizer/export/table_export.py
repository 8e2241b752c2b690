"""Row-oriented table export for digitized chart data.

Every export path validates first; invalid data never reaches a file.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import List

from ..config import DEFAULT_CHART
from ..extraction.units import conversion_factor
from ..models.data_types import ChartData
from ..models.validation import ensure_exportable


logger = logging.getLogger(__name__)

Row = List[str]


class TableExporter:
    """Serialize :class:`ChartData` into rows, CSV files or previews."""

    LINE_TERMINATOR = "\n"

    def __init__(self, decimals: int = DEFAULT_CHART.EXPORT_DECIMALS) -> None:
        self.decimals = decimals

    def _fmt(self, value: float, decimals: int | None = None) -> str:
        return f"{value:.{self.decimals if decimals is None else decimals}f}"

    def header_rows(self, data: ChartData) -> list[Row]:
        """Axis label/unit rows followed by a blank row and the column header."""
        return [
            ["X axis", data.x_axis.label, data.x_axis.unit],
            ["Y axis", data.y_axis.label, data.y_axis.unit],
            [],
            ["X", "Y"],
        ]

    def to_rows(self, data: ChartData) -> list[Row]:
        """Header rows plus one ``(x, y)`` row per point, rounded to ``decimals``."""
        ensure_exportable(data)
        rows = self.header_rows(data)
        rows.extend([self._fmt(p.x), self._fmt(p.y)] for p in data.points)
        return rows

    def to_converted_rows(self, data: ChartData) -> list[Row]:
        """Four-column airflow/pressure table: CFM, m3/min, inch-H2O, mm-H2O.

        The chart's axes must carry an airflow unit (x) and a pressure unit (y).
        """
        ensure_exportable(data)
        to_cfm = conversion_factor(data.x_axis.unit, "CFM")
        to_inch = conversion_factor(data.y_axis.unit, "inch-H2O")
        cfm_to_m3 = conversion_factor("CFM", "m3/min")
        inch_to_mm = conversion_factor("inch-H2O", "mm-H2O")

        rows: list[Row] = [["CFM", "m3/min", "inch-H2O", "mm-H2O"]]
        for p in data.points:
            cfm = p.x * to_cfm
            inch = p.y * to_inch
            rows.append([
                self._fmt(cfm),
                self._fmt(cfm * cfm_to_m3, DEFAULT_CHART.CONVERTED_FLOW_DECIMALS),
                self._fmt(inch),
                self._fmt(inch * inch_to_mm),
            ])
        return rows

    def preview(self, data: ChartData, limit: int = DEFAULT_CHART.PREVIEW_ROWS) -> list[Row]:
        """Column header plus the first ``limit`` data rows."""
        ensure_exportable(data)
        rows: list[Row] = [["X", "Y"]]
        rows.extend([self._fmt(p.x), self._fmt(p.y)] for p in data.points[:limit])
        return rows

    def to_csv_string(self, data: ChartData, delimiter: str = ",", converted: bool = False) -> str:
        """Render the table as CSV text."""
        rows = self.to_converted_rows(data) if converted else self.to_rows(data)
        buf = io.StringIO()
        w = csv.writer(buf, delimiter=delimiter, lineterminator=self.LINE_TERMINATOR)
        w.writerows(rows)
        return buf.getvalue()

    def write_csv(
        self, path: str | Path, data: ChartData, delimiter: str = ",", converted: bool = False
    ) -> Path:
        """Write the table to ``path`` as UTF-8 CSV."""
        rows = self.to_converted_rows(data) if converted else self.to_rows(data)
        path = Path(path)
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f, delimiter=delimiter, lineterminator=self.LINE_TERMINATOR)
            w.writerows(rows)
        logger.info(f"Wrote {len(data.points)} data rows to {path}")
        return path
