"""Export package for curve-digitizer.

This package contains serializers that turn validated chart data into
tabular output.
"""

__all__ = [
    "table_export",
]
