"""Configuration module for Curve Digitizer."""

from .chart_defaults import ChartDefaults, DEFAULT_CHART

__all__ = ["ChartDefaults", "DEFAULT_CHART"]
