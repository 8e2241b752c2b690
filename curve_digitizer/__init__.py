"""Curve Digitizer - calibrated data extraction from XY chart images."""

__version__ = "0.1.0"
