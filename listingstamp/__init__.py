"""Listing graphic compositing engine."""

__version__ = "0.3.0"
