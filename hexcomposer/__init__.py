"""Compose hex-grid world regions from relative feature definitions."""

__version__ = "0.1.0"
