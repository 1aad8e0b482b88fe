"""Command-line client for Minut Point sensors."""

__version__ = "0.1.0"
