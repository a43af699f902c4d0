"""Unified diff noise filtering, move detection and row rendering."""

__version__ = "0.1.0"
