"""Hierarchical task tracker with overlap-free scheduling and view history."""

__version__ = "0.1.0"
