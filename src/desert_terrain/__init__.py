"""Procedural desert terrain with height, collision and placement queries."""

__version__ = "0.1.0"
