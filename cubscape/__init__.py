"""Raycasting engine that explores maps described in .cub scene files."""

__version__ = "0.1.0"
__all__ = ["__version__"]