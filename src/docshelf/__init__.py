"""Docshelf - markdown documentation server with navigation, rendering and search."""

__version__ = "0.1.0"
