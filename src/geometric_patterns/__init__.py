"""Geometric pattern matching and discovery on symbolic music."""

__version__ = "0.1.0"
