"""Fluent builder generation for data classes."""

__version__ = "0.1.0"
