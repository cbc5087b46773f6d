"""Reactive filter/edit engine and browser for small tabular datasets."""

__version__ = "0.1.0"
