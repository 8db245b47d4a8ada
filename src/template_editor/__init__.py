"""Headless block-based template editor engine."""

__version__ = "0.1.0"
