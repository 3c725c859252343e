# src/tasklog/__init__.py

"""Minimal global markdown task log."""

__version__ = "0.1.0"
