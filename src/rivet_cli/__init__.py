"""Rivet CLI - a local task store with filters and dependency links."""

__version__ = "0.1.0"
