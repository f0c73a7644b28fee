"""Modules Hunter - find, measure and deduplicate node_modules directories."""

__version__ = "0.1.0"
