"""Glob patterns used for exclusion filters and filesystem matching."""

from __future__ import annotations

from .matcher import (
    GLOB_METACHARACTERS,
    Glob,
    GlobPattern,
    escape,
    expand,
    glob,
    is_match,
    is_valid_pattern,
    normalize_path,
)

__all__ = [
    "GLOB_METACHARACTERS",
    "Glob",
    "GlobPattern",
    "glob",
    "escape",
    "expand",
    "is_match",
    "is_valid_pattern",
    "normalize_path",
]
