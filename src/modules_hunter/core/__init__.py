"""Core scanning, sizing and analysis functionality."""

from __future__ import annotations

from .analyzer import Analyzer
from .cleaner import Cleaner
from .duplicates import DuplicateReport, analyze_duplicates
from .scanner import InstallRootDescriptor, PackageDescriptor, Scanner, ScanOptions
from .size_cache import SizeCache

__all__ = [
    "Analyzer",
    "Cleaner",
    "DuplicateReport",
    "InstallRootDescriptor",
    "PackageDescriptor",
    "Scanner",
    "ScanOptions",
    "SizeCache",
    "analyze_duplicates",
]
