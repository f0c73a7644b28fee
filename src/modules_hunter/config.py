"""Configuration management for Modules Hunter CLI."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

# Conditional import for Python 3.10 compatibility
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

from modules_hunter.core.parallel import DEFAULT_WORKERS, ParallelConfig
from modules_hunter.core.scanner import DEFAULT_MAX_DEPTH, ScanOptions, parse_size
from modules_hunter.core.size_cache import DEFAULT_CACHE_TIMEOUT

VALID_SORT_KEYS = ("size", "age", "name", "packages")


@dataclass
class ScanConfig:
    """Traversal settings."""

    max_depth: int = DEFAULT_MAX_DEPTH
    exclude: list[str] = field(default_factory=list)
    include_hidden: bool = False
    parallel: bool = True
    follow_symlinks: bool = False
    workers: int = DEFAULT_WORKERS
    sort: str = "size"

    def to_options(self, show_progress: bool = False) -> ScanOptions:
        return ScanOptions(
            max_depth=self.max_depth,
            exclude_paths=tuple(self.exclude),
            include_hidden=self.include_hidden,
            parallel=self.parallel,
            follow_symlinks=self.follow_symlinks,
            show_progress=show_progress,
        )

    def to_parallel_config(self) -> ParallelConfig:
        return ParallelConfig(enabled=self.parallel, max_workers=self.workers)


@dataclass
class CacheConfig:
    """Size cache settings."""

    timeout: float = DEFAULT_CACHE_TIMEOUT


@dataclass
class AnalyzeConfig:
    """Analysis filters."""

    size_threshold: str = "0B"
    age_threshold: int = 0
    duplicates: bool = True

    @property
    def size_threshold_bytes(self) -> int:
        """Convert size_threshold to bytes."""
        try:
            return parse_size(self.size_threshold)
        except ValueError:
            return 0  # No filter fallback


@dataclass
class CleanConfig:
    """Default behavior of the clean command."""

    dry_run: bool = True
    trash: bool = True
    backup: bool = False
    interactive: bool = True


@dataclass
class Config:
    """Root configuration container."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    analyze: AnalyzeConfig = field(default_factory=AnalyzeConfig)
    clean: CleanConfig = field(default_factory=CleanConfig)

    # Metadata (not from TOML)
    _source: Path | None = field(default=None, repr=False)


def get_xdg_config_home() -> Path:
    """Get XDG config home, respecting environment variable."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def get_config_paths() -> tuple[Path, Path]:
    """
    Get config file paths in priority order.

    Returns:
        (xdg_path, cwd_path) - XDG is base, CWD overrides
    """
    xdg_path = get_xdg_config_home() / "modules-hunter" / "config.toml"
    cwd_path = Path.cwd() / "modules-hunter.toml"
    return xdg_path, cwd_path


def _load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file."""
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, override takes precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _is_non_negative_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


def _validate_config(data: dict[str, Any]) -> list[str]:
    """Validate TOML data and return list of errors."""
    errors: list[str] = []
    scan = data.get("scan", {})
    cache = data.get("cache", {})
    analyze = data.get("analyze", {})

    max_depth = scan.get("max_depth")
    if max_depth is not None and not (_is_non_negative_number(max_depth) and isinstance(max_depth, int)):
        errors.append(f"Invalid scan.max_depth: '{max_depth}' (use a whole number >= 0)")

    exclude = scan.get("exclude")
    if exclude is not None and not (
        isinstance(exclude, list) and all(isinstance(p, str) and p for p in exclude)
    ):
        errors.append("Invalid scan.exclude: expected a list of non-empty glob strings")

    sort = scan.get("sort")
    if sort is not None and sort not in VALID_SORT_KEYS:
        errors.append(f"Invalid scan.sort: '{sort}' (use: {', '.join(VALID_SORT_KEYS)})")

    timeout = cache.get("timeout")
    if timeout is not None and not _is_non_negative_number(timeout):
        errors.append(f"Invalid cache.timeout: '{timeout}' (use seconds >= 0)")

    size_threshold = analyze.get("size_threshold")
    if size_threshold:
        try:
            parse_size(size_threshold)
        except (ValueError, AttributeError):
            errors.append(
                f"Invalid analyze.size_threshold: '{size_threshold}' (use: 1KB, 10MB, 1GB)"
            )

    age = analyze.get("age_threshold")
    if age is not None and not (_is_non_negative_number(age) and isinstance(age, int)):
        errors.append(f"Invalid analyze.age_threshold: '{age}' (use days >= 0)")

    return errors


def _filter_known_keys(data: dict[str, Any], dataclass_type: type) -> dict[str, Any]:
    """Filter dict to only include keys that are valid fields for the dataclass."""
    valid_fields = {f.name for f in fields(dataclass_type)}
    return {k: v for k, v in data.items() if k in valid_fields}


# Mapping of section names to their config classes
SECTION_TYPES = {
    "scan": ScanConfig,
    "cache": CacheConfig,
    "analyze": AnalyzeConfig,
    "clean": CleanConfig,
}


def _dict_to_config(data: dict[str, Any], source: Path | None = None) -> Config:
    """Convert parsed TOML dict to Config dataclass."""
    sections = {
        name: cls(**_filter_known_keys(data.get(name, {}), cls))
        for name, cls in SECTION_TYPES.items()
    }
    return Config(**sections, _source=source)


def load_config() -> Config:
    """
    Load configuration with XDG + CWD override precedence.

    Priority (highest to lowest):
    1. ./modules-hunter.toml (CWD override)
    2. ~/.config/modules-hunter/config.toml (XDG base)
    3. Built-in defaults

    Raises:
        ValueError: If TOML syntax is invalid or values fail validation
    """
    xdg_path, cwd_path = get_config_paths()

    merged_data: dict[str, Any] = {}
    active_source: Path | None = None

    if xdg_path.exists():
        try:
            merged_data = _load_toml(xdg_path)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {xdg_path}: {e}") from e
        active_source = xdg_path

    if cwd_path.exists():
        try:
            cwd_data = _load_toml(cwd_path)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {cwd_path}: {e}") from e
        merged_data = _merge_dicts(merged_data, cwd_data)
        active_source = cwd_path

    if merged_data:
        errors = _validate_config(merged_data)
        if errors:
            raise ValueError(f"Config validation failed ({active_source}): {'; '.join(errors)}")

    return _dict_to_config(merged_data, active_source)


def load_config_from_file(path: Path) -> Config:
    """Load configuration from a specific file."""
    try:
        data = _load_toml(path)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e
    errors = _validate_config(data)
    if errors:
        raise ValueError(f"Config validation failed: {'; '.join(errors)}")
    return _dict_to_config(data, path)


# Default config template for `config init`
DEFAULT_CONFIG_TEMPLATE = """\
# Modules Hunter Configuration

[scan]
max_depth = 10          # How many directory levels below the root to search
exclude = []            # Glob patterns relative to the scan root, e.g. ["archive/**"]
include_hidden = false  # Descend into dot-prefixed directories
parallel = true         # Size install roots concurrently
follow_symlinks = false # Descend into symlinked directories
sort = "size"           # Result order: size, age, name, packages

[cache]
timeout = 60            # Seconds a computed directory size is reused

[analyze]
size_threshold = "0B"   # Only report install roots at least this large: 100MB, 1GB, etc.
age_threshold = 0       # Only report install roots untouched for this many days
duplicates = true       # Look for packages installed in several projects

[clean]
dry_run = true          # Preview changes without deleting
trash = true            # Move to trash instead of permanent delete
backup = false          # Copy each install root to the temp dir before deleting
interactive = true      # Prompt before actions
"""
