"""Directory scanner for locating install roots and their packages."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from modules_hunter.core.parallel import ParallelConfig, parallel_map
from modules_hunter.core.size_cache import SizeCache
from modules_hunter.patterns import glob

logger = logging.getLogger(__name__)

# Conventional directory holding a project's installed packages
INSTALL_ROOT_NAME = "node_modules"

# Per-package metadata file
MANIFEST_NAME = "package.json"

# Scoped packages live one level deeper, under a directory with this prefix
SCOPE_PREFIX = "@"

UNKNOWN_VERSION = "unknown"

DEFAULT_MAX_DEPTH = 10


@dataclass(frozen=True)
class ScanOptions:
    """Options controlling a single scan."""

    max_depth: int = DEFAULT_MAX_DEPTH
    exclude_paths: tuple[str, ...] = ()
    include_hidden: bool = False
    parallel: bool = True
    follow_symlinks: bool = False
    show_progress: bool = False

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth cannot be negative: {self.max_depth}")
        # Accept any iterable of patterns but store an immutable tuple
        object.__setattr__(self, "exclude_paths", tuple(self.exclude_paths))


@dataclass(frozen=True)
class PackageDescriptor:
    """A package installed inside an install root."""

    name: str
    version: str
    size_bytes: int
    dependency_count: int
    path: Path

    @property
    def size_human(self) -> str:
        return format_size(self.size_bytes)


@dataclass(frozen=True)
class InstallRootDescriptor:
    """A located install root and the project that owns it."""

    path: Path
    size_bytes: int
    last_modified: datetime
    packages: tuple[PackageDescriptor, ...]
    project_name: str
    project_path: Path

    @property
    def size_human(self) -> str:
        """Return human-readable size."""
        return format_size(self.size_bytes)

    @property
    def package_count(self) -> int:
        return len(self.packages)


@dataclass
class ScanResult:
    """Results from a directory scan."""

    root_path: Path
    descriptors: list[InstallRootDescriptor] = field(default_factory=list)
    scan_errors: list[str] = field(default_factory=list)

    @property
    def total_size(self) -> int:
        return sum(d.size_bytes for d in self.descriptors)

    @property
    def total_size_human(self) -> str:
        """Return human-readable total size."""
        return format_size(self.total_size)

    @property
    def total_packages(self) -> int:
        return sum(d.package_count for d in self.descriptors)


def format_size(size_bytes: int | float) -> str:
    """Convert bytes to human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def parse_size(size_str: str) -> int:
    """
    Parse human-readable size string to bytes.

    Args:
        size_str: Size string like "1KB", "10MB", "1.5GB"

    Returns:
        Size in bytes

    Raises:
        ValueError: If the size string is invalid
    """
    size_str = size_str.strip().upper()

    # Check longer units first to avoid "KB" matching "B"
    units = [
        ("TB", 1024 * 1024 * 1024 * 1024),
        ("GB", 1024 * 1024 * 1024),
        ("MB", 1024 * 1024),
        ("KB", 1024),
        ("B", 1),
    ]

    for unit, multiplier in units:
        if size_str.endswith(unit):
            try:
                value = float(size_str[: -len(unit)])
            except ValueError:
                raise ValueError(f"Invalid size value: {size_str}") from None
            if value < 0:
                raise ValueError(f"Size cannot be negative: {size_str}")
            return int(value * multiplier)

    try:
        value = float(size_str)
    except ValueError:
        raise ValueError(f"Invalid size string: {size_str}") from None
    if value < 0:
        raise ValueError(f"Size cannot be negative: {size_str}")
    return int(value)


def read_manifest(path: Path) -> dict[str, Any] | None:
    """Load a JSON manifest, returning None if it is missing or malformed."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug("Cannot read manifest %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def _count_entries(value: object) -> int:
    return len(value) if isinstance(value, dict) else 0


def is_hidden(relative_path: str) -> bool:
    """Return True if any segment of a ``/``-separated path is dot-prefixed."""
    return any(part.startswith(".") and part not in (".", "..") for part in relative_path.split("/"))


class Scanner:
    """Scans directory trees for install roots."""

    def __init__(
        self,
        console: Console | None = None,
        size_cache: SizeCache | None = None,
        parallel_config: ParallelConfig | None = None,
        marker: str = INSTALL_ROOT_NAME,
        manifest: str = MANIFEST_NAME,
    ):
        self.console = console or Console()
        self.parallel_config = parallel_config or ParallelConfig()
        self.size_cache = size_cache or SizeCache(parallel_config=self.parallel_config)
        self.marker = marker
        self.manifest = manifest

    def scan(self, root: str | Path, options: ScanOptions | None = None) -> list[InstallRootDescriptor]:
        """
        Locate every install root under ``root`` and describe it.

        A root that does not exist yields an empty list.
        """
        return self.scan_report(root, options).descriptors

    def scan_report(self, root: str | Path, options: ScanOptions | None = None) -> ScanResult:
        """
        Scan a directory tree and keep the errors met along the way.

        Args:
            root: Directory to scan
            options: Scan options, defaults when omitted

        Returns:
            ScanResult with descriptors in discovery order when sequential,
            completion order when parallel
        """
        options = options or ScanOptions()
        root_path = Path(root).absolute()
        result = ScanResult(root_path=root_path)

        if not root_path.is_dir():
            logger.debug("Scan root %s is not a directory", root_path)
            return result

        # Phase 1: locate install roots without sizing them
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            disable=not options.show_progress,
        ) as progress:
            task = progress.add_task(f"Scanning for {self.marker}...", total=None)
            install_roots = self._collect_install_roots(
                root_path,
                options,
                result.scan_errors,
                lambda name: progress.update(task, description=f"Scanning: {name[:40]}"),
            )

        if not install_roots:
            return result

        # Phase 2: size and describe each install root
        config = ParallelConfig(
            enabled=options.parallel,
            max_workers=self.parallel_config.max_workers,
        )
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            disable=not options.show_progress,
        ) as progress:
            task = progress.add_task("Calculating sizes...", total=len(install_roots))

            for path, descriptor, error in parallel_map(self.describe, install_roots, config):
                progress.update(task, description=f"Sizing: {path.parent.name[:40]}")
                if error is not None:
                    logger.warning("Failed to describe %s: %s", path, error)
                    result.scan_errors.append(f"{path}: {error}")
                elif descriptor is not None:
                    result.descriptors.append(descriptor)
                progress.advance(task)

        return result

    def _collect_install_roots(
        self,
        root: Path,
        options: ScanOptions,
        scan_errors: list[str],
        on_visit: Callable[[str], None],
    ) -> list[Path]:
        """Walk ``root`` depth-first and return install roots in discovery order."""
        found: list[Path] = []
        seen_roots: set[str] = set()
        visited: set[str] = set()

        def walk(path: Path, depth: int) -> None:
            if depth > options.max_depth:
                return

            key = os.path.realpath(path)
            if key in visited:
                return
            visited.add(key)

            try:
                with os.scandir(path) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
                scan_errors.append(f"{path}: {e}")
                return

            for entry in entries:
                try:
                    if not entry.is_dir(follow_symlinks=options.follow_symlinks):
                        continue
                except OSError:
                    continue

                entry_path = Path(entry.path)
                relative = entry_path.relative_to(root).as_posix()
                if self._is_filtered(relative, options):
                    continue

                on_visit(entry.name)

                if entry.name == self.marker:
                    # Install roots are reported, never searched for nested ones
                    real = os.path.realpath(entry_path)
                    if real not in seen_roots:
                        seen_roots.add(real)
                        found.append(entry_path)
                    continue

                if depth + 1 <= options.max_depth:
                    walk(entry_path, depth + 1)

        walk(root, 0)
        return found

    @staticmethod
    def _is_filtered(relative: str, options: ScanOptions) -> bool:
        """Apply the hidden-segment check, then the exclusion globs."""
        if not options.include_hidden and is_hidden(relative):
            return True
        return any(glob.is_match(relative, pattern, is_dir=True) for pattern in options.exclude_paths)

    def describe(self, path: Path) -> InstallRootDescriptor:
        """
        Build the descriptor for one install root.

        Raises:
            OSError: If the install root itself cannot be stat'ed
        """
        st = path.stat()
        size = self.size_cache.get_size(path)
        packages = self._collect_packages(path)
        project_path = path.parent

        return InstallRootDescriptor(
            path=path,
            size_bytes=size,
            last_modified=datetime.fromtimestamp(st.st_mtime),
            packages=tuple(packages),
            project_name=self._project_name(project_path),
            project_path=project_path,
        )

    def _collect_packages(self, install_root: Path) -> list[PackageDescriptor]:
        packages: list[PackageDescriptor] = []

        for entry in self._list_directories(install_root):
            if entry.name.startswith("."):
                continue

            if entry.name.startswith(SCOPE_PREFIX):
                for scoped in self._list_directories(Path(entry.path)):
                    package = self._describe_package(
                        Path(scoped.path), f"{entry.name}/{scoped.name}"
                    )
                    if package:
                        packages.append(package)
            else:
                package = self._describe_package(Path(entry.path), entry.name)
                if package:
                    packages.append(package)

        return packages

    @staticmethod
    def _list_directories(path: Path) -> list[os.DirEntry[str]]:
        """Return real (non-symlink) subdirectories sorted by name."""
        entries: list[os.DirEntry[str]] = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            entries.append(entry)
                    except OSError:
                        continue
        except OSError as e:
            logger.debug("Cannot list %s: %s", path, e)
            return []
        return sorted(entries, key=lambda e: e.name)

    def _describe_package(self, path: Path, name: str) -> PackageDescriptor | None:
        """Describe a package; packages without a readable manifest are skipped."""
        manifest = read_manifest(path / self.manifest)
        if manifest is None:
            return None

        version = manifest.get("version")
        return PackageDescriptor(
            name=name,
            version=version if isinstance(version, str) and version else UNKNOWN_VERSION,
            size_bytes=self.size_cache.get_size(path),
            dependency_count=(
                _count_entries(manifest.get("dependencies"))
                + _count_entries(manifest.get("devDependencies"))
            ),
            path=path,
        )

    def _project_name(self, project_path: Path) -> str:
        """Name from the project manifest, falling back to the directory name."""
        manifest = read_manifest(project_path / self.manifest)
        if manifest is not None:
            name = manifest.get("name")
            if isinstance(name, str) and name:
                return name
        return project_path.name

    def find_all_projects(self, root: str | Path, max_depth: int = 5) -> list[Path]:
        """
        Find every directory under ``root`` holding a manifest file.

        Install roots and dot-prefixed directories are neither reported
        nor descended into.
        """
        root_path = Path(root).absolute()
        projects: list[Path] = []
        visited: set[str] = set()

        def walk(path: Path, depth: int) -> None:
            if depth > max_depth:
                return

            key = os.path.realpath(path)
            if key in visited:
                return
            visited.add(key)

            if (path / self.manifest).is_file():
                projects.append(path)

            for entry in self._list_directories(path):
                if entry.name == self.marker or entry.name.startswith("."):
                    continue
                walk(Path(entry.path), depth + 1)

        if root_path.is_dir():
            walk(root_path, 0)
        return projects
