"""Detection of packages installed in more than one project."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from modules_hunter.core.scanner import InstallRootDescriptor, format_size


@dataclass
class _Observations:
    versions: list[str] = field(default_factory=list)
    locations: list[Path] = field(default_factory=list)
    sizes: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class DuplicatePackage:
    """One package name found in several projects."""

    name: str
    versions: tuple[str, ...]
    locations: tuple[Path, ...]
    total_size: int
    potential_savings: float

    @property
    def copies(self) -> int:
        return len(self.locations)

    @property
    def average_size(self) -> float:
        return self.total_size / self.copies if self.copies else 0.0

    @property
    def total_size_human(self) -> str:
        return format_size(self.total_size)

    @property
    def savings_human(self) -> str:
        return format_size(self.potential_savings)


@dataclass(frozen=True)
class DuplicateReport:
    """Duplicate packages across a set of install roots."""

    total_duplicates: int = 0
    potential_savings: float = 0.0
    packages: tuple[DuplicatePackage, ...] = ()

    @property
    def savings_human(self) -> str:
        """Return human-readable potential savings."""
        return format_size(self.potential_savings)


def analyze_duplicates(descriptors: Iterable[InstallRootDescriptor]) -> DuplicateReport:
    """
    Group packages by name and report those owned by more than one project.

    Savings per package are estimated as ``total - total / copies``: the
    space freed by keeping one average-sized copy. This approximation
    understates the recoverable space when copies differ a lot in size
    and is kept as-is on purpose; it is not "keep smallest" nor
    "total minus largest".

    Args:
        descriptors: Install roots from a scan

    Returns:
        DuplicateReport with packages sorted by potential savings, largest first
    """
    observed: dict[str, _Observations] = {}

    for descriptor in descriptors:
        for package in descriptor.packages:
            entry = observed.setdefault(package.name, _Observations())
            if package.version not in entry.versions:
                entry.versions.append(package.version)
            entry.locations.append(descriptor.project_path)
            entry.sizes.append(package.size_bytes)

    duplicates: list[DuplicatePackage] = []
    for name, entry in observed.items():
        if len(set(entry.locations)) < 2:
            continue

        total_size = sum(entry.sizes)
        potential_savings = total_size - total_size / len(entry.sizes)
        duplicates.append(
            DuplicatePackage(
                name=name,
                versions=tuple(entry.versions),
                locations=tuple(entry.locations),
                total_size=total_size,
                potential_savings=potential_savings,
            )
        )

    # Stable sort: ties keep first-seen order
    duplicates.sort(key=lambda d: d.potential_savings, reverse=True)

    return DuplicateReport(
        total_duplicates=len(duplicates),
        potential_savings=sum(d.potential_savings for d in duplicates),
        packages=tuple(duplicates),
    )
