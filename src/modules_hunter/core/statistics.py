"""Aggregate statistics and cleanup suggestions for scanned install roots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from modules_hunter.core.duplicates import DuplicateReport, analyze_duplicates
from modules_hunter.core.scanner import InstallRootDescriptor, format_size

MB = 1024 * 1024

# Minimum score for an install root to be suggested for cleanup
CLEANUP_SCORE_THRESHOLD = 40

# Name fragments of build and lint tooling, rarely needed once a project goes idle
TOOLING_MARKERS = ("@types/", "eslint", "prettier", "jest", "webpack", "babel")

# Project names hinting at throwaway work
DISPOSABLE_NAME_MARKERS = ("test", "temp", "old", "backup")

UNUSED_AFTER_DAYS = 90


@dataclass(frozen=True)
class AnalyzeOptions:
    """Filters applied before computing statistics."""

    size_threshold: int = 0
    age_threshold_days: int = 0
    find_duplicates: bool = True


@dataclass
class Statistics:
    """Totals across a set of install roots."""

    total_size: int = 0
    total_packages: int = 0
    total_install_roots: int = 0
    average_size: float = 0.0
    largest: list[InstallRootDescriptor] = field(default_factory=list)
    oldest: list[InstallRootDescriptor] = field(default_factory=list)

    @property
    def total_size_human(self) -> str:
        return format_size(self.total_size)

    @property
    def average_size_human(self) -> str:
        return format_size(self.average_size)


@dataclass
class AnalysisResult:
    results: list[InstallRootDescriptor]
    statistics: Statistics
    duplicates: DuplicateReport | None = None


def _days_since(moment: datetime, now: datetime) -> float:
    return (now - moment).total_seconds() / 86400


def analyze(
    descriptors: list[InstallRootDescriptor],
    options: AnalyzeOptions | None = None,
    now: datetime | None = None,
) -> AnalysisResult:
    """
    Filter install roots by size and age, then summarize them.

    Args:
        descriptors: Install roots from a scan
        options: Size/age thresholds and whether to look for duplicates
        now: Reference time for the age filter

    Returns:
        AnalysisResult with the filtered roots, their statistics and,
        when requested, a duplicate report
    """
    options = options or AnalyzeOptions()
    now = now or datetime.now()

    results = list(descriptors)
    if options.size_threshold > 0:
        results = [d for d in results if d.size_bytes >= options.size_threshold]
    if options.age_threshold_days > 0:
        cutoff = now - timedelta(days=options.age_threshold_days)
        results = [d for d in results if d.last_modified < cutoff]

    duplicates = analyze_duplicates(results) if options.find_duplicates else None
    return AnalysisResult(
        results=results,
        statistics=calculate_statistics(results),
        duplicates=duplicates,
    )


def calculate_statistics(descriptors: list[InstallRootDescriptor]) -> Statistics:
    total_size = sum(d.size_bytes for d in descriptors)
    count = len(descriptors)
    return Statistics(
        total_size=total_size,
        total_packages=sum(d.package_count for d in descriptors),
        total_install_roots=count,
        average_size=total_size / count if count else 0.0,
        largest=sorted(descriptors, key=lambda d: d.size_bytes, reverse=True)[:10],
        oldest=sorted(descriptors, key=lambda d: d.last_modified)[:10],
    )


def cleanup_score(descriptor: InstallRootDescriptor, now: datetime | None = None) -> int:
    """
    Score how good a candidate an install root is for deletion.

    Size, staleness, package count and a throwaway-looking project name
    each add points; see CLEANUP_SCORE_THRESHOLD.
    """
    days = _days_since(descriptor.last_modified, now or datetime.now())
    score = 0

    if descriptor.size_bytes > 500 * MB:
        score += 30
    elif descriptor.size_bytes > 200 * MB:
        score += 20
    elif descriptor.size_bytes > 100 * MB:
        score += 10

    if days > 180:
        score += 40
    elif days > 90:
        score += 30
    elif days > 30:
        score += 20
    elif days > 14:
        score += 10

    if descriptor.package_count > 1000:
        score += 20
    elif descriptor.package_count > 500:
        score += 10

    name = descriptor.project_name.lower()
    if any(marker in name for marker in DISPOSABLE_NAME_MARKERS):
        score += 20

    return score


def suggest_cleanup_targets(
    descriptors: list[InstallRootDescriptor],
    now: datetime | None = None,
) -> list[InstallRootDescriptor]:
    """Return install roots scoring at least the threshold, best first."""
    now = now or datetime.now()
    scored = [(cleanup_score(d, now), d) for d in descriptors]
    targets = [(score, d) for score, d in scored if score >= CLEANUP_SCORE_THRESHOLD]
    targets.sort(key=lambda item: item[0], reverse=True)
    return [d for _, d in targets]


def find_unused_packages(
    descriptor: InstallRootDescriptor,
    now: datetime | None = None,
) -> list[str]:
    """Tooling packages in an install root untouched for UNUSED_AFTER_DAYS."""
    if _days_since(descriptor.last_modified, now or datetime.now()) <= UNUSED_AFTER_DAYS:
        return []
    return [
        p.name for p in descriptor.packages
        if any(marker in p.name for marker in TOOLING_MARKERS)
    ]


def generate_report(statistics: Statistics, now: datetime | None = None) -> str:
    """Render statistics as a plain-text report."""
    now = now or datetime.now()
    rule = "=" * 60
    section = "-" * 30

    lines = [
        rule,
        "INSTALL ROOT ANALYSIS REPORT",
        rule,
        "",
        "SUMMARY",
        section,
        f"Install roots found: {statistics.total_install_roots}",
        f"Total size: {statistics.total_size_human}",
        f"Total packages: {statistics.total_packages}",
        f"Average size: {statistics.average_size_human}",
        "",
        "LARGEST",
        section,
    ]
    for d in statistics.largest[:5]:
        lines.append(f"{d.size_human:<10} {d.project_path}")

    lines += ["", "OLDEST", section]
    for d in statistics.oldest[:5]:
        days = int(_days_since(d.last_modified, now))
        lines.append(f"{days} days old - {d.project_path}")

    lines += ["", rule]
    return "\n".join(lines)
