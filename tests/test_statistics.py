"""Tests for statistics and cleanup suggestions."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

from modules_hunter.core.scanner import InstallRootDescriptor, PackageDescriptor
from modules_hunter.core.statistics import (
    CLEANUP_SCORE_THRESHOLD,
    MB,
    AnalyzeOptions,
    analyze,
    calculate_statistics,
    cleanup_score,
    find_unused_packages,
    generate_report,
    suggest_cleanup_targets,
)

NOW = datetime(2024, 6, 1, 12, 0, 0)


def make_descriptor(
    project: str,
    size: int = 0,
    age_days: int = 0,
    package_names: tuple[str, ...] = (),
) -> InstallRootDescriptor:
    project_path = Path("/work") / project
    install_root = project_path / "node_modules"
    return InstallRootDescriptor(
        path=install_root,
        size_bytes=size,
        last_modified=NOW - timedelta(days=age_days),
        packages=tuple(
            PackageDescriptor(
                name=name,
                version="1.0.0",
                size_bytes=1,
                dependency_count=0,
                path=install_root / name,
            )
            for name in package_names
        ),
        project_name=project,
        project_path=project_path,
    )


class TestCalculateStatistics:
    """Tests for calculate_statistics."""

    def test_empty(self):
        stats = calculate_statistics([])
        assert stats.total_size == 0
        assert stats.total_install_roots == 0
        assert stats.average_size == 0.0
        assert stats.largest == []

    def test_totals(self):
        stats = calculate_statistics([
            make_descriptor("a", size=100, package_names=("x", "y")),
            make_descriptor("b", size=300, package_names=("z",)),
        ])
        assert stats.total_size == 400
        assert stats.total_packages == 3
        assert stats.total_install_roots == 2
        assert stats.average_size == 200.0
        assert stats.total_size_human == "400.0 B"

    def test_largest_and_oldest(self):
        small_old = make_descriptor("small", size=10, age_days=100)
        big_new = make_descriptor("big", size=1000, age_days=1)
        stats = calculate_statistics([small_old, big_new])
        assert stats.largest == [big_new, small_old]
        assert stats.oldest == [small_old, big_new]


class TestAnalyze:
    """Tests for analyze filters."""

    def test_no_filters(self):
        descriptors = [make_descriptor("a", size=10), make_descriptor("b", size=20)]
        result = analyze(descriptors, now=NOW)
        assert result.results == descriptors
        assert result.duplicates is not None

    def test_size_threshold(self):
        descriptors = [make_descriptor("a", size=10), make_descriptor("b", size=20)]
        result = analyze(descriptors, AnalyzeOptions(size_threshold=15), now=NOW)
        assert [d.project_name for d in result.results] == ["b"]
        assert result.statistics.total_size == 20

    def test_age_threshold(self):
        descriptors = [make_descriptor("fresh", age_days=5), make_descriptor("stale", age_days=60)]
        result = analyze(descriptors, AnalyzeOptions(age_threshold_days=30), now=NOW)
        assert [d.project_name for d in result.results] == ["stale"]

    def test_duplicates_disabled(self):
        result = analyze([], AnalyzeOptions(find_duplicates=False), now=NOW)
        assert result.duplicates is None

    def test_duplicates_found(self):
        descriptors = [
            make_descriptor("a", package_names=("lodash",)),
            make_descriptor("b", package_names=("lodash",)),
        ]
        result = analyze(descriptors, now=NOW)
        assert result.duplicates is not None
        assert result.duplicates.total_duplicates == 1


class TestCleanupScore:
    """Tests for cleanup scoring and suggestions."""

    def test_fresh_small_project_scores_zero(self):
        assert cleanup_score(make_descriptor("app", size=MB, age_days=1), NOW) == 0

    def test_size_points(self):
        assert cleanup_score(make_descriptor("app", size=150 * MB), NOW) == 10
        assert cleanup_score(make_descriptor("app", size=300 * MB), NOW) == 20
        assert cleanup_score(make_descriptor("app", size=600 * MB), NOW) == 30

    def test_age_points(self):
        assert cleanup_score(make_descriptor("app", age_days=20), NOW) == 10
        assert cleanup_score(make_descriptor("app", age_days=45), NOW) == 20
        assert cleanup_score(make_descriptor("app", age_days=120), NOW) == 30
        assert cleanup_score(make_descriptor("app", age_days=200), NOW) == 40

    def test_package_count_points(self):
        many = tuple(f"pkg{i}" for i in range(600))
        assert cleanup_score(make_descriptor("app", package_names=many), NOW) == 10

    def test_disposable_name_points(self):
        assert cleanup_score(make_descriptor("old-prototype"), NOW) == 20
        assert cleanup_score(make_descriptor("Temp-Site"), NOW) == 20

    def test_suggestions_above_threshold_sorted_by_score(self):
        stale = make_descriptor("stale", age_days=200)
        staler_and_big = make_descriptor("huge", size=600 * MB, age_days=200)
        fresh = make_descriptor("fresh", age_days=1)

        targets = suggest_cleanup_targets([stale, fresh, staler_and_big], NOW)
        assert targets == [staler_and_big, stale]
        assert all(cleanup_score(t, NOW) >= CLEANUP_SCORE_THRESHOLD for t in targets)

    def test_no_suggestions(self):
        assert suggest_cleanup_targets([make_descriptor("fresh")], NOW) == []


class TestFindUnusedPackages:
    """Tests for find_unused_packages."""

    def test_recent_install_root_has_none(self):
        descriptor = make_descriptor("app", age_days=10, package_names=("eslint", "react"))
        assert find_unused_packages(descriptor, NOW) == []

    def test_stale_tooling_packages(self):
        descriptor = make_descriptor(
            "app",
            age_days=120,
            package_names=("react", "eslint-plugin-react", "@types/node", "babel-core"),
        )
        assert find_unused_packages(descriptor, NOW) == [
            "eslint-plugin-react",
            "@types/node",
            "babel-core",
        ]


class TestGenerateReport:
    """Tests for the plain-text report."""

    def test_report_sections(self):
        stats = calculate_statistics([
            make_descriptor("a", size=2048, age_days=10),
        ])
        report = generate_report(stats, NOW)

        assert "INSTALL ROOT ANALYSIS REPORT" in report
        assert "Install roots found: 1" in report
        assert "Total size: 2.0 KB" in report
        assert "LARGEST" in report
        assert "10 days old - /work/a" in report

    def test_empty_report(self):
        report = generate_report(calculate_statistics([]), NOW)
        assert "Install roots found: 0" in report
