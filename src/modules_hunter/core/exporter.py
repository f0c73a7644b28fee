"""Export scan and duplicate results to JSON and CSV formats."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from modules_hunter.core.duplicates import DuplicatePackage, DuplicateReport
from modules_hunter.core.scanner import InstallRootDescriptor, PackageDescriptor, ScanResult

ExportFormat = Literal["json", "csv"]


def package_to_dict(package: PackageDescriptor) -> dict[str, Any]:
    return {
        "name": package.name,
        "version": package.version,
        "size_bytes": package.size_bytes,
        "dependencies": package.dependency_count,
        "path": str(package.path),
    }


def descriptor_to_dict(descriptor: InstallRootDescriptor, *, packages: bool = True) -> dict[str, Any]:
    """Convert an InstallRootDescriptor to a serializable dict."""
    data: dict[str, Any] = {
        "path": str(descriptor.path),
        "size_bytes": descriptor.size_bytes,
        "size_human": descriptor.size_human,
        "package_count": descriptor.package_count,
        "last_modified": descriptor.last_modified.isoformat(),
        "project_name": descriptor.project_name,
        "project_path": str(descriptor.project_path),
    }
    if packages:
        data["packages"] = [package_to_dict(p) for p in descriptor.packages]
    return data


def _duplicate_to_dict(package: DuplicatePackage) -> dict[str, Any]:
    return {
        "name": package.name,
        "versions": list(package.versions),
        "locations": [str(p) for p in package.locations],
        "total_size_bytes": package.total_size,
        "potential_savings_bytes": package.potential_savings,
    }


def duplicate_report_to_dict(report: DuplicateReport) -> dict[str, Any]:
    """Convert DuplicateReport to serializable dict."""
    return {
        "type": "duplicates",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "total_duplicates": report.total_duplicates,
        "potential_savings_bytes": report.potential_savings,
        "potential_savings_human": report.savings_human,
        "packages": [_duplicate_to_dict(p) for p in report.packages],
    }


def scan_result_to_dict(result: ScanResult) -> dict[str, Any]:
    """Convert ScanResult to serializable dict."""
    return {
        "type": "scan",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "root_path": str(result.root_path),
        "total_size_bytes": result.total_size,
        "total_size_human": result.total_size_human,
        "install_root_count": len(result.descriptors),
        "install_roots": [descriptor_to_dict(d) for d in result.descriptors],
        "scan_errors": result.scan_errors,
    }


def result_to_dict(result: ScanResult | DuplicateReport) -> dict[str, Any]:
    """Convert any result type to a serializable dict."""
    if isinstance(result, DuplicateReport):
        return duplicate_report_to_dict(result)
    return scan_result_to_dict(result)


def export_json(
    result: ScanResult | DuplicateReport,
    output_path: Path,
    *,
    indent: int = 2,
) -> None:
    """
    Export results to JSON file.

    Args:
        result: Scan result or duplicate report to export
        output_path: Path to write JSON file
        indent: JSON indentation level (default: 2)
    """
    data = result_to_dict(result)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)


def _export_scan_csv(result: ScanResult, output_path: Path) -> None:
    """Export install roots to CSV (one row per install root)."""
    fieldnames = [
        "path",
        "size_bytes",
        "size_human",
        "package_count",
        "last_modified",
        "project_name",
        "project_path",
    ]

    with open(output_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for descriptor in result.descriptors:
            writer.writerow(descriptor_to_dict(descriptor, packages=False))


def _export_duplicates_csv(report: DuplicateReport, output_path: Path) -> None:
    """Export duplicate packages to CSV (one row per location)."""
    fieldnames = [
        "name",
        "versions",
        "total_size_bytes",
        "potential_savings_bytes",
        "location",
    ]

    with open(output_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for package in report.packages:
            for location in package.locations:
                writer.writerow({
                    "name": package.name,
                    "versions": ";".join(package.versions),
                    "total_size_bytes": package.total_size,
                    "potential_savings_bytes": package.potential_savings,
                    "location": str(location),
                })


def export_csv(result: ScanResult | DuplicateReport, output_path: Path) -> None:
    """Export results to CSV file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(result, DuplicateReport):
        _export_duplicates_csv(result, output_path)
    else:
        _export_scan_csv(result, output_path)


def export_result(
    result: ScanResult | DuplicateReport,
    output_path: Path,
    format: ExportFormat = "json",
) -> None:
    """
    Export results to file in specified format.

    Raises:
        ValueError: If format is not supported
    """
    if format == "json":
        export_json(result, output_path)
    elif format == "csv":
        export_csv(result, output_path)
    else:
        raise ValueError(f"Unsupported export format: {format}")
