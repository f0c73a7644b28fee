"""Analyzer for displaying scan results."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from modules_hunter.core.duplicates import DuplicateReport
from modules_hunter.core.scanner import InstallRootDescriptor, ScanResult, format_size
from modules_hunter.core.statistics import Statistics

TOP_N = 20


def format_age(moment: datetime, now: Optional[datetime] = None) -> str:
    """Describe how long ago ``moment`` was in coarse units."""
    days = int(((now or datetime.now()) - moment).total_seconds() // 86400)
    if days <= 0:
        return "Today"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        return f"{days // 7} weeks"
    if days < 365:
        return f"{days // 30} months"
    return f"{days // 365} years"


class Analyzer:
    """Analyzes and displays scan results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_results(self, result: ScanResult, show_all: bool = False) -> None:
        """Display install roots in a formatted table."""
        descriptors = result.descriptors
        if not descriptors:
            self.console.print("[yellow]No install roots found.[/yellow]")
            return

        summary = Panel(
            f"[bold]Total Size:[/bold] {result.total_size_human}\n"
            f"[bold]Install Roots:[/bold] {len(descriptors)}\n"
            f"[bold]Packages:[/bold] {result.total_packages}",
            title="Scan Summary",
            border_style="blue",
        )
        self.console.print(summary)
        self.console.print()

        self.console.print(self._descriptor_table(descriptors if show_all else descriptors[:TOP_N]))

        if not show_all and len(descriptors) > TOP_N:
            self.console.print(
                f"\n[dim]Showing top {TOP_N} of {len(descriptors)} install roots. "
                f"Use --all to see everything.[/dim]"
            )

        if result.scan_errors:
            self.console.print(
                f"\n[yellow]Skipped {len(result.scan_errors)} directories due to errors.[/yellow]"
            )

    def _descriptor_table(self, descriptors: list[InstallRootDescriptor], title: str = "Install Roots") -> Table:
        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", width=4)
        table.add_column("Project", style="green", overflow="ellipsis", max_width=25)
        table.add_column("Size", justify="right", style="cyan", width=10)
        table.add_column("Packages", justify="right", style="yellow", width=8)
        table.add_column("Age", justify="right", width=10)
        table.add_column("Path", style="white", overflow="ellipsis")

        for i, d in enumerate(descriptors, 1):
            table.add_row(
                str(i),
                d.project_name,
                d.size_human,
                str(d.package_count),
                format_age(d.last_modified),
                str(d.project_path),
            )
        return table

    def display_statistics(self, statistics: Statistics) -> None:
        """Display aggregate statistics."""
        self.console.print(
            Panel(
                f"[bold]Install Roots:[/bold] {statistics.total_install_roots}\n"
                f"[bold]Total Size:[/bold] {statistics.total_size_human}\n"
                f"[bold]Total Packages:[/bold] {statistics.total_packages}\n"
                f"[bold]Average Size:[/bold] {statistics.average_size_human}",
                title="Statistics",
                border_style="blue",
            )
        )
        if statistics.oldest:
            self.console.print(self._descriptor_table(statistics.oldest[:5], title="Oldest"))

    def display_duplicates(self, report: DuplicateReport, show_all: bool = False) -> None:
        """Display packages installed in more than one project."""
        if not report.packages:
            self.console.print("[green]No duplicate packages found![/green]")
            return

        self.console.print(
            Panel(
                f"[bold]Duplicate Packages:[/bold] {report.total_duplicates}\n"
                f"[bold]Potential Savings:[/bold] {report.savings_human}",
                title="Duplicate Summary",
                border_style="blue",
            )
        )

        table = Table(title="Duplicate Packages", show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", width=4)
        table.add_column("Package", style="green")
        table.add_column("Copies", justify="center", style="yellow", width=8)
        table.add_column("Versions", style="white")
        table.add_column("Total", justify="right", style="cyan", width=10)
        table.add_column("Savings", justify="right", style="red", width=10)

        packages = report.packages if show_all else report.packages[:TOP_N]
        for i, package in enumerate(packages, 1):
            table.add_row(
                str(i),
                package.name,
                str(package.copies),
                ", ".join(package.versions),
                package.total_size_human,
                package.savings_human,
            )

        self.console.print(table)

        if not show_all and len(report.packages) > TOP_N:
            self.console.print(
                f"\n[dim]Showing top {TOP_N} of {len(report.packages)} packages. "
                f"Use --all to see everything.[/dim]"
            )

    def display_deletion_preview(self, targets: list[InstallRootDescriptor]) -> None:
        """Display what will be deleted."""
        total_size = sum(t.size_bytes for t in targets)

        self.console.print("\n[bold]The following will be deleted:[/bold]\n")

        table = Table(show_header=True, header_style="bold red")
        table.add_column("Size", justify="right", style="cyan", width=10)
        table.add_column("Project", style="yellow")
        table.add_column("Path", style="white")

        for target in targets:
            table.add_row(target.size_human, target.project_name, str(target.path))

        self.console.print(table)
        self.console.print(f"\n[bold]Total to be freed:[/bold] [cyan]{format_size(total_size)}[/cyan]")
