"""Modules Hunter CLI - Main entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from modules_hunter import __version__
from modules_hunter.config import (
    DEFAULT_CONFIG_TEMPLATE,
    VALID_SORT_KEYS,
    Config,
    get_config_paths,
    load_config,
    load_config_from_file,
)
from modules_hunter.core.analyzer import Analyzer
from modules_hunter.core.cleaner import Cleaner
from modules_hunter.core.exporter import (
    descriptor_to_dict,
    duplicate_report_to_dict,
    export_result,
)
from modules_hunter.core.scanner import (
    InstallRootDescriptor,
    Scanner,
    ScanOptions,
    ScanResult,
    parse_size,
)
from modules_hunter.core.size_cache import SizeCache
from modules_hunter.core.statistics import (
    AnalyzeOptions,
    analyze as run_analysis,
    generate_report,
    suggest_cleanup_targets,
)
from modules_hunter.ui.console import configure_logging, create_console, print_banner
from modules_hunter.ui.prompts import confirm_deletion, select_targets

app = typer.Typer(
    name="modules-hunter",
    help="Find, measure and deduplicate node_modules directories.",
    no_args_is_help=True,
)
console = create_console()


class State:
    """Global state container for CLI."""

    def __init__(self) -> None:
        self.config: Config = Config()  # Default until loaded


state = State()


def _parse_size_option(value: str, name: str) -> int:
    """Parse a size option to bytes, exit with error on invalid input."""
    try:
        return parse_size(value)
    except ValueError as e:
        console.print(f"[red]Invalid {name}: {e}[/red]")
        raise typer.Exit(1) from e


def _build_options(
    depth: Optional[int],
    hidden: Optional[bool],
    exclude: Optional[list[str]],
    parallel: Optional[bool],
    follow_symlinks: Optional[bool],
    show_progress: bool,
) -> ScanOptions:
    """Merge command-line overrides onto the configured scan settings."""
    scan_config = state.config.scan
    return ScanOptions(
        max_depth=scan_config.max_depth if depth is None else depth,
        exclude_paths=tuple(scan_config.exclude) + tuple(exclude or ()),
        include_hidden=scan_config.include_hidden if hidden is None else hidden,
        parallel=scan_config.parallel if parallel is None else parallel,
        follow_symlinks=scan_config.follow_symlinks if follow_symlinks is None else follow_symlinks,
        show_progress=show_progress,
    )


def _make_scanner() -> Scanner:
    parallel_config = state.config.scan.to_parallel_config()
    size_cache = SizeCache(timeout=state.config.cache.timeout, parallel_config=parallel_config)
    return Scanner(console=console, size_cache=size_cache, parallel_config=parallel_config)


def _sort_descriptors(descriptors: list[InstallRootDescriptor], key: str) -> list[InstallRootDescriptor]:
    if key not in VALID_SORT_KEYS:
        console.print(f"[red]Invalid sort key: {key}[/red]")
        console.print(f"[dim]Valid options: {', '.join(VALID_SORT_KEYS)}[/dim]")
        raise typer.Exit(1)
    if key == "age":
        return sorted(descriptors, key=lambda d: d.last_modified)
    if key == "name":
        return sorted(descriptors, key=lambda d: d.project_name.lower())
    if key == "packages":
        return sorted(descriptors, key=lambda d: d.package_count, reverse=True)
    return sorted(descriptors, key=lambda d: d.size_bytes, reverse=True)


def _print_dry_run_notice() -> None:
    """Print dry run mode notice and instructions."""
    console.print("\n[yellow]Dry run mode - nothing was deleted.[/yellow]")
    console.print("[dim]Use --execute to actually delete install roots.[/dim]")


# Shared CLI options
PATH_ARGUMENT = typer.Argument(
    Path("."),
    help="Directory to search",
    exists=True,
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
)
DEPTH_OPTION = typer.Option(None, "--depth", "-d", min=0, help="Maximum directory depth to search")
HIDDEN_OPTION = typer.Option(None, "--hidden/--no-hidden", help="Include dot-prefixed directories")
EXCLUDE_OPTION = typer.Option(
    None,
    "--exclude",
    "-e",
    help="Glob pattern (relative to the search root) to skip; repeatable",
)
PARALLEL_OPTION = typer.Option(
    None,
    "--parallel/--sequential",
    help="Size install roots concurrently",
)
FOLLOW_OPTION = typer.Option(
    None,
    "--follow-symlinks/--no-follow-symlinks",
    help="Descend into symlinked directories",
)
JSON_OPTION = typer.Option(False, "--json", "-j", help="Print results as JSON")
EXPORT_OPTION = typer.Option(
    None,
    "--export",
    "-o",
    help="Write results to a .json or .csv file",
)


def _export(result: ScanResult, output: Path) -> None:
    fmt = "csv" if output.suffix.lower() == ".csv" else "json"
    export_result(result, output, format=fmt)
    console.print(f"[green]Exported {len(result.descriptors)} install roots to {output}[/green]")


@app.command()
def scan(
    path: Path = PATH_ARGUMENT,
    depth: Optional[int] = DEPTH_OPTION,
    hidden: Optional[bool] = HIDDEN_OPTION,
    exclude: Optional[list[str]] = EXCLUDE_OPTION,
    parallel: Optional[bool] = PARALLEL_OPTION,
    follow_symlinks: Optional[bool] = FOLLOW_OPTION,
    sort: Optional[str] = typer.Option(
        None,
        "--sort",
        "-s",
        help="Sort by: size, age, name, packages",
    ),
    show_all: bool = typer.Option(False, "--all", "-a", help="Show all install roots"),
    as_json: bool = JSON_OPTION,
    output: Optional[Path] = EXPORT_OPTION,
) -> None:
    """Scan a directory tree for node_modules directories."""
    options = _build_options(depth, hidden, exclude, parallel, follow_symlinks, not as_json)
    if not as_json:
        print_banner(console)
        console.print(f"[cyan]Scanning for node_modules in: {path}[/cyan]\n")

    result = _make_scanner().scan_report(path, options)
    result.descriptors = _sort_descriptors(result.descriptors, sort or state.config.scan.sort)

    if as_json:
        console.print_json(json.dumps([descriptor_to_dict(d) for d in result.descriptors]))
    else:
        Analyzer(console=console).display_results(result, show_all=show_all)
        if result.total_size > 1024 ** 3:
            console.print(
                "\n[yellow]Consider running 'modules-hunter clean' to free up disk space.[/yellow]"
            )

    if output:
        _export(result, output)


@app.command()
def analyze(
    path: Path = PATH_ARGUMENT,
    depth: Optional[int] = DEPTH_OPTION,
    hidden: Optional[bool] = HIDDEN_OPTION,
    exclude: Optional[list[str]] = EXCLUDE_OPTION,
    size_threshold: Optional[str] = typer.Option(
        None,
        "--size-threshold",
        help="Only include install roots at least this large (e.g., 100MB)",
    ),
    age_threshold: Optional[int] = typer.Option(
        None,
        "--age-threshold",
        min=0,
        help="Only include install roots untouched for this many days",
    ),
    duplicates: Optional[bool] = typer.Option(
        None,
        "--duplicates/--no-duplicates",
        help="Look for packages installed in several projects",
    ),
    show_all: bool = typer.Option(False, "--all", "-a", help="Show all duplicate packages"),
    report: bool = typer.Option(False, "--report", help="Print a plain-text report"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Detailed analysis with duplicate package detection."""
    analyze_config = state.config.analyze
    threshold = (
        _parse_size_option(size_threshold, "size threshold")
        if size_threshold is not None
        else analyze_config.size_threshold_bytes
    )
    analyze_options = AnalyzeOptions(
        size_threshold=threshold,
        age_threshold_days=analyze_config.age_threshold if age_threshold is None else age_threshold,
        find_duplicates=analyze_config.duplicates if duplicates is None else duplicates,
    )
    options = _build_options(depth, hidden, exclude, None, None, not as_json)

    if not as_json:
        print_banner(console)

    descriptors = _make_scanner().scan(path, options)
    analysis = run_analysis(descriptors, analyze_options)

    if as_json:
        payload = {
            "results": [descriptor_to_dict(d, packages=False) for d in analysis.results],
            "statistics": {
                "total_size": analysis.statistics.total_size,
                "total_packages": analysis.statistics.total_packages,
                "total_install_roots": analysis.statistics.total_install_roots,
                "average_size": analysis.statistics.average_size,
            },
            "duplicates": (
                duplicate_report_to_dict(analysis.duplicates) if analysis.duplicates else None
            ),
        }
        console.print_json(json.dumps(payload))
        return

    if report:
        console.print(generate_report(analysis.statistics), markup=False, highlight=False)
    else:
        analyzer = Analyzer(console=console)
        analyzer.display_statistics(analysis.statistics)
        if analysis.duplicates is not None:
            console.print()
            analyzer.display_duplicates(analysis.duplicates, show_all=show_all)

    suggestions = suggest_cleanup_targets(analysis.results)
    if suggestions:
        console.print(f"\n[bold]Suggested for cleanup:[/bold] {len(suggestions)} install roots")
        for d in suggestions[:5]:
            console.print(f"  {d.size_human:>10}  {d.project_path}")


@app.command()
def clean(
    path: Path = PATH_ARGUMENT,
    depth: Optional[int] = DEPTH_OPTION,
    hidden: Optional[bool] = HIDDEN_OPTION,
    exclude: Optional[list[str]] = EXCLUDE_OPTION,
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--execute",
        help="Preview changes without deleting (default: dry-run)",
    ),
    trash: Optional[bool] = typer.Option(
        None,
        "--trash/--permanent",
        help="Move to trash instead of permanent deletion (default: trash)",
    ),
    interactive: Optional[bool] = typer.Option(
        None,
        "--interactive/--auto",
        help="Interactively select what to delete (default: interactive)",
    ),
    backup: Optional[bool] = typer.Option(
        None,
        "--backup/--no-backup",
        help="Copy each install root to the temp directory before deleting",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Allow deleting directories not named node_modules",
    ),
    suggested: bool = typer.Option(
        False,
        "--suggested",
        help="Only offer install roots suggested for cleanup",
    ),
) -> None:
    """Delete node_modules directories found under a path."""
    print_banner(console)
    clean_config = state.config.clean
    dry_run = clean_config.dry_run if dry_run is None else dry_run
    interactive = clean_config.interactive if interactive is None else interactive

    options = _build_options(depth, hidden, exclude, None, None, True)
    descriptors = _make_scanner().scan(path, options)
    if suggested:
        descriptors = suggest_cleanup_targets(descriptors)
    else:
        descriptors = _sort_descriptors(descriptors, "size")

    if not descriptors:
        console.print("[green]No node_modules found. Nothing to clean.[/green]")
        raise typer.Exit(0)

    if interactive:
        selected = select_targets(descriptors)
        if not selected:
            console.print("[yellow]No install roots selected. Exiting.[/yellow]")
            raise typer.Exit(0)
    else:
        selected = descriptors

    analyzer = Analyzer(console=console)
    analyzer.display_deletion_preview(selected)

    cleaner = Cleaner(
        console=console,
        use_trash=clean_config.trash if trash is None else trash,
        backup=clean_config.backup if backup is None else backup,
        force=force,
    )

    if dry_run:
        cleaner.clean(selected, dry_run=True)
        _print_dry_run_notice()
        raise typer.Exit(0)

    if not confirm_deletion(len(selected)):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)

    result = cleaner.clean(selected)
    if result.failed:
        raise typer.Exit(1)


@app.command()
def projects(
    path: Path = PATH_ARGUMENT,
    depth: int = typer.Option(5, "--depth", "-d", min=0, help="Maximum directory depth to search"),
    as_json: bool = JSON_OPTION,
) -> None:
    """List every project (directory with a package.json) under a path."""
    found = _make_scanner().find_all_projects(path, max_depth=depth)

    if as_json:
        console.print_json(json.dumps([str(p) for p in found]))
        return

    if not found:
        console.print("[yellow]No projects found.[/yellow]")
        return

    for project in found:
        console.print(str(project))
    console.print(f"\n[dim]{len(found)} projects[/dim]")


# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage Modules Hunter configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app)


def _print_config_locations(xdg_path: Path, cwd_path: Path) -> None:
    """Print config file locations and their status."""
    console.print("\n[bold]Config locations:[/bold]")
    xdg_status = "[green]exists[/green]" if xdg_path.exists() else "[dim]not found[/dim]"
    console.print(f"  Global: {xdg_path} ({xdg_status})")

    cwd_status = "[green]exists (overrides global)[/green]" if cwd_path.exists() else "[dim]not found[/dim]"
    console.print(f"  Local:  {cwd_path} ({cwd_status})")


@config_app.command("init")
def config_init(
    global_config: bool = typer.Option(
        True,
        "--global/--local",
        help="Create in XDG config (--global) or current directory (--local)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing config file",
    ),
) -> None:
    """Generate a default configuration file with comments."""
    xdg_path, cwd_path = get_config_paths()
    target = xdg_path if global_config else cwd_path

    if target.exists() and not force:
        console.print(f"[yellow]Config already exists: {target}[/yellow]")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(DEFAULT_CONFIG_TEMPLATE)
    except OSError as e:
        console.print(f"[red]Permission denied: {target}[/red]")
        console.print(f"[dim]Check write permissions for {target.parent}[/dim]")
        raise typer.Exit(1) from e

    location = "global" if global_config else "local"
    console.print(f"[green]Created {location} config:[/green] {target}")


@config_app.command("show")
def config_show() -> None:
    """Display the active configuration and its source."""
    config = state.config
    xdg_path, cwd_path = get_config_paths()

    source_text = str(config._source) if config._source else "[dim]defaults only[/dim]"
    console.print(Panel.fit(f"[bold]Active config:[/bold] {source_text}", title="Configuration Source"))

    table = Table(title="Resolved Configuration", show_header=True)
    table.add_column("Section", style="cyan")
    table.add_column("Key", style="green")
    table.add_column("Value")

    for section_name in ["scan", "cache", "analyze", "clean"]:
        section = getattr(config, section_name)
        for key, value in vars(section).items():
            table.add_row(section_name, key, str(value))

    console.print(table)
    _print_config_locations(xdg_path, cwd_path)


@config_app.command("path")
def config_path() -> None:
    """Show configuration file locations and status."""
    xdg_path, cwd_path = get_config_paths()
    _print_config_locations(xdg_path, cwd_path)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"Modules Hunter v{__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        is_eager=True,
        callback=_version_callback,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (overrides default locations)",
        exists=True,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log skipped paths and errors"),
) -> None:
    """Modules Hunter - find, measure and deduplicate node_modules directories."""
    configure_logging(console, verbose=verbose)

    try:
        state.config = load_config_from_file(config_file) if config_file else load_config()
    except ValueError as e:
        console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
