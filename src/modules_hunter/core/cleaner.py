"""Cleaner for safe deletion of install roots."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from send2trash import send2trash

from modules_hunter.core.scanner import INSTALL_ROOT_NAME, InstallRootDescriptor, format_size

logger = logging.getLogger(__name__)


class CleanerError(Exception):
    """Error during cleanup operation."""

    pass


@dataclass
class CleanResult:
    """Outcome of a cleanup run."""

    cleaned: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    saved_space: int = 0

    @property
    def saved_space_human(self) -> str:
        return format_size(self.saved_space)


class Cleaner:
    """Deletes install roots, optionally backing them up or trashing them."""

    def __init__(
        self,
        console: Optional[Console] = None,
        use_trash: bool = True,
        backup: bool = False,
        force: bool = False,
        backup_dir: Optional[Path] = None,
        marker: str = INSTALL_ROOT_NAME,
    ):
        self.console = console or Console()
        self.use_trash = use_trash
        self.backup = backup
        self.force = force
        self.backup_dir = backup_dir or Path(tempfile.gettempdir())
        self.marker = marker

    def clean(self, targets: list[InstallRootDescriptor], dry_run: bool = False) -> CleanResult:
        """
        Delete the install roots of the given descriptors.

        A failure on one target is reported and the rest still run.

        Args:
            targets: Install roots to delete
            dry_run: Only report what would be deleted

        Returns:
            CleanResult listing cleaned and failed paths
        """
        result = CleanResult()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self.console,
            disable=dry_run,
        ) as progress:
            task = progress.add_task("Cleaning up...", total=len(targets))

            for target in targets:
                progress.update(task, description=f"Deleting: {target.project_name[:40]}")

                if dry_run:
                    self.console.print(f"[yellow][DRY RUN] Would delete: {target.path}[/yellow]")
                    self.console.print(
                        f"[dim]  Size: {target.size_human}, packages: {target.package_count}[/dim]"
                    )
                    result.cleaned.append(target.path)
                    result.saved_space += target.size_bytes
                    progress.advance(task)
                    continue

                try:
                    self.delete(target.path)
                except (CleanerError, OSError) as e:
                    logger.debug("Failed to delete %s", target.path, exc_info=True)
                    result.failed.append(target.path)
                    self.console.print(f"[red]Failed to delete {target.path}: {e}[/red]")
                else:
                    result.cleaned.append(target.path)
                    result.saved_space += target.size_bytes

                progress.advance(task)

        self.console.print()
        if result.cleaned and not dry_run:
            self.console.print(
                f"[green]Successfully cleaned {len(result.cleaned)} install roots, "
                f"freed {result.saved_space_human}[/green]"
            )
        if result.failed:
            self.console.print(f"[red]Failed to clean {len(result.failed)} install roots[/red]")

        return result

    def delete(self, path: Path) -> None:
        """
        Delete a single install root.

        Raises:
            CleanerError: If the path is not an install root and force is off
        """
        if not self.force and path.name != self.marker:
            raise CleanerError(
                f"Refusing to delete {path}: not a {self.marker} directory (use --force)"
            )

        if not path.exists():
            return  # Already deleted

        if self.backup:
            self.back_up(path)

        if self.use_trash:
            send2trash(str(path.absolute()))
            return

        shutil.rmtree(path)

    def back_up(self, path: Path) -> Path:
        """Copy an install root to a timestamped directory under backup_dir."""
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        destination = self.backup_dir / f"{path.parent.name}_{path.name}_{timestamp}"
        self.console.print(f"[cyan]Creating backup at: {destination}[/cyan]")
        shutil.copytree(path, destination, symlinks=True)
        return destination
