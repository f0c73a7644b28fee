"""Rich console utilities for output formatting."""

from __future__ import annotations

import logging
import platform

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from modules_hunter import __version__


def create_console() -> Console:
    """Create a configured Rich console."""
    # Windows-specific console settings
    if platform.system() == "Windows":
        return Console(legacy_windows=True, emoji=False)
    return Console()


def configure_logging(console: Console, verbose: bool = False) -> None:
    """Route library logging through the Rich console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose)],
        force=True,
    )


def print_banner(console: Console) -> None:
    """Print the Modules Hunter banner."""
    banner_text = Text()
    banner_text.append("MODULES ", style="bold red")
    banner_text.append("HUNTER", style="bold yellow")

    tagline = Text("Find, measure and deduplicate node_modules", style="dim italic")

    panel = Panel(
        Text.assemble(banner_text, "\n", tagline),
        border_style="blue",
        padding=(0, 2),
        subtitle=f"v{__version__}",
        subtitle_align="right",
    )

    console.print(panel)
    console.print()
