"""Interactive prompts for user input."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from InquirerPy import inquirer
from InquirerPy.base.control import Choice

if TYPE_CHECKING:
    from modules_hunter.core.scanner import InstallRootDescriptor


def confirm_deletion(count: int) -> bool:
    """
    Prompt user to confirm deletion.

    Args:
        count: Number of items to be deleted

    Returns:
        True if user confirms, False otherwise
    """
    return typer.confirm(
        f"\nAre you sure you want to delete {count} install root(s)?",
        default=False,
    )


def select_targets(targets: list["InstallRootDescriptor"]) -> list["InstallRootDescriptor"]:
    """
    Let user interactively select which install roots to delete.

    Args:
        targets: Install roots found by a scan

    Returns:
        List of selected install roots
    """
    choices = [
        Choice(
            value=target,
            name=f"{target.size_human:>10} | {target.project_name[:25]:<25} | {target.path}",
        )
        for target in targets
    ]

    selected = inquirer.checkbox(
        message="Select install roots to delete (Space to toggle, Enter to confirm):",
        choices=choices,
        cycle=True,
    ).execute()

    return selected or []
