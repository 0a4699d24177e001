"""Rich formatting helpers for the chatbranch CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from chatbranch.models.branch import Branch, BranchInfo
    from chatbranch.models.state import Checkpoint


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def format_branch_list(branches: list[BranchInfo], console: Console) -> None:
    """Display branches, current one marked with ``*``."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("", width=1)
    table.add_column("Branch", style="cyan")
    table.add_column("Parent", style="dim")
    table.add_column("Msgs", justify="right", style="green")
    table.add_column("Description")

    for info in branches:
        name = f"{escape(info.name)} [dim](protected)[/dim]" if info.protected else escape(info.name)
        table.add_row(
            "*" if info.is_current else "",
            name,
            escape(info.parent or "-"),
            str(info.message_count),
            escape(info.description),
        )

    console.print(table)


def format_status(branch: Branch, branch_count: int, console: Console) -> None:
    """Display the current branch summary."""
    console.print(f"On branch [bold cyan]{escape(branch.name)}[/bold cyan]")
    if branch.parent:
        console.print(f"  Parent:   {escape(branch.parent)}")
    console.print(f"  Messages: {branch.stats.message_count}")
    console.print(f"  Tokens:   {branch.stats.token_count}")
    console.print(f"  Branches: {branch_count}")
    if branch.metadata.merge_history:
        last = branch.metadata.merge_history[-1]
        console.print(
            f"  Last merge: {escape(last.from_branch)} ({last.strategy}) "
            f"at {last.timestamp.strftime('%Y-%m-%d %H:%M')}"
        )


def format_checkpoints(checkpoints: list[Checkpoint], console: Console) -> None:
    """Display checkpoints in a table."""
    if not checkpoints:
        console.print("[dim]No checkpoints.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Name", style="cyan")
    table.add_column("Time", style="dim")
    table.add_column("Branches", justify="right", style="green")
    table.add_column("Current")
    table.add_column("Description")

    for cp in checkpoints:
        table.add_row(
            escape(cp.name),
            cp.timestamp.strftime("%Y-%m-%d %H:%M"),
            str(len(cp.branches)),
            escape(cp.current_branch),
            escape(cp.description),
        )

    console.print(table)
