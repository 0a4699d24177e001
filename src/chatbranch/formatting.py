"""Pretty-print support for chatbranch output objects.

Uses rich library for formatted terminal output.
All functions accept their target object and print to a rich Console.

To avoid circular imports, this module does NOT import domain models
at module level. Functions access object attributes dynamically.
"""
from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree


def _make_console(file: Any = None) -> Console:
    """Create a Console, optionally writing to a file-like object."""
    if file is not None:
        return Console(file=file, force_terminal=False, width=100)
    return Console()


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _tree_label(node: Any, current: str | None) -> Text:
    label = Text()
    marker = "* " if node.name == current else "  "
    label.append(marker, style="bold green")
    label.append(node.name, style="bold green" if node.name == current else "cyan")
    branch = node.branch
    if branch is not None:
        label.append(f"  ({branch.stats.message_count} msgs", style="dim")
        if branch.metadata.protected:
            label.append(", protected", style="dim")
        label.append(")", style="dim")
        if branch.metadata.description:
            label.append(f"  {branch.metadata.description}", style="italic dim")
    return label


def build_rich_tree(root: Any, *, current: str | None = None) -> Tree:
    """Convert a BranchTreeNode into a rich Tree."""
    tree = Tree(_tree_label(root, current))
    stack = [(root, tree)]
    while stack:
        node, rich_node = stack.pop()
        for child in node.children:
            stack.append((child, rich_node.add(_tree_label(child, current))))
    return tree


def pprint_tree(root: Any, *, current: str | None = None, file: Any = None) -> None:
    """Pretty-print a BranchTreeNode.

    Args:
        root: The root BranchTreeNode.
        current: Name of the branch to highlight.
        file: Optional file-like object for output (used in tests).
    """
    console = _make_console(file)
    console.print(build_rich_tree(root, current=current))


def pprint_messages(messages: list[Any], *, abbreviate: bool = True, file: Any = None) -> None:
    """Pretty-print a list of Message records as a table."""
    console = _make_console(file)
    if not messages:
        console.print("[dim]No messages.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Id", style="yellow", width=8)
    table.add_column("Role", style="cyan")
    table.add_column("Branch", style="magenta")
    table.add_column("Content")

    for i, m in enumerate(messages):
        content = m.content.replace("\n", " ")
        if abbreviate:
            content = _truncate(content, 60)
        if m.edited:
            content += " [edited]"
        table.add_row(str(i), m.id[:8], escape(m.role), escape(m.branch), escape(content))

    console.print(table)


def pprint_comparison(comparison: Any, *, file: Any = None) -> None:
    """Pretty-print a BranchComparison."""
    console = _make_console(file)
    a, b = comparison.branch_a, comparison.branch_b

    header = Text()
    header.append(a.name, style="cyan")
    header.append(" vs ", style="dim")
    header.append(b.name, style="cyan")
    console.print(Panel(header, expand=False))

    console.print(f"  Diverges at: {comparison.divergence_point}")
    console.print(f"  Common:      {comparison.common_messages}")
    console.print(f"  Similarity:  {comparison.similarity:.0%}")
    for side in (a, b):
        console.print()
        console.print(
            f"[bold]{escape(side.name)}[/bold] "
            f"({len(side.unique_messages)} unique of {side.total_messages})"
        )
        for m in side.unique_messages:
            console.print(
                f"  [yellow]{m.id[:8]}[/yellow] [cyan]{m.role}[/cyan] "
                f"{escape(_truncate(m.content, 70))}"
            )


def pprint_merge_result(result: Any, *, file: Any = None) -> None:
    """Pretty-print a MergeResult summary."""
    console = _make_console(file)

    header = Text()
    header.append("Merge ", style="bold")
    header.append(f"{result.source_branch}", style="cyan")
    header.append(" -> ", style="dim")
    header.append(f"{result.target_branch}", style="cyan")
    console.print(Panel(header, border_style="green", expand=False))

    info = Text()
    info.append("  strategy:  ", style="dim")
    info.append(f"{result.strategy.value}\n", style="bold")
    info.append("  ancestor:  ", style="dim")
    info.append(f"{result.common_ancestor}\n", style="bold")
    info.append("  messages:  ", style="dim")
    info.append(f"{len(result.messages)}\n", style="bold")
    if result.source_deleted:
        info.append("  source deleted\n", style="yellow")
    console.print(info)
