"""chatbranch switch -- change the current branch."""

from __future__ import annotations

import click


@click.command()
@click.argument("name")
@click.pass_context
def switch(ctx: click.Context, name: str) -> None:
    """Switch to branch NAME."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        store.switch_branch(name)
        console.print(f"Switched to branch [cyan]{name}[/cyan]")
