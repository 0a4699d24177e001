"""chatbranch status -- show the current branch."""

from __future__ import annotations

import click

from chatbranch.cli.formatting import format_status


@click.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the current branch, its message and token counts."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        format_status(store.get_current_branch(), len(store), console)
